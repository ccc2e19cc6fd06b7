"""
Package Detector

Captures a snapshot from an IP camera on a timer or after motion, asks a
cloud image classifier whether a package is on the doorstep, and sends
email, push and webhook notifications when one shows up.
"""

__version__ = "1.0.0"
__author__ = "Package Detector"

from .config_manager import ConfigManager
from .detection_pipeline import DetectionPipeline
from .models import (
    AppConfig,
    CaptureEvent,
    CaptureSource,
    Classification,
    DecisionReason,
    NotificationDecision,
    MuteState
)
from .services.schedule_policy import is_awake
from .services.decision_engine import decide

__all__ = [
    # Core management
    'ConfigManager',
    'DetectionPipeline',

    # Data models
    'AppConfig',
    'CaptureEvent',
    'CaptureSource',
    'Classification',
    'DecisionReason',
    'NotificationDecision',
    'MuteState',

    # Control loop policy
    'is_awake',
    'decide'
]
