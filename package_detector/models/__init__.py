"""Data models for the package detection system."""

from .detection import (
    CaptureSource,
    CaptureEvent,
    Classification,
    DecisionReason,
    NotificationDecision,
    MuteState,
    DetectionCycleResult
)
from .config import (
    AppConfig,
    RunConfig,
    MotionConfig,
    Rect,
    ImageConfig,
    VisionConfig,
    EmailConfig,
    PushConfig,
    WebhookConfig
)

__all__ = [
    'CaptureSource', 'CaptureEvent', 'Classification', 'DecisionReason',
    'NotificationDecision', 'MuteState', 'DetectionCycleResult',
    'AppConfig', 'RunConfig', 'MotionConfig', 'Rect', 'ImageConfig',
    'VisionConfig', 'EmailConfig', 'PushConfig', 'WebhookConfig'
]
