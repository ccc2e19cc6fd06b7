"""Configuration components for the package detection system."""

from .defaults import (
    DEFAULT_CONFIG,
    CONFIG_KEY_MAP,
    SYSTEM_CONSTANTS,
    DEFAULT_PATHS,
    NOTIFICATION_MESSAGES
)

__all__ = [
    'DEFAULT_CONFIG',
    'CONFIG_KEY_MAP',
    'SYSTEM_CONSTANTS',
    'DEFAULT_PATHS',
    'NOTIFICATION_MESSAGES'
]
