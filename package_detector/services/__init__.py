"""Services for the package detection system."""

from .interfaces import (
    CredentialProviderInterface,
    ImageSourceInterface,
    ImageCropperInterface,
    ClassifierInterface,
    ImageStoreInterface,
    NotificationChannelInterface
)

__all__ = [
    'CredentialProviderInterface',
    'ImageSourceInterface',
    'ImageCropperInterface',
    'ClassifierInterface',
    'ImageStoreInterface',
    'NotificationChannelInterface'
]
