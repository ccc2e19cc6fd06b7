"""Service interfaces and abstract base classes."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..models.config import Rect
from ..models.detection import Classification, NotificationDecision


class CredentialProviderInterface(ABC):
    """Interface for obtaining a classification service access token."""

    @abstractmethod
    def get_credential(self) -> str:
        """Return a bearer token. Raises CredentialError on failure."""
        pass


class ImageSourceInterface(ABC):
    """Interface for fetching a still image from the camera."""

    @abstractmethod
    def fetch_image(self, url: str) -> bytes:
        """Return the raw image bytes. Raises ImageFetchError on failure."""
        pass


class ImageCropperInterface(ABC):
    """Interface for cropping an encoded image."""

    @abstractmethod
    def crop_image(self, image: bytes, rect: Rect) -> bytes:
        """Return the cropped, re-encoded image. Raises ImageCropError on failure."""
        pass


class ClassifierInterface(ABC):
    """Interface for the image classification service."""

    @abstractmethod
    def classify(self, image: bytes, credential: str) -> List[Classification]:
        """Classify an image. Raises ClassificationError on failure."""
        pass


class ImageStoreInterface(ABC):
    """Interface for persisting the image submitted for classification."""

    @abstractmethod
    def save_image(self, image: bytes, captured_at: Optional[datetime] = None) -> str:
        """Persist the image and return the cache file path."""
        pass


class NotificationChannelInterface(ABC):
    """Interface for a single outbound notification channel."""

    name = "channel"

    @abstractmethod
    def is_enabled(self) -> bool:
        """Check if the channel is configured."""
        pass

    @abstractmethod
    def send(self, decision: NotificationDecision, image: bytes) -> None:
        """Deliver a notification. Raises DispatchError on failure."""
        pass
