"""Configuration data models."""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class RunConfig:
    """Scheduling and notification timing settings."""
    interval: int = 0  # Minutes between timed captures, 0 disables the timer
    sleep_hour: int = 0
    wake_hour: int = 0
    notify_on_start: bool = False
    notify_mute_minutes: int = 0


@dataclass
class MotionConfig:
    """UniFi NVR motion log settings."""
    log_path: str = ""
    camera_id: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.log_path)


@dataclass
class Rect:
    """Crop rectangle from (x1, y1) to (x2, y2)."""
    x1: int = 0
    y1: int = 0
    x2: int = 0
    y2: int = 0

    @property
    def is_set(self) -> bool:
        """A rectangle with every coordinate at zero means "no crop"."""
        return any((self.x1, self.y1, self.x2, self.y2))

    def as_box(self) -> Tuple[int, int, int, int]:
        return (self.x1, self.y1, self.x2, self.y2)


@dataclass
class ImageConfig:
    """Camera snapshot settings."""
    url: str = ""
    cache_file: str = "./img.jpg"
    archive_path: str = ""
    rect: Rect = field(default_factory=Rect)
    timeout_seconds: float = 10.0


@dataclass
class VisionConfig:
    """Cloud classification service settings."""
    auth_file: str = ""
    url: str = ""
    package_label: str = "package"
    threshold: float = 75.0  # Percent
    timeout_seconds: float = 30.0


@dataclass
class EmailConfig:
    """SMTP notification settings."""
    from_address: str = ""
    to: List[str] = field(default_factory=list)
    server: str = ""
    port: int = 587
    user: str = ""
    password: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.server)


@dataclass
class PushConfig:
    """Firebase Cloud Messaging settings.

    ``key`` is the path of a Firebase service account file. ``bucket``,
    ``folder`` and ``collection`` are accepted for compatibility with older
    configuration files; detection history is not stored.
    """
    key: str = ""
    topic: str = ""
    bucket: str = ""
    folder: str = ""
    collection: str = ""

    def history_keys(self) -> List[str]:
        """Names of the history settings that are set but unused."""
        return [name for name in ("bucket", "folder", "collection") if getattr(self, name)]

    @property
    def enabled(self) -> bool:
        return bool(self.key)


@dataclass
class WebhookConfig:
    """Webhook notification settings."""
    url: str = ""
    timeout_seconds: float = 10.0

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass
class AppConfig:
    """Complete application configuration."""
    run: RunConfig = field(default_factory=RunConfig)
    motion: MotionConfig = field(default_factory=MotionConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    email: EmailConfig = field(default_factory=EmailConfig)
    push: PushConfig = field(default_factory=PushConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
