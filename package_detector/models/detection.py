"""Detection data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class CaptureSource(Enum):
    """Where a capture request came from."""
    TIMER = "timer"
    MOTION = "motion"
    MANUAL = "manual"


@dataclass
class CaptureEvent:
    """A request to run one detection cycle."""
    source: CaptureSource
    force_notify: bool = False
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()


@dataclass
class Classification:
    """A single label returned by the classification service."""
    label: str
    confidence: float  # 0.0 - 1.0

    def percent(self) -> float:
        """Confidence expressed as a percentage."""
        return self.confidence * 100


class DecisionReason(Enum):
    """Why a notification is (or is not) being sent."""
    DETECTED = "detected"
    FORCED_STARTUP = "forced_startup"
    NONE = "none"


@dataclass
class NotificationDecision:
    """Outcome of evaluating classification results for notification."""
    should_notify: bool
    reason: DecisionReason
    label: str = ""
    confidence: float = 0.0


@dataclass
class MuteState:
    """Tracks when the last package notification was sent.

    Lives for the lifetime of the process and is never persisted, so a
    restart always begins unmuted.
    """
    last_notified_at: Optional[datetime] = None


@dataclass
class DetectionCycleResult:
    """Everything a single detection cycle produced."""
    event: CaptureEvent
    classifications: List[Classification] = field(default_factory=list)
    image: bytes = b""
    decisions: List[NotificationDecision] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
