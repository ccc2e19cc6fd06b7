"""Maps classification results to notification decisions."""

import threading
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from ..models.detection import (
    Classification,
    DecisionReason,
    MuteState,
    NotificationDecision
)
from ..logging_config import get_logger

logger = get_logger("decision_engine")


def is_match(result: Classification, target_label: str, threshold_percent: float) -> bool:
    """A result matches when it carries the target label strictly above the threshold."""
    return result.label == target_label and result.confidence > threshold_percent / 100


def is_muted(mute_state: MuteState, now: datetime, mute_minutes: int) -> bool:
    if mute_state.last_notified_at is None:
        return False
    return not now > mute_state.last_notified_at + timedelta(minutes=mute_minutes)


def decide(results: Sequence[Classification],
           force_notify: bool,
           target_label: str,
           threshold_percent: float,
           mute_state: MuteState,
           now: datetime,
           mute_minutes: int = 0) -> List[NotificationDecision]:
    """Decide which notifications a cycle should send.

    Each matching result produces a DETECTED decision unless the mute window
    is still open; the mute timestamp is committed here, before anything is
    dispatched. ``force_notify`` yields at most one FORCED_STARTUP decision
    per cycle, regardless of how many results came back, and only when
    nothing was detected. Forced decisions ignore the mute window.
    """
    decisions: List[NotificationDecision] = []

    for result in results:
        if not is_match(result, target_label, threshold_percent):
            continue

        if is_muted(mute_state, now, mute_minutes):
            logger.debug(f"Package detected ({result.percent():.1f}%) but notifications "
                         f"are muted until {mute_state.last_notified_at + timedelta(minutes=mute_minutes)}")
            continue

        mute_state.last_notified_at = now
        decisions.append(NotificationDecision(
            should_notify=True,
            reason=DecisionReason.DETECTED,
            label=result.label,
            confidence=result.confidence
        ))

    if force_notify and not decisions:
        first = results[0] if results else None
        decisions.append(NotificationDecision(
            should_notify=True,
            reason=DecisionReason.FORCED_STARTUP,
            label=first.label if first else "",
            confidence=first.confidence if first else 0.0
        ))

    return decisions


class NotificationDecisionEngine:
    """Holds the target label, threshold and mute state across cycles."""

    def __init__(self, target_label: str, threshold_percent: float, mute_minutes: int,
                 mute_state: Optional[MuteState] = None):
        self.target_label = target_label
        self.threshold_percent = threshold_percent
        self.mute_minutes = mute_minutes
        self.mute_state = mute_state or MuteState()
        self._lock = threading.Lock()

    def evaluate(self, results: Sequence[Classification], force_notify: bool = False,
                 now: Optional[datetime] = None) -> List[NotificationDecision]:
        with self._lock:
            return decide(
                results,
                force_notify,
                self.target_label,
                self.threshold_percent,
                self.mute_state,
                now or datetime.now(),
                self.mute_minutes
            )

    def muted_until(self) -> Optional[datetime]:
        if self.mute_state.last_notified_at is None:
            return None
        return self.mute_state.last_notified_at + timedelta(minutes=self.mute_minutes)
