"""Capture triggers feeding a single detection worker."""

import queue
import threading
from typing import Any, Callable, Dict, Optional

from .schedule_policy import SchedulePolicy
from .error_handler import ErrorSeverity, global_error_handler
from ..config.defaults import SYSTEM_CONSTANTS
from ..models.detection import CaptureEvent, CaptureSource
from ..logging_config import get_logger

logger = get_logger("capture_trigger")

CycleHandler = Callable[[CaptureEvent], Any]


class CaptureTriggerSource:
    """Turns timer ticks, motion events and the startup request into cycles.

    Only one cycle is ever pending or running. A trigger that arrives while
    a cycle is queued or in flight is dropped rather than queued, so a slow
    classification service cannot build up a backlog.

    All producers share ``stop_event``. Once it is set no new triggers are
    accepted; a cycle that is already running is allowed to finish.
    """

    def __init__(self, handler: CycleHandler, schedule: SchedulePolicy,
                 interval_minutes: int = 0, stop_event: Optional[threading.Event] = None):
        self.handler = handler
        self.schedule = schedule
        self.interval_minutes = interval_minutes
        self.stop_event = stop_event or threading.Event()

        self._slot: "queue.Queue[CaptureEvent]" = queue.Queue(maxsize=1)
        self._busy = False
        self._idle = threading.Condition()
        self._worker_thread: Optional[threading.Thread] = None
        self._timer_thread: Optional[threading.Thread] = None

        self.accepted_counts: Dict[str, int] = {source.value: 0 for source in CaptureSource}
        self.dropped_counts: Dict[str, int] = {source.value: 0 for source in CaptureSource}
        self.skipped_asleep = 0

        global_error_handler.register_component("capture_trigger")

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60.0

    def submit(self, event: CaptureEvent) -> bool:
        """Hand an event to the worker. Returns False if it was dropped."""
        if self.stop_event.is_set():
            logger.debug(f"Ignoring {event.source.value} trigger during shutdown")
            return False

        with self._idle:
            if self._busy:
                self.dropped_counts[event.source.value] += 1
                logger.info(f"Detection already in progress; dropping {event.source.value} trigger")
                return False
            self._busy = True
            self.accepted_counts[event.source.value] += 1

        self._slot.put_nowait(event)

        # Shutdown raced the hand-off; the worker may already be gone
        if self.stop_event.is_set():
            try:
                self._slot.get_nowait()
            except queue.Empty:
                # The worker took the event and will mark itself idle
                return True
            logger.debug(f"Withdrawing {event.source.value} trigger during shutdown")
            self._mark_idle()
            return False
        return True

    def trigger_startup(self, force_notify: bool) -> bool:
        """Queue the one-off startup capture, ignoring the sleep window."""
        return self.submit(CaptureEvent(CaptureSource.MANUAL, force_notify=force_notify))

    def on_timer_tick(self) -> bool:
        return self._submit_if_awake(CaptureSource.TIMER)

    def on_motion_stopped(self, camera_id: str = "", camera_name: str = "") -> bool:
        """Stop-motion callback for the motion log watcher."""
        logger.debug(f"Motion stopped on {camera_name or camera_id}")
        return self._submit_if_awake(CaptureSource.MOTION)

    def _submit_if_awake(self, source: CaptureSource) -> bool:
        if not self.schedule.is_awake():
            self.skipped_asleep += 1
            logger.debug(f"Asleep ({self.schedule.describe()}); ignoring {source.value} trigger")
            return False
        return self.submit(CaptureEvent(source))

    def start(self) -> None:
        """Start the worker and, if an interval is configured, the timer."""
        if self._worker_thread and self._worker_thread.is_alive():
            logger.warning("Capture triggers are already running")
            return

        self._worker_thread = threading.Thread(target=self._worker_loop, name="detection-worker", daemon=True)
        self._worker_thread.start()

        if self.interval_minutes > 0:
            self._timer_thread = threading.Thread(target=self._timer_loop, name="capture-timer", daemon=True)
            self._timer_thread.start()
            logger.info(f"Timed capture every {self.interval_minutes} minute(s)")
        else:
            logger.info("Timed capture disabled")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal shutdown and wait for the in-flight cycle, if any, to finish."""
        self.stop_event.set()

        if self._timer_thread and self._timer_thread.is_alive():
            self._timer_thread.join(timeout=SYSTEM_CONSTANTS["WORKER_JOIN_TIMEOUT_SECONDS"])

        if self._worker_thread and self._worker_thread.is_alive():
            self._worker_thread.join(timeout=timeout)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no cycle is pending or running."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._busy, timeout=timeout)

    def is_busy(self) -> bool:
        with self._idle:
            return self._busy

    def is_running(self) -> bool:
        return self._worker_thread is not None and self._worker_thread.is_alive()

    def _timer_loop(self) -> None:
        while not self.stop_event.wait(self.interval_seconds):
            self.on_timer_tick()
        logger.debug("Capture timer stopped")

    def _worker_loop(self) -> None:
        while not self.stop_event.is_set():
            try:
                event = self._slot.get(timeout=0.5)
            except queue.Empty:
                continue

            try:
                self.handler(event)
            except Exception as e:
                global_error_handler.handle_error("capture_trigger", e, ErrorSeverity.HIGH)
            finally:
                self._mark_idle()

        # A trigger accepted just before shutdown is discarded unrun
        try:
            event = self._slot.get_nowait()
            logger.info(f"Discarding pending {event.source.value} trigger at shutdown")
            self._mark_idle()
        except queue.Empty:
            pass
        logger.debug("Detection worker stopped")

    def _mark_idle(self) -> None:
        with self._idle:
            self._busy = False
            self._idle.notify_all()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "interval_minutes": self.interval_minutes,
            "schedule": self.schedule.describe(),
            "worker_running": self.is_running(),
            "busy": self.is_busy(),
            "accepted": dict(self.accepted_counts),
            "dropped": dict(self.dropped_counts),
            "skipped_asleep": self.skipped_asleep
        }
