"""Watches a UniFi NVR motion.log for motion start/stop events.

The NVR appends one line per motion event, for example::

    1532822355.829 2018-07-28 19:59:15.829/CDT: INFO   [uv.analytics.motion] [AnalyticsService]
    [AABBCCDDEEFF|Front Door] MotionEvent type:stop event:99 clock:68765342 in AnalyticsEvtBus-0

Only lines appended after the watcher starts are reported.
"""

import os
import re
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .error_handler import ConfigurationError, ErrorSeverity, global_error_handler
from ..config.defaults import SYSTEM_CONSTANTS
from ..logging_config import get_logger

logger = get_logger("motion_watcher")

MOTION_LINE_PATTERN = re.compile(
    r"\[(?P<camera_id>[^|\[\]\s]+)\|(?P<camera_name>[^\]]*)\].*?\btype:(?P<event_type>start|stop)\b"
)

MotionCallback = Callable[[str, str], None]


@dataclass
class MotionEvent:
    camera_id: str
    camera_name: str
    event_type: str  # "start" or "stop"


def parse_motion_line(line: str) -> Optional[MotionEvent]:
    """Parse a motion.log line, returning None for unrelated lines."""
    match = MOTION_LINE_PATTERN.search(line)
    if not match:
        return None
    return MotionEvent(
        camera_id=match.group("camera_id"),
        camera_name=match.group("camera_name").strip(),
        event_type=match.group("event_type")
    )


class MotionLogWatcher:
    """Tails a motion log and invokes callbacks registered per camera."""

    def __init__(self, log_path: str, stop_event: Optional[threading.Event] = None,
                 poll_interval: float = SYSTEM_CONSTANTS["MOTION_POLL_INTERVAL_SECONDS"]):
        self.log_path = log_path
        self.stop_event = stop_event or threading.Event()
        self.poll_interval = poll_interval
        self._start_callbacks: Dict[str, List[MotionCallback]] = {}
        self._stop_callbacks: Dict[str, List[MotionCallback]] = {}
        self._thread: Optional[threading.Thread] = None
        self._position = 0
        self._partial = ""
        self._poll_lock = threading.Lock()

        if not os.path.isfile(log_path) or not os.access(log_path, os.R_OK):
            raise ConfigurationError(f"Unable to open the motion.log file: {log_path}")

        global_error_handler.register_component("motion_watcher")

    def add_start_motion_callback(self, camera_id: str, callback: MotionCallback) -> None:
        self._start_callbacks.setdefault(camera_id.upper(), []).append(callback)

    def add_stop_motion_callback(self, camera_id: str, callback: MotionCallback) -> None:
        self._stop_callbacks.setdefault(camera_id.upper(), []).append(callback)

    def start(self) -> None:
        """Begin watching from the current end of the log."""
        if self._thread and self._thread.is_alive():
            return

        self._position = os.path.getsize(self.log_path)
        self._partial = ""
        self._thread = threading.Thread(target=self._watch_loop, name="motion-watcher", daemon=True)
        self._thread.start()
        logger.info(f"Watching motion log {self.log_path}")

    def stop(self, timeout: float = 5.0) -> None:
        self.stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _watch_loop(self) -> None:
        while not self.stop_event.is_set():
            try:
                self.poll()
            except OSError as e:
                global_error_handler.handle_error("motion_watcher", e, ErrorSeverity.LOW)
            self.stop_event.wait(self.poll_interval)
        logger.debug("Motion log watcher stopped")

    def poll(self) -> int:
        """Read newly appended lines and dispatch them. Returns the number of events seen."""
        with self._poll_lock:
            return self._read_new_lines()

    def _read_new_lines(self) -> int:
        size = os.path.getsize(self.log_path)
        if size < self._position:
            logger.info("Motion log was truncated or rotated; reading from the start")
            self._position = 0
            self._partial = ""

        if size == self._position:
            return 0

        with open(self.log_path, "rb") as f:
            f.seek(self._position)
            chunk = f.read().decode("utf-8", errors="replace")
            self._position = f.tell()

        data = self._partial + chunk
        lines = data.split("\n")
        self._partial = lines.pop()

        events = 0
        for line in lines:
            event = parse_motion_line(line)
            if event is None:
                continue
            events += 1
            self._dispatch(event)
        return events

    def _dispatch(self, event: MotionEvent) -> None:
        registry = self._stop_callbacks if event.event_type == "stop" else self._start_callbacks
        callbacks = registry.get(event.camera_id.upper(), [])
        logger.debug(f"Motion {event.event_type} on {event.camera_name or event.camera_id} "
                     f"({len(callbacks)} callback(s))")

        for callback in callbacks:
            try:
                callback(event.camera_id, event.camera_name)
            except Exception as e:
                global_error_handler.handle_error("motion_watcher", e, ErrorSeverity.MEDIUM)
