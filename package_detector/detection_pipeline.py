"""Main detection pipeline that integrates all core services."""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .models.config import AppConfig
from .models.detection import CaptureEvent, DecisionReason, DetectionCycleResult, NotificationDecision
from .services.interfaces import (
    ClassifierInterface,
    CredentialProviderInterface,
    ImageCropperInterface,
    ImageSourceInterface,
    ImageStoreInterface
)
from .services.capture_trigger import CaptureTriggerSource
from .services.decision_engine import NotificationDecisionEngine
from .services.error_handler import CycleError, ErrorHandler, ErrorSeverity, global_error_handler
from .services.image_cropper import PillowImageCropper
from .services.image_fetcher import HttpImageSource
from .services.motion_watcher import MotionLogWatcher
from .services.notification_service import NotificationService
from .services.schedule_policy import SchedulePolicy
from .services.storage_service import ImageStore
from .services.vision_classifier import AutoMLClassifier, GcloudCredentialProvider
from .logging_config import get_logger, log_with_context

logger = get_logger("detection_pipeline")

# A failed step degrades its component until a later cycle succeeds
CYCLE_STEPS = ("credential", "fetch", "crop", "classify")


class DetectionPipeline:
    """Runs detection cycles and owns the state shared between them.

    Collaborators default to the HTTP, Pillow, gcloud and SMTP backed
    implementations and can be replaced for testing.
    """

    def __init__(self,
                 config: AppConfig,
                 credential_provider: Optional[CredentialProviderInterface] = None,
                 image_source: Optional[ImageSourceInterface] = None,
                 cropper: Optional[ImageCropperInterface] = None,
                 classifier: Optional[ClassifierInterface] = None,
                 image_store: Optional[ImageStoreInterface] = None,
                 notification_service: Optional[NotificationService] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.config = config
        self.clock = clock or datetime.now
        self.error_handler = error_handler or global_error_handler

        self.credential_provider = credential_provider or GcloudCredentialProvider(
            config.vision.auth_file, timeout=config.vision.timeout_seconds)
        self.image_source = image_source or HttpImageSource(timeout=config.image.timeout_seconds)
        self.cropper = cropper or PillowImageCropper()
        self.classifier = classifier or AutoMLClassifier(
            config.vision.url, timeout=config.vision.timeout_seconds)
        self.image_store = image_store or ImageStore(config.image.cache_file, config.image.archive_path)
        self.notification_service = notification_service or NotificationService.from_config(
            config.email, config.push, config.webhook, self.error_handler)

        self.decision_engine = NotificationDecisionEngine(
            target_label=config.vision.package_label,
            threshold_percent=config.vision.threshold,
            mute_minutes=config.run.notify_mute_minutes
        )
        self.schedule = SchedulePolicy(config.run.sleep_hour, config.run.wake_hour, clock=self.clock)

        self.stop_event = threading.Event()
        self.trigger_source = CaptureTriggerSource(
            handler=self.process_event,
            schedule=self.schedule,
            interval_minutes=config.run.interval,
            stop_event=self.stop_event
        )
        self.motion_watcher: Optional[MotionLogWatcher] = None

        # Pipeline state
        self.running = False
        self.start_time: Optional[datetime] = None
        self.cycle_count = 0
        self.error_count = 0
        self.detection_count = 0
        self.last_cycle_time: Optional[datetime] = None
        self.last_detection_time: Optional[datetime] = None
        self.last_cycle_duration_ms = 0.0

        self.error_handler.register_component("detection_pipeline")
        logger.info("Detection pipeline initialized")

    def start(self) -> bool:
        """Start the triggers and queue the startup capture."""
        if self.running:
            logger.warning("Pipeline is already running")
            return False

        # Motion log problems are configuration errors and must surface before any capture
        if self.config.motion.enabled:
            self.motion_watcher = MotionLogWatcher(self.config.motion.log_path, stop_event=self.stop_event)
            self.motion_watcher.add_stop_motion_callback(
                self.config.motion.camera_id, self.trigger_source.on_motion_stopped)

        self.running = True
        self.start_time = self.clock()
        self.trigger_source.start()
        self.trigger_source.trigger_startup(self.config.run.notify_on_start)

        if self.motion_watcher is not None:
            self.motion_watcher.start()

        logger.info(f"Running... ({self.schedule.describe()})")
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop every trigger; the in-flight cycle is allowed to complete."""
        logger.info("Stopping detection pipeline...")
        self.stop_event.set()

        if self.motion_watcher is not None:
            self.motion_watcher.stop()
        self.trigger_source.stop(timeout=timeout)

        self.running = False
        logger.info("Detection pipeline stopped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until shutdown has been requested."""
        return self.stop_event.wait(timeout)

    def run_detection(self, event: CaptureEvent) -> DetectionCycleResult:
        """Credential, fetch, optional crop, classify, then persist.

        A failing step aborts the cycle; the error is recorded on the result
        and logged, and the next trigger simply tries again.
        """
        result = DetectionCycleResult(event=event)

        try:
            credential = self.credential_provider.get_credential()

            image = self.image_source.fetch_image(self.config.image.url)

            if self.config.image.rect.is_set:
                image = self.cropper.crop_image(image, self.config.image.rect)

            result.image = image
            result.classifications = self.classifier.classify(image, credential)
        except CycleError as e:
            result.error = e
            self.error_handler.handle_error(f"detection_pipeline.{e.step}", e, ErrorSeverity.HIGH)
            return result

        for classification in result.classifications:
            logger.info(f"Result: {classification.label}, Confidence: {classification.confidence:f}")

        self._persist_image(result.image, event.timestamp)
        return result

    def _persist_image(self, image: bytes, captured_at: datetime) -> None:
        try:
            self.image_store.save_image(image, captured_at)
        except OSError as e:
            self.error_handler.handle_error("storage_service", e, ErrorSeverity.LOW)

    def process_event(self, event: CaptureEvent) -> DetectionCycleResult:
        """Run one full cycle: detection, decision, dispatch."""
        cycle_start = time.time()
        logger.debug(f"Starting {event.source.value} detection cycle")

        result = self.run_detection(event)
        self.cycle_count += 1
        self.last_cycle_time = self.clock()

        if not result.succeeded:
            self.error_count += 1
        else:
            for step in CYCLE_STEPS:
                self.error_handler.mark_healthy(f"detection_pipeline.{step}")
            result.decisions = self.decision_engine.evaluate(
                result.classifications, force_notify=event.force_notify, now=self.clock())
            self._dispatch(result.decisions, result.image)

        self.last_cycle_duration_ms = (time.time() - cycle_start) * 1000
        log_with_context(logger, logging.DEBUG, "Detection cycle finished", {
            "source": event.source.value,
            "results": len(result.classifications),
            "decisions": len(result.decisions),
            "duration_ms": f"{self.last_cycle_duration_ms:.0f}"
        })
        return result

    def _dispatch(self, decisions: List[NotificationDecision], image: bytes) -> None:
        for decision in decisions:
            logger.info(f"Notifying ({decision.reason.value}): {decision.label or '-'} "
                        f"{decision.confidence:.1%}")
            outcome = self.notification_service.dispatch(decision, image)
            if decision.reason == DecisionReason.DETECTED:
                self.detection_count += 1
                self.last_detection_time = self.clock()
            failed = [name for name, ok in outcome.items() if not ok]
            if failed:
                logger.warning(f"Notification channel(s) failed: {', '.join(failed)}")

    def get_status(self) -> Dict[str, Any]:
        """Get current pipeline status and statistics."""
        uptime = None
        if self.start_time:
            uptime = (self.clock() - self.start_time).total_seconds()

        muted_until = self.decision_engine.muted_until()
        return {
            "running": self.running,
            "awake": self.schedule.is_awake(),
            "uptime_seconds": uptime,
            "cycle_count": self.cycle_count,
            "error_count": self.error_count,
            "detection_count": self.detection_count,
            "last_cycle": self.last_cycle_time.isoformat() if self.last_cycle_time else None,
            "last_detection": self.last_detection_time.isoformat() if self.last_detection_time else None,
            "muted_until": muted_until.isoformat() if muted_until else None,
            "last_cycle_duration_ms": self.last_cycle_duration_ms,
            "motion_watcher_running": self.motion_watcher.is_running() if self.motion_watcher else False,
            "triggers": self.trigger_source.get_stats(),
            "notifications": self.notification_service.get_notification_stats(),
            "errors": self.error_handler.get_error_stats(),
            "recent_errors": self.error_handler.get_error_summary(hours=24)
        }
