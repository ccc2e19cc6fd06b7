"""Notification dispatch over email, push and webhook channels."""

import base64
import smtplib
import threading
from dataclasses import dataclass
from datetime import datetime
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, Sequence

import firebase_admin
import requests
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from .interfaces import NotificationChannelInterface
from .error_handler import DispatchError, ErrorSeverity, ErrorHandler, global_error_handler
from ..config.defaults import FIREBASE_APP_NAME, NOTIFICATION_MESSAGES
from ..models.config import EmailConfig, PushConfig, WebhookConfig
from ..models.detection import DecisionReason, NotificationDecision
from ..logging_config import get_logger

logger = get_logger("notification_service")


@dataclass
class NotificationMessage:
    """Human readable content for a decision."""
    subject: str
    title: str
    body: str
    label: str = ""
    score: float = 0.0
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()

    @classmethod
    def from_decision(cls, decision: NotificationDecision) -> "NotificationMessage":
        key = "forced_startup" if decision.reason == DecisionReason.FORCED_STARTUP else "detected"
        text = NOTIFICATION_MESSAGES[key]
        return cls(
            subject=text["email_subject"],
            title=text["push_title"],
            body=text["body"],
            label=decision.label,
            score=decision.confidence
        )


class EmailChannel(NotificationChannelInterface):
    """Sends an HTML email with the classified image embedded."""

    name = "email"

    def __init__(self, config: EmailConfig, smtp_factory=smtplib.SMTP, timeout: float = 30.0):
        self.config = config
        self.smtp_factory = smtp_factory
        self.timeout = timeout

    def is_enabled(self) -> bool:
        return self.config.enabled

    def build_message(self, message: NotificationMessage, image: bytes) -> MIMEMultipart:
        msg = MIMEMultipart("related")
        msg['From'] = self.config.from_address
        msg['To'] = ", ".join(self.config.to)
        msg['Subject'] = message.subject

        html = f"<p>{message.body}</p>"
        if image:
            html += '<p><img src="cid:snapshot"></p>'
        msg.attach(MIMEText(html, 'html'))

        if image:
            attachment = MIMEImage(image, _subtype="jpeg")
            attachment.add_header('Content-ID', '<snapshot>')
            attachment.add_header('Content-Disposition', 'inline', filename="snapshot.jpeg")
            msg.attach(attachment)

        return msg

    def send(self, decision: NotificationDecision, image: bytes) -> None:
        message = NotificationMessage.from_decision(decision)
        msg = self.build_message(message, image)

        try:
            server = self.smtp_factory(self.config.server, self.config.port, timeout=self.timeout)
            try:
                server.starttls()
                if self.config.user:
                    server.login(self.config.user, self.config.password)
                server.sendmail(self.config.from_address, self.config.to, msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as e:
            raise DispatchError(self.name, f"Email notification error: {e}") from e

        logger.info(f"Email notification sent to {len(self.config.to)} recipient(s)")


class PushChannel(NotificationChannelInterface):
    """Publishes a Firebase Cloud Messaging notification to a topic.

    ``push.key`` is the path of a Firebase service account file. The
    Firebase app is initialized on first use and shared afterwards.
    """

    name = "push"

    def __init__(self, config: PushConfig, app_name: str = FIREBASE_APP_NAME):
        self.config = config
        self.app_name = app_name
        self._app = None
        self._app_lock = threading.Lock()

    def is_enabled(self) -> bool:
        return self.config.enabled

    def _get_app(self):
        with self._app_lock:
            if self._app is None:
                try:
                    self._app = firebase_admin.get_app(self.app_name)
                except ValueError:
                    logger.info("Initializing Firebase Cloud Messaging")
                    credential = credentials.Certificate(self.config.key)
                    self._app = firebase_admin.initialize_app(credential, name=self.app_name)
            return self._app

    def build_message(self, message: NotificationMessage) -> messaging.Message:
        return messaging.Message(
            topic=self.config.topic,
            notification=messaging.Notification(title=message.title, body=message.body),
            data={
                'label': message.label,
                'score': f"{message.score:.4f}",
                'timestamp': message.timestamp.isoformat()
            },
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(aps=messaging.Aps(sound='default'))
            )
        )

    def send(self, decision: NotificationDecision, image: bytes) -> None:
        message = NotificationMessage.from_decision(decision)

        try:
            app = self._get_app()
            message_id = messaging.send(self.build_message(message), app=app)
        except FirebaseError as e:
            raise DispatchError(self.name, f"Error sending push notification: {e}") from e
        except (ValueError, OSError) as e:
            raise DispatchError(self.name, f"Unable to initialize Firebase from {self.config.key}: {e}") from e

        logger.info(f"Sent push notification {message_id}")


class WebhookChannel(NotificationChannelInterface):
    """POSTs the detection as JSON, image included as base64."""

    name = "webhook"

    def __init__(self, config: WebhookConfig, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()

    def is_enabled(self) -> bool:
        return self.config.enabled

    @staticmethod
    def build_body(decision: NotificationDecision, image: bytes) -> Dict[str, Any]:
        return {
            'score': decision.confidence,
            'label': decision.label,
            'image': base64.b64encode(image).decode('ascii')
        }

    def send(self, decision: NotificationDecision, image: bytes) -> None:
        try:
            response = self.session.post(
                self.config.url,
                json=self.build_body(decision, image),
                timeout=self.config.timeout_seconds
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise DispatchError(self.name, f"Error posting webhook: {e}") from e

        logger.info(f"POSTed webhook, status: {response.status_code}")


class NotificationService:
    """Fans decisions out to every enabled channel.

    Channels are independent: a failing channel is logged and recorded but
    never prevents the remaining channels from being attempted.
    """

    def __init__(self, channels: Sequence[NotificationChannelInterface],
                 error_handler: Optional[ErrorHandler] = None):
        self.channels = list(channels)
        self.error_handler = error_handler or global_error_handler
        self.sent_counts: Dict[str, int] = {channel.name: 0 for channel in self.channels}
        self.failure_counts: Dict[str, int] = {channel.name: 0 for channel in self.channels}
        self.last_notification_time: Optional[datetime] = None
        self._lock = threading.Lock()

        self.error_handler.register_component("notification_service")

    @classmethod
    def from_config(cls, email: EmailConfig, push: PushConfig, webhook: WebhookConfig,
                    error_handler: Optional[ErrorHandler] = None) -> "NotificationService":
        channels = [EmailChannel(email), PushChannel(push), WebhookChannel(webhook)]
        return cls(channels, error_handler)

    def enabled_channels(self) -> List[NotificationChannelInterface]:
        return [channel for channel in self.channels if channel.is_enabled()]

    def dispatch(self, decision: NotificationDecision, image: bytes) -> Dict[str, bool]:
        """Send one decision to every enabled channel; returns success per channel."""
        results: Dict[str, bool] = {}
        if not decision.should_notify:
            return results

        channels = self.enabled_channels()
        if not channels:
            logger.warning(f"No notification channels configured; dropping {decision.reason.value} notification")
            return results

        for channel in channels:
            try:
                channel.send(decision, image)
                results[channel.name] = True
            except Exception as e:
                self.error_handler.handle_error(f"notification_service.{channel.name}", e, ErrorSeverity.MEDIUM)
                results[channel.name] = False

        with self._lock:
            for name, success in results.items():
                if success:
                    self.sent_counts[name] = self.sent_counts.get(name, 0) + 1
                else:
                    self.failure_counts[name] = self.failure_counts.get(name, 0) + 1
            self.last_notification_time = datetime.now()

        return results

    def send_test_notifications(self) -> Dict[str, bool]:
        """Send a restart-style notification to verify channel configuration."""
        test_decision = NotificationDecision(
            should_notify=True,
            reason=DecisionReason.FORCED_STARTUP
        )
        return self.dispatch(test_decision, b"")

    def get_notification_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "channels": {
                    channel.name: {
                        "enabled": channel.is_enabled(),
                        "sent": self.sent_counts.get(channel.name, 0),
                        "failed": self.failure_counts.get(channel.name, 0)
                    }
                    for channel in self.channels
                },
                "last_notification": self.last_notification_time.isoformat()
                if self.last_notification_time else None
            }
