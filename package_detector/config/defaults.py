"""Default configuration values and constants."""

from typing import Dict, Any

# Default values for every section of pd.yaml
DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "run": {
        "interval": 0,
        "sleephour": 0,
        "wakehour": 0,
        "notifyonstart": False,
        "notifymuteminutes": 0
    },
    "motion": {
        "logpath": "",
        "cameraid": ""
    },
    "image": {
        "url": "",
        "cachefile": "./img.jpg",
        "archivepath": "",
        "rect": {"x1": 0, "y1": 0, "x2": 0, "y2": 0},
        "timeout": 10.0
    },
    "vision": {
        "authfile": "",
        "url": "",
        "packagelabel": "package",
        "threshold": 75,
        "timeout": 30.0
    },
    "email": {
        "from": "",
        "to": [],
        "server": "",
        "port": 587,
        "user": "",
        "pass": ""
    },
    "push": {
        "key": "",
        "topic": "",
        "bucket": "",
        "folder": "",
        "collection": ""
    },
    "webhook": {
        "url": "",
        "timeout": 10.0
    }
}

# YAML key -> dataclass field name, per section
CONFIG_KEY_MAP: Dict[str, Dict[str, str]] = {
    "run": {
        "interval": "interval",
        "sleephour": "sleep_hour",
        "wakehour": "wake_hour",
        "notifyonstart": "notify_on_start",
        "notifymuteminutes": "notify_mute_minutes"
    },
    "motion": {
        "logpath": "log_path",
        "cameraid": "camera_id"
    },
    "image": {
        "url": "url",
        "cachefile": "cache_file",
        "archivepath": "archive_path",
        "rect": "rect",
        "timeout": "timeout_seconds"
    },
    "vision": {
        "authfile": "auth_file",
        "url": "url",
        "packagelabel": "package_label",
        "threshold": "threshold",
        "timeout": "timeout_seconds"
    },
    "email": {
        "from": "from_address",
        "to": "to",
        "server": "server",
        "port": "port",
        "user": "user",
        "pass": "password"
    },
    "push": {
        "key": "key",
        "topic": "topic",
        "bucket": "bucket",
        "folder": "folder",
        "collection": "collection"
    },
    "webhook": {
        "url": "url",
        "timeout": "timeout_seconds"
    }
}

SYSTEM_CONSTANTS = {
    "MOTION_POLL_INTERVAL_SECONDS": 1.0,
    "WORKER_JOIN_TIMEOUT_SECONDS": 5.0,
    "LOG_ROTATION_SIZE_MB": 10,
    "LOG_BACKUP_COUNT": 5
}

DEFAULT_PATHS = {
    "config_file": "./pd.yaml"
}

FIREBASE_APP_NAME = "package-detector"

NOTIFICATION_MESSAGES = {
    "detected": {
        "email_subject": "Package Received!",
        "push_title": "Package Received",
        "body": "A new package delivery was detected."
    },
    "forced_startup": {
        "email_subject": "Package Monitor Restarted.",
        "push_title": "Package Monitor Restarted",
        "body": "The Package Monitor server has restarted successfully."
    }
}
