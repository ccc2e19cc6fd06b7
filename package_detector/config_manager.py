"""Configuration loading and validation for pd.yaml."""

import copy
import os
from typing import Any, Dict, List, Optional

import yaml

from .config.defaults import CONFIG_KEY_MAP, DEFAULT_CONFIG, DEFAULT_PATHS
from .logging_config import get_logger
from .models.config import (
    AppConfig,
    EmailConfig,
    ImageConfig,
    MotionConfig,
    PushConfig,
    Rect,
    RunConfig,
    VisionConfig,
    WebhookConfig
)
from .services.error_handler import ConfigurationError

logger = get_logger("config_manager")

_SECTION_TYPES = {
    "run": RunConfig,
    "motion": MotionConfig,
    "image": ImageConfig,
    "vision": VisionConfig,
    "email": EmailConfig,
    "push": PushConfig,
    "webhook": WebhookConfig
}

_RECT_KEYS = ("x1", "y1", "x2", "y2")


class ConfigManager:
    """Loads pd.yaml into typed configuration and validates it.

    Unknown keys are rejected so that typos surface at startup instead of
    silently falling back to defaults.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_PATHS["config_file"]
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Read, parse and validate the configuration file."""
        try:
            with open(self.config_path, 'r') as f:
                raw = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Unable to load configuration file {self.config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Unable to parse configuration file {self.config_path}: {e}") from e

        self._config = self.config_from_dict(raw or {})
        logger.info(f"Loaded configuration from {self.config_path}")
        return self._config

    def get_config(self) -> AppConfig:
        """Get current configuration, loading it on first use."""
        if self._config is None:
            return self.load_config()
        return self._config

    @classmethod
    def config_from_dict(cls, raw: Dict[str, Any]) -> AppConfig:
        """Build and validate an AppConfig from a parsed YAML mapping."""
        if not isinstance(raw, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        unknown_sections = set(raw) - set(DEFAULT_CONFIG)
        if unknown_sections:
            raise ConfigurationError(f"Unknown configuration section(s): {', '.join(sorted(unknown_sections))}")

        sections = {}
        for section_name, section_type in _SECTION_TYPES.items():
            values = cls._merge_section(section_name, raw.get(section_name))
            sections[section_name] = section_type(**values)

        config = AppConfig(**sections)
        cls.validate_config(config)

        unused = config.push.history_keys()
        if unused:
            logger.warning(f"push.{', push.'.join(unused)} set but unused; detection history is not stored")
        return config

    @staticmethod
    def _merge_section(section_name: str, section: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = copy.deepcopy(DEFAULT_CONFIG[section_name])
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping")

        unknown = set(section) - set(merged)
        if unknown:
            raise ConfigurationError(
                f"Unknown key(s) in '{section_name}': {', '.join(sorted(unknown))}")
        merged.update({k: v for k, v in section.items() if v is not None})

        if section_name == "image":
            merged["rect"] = _parse_rect(merged["rect"])
        if section_name == "email":
            merged["to"] = _parse_recipients(merged["to"])

        key_map = CONFIG_KEY_MAP[section_name]
        return {key_map[key]: value for key, value in merged.items()}

    @staticmethod
    def validate_config(config: AppConfig) -> None:
        """Raise ConfigurationError describing every problem found."""
        problems: List[str] = []

        run = config.run
        for name in ("sleep_hour", "wake_hour"):
            value = getattr(run, name)
            if not isinstance(value, int) or not 0 <= value <= 23:
                problems.append(f"run.{name.replace('_', '')} must be an hour between 0 and 23")
        if not isinstance(run.interval, int) or run.interval < 0:
            problems.append("run.interval must be a non-negative number of minutes")
        if not isinstance(run.notify_mute_minutes, int) or run.notify_mute_minutes < 0:
            problems.append("run.notifymuteminutes must be a non-negative number of minutes")

        if config.motion.log_path and not config.motion.camera_id:
            problems.append("motion.cameraid must be set if motion.logpath is present")

        if not config.image.url:
            problems.append("image.url must be set to a URL that returns an image")
        if not config.image.cache_file:
            problems.append("image.cachefile must not be empty")
        if config.image.archive_path and not os.path.isdir(config.image.archive_path):
            problems.append(f"image.archivepath {config.image.archive_path} is not a directory")
        rect = config.image.rect
        if rect.is_set and (rect.x2 <= rect.x1 or rect.y2 <= rect.y1 or rect.x1 < 0 or rect.y1 < 0):
            problems.append("image.rect must describe a non-empty rectangle from x1,y1 to x2,y2")

        if not config.vision.auth_file or not config.vision.url:
            problems.append("vision.authfile and vision.url must be set")
        if not isinstance(config.vision.threshold, (int, float)) or not 0 <= config.vision.threshold <= 100:
            problems.append("vision.threshold must be a percentage between 0 and 100")

        if config.email.enabled:
            if not config.email.to:
                problems.append("email.to must list at least one recipient when email.server is set")
            if not config.email.from_address:
                problems.append("email.from must be set when email.server is set")

        if config.push.enabled:
            if not config.push.topic:
                problems.append("push.topic must be set if push.key is provided")
            if not os.path.isfile(config.push.key):
                problems.append(f"push.key {config.push.key} must be a Firebase service account file")

        if problems:
            raise ConfigurationError("Invalid configuration: " + "; ".join(problems))

    def export_config(self) -> Dict[str, Any]:
        """Export the current configuration as a pd.yaml-shaped mapping."""
        config = self.get_config()
        exported: Dict[str, Any] = {}
        for section_name, key_map in CONFIG_KEY_MAP.items():
            section = getattr(config, section_name)
            exported[section_name] = {}
            for yaml_key, field_name in key_map.items():
                value = getattr(section, field_name)
                if isinstance(value, Rect):
                    value = {k: getattr(value, k) for k in _RECT_KEYS}
                exported[section_name][yaml_key] = value
        return exported


def _parse_rect(value: Any) -> Rect:
    if isinstance(value, Rect):
        return value
    if not isinstance(value, dict):
        raise ConfigurationError("image.rect must be a mapping of x1, y1, x2, y2")
    unknown = set(value) - set(_RECT_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown key(s) in 'image.rect': {', '.join(sorted(unknown))}")
    try:
        return Rect(**{k: int(value.get(k) or 0) for k in _RECT_KEYS})
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"image.rect coordinates must be integers: {e}") from e


def _parse_recipients(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v]
    raise ConfigurationError("email.to must be an address or a list of addresses")
