from __future__ import annotations

import dataclasses
import logging
import os
import re
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Pattern

import yaml

from .errors import SettingsError

logger = logging.getLogger(__name__)


ENV_PREFIX = "PUBSUB_"
SETTINGS_FILE_ENV = "PUBSUB_SETTINGS_FILE"

_PATTERN_FIELDS = (
    "authorization_pattern",
    "control_pattern",
    "async_pattern",
    "remote_observer_pattern",
)


@dataclass
class BridgeSettings:
    """Runtime settings for the dispatcher, the remote bridge and the inbound router.

    Settings are built from three layers, later layers winning:
    - the packaged ``default_settings.yaml``
    - an optional user YAML file (explicit path or env PUBSUB_SETTINGS_FILE)
    - environment variables prefixed with PUBSUB_ (e.g. PUBSUB_INBOUND_EVENT)

    The ``*_pattern`` fields are regular expressions matched case-insensitively.
    """

    default_events: List[str] = field(default_factory=lambda: ["default"])
    inbound_event: str = "postMessage"
    namespace_key: str = "postMessage"
    authorization_pattern: str = "authorization_response"
    control_pattern: str = "pubsub"
    async_pattern: str = "async"
    remote_observer_pattern: str = "^http"
    opener_target_origin: str = "*"
    log_level: str = "INFO"

    _compiled: Dict[str, Pattern[str]] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.validate()

    # ------------------------ Core API ------------------------
    def validate(self) -> None:
        """Normalize values and compile patterns, resetting invalid ones to defaults."""
        if isinstance(self.default_events, str):
            self.default_events = [self.default_events]
        self.default_events = [str(name) for name in (self.default_events or []) if name]
        if not self.inbound_event:
            logger.warning("Empty inbound_event; resetting to 'postMessage'")
            self.inbound_event = "postMessage"
        if not self.namespace_key:
            self.namespace_key = "postMessage"
        self._compiled = {}
        defaults = BridgeSettings.__dataclass_fields__
        for name in _PATTERN_FIELDS:
            raw = getattr(self, name)
            try:
                self._compiled[name] = re.compile(str(raw), re.IGNORECASE)
            except re.error as exc:
                fallback = defaults[name].default
                logger.warning("Invalid %s %r (%s); resetting to %r", name, raw, exc, fallback)
                setattr(self, name, fallback)
                self._compiled[name] = re.compile(fallback, re.IGNORECASE)

    def pattern(self, name: str) -> Pattern[str]:
        return self._compiled[name]

    def is_authorization_type(self, value: Any) -> bool:
        return isinstance(value, str) and bool(self._compiled["authorization_pattern"].search(value))

    def is_control_path(self, path: str) -> bool:
        return bool(self._compiled["control_pattern"].search(path))

    def is_async_path(self, path: str) -> bool:
        return bool(self._compiled["async_pattern"].search(path))

    def is_remote_observer(self, observer: Any) -> bool:
        return isinstance(observer, str) and bool(self._compiled["remote_observer_pattern"].search(observer))

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in dataclasses.fields(self) if f.init}

    # ------------------------ Loading & Overrides ------------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BridgeSettings":
        allowed = {f.name for f in dataclasses.fields(cls) if f.init}
        unknown = sorted(set(data) - allowed)
        if unknown:
            logger.warning("Ignoring unknown settings keys: %s", ", ".join(unknown))
        filtered = {k: v for k, v in data.items() if k in allowed}
        return cls(**filtered)

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise SettingsError(f"Malformed settings file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {path} must contain a mapping")
        return data

    @staticmethod
    def _load_defaults() -> Dict[str, Any]:
        try:
            with resources.files("pubsub_bridge.config").joinpath("default_settings.yaml").open(
                "r", encoding="utf-8"
            ) as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default settings not found; falling back to dataclass defaults.")
            return BridgeSettings().as_dict()

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """Collect PUBSUB_* overrides. DEFAULT_EVENTS is a comma separated list."""
        env = os.environ if env is None else env
        overrides: Dict[str, Any] = {}
        for f in dataclasses.fields(BridgeSettings):
            if not f.init:
                continue
            key = ENV_PREFIX + f.name.upper()
            if key not in env:
                continue
            value: Any = env[key]
            if f.name == "default_events":
                value = [part.strip() for part in value.split(",") if part.strip()]
            overrides[f.name] = value
        return overrides

    @classmethod
    def load(
        cls,
        user_path: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "BridgeSettings":
        """Load settings from built-in defaults, an optional user file and the environment."""
        env = os.environ if env is None else env
        data = cls._load_defaults()

        if user_path is None and env.get(SETTINGS_FILE_ENV):
            user_path = Path(env[SETTINGS_FILE_ENV])
        if user_path is not None:
            if user_path.exists():
                data = {**data, **cls._load_yaml(user_path)}
                logger.info("Loaded settings overrides from %s", user_path)
            else:
                logger.warning("Settings file %s not found; using defaults", user_path)

        data = {**data, **cls.from_env(env)}
        return cls.from_dict(data)
