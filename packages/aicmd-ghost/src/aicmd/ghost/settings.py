"""Settings manager: JSON file defaults, environment overrides, CLI overrides.

Precedence, lowest to highest:
    built-in defaults < settings.json < environment < CLI overrides
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".aicmd"
DEFAULT_LOG_FILE = "/tmp/aicmd.log"
DEFAULT_DIVERGENCE_MARKER = "  → "

_TRUTHY = {"1", "true", "yes", "on"}


def _settings_defaults() -> dict[str, Any]:
    """Default settings values."""
    return {
        "provider": "anthropic",
        "model": None,
        "timeout": 30.0,
        "pollInterval": 0.08,
        "cancelGrace": 0.2,
        "divergenceMarker": DEFAULT_DIVERGENCE_MARKER,
        "debug": False,
        "logFile": DEFAULT_LOG_FILE,
        "maxTokens": 256,
        "keybindings": {},
        "baseUrls": {},
    }


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base settings.

    Nested dicts merge key by key; anything else in *overrides* wins
    outright. ``None`` values in *overrides* are ignored.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


def env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Translate ``AICMD_*`` (and ``OLLAMA_HOST``) variables to settings keys."""
    overrides: dict[str, Any] = {}
    if env.get("AICMD_PROVIDER"):
        overrides["provider"] = env["AICMD_PROVIDER"]
    if env.get("AICMD_MODEL"):
        overrides["model"] = env["AICMD_MODEL"]
    if env.get("AICMD_KEY"):
        overrides["keybindings"] = {"suggest": env["AICMD_KEY"]}
    if env.get("AICMD_DEBUG"):
        overrides["debug"] = env["AICMD_DEBUG"].strip().lower() in _TRUTHY
    if env.get("AICMD_LOG"):
        overrides["logFile"] = env["AICMD_LOG"]
    if env.get("AICMD_TIMEOUT"):
        try:
            overrides["timeout"] = float(env["AICMD_TIMEOUT"])
        except ValueError:
            logger.warning("ignoring non-numeric AICMD_TIMEOUT=%r", env["AICMD_TIMEOUT"])
    if env.get("OLLAMA_HOST"):
        overrides["baseUrls"] = {"ollama": env["OLLAMA_HOST"]}
    return overrides


class SettingsManager:
    """Merged view over defaults, the settings file, and overrides.

    Use the factory methods (create, in_memory) instead of calling the
    constructor directly.
    """

    def __init__(
        self,
        *,
        settings_path: str | None,
        file_settings: dict[str, Any],
        env: Mapping[str, str] | None = None,
        load_error: Exception | None = None,
    ) -> None:
        self._settings_path = settings_path
        self._file_settings = dict(file_settings)
        self._load_error = load_error
        merged = deep_merge_settings(_settings_defaults(), self._file_settings)
        self._settings = deep_merge_settings(merged, env_overrides(env or {}))

    # --- Factory methods ---

    @classmethod
    def create(cls, config_dir: str | None = None, env: Mapping[str, str] | None = None) -> SettingsManager:
        """Load ``settings.json`` from the config directory and apply the environment."""
        environ = os.environ if env is None else env
        cdir = config_dir or environ.get("AICMD_CONFIG_DIR") or _default_config_dir()
        settings_path = os.path.join(cdir, "settings.json")

        settings, error = _load_from_file(settings_path)
        if error is not None:
            logger.warning("ignoring unreadable settings file %s: %s", settings_path, error)
        return cls(settings_path=settings_path, file_settings=settings, env=environ, load_error=error)

    @classmethod
    def in_memory(cls, settings: dict[str, Any] | None = None) -> SettingsManager:
        """Create a settings manager that touches neither disk nor environment."""
        return cls(settings_path=None, file_settings=settings or {})

    # --- Core operations ---

    def apply_overrides(self, overrides: dict[str, Any]) -> None:
        """Apply CLI-level overrides on top of merged settings."""
        self._settings = deep_merge_settings(self._settings, overrides)

    @property
    def settings(self) -> dict[str, Any]:
        """Current merged settings (read-only view)."""
        return self._settings

    @property
    def settings_path(self) -> str | None:
        return self._settings_path

    @property
    def load_error(self) -> Exception | None:
        return self._load_error

    # --- Getters: Backend ---

    def get_provider(self) -> str:
        return self._settings["provider"]

    def get_model(self) -> str | None:
        return self._settings.get("model")

    def get_base_url(self, provider: str | None = None) -> str | None:
        base_urls = self._settings.get("baseUrls") or {}
        return base_urls.get(provider or self.get_provider())

    def get_timeout(self) -> float:
        return float(self._settings["timeout"])

    def get_max_tokens(self) -> int:
        return int(self._settings["maxTokens"])

    # --- Getters: Session ---

    def get_poll_interval(self) -> float:
        return float(self._settings["pollInterval"])

    def get_cancel_grace(self) -> float:
        return float(self._settings["cancelGrace"])

    # --- Getters: Display ---

    def get_divergence_marker(self) -> str:
        return self._settings["divergenceMarker"]

    def get_keybindings(self) -> dict[str, str | list[str]]:
        return dict(self._settings.get("keybindings") or {})

    # --- Getters: Logging ---

    def get_debug(self) -> bool:
        return bool(self._settings.get("debug"))

    def get_log_file(self) -> str:
        return self._settings.get("logFile") or DEFAULT_LOG_FILE


# --- File I/O helpers ---


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        settings = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return {}, e
    if not isinstance(settings, dict):
        return {}, ValueError("settings file must contain a JSON object")
    return settings, None


def _default_config_dir() -> str:
    """Default config directory (~/.aicmd)."""
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
