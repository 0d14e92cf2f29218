# src/story_launcher/settings.py

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs
import yaml

from story_launcher.constants import (
    APP_NAME,
    APPS_DIR_NAME,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    GITHUB_TOKEN_ENV_VAR,
    INSTALLED_RECORD_FILE_NAME,
    SETTING_ALLOW_ENV_TOKEN,
    SETTING_AUTO_UPDATE,
    SETTING_CONNECT_TIMEOUT,
    SETTING_GITHUB_TOKEN,
    SETTING_LOG_LEVEL,
    SETTING_READ_TIMEOUT,
    SETTING_TOOLS_DIR,
    SETTINGS_FILE_NAME,
    TOOLS_DIR_ENV_VAR,
    TOOLS_DIR_NAME,
)
from story_launcher.log_utils import logger
from story_launcher.tools import ToolDescriptor


def get_settings_dir() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME))


def get_settings_file() -> Path:
    return get_settings_dir() / SETTINGS_FILE_NAME


def get_log_dir() -> Path:
    return Path(platformdirs.user_log_dir(APP_NAME))


def default_tools_dir() -> Path:
    """
    Return the per-user root holding the installed record and the apps directory.

    STORY_LAUNCHER_TOOLS_DIR takes precedence over the home-directory default.
    """
    override = os.environ.get(TOOLS_DIR_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / TOOLS_DIR_NAME


@dataclass(frozen=True)
class LauncherPaths:
    """Filesystem layout under the per-user tools directory."""

    tools_dir: Path

    @property
    def apps_dir(self) -> Path:
        return self.tools_dir / APPS_DIR_NAME

    @property
    def config_path(self) -> Path:
        return self.tools_dir / INSTALLED_RECORD_FILE_NAME

    def app_path(self, tool: ToolDescriptor) -> Path:
        return self.apps_dir / tool.installed_app_name

    def ensure_dirs(self) -> None:
        """Create the apps directory (and the tools root). Raises OSError."""
        self.apps_dir.mkdir(parents=True, exist_ok=True)


@dataclass
class Settings:
    """User settings loaded from settings.yaml."""

    tools_dir: Path = field(default_factory=default_tools_dir)
    github_token: Optional[str] = None
    allow_env_token: bool = True
    auto_update_on_launch: bool = False
    log_level: str = "INFO"
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT

    @property
    def paths(self) -> LauncherPaths:
        return LauncherPaths(self.tools_dir)

    @property
    def timeout(self) -> tuple:
        """Timeout tuple in the form requests expects: (connect, read)."""
        return (self.connect_timeout, self.read_timeout)

    def effective_github_token(self) -> Optional[str]:
        """
        Return the token to authenticate registry requests with, if any.

        An explicit GITHUB_TOKEN setting wins; the GITHUB_TOKEN environment
        variable is only consulted when ALLOW_ENV_TOKEN is true.
        """
        token = (self.github_token or "").strip()
        if token:
            return token
        if self.allow_env_token:
            env_token = os.environ.get(GITHUB_TOKEN_ENV_VAR, "").strip()
            if env_token:
                return env_token
        return None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "Settings":
        """
        Build settings from a parsed YAML mapping, ignoring invalid values.

        Keys follow the uppercase convention of the settings file
        (e.g. TOOLS_DIR, READ_TIMEOUT). Unknown keys are ignored.
        """
        settings = cls()

        tools_dir = data.get(SETTING_TOOLS_DIR)
        if isinstance(tools_dir, str) and tools_dir.strip():
            if not os.environ.get(TOOLS_DIR_ENV_VAR):
                settings.tools_dir = Path(tools_dir).expanduser()

        token = data.get(SETTING_GITHUB_TOKEN)
        if isinstance(token, str):
            settings.github_token = token

        for key, attr in (
            (SETTING_ALLOW_ENV_TOKEN, "allow_env_token"),
            (SETTING_AUTO_UPDATE, "auto_update_on_launch"),
        ):
            value = data.get(key)
            if isinstance(value, bool):
                setattr(settings, attr, value)
            elif value is not None:
                logger.warning(f"Ignoring non-boolean value for {key}: {value!r}")

        log_level = data.get(SETTING_LOG_LEVEL)
        if isinstance(log_level, str) and log_level.strip():
            settings.log_level = log_level.strip().upper()

        for key, attr in (
            (SETTING_CONNECT_TIMEOUT, "connect_timeout"),
            (SETTING_READ_TIMEOUT, "read_timeout"),
        ):
            value = data.get(key)
            if value is None:
                continue
            try:
                seconds = float(value)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring invalid value for {key}: {value!r}")
                continue
            if seconds <= 0:
                logger.warning(f"Ignoring non-positive value for {key}: {value!r}")
                continue
            setattr(settings, attr, seconds)

        return settings


def load_settings(settings_file: Optional[Path] = None) -> Settings:
    """
    Load settings.yaml, falling back to defaults.

    A missing file is normal (first run). An unreadable or malformed file is
    logged and treated as empty so the launcher keeps working.

    Parameters:
        settings_file (Optional[Path]): Explicit file to read; defaults to the
            platformdirs-managed location.

    Returns:
        Settings: The effective settings.
    """
    path = settings_file or get_settings_file()
    if not path.exists():
        logger.debug(f"No settings file at {path}; using defaults")
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read settings from {path}: {e}. Using defaults.")
        return Settings()

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        logger.warning(f"Settings file {path} is not a mapping. Using defaults.")
        return Settings()

    return Settings.from_mapping(data)


def save_settings(settings: Settings, settings_file: Optional[Path] = None) -> Path:
    """
    Write settings to settings.yaml. Raises OSError when the file cannot be written.
    """
    path = settings_file or get_settings_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {
        SETTING_TOOLS_DIR: str(settings.tools_dir),
        SETTING_ALLOW_ENV_TOKEN: settings.allow_env_token,
        SETTING_AUTO_UPDATE: settings.auto_update_on_launch,
        SETTING_LOG_LEVEL: settings.log_level,
        SETTING_CONNECT_TIMEOUT: settings.connect_timeout,
        SETTING_READ_TIMEOUT: settings.read_timeout,
    }
    if settings.github_token:
        data[SETTING_GITHUB_TOKEN] = settings.github_token
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return path
