"""
Constants and configuration values for Story Launcher.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# GitHub API URLs
GITHUB_API_BASE = "https://api.github.com/repos"
LATEST_RELEASE_URL_TEMPLATE = "{base}/{repo}/releases/latest"
GITHUB_API_VERSION = "2022-11-28"

# Network timeouts (in seconds)
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 30
DEFAULT_CHUNK_SIZE = 8192

# Client identification
APP_NAME = "story-launcher"
USER_AGENT_PREFIX = "story-launcher"

# Per-user directory layout
TOOLS_DIR_NAME = ".story-tools"
APPS_DIR_NAME = "apps"
INSTALLED_RECORD_FILE_NAME = "config.json"
SETTINGS_FILE_NAME = "settings.yaml"
LOG_FILE_NAME = "story-launcher.log"

# Asset suffixes in order of preference
APP_TAR_GZ_SUFFIX = ".app.tar.gz"
APP_ZIP_SUFFIX = ".app.zip"
DMG_SUFFIX = ".dmg"
ASSET_SUFFIX_PREFERENCE = (APP_TAR_GZ_SUFFIX, APP_ZIP_SUFFIX, DMG_SUFFIX)

# Archive format names (used in errors and logs)
FORMAT_TAR_GZ = "tar.gz"
FORMAT_ZIP = "zip"
FORMAT_DMG = "dmg"

# External utilities
HDIUTIL = "hdiutil"
XATTR = "xattr"
COPY_COMMAND = "cp"
VOLUMES_PREFIX = "/Volumes/"

# Result messages surfaced to the GUI shell
MSG_UNKNOWN_TOOL = "Unknown tool"
MSG_APP_NOT_INSTALLED = "App not installed"
MSG_LAUNCHED = "Launched app"
MSG_INSTALLED_VERSION = "Installed version {version}"

# Settings keys
SETTING_TOOLS_DIR = "TOOLS_DIR"
SETTING_GITHUB_TOKEN = "GITHUB_TOKEN"
SETTING_ALLOW_ENV_TOKEN = "ALLOW_ENV_TOKEN"
SETTING_AUTO_UPDATE = "AUTO_UPDATE_ON_LAUNCH"
SETTING_LOG_LEVEL = "LOG_LEVEL"
SETTING_CONNECT_TIMEOUT = "CONNECT_TIMEOUT"
SETTING_READ_TIMEOUT = "READ_TIMEOUT"

# Environment variable names
LOG_LEVEL_ENV_VAR = "STORY_LAUNCHER_LOG_LEVEL"
DISABLE_FILE_LOGGING_ENV_VAR = "STORY_LAUNCHER_DISABLE_FILE_LOGGING"
TOOLS_DIR_ENV_VAR = "STORY_LAUNCHER_TOOLS_DIR"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"

# Logging configuration
LOGGER_NAME = "story_launcher"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
