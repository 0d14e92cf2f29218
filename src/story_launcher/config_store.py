"""
Installed-version record.

The record is a small JSON document, ``{"tools": {tool_id: version}}``, kept
in the per-user tools directory. It is the durable answer to "what version is
installed". Reads never fail: a missing or corrupt file means nothing is
installed. Writes overwrite the whole file and are not atomic.
"""

import json
from pathlib import Path
from typing import Dict

from story_launcher.exceptions import ConfigSaveError
from story_launcher.log_utils import logger

InstalledRecord = Dict[str, str]


class ConfigStore:
    """Load and save the installed-version record at `path`."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> InstalledRecord:
        """
        Read the installed record.

        Returns:
            InstalledRecord: Mapping of tool id to version; empty when the file
                is absent, unreadable or not shaped like ``{"tools": {...}}``.
                Entries whose version is not a string are dropped.
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                f"Could not read installed record {self.path}: {e}. Treating as empty."
            )
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Installed record {self.path} is not an object; ignoring")
            return {}

        tools = data.get("tools", {})
        if not isinstance(tools, dict):
            logger.warning(f"Installed record {self.path} has invalid 'tools'; ignoring")
            return {}

        record: InstalledRecord = {}
        for tool_id, version in tools.items():
            if isinstance(version, str):
                record[str(tool_id)] = version
            else:
                logger.debug(f"Dropping non-string version for {tool_id}: {version!r}")
        return record

    def save(self, record: InstalledRecord) -> None:
        """
        Overwrite the record file with `record`, pretty printed.

        Raises:
            ConfigSaveError: If the directory or file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            content = json.dumps({"tools": dict(record)}, indent=2)
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ConfigSaveError(
                "Failed to save config", path=str(self.path), details=str(e)
            ) from e
        logger.debug(f"Saved installed record to {self.path}")

    def set_version(self, tool_id: str, version: str) -> InstalledRecord:
        """Record `version` for `tool_id`, keeping other entries. Raises ConfigSaveError."""
        record = self.load()
        record[str(tool_id)] = version
        self.save(record)
        return record
