"""
Core data structures for the install subsystem.

Release and Asset mirror what the release registry publishes; ToolStatus,
ActionResult and UpdateSummary are what the command layer hands back to the
GUI shell.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Asset:
    """Represents a downloadable asset from a release."""

    name: str
    """The filename of the asset"""

    download_url: str
    """Direct URL to download the asset"""

    size: Optional[int] = None
    """File size in bytes, when the registry reports it"""


@dataclass
class Release:
    """Represents a published release of a tool."""

    tag_name: str
    """The release tag (e.g., 'v2.3.0')"""

    assets: List[Asset] = field(default_factory=list)
    """Downloadable assets, in registry order"""

    name: Optional[str] = None
    """Release title"""

    published_at: Optional[str] = None
    """ISO 8601 timestamp when the release was published"""

    prerelease: bool = False
    """Whether the registry marks this release as a prerelease"""

    @property
    def version(self) -> str:
        """The tag with any leading 'v' removed."""
        return normalize_version(self.tag_name)


@dataclass
class ToolStatus:
    """Installation status of a tool compared to its latest release."""

    installed: bool = False
    installed_version: Optional[str] = None
    latest_version: Optional[str] = None
    has_update: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ActionResult:
    """Outcome of install, update and launch commands."""

    success: bool
    message: str
    version: Optional[str] = None
    """The installed version after a successful install or update"""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UpdateSummary:
    """Result of checking every registered tool for updates."""

    statuses: Dict[str, ToolStatus] = field(default_factory=dict)
    updated: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def has_updates(self) -> bool:
        """Whether any tool still has an update that was not applied."""
        return any(
            status.has_update and tool_id not in self.updated
            for tool_id, status in self.statuses.items()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statuses": {k: v.to_dict() for k, v in self.statuses.items()},
            "updated": list(self.updated),
            "failed": dict(self.failed),
            "has_updates": self.has_updates,
        }


def normalize_version(tag_name: str) -> str:
    """Strip every leading 'v' from a release tag ('v2.3.0' -> '2.3.0')."""
    return tag_name.lstrip("v")
