"""
Registry of the tools Story Launcher knows how to install.

The set of tools is closed: adding one means adding a ToolId member and a
TOOL_REGISTRY entry, nothing else.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Union

from story_launcher.exceptions import UnknownToolError


class ToolId(str, Enum):
    """Identifiers of the supported tools."""

    RESOLVE_SYNC = "resolve-sync"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ToolDescriptor:
    """Static description of an installable tool."""

    tool_id: ToolId
    """The tool identifier"""

    source_repository: str
    """GitHub repository publishing the tool (owner/name)"""

    installed_app_name: str
    """Name of the application bundle inside the apps directory"""

    display_name: str
    """Human-readable name shown by the shell"""


TOOL_REGISTRY: Dict[ToolId, ToolDescriptor] = {
    ToolId.RESOLVE_SYNC: ToolDescriptor(
        tool_id=ToolId.RESOLVE_SYNC,
        source_repository="joyrider00/spellbook-resolve-sync",
        installed_app_name="Spellbook Resolve Sync.app",
        display_name="Resolve Sync Script",
    ),
}


def get_tool(tool_id: Union[str, ToolId]) -> ToolDescriptor:
    """
    Look up the descriptor for a tool identifier.

    Raises:
        UnknownToolError: If `tool_id` is not a registered tool.
    """
    try:
        return TOOL_REGISTRY[ToolId(tool_id)]
    except (ValueError, KeyError):
        raise UnknownToolError(str(tool_id)) from None


def known_tool_ids() -> List[str]:
    return [tool.value for tool in TOOL_REGISTRY]
