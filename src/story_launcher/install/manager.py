"""
Install Manager

Coordinates release resolution, asset selection, download, extraction and
installed-version bookkeeping for the registered tools. Every public method
returns a result object; no error escapes to the caller.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

from story_launcher.config_store import ConfigStore
from story_launcher.constants import (
    MSG_APP_NOT_INSTALLED,
    MSG_INSTALLED_VERSION,
    MSG_LAUNCHED,
    MSG_UNKNOWN_TOOL,
)
from story_launcher.exceptions import (
    ExtractionError,
    FileSystemError,
    LauncherError,
    NoCompatibleAssetError,
    UnknownToolError,
)
from story_launcher.log_utils import logger
from story_launcher.settings import LauncherPaths, Settings
from story_launcher.tools import TOOL_REGISTRY, ToolDescriptor, get_tool
from story_launcher.utils import best_effort, remove_path

from .assets import select_asset
from .downloader import download_file
from .extractors import extractor_for
from .github_source import GithubReleaseResolver
from .interfaces import ActionResult, ToolStatus, UpdateSummary
from .platform_ops import (
    CommandRunner,
    ProcessSpawner,
    clear_quarantine,
    is_macos,
    open_command,
    run_command,
    spawn_detached,
)

Downloader = Callable[..., object]


class InstallManager:
    """
    Installs, updates, inspects and launches the registered tools.

    Collaborators are injectable so the command layer can share one instance
    and tests can replace the network and external processes.
    """

    def __init__(
        self,
        paths: LauncherPaths,
        resolver: Optional[GithubReleaseResolver] = None,
        config_store: Optional[ConfigStore] = None,
        downloader: Downloader = download_file,
        runner: CommandRunner = run_command,
        spawner: ProcessSpawner = spawn_detached,
        temp_dir: Optional[Path] = None,
        download_timeout=None,
        clear_quarantine_attrs: Optional[bool] = None,
    ):
        self.paths = paths
        self.resolver = resolver or GithubReleaseResolver()
        self.config_store = config_store or ConfigStore(paths.config_path)
        self.downloader = downloader
        self.runner = runner
        self.spawner = spawner
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self.download_timeout = download_timeout
        self.clear_quarantine_attrs = (
            is_macos() if clear_quarantine_attrs is None else clear_quarantine_attrs
        )
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "InstallManager":
        resolver = GithubReleaseResolver(
            github_token=settings.effective_github_token(),
            timeout=settings.timeout,
        )
        kwargs.setdefault("resolver", resolver)
        kwargs.setdefault("download_timeout", settings.timeout)
        return cls(settings.paths, **kwargs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_installed(self, tool: ToolDescriptor) -> bool:
        """A tool is installed only if it is recorded AND its bundle exists."""
        record = self.config_store.load()
        if tool.tool_id.value not in record:
            return False
        return self.paths.app_path(tool).exists()

    def installed_version(self, tool: ToolDescriptor) -> Optional[str]:
        return self.config_store.load().get(tool.tool_id.value)

    def check_status(self, tool_id: str) -> ToolStatus:
        """
        Compare the installed version of a tool with its latest release.

        Never modifies anything. Registry failures are reported in `error`
        alongside the locally known state.
        """
        try:
            tool = get_tool(tool_id)
        except UnknownToolError:
            return ToolStatus(error=MSG_UNKNOWN_TOOL)

        installed = self.is_installed(tool)
        installed_version = self.installed_version(tool)

        try:
            release = self.resolver.fetch_latest_release(tool.source_repository)
        except LauncherError as e:
            logger.warning(f"Could not check {tool.tool_id} for updates: {e}")
            return ToolStatus(
                installed=installed,
                installed_version=installed_version,
                error=str(e),
            )

        latest_version = release.version
        has_update = (
            installed
            and installed_version is not None
            and installed_version != latest_version
        )
        return ToolStatus(
            installed=installed,
            installed_version=installed_version,
            latest_version=latest_version,
            has_update=has_update,
        )

    def list_installed(self) -> List[str]:
        """Recorded tool ids that are registered and whose bundle exists."""
        installed = []
        for tool_id in self.config_store.load():
            try:
                tool = get_tool(tool_id)
            except UnknownToolError:
                logger.debug(f"Ignoring unknown tool {tool_id} in installed record")
                continue
            if self.paths.app_path(tool).exists():
                installed.append(tool_id)
        return installed

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def install(self, tool_id: str) -> ActionResult:
        """
        Install the latest release of a tool, replacing any existing bundle.

        Returns:
            ActionResult: success with the installed version, or failure with
                a human-readable message.
        """
        try:
            tool = get_tool(tool_id)
        except UnknownToolError:
            return ActionResult(success=False, message=MSG_UNKNOWN_TOOL)

        with self._lock_for(tool.tool_id.value):
            try:
                version = self._install(tool)
            except LauncherError as e:
                logger.error(f"Installing {tool.display_name} failed: {e}")
                return ActionResult(success=False, message=str(e))

        logger.info(f"Installed {tool.display_name} {version}")
        return ActionResult(
            success=True,
            message=MSG_INSTALLED_VERSION.format(version=version),
            version=version,
        )

    def update(self, tool_id: str) -> ActionResult:
        """Updating is a full reinstall of the latest release."""
        return self.install(tool_id)

    def launch(self, tool_id: str) -> ActionResult:
        """Open the installed bundle with the platform's default handler."""
        try:
            tool = get_tool(tool_id)
        except UnknownToolError:
            return ActionResult(success=False, message=MSG_UNKNOWN_TOOL)

        app_path = self.paths.app_path(tool)
        if not app_path.exists():
            return ActionResult(success=False, message=MSG_APP_NOT_INSTALLED)

        try:
            self.spawner(open_command(app_path))
        except OSError as e:
            logger.error(f"Failed to launch {app_path}: {e}")
            return ActionResult(success=False, message=f"Failed to launch: {e}")

        logger.info(f"Launched {tool.display_name}")
        return ActionResult(success=True, message=MSG_LAUNCHED)

    def check_updates(self, auto_update: bool = False) -> UpdateSummary:
        """
        Check every registered tool and optionally apply available updates.

        Returns:
            UpdateSummary: Per-tool statuses plus which updates were applied
                or failed; `has_updates` tells the shell whether to flag updates.
        """
        summary = UpdateSummary()
        for tool in TOOL_REGISTRY.values():
            tool_id = tool.tool_id.value
            status = self.check_status(tool_id)
            summary.statuses[tool_id] = status
            if not (auto_update and status.has_update):
                continue
            logger.info(
                f"Updating {tool.display_name} "
                f"{status.installed_version} -> {status.latest_version}"
            )
            result = self.update(tool_id)
            if result.success:
                summary.updated.append(tool_id)
            else:
                summary.failed[tool_id] = result.message
        return summary

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_for(self, tool_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(tool_id, threading.Lock())

    def _install(self, tool: ToolDescriptor) -> str:
        try:
            self.paths.ensure_dirs()
        except OSError as e:
            raise FileSystemError(
                "Failed to create directories",
                path=str(self.paths.apps_dir),
                details=str(e),
            ) from e

        logger.debug(f"Resolving latest release of {tool.source_repository}")
        release = self.resolver.fetch_latest_release(tool.source_repository)

        asset = select_asset(release)
        if asset is None:
            raise NoCompatibleAssetError(release.tag_name)
        logger.info(f"Downloading {asset.name} ({release.tag_name})")

        temp_file = self.temp_dir / os.path.basename(asset.name)
        app_path = self.paths.app_path(tool)
        try:
            self.downloader(
                asset.download_url, temp_file, timeout=self.download_timeout
            )
            self._remove_existing(app_path)
            extractor = extractor_for(asset.name, runner=self.runner)
            extractor.extract(temp_file, self.paths.apps_dir, tool.installed_app_name)
            if not app_path.exists():
                raise ExtractionError(
                    extractor.archive_format,
                    f"archive did not contain {tool.installed_app_name}",
                    archive_path=str(temp_file),
                )
        finally:
            self._discard_temp_file(temp_file)

        if self.clear_quarantine_attrs:
            clear_quarantine(app_path, runner=self.runner)

        version = release.version
        self.config_store.set_version(tool.tool_id.value, version)
        return version

    def _remove_existing(self, app_path: Path) -> None:
        if not (app_path.exists() or app_path.is_symlink()):
            return
        logger.info(f"Removing existing installation at {app_path}")
        try:
            remove_path(app_path)
        except OSError as e:
            raise FileSystemError(
                "Failed to remove existing app", path=str(app_path), details=str(e)
            ) from e

    def _discard_temp_file(self, temp_file: Path) -> bool:
        if not temp_file.exists():
            return True
        return best_effort(f"Removing temporary file {temp_file}", temp_file.unlink)
