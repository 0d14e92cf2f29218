"""
Story Launcher Install Subsystem

Core Components:
- interfaces: Release, Asset and the result types returned to the shell
- github_source: latest-release lookup on GitHub
- assets: archive selection policy
- downloader: streaming asset download
- extractors: tar.gz, zip and disk image unpacking
- platform_ops: external process helpers
- manager: install/update/status/launch orchestration
"""

from .assets import select_asset
from .downloader import download_file
from .extractors import (
    ArchiveExtractor,
    DiskImageExtractor,
    TarGzExtractor,
    ZipExtractor,
    extractor_for,
)
from .github_source import GithubReleaseResolver
from .interfaces import ActionResult, Asset, Release, ToolStatus, UpdateSummary
from .manager import InstallManager

__all__ = [
    # Interfaces
    "ActionResult",
    "Asset",
    "Release",
    "ToolStatus",
    "UpdateSummary",
    # Components
    "ArchiveExtractor",
    "DiskImageExtractor",
    "GithubReleaseResolver",
    "InstallManager",
    "TarGzExtractor",
    "ZipExtractor",
    "download_file",
    "extractor_for",
    "select_asset",
]
