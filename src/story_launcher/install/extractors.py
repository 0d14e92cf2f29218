"""
Archive extraction for downloaded tool releases.

Three formats are supported: gzip-compressed tarballs, zip files and macOS
disk images. The first two are unpacked in-process; disk images are attached,
copied from and detached with external utilities.
"""

import os
import plistlib
import shutil
import stat
import tarfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from typing import Optional
from xml.parsers.expat import ExpatError

from story_launcher.constants import (
    COPY_COMMAND,
    DMG_SUFFIX,
    FORMAT_DMG,
    FORMAT_TAR_GZ,
    FORMAT_ZIP,
    HDIUTIL,
    VOLUMES_PREFIX,
)
from story_launcher.exceptions import ExtractionError, MountPointNotFoundError
from story_launcher.log_utils import logger
from story_launcher.utils import Pathish, best_effort, safe_extract_path

from .platform_ops import CommandRunner, check_returncode, run_command


class ArchiveExtractor(ABC):
    """Unpacks one archive format into a destination directory."""

    archive_format: str = "unknown"

    @abstractmethod
    def extract(
        self,
        archive_path: Pathish,
        destination_dir: Pathish,
        app_name: Optional[str] = None,
    ) -> None:
        """
        Unpack `archive_path` into `destination_dir`.

        Parameters:
            archive_path: The downloaded archive.
            destination_dir: Directory receiving the application bundle.
            app_name: Bundle name; only disk images need it.

        Raises:
            ExtractionError: On any failure to open, read, unpack or copy.
        """

    def _fail(self, cause: object, archive_path: Pathish) -> ExtractionError:
        logger.error(
            f"Error extracting {self.archive_format} archive {archive_path}: {cause}"
        )
        return ExtractionError(
            self.archive_format, cause, archive_path=os.fspath(archive_path)
        )


class TarGzExtractor(ArchiveExtractor):
    """Unpack a .tar.gz whose top level already holds the application bundle."""

    archive_format = FORMAT_TAR_GZ

    def extract(
        self,
        archive_path: Pathish,
        destination_dir: Pathish,
        app_name: Optional[str] = None,
    ) -> None:
        try:
            with tarfile.open(archive_path, "r:gz") as archive:
                for member in archive.getmembers():
                    safe_extract_path(destination_dir, member.name)
                if hasattr(tarfile, "tar_filter"):
                    archive.extractall(destination_dir, filter="tar")
                else:
                    archive.extractall(destination_dir)
        except (tarfile.TarError, OSError, EOFError, zlib.error, ValueError) as e:
            raise self._fail(e, archive_path) from e
        logger.debug(f"Extracted {archive_path} into {destination_dir}")


class ZipExtractor(ArchiveExtractor):
    """
    Unpack a .zip entry by entry.

    Parent directories are created even when the archive has no directory
    entries, stored Unix modes are restored (so executables stay executable)
    and symlink entries are recreated as symlinks.
    """

    archive_format = FORMAT_ZIP

    def extract(
        self,
        archive_path: Pathish,
        destination_dir: Pathish,
        app_name: Optional[str] = None,
    ) -> None:
        try:
            with zipfile.ZipFile(archive_path, "r") as archive:
                for info in archive.infolist():
                    self._extract_member(archive, info, destination_dir)
        except (
            zipfile.BadZipFile,
            OSError,
            EOFError,
            zlib.error,
            ValueError,
            RuntimeError,
        ) as e:
            raise self._fail(e, archive_path) from e
        logger.debug(f"Extracted {archive_path} into {destination_dir}")

    def _extract_member(
        self,
        archive: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        destination_dir: Pathish,
    ) -> None:
        target = safe_extract_path(destination_dir, info.filename)
        mode = (info.external_attr >> 16) & 0xFFFF

        if info.is_dir():
            os.makedirs(target, exist_ok=True)
        else:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            if stat.S_ISLNK(mode) and os.name != "nt":
                link_target = archive.read(info).decode("utf-8")
                # Reject links pointing outside the destination
                safe_extract_path(
                    destination_dir,
                    os.path.join(os.path.dirname(info.filename), link_target),
                )
                if os.path.lexists(target):
                    os.remove(target)
                os.symlink(link_target, target)
                return
            with archive.open(info) as source, open(target, "wb") as out:
                shutil.copyfileobj(source, out)

        _restore_mode(target, mode)


def _restore_mode(path: str, mode: int) -> None:
    if os.name == "nt" or not mode & 0o7777:
        return
    try:
        os.chmod(path, stat.S_IMODE(mode))
    except OSError as e:
        logger.debug(f"Could not restore mode {oct(mode)} on {path}: {e}")


class DiskImageExtractor(ArchiveExtractor):
    """
    Copy an application bundle out of a .dmg.

    The image is attached without a Finder window, its volume is located via
    `hdiutil info -plist`, the bundle is copied with `cp -R`, and the image is
    detached again whether or not the copy worked.
    """

    archive_format = FORMAT_DMG

    def __init__(self, runner: CommandRunner = run_command):
        self.runner = runner

    def extract(
        self,
        archive_path: Pathish,
        destination_dir: Pathish,
        app_name: Optional[str] = None,
    ) -> None:
        if not app_name:
            raise self._fail("an application name is required", archive_path)

        image_path = os.fspath(archive_path)
        self.attach(image_path)
        mount_point = self.find_mount_point(image_path)
        try:
            self.copy_app(mount_point, app_name, destination_dir)
        finally:
            self.detach(mount_point)

    def attach(self, image_path: str) -> None:
        try:
            result = self.runner([HDIUTIL, "attach", image_path, "-nobrowse", "-quiet"])
        except OSError as e:
            raise self._fail(f"Failed to mount DMG: {e}", image_path) from e
        if result.returncode != 0:
            raise self._fail("Failed to mount DMG", image_path)
        logger.debug(f"Attached {image_path}")

    def find_mount_point(self, image_path: str) -> str:
        """
        Return the /Volumes/ mount point of the attached image.

        Raises:
            ExtractionError: If `hdiutil info` cannot be run.
            MountPointNotFoundError: If no mounted volume is found. The image
                is detached by device node first when one is listed.
        """
        try:
            result = self.runner([HDIUTIL, "info", "-plist"])
        except OSError as e:
            raise self._fail(f"Failed to get mount info: {e}", image_path) from e

        info_output = result.stdout or ""
        mount_point = parse_mount_point(info_output, image_path)
        if mount_point is None:
            logger.error(f"Failed to find mount point for {image_path}")
            # Still attached; release it by device node if hdiutil lists one
            device = parse_device(info_output, image_path)
            if device:
                self.detach(device)
            raise MountPointNotFoundError(archive_path=image_path)
        logger.debug(f"Found mount point {mount_point} for {image_path}")
        return mount_point

    def copy_app(
        self, mount_point: str, app_name: str, destination_dir: Pathish
    ) -> None:
        src = os.path.join(mount_point, app_name)
        dest = os.path.join(os.fspath(destination_dir), app_name)
        try:
            result = self.runner([COPY_COMMAND, "-R", src, dest])
        except OSError as e:
            raise self._fail(f"Failed to copy app: {e}", src) from e
        if result.returncode != 0:
            raise self._fail("Failed to copy app from DMG", src)
        logger.debug(f"Copied {src} to {dest}")

    def detach(self, mount_point: str) -> bool:
        """Detach a volume or device node; failures are logged, never raised."""

        def _detach() -> None:
            check_returncode(self.runner([HDIUTIL, "detach", mount_point, "-quiet"]))

        return best_effort(f"Detaching {mount_point}", _detach)


def parse_mount_point(info_output: str, image_path: Optional[str] = None) -> Optional[str]:
    """
    Find a /Volumes/ mount point in `hdiutil info -plist` output.

    The volume belonging to `image_path` is preferred; otherwise the first
    /Volumes/ mount point listed is returned. Output that is not a property
    list is scanned line by line for a `<string>/Volumes/...</string>` entry.
    """
    try:
        info = plistlib.loads(info_output.encode("utf-8"))
    except (plistlib.InvalidFileException, ExpatError, ValueError):
        return _scan_for_volume(info_output)

    images = info.get("images", []) if isinstance(info, dict) else []
    if not isinstance(images, list):
        return None

    fallback = None
    for image in images:
        if not isinstance(image, dict):
            continue
        mounts = [
            entity.get("mount-point")
            for entity in image.get("system-entities", [])
            if isinstance(entity, dict)
        ]
        mounts = [m for m in mounts if isinstance(m, str) and VOLUMES_PREFIX in m]
        if not mounts:
            continue
        if fallback is None:
            fallback = mounts[0]
        if image_path and _same_path(image.get("image-path"), image_path):
            return mounts[0]
    return fallback


def parse_device(info_output: str, image_path: str) -> Optional[str]:
    """
    Return the device node (e.g. /dev/disk4) `hdiutil info -plist` lists for `image_path`.

    Only an image whose path matches is considered; the first `dev-entry` of
    its system entities is the whole-disk node.
    """
    try:
        info = plistlib.loads(info_output.encode("utf-8"))
    except (plistlib.InvalidFileException, ExpatError, ValueError):
        return None

    images = info.get("images", []) if isinstance(info, dict) else []
    if not isinstance(images, list):
        return None

    for image in images:
        if not isinstance(image, dict):
            continue
        if not _same_path(image.get("image-path"), image_path):
            continue
        for entity in image.get("system-entities", []):
            if isinstance(entity, dict) and isinstance(entity.get("dev-entry"), str):
                return entity["dev-entry"]
    return None


def _scan_for_volume(text: str) -> Optional[str]:
    for line in text.splitlines():
        if VOLUMES_PREFIX not in line:
            continue
        if "<string>" in line:
            return line.split("<string>", 1)[1].split("</string>", 1)[0]
        return None
    return None


def _same_path(candidate: object, image_path: str) -> bool:
    if not isinstance(candidate, str):
        return False
    return os.path.realpath(candidate) == os.path.realpath(image_path)


def extractor_for(
    filename: str, runner: CommandRunner = run_command
) -> ArchiveExtractor:
    """
    Choose the extractor for a downloaded asset by its filename suffix.

    Raises:
        ExtractionError: For an unsupported archive format.
    """
    if filename.endswith(".tar.gz"):
        return TarGzExtractor()
    if filename.endswith(".zip"):
        return ZipExtractor()
    if filename.endswith(DMG_SUFFIX):
        return DiskImageExtractor(runner=runner)
    raise ExtractionError("unknown", f"Unsupported archive format: {filename}")
