"""
External-process helpers used by the installer.

Utilities such as hdiutil, xattr, cp and open are treated as opaque: only
their exit status matters, except for `hdiutil info` whose output is scraped
for a mount point. Everything goes through a `CommandRunner` so tests can
substitute a fake.
"""

import os
import platform
import subprocess
from typing import Callable, List, Sequence

from story_launcher.constants import XATTR
from story_launcher.log_utils import logger
from story_launcher.utils import Pathish, best_effort

CommandRunner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]
ProcessSpawner = Callable[[Sequence[str]], object]


def run_command(args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
    """
    Run a command to completion, capturing output.

    A non-zero exit status is not an exception; callers inspect `returncode`.

    Raises:
        OSError: If the executable cannot be started.
    """
    logger.debug(f"Running: {' '.join(args)}")
    return subprocess.run(
        list(args), capture_output=True, text=True, check=False
    )


def spawn_detached(args: Sequence[str]) -> subprocess.Popen:
    """Start a process without waiting for it or keeping its output. Raises OSError."""
    logger.debug(f"Spawning: {' '.join(args)}")
    kwargs = {}
    if os.name == "posix":
        kwargs["start_new_session"] = True
    return subprocess.Popen(
        list(args),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        **kwargs,
    )


def is_macos() -> bool:
    return platform.system() == "Darwin"


def check_returncode(result: "subprocess.CompletedProcess[str]") -> None:
    """Raise CalledProcessError when `result` reports a failure."""
    if result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, result.args, result.stdout, result.stderr
        )


def clear_quarantine(app_path: Pathish, runner: CommandRunner = run_command) -> bool:
    """
    Recursively clear extended attributes (the download quarantine flag) on `app_path`.

    Only meaningful on macOS; failures are logged and never raised.

    Returns:
        bool: True if the attributes were cleared.
    """

    def _clear() -> None:
        check_returncode(runner([XATTR, "-cr", os.fspath(app_path)]))

    return best_effort(f"Clearing quarantine on {app_path}", _clear)


def open_command(target: Pathish) -> List[str]:
    """Return the platform's "open with default handler" command for `target`."""
    system = platform.system()
    if system == "Darwin":
        return ["open", os.fspath(target)]
    if system == "Windows":
        return ["cmd", "/c", "start", "", os.fspath(target)]
    return ["xdg-open", os.fspath(target)]
