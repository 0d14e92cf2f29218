# src/story_launcher/utils.py
import importlib.metadata
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import requests

from story_launcher.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    GITHUB_API_VERSION,
    USER_AGENT_PREFIX,
)
from story_launcher.log_utils import logger

Pathish = Union[str, Path]
Timeout = Union[float, Tuple[float, float]]

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `story-launcher/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("story-launcher")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"{USER_AGENT_PREFIX}/{app_version}"

    return _USER_AGENT_CACHE


def make_github_api_request(
    url: str,
    github_token: Optional[str] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[Timeout] = None,
) -> requests.Response:
    """
    Perform a single GitHub API GET request.

    The response is returned whatever its status; callers map status codes to
    their own errors. There is no retry and no caching.

    Parameters:
        url (str): GitHub API URL to request.
        github_token (Optional[str]): Token sent as `Authorization: token ...` when given.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout: Request timeout in seconds or a (connect, read) tuple.

    Returns:
        requests.Response: The HTTP response returned by GitHub.

    Raises:
        requests.RequestException: For network or transport errors.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": get_user_agent(),
    }

    if github_token:
        headers["Authorization"] = f"token {github_token}"
        logger.debug("Using GitHub token for API authentication")
    else:
        logger.debug("No GitHub token available - using unauthenticated API requests")

    actual_timeout = timeout or (DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT)
    logger.debug(f"Making GitHub API request: {url}")
    response = requests.get(url, timeout=actual_timeout, headers=headers, params=params)

    resp_headers = getattr(response, "headers", None) or {}
    remaining = resp_headers.get("X-RateLimit-Remaining")
    if remaining is not None:
        logger.debug(f"GitHub API rate-limit remaining: {remaining}")

    return response


def is_within_base(real_base_dir: str, candidate: str) -> bool:
    """
    Determine whether the candidate path resides within the given base directory.

    Returns:
        True if the candidate path is inside `real_base_dir`, False otherwise.
    """
    try:
        return os.path.commonpath([real_base_dir, candidate]) == real_base_dir
    except ValueError:
        return False


def safe_extract_path(extract_dir: Pathish, member_path: str) -> str:
    """
    Resolve a safe absolute extraction path and prevent directory traversal.

    Parameters:
        extract_dir: Base directory intended for extraction.
        member_path (str): Member path from the archive to be extracted.

    Returns:
        str: Absolute, normalized path inside extract_dir.

    Raises:
        ValueError: If the resolved path is outside extract_dir.
    """
    real_extract_dir = os.path.realpath(extract_dir)
    normalized_path = os.path.realpath(os.path.join(real_extract_dir, member_path))

    if not is_within_base(real_extract_dir, normalized_path):
        raise ValueError(
            f"Unsafe extraction path '{member_path}' is outside base '{extract_dir}'"
        )

    return normalized_path


def remove_path(path: Pathish) -> None:
    """
    Remove a file, symlink or directory tree. Raises OSError on failure.

    Symlinks are unlinked, never followed.
    """
    path_str = os.fspath(path)
    if os.path.islink(path_str) or not os.path.isdir(path_str):
        os.remove(path_str)
    else:
        shutil.rmtree(path_str)


def best_effort(description: str, func, *args, **kwargs) -> bool:
    """
    Run a cleanup or fix-up step whose failure must not abort the caller.

    Failures are logged at WARNING and reported through the return value only.

    Returns:
        bool: True if `func` completed without raising OSError or a
            subprocess error, False otherwise.
    """
    try:
        func(*args, **kwargs)
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"{description} failed: {e}")
        return False
    logger.debug(f"{description} done")
    return True
