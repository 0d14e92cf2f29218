"""
GitHub Release Source

Resolves the latest published release of a repository through the GitHub
REST API. Every call is a fresh request: there is no cache and no retry.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from story_launcher.constants import GITHUB_API_BASE, LATEST_RELEASE_URL_TEMPLATE
from story_launcher.exceptions import (
    NetworkError,
    NoReleasesError,
    ParseError,
    RateLimitError,
    RegistryError,
)
from story_launcher.log_utils import logger
from story_launcher.utils import Timeout, make_github_api_request

from .interfaces import Asset, Release


class GithubReleaseResolver:
    """
    Fetches the latest release of a repository.

    Usage:
        resolver = GithubReleaseResolver(github_token=token)
        release = resolver.fetch_latest_release("owner/repo")
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        timeout: Optional[Timeout] = None,
        api_base: str = GITHUB_API_BASE,
    ):
        """
        Initialize the resolver.

        Parameters:
            github_token (Optional[str]): Token for authenticated requests.
            timeout: Request timeout, seconds or (connect, read).
            api_base (str): Base of the repos API, overridable for mirrors.
        """
        self.github_token = github_token
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")

    def latest_release_url(self, repository: str) -> str:
        return LATEST_RELEASE_URL_TEMPLATE.format(base=self.api_base, repo=repository)

    def fetch_latest_release(self, repository: str) -> Release:
        """
        Fetch and parse the latest release of `repository`.

        Raises:
            RateLimitError: The registry answered 403.
            NoReleasesError: The registry answered 404.
            RegistryError: Any other non-success status.
            NetworkError: The request could not be completed.
            ParseError: The payload is not a release object.
        """
        url = self.latest_release_url(repository)
        try:
            response = make_github_api_request(
                url, github_token=self.github_token, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Failed to fetch release info for {repository}: {e}")
            raise NetworkError(
                "Failed to fetch release info", url=url, details=str(e)
            ) from e

        status = response.status_code
        if status == 403:
            reset_time = _format_reset_time(response)
            logger.error(f"GitHub API rate limit exceeded for {repository}")
            raise RateLimitError(repository=repository, reset_time=reset_time)
        if status == 404:
            logger.info(f"No releases found for {repository}")
            raise NoReleasesError(repository=repository)
        if not 200 <= status < 300:
            logger.error(f"GitHub API returned {status} for {repository}")
            raise RegistryError(status, repository=repository)

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(
                "Failed to parse release info", repository=repository, details=str(e)
            ) from e

        release = parse_release(payload, repository)
        logger.debug(
            f"Latest release of {repository} is {release.tag_name} "
            f"with {len(release.assets)} assets"
        )
        return release


def parse_release(release_data: Any, repository: Optional[str] = None) -> Release:
    """
    Create a Release from GitHub API release data.

    Assets without a usable name or download URL are skipped with a warning;
    a missing tag or a non-list `assets` field makes the whole payload invalid.

    Raises:
        ParseError: If required fields are missing or of the wrong type.
    """
    if not isinstance(release_data, dict):
        raise ParseError(
            "Failed to parse release info",
            repository=repository,
            details=f"expected object, got {type(release_data).__name__}",
        )

    tag_name = release_data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        raise ParseError(
            "Failed to parse release info",
            repository=repository,
            details="missing or invalid tag_name",
        )

    assets_data = release_data.get("assets")
    if not isinstance(assets_data, list):
        raise ParseError(
            "Failed to parse release info",
            repository=repository,
            details="missing or invalid assets",
        )

    release = Release(
        tag_name=tag_name,
        name=release_data.get("name"),
        published_at=release_data.get("published_at"),
        prerelease=bool(release_data.get("prerelease", False)),
    )

    for asset_data in assets_data:
        asset = _parse_asset(asset_data)
        if asset is None:
            logger.warning(f"Skipping malformed asset for release {tag_name}")
            continue
        release.assets.append(asset)

    return release


def _parse_asset(asset_data: Any) -> Optional[Asset]:
    if not isinstance(asset_data, dict):
        return None
    name = asset_data.get("name")
    url = asset_data.get("browser_download_url")
    if not isinstance(name, str) or not name.strip():
        return None
    if not isinstance(url, str) or not url.strip():
        return None
    size = asset_data.get("size")
    return Asset(
        name=name,
        download_url=url,
        size=size if isinstance(size, int) else None,
    )


def _format_reset_time(response: Any) -> Optional[str]:
    headers: Dict[str, Any] = getattr(response, "headers", None) or {}
    reset = headers.get("X-RateLimit-Reset")
    if reset is None:
        return None
    try:
        return datetime.fromtimestamp(int(reset), timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S UTC"
        )
    except (TypeError, ValueError, OverflowError, OSError):
        return None
