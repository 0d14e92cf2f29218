"""Stream a release asset to a local file."""

import os
import time
from pathlib import Path
from typing import Optional

import requests

from story_launcher.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
)
from story_launcher.exceptions import FileSystemError, HTTPError, NetworkError
from story_launcher.log_utils import logger
from story_launcher.utils import Pathish, Timeout, get_user_agent


def download_file(
    url: str,
    destination: Pathish,
    timeout: Optional[Timeout] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """
    Download `url` to `destination` with a single streaming GET.

    The destination is overwritten if present and its parent directory is
    created. There is no retry and no resume; after a failure the caller is
    responsible for removing whatever was written.

    Parameters:
        url (str): The HTTP(S) URL of the asset.
        destination: File path to write.
        timeout: Request timeout, seconds or (connect, read).
        chunk_size (int): Bytes per streamed chunk.

    Returns:
        Path: The written file.

    Raises:
        NetworkError: The request or the body transfer failed.
        HTTPError: The server answered with a non-2xx status.
        FileSystemError: The destination could not be written.
    """
    dest = Path(destination)
    actual_timeout = timeout or (DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT)
    response = None
    try:
        logger.debug(f"Attempting to download file from URL: {url} to {dest}")
        start_time = time.time()
        try:
            response = requests.get(
                url,
                stream=True,
                timeout=actual_timeout,
                headers={"User-Agent": get_user_agent()},
            )
        except requests.RequestException as e:
            raise NetworkError("Failed to download", url=url, details=str(e)) from e

        logger.debug(
            f"Received HTTP response status code: {response.status_code} for URL: {url}"
        )
        if not 200 <= response.status_code < 300:
            raise HTTPError(response.status_code, url=url)

        downloaded_bytes = 0
        try:
            if dest.parent and not dest.parent.exists():
                os.makedirs(dest.parent, exist_ok=True)
            with open(dest, "wb") as file:
                for chunk in response.iter_content(chunk_size=chunk_size):
                    if chunk:
                        file.write(chunk)
                        downloaded_bytes += len(chunk)
        except requests.RequestException as e:
            raise NetworkError(
                "Failed to read download", url=url, details=str(e)
            ) from e
        except OSError as e:
            raise FileSystemError(
                "Failed to write file", path=str(dest), details=str(e)
            ) from e

        elapsed = time.time() - start_time
        file_size_mb = downloaded_bytes / (1024 * 1024)
        logger.debug("Download elapsed time: %.2fs for %s", elapsed, url)
        if file_size_mb >= 1.0:
            logger.info(f"Downloaded: {dest.name} ({file_size_mb:.1f} MB)")
        else:
            logger.info(f"Downloaded: {dest.name} ({downloaded_bytes} bytes)")
        return dest
    finally:
        if response is not None:
            response.close()
