"""
Custom exceptions for Story Launcher.

Every failure of the install pipeline is raised as one of these and converted
into a result object at the InstallManager boundary, so nothing here is ever
fatal to the hosting process.
"""


class LauncherError(Exception):
    """
    Base exception for all Story Launcher errors.

    All custom exceptions inherit from this class so callers can catch every
    application-specific error in one place.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class UnknownToolError(LauncherError):
    """Exception raised when a tool identifier is not in the registry."""

    def __init__(self, tool_id: str) -> None:
        super().__init__("Unknown tool", details=str(tool_id))
        self.tool_id = tool_id


# =============================================================================
# Release Registry Errors
# =============================================================================


class ReleaseError(LauncherError):
    """
    Base exception for release registry failures.

    Attributes:
        repository: The repository whose latest release was requested.
    """

    def __init__(
        self,
        message: str,
        repository: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.repository = repository


class RateLimitError(ReleaseError):
    """Exception raised when the registry answers 403 (rate limit exceeded)."""

    status_code = 403

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded. Please try again later.",
        repository: str | None = None,
        reset_time: str | None = None,
    ) -> None:
        super().__init__(
            message,
            repository=repository,
            details=f"Resets at: {reset_time}" if reset_time else None,
        )
        self.reset_time = reset_time


class NoReleasesError(ReleaseError):
    """Exception raised when the repository has no published release (404)."""

    status_code = 404

    def __init__(self, repository: str | None = None) -> None:
        super().__init__(
            "No releases found for this repository.", repository=repository
        )


class RegistryError(ReleaseError):
    """
    Exception raised for any other non-success registry response.

    Attributes:
        status_code: The HTTP status code returned by the registry.
    """

    def __init__(self, status_code: int, repository: str | None = None) -> None:
        super().__init__(f"GitHub API error: {status_code}", repository=repository)
        self.status_code = status_code


class ParseError(ReleaseError):
    """Exception raised when the registry payload cannot be interpreted."""

    pass


# =============================================================================
# Transfer Errors
# =============================================================================


class NetworkError(LauncherError):
    """
    Exception raised for transport failures (DNS, refused, timeout, TLS).

    Attributes:
        url: The URL that was being accessed.
    """

    def __init__(
        self, message: str, url: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.url = url


class DownloadError(LauncherError):
    """
    Base exception for asset download failures.

    Attributes:
        url: The URL that was being downloaded.
    """

    def __init__(
        self, message: str, url: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.url = url


class HTTPError(DownloadError):
    """
    Exception raised when an asset download returns a non-2xx status.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(self, status_code: int, url: str | None = None) -> None:
        super().__init__(f"Download failed: {status_code}", url=url)
        self.status_code = status_code


class NoCompatibleAssetError(LauncherError):
    """Exception raised when a release has no archive usable on this platform."""

    def __init__(self, tag_name: str | None = None) -> None:
        super().__init__(
            "No compatible download found in release",
            details=f"release {tag_name}" if tag_name else None,
        )
        self.tag_name = tag_name


# =============================================================================
# File System Errors
# =============================================================================


class FileSystemError(LauncherError):
    """
    Exception raised when creating, removing or writing local files fails.

    Attributes:
        path: The path that caused the error.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path


class ConfigSaveError(FileSystemError):
    """Exception raised when the installed-version record cannot be written."""

    pass


# =============================================================================
# Archive Errors
# =============================================================================


class ExtractionError(LauncherError):
    """
    Exception raised when unpacking a downloaded archive fails.

    Attributes:
        archive_format: One of "tar.gz", "zip", "dmg" (or "unknown").
        cause: The underlying exception or a short description of the step.
    """

    def __init__(
        self,
        archive_format: str,
        cause: object,
        archive_path: str | None = None,
    ) -> None:
        super().__init__(
            f"Failed to extract {archive_format} archive", details=str(cause)
        )
        self.archive_format = archive_format
        self.cause = cause
        self.archive_path = archive_path


class MountPointNotFoundError(ExtractionError):
    """Exception raised when a mounted disk image volume cannot be located."""

    def __init__(self, archive_path: str | None = None) -> None:
        super().__init__(
            "dmg", "Failed to find mount point", archive_path=archive_path
        )
