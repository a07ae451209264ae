"""
Custom exceptions for the sb0 installer.

Every pipeline stage raises one of these instead of terminating the process.
The CLI driver inspects the first error it receives to pick the exit status
and decide which remediation hints to print.
"""

# Error kinds, used by the driver for reporting
KIND_USAGE = "usage"
KIND_ENVIRONMENT = "environment"
KIND_VERSION = "version"
KIND_NETWORK = "network"
KIND_EXTRACTION = "extraction"
KIND_FILESYSTEM = "filesystem"


class InstallerError(Exception):
    """
    Base exception for all installer errors.

    Attributes:
        kind: Category of the failure (one of the KIND_* constants).
        auth_hint: Whether a missing GITHUB_TOKEN could explain this failure.
    """

    kind = KIND_ENVIRONMENT
    auth_hint = False

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


# =============================================================================
# Usage Errors
# =============================================================================


class UsageError(InstallerError):
    """Exception raised for unknown options or flags missing their value."""

    kind = KIND_USAGE


# =============================================================================
# Environment Errors
# =============================================================================


class EnvironmentSetupError(InstallerError):
    """
    Exception raised when the host cannot run the installer.

    This includes:
    - No supported HTTP client available
    - Unsupported operating system or architecture
    """

    kind = KIND_ENVIRONMENT


class NoHttpClientError(EnvironmentSetupError):
    """Exception raised when neither curl nor wget is available."""

    pass


class UnsupportedPlatformError(EnvironmentSetupError):
    """Exception raised for an unsupported kernel name or machine architecture."""

    pass


class ConfigurationError(InstallerError):
    """Exception raised when an environment override has an invalid value."""

    kind = KIND_ENVIRONMENT


# =============================================================================
# Version Errors
# =============================================================================


class VersionFormatError(InstallerError):
    """
    Exception raised when a version tag does not match the release pattern.

    Attributes:
        version: The offending version string.
    """

    kind = KIND_VERSION

    def __init__(self, version: str, details: str | None = None) -> None:
        super().__init__(f"Invalid version format: {version}", details)
        self.version = version


# =============================================================================
# Network Errors
# =============================================================================


class NetworkError(InstallerError):
    """
    Exception raised by an HTTP transport when a fetch or download fails.

    Attributes:
        url: The URL that was being requested.
        status_code: HTTP status code, when the transport could determine one.
    """

    kind = KIND_NETWORK
    auth_hint = True

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class ReleaseLookupError(InstallerError):
    """
    Exception raised when the latest release tag cannot be determined.

    Attributes:
        auth_hint: True when the release listing could not be fetched at all.
    """

    kind = KIND_NETWORK

    def __init__(
        self, message: str, details: str | None = None, auth_hint: bool = False
    ) -> None:
        super().__init__(message, details)
        self.auth_hint = auth_hint


class AssetDownloadError(InstallerError):
    """
    Exception raised when a release asset cannot be downloaded.

    Attributes:
        asset: Kind of the asset that failed (binary, wheels, templates).
        url: The download URL.
    """

    kind = KIND_NETWORK
    auth_hint = True

    def __init__(
        self,
        message: str,
        asset: str | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.asset = asset
        self.url = url


# =============================================================================
# Archive Errors
# =============================================================================


class ExtractionError(InstallerError):
    """
    Exception raised when an archive is corrupt or cannot be extracted.

    Attributes:
        archive_path: Path to the archive that failed.
    """

    kind = KIND_EXTRACTION

    def __init__(
        self,
        message: str,
        archive_path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.archive_path = archive_path


# =============================================================================
# File System Errors
# =============================================================================


class InstallFileError(InstallerError):
    """
    Exception raised when a file cannot be moved, written or removed.

    Attributes:
        path: The path involved in the failure.
    """

    kind = KIND_FILESYSTEM

    def __init__(
        self, message: str, path: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.path = path


class InstallLockedError(InstallFileError):
    """Exception raised when another installer holds the install lock."""

    pass
