"""
Custom exceptions for the asset-mirror application.

This module defines domain-specific exceptions that provide better error
categorization and more informative error messages for users and developers.
Only the per-release InvalidFormatError is recovered locally; everything else
propagates to the command-line entry point, which ends the run.
"""


class AssetMirrorError(Exception):
    """
    Base exception for all asset-mirror errors.

    All custom exceptions in asset-mirror should inherit from this class
    to allow for easy catching of all application-specific errors.
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


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(AssetMirrorError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Missing required settings (token file, owner, repository, output directory)
    - Unreadable token or configuration files
    - Configuration file parsing errors
    """

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(AssetMirrorError):
    """
    Exception raised when validation fails.

    Attributes:
        field: The name of the field that failed validation.
        value: The value that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the validation exception.

        Args:
            message: The primary error message.
            field: The name of the field that failed validation.
            value: The value that failed validation.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidFormatError(ValidationError):
    """Exception raised when a release tag does not parse as a semantic version."""

    pass


class IndexFormatError(ValidationError):
    """Exception raised when a persisted index file does not match the schema."""

    pass


# =============================================================================
# Internal Errors
# =============================================================================


class InternalConsistencyError(AssetMirrorError):
    """
    Exception raised when an internal invariant is broken.

    Seeing this means there is a bug in asset-mirror itself, not a problem
    with the input data.
    """

    pass


# =============================================================================
# File System Errors
# =============================================================================


class FileSystemError(AssetMirrorError):
    """
    Exception raised for file system-related errors.

    Attributes:
        path: The file path that caused the error.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the file system exception.

        Args:
            message: The primary error message.
            path: The file path that caused the error.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.path = path


class DurableWriteError(FileSystemError):
    """
    Exception raised when a step of the durable write protocol fails.

    Attributes:
        step: Short name of the step that failed (e.g. "mkdir", "fsync", "rename").
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        step: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, path, details)
        self.step = step


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(AssetMirrorError):
    """
    Base exception for download-related errors.

    Attributes:
        url: The URL that was being downloaded when the error occurred.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class NetworkError(DownloadError):
    """
    Exception raised for network-related download failures.

    This includes:
    - Connection timeouts
    - DNS resolution failures
    - Connection refused errors
    - Errors while reading the response body
    """

    pass


class HTTPError(DownloadError):
    """
    Exception raised for HTTP-related download failures.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, url, details)
        self.status_code = status_code


class UnexpectedStatusError(HTTPError):
    """Exception raised when a downloaded asset's response status is not 200 OK."""

    pass


# =============================================================================
# API Errors
# =============================================================================


class APIError(AssetMirrorError):
    """
    Exception raised for API-related errors.

    Attributes:
        endpoint: The API endpoint that was accessed.
        status_code: The HTTP status code returned, when there was one.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class RemoteError(APIError):
    """
    Exception raised when listing releases or release assets fails.

    Attributes:
        page: The page number that was being requested.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        page: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, endpoint, status_code, details)
        self.page = page
