"""Custom exceptions for the Teams recording downloader."""

from typing import Optional


class TeamsDownloaderError(Exception):
    """Base exception for the Teams recording downloader."""
    pass


class AuthenticationError(TeamsDownloaderError):
    """Raised when the device code sign-in fails or is declined."""
    pass


class GraphAPIError(TeamsDownloaderError):
    """Raised when Microsoft Graph answers with an error response.

    Attributes:
        status_code: HTTP status of the failed response, if any.
        code: Machine-readable error code reported by Graph.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, code: str = 'unknown'):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class DownloadError(TeamsDownloaderError):
    """Raised when a downloaded file cannot be written locally."""

    def __init__(self, message: str, file_name: str):
        super().__init__(message)
        self.file_name = file_name


class SettingsError(TeamsDownloaderError):
    """Raised when the settings file cannot be read or written."""
    pass
