"""Download Microsoft Teams meeting recordings from team drives."""

from .auth import DeviceCodeAuthenticator
from .downloader import DownloadSelector
from .exceptions import (
    AuthenticationError,
    DownloadError,
    GraphAPIError,
    SettingsError,
    TeamsDownloaderError,
)
from .graph_client import GraphClient
from .scanner import DriveScanner
from .settings import SettingsStore

__version__ = "1.0.0"

__all__ = [
    "AuthenticationError",
    "DeviceCodeAuthenticator",
    "DownloadError",
    "DownloadSelector",
    "DriveScanner",
    "GraphAPIError",
    "GraphClient",
    "SettingsError",
    "SettingsStore",
    "TeamsDownloaderError",
]
