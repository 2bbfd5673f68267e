"""Configuration settings for the Teams recording downloader."""

from typing import List

# Microsoft identity platform settings
TENANT_ID: str = 'common'
CLIENT_ID: str = '24fefc72-2336-4c45-9518-5d61c3a6306e'
AUTHORITY_HOST: str = 'https://login.microsoftonline.com'
SCOPES: List[str] = ['Team.ReadBasic.All', 'Files.Read.All', 'offline_access']
DEVICE_CODE_GRANT_TYPE: str = 'urn:ietf:params:oauth:grant-type:device_code'
DEFAULT_POLL_INTERVAL: int = 5
SLOW_DOWN_INCREMENT: int = 5
TOKEN_EXPIRY_MARGIN: int = 60

# Microsoft Graph API settings
GRAPH_BASE_URL: str = 'https://graph.microsoft.com/v1.0'
REQUEST_TIMEOUT: float = 30.0
MAX_CONCURRENT_REQUESTS: int = 4

# Drive layout
DRIVE_ROOT_ID: str = 'root'
FILE_PATH_PREFIX: str = 'root:/'

# Settings file
SETTINGS_FILE_NAME: str = 'Settings.ini'
CONFIG_SECTION: str = 'Main'
SAVE_FOLDER_KEY: str = 'SaveFolder'

# Downloads
DOWNLOAD_CHUNK_SIZE: int = 1024 * 1024
PARTIAL_SUFFIX: str = '.part'

# Logging
LOGGER_NAME: str = 'teams_downloader'
