"""Data models for Microsoft Graph teams, drives and drive items."""

import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_POLL_INTERVAL, DRIVE_ROOT_ID, TOKEN_EXPIRY_MARGIN


class GraphModel(BaseModel):
    """Base model accepting Graph's camelCase field names."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class Workspace(GraphModel):
    """A team the signed-in user has joined."""

    id: str
    display_name: str = Field(default='', alias='displayName')

    @classmethod
    def from_graph(cls, data: Dict[str, Any]) -> 'Workspace':
        # Graph reports displayName as null for some archived teams
        return cls(id=data['id'], display_name=data.get('displayName') or '')


class StorageRoot(GraphModel):
    """The group drive backing a team and the item its scan starts from."""

    storage_id: str
    root_item_id: str = DRIVE_ROOT_ID


class ParentReference(GraphModel):
    drive_id: Optional[str] = Field(default=None, alias='driveId')
    id: Optional[str] = None
    path: Optional[str] = None


class EntryKind(str, Enum):
    """Classification of a drive entry for the scan."""

    VIDEO = 'video'
    FOLDER = 'folder'
    OTHER = 'other'


class DriveEntry(GraphModel):
    """One child returned when listing a drive folder.

    Graph marks folders and videos with facets: an object present under
    ``folder`` or ``video`` (possibly empty) means the item has that facet.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    web_url: Optional[str] = Field(default=None, alias='webUrl')
    size: Optional[int] = None
    created: Optional[datetime] = Field(default=None, alias='createdDateTime')
    modified: Optional[datetime] = Field(default=None, alias='lastModifiedDateTime')
    parent_reference: Optional[ParentReference] = Field(default=None, alias='parentReference')
    folder: Optional[Dict[str, Any]] = None
    video: Optional[Dict[str, Any]] = None

    @property
    def parent_path(self) -> Optional[str]:
        if self.parent_reference is None:
            return None
        return self.parent_reference.path

    @property
    def kind(self) -> EntryKind:
        """Video takes precedence so a video is never recursed into."""
        if self.video is not None:
            return EntryKind.VIDEO
        if self.folder is not None:
            return EntryKind.FOLDER
        return EntryKind.OTHER


class DeviceCodeChallenge(GraphModel):
    """Challenge returned by the device code endpoint."""

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int = DEFAULT_POLL_INTERVAL
    message: str = ''


class AccessToken(GraphModel):
    """Bearer token with its absolute expiry time."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: float

    @classmethod
    def from_token_response(cls, data: Dict[str, Any], now: Optional[float] = None) -> 'AccessToken':
        """Build a token from a successful token endpoint response.

        Args:
            data: Decoded JSON body of the token endpoint.
            now: Reference time in epoch seconds. Defaults to the current time.

        Returns:
            AccessToken with ``expires_at`` computed from ``expires_in``.
        """
        issued_at = time.time() if now is None else now
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token'),
            expires_at=issued_at + int(data.get('expires_in', 0)),
        )

    def is_expired(self, now: Optional[float] = None) -> bool:
        current = time.time() if now is None else now
        return current >= self.expires_at - TOKEN_EXPIRY_MARGIN
