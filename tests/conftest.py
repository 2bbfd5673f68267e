"""Pytest configuration and fixtures."""

import logging
import tempfile
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union

import pytest

from main import AppConfig
from src.teams_downloader.downloader import DownloadSelector
from src.teams_downloader.exceptions import GraphAPIError
from src.teams_downloader.models import DriveEntry, StorageRoot, Workspace


def make_entry(
    name: str,
    parent_path: Optional[str] = "/drives/drive-1/root:/Recordings",
    entry_id: Optional[str] = None,
    video: bool = False,
    folder: bool = False,
    modified: Optional[str] = "2024-03-01T09:30:00Z",
) -> DriveEntry:
    """Build a drive entry the way Graph returns it."""
    data: Dict[str, Any] = {
        "id": entry_id if entry_id is not None else f"id-{name}",
        "name": name,
        "webUrl": f"https://contoso.sharepoint.com/sites/team/{name}",
        "createdDateTime": "2024-03-01T09:00:00Z",
        "lastModifiedDateTime": modified,
    }
    if parent_path is not None:
        data["parentReference"] = {"driveId": "drive-1", "path": parent_path}
    if video:
        data["video"] = {"duration": 60000}
    if folder:
        data["folder"] = {"childCount": 1}
    return DriveEntry.model_validate(data)


class FakeGraphClient:
    """In-memory stand-in for GraphClient.

    ``tree`` maps a folder id to its children or to an exception raised when
    the folder is listed; ``contents`` maps a file id to its bytes or to an
    exception raised when the stream is opened. A list of chunks may contain
    an exception, raised once the stream reaches it.
    """

    def __init__(
        self,
        workspaces: Optional[List[Workspace]] = None,
        drives: Optional[Dict[str, Union[StorageRoot, Exception, None]]] = None,
        tree: Optional[Dict[str, Union[List[DriveEntry], Exception]]] = None,
        contents: Optional[Dict[str, Union[bytes, Exception, List[Union[bytes, Exception]]]]] = None,
    ):
        self.workspaces = workspaces or []
        self.drives = drives or {}
        self.tree = tree or {}
        self.contents = contents or {}
        self.listed: List[str] = []
        self.streamed: List[str] = []

    async def list_joined_workspaces(self) -> List[Workspace]:
        return list(self.workspaces)

    async def get_storage_root(self, workspace_id: str) -> Optional[StorageRoot]:
        drive = self.drives.get(workspace_id)
        if isinstance(drive, Exception):
            raise drive
        return drive

    async def list_children(self, storage_id: str, folder_id: str) -> List[DriveEntry]:
        self.listed.append(folder_id)
        children = self.tree.get(folder_id, [])
        if isinstance(children, Exception):
            raise children
        return children

    @asynccontextmanager
    async def stream_content(self, storage_id: str, file_id: str):
        self.streamed.append(file_id)
        content = self.contents.get(file_id, b"video-bytes")
        if isinstance(content, Exception):
            raise content

        if isinstance(content, bytes):
            content = [content[start:start + 4] for start in range(0, len(content), 4)]

        async def chunks():
            for chunk in content:
                if isinstance(chunk, Exception):
                    raise chunk
                yield chunk

        yield chunks()


@pytest.fixture
def app_config(temp_directory):
    """Create a test configuration."""
    return AppConfig(
        settings_file=f"{temp_directory}/Settings.ini",
        output_dir=f"{temp_directory}/out",
        log_level=logging.DEBUG,
        max_concurrent_requests=2,
    )


@pytest.fixture
def test_logger():
    """Create a test logger."""
    logger = logging.getLogger("test_logger")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def temp_directory():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_client():
    """Create an empty fake Graph client."""
    return FakeGraphClient()


@pytest.fixture
def selector(fake_client, temp_directory, test_logger):
    """Create a download selector writing into the temporary directory."""
    return DownloadSelector(fake_client, temp_directory, test_logger)


@pytest.fixture
def not_found_error():
    """A Graph error as returned for a missing item."""
    return GraphAPIError("The resource could not be found.", status_code=404, code="itemNotFound")
