"""Recursive scan of team drives for recorded videos."""

import asyncio
import logging

from .downloader import DownloadSelector
from .exceptions import GraphAPIError
from .graph_client import GraphClient
from .models import EntryKind, Workspace


class DriveScanner:
    """Walks the drive of every joined team and hands videos to the selector.

    Sibling folders and files are processed concurrently; a folder's scan
    returns only once every child has been handled. Failures are contained
    to the workspace or folder they happen in.
    """

    def __init__(self, client: GraphClient, selector: DownloadSelector, logger: logging.Logger) -> None:
        self.client = client
        self.selector = selector
        self.logger = logger

    async def scan_all(self) -> None:
        """Scan every team the user has joined.

        Raises:
            GraphAPIError: If the list of teams cannot be fetched.
        """
        workspaces = await self.client.list_joined_workspaces()
        self.logger.info(f"Found {len(workspaces)} teams")

        results = await asyncio.gather(
            *[self.scan_workspace(workspace) for workspace in workspaces],
            return_exceptions=True
        )

        for workspace, result in zip(workspaces, results):
            if isinstance(result, Exception):
                self.logger.error(f"Scan of team {workspace.display_name} failed: {result}")

    async def scan_workspace(self, workspace: Workspace) -> None:
        """Resolve a team's drive and scan it from the root."""
        try:
            storage_root = await self.client.get_storage_root(workspace.id)
            if storage_root is None:
                self.logger.info(f"Team {workspace.display_name} has no drive")
                return

            self.logger.info(f"Scanning team: {workspace.display_name}")
            await self.scan(storage_root.root_item_id, storage_root.storage_id, workspace.display_name)
        except GraphAPIError as e:
            self.logger.error(f"Failed to scan team {workspace.display_name}")
            self.logger.error(f"{e.code}: {e.message}")

    async def scan(self, folder_id: str, storage_id: str, workspace_name: str) -> None:
        """Scan one folder and everything below it.

        A failure listing this folder aborts only this folder's subtree.
        """
        try:
            children = await self.client.list_children(storage_id, folder_id)
        except GraphAPIError as e:
            self.logger.error(f"Failed to list folder {folder_id} in team {workspace_name}")
            self.logger.error(f"{e.code}: {e.message}")
            return

        tasks = []
        for child in children:
            kind = child.kind
            if kind is EntryKind.VIDEO:
                tasks.append(self.selector.consider_download(child, storage_id, workspace_name))
            elif kind is EntryKind.FOLDER and child.id:
                tasks.append(self.scan(child.id, storage_id, workspace_name))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                self.logger.error(f"Unexpected error while scanning team {workspace_name}: {result}")
