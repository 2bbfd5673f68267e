"""Selection and download of recorded videos found in a team drive."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import IO, Optional, Union
from urllib.parse import unquote

from .config import FILE_PATH_PREFIX, PARTIAL_SUFFIX
from .exceptions import DownloadError, GraphAPIError
from .graph_client import GraphClient
from .models import DriveEntry


class DownloadSelector:
    """Decides whether a video needs downloading and downloads it.

    Files are stored under ``<output_root>/<team name>/<drive path>/<name>``.
    A file that already exists at that path is never downloaded again.
    """

    def __init__(
        self,
        client: GraphClient,
        output_root: Union[str, Path],
        logger: logging.Logger,
        apply_timestamps: bool = True,
    ) -> None:
        self.client = client
        self.output_root = Path(output_root)
        self.logger = logger
        self.apply_timestamps = apply_timestamps

    def resolve_destination(self, entry: DriveEntry, workspace_name: str) -> Optional[Path]:
        """Compute the local path of a drive file.

        Args:
            entry: Drive file to place.
            workspace_name: Display name of the team owning the drive.

        Returns:
            Absolute destination path, or None if the entry has no name,
            no parent path, or lies outside the drive root.
        """
        parent_path = entry.parent_path
        if not parent_path or not entry.name:
            return None

        index = parent_path.find(FILE_PATH_PREFIX)
        if index < 0:
            self.logger.debug(f"Skipping {entry.name}: not under the drive root ({parent_path})")
            return None

        relative_path = unquote(parent_path[index + len(FILE_PATH_PREFIX):])
        return Path(os.path.abspath(
            os.path.join(self.output_root, self.workspace_folder_name(workspace_name),
                         relative_path, entry.name)))

    @staticmethod
    def workspace_folder_name(workspace_name: str) -> str:
        """Turn a team display name into a single path component."""
        folder_name = workspace_name
        for separator in {'/', os.sep, os.altsep} - {None}:
            folder_name = folder_name.replace(separator, '_')
        if folder_name in ('.', '..'):
            folder_name = '_' * len(folder_name)
        return folder_name

    async def consider_download(self, entry: DriveEntry, storage_id: str, workspace_name: str) -> bool:
        """Download a video unless it is already present locally.

        Never raises; every failure is logged and affects this file only.

        Returns:
            True if the file was downloaded.
        """
        if not entry.id:
            return False

        destination = self.resolve_destination(entry, workspace_name)
        if destination is None:
            return False

        if destination.exists():
            self.logger.info(f"File already exists: {entry.name}")
            return False

        try:
            self.ensure_directory(destination.parent)
        except DownloadError as e:
            self.logger.error(str(e))
            return False

        return await self.download(entry, storage_id, destination)

    @staticmethod
    def ensure_directory(directory: Path) -> None:
        """Create a directory and its parents, accepting an existing one.

        Raises:
            DownloadError: If the directory cannot be created.
        """
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"Can't create directory: {directory} ({e})", directory.name)

        if not directory.is_dir():
            raise DownloadError(f"Can't create directory: {directory}", directory.name)

    async def download(self, entry: DriveEntry, storage_id: str, destination: Path) -> bool:
        """Stream a drive file to ``destination``.

        The body is written to a uniquely named ``.part`` file next to the
        destination and renamed over it once complete, so an interrupted
        transfer never leaves a file that a later run would skip. File
        writes run in a worker thread.
        """
        partial_path: Optional[Path] = None

        try:
            async with self.client.stream_content(storage_id, entry.id) as chunks:
                partial_file = await asyncio.to_thread(self._open_partial, destination)
                partial_path = Path(partial_file.name)
                try:
                    async for chunk in chunks:
                        await asyncio.to_thread(partial_file.write, chunk)
                finally:
                    await asyncio.to_thread(partial_file.close)

            # another download may have produced the same destination meanwhile
            if destination.exists():
                self.logger.info(f"File already exists: {entry.name}")
                self._discard(partial_path)
                return False
            os.replace(partial_path, destination)
        except GraphAPIError as e:
            self.logger.error(f"Error downloading: {entry.web_url}")
            self.logger.error(f"{e.code}: {e.message}")
            self._discard(partial_path)
            return False
        except Exception as e:
            self.logger.error(f"Error downloading: {entry.web_url}")
            self.logger.error(f"{type(e).__name__}: {e}")
            self._discard(partial_path)
            return False

        self.logger.info(f"Successfully downloaded: {entry.name}")

        if self.apply_timestamps:
            self._apply_timestamps(entry, destination)

        return True

    def _apply_timestamps(self, entry: DriveEntry, path: Path) -> None:
        timestamp = entry.modified or entry.created
        if timestamp is None:
            return

        epoch = timestamp.timestamp()
        try:
            os.utime(path, (epoch, epoch))
        except OSError as e:
            self.logger.warning(f"Failed to set timestamps on {path}: {e}")

    @staticmethod
    def _open_partial(destination: Path) -> IO[bytes]:
        return tempfile.NamedTemporaryFile(
            mode='wb', dir=destination.parent, prefix=f"{destination.name}.",
            suffix=PARTIAL_SUFFIX, delete=False)

    def _discard(self, path: Optional[Path]) -> None:
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"Failed to remove partial file {path}: {e}")
