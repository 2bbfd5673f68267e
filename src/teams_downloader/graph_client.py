"""Microsoft Graph client for team, drive and drive item operations."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

import httpx

from .config import DOWNLOAD_CHUNK_SIZE, GRAPH_BASE_URL, MAX_CONCURRENT_REQUESTS, REQUEST_TIMEOUT
from .exceptions import GraphAPIError
from .models import DriveEntry, StorageRoot, Workspace


class TokenProvider(Protocol):
    async def get_token(self) -> str:
        ...


class GraphClient:
    """Microsoft Graph v1.0 client used by the drive scan.

    Every request holds a slot of a shared semaphore, so at most
    ``max_concurrent_requests`` list or download calls are in flight at
    once. Collection responses are followed through ``@odata.nextLink``.

    Example:
        >>> async with GraphClient(authenticator) as client:
        ...     for workspace in await client.list_joined_workspaces():
        ...         print(workspace.display_name)
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        http_client: Optional[httpx.AsyncClient] = None,
        max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS,
        base_url: str = GRAPH_BASE_URL,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the client.

        Args:
            token_provider: Source of bearer tokens, usually a DeviceCodeAuthenticator.
            http_client: HTTP client to send requests with. A client that
                follows redirects is created when omitted.
            max_concurrent_requests: Upper bound of simultaneous requests.
            base_url: Graph endpoint root.
            logger: Logger for request tracing.
        """
        if max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be at least 1")

        self.token_provider = token_provider
        self.base_url = base_url.rstrip('/')
        self.logger = logger or logging.getLogger(__name__)
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=REQUEST_TIMEOUT, follow_redirects=True)
        self._semaphore = asyncio.Semaphore(max_concurrent_requests)

    async def __aenter__(self) -> 'GraphClient':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def list_joined_workspaces(self) -> List[Workspace]:
        """List the teams the signed-in user is a member of.

        Raises:
            GraphAPIError: If the request fails.
        """
        items = await self._get_collection(f"{self.base_url}/me/joinedTeams")
        return [Workspace.from_graph(item) for item in items if item.get('id')]

    async def get_storage_root(self, workspace_id: str) -> Optional[StorageRoot]:
        """Resolve the group drive of a team.

        Returns:
            The drive to scan, or None if the team has no drive.

        Raises:
            GraphAPIError: If the request fails.
        """
        data = await self._get_json(f"{self.base_url}/groups/{workspace_id}/drive")
        drive_id = data.get('id')
        if not drive_id:
            return None
        return StorageRoot(storage_id=drive_id)

    async def list_children(self, storage_id: str, folder_id: str) -> List[DriveEntry]:
        """List every child of a drive folder.

        Raises:
            GraphAPIError: If any page of the listing fails.
        """
        url = f"{self.base_url}/drives/{storage_id}/items/{folder_id}/children"
        items = await self._get_collection(url)
        return [DriveEntry.model_validate(item) for item in items]

    @asynccontextmanager
    async def stream_content(self, storage_id: str, file_id: str) -> AsyncIterator[AsyncIterator[bytes]]:
        """Stream the content of a drive file.

        Yields:
            Async iterator over chunks of the file body.

        Raises:
            GraphAPIError: If the request fails or the transfer breaks off.
        """
        url = f"{self.base_url}/drives/{storage_id}/items/{file_id}/content"

        async with self._semaphore:
            # token is fetched only once a slot is held; the wait can outlast it
            headers = await self._auth_headers()
            self.logger.debug(f"GET {url} (stream)")
            try:
                async with self.http_client.stream('GET', url, headers=headers) as response:
                    if response.is_error:
                        await response.aread()
                        raise self._error_from_response(response)
                    yield response.aiter_bytes(DOWNLOAD_CHUNK_SIZE)
            except httpx.HTTPError as e:
                raise GraphAPIError(f"Download of {url} failed: {e}", code='networkError')

    async def _auth_headers(self) -> Dict[str, str]:
        token = await self.token_provider.get_token()
        return {'Authorization': f'Bearer {token}', 'Accept': 'application/json'}

    async def _get_json(self, url: str) -> Dict[str, Any]:
        async with self._semaphore:
            headers = await self._auth_headers()
            self.logger.debug(f"GET {url}")
            try:
                response = await self.http_client.get(url, headers=headers)
            except httpx.HTTPError as e:
                raise GraphAPIError(f"Request to {url} failed: {e}", code='networkError')

        if response.is_error:
            raise self._error_from_response(response)

        try:
            return response.json()
        except ValueError:
            raise GraphAPIError(
                f"Invalid JSON returned by {url}", status_code=response.status_code, code='invalidResponse')

    async def _get_collection(self, url: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        next_url: Optional[str] = url

        while next_url:
            data = await self._get_json(next_url)
            items.extend(data.get('value', []))
            next_url = data.get('@odata.nextLink')

        return items

    @staticmethod
    def _error_from_response(response: httpx.Response) -> GraphAPIError:
        code = 'unknown'
        message = response.reason_phrase or f"HTTP {response.status_code}"

        try:
            body = response.json()
        except ValueError:
            body = {}

        error = body.get('error') if isinstance(body, dict) else None

        if isinstance(error, dict):
            code = error.get('code') or code
            message = error.get('message') or message

        return GraphAPIError(message, status_code=response.status_code, code=code)
