"""
Async Microsoft Graph client.

Thin transport over aiohttp for the handful of drive endpoints an
upload needs. Every failure is raised as the operation's own error
kind, carrying operation name, status and response body.
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Type
from urllib.parse import quote

import aiohttp

from .config import APIConfig
from .models import DriveItem, QuotaInfo
from ..exceptions import (
    OneDriveError,
    SessionError,
    ChunkUploadError,
    MetadataError,
    HashFetchError,
    MalformedResponseError,
)
from ..logging import get_logger, redact_url

# "accepted, more expected" and "accepted, upload complete"
CHUNK_ACCEPTED = frozenset({202, 200, 201})


class TokenProvider(Protocol):
    """Anything that hands out a currently valid bearer token."""

    async def access_token(self) -> str:
        ...


@dataclass(frozen=True)
class ChunkResponse:
    """Response to a single chunk PUT."""
    status: int
    body: str

    @property
    def is_final(self) -> bool:
        return self.status in (200, 201)


class GraphClient:
    """
    Asynchronous client for drive endpoints.

    Example:
        >>> async with aiohttp.ClientSession() as http:
        ...     graph = GraphClient(http, drive_id, credential_manager)
        ...     url = await graph.create_upload_session("Public/a.bin")
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        drive_id: str,
        tokens: TokenProvider,
        config: Optional[APIConfig] = None
    ):
        """
        Initialize Graph client.

        Args:
            session: Shared HTTP session
            drive_id: Target drive ID
            tokens: Source of bearer tokens (checked before every request)
            config: API configuration
        """
        self._session = session
        self._tokens = tokens
        self._config = config or APIConfig.default()
        self._drive_url = self._config.drive_url(drive_id)
        self._logger = get_logger('onedpy.api')

    @property
    def drive_url(self) -> str:
        return self._drive_url

    def _path_url(self, remote_path: str, suffix: str = '') -> str:
        encoded = quote(remote_path.strip('/'), safe='/')
        if suffix:
            return f"{self._drive_url}/root:/{encoded}:/{suffix}"
        return f"{self._drive_url}/root:/{encoded}"

    async def _request_json(
        self,
        method: str,
        url: str,
        operation: str,
        error_cls: Type[OneDriveError],
        **kwargs
    ) -> Dict[str, Any]:
        """Authenticated JSON request; non-2xx raises error_cls."""
        token = await self._tokens.access_token()
        headers = {'Authorization': f"Bearer {token}", **kwargs.pop('headers', {})}
        self._logger.debug(f"{operation}: {method} {url}")
        try:
            async with self._session.request(method, url, headers=headers, **kwargs) as response:
                body = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise error_cls(f"{operation} request failed: {e!r}", operation=operation) from e

        if not 200 <= status < 300:
            raise error_cls(f"{operation} failed", operation=operation, status=status, body=body)

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise MalformedResponseError(
                f"{operation} returned invalid JSON", operation=operation, status=status, body=body
            ) from e
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"{operation} returned unexpected JSON", operation=operation, status=status, body=body
            )
        return payload

    async def create_upload_session(self, remote_path: str) -> str:
        """
        Open an upload session with rename-on-conflict.

        Returns:
            Session upload URL

        Raises:
            SessionError: On transport failure or non-success status
            MalformedResponseError: If the response has no uploadUrl
        """
        operation = 'create_upload_session'
        body = {'item': {'@microsoft.graph.conflictBehavior': 'rename'}}
        payload = await self._request_json(
            'POST', self._path_url(remote_path, 'createUploadSession'), operation, SessionError, json=body
        )
        upload_url = payload.get('uploadUrl')
        if not upload_url:
            raise MalformedResponseError(
                "Upload session response has no uploadUrl", operation=operation, body=json.dumps(payload)
            )
        return upload_url

    async def upload_chunk(
        self,
        upload_url: str,
        data: bytes,
        start: int,
        end: int,
        total: int
    ) -> ChunkResponse:
        """
        PUT one byte range to the session URL.

        Upload URLs are pre-authenticated; no Authorization header is sent.

        Raises:
            ChunkUploadError: On transport failure or any status other than
                202/200/201
        """
        operation = 'upload_chunk'
        headers = {
            'Content-Range': f"bytes {start}-{end}/{total}",
            'Content-Length': str(len(data)),
        }
        self._logger.debug(f"{operation}: PUT {redact_url(upload_url)} bytes {start}-{end}/{total}")
        try:
            async with self._session.put(upload_url, data=data, headers=headers) as response:
                body = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ChunkUploadError(
                f"Chunk {start}-{end} transfer failed: {e!r}", start=start, end=end, operation=operation
            ) from e

        if status not in CHUNK_ACCEPTED:
            raise ChunkUploadError(
                f"Chunk {start}-{end} rejected", start=start, end=end,
                operation=operation, status=status, body=body
            )
        return ChunkResponse(status, body)

    async def get_item_by_path(self, remote_path: str) -> DriveItem:
        """
        Look up an item by its path.

        Raises:
            MetadataError: On transport failure or non-success status
        """
        payload = await self._request_json('GET', self._path_url(remote_path), 'get_item_by_path', MetadataError)
        return DriveItem.from_dict(payload)

    async def get_quick_xor_hash(self, item_id: str) -> str:
        """
        Fetch the remote QuickXorHash of an item.

        Raises:
            HashFetchError: On failure or when the hash is not available yet
            MalformedResponseError: If the body is not a JSON object
        """
        operation = 'get_quick_xor_hash'
        url = f"{self._drive_url}/items/{quote(item_id, safe='')}"
        payload = await self._request_json(
            'GET', url, operation, HashFetchError, params={'select': 'id,file'}
        )
        item = DriveItem.from_dict(payload)
        if not item.quick_xor_hash:
            raise HashFetchError("Remote QuickXorHash not available yet", operation=operation)
        return item.quick_xor_hash

    async def get_quota(self) -> QuotaInfo:
        """
        Fetch drive capacity.

        Raises:
            OneDriveError: On failure
        """
        operation = 'get_quota'
        payload = await self._request_json('GET', self._drive_url, operation, OneDriveError)
        quota = payload.get('quota')
        if not isinstance(quota, dict):
            raise MalformedResponseError("Drive response has no quota", operation=operation)
        return QuotaInfo.from_dict(quota)
