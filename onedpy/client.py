"""
OneDriveClient - High-level async client for OneDrive uploads.

Example:
    >>> async with OneDriveClient.from_config_file(remote_name="oned") as drive:
    ...     report = await drive.upload("movie.mkv", "Movies", parallelism=4)
    ...     print(report.result.item_id, report.verification.status)
"""
import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import aiohttp

from .core.api import APIConfig, GraphClient, QuotaInfo
from .core.auth import CredentialManager, OAuthTokenRefresher, TokenRefresher
from .core.config import RcloneConfig, RemoteConfig, RemoteRegistry
from .core.integrity import IntegrityVerifier, VerificationResult
from .core.logging import get_logger
from .core.upload import UploadConfig, UploadCoordinator, UploadProgress, UploadResult

CONFIG_ENV_VAR = 'ONEDPY_CONFIG'
DEFAULT_REMOTE = 'oned'

logger = get_logger('onedpy.client')


def default_config_path() -> Path:
    """$ONEDPY_CONFIG, else ~/.config/rclone/rclone.conf."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "rclone" / "rclone.conf"


@dataclass
class UploadReport:
    """
    Everything an upload produced.

    Attributes:
        result: Upload result (item id, chunk outcomes)
        verification: Integrity verification outcome
        download_url: Public link, when the remote has a base URL
    """
    result: UploadResult
    verification: VerificationResult
    download_url: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.result.success


class OneDriveClient:
    """
    High-level async client for one configured remote.

    Owns the HTTP session and the remote's CredentialManager. The
    credentials persist across uploads made through the same client.

    Example:
        >>> registry = RemoteRegistry.from_config(RcloneConfig.load(path))
        >>> async with OneDriveClient(registry, "oned") as drive:
        ...     quota = await drive.get_quota()
    """

    def __init__(
        self,
        registry: RemoteRegistry,
        remote_name: str = DEFAULT_REMOTE,
        *,
        config: Optional[APIConfig] = None,
        refresher: Optional[TokenRefresher] = None
    ):
        """
        Initialize client.

        Args:
            registry: Configured remotes
            remote_name: Remote to upload to
            config: Optional API configuration
            refresher: Token refresher (defaults to the OAuth endpoint)

        Raises:
            ConfigError: If the remote is unknown or incomplete
        """
        self._config = config or APIConfig.default()
        self._registry = registry
        self._remote_name = remote_name
        self._remote = registry.get(remote_name)
        self._credentials = self._remote.credentials()
        self._refresher = refresher

        self._connector: Optional[aiohttp.TCPConnector] = None
        self._http: Optional[aiohttp.ClientSession] = None
        self._manager: Optional[CredentialManager] = None
        self._graph: Optional[GraphClient] = None

    @classmethod
    def from_config_file(
        cls,
        path: Optional[Union[str, Path]] = None,
        remote_name: str = DEFAULT_REMOTE,
        *,
        config: Optional[APIConfig] = None
    ) -> 'OneDriveClient':
        """
        Create a client from an rclone configuration file.

        Only the requested remote is parsed and validated.
        """
        rclone = RcloneConfig.load(path or default_config_path())
        registry = RemoteRegistry.from_config(rclone, names=[remote_name])
        return cls(registry, remote_name, config=config)

    @property
    def remote(self) -> RemoteConfig:
        return self._remote

    @property
    def registry(self) -> RemoteRegistry:
        return self._registry

    @property
    def credentials(self) -> CredentialManager:
        self._ensure_started()
        return self._manager

    @property
    def graph(self) -> GraphClient:
        self._ensure_started()
        return self._graph

    # =========================================================================
    # Context manager
    # =========================================================================

    async def __aenter__(self) -> 'OneDriveClient':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Open the HTTP session and wire up credentials and transport."""
        if self._http is not None and not self._http.closed:
            return
        self._connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
        self._http = aiohttp.ClientSession(
            connector=self._connector,
            **self._config.get_session_kwargs()
        )
        refresher = self._refresher or OAuthTokenRefresher(self._http, self._config)
        self._manager = CredentialManager(self._credentials, refresher)
        self._graph = GraphClient(self._http, self._remote.drive_id, self._manager, self._config)
        logger.debug(f"Client started for remote '{self._remote_name}'")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._http is not None:
            await self._http.close()
        self._http = None
        self._connector = None
        self._graph = None

    def _ensure_started(self) -> None:
        if self._graph is None:
            raise RuntimeError("Client is not started. Use 'async with' or call start() first.")

    # =========================================================================
    # Operations
    # =========================================================================

    async def upload(
        self,
        file_path: Union[str, Path],
        remote_folder: str = '',
        remote_file_name: Optional[str] = None,
        *,
        chunk_size: int = 0,
        parallelism: int = 1,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        hash_retries: int = 5,
        hash_retry_delay: float = 10.0,
        skip_hash: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None
    ) -> UploadReport:
        """
        Upload a file and verify its content hash.

        Args:
            file_path: Local file path
            remote_folder: Folder under the remote's root folder
            remote_file_name: Target name (defaults to the local name)
            chunk_size: Chunk size in bytes (0 selects by file size)
            parallelism: Concurrent chunk workers
            max_retries: Attempts per chunk
            retry_delay: Seconds between chunk attempts
            hash_retries: Attempts to fetch the remote hash
            hash_retry_delay: Seconds between hash fetch attempts
            skip_hash: Skip integrity verification
            cancel_event: Set to cancel the upload
            progress_callback: Called after every accepted chunk

        Returns:
            UploadReport

        Raises:
            OneDriveError subclasses for fatal failures; a hash mismatch
            or unavailable remote hash is reported, not raised.
        """
        self._ensure_started()
        path = Path(file_path)
        name = remote_file_name or path.name
        remote_path = self._registry.full_remote_path(self._remote_name, remote_folder, name)

        upload_config = UploadConfig(
            file_path=path,
            remote_path=remote_path,
            chunk_size=chunk_size,
            parallelism=parallelism,
            max_retries=max_retries,
            retry_delay=retry_delay,
            hash_retries=hash_retries,
            hash_retry_delay=hash_retry_delay,
            skip_hash=skip_hash,
            cancel_event=cancel_event,
            progress_callback=progress_callback
        )

        coordinator = UploadCoordinator(self._graph, self._manager)
        result = await coordinator.upload(upload_config)
        logger.info(f"Uploaded {path.name} as item {result.item_id}")

        if upload_config.skip_hash:
            verification = VerificationResult.skipped()
        else:
            verifier = IntegrityVerifier(self._graph, hash_retries, hash_retry_delay)
            verification = await verifier.verify(path, result.item_id)

        return UploadReport(
            result=result,
            verification=verification,
            download_url=self.download_url(remote_folder, result.name or name)
        )

    async def get_quota(self) -> QuotaInfo:
        """Get drive capacity of this remote."""
        self._ensure_started()
        return await self._graph.get_quota()

    def download_url(self, remote_folder: str, file_name: str) -> Optional[str]:
        """Public link for a file, or None without a base URL."""
        return self._registry.download_url(self._remote_name, remote_folder, file_name)
