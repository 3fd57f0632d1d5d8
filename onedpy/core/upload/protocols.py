"""
Protocol definitions for upload module.

Defines interfaces (protocols) for dependency injection and strategy pattern.
"""
from pathlib import Path
from typing import List, Protocol

from .models import ChunkTask
from ..api.graph_client import ChunkResponse
from ..api.models import DriveItem


class ChunkingStrategy(Protocol):
    """
    Protocol for file chunking strategies.

    Allows different chunking algorithms to be plugged in.
    """

    def calculate_chunks(self, file_size: int) -> List[ChunkTask]:
        """
        Calculate chunk boundaries for a file.

        Args:
            file_size: Total file size in bytes

        Returns:
            Ordered chunks exactly covering [0, file_size)
        """
        ...


class CredentialProvider(Protocol):
    """Protocol for the shared credential capability."""

    async def ensure_valid(self) -> None:
        """Refresh the token if it has expired."""
        ...

    async def access_token(self) -> str:
        """Ensure validity and return the current token."""
        ...


class ChunkReaderProtocol(Protocol):
    """Protocol for per-worker positional file readers."""

    async def __aenter__(self) -> 'ChunkReaderProtocol':
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    async def read_chunk(self, task: ChunkTask) -> bytes:
        """
        Read exactly task.length bytes at task.start.

        Raises:
            ChunkUploadError: On I/O failure or short read
        """
        ...


class ChunkReaderFactory(Protocol):
    def __call__(self, file_path: Path) -> ChunkReaderProtocol:
        ...


class UploadTransport(Protocol):
    """Protocol for the remote side of an upload (GraphClient)."""

    async def create_upload_session(self, remote_path: str) -> str:
        """Open a session and return its upload URL."""
        ...

    async def upload_chunk(
        self,
        upload_url: str,
        data: bytes,
        start: int,
        end: int,
        total: int
    ) -> ChunkResponse:
        """Upload one byte range."""
        ...

    async def get_item_by_path(self, remote_path: str) -> DriveItem:
        """Look up an item by path."""
        ...
