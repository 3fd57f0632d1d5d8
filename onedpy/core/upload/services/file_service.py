"""
File validation and reading services.

FileValidator checks a path is a non-empty regular file before a
session is opened. AsyncFileReader reads one chunk range at a time
through its own aiofiles handle, so each worker seeks independently.
"""
from pathlib import Path
from typing import Optional, Tuple, Union
import logging

import aiofiles

from ..models import ChunkTask
from ...exceptions import ChunkUploadError


class FileValidator:
    """
    Validates files before upload.

    Responsibilities:
    - Check file existence
    - Verify file is not a directory
    - Reject empty files (an upload session cannot accept zero bytes)
    """

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.

        Args:
            file_path: Path to the file

        Returns:
            Tuple of (validated Path, file size in bytes)

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file or is empty
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if not path.is_file():
            raise ValueError(f"Path is not a file: {path}")

        file_size = path.stat().st_size
        if file_size == 0:
            raise ValueError(f"Cannot upload empty file: {path}")

        return path, file_size


class AsyncFileReader:
    """
    Positional chunk reader backed by its own aiofiles handle.

    Each upload worker opens one reader, so concurrent reads never share
    a file position.

    Example:
        >>> async with AsyncFileReader(path) as reader:
        ...     data = await reader.read_chunk(task)
    """

    def __init__(self, file_path: Path):
        """
        Initialize file reader.

        Args:
            file_path: Path to the file to read
        """
        self._file_path = Path(file_path)
        self._file_handle: Optional[aiofiles.threadpool.binary.AsyncBufferedReader] = None
        self._logger = logging.getLogger('onedpy.upload.file')

    async def __aenter__(self) -> 'AsyncFileReader':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self) -> None:
        """
        Open the file for reading.

        Raises:
            ChunkUploadError: If the file cannot be opened
        """
        if self._file_handle is not None:
            return
        try:
            self._file_handle = await aiofiles.open(self._file_path, 'rb')
        except OSError as e:
            raise ChunkUploadError(f"Cannot open {self._file_path}: {e}", operation='read_chunk') from e

    async def close(self) -> None:
        """Close the file handle."""
        if self._file_handle is not None:
            await self._file_handle.close()
            self._file_handle = None

    async def read_chunk(self, task: ChunkTask) -> bytes:
        """
        Read exactly task.length bytes at task.start.

        Raises:
            ChunkUploadError: On I/O failure or short read
        """
        if self._file_handle is None:
            await self.open()

        try:
            await self._file_handle.seek(task.start)
            data = await self._file_handle.read(task.length)
        except OSError as e:
            self._logger.error(f"Failed to read chunk {task.start}-{task.end}: {e}")
            raise ChunkUploadError(
                f"Failed to read chunk {task.start}-{task.end}: {e}",
                start=task.start, end=task.end, operation='read_chunk'
            ) from e

        if len(data) != task.length:
            raise ChunkUploadError(
                f"Short read for chunk {task.start}-{task.end}: "
                f"got {len(data)} of {task.length} bytes (file changed?)",
                start=task.start, end=task.end, operation='read_chunk'
            )

        self._logger.debug(f"Read chunk: {task.start}-{task.end} ({len(data)} bytes)")
        return data
