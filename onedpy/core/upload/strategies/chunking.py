"""
Chunking strategies for file uploads.

Implements Strategy Pattern for different chunking algorithms.
Chunk ranges are inclusive, matching the Content-Range header.
"""
from abc import ABC, abstractmethod
from typing import List

from ..models import ChunkTask

MIB = 1024 * 1024

# Dynamic chunk size selection thresholds
SMALL_FILE_SIZE = 100 * MIB
MEDIUM_FILE_SIZE = 500 * MIB
LARGE_FILE_SIZE = 1024 * MIB


def select_chunk_size(file_size: int) -> int:
    """
    Pick a chunk size from the file size.

    <=100 MiB: 2 MiB, <=500 MiB: 4 MiB, <=1 GiB: 8 MiB, larger: 16 MiB.
    """
    if file_size <= SMALL_FILE_SIZE:
        return 2 * MIB
    if file_size <= MEDIUM_FILE_SIZE:
        return 4 * MIB
    if file_size <= LARGE_FILE_SIZE:
        return 8 * MIB
    return 16 * MIB


class BaseChunkingStrategy(ABC):
    """Abstract base class for chunking strategies."""

    @abstractmethod
    def calculate_chunks(self, file_size: int) -> List[ChunkTask]:
        """Calculate chunk boundaries."""
        pass


class FixedSizeChunkingStrategy(BaseChunkingStrategy):
    """
    Fixed-size chunking strategy.

    Produces ceil(file_size / chunk_size) chunks; the last one is short.
    """

    def __init__(self, chunk_size: int):
        """
        Initialize with chunk size.

        Args:
            chunk_size: Size of each chunk in bytes
        """
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    def calculate_chunks(self, file_size: int) -> List[ChunkTask]:
        """
        Calculate fixed-size chunk boundaries.

        Args:
            file_size: Total file size in bytes

        Returns:
            List of ChunkTask with inclusive end offsets
        """
        if file_size < 0:
            raise ValueError("File size must not be negative")

        chunks = []
        start = 0
        while start < file_size:
            end = min(start + self.chunk_size - 1, file_size - 1)
            chunks.append(ChunkTask(index=len(chunks), start=start, end=end))
            start = end + 1

        return chunks
