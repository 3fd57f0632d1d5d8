"""Upload strategies module."""
from .chunking import (
    BaseChunkingStrategy,
    FixedSizeChunkingStrategy,
    select_chunk_size,
)

__all__ = [
    'BaseChunkingStrategy',
    'FixedSizeChunkingStrategy',
    'select_chunk_size',
]
