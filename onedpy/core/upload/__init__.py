"""
Upload module for OneDrive chunked uploads.

Splits a local file into byte ranges, sends them to a Graph upload
session with a bounded pool of workers and resolves the created item.
Chunking and file reading are pluggable.
"""
from .coordinator import UploadCoordinator
from .models import ChunkTask, ChunkOutcome, UploadSession, UploadProgress, UploadConfig, UploadResult
from .protocols import (
    ChunkingStrategy,
    CredentialProvider,
    ChunkReaderProtocol,
    ChunkReaderFactory,
    UploadTransport
)
from .strategies import FixedSizeChunkingStrategy, select_chunk_size

__all__ = [
    # Main classes
    'UploadCoordinator',

    # Models
    'ChunkTask',
    'ChunkOutcome',
    'UploadSession',
    'UploadProgress',
    'UploadConfig',
    'UploadResult',

    # Strategies
    'FixedSizeChunkingStrategy',
    'select_chunk_size',

    # Protocols
    'ChunkingStrategy',
    'CredentialProvider',
    'ChunkReaderProtocol',
    'ChunkReaderFactory',
    'UploadTransport',
]
