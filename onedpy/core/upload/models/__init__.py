"""Upload models."""
from .upload_models import (
    ChunkTask,
    ChunkOutcome,
    UploadSession,
    UploadProgress,
    UploadConfig,
    UploadResult,
)

__all__ = [
    'ChunkTask',
    'ChunkOutcome',
    'UploadSession',
    'UploadProgress',
    'UploadConfig',
    'UploadResult',
]
