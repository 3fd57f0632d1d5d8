"""Upload services module."""
from .file_service import FileValidator, AsyncFileReader
from .chunk_service import ChunkUploader
from .session_service import UploadSessionManager
from .item_service import ItemResolver

__all__ = [
    'FileValidator',
    'AsyncFileReader',
    'ChunkUploader',
    'UploadSessionManager',
    'ItemResolver',
]
