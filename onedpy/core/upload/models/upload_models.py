"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union


@dataclass(frozen=True)
class ChunkTask:
    """
    One byte range of the source file.

    Attributes:
        index: Chunk index (for logging)
        start: First byte offset
        end: Last byte offset (inclusive)
    """
    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        """Returns chunk size in bytes."""
        return self.end - self.start + 1

    def content_range(self, total: int) -> str:
        return f"bytes {self.start}-{self.end}/{total}"


@dataclass(frozen=True)
class ChunkOutcome:
    """
    Terminal result of one chunk.

    Attributes:
        task: The chunk
        attempts: Attempts consumed
        success: True if the remote accepted the range
        error: Last error detail (None on success)
        final_name: Item name reported by the completing response, if any
    """
    task: ChunkTask
    attempts: int
    success: bool
    error: Optional[str] = None
    final_name: Optional[str] = None


@dataclass(frozen=True)
class UploadSession:
    """
    Server-side upload context.

    Attributes:
        remote_path: Target path in the drive
        upload_url: Pre-authenticated session endpoint
        file_size: Declared total size at session-open time
    """
    remote_path: str
    upload_url: str = field(repr=False)
    file_size: int


@dataclass
class UploadProgress:
    """
    Upload progress information.

    Attributes:
        total_chunks: Total number of chunks
        uploaded_chunks: Number of accepted chunks
        total_bytes: Total file size
        uploaded_bytes: Bytes accepted so far
    """
    total_chunks: int
    uploaded_chunks: int = 0
    total_bytes: int = 0
    uploaded_bytes: int = 0

    @property
    def percentage(self) -> float:
        """Returns upload progress as percentage."""
        if self.total_bytes == 0:
            return 0.0
        return (self.uploaded_bytes / self.total_bytes) * 100

    @property
    def is_complete(self) -> bool:
        """Returns True if upload is complete."""
        return self.uploaded_chunks >= self.total_chunks


@dataclass
class UploadConfig:
    """
    Configuration for one upload.

    Attributes:
        file_path: Path to file to upload
        remote_path: Full target path in the drive
        chunk_size: Chunk size in bytes (0 selects by file size)
        parallelism: Number of concurrent chunk workers
        max_retries: Attempts per chunk (first try included)
        retry_delay: Seconds between chunk attempts
        hash_retries: Attempts to fetch the remote hash
        hash_retry_delay: Seconds between hash fetch attempts
        skip_hash: Skip integrity verification
        cancel_event: Set to stop starting new chunk attempts
        progress_callback: Called after every accepted chunk
    """
    file_path: Path
    remote_path: str
    chunk_size: int = 0
    parallelism: int = 1
    max_retries: int = 3
    retry_delay: float = 5.0
    hash_retries: int = 5
    hash_retry_delay: float = 10.0
    skip_hash: bool = False
    cancel_event: Optional[asyncio.Event] = None
    progress_callback: Optional[Callable[[UploadProgress], None]] = None

    def __post_init__(self):
        """Validate and normalize config."""
        if isinstance(self.file_path, str):
            self.file_path = Path(self.file_path)
        self.remote_path = self.remote_path.strip('/')
        if not self.remote_path:
            raise ValueError("Remote path must not be empty")
        if self.chunk_size < 0:
            raise ValueError("Chunk size must not be negative")
        if self.parallelism < 1:
            raise ValueError("Parallelism must be at least 1")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.hash_retries < 1:
            raise ValueError("hash_retries must be at least 1")
        if self.retry_delay < 0 or self.hash_retry_delay < 0:
            raise ValueError("Retry delays must not be negative")

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass(frozen=True)
class UploadResult:
    """
    Result of an upload.

    Attributes:
        item_id: Remote item identifier
        success: True only if every chunk was accepted and the item resolved
        name: Remote item name (differs from the requested one after a rename)
        remote_path: Path the item was resolved at
        file_size: Size of uploaded file
        chunk_count: Number of chunks
        outcomes: Per-chunk outcomes
    """
    item_id: str
    success: bool
    name: str = ''
    remote_path: str = ''
    file_size: int = 0
    chunk_count: int = 0
    outcomes: List[ChunkOutcome] = field(default_factory=list, repr=False)

    @property
    def attempts(self) -> int:
        """Total chunk attempts, retries included."""
        return sum(o.attempts for o in self.outcomes)
