"""
Upload coordinator.

Orchestrates the upload process using injected dependencies:
session open, parallel chunk dispatch, completion check and item
resolution.
"""
import asyncio
import posixpath
import time
from pathlib import Path
from typing import Callable, List, Optional

from .models import ChunkOutcome, ChunkTask, UploadConfig, UploadProgress, UploadResult, UploadSession
from .protocols import ChunkingStrategy, ChunkReaderFactory, CredentialProvider, UploadTransport
from .services import AsyncFileReader, ChunkUploader, FileValidator, ItemResolver, UploadSessionManager
from .strategies import FixedSizeChunkingStrategy, select_chunk_size
from ..exceptions import ChunkUploadError, UploadCancelledError
from ..logging import get_logger

logger = get_logger('onedpy.upload.coordinator')


class UploadCoordinator:
    """
    Coordinates the file upload process.

    Uses dependency injection for all components, making it:
    - Testable (fake transports and credentials)
    - Extensible (swap chunking strategy or reader)

    The upload is reported successful only if every chunk was accepted.
    """

    def __init__(
        self,
        transport: UploadTransport,
        credentials: CredentialProvider,
        chunking_strategy: Optional[ChunkingStrategy] = None,
        reader_factory: Optional[ChunkReaderFactory] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            transport: Remote side of the upload (GraphClient)
            credentials: Shared credential capability
            chunking_strategy: Overrides the configured chunk size
            reader_factory: Builds one file reader per worker
        """
        self._transport = transport
        self._credentials = credentials
        self._chunking = chunking_strategy
        self._reader_factory = reader_factory or AsyncFileReader
        self._validator = FileValidator()
        self._sessions = UploadSessionManager(transport)
        self._resolver = ItemResolver(transport)

    def _strategy_for(self, config: UploadConfig, file_size: int) -> ChunkingStrategy:
        if self._chunking is not None:
            return self._chunking
        if config.chunk_size:
            logger.info(f"Using chunk size: {config.chunk_size} bytes")
            return FixedSizeChunkingStrategy(config.chunk_size)
        chunk_size = select_chunk_size(file_size)
        logger.info(f"Selected chunk size: {chunk_size} bytes (file size: {file_size} bytes)")
        return FixedSizeChunkingStrategy(chunk_size)

    async def upload(self, config: UploadConfig) -> UploadResult:
        """
        Execute the complete upload process.

        Args:
            config: Upload configuration

        Returns:
            Upload result with the resolved item

        Raises:
            FileNotFoundError, ValueError: If the file cannot be uploaded
            AuthError: If the token cannot be refreshed
            SessionError: If the session cannot be opened
            ChunkUploadError: If any chunk exhausted its retries
            MetadataError: If the uploaded item cannot be resolved
            UploadCancelledError: If config.cancel_event was set
        """
        path, file_size = self._validator.validate(config.file_path)
        file_size_mb = file_size / (1024 * 1024)
        logger.info(f"Starting upload: {path.name} ({file_size_mb:.2f} MB) -> {config.remote_path}")

        await self._credentials.ensure_valid()
        if config.cancelled:
            raise UploadCancelledError("Upload cancelled before start", operation='upload')

        session = await self._sessions.create_session(config.remote_path, file_size)

        chunks = self._strategy_for(config, file_size).calculate_chunks(file_size)
        logger.info(f"File split into {len(chunks)} chunks, {config.parallelism} parallel workers")

        upload_start = time.time()
        outcomes = await self._upload_chunks(path, chunks, session, config)
        self._check_outcomes(chunks, outcomes, config)

        upload_time = time.time() - upload_start
        speed = file_size_mb / upload_time if upload_time > 0 else 0
        logger.info(f"All {len(chunks)} chunks uploaded in {upload_time:.2f}s ({speed:.2f} MB/s)")

        resolved_path = self._resolved_path(config.remote_path, outcomes)
        item = await self._resolver.resolve(resolved_path)

        return UploadResult(
            item_id=item.id,
            success=True,
            name=item.name,
            remote_path=resolved_path,
            file_size=file_size,
            chunk_count=len(chunks),
            outcomes=sorted(outcomes, key=lambda o: o.task.start)
        )

    async def _upload_chunks(
        self,
        file_path: Path,
        chunks: List[ChunkTask],
        session: UploadSession,
        config: UploadConfig
    ) -> List[ChunkOutcome]:
        """
        Fan chunks out to a fixed pool of workers.

        The queue is filled with every chunk up front; a worker exits when
        the queue is empty, a chunk has failed terminally, or the upload
        was cancelled. Returns once every worker has finished.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=len(chunks))
        for chunk in chunks:
            queue.put_nowait(chunk)

        outcomes: List[ChunkOutcome] = []
        failed = asyncio.Event()
        progress = UploadProgress(total_chunks=len(chunks), total_bytes=session.file_size)

        def should_continue() -> bool:
            return not failed.is_set() and not config.cancelled

        uploader = ChunkUploader(
            self._transport,
            self._credentials,
            session,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            should_continue=lambda: not config.cancelled
        )

        async def worker(worker_id: int) -> None:
            async with self._reader_factory(file_path) as reader:
                while should_continue():
                    try:
                        task = queue.get_nowait()
                    except asyncio.QueueEmpty:
                        break
                    outcome = await uploader.upload(task, reader)
                    outcomes.append(outcome)
                    if not outcome.success:
                        failed.set()
                        continue
                    self._report_progress(progress, task, config.progress_callback)
            logger.debug(f"Worker {worker_id} stopped")

        worker_count = min(config.parallelism, len(chunks))
        workers = [asyncio.create_task(worker(i)) for i in range(worker_count)]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        return outcomes

    def _report_progress(
        self,
        progress: UploadProgress,
        task: ChunkTask,
        callback: Optional[Callable[[UploadProgress], None]]
    ) -> None:
        progress.uploaded_chunks += 1
        progress.uploaded_bytes += task.length
        logger.debug(f"Progress: {progress.uploaded_chunks}/{progress.total_chunks} chunks ({progress.percentage:.1f}%)")
        if callback:
            callback(progress)

    def _check_outcomes(
        self,
        chunks: List[ChunkTask],
        outcomes: List[ChunkOutcome],
        config: UploadConfig
    ) -> None:
        """Every chunk must have a successful outcome."""
        succeeded = {o.task for o in outcomes if o.success}
        if len(succeeded) == len(chunks):
            return

        if config.cancelled:
            raise UploadCancelledError(
                f"Upload cancelled after {len(succeeded)}/{len(chunks)} chunks", operation='upload'
            )

        failed = [o for o in outcomes if not o.success]
        skipped = len(chunks) - len(succeeded) - len(failed)
        ranges = ', '.join(f"{o.task.start}-{o.task.end}" for o in failed)
        first = failed[0] if failed else None
        raise ChunkUploadError(
            f"{len(failed)} chunk(s) failed after retries ({ranges}); "
            f"{skipped} not attempted",
            start=first.task.start if first else None,
            end=first.task.end if first else None,
            operation='upload',
            body=first.error if first else None
        )

    def _resolved_path(self, remote_path: str, outcomes: List[ChunkOutcome]) -> str:
        """Path of the created item, following a rename-on-conflict."""
        final_names = [o.final_name for o in outcomes if o.final_name]
        if not final_names:
            return remote_path
        parent, requested = posixpath.split(remote_path)
        actual = final_names[0]
        if actual != requested:
            logger.warning(f"Remote renamed '{requested}' to '{actual}' to avoid a conflict")
        return posixpath.join(parent, actual) if parent else actual
