"""
Chunk upload service.

Uploads one byte range to an upload session, with a fixed-delay retry.
"""
import json
import logging
import time
from typing import Callable, Optional

from ..models import ChunkOutcome, ChunkTask, UploadSession
from ..protocols import ChunkReaderProtocol, CredentialProvider, UploadTransport
from ...api.graph_client import ChunkResponse
from ...api.retry import RetryPolicy
from ...exceptions import ChunkUploadError


class ChunkUploader:
    """
    Uploads chunks of one session.

    Responsibilities:
    - Re-check credential validity before every attempt
    - Read the range through the worker's own reader
    - Retry ChunkUploadError with a fixed delay; anything else propagates
    - Report a ChunkOutcome per chunk
    """

    def __init__(
        self,
        transport: UploadTransport,
        credentials: CredentialProvider,
        session: UploadSession,
        max_retries: int = 3,
        retry_delay: float = 5.0,
        should_continue: Optional[Callable[[], bool]] = None
    ):
        """
        Initialize chunk uploader.

        Args:
            transport: Remote side of the upload
            credentials: Shared credential capability
            session: Open upload session
            max_retries: Attempts per chunk (first try included)
            retry_delay: Seconds between attempts
            should_continue: Checked before every retry; False stops retrying
        """
        self._transport = transport
        self._credentials = credentials
        self._session = session
        self._policy = RetryPolicy.fixed(
            max_retries,
            retry_delay,
            (ChunkUploadError,),
            name='upload_chunk',
            should_continue=should_continue
        )
        self._logger = logging.getLogger('onedpy.upload.chunk')

    @property
    def session(self) -> UploadSession:
        return self._session

    async def upload(self, task: ChunkTask, reader: ChunkReaderProtocol) -> ChunkOutcome:
        """
        Upload one chunk until accepted or out of attempts.

        Args:
            task: Chunk to upload
            reader: The calling worker's file reader

        Returns:
            ChunkOutcome (success=False once retries are exhausted)

        Raises:
            AuthError: If the token cannot be refreshed
        """
        data: Optional[bytes] = None
        attempts = 0
        total = self._session.file_size

        async def attempt() -> ChunkResponse:
            nonlocal data, attempts
            attempts += 1
            await self._credentials.ensure_valid()
            if data is None:
                data = await reader.read_chunk(task)
            self._logger.debug(
                f"Uploading chunk {task.index} ({task.content_range(total)}, attempt {attempts})"
            )
            return await self._transport.upload_chunk(
                self._session.upload_url, data, task.start, task.end, total
            )

        def on_failure(error: BaseException, attempt_no: int) -> None:
            self._logger.warning(
                f"Chunk {task.index} ({task.start}-{task.end}) attempt "
                f"{attempt_no}/{self._policy.max_attempts} failed: {error}"
            )

        upload_start = time.time()
        try:
            response, _ = await self._policy.run(attempt, on_failure)
        except ChunkUploadError as e:
            self._logger.error(
                f"Chunk {task.index} ({task.start}-{task.end}) failed after {attempts} attempts"
            )
            return ChunkOutcome(task=task, attempts=attempts, success=False, error=str(e))

        upload_time = time.time() - upload_start
        chunk_size_kb = task.length / 1024
        speed_kbps = (chunk_size_kb / upload_time) if upload_time > 0 else 0
        self._logger.debug(
            f"Chunk {task.index} uploaded in {upload_time:.2f}s ({speed_kbps:.1f} KB/s), status {response.status}"
        )
        return ChunkOutcome(
            task=task,
            attempts=attempts,
            success=True,
            final_name=self._final_name(response)
        )

    def _final_name(self, response: ChunkResponse) -> Optional[str]:
        """Item name from the completing response, if it carries one."""
        if not response.is_final or not response.body:
            return None
        try:
            payload = json.loads(response.body)
        except ValueError:
            self._logger.debug("Final chunk response is not JSON")
            return None
        if isinstance(payload, dict) and isinstance(payload.get('name'), str):
            return payload['name']
        return None
