"""
Post-upload integrity verification.

Compares the local QuickXorHash of a file against the hash the drive
computes for the uploaded item. The remote hash can lag behind the
upload, so fetching it is retried with a fixed delay.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, Union

from ..api.retry import RetryPolicy
from ..crypto import hash_file
from ..exceptions import AuthError, HashFetchError, HashMismatchError, MalformedResponseError
from ..logging import get_logger

logger = get_logger('onedpy.integrity')


class IntegrityStatus(Enum):
    VERIFIED = 'verified'
    MISMATCH = 'mismatch'
    UNVERIFIED = 'unverified'
    SKIPPED = 'skipped'


class HashSource(Protocol):
    async def get_quick_xor_hash(self, item_id: str) -> str:
        ...


@dataclass
class VerificationResult:
    """Outcome of comparing local and remote content hashes."""
    status: IntegrityStatus
    local_hash: Optional[str] = None
    remote_hash: Optional[str] = None
    attempts: int = 0
    detail: str = ''

    @property
    def ok(self) -> bool:
        """True unless the hashes were compared and differ."""
        return self.status is not IntegrityStatus.MISMATCH

    @classmethod
    def skipped(cls) -> 'VerificationResult':
        return cls(IntegrityStatus.SKIPPED, detail='verification skipped')

    def raise_for_status(self) -> None:
        """Raise for a mismatch or an unverified result."""
        if self.status is IntegrityStatus.MISMATCH:
            raise HashMismatchError(
                f"QuickXorHash mismatch: local {self.local_hash}, remote {self.remote_hash}",
                local_hash=self.local_hash or '',
                remote_hash=self.remote_hash or ''
            )
        if self.status is IntegrityStatus.UNVERIFIED:
            raise HashFetchError(f"Integrity not verified: {self.detail}", operation='verify')


class IntegrityVerifier:
    """
    Verifies an uploaded item against its local source.

    A hash that cannot be fetched within hash_retries attempts yields
    UNVERIFIED, never a failure of the upload itself.
    """

    def __init__(
        self,
        hash_source: HashSource,
        hash_retries: int = 5,
        hash_retry_delay: float = 10.0
    ):
        self._source = hash_source
        self._policy = RetryPolicy.fixed(
            hash_retries,
            hash_retry_delay,
            (HashFetchError,),
            name='get_quick_xor_hash'
        )

    async def verify(self, file_path: Union[str, Path], item_id: str) -> VerificationResult:
        """
        Hash the local file and compare with the remote hash of item_id.

        Never raises. A remote hash that cannot be fetched, including
        after a failed token refresh, yields UNVERIFIED.
        """
        try:
            local_hash = await hash_file(file_path)
        except OSError as e:
            logger.warning(f"Could not hash local file {file_path}: {e}")
            return VerificationResult(IntegrityStatus.UNVERIFIED, detail=f"local hash failed: {e}")
        logger.debug(f"Local QuickXorHash: {local_hash}")

        attempts = 0

        async def fetch() -> str:
            nonlocal attempts
            attempts += 1
            return await self._source.get_quick_xor_hash(item_id)

        def on_failure(error: BaseException, attempt: int) -> None:
            logger.info(f"Remote hash not available (attempt {attempt}/{self._policy.max_attempts}): {error}")

        try:
            remote_hash, _ = await self._policy.run(fetch, on_failure)
        except HashFetchError as e:
            logger.warning(f"Giving up on remote hash after {attempts} attempts")
            return VerificationResult(
                IntegrityStatus.UNVERIFIED, local_hash=local_hash, attempts=attempts, detail=str(e)
            )
        except MalformedResponseError as e:
            logger.warning(f"Remote hash response unusable: {e}")
            return VerificationResult(
                IntegrityStatus.UNVERIFIED, local_hash=local_hash, attempts=attempts, detail=str(e)
            )
        except AuthError as e:
            logger.warning(f"Token refresh failed while fetching remote hash: {e}")
            return VerificationResult(
                IntegrityStatus.UNVERIFIED, local_hash=local_hash, attempts=attempts, detail=str(e)
            )

        if local_hash == remote_hash:
            logger.info(f"QuickXorHash verified: {local_hash}")
            return VerificationResult(
                IntegrityStatus.VERIFIED, local_hash=local_hash, remote_hash=remote_hash, attempts=attempts
            )

        logger.warning(f"QuickXorHash mismatch: local {local_hash}, remote {remote_hash}")
        return VerificationResult(
            IntegrityStatus.MISMATCH,
            local_hash=local_hash,
            remote_hash=remote_hash,
            attempts=attempts,
            detail='content hash mismatch'
        )
