"""
Custom exceptions for OneDrive upload operations.

Every error raised at a network boundary carries the operation name,
the HTTP status (when there was one) and the response body.
"""
from typing import Optional


class OneDriveError(Exception):
    """Base exception for all onedpy errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status: Optional[int] = None,
        body: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            operation: Name of the failing operation (e.g. "create_upload_session")
            status: HTTP status code (if available)
            body: Raw response body (if available)
        """
        self.operation = operation
        self.status = status
        self.body = body
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        details = []
        if self.operation:
            details.append(f"operation={self.operation}")
        if self.status is not None:
            details.append(f"status={self.status}")
        if self.body:
            details.append(f"response={self.body}")
        if details:
            return f"{message} ({', '.join(details)})"
        return message


class ConfigError(OneDriveError):
    """Missing or malformed credential/configuration fields."""
    pass


class AuthError(OneDriveError):
    """Token refresh exchange failed; no valid access token exists."""
    pass


class SessionError(OneDriveError):
    """Upload session could not be opened."""
    pass


class ChunkUploadError(OneDriveError):
    """
    A chunk transfer failed.

    Raised per attempt for HTTP, transport and read failures, and once
    more by the coordinator when any chunk exhausts its retries.
    """

    def __init__(
        self,
        message: str,
        start: Optional[int] = None,
        end: Optional[int] = None,
        **kwargs
    ) -> None:
        self.start = start
        self.end = end
        super().__init__(message, **kwargs)


class MetadataError(OneDriveError):
    """Uploaded item could not be resolved. The bytes remain on the remote."""
    pass


class HashFetchError(OneDriveError):
    """Remote hash is unavailable (not materialized yet or request failed)."""
    pass


class HashMismatchError(OneDriveError):
    """Local and remote content hashes differ."""

    def __init__(self, message: str, local_hash: str, remote_hash: str) -> None:
        self.local_hash = local_hash
        self.remote_hash = remote_hash
        super().__init__(message, operation="verify")


class MalformedResponseError(OneDriveError):
    """Response body could not be decoded or lacks a required field."""
    pass


class UploadCancelledError(OneDriveError):
    """Upload was stopped by an external cancellation signal."""
    pass
