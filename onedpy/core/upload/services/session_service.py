"""Upload session service."""
from ..models import UploadSession
from ..protocols import UploadTransport
from ...exceptions import MalformedResponseError, SessionError
from ...logging import get_logger

logger = get_logger('onedpy.upload.session')


class UploadSessionManager:
    """
    Opens upload sessions.

    Sessions are opened with rename-on-conflict, so an existing item is
    never overwritten. Every failure to open one is a SessionError.
    """

    OPERATION = 'create_upload_session'

    def __init__(self, transport: UploadTransport):
        self._transport = transport

    async def create_session(self, remote_path: str, file_size: int) -> UploadSession:
        """
        Open a session for remote_path.

        Args:
            remote_path: Target path in the drive
            file_size: Total size that will be uploaded

        Returns:
            UploadSession

        Raises:
            SessionError: On a non-success or malformed response
        """
        logger.info(f"Creating upload session for {remote_path}")
        try:
            upload_url = await self._transport.create_upload_session(remote_path)
        except MalformedResponseError as e:
            raise SessionError(
                f"Cannot open upload session for {remote_path}: {e.args[0]}",
                operation=self.OPERATION, status=e.status, body=e.body
            ) from e
        logger.debug("Upload session URL obtained")
        return UploadSession(remote_path=remote_path, upload_url=upload_url, file_size=file_size)
