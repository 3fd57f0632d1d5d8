"""Item resolution service."""
from ..protocols import UploadTransport
from ...api.models import DriveItem
from ...exceptions import MetadataError, MalformedResponseError
from ...logging import get_logger

logger = get_logger('onedpy.upload.item')


class ItemResolver:
    """
    Resolves the uploaded item by querying its path.

    Any failure is a MetadataError: the bytes were transferred but the
    caller cannot reference the result.
    """

    OPERATION = 'get_item_by_path'

    def __init__(self, transport: UploadTransport):
        self._transport = transport

    async def resolve(self, remote_path: str) -> DriveItem:
        """
        Look up the item at remote_path.

        Raises:
            MetadataError: On a non-success or malformed response, or an
                empty identifier
        """
        logger.debug(f"Resolving item at {remote_path}")
        try:
            item = await self._transport.get_item_by_path(remote_path)
        except MalformedResponseError as e:
            raise MetadataError(
                f"Cannot read item at {remote_path}", operation=self.OPERATION, status=e.status, body=e.body
            ) from e
        if not item.id:
            raise MetadataError(f"Item at {remote_path} has no identifier", operation=self.OPERATION)
        logger.info(f"Resolved {item.name} ({item.id})")
        return item
