"""
QuickXorHash.

Microsoft's content hash for OneDrive files: a 160-bit circular
register into which the byte at stream offset n is XORed after a
left rotation of (n * 11) mod 160 bits. The little-endian register
is then XORed with the 64-bit little-endian stream length in its
last 8 bytes.

Because 160 * 11 is a multiple of 160, bytes 160 apart land on the
same rotation. update() therefore only XOR-folds the stream into one
160-byte lane vector (as Python ints), and digest() applies the 160
rotations once.
"""
import base64
from pathlib import Path
from typing import Union

import aiofiles

WIDTH_IN_BITS = 160
SHIFT = 11
LANE_BYTES = WIDTH_IN_BITS
LANE_BITS = LANE_BYTES * 8
_REGISTER_MASK = (1 << WIDTH_IN_BITS) - 1
_LENGTH_MASK = (1 << 64) - 1


def _fold(value: int, lanes: int) -> int:
    """XOR-fold an int spanning `lanes` lane vectors down to one."""
    while lanes > 1:
        half = (lanes + 1) // 2
        shift = half * LANE_BITS
        value = (value & ((1 << shift) - 1)) ^ (value >> shift)
        lanes = half
    return value


class QuickXorHash:
    """
    hashlib-style QuickXorHash.

    Example:
        >>> h = QuickXorHash()
        >>> h.update(b"J")
        >>> h.b64digest()
        'SgAAAAAAAAAAAAAAAQAAAAAAAAA='
    """

    name = 'quickxorhash'
    digest_size = 20
    block_size = 64

    def __init__(self, data: bytes = b''):
        self._lanes = 0
        self._tail = b''
        self._length = 0
        if data:
            self.update(data)

    def update(self, data: Union[bytes, bytearray, memoryview]) -> None:
        """Feed more bytes."""
        if not data:
            return
        self._length += len(data)

        if self._tail:
            view = memoryview(self._tail + bytes(data))
        else:
            view = memoryview(data).cast('B')

        usable = len(view) - len(view) % LANE_BYTES
        if usable:
            value = int.from_bytes(view[:usable], 'little')
            self._lanes ^= _fold(value, usable // LANE_BYTES)
        self._tail = bytes(view[usable:])

    def copy(self) -> 'QuickXorHash':
        clone = QuickXorHash()
        clone._lanes = self._lanes
        clone._tail = self._tail
        clone._length = self._length
        return clone

    def digest(self) -> bytes:
        """Return the 20-byte digest of the data fed so far."""
        lanes = self._lanes
        if self._tail:
            # The tail always starts on a lane boundary
            lanes ^= int.from_bytes(self._tail, 'little')

        register = 0
        for index, byte in enumerate(lanes.to_bytes(LANE_BYTES, 'little')):
            if not byte:
                continue
            rotation = (index * SHIFT) % WIDTH_IN_BITS
            register ^= ((byte << rotation) | (byte >> (WIDTH_IN_BITS - rotation))) & _REGISTER_MASK

        out = bytearray(register.to_bytes(self.digest_size, 'little'))
        length = (self._length & _LENGTH_MASK).to_bytes(8, 'little')
        offset = self.digest_size - 8
        for i in range(8):
            out[offset + i] ^= length[i]
        return bytes(out)

    def hexdigest(self) -> str:
        return self.digest().hex()

    def b64digest(self) -> str:
        """Digest in standard base64, as reported by the Graph API."""
        return base64.b64encode(self.digest()).decode('ascii')


async def hash_file(path: Union[str, Path], read_size: int = 4 * 1024 * 1024) -> str:
    """
    Stream a file once through QuickXorHash.

    Returns:
        Base64 digest
    """
    hasher = QuickXorHash()
    async with aiofiles.open(path, 'rb') as f:
        while True:
            block = await f.read(read_size)
            if not block:
                break
            hasher.update(block)
    return hasher.b64digest()
