"""Tests for QuickXorHash."""
import base64
import os

import pytest

from onedpy.core.crypto import QuickXorHash, hash_file


def reference_quickxorhash(data: bytes) -> bytes:
    """Bit-at-a-time QuickXorHash: bit b of byte n lands at bit (n * 11 + b) mod 160."""
    bits = [0] * 160
    for n, byte in enumerate(data):
        for b in range(8):
            if byte >> b & 1:
                bits[(n * 11 + b) % 160] ^= 1
    out = bytearray(20)
    for position, bit in enumerate(bits):
        if bit:
            out[position // 8] |= 1 << (position % 8)
    for i, length_byte in enumerate(len(data).to_bytes(8, 'little')):
        out[12 + i] ^= length_byte
    return bytes(out)


class TestQuickXorHash:
    """Test suite for QuickXorHash."""

    def test_empty(self):
        assert QuickXorHash().b64digest() == "AAAAAAAAAAAAAAAAAAAAAAAAAAA="

    def test_single_byte(self):
        assert QuickXorHash(b"J").b64digest() == "SgAAAAAAAAAAAAAAAQAAAAAAAAA="

    def test_digest_size(self):
        h = QuickXorHash(b"hello")

        assert len(h.digest()) == h.digest_size == 20
        assert h.hexdigest() == h.digest().hex()
        assert base64.b64decode(h.b64digest()) == h.digest()

    @pytest.mark.parametrize("size", [1, 2, 19, 20, 21, 159, 160, 161, 319, 320, 1000, 4096, 10007])
    def test_matches_reference(self, size):
        """Test agreement with the bit-level reference across lane boundaries."""
        data = os.urandom(size)

        assert QuickXorHash(data).digest() == reference_quickxorhash(data)

    @pytest.mark.parametrize("splits", [[1], [7, 153], [159, 1, 160], [160, 160], [3, 500, 77]])
    def test_split_updates(self, splits):
        """Test any split of the stream gives the same digest."""
        data = os.urandom(1200)
        h = QuickXorHash()
        offset = 0
        for size in splits:
            h.update(data[offset:offset + size])
            offset += size
        h.update(data[offset:])

        assert h.digest() == QuickXorHash(data).digest()

    def test_deterministic(self):
        data = os.urandom(5000)
        assert QuickXorHash(data).digest() == QuickXorHash(data).digest()

    def test_order_sensitive(self):
        """Test swapping two bytes changes the digest."""
        assert QuickXorHash(b"ab").digest() != QuickXorHash(b"ba").digest()

    def test_length_sensitive(self):
        """Test appended zero bytes change the digest."""
        assert QuickXorHash(b"a").digest() != QuickXorHash(b"a\x00").digest()

    def test_copy_is_independent(self):
        h = QuickXorHash(b"abc")
        clone = h.copy()
        clone.update(b"def")

        assert h.digest() == QuickXorHash(b"abc").digest()
        assert clone.digest() == QuickXorHash(b"abcdef").digest()

    def test_empty_update_is_noop(self):
        h = QuickXorHash(b"abc")
        h.update(b"")
        assert h.digest() == QuickXorHash(b"abc").digest()

    def test_accepts_memoryview(self):
        data = bytearray(os.urandom(300))
        assert QuickXorHash(memoryview(data)).digest() == QuickXorHash(bytes(data)).digest()


class TestHashFile:
    """Test suite for hash_file."""

    @pytest.mark.asyncio
    async def test_hash_file(self, make_file):
        path, data = make_file(10000)

        assert await hash_file(path, read_size=333) == QuickXorHash(data).b64digest()

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            await hash_file(tmp_path / "missing.bin")
