"""Content hashing for integrity checks."""
from .hashing import QuickXorHash, hash_file

__all__ = [
    'QuickXorHash',
    'hash_file',
]
