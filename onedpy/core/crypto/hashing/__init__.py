"""
Hashing utilities.
"""
from .quickxorhash import QuickXorHash, hash_file

__all__ = [
    'QuickXorHash',
    'hash_file',
]
