"""Integrity verification module."""
from .verifier import IntegrityStatus, VerificationResult, IntegrityVerifier, HashSource

__all__ = [
    'IntegrityStatus',
    'VerificationResult',
    'IntegrityVerifier',
    'HashSource',
]
