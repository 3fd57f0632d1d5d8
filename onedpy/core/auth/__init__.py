"""
Authentication module.

Holds OAuth credentials and refreshes them on expiry.
"""
from .credentials import Credentials, TokenGrant, parse_expiry
from .manager import CredentialManager, TokenRefresher, OAuthTokenRefresher

__all__ = [
    'Credentials',
    'TokenGrant',
    'parse_expiry',
    'CredentialManager',
    'TokenRefresher',
    'OAuthTokenRefresher',
]
