"""
Credential manager.

Guards the shared Credentials with one asyncio.Lock and refreshes the
access token through a pluggable TokenRefresher.
"""
import asyncio
import json
from datetime import datetime, timedelta
from typing import Optional, Protocol

import aiohttp

from .credentials import Credentials, TokenGrant, utcnow
from ..api.config import APIConfig
from ..exceptions import AuthError
from ..logging import get_logger

logger = get_logger('onedpy.auth')


class TokenRefresher(Protocol):
    """Protocol for refresh-token exchanges."""

    async def refresh(self, credentials: Credentials) -> TokenGrant:
        """
        Exchange the refresh token for a new access token.

        Raises:
            AuthError: On any non-success or malformed response
        """
        ...


class OAuthTokenRefresher:
    """
    Refreshes tokens against the Microsoft identity platform.

    Example:
        >>> refresher = OAuthTokenRefresher(session)
        >>> grant = await refresher.refresh(credentials)
    """

    OPERATION = 'refresh_token'

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: Optional[APIConfig] = None
    ):
        """
        Initialize refresher.

        Args:
            session: Shared HTTP session
            config: API configuration (token endpoint)
        """
        self._session = session
        self._config = config or APIConfig.default()

    async def refresh(self, credentials: Credentials) -> TokenGrant:
        data = {
            'client_id': credentials.client_id,
            'client_secret': credentials.client_secret,
            'refresh_token': credentials.refresh_token,
            'grant_type': 'refresh_token',
        }
        try:
            async with self._session.post(self._config.token_url, data=data) as response:
                body = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AuthError(f"Token refresh request failed: {e}", operation=self.OPERATION) from e

        if not 200 <= status < 300:
            raise AuthError("Token refresh rejected", operation=self.OPERATION, status=status, body=body)

        try:
            payload = json.loads(body)
            return TokenGrant(
                access_token=payload['access_token'],
                refresh_token=payload.get('refresh_token') or credentials.refresh_token,
                expires_in=int(payload['expires_in'])
            )
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(
                f"Malformed token refresh response: {e}",
                operation=self.OPERATION,
                status=status,
                body=body
            ) from e


class CredentialManager:
    """
    Capability object handing out a valid bearer token.

    Every caller goes through access_token(), which checks expiry and
    refreshes under the lock before returning the current token. A
    refresh and a read can never interleave.
    """

    def __init__(self, credentials: Credentials, refresher: TokenRefresher):
        """
        Initialize manager.

        Args:
            credentials: Credentials to guard (mutated in place)
            refresher: Performs the refresh-token exchange
        """
        self._credentials = credentials
        self._refresher = refresher
        self._lock = asyncio.Lock()
        self.refresh_count = 0

    @property
    def expiry(self) -> datetime:
        return self._credentials.expiry

    async def ensure_valid(self, now: Optional[datetime] = None) -> None:
        """
        Refresh the access token if it has expired.

        No-op while now < expiry. Otherwise performs exactly one refresh
        exchange and sets expiry to now + lifetime.

        Raises:
            AuthError: If the refresh fails
        """
        async with self._lock:
            await self._ensure_valid_locked(now)

    async def access_token(self, now: Optional[datetime] = None) -> str:
        """Ensure the token is valid, then return it."""
        async with self._lock:
            await self._ensure_valid_locked(now)
            return self._credentials.access_token

    async def _ensure_valid_locked(self, now: Optional[datetime]) -> None:
        now = now or utcnow()
        creds = self._credentials
        if not creds.is_expired(now):
            return

        logger.info("Access token expired, refreshing")
        grant = await self._refresher.refresh(creds)
        if not grant.access_token or grant.expires_in <= 0:
            raise AuthError("Token refresh returned an unusable token", operation=OAuthTokenRefresher.OPERATION)

        creds.access_token = grant.access_token
        creds.refresh_token = grant.refresh_token
        creds.expiry = now + timedelta(seconds=grant.expires_in)
        self.refresh_count += 1
        logger.info(f"Access token refreshed, valid until {creds.expiry.isoformat()}")
