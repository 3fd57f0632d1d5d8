"""
Credential models.

Contains the OAuth token state shared by all chunk workers of an upload.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from ..exceptions import ConfigError

# RFC 3339 with optional fractional seconds of any precision
_TIMESTAMP_RE = re.compile(
    r'^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})'
    r'(?:\.(?P<frac>\d+))?'
    r'(?P<tz>[Zz]|[+-]\d{2}:?\d{2})?$'
)


def parse_expiry(value: str) -> datetime:
    """
    Parse a token expiry timestamp.

    Accepts RFC 3339 timestamps as written by rclone, including
    nanosecond fractions (truncated to microseconds). Naive timestamps
    are taken as UTC.

    Raises:
        ConfigError: If the value is not a timestamp
    """
    match = _TIMESTAMP_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ConfigError(f"Invalid token expiry timestamp: {value!r}")

    text = match.group('base').replace('t', 'T').replace(' ', 'T')
    frac = match.group('frac')
    if frac:
        text += '.' + frac[:6].ljust(6, '0')

    tz = match.group('tz')
    if tz is None or tz in ('Z', 'z'):
        text += '+00:00'
    elif ':' not in tz:
        text += f"{tz[:3]}:{tz[3:]}"
    else:
        text += tz

    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ConfigError(f"Invalid token expiry timestamp: {value!r}") from e


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Credentials:
    """
    OAuth credentials for one remote.

    Mutated in place by CredentialManager while it holds its lock.
    `expiry` is always the expiry of the access token currently held.

    Attributes:
        client_id: Application (client) ID
        client_secret: Application secret
        access_token: Current bearer token
        refresh_token: Refresh token for the next exchange
        expiry: Timezone-aware expiry of access_token
    """
    client_id: str
    client_secret: str
    access_token: str
    refresh_token: str
    expiry: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.expiry.tzinfo is None:
            self.expiry = self.expiry.replace(tzinfo=timezone.utc)

    def is_expired(self, now: datetime) -> bool:
        return not now < self.expiry

    def __repr__(self) -> str:
        return (
            f"Credentials(client_id={self.client_id!r}, "
            f"expiry={self.expiry.isoformat()})"
        )

    @classmethod
    def from_token_blob(
        cls,
        client_id: str,
        client_secret: str,
        token: Dict[str, Any]
    ) -> 'Credentials':
        """
        Create from the decoded rclone `token` JSON blob.

        Raises:
            ConfigError: If access_token, refresh_token or expiry is missing
        """
        missing = [k for k in ('access_token', 'refresh_token', 'expiry') if not token.get(k)]
        if missing:
            raise ConfigError(f"Token is missing field(s): {', '.join(missing)}")
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            access_token=token['access_token'],
            refresh_token=token['refresh_token'],
            expiry=parse_expiry(token['expiry'])
        )


@dataclass(frozen=True)
class TokenGrant:
    """Result of a refresh-token exchange."""
    access_token: str
    refresh_token: str
    expires_in: int
