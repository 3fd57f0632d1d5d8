"""
API configuration module.

Provides configuration for the Microsoft Graph client and the
OAuth token endpoint.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import ssl


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    Allows customization of SSL behavior for security requirements.
    """
    verify: bool = True
    ca_file: Optional[str] = None

    def create_ssl_context(self):
        """Create SSL context from configuration."""
        if not self.verify:
            return False  # Disable SSL verification

        context = ssl.create_default_context()
        if self.ca_file:
            context.load_verify_locations(self.ca_file)
        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    Granular control over different timeout types.
    """
    total: float = 300.0  # Total request timeout
    connect: float = 30.0  # Connection timeout
    sock_read: float = 120.0  # Socket read timeout

    def to_aiohttp_timeout(self):
        """Convert to aiohttp ClientTimeout."""
        import aiohttp
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Centralizes endpoints, timeouts and connection pool settings.
    """
    # Endpoints
    graph_url: str = 'https://graph.microsoft.com/v1.0'
    token_url: str = 'https://login.microsoftonline.com/common/oauth2/v2.0/token'

    user_agent: str = 'onedpy/1.0.0'

    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Connection pool settings
    limit_per_host: int = 16
    limit: int = 64

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    def drive_url(self, drive_id: str) -> str:
        """Base URL for a drive."""
        return f"{self.graph_url.rstrip('/')}/drives/{drive_id}"

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
