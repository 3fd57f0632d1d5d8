"""Microsoft Graph API module."""
from .config import APIConfig, SSLConfig, TimeoutConfig
from .graph_client import GraphClient, ChunkResponse, TokenProvider, CHUNK_ACCEPTED
from .models import DriveItem, QuotaInfo
from .retry import RetryStrategy, FixedDelayStrategy, RetryPolicy

__all__ = [
    # Client
    'GraphClient',
    'ChunkResponse',
    'TokenProvider',
    'CHUNK_ACCEPTED',

    # Models
    'DriveItem',
    'QuotaInfo',

    # Configuration
    'APIConfig',
    'SSLConfig',
    'TimeoutConfig',

    # Retry
    'RetryStrategy',
    'FixedDelayStrategy',
    'RetryPolicy',
]
