"""Retry strategies using Strategy Pattern."""
from .retry_strategy import RetryStrategy, FixedDelayStrategy, RetryPolicy

__all__ = [
    'RetryStrategy',
    'FixedDelayStrategy',
    'RetryPolicy',
]
