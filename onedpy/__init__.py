"""
onedpy - Async chunked uploads to OneDrive with QuickXorHash verification.

Usage:
    >>> from onedpy import OneDriveClient
    >>>
    >>> async with OneDriveClient.from_config_file(remote_name="oned") as drive:
    ...     report = await drive.upload("backup.tar", "Backups", parallelism=4)
    ...     print(report.verification.status)
"""
import logging
from .client import OneDriveClient, UploadReport, default_config_path

# Configuration
from .core.api import APIConfig, SSLConfig, TimeoutConfig, QuotaInfo
from .core.config import RcloneConfig, RemoteConfig, RemoteRegistry

# Upload and verification
from .core.upload import UploadConfig, UploadResult, UploadProgress
from .core.integrity import IntegrityStatus, VerificationResult
from .core.crypto import QuickXorHash, hash_file

from .core.exceptions import (
    OneDriveError,
    ConfigError,
    AuthError,
    SessionError,
    ChunkUploadError,
    MetadataError,
    HashFetchError,
    HashMismatchError,
    MalformedResponseError,
    UploadCancelledError,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for onedpy modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'onedpy',
        'onedpy.client',
        'onedpy.auth',
        'onedpy.api',
        'onedpy.config',
        'onedpy.upload',
        'onedpy.upload.coordinator',
        'onedpy.upload.chunk',
        'onedpy.upload.file',
        'onedpy.upload.session',
        'onedpy.upload.item',
        'onedpy.integrity',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'OneDriveClient',
    'UploadReport',
    'default_config_path',
    'APIConfig',
    'SSLConfig',
    'TimeoutConfig',
    'QuotaInfo',
    'RcloneConfig',
    'RemoteConfig',
    'RemoteRegistry',
    'UploadConfig',
    'UploadResult',
    'UploadProgress',
    'IntegrityStatus',
    'VerificationResult',
    'QuickXorHash',
    'hash_file',
    'OneDriveError',
    'ConfigError',
    'AuthError',
    'SessionError',
    'ChunkUploadError',
    'MetadataError',
    'HashFetchError',
    'HashMismatchError',
    'MalformedResponseError',
    'UploadCancelledError',
    'setup_logging',
    '__version__',
]
