"""Configuration module: rclone credential store and remote registry."""
from .rclone import RcloneConfig, RemoteConfig, REQUIRED_FIELDS
from .registry import RemoteRegistry

__all__ = [
    'RcloneConfig',
    'RemoteConfig',
    'REQUIRED_FIELDS',
    'RemoteRegistry',
]
