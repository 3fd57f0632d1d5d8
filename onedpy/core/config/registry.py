"""
Remote registry.

Explicit replacement for per-remote lookup tables: built once from
configuration and passed to whichever component needs it.
"""
from typing import Dict, Iterable, Iterator, List, Optional
from urllib.parse import quote

from .rclone import RcloneConfig, RemoteConfig
from ..exceptions import ConfigError
from ..utils import join_remote_path


class RemoteRegistry:
    """
    Read-only registry of configured remotes.

    Example:
        >>> registry = RemoteRegistry.from_config(RcloneConfig.load(path))
        >>> registry.full_remote_path("oned", "Movies", "a.mkv")
        'Public/Movies/a.mkv'
    """

    def __init__(self, remotes: Dict[str, RemoteConfig]):
        self._remotes = dict(remotes)

    @classmethod
    def from_config(cls, config: RcloneConfig, names: Optional[Iterable[str]] = None) -> 'RemoteRegistry':
        """
        Build a registry from parsed configuration.

        Args:
            config: Parsed rclone configuration
            names: Only load these remotes (default: every OneDrive section)
        """
        if names is None:
            return cls(config.remotes())
        return cls({name: config.remote(name) for name in names})

    def __contains__(self, name: str) -> bool:
        return name in self._remotes

    def __iter__(self) -> Iterator[RemoteConfig]:
        return iter(self._remotes.values())

    def __len__(self) -> int:
        return len(self._remotes)

    def names(self) -> List[str]:
        return list(self._remotes)

    def get(self, name: str) -> RemoteConfig:
        """
        Get a remote by name.

        Raises:
            ConfigError: If no such remote is configured
        """
        try:
            return self._remotes[name]
        except KeyError:
            known = ', '.join(self._remotes) or 'none'
            raise ConfigError(f"Unknown remote '{name}' (configured: {known})", operation='lookup_remote') from None

    def root_folder(self, name: str) -> str:
        return self.get(name).root_folder

    def base_url(self, name: str) -> Optional[str]:
        return self.get(name).base_url

    def full_remote_path(self, name: str, remote_folder: str, file_name: str) -> str:
        """Remote path under the remote's root folder."""
        return join_remote_path(self.root_folder(name), remote_folder, file_name)

    def download_url(self, name: str, remote_folder: str, file_name: str) -> Optional[str]:
        """
        Public download link for an uploaded file.

        The link is relative to the index, so the root folder is not
        part of it. Returns None when the remote has no base URL.
        """
        base_url = self.base_url(name)
        if not base_url:
            return None
        url_path = join_remote_path(remote_folder, file_name)
        return f"{base_url}/{quote(url_path, safe='/')}"
