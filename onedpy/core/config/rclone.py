"""
rclone-style credential store.

Each section of the INI file describes one OneDrive remote:

    [oned]
    type = onedrive
    client_id = ...
    client_secret = ...
    token = {"access_token":"...","refresh_token":"...","expiry":"2024-01-01T00:00:00Z"}
    drive_id = ...
    drive_type = personal
    root_folder = Public          ; optional
    base_url = https://index.example.com  ; optional
"""
import configparser
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..auth.credentials import Credentials
from ..exceptions import ConfigError
from ..logging import get_logger

logger = get_logger('onedpy.config')

REQUIRED_FIELDS = ('client_id', 'client_secret', 'token', 'drive_id', 'drive_type')


@dataclass
class RemoteConfig:
    """
    Configuration of one remote.

    Attributes:
        name: Section name
        client_id: Application (client) ID
        client_secret: Application secret
        token: Decoded token blob (access_token, refresh_token, expiry)
        drive_id: Target drive ID
        drive_type: personal, business or documentLibrary
        root_folder: Folder prepended to every remote path
        base_url: Public index URL used to build download links
    """
    name: str
    client_id: str
    client_secret: str
    token: Dict[str, Any] = field(repr=False)
    drive_id: str
    drive_type: str
    root_folder: str = ''
    base_url: Optional[str] = None

    def credentials(self) -> Credentials:
        """Build fresh Credentials from the token blob."""
        return Credentials.from_token_blob(self.client_id, self.client_secret, self.token)


def _parse_section(name: str, section: configparser.SectionProxy) -> RemoteConfig:
    missing = [key for key in REQUIRED_FIELDS if not section.get(key, '').strip()]
    if missing:
        raise ConfigError(f"Remote '{name}' is missing field(s): {', '.join(missing)}", operation='load_config')

    try:
        token = json.loads(section['token'])
    except ValueError as e:
        raise ConfigError(f"Remote '{name}' has malformed token JSON: {e}", operation='load_config') from e
    if not isinstance(token, dict):
        raise ConfigError(f"Remote '{name}' token must be a JSON object", operation='load_config')

    remote = RemoteConfig(
        name=name,
        client_id=section['client_id'].strip(),
        client_secret=section['client_secret'].strip(),
        token=token,
        drive_id=section['drive_id'].strip(),
        drive_type=section['drive_type'].strip(),
        root_folder=section.get('root_folder', '').strip().strip('/'),
        base_url=section.get('base_url', '').strip().rstrip('/') or None
    )
    # Fail on a bad token blob before any network activity
    remote.credentials()
    return remote


class RcloneConfig:
    """
    Parsed rclone configuration file.

    Example:
        >>> config = RcloneConfig.load("~/.config/rclone/rclone.conf")
        >>> remote = config.remote("oned")
    """

    def __init__(self, parser: configparser.ConfigParser, source: str = '<string>'):
        self._parser = parser
        self._source = source

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'RcloneConfig':
        """
        Read a configuration file.

        Raises:
            ConfigError: If the file is missing or unparsable
        """
        path = Path(path).expanduser()
        logger.debug(f"Reading config from {path}")
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}", operation='load_config') from e
        return cls.from_string(text, source=str(path))

    @classmethod
    def from_string(cls, text: str, source: str = '<string>') -> 'RcloneConfig':
        """Parse configuration text."""
        parser = configparser.ConfigParser(interpolation=None, inline_comment_prefixes=(';',))
        try:
            parser.read_string(text, source=source)
        except configparser.Error as e:
            raise ConfigError(f"Cannot parse config {source}: {e}", operation='load_config') from e
        return cls(parser, source)

    def sections(self) -> List[str]:
        return self._parser.sections()

    def remote(self, name: str) -> RemoteConfig:
        """
        Get one validated remote.

        Raises:
            ConfigError: If the section is missing or incomplete
        """
        if not self._parser.has_section(name):
            raise ConfigError(f"No remote '{name}' in {self._source}", operation='load_config')
        return _parse_section(name, self._parser[name])

    def remote_names(self) -> List[str]:
        """Names of OneDrive sections (sections without a type count as OneDrive)."""
        names = []
        for name in self._parser.sections():
            remote_type = self._parser[name].get('type', 'onedrive').strip()
            if remote_type != 'onedrive':
                logger.debug(f"Skipping remote '{name}' of type {remote_type}")
                continue
            names.append(name)
        return names

    def remotes(self) -> Dict[str, RemoteConfig]:
        """Get every OneDrive section, validated."""
        return {name: _parse_section(name, self._parser[name]) for name in self.remote_names()}
