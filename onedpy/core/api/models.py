"""Graph response models."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..utils import format_bytes


@dataclass(frozen=True)
class DriveItem:
    """
    A file or folder item in the drive.

    Attributes:
        id: Opaque item identifier
        name: Display name
        size: Size in bytes
        quick_xor_hash: Remote QuickXorHash (None until materialized)
    """
    id: str
    name: str
    size: int = 0
    quick_xor_hash: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DriveItem':
        hashes = (data.get('file') or {}).get('hashes') or {}
        return cls(
            id=data.get('id') or '',
            name=data.get('name') or '',
            size=int(data.get('size') or 0),
            quick_xor_hash=hashes.get('quickXorHash'),
            raw=data
        )


@dataclass(frozen=True)
class QuotaInfo:
    """Drive capacity in bytes."""
    total: int
    used: int
    remaining: int
    deleted: int
    state: str = 'normal'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuotaInfo':
        return cls(
            total=int(data.get('total') or 0),
            used=int(data.get('used') or 0),
            remaining=int(data.get('remaining') or 0),
            deleted=int(data.get('deleted') or 0),
            state=data.get('state') or 'normal'
        )

    @property
    def used_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.used / self.total) * 100

    def formatted(self) -> Dict[str, str]:
        """Human-readable values keyed by field name."""
        return {
            'total': format_bytes(self.total),
            'used': format_bytes(self.used),
            'remaining': format_bytes(self.remaining),
            'deleted': format_bytes(self.deleted),
        }

    def __str__(self) -> str:
        f = self.formatted()
        return (
            f"Total: {f['total']}, Used: {f['used']} ({self.used_percent:.1f}%), "
            f"Free: {f['remaining']}, Trashed: {f['deleted']}"
        )
