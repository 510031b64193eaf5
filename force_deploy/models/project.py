"""Change tracking models"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ChangeTrackingEntry:
    """Last known local and remote state of a tracked file

    Only one of md5/crc32 is populated per write, depending on which hash
    the project is configured to prefer.
    """
    key: str
    local_mtime: Optional[int] = None
    md5: Optional[str] = None
    crc32: Optional[int] = None
    meta_mtime: Optional[int] = None
    meta_md5: Optional[str] = None
    meta_crc32: Optional[int] = None
    remote: Dict[str, Any] = field(default_factory=dict)

    @property
    def remote_last_modified(self) -> Optional[int]:
        """Remote last-modified marker recorded at the last deploy or refresh"""
        value = self.remote.get('lastModifiedDateMills')
        return int(value) if value is not None else None

    @property
    def remote_last_modified_by(self) -> Optional[str]:
        """Remote user who last modified the file"""
        return self.remote.get('lastModifiedByName')

    def with_remote(self, snapshot: Dict[str, Any]) -> 'ChangeTrackingEntry':
        """Copy of this entry with the remote snapshot merged in"""
        merged = dict(self.remote)
        merged.update(snapshot)
        return replace(self, remote=merged)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = dict(self.remote)

        if self.local_mtime is not None:
            data['LocalMills'] = self.local_mtime
        if self.md5 is not None:
            data['md5'] = self.md5
        if self.crc32 is not None:
            data['crc32'] = self.crc32
        if self.meta_mtime is not None:
            data['LocalMillsMeta'] = self.meta_mtime
        if self.meta_md5 is not None:
            data['md5Meta'] = self.meta_md5
        if self.meta_crc32 is not None:
            data['crc32Meta'] = self.meta_crc32

        return data

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> 'ChangeTrackingEntry':
        """Create from dictionary"""
        local_keys = {'LocalMills', 'md5', 'crc32', 'LocalMillsMeta', 'md5Meta', 'crc32Meta'}
        return cls(
            key=key,
            local_mtime=data.get('LocalMills'),
            md5=data.get('md5'),
            crc32=data.get('crc32'),
            meta_mtime=data.get('LocalMillsMeta'),
            meta_md5=data.get('md5Meta'),
            meta_crc32=data.get('crc32Meta'),
            remote={k: v for k, v in data.items() if k not in local_keys},
        )
