"""Persisted change tracking cache"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..api.exceptions import SessionStoreError
from ..constants import META_XML_SUFFIX, SESSION_FILE_HEADER, SESSION_FILE_NAME
from ..models.project import ChangeTrackingEntry
from ..utils.file_utils import last_modified_millis, write_text_atomic
from ..utils.hash_utils import calculate_crc32, calculate_md5

logger = logging.getLogger(__name__)


class SessionStore:
    """Change tracking entries of one project, stored as key=<json> lines

    The file is read on first access and written only by :meth:`save`.
    """

    def __init__(self, session_dir: Path):
        """Initialize session store

        Args:
            session_dir: Folder holding the session file
        """
        self.path = Path(session_dir) / SESSION_FILE_NAME
        self._entries: Optional[Dict[str, ChangeTrackingEntry]] = None

    @property
    def entries(self) -> Dict[str, ChangeTrackingEntry]:
        """Loaded entries (lazy load)"""
        if self._entries is None:
            self._entries = self._load()
        return self._entries

    def _load(self) -> Dict[str, ChangeTrackingEntry]:
        if not self.path.exists():
            logger.debug(f"No session file at {self.path}")
            return {}

        entries = {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                for line_no, line in enumerate(f, 1):
                    line = line.strip()
                    if not line or line.startswith(('#', '!')):
                        continue
                    key, sep, value = line.partition('=')
                    if not sep:
                        raise SessionStoreError(f"{self.path}:{line_no}: expected key=value")
                    entries[key.strip()] = ChangeTrackingEntry.from_dict(key.strip(), json.loads(value))
        except json.JSONDecodeError as e:
            raise SessionStoreError(f"Invalid session data in {self.path}: {e}")
        except OSError as e:
            raise SessionStoreError(f"Failed to read {self.path}: {e}")

        logger.debug(f"Loaded {len(entries)} session entries from {self.path}")
        return entries

    def get(self, key: str) -> Optional[ChangeTrackingEntry]:
        return self.entries.get(key)

    def keys(self) -> List[str]:
        return list(self.entries)

    def set(self, entry: ChangeTrackingEntry) -> None:
        """Store an entry, replacing the previous one with the same key"""
        self.entries[entry.key] = entry

    def remove(self, key: str) -> bool:
        """Remove an entry

        Returns:
            True if an entry was removed
        """
        return self.entries.pop(key, None) is not None

    def find_key(self, directory: str, file_name: str) -> Optional[str]:
        """Find the tracked key of a component, e.g. ('classes', 'Foo.cls')"""
        key = f"{directory}/{file_name}"
        return key if key in self.entries else None

    def record(self,
               key: str,
               file_path: Path,
               prefer_md5: bool,
               remote: Optional[Dict] = None) -> ChangeTrackingEntry:
        """Refresh the local state of a tracked file and merge remote fields

        Exactly one hash is recorded, MD5 when prefer_md5 is set and CRC32
        otherwise. The descriptor companion, when present, is recorded in
        the same entry.

        Args:
            key: Change tracking key
            file_path: Primary source file
            prefer_md5: Record MD5 instead of CRC32
            remote: Remote-reported fields to merge into the snapshot

        Returns:
            Stored entry
        """
        meta_path = file_path.with_name(file_path.name + META_XML_SUFFIX)
        has_meta = meta_path.is_file()

        previous = self.get(key)
        entry = ChangeTrackingEntry(
            key=key,
            local_mtime=last_modified_millis(file_path),
            md5=calculate_md5(file_path) if prefer_md5 else None,
            crc32=None if prefer_md5 else calculate_crc32(file_path),
            meta_mtime=last_modified_millis(meta_path) if has_meta else None,
            meta_md5=calculate_md5(meta_path) if has_meta and prefer_md5 else None,
            meta_crc32=calculate_crc32(meta_path) if has_meta and not prefer_md5 else None,
            remote=dict(previous.remote) if previous else {},
        )
        if remote:
            entry = entry.with_remote(remote)

        self.set(entry)
        return entry

    def is_modified(self, key: str, file_path: Path, prefer_md5: bool = False) -> bool:
        """Check if a file differs from its recorded state

        Untracked files count as modified. An unchanged modification time
        means unchanged; otherwise the recorded hash decides, preferring
        the configured algorithm when both are present.

        Args:
            key: Change tracking key
            file_path: File to check (may be a descriptor companion)
            prefer_md5: Compare MD5 first

        Returns:
            True if modified
        """
        entry = self.get(key)
        if entry is None:
            return True

        if file_path.name.endswith(META_XML_SUFFIX):
            mtime, md5, crc32 = entry.meta_mtime, entry.meta_md5, entry.meta_crc32
        else:
            mtime, md5, crc32 = entry.local_mtime, entry.md5, entry.crc32

        if mtime is not None and mtime == last_modified_millis(file_path):
            return False

        if md5 and (prefer_md5 or crc32 is None):
            return md5 != calculate_md5(file_path)
        if crc32 is not None:
            return crc32 != calculate_crc32(file_path)
        return True

    def remove_all(self, keys: Iterable[str]) -> List[str]:
        """Remove several entries and return the keys actually removed"""
        return [key for key in keys if self.remove(key)]

    def save(self) -> None:
        """Write all entries, replacing the session file in one step"""
        if self._entries is None:
            return

        header = "".join(f"#{line}\n" for line in SESSION_FILE_HEADER.splitlines())
        header += f"#{datetime.now().strftime('%a %b %d %H:%M:%S %Y')}\n"
        body = "".join(
            f"{key}={json.dumps(entry.to_dict(), sort_keys=True)}\n"
            for key, entry in sorted(self._entries.items())
        )

        try:
            write_text_atomic(self.path, header + body)
        except OSError as e:
            raise SessionStoreError(f"Failed to write {self.path}: {e}")

        logger.info(f"Saved {len(self._entries)} session entries to {self.path}")
