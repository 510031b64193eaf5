"""Detection of files that are newer on the remote than locally recorded"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..api.exceptions import DeployError
from ..models.component import CandidateFile
from ..models.project import ChangeTrackingEntry
from ..models.result import RemoteFileState
from ..remote.base import MetadataClient
from .path_resolver import PathResolver
from .response_writer import ResponseWriter
from .session_store import SessionStore

logger = logging.getLogger(__name__)


def _format_millis(millis: Optional[int]) -> str:
    if millis is None:
        return "unknown"
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')


@dataclass(frozen=True)
class FileConflict:
    """A local file whose remote counterpart changed after the recorded baseline"""
    candidate: CandidateFile
    entry: ChangeTrackingEntry
    remote: RemoteFileState

    def describe(self) -> str:
        """Human readable conflict summary"""
        by = self.remote.last_modified_by or "unknown"
        return (
            f"{self.candidate.project_path} => Modified By: {by}; "
            f"at: {_format_millis(self.remote.last_modified_date)}; "
            f"Local version saved at: {_format_millis(self.entry.remote_last_modified)}"
        )


class ConflictDetector:
    """Compares recorded baselines with live remote state"""

    def __init__(self,
                 store: SessionStore,
                 client: MetadataClient,
                 paths: PathResolver,
                 writer: Optional[ResponseWriter] = None):
        """Initialize conflict detector

        Args:
            store: Change tracking cache holding the baselines
            client: Remote client providing live state
            paths: Project path resolver
            writer: Response writer conflicts are reported to
        """
        self.store = store
        self.client = client
        self.paths = paths
        self.writer = writer

    def find_conflicts(self, files: Iterable[CandidateFile]) -> List[FileConflict]:
        """Find files with a strictly newer remote modification marker

        Files without a recorded baseline are not compared. When nothing
        is tracked the remote is not queried.

        Args:
            files: Candidate files

        Returns:
            Conflicting files in input order
        """
        tracked = {}
        for candidate in files:
            key = self.paths.key_for(candidate.path)
            entry = self.store.get(key)
            if key in tracked or entry is None or entry.remote_last_modified is None:
                continue
            tracked[key] = (candidate, entry)

        if not tracked:
            logger.debug("No tracked files to check for conflicts")
            return []

        logger.info(f"Checking {len(tracked)} files for conflicts with remote")
        try:
            states = self.client.remote_state(list(tracked))
        except DeployError:
            raise
        except Exception as e:
            raise DeployError(f"Remote state lookup failed: {e}") from e

        conflicts = []
        for key, (candidate, entry) in tracked.items():
            state = states.get(key)
            if state is not None and state.last_modified_date > entry.remote_last_modified:
                logger.debug(f"Remote is newer: {key}")
                conflicts.append(FileConflict(candidate=candidate, entry=entry, remote=state))
        return conflicts

    def report(self, conflicts: List[FileConflict]) -> None:
        """Write conflicts as warnings"""
        if self.writer is None or not conflicts:
            return

        message = self.writer.warn("Outdated file(s) detected.")
        for conflict in conflicts:
            self.writer.detail(message, {
                "filePath": conflict.candidate.project_path,
                "text": conflict.describe(),
            })
        self.writer.warn("Use 'refresh' before 'deploy'.")

    def has_conflicts(self, files: List[CandidateFile]) -> bool:
        """Check files for conflicts, reporting every conflict found

        Args:
            files: Candidate files

        Returns:
            True if at least one file is newer on the remote
        """
        if not files:
            logger.debug("File list is empty, nothing to check for conflicts")
            return False

        conflicts = self.find_conflicts(files)
        self.report(conflicts)
        return bool(conflicts)
