"""Component data models"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import META_XML_SUFFIX, SRC_DIR_NAME, MessageType, UNKNOWN_POSITION


class ProblemSeverity(Enum):
    """Severity of a component failure reported by the remote"""
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'ProblemSeverity':
        """Create severity from string, defaulting to ERROR if not recognised"""
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.ERROR

    @property
    def message_type(self) -> str:
        """Response protocol tag for this severity"""
        return MessageType.WARN if self is ProblemSeverity.WARNING else MessageType.ERROR


@dataclass(frozen=True)
class CandidateFile:
    """A local source file selected for deployment"""

    path: Path
    relative_path: str
    suffix: str = ""

    @property
    def name(self) -> str:
        """File name without directories"""
        return self.path.name

    @property
    def project_path(self) -> str:
        """Path relative to the project root, e.g. src/classes/Foo.cls"""
        return f"{SRC_DIR_NAME}/{self.relative_path}"

    @property
    def is_meta_xml(self) -> bool:
        """Whether this file is a descriptor companion"""
        return self.path.name.endswith(META_XML_SUFFIX)

    @property
    def meta_xml_path(self) -> Path:
        """Path of the descriptor companion of this file"""
        return self.path.with_name(self.path.name + META_XML_SUFFIX)

    @property
    def source_path(self) -> Path:
        """Path of the primary source file of a descriptor companion"""
        return self.path.with_name(self.path.name[:-len(META_XML_SUFFIX)])


@dataclass(frozen=True)
class ComponentFailure:
    """Compile or validation problem reported for a single component"""

    severity: ProblemSeverity
    file_name: str
    problem: str
    line: int = UNKNOWN_POSITION
    column: int = UNKNOWN_POSITION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComponentFailure':
        """Create from dictionary"""
        return cls(
            severity=ProblemSeverity.from_string(data.get("severity")),
            file_name=data.get("file_name") or "",
            problem=data.get("problem") or "",
            line=data.get("line", UNKNOWN_POSITION),
            column=data.get("column", UNKNOWN_POSITION),
        )


@dataclass(frozen=True)
class ComponentSuccess:
    """Component the remote accepted, with the metadata it echoed back"""

    file_name: str
    full_name: str = ""
    component_type: str = ""
    id: Optional[str] = None
    last_modified_date: Optional[int] = None
    last_modified_by: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def remote_snapshot(self) -> Dict[str, Any]:
        """Remote-reported fields kept in the change tracking cache"""
        snapshot = dict(self.extra)
        if self.id:
            snapshot["id"] = self.id
        if self.full_name:
            snapshot["fullName"] = self.full_name
        if self.last_modified_date is not None:
            snapshot["lastModifiedDateMills"] = self.last_modified_date
        if self.last_modified_by:
            snapshot["lastModifiedByName"] = self.last_modified_by
        return snapshot

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComponentSuccess':
        """Create from dictionary"""
        return cls(
            file_name=data["file_name"],
            full_name=data.get("full_name", ""),
            component_type=data.get("component_type", ""),
            id=data.get("id"),
            last_modified_date=data.get("last_modified_date"),
            last_modified_by=data.get("last_modified_by"),
            extra=data.get("extra", {}),
        )
