"""Core functionality for force-deploy"""

from .path_resolver import PathResolver
from .metadata_types import MetadataType, MetadataTypeRegistry, DEFAULT_METADATA_TYPES
from .archive import ArchiveBuilder, is_ignored
from .session_store import SessionStore
from .file_set_resolver import FileSetResolver
from .conflict_detector import ConflictDetector, FileConflict
from .test_selector import TestSelector
from .destructive_changes import DestructiveChangeBuilder
from .response_writer import ResponseWriter, Message
from .result_interpreter import ResultInterpreter, parse_location

__all__ = [
    "PathResolver",
    "MetadataType",
    "MetadataTypeRegistry",
    "DEFAULT_METADATA_TYPES",
    "ArchiveBuilder",
    "is_ignored",
    "SessionStore",
    "FileSetResolver",
    "ConflictDetector",
    "FileConflict",
    "TestSelector",
    "DestructiveChangeBuilder",
    "ResponseWriter",
    "Message",
    "ResultInterpreter",
    "parse_location",
]
