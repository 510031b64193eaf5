"""Candidate file resolution for each deployment mode"""

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, List

from ..api.exceptions import InputError
from ..constants import ALWAYS_INCLUDE_NAMES, META_XML_SUFFIX
from ..models.component import CandidateFile
from ..utils.file_utils import read_list_file
from .archive import is_ignored
from .metadata_types import MetadataTypeRegistry
from .path_resolver import PathResolver
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class FileSetResolver:
    """Produces the files that go into a deployment"""

    def __init__(self,
                 paths: PathResolver,
                 registry: MetadataTypeRegistry,
                 store: SessionStore,
                 prefer_md5: bool = False):
        """Initialize file set resolver

        Args:
            paths: Project path resolver
            registry: Metadata types deciding which files are source units
            store: Change tracking cache used by modified mode
            prefer_md5: Compare MD5 hashes instead of CRC32
        """
        self.paths = paths
        self.registry = registry
        self.store = store
        self.prefer_md5 = prefer_md5

    def candidate(self, file_path: Path) -> CandidateFile:
        """Wrap a file under the source root"""
        relative = file_path.resolve().relative_to(self.paths.src_dir.resolve()).as_posix()
        metadata_type = self.registry.for_directory(file_path.parent.name)
        suffix = metadata_type.suffix if metadata_type and metadata_type.suffix else ""
        return CandidateFile(path=file_path, relative_path=relative, suffix=suffix)

    def _source_files(self) -> List[Path]:
        src_dir = self.paths.src_dir
        found = []
        for dirpath, dirnames, filenames in os.walk(src_dir):
            dirnames[:] = sorted(d for d in dirnames if not is_ignored(Path(d)))
            for name in sorted(filenames):
                file_path = Path(dirpath) / name
                if not is_ignored(file_path) and self.registry.is_valid_source_file(file_path):
                    found.append(file_path)
        return found

    def all_files(self) -> List[CandidateFile]:
        """Every valid source file of the project"""
        files = [self.candidate(f) for f in self._source_files()]
        logger.debug(f"Found {len(files)} source files under {self.paths.src_dir}")
        return files

    def modified(self) -> List[CandidateFile]:
        """Source files that are untracked or differ from their recorded state"""
        modified = []
        for candidate in self.all_files():
            key = self.paths.key_for(candidate.path)
            if self.store.is_modified(key, candidate.path, self.prefer_md5):
                logger.debug(f"Modified: {candidate.relative_path}")
                modified.append(candidate)
        return modified

    def specific_files(self, list_file: Path) -> List[CandidateFile]:
        """Files named in a list file, one project relative path per line

        Args:
            list_file: File list

        Returns:
            Listed files that are valid source units

        Raises:
            InputError: If the list or any listed file can not be read
        """
        files = [self.paths.project_root / line for line in self._read_list(list_file)]

        for file_path in files:
            if not file_path.is_file() or not os.access(file_path, os.R_OK):
                raise InputError(f"Can not read file: {file_path}")

        src_dir = self.paths.src_dir.resolve()
        valid = [
            f for f in files
            if src_dir in f.resolve().parents and self.registry.is_valid_source_file(f)
        ]
        return [self.candidate(f) for f in dict.fromkeys(valid)]

    def component_paths(self, list_file: Path) -> List[str]:
        """Component paths of a deletion list, e.g. classes/Foo.cls"""
        return self._read_list(list_file)

    @staticmethod
    def _read_list(list_file: Path) -> List[str]:
        try:
            return read_list_file(list_file)
        except OSError as e:
            raise InputError(f"Can not read list file {list_file}: {e}")

    def expand(self, files: Iterable[CandidateFile]) -> List[Path]:
        """Complete a file set so components and descriptors travel together

        Adds the ``-meta.xml`` companion of every file, the primary source
        of every companion, and the package descriptor.

        Args:
            files: Selected files

        Returns:
            Ordered, de-duplicated paths
        """
        expanded = {}
        for candidate in files:
            expanded[candidate.path] = None
            if candidate.is_meta_xml:
                if candidate.source_path.is_file():
                    expanded[candidate.source_path] = None
            elif candidate.meta_xml_path.is_file():
                expanded[candidate.meta_xml_path] = None

        expanded[self.paths.package_xml] = None
        return list(expanded)

    def add_class_with_descriptor(self, files: List[Path], class_name: str, xml_name: str) -> List[Path]:
        """Add a component file and its descriptor to a file set if it exists"""
        found = self.paths.find_file(class_name, xml_name)
        if found is None:
            logger.warning(f"Can not find {xml_name} {class_name} in project")
            return files

        extra = [found, found.with_name(found.name + META_XML_SUFFIX)]
        return list(dict.fromkeys(files + [f for f in extra if f.is_file()]))

    @staticmethod
    def include_predicate(files: Iterable[Path]) -> Callable[[Path], bool]:
        """Archive predicate accepting the given files and always-included names"""
        selected = {Path(f).resolve() for f in files}

        def include(file_path: Path) -> bool:
            return file_path.name in ALWAYS_INCLUDE_NAMES or file_path.resolve() in selected

        return include
