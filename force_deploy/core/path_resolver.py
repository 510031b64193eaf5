"""Path resolution module for force-deploy"""

from pathlib import Path
from typing import Optional, Union

from ..constants import (
    META_XML_SUFFIX,
    PACKAGE_XML,
    SRC_DIR_NAME,
)
from .metadata_types import MetadataTypeRegistry


class PathResolver:
    """Resolves paths within a force-deploy project"""

    def __init__(self, project_root: Union[str, Path], registry: Optional[MetadataTypeRegistry] = None):
        """Initialize path resolver

        Args:
            project_root: Root directory of the project
            registry: Metadata types used to map types to directories
        """
        self.project_root = Path(project_root).resolve()
        self.registry = registry or MetadataTypeRegistry()

    @property
    def src_dir(self) -> Path:
        """Source root of the project"""
        return self.project_root / SRC_DIR_NAME

    @property
    def package_xml(self) -> Path:
        """Package descriptor of the project"""
        return self.src_dir / PACKAGE_XML

    def key_for(self, file_path: Path) -> str:
        """Change tracking key of a file: its path relative to the source root

        Descriptor companions share the key of their primary source file.

        Args:
            file_path: File under the source root

        Returns:
            Key such as ``classes/Foo.cls``
        """
        key = Path(file_path).resolve().relative_to(self.src_dir.resolve()).as_posix()
        if key.endswith(META_XML_SUFFIX):
            key = key[:-len(META_XML_SUFFIX)]
        return key

    def get_relative_path(self, directory: str, file_name: str) -> Optional[str]:
        """Get project relative path of an existing source file

        Args:
            directory: Source directory name, e.g. classes
            file_name: File name, e.g. Foo.cls

        Returns:
            Path such as ``src/classes/Foo.cls`` or None if the file is missing
        """
        candidate = self.src_dir / directory / file_name
        if candidate.is_file():
            return f"{SRC_DIR_NAME}/{directory}/{file_name}"
        return None

    def get_relative_file_path(self, name: str, suffix: str) -> Optional[str]:
        """Get project relative path of a component by name and file suffix

        Args:
            name: Component name, e.g. Foo
            suffix: File suffix, e.g. cls

        Returns:
            Path such as ``src/classes/Foo.cls`` or None if unknown
        """
        metadata_type = self.registry.for_suffix(suffix)
        if metadata_type is None or not name:
            return None
        return self.get_relative_path(metadata_type.directory, f"{name}.{suffix}")

    def find_file(self, name: str, xml_name: str) -> Optional[Path]:
        """Find the source file of a component

        Args:
            name: Component name, e.g. Foo
            xml_name: Metadata type, e.g. ApexClass

        Returns:
            Absolute path of the file or None if missing
        """
        metadata_type = self.registry.get(xml_name)
        if metadata_type is None or not metadata_type.suffix:
            return None

        candidate = self.src_dir / metadata_type.directory / f"{name}.{metadata_type.suffix}"
        return candidate if candidate.is_file() else None
