"""Registry of remote metadata types and their on-disk layout"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..api.exceptions import ConfigError
from ..constants import META_XML_SUFFIX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataType:
    """Remote metadata type mapped to its source directory and file suffix"""
    xml_name: str
    directory: str
    suffix: Optional[str] = None
    meta_file: bool = False

    @classmethod
    def from_describe(cls, data: Dict) -> 'MetadataType':
        """Create from a describe result entry"""
        return cls(
            xml_name=data['xmlName'],
            directory=data.get('directoryName') or '',
            suffix=data.get('suffix') or None,
            meta_file=bool(data.get('metaFile', False)),
        )


DEFAULT_METADATA_TYPES: List[MetadataType] = [
    MetadataType("ApexClass", "classes", "cls", True),
    MetadataType("ApexTrigger", "triggers", "trigger", True),
    MetadataType("ApexPage", "pages", "page", True),
    MetadataType("ApexComponent", "components", "component", True),
    MetadataType("StaticResource", "staticresources", "resource", True),
    MetadataType("CustomObject", "objects", "object"),
    MetadataType("CustomLabels", "labels", "labels"),
    MetadataType("CustomTab", "tabs", "tab"),
    MetadataType("CustomApplication", "applications", "app"),
    MetadataType("Layout", "layouts", "layout"),
    MetadataType("Profile", "profiles", "profile"),
    MetadataType("PermissionSet", "permissionsets", "permissionset"),
    MetadataType("Workflow", "workflows", "workflow"),
    MetadataType("RemoteSiteSetting", "remoteSiteSettings", "remoteSite"),
    MetadataType("EmailTemplate", "email", "email", True),
]


class MetadataTypeRegistry:
    """Lookup of metadata types by xml name, directory and suffix"""

    def __init__(self, types: Optional[List[MetadataType]] = None):
        """Initialize registry

        Args:
            types: Known metadata types (built-in table when None)
        """
        self._by_xml_name: Dict[str, MetadataType] = {}
        self._by_directory: Dict[str, MetadataType] = {}

        for metadata_type in types if types is not None else DEFAULT_METADATA_TYPES:
            self.register(metadata_type)

    @classmethod
    def from_describe_cache(cls, cache_file: Path) -> 'MetadataTypeRegistry':
        """Load registry from a cached describe result

        The cache holds one JSON object per line, each describing a
        metadata type (xmlName, directoryName, suffix, metaFile). Types it
        describes override the built-in ones.

        Args:
            cache_file: Describe cache file

        Returns:
            Registry with built-in and cached types
        """
        registry = cls()
        if not cache_file.exists():
            return registry

        try:
            with open(cache_file, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if line:
                        registry.register(MetadataType.from_describe(json.loads(line)))
        except (json.JSONDecodeError, KeyError) as e:
            raise ConfigError(f"Invalid describe cache {cache_file}: {e}")

        logger.debug(f"Loaded metadata types from {cache_file}")
        return registry

    def register(self, metadata_type: MetadataType) -> None:
        """Register or replace a metadata type"""
        self._by_xml_name[metadata_type.xml_name] = metadata_type
        if metadata_type.directory:
            self._by_directory[metadata_type.directory] = metadata_type

    def get(self, xml_name: str) -> Optional[MetadataType]:
        """Get metadata type by xml name"""
        return self._by_xml_name.get(xml_name)

    def for_directory(self, directory: str) -> Optional[MetadataType]:
        """Get metadata type stored in a source directory"""
        return self._by_directory.get(directory)

    def for_suffix(self, suffix: str) -> Optional[MetadataType]:
        """Get metadata type by file suffix"""
        for metadata_type in self._by_xml_name.values():
            if metadata_type.suffix == suffix:
                return metadata_type
        return None

    def xml_name_for_directory(self, directory: str) -> Optional[str]:
        """Get xml name of the type stored in a source directory"""
        metadata_type = self.for_directory(directory)
        return metadata_type.xml_name if metadata_type else None

    def is_valid_source_file(self, file_path: Path) -> bool:
        """Check if a file is a source unit of a known metadata type

        A file is valid when its parent directory belongs to a known type
        and its name ends with that type's suffix, or with the suffix
        followed by ``-meta.xml`` for types that carry descriptors.
        """
        metadata_type = self.for_directory(file_path.parent.name)
        if metadata_type is None:
            return False

        if not metadata_type.suffix:
            return not file_path.name.endswith(META_XML_SUFFIX) or metadata_type.meta_file

        extension = '.' + metadata_type.suffix
        if file_path.name.endswith(extension):
            return True
        return metadata_type.meta_file and file_path.name.endswith(extension + META_XML_SUFFIX)
