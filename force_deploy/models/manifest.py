"""Package manifest models"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List

from ..constants import DEFAULT_API_VERSION, METADATA_NAMESPACE


@dataclass
class PackageManifest:
    """Descriptor listing component types and members of a deployment unit"""
    types: Dict[str, List[str]] = field(default_factory=dict)
    api_version: str = DEFAULT_API_VERSION

    def add_member(self, type_name: str, member: str) -> None:
        """Add a member under a type, keeping first-seen order"""
        members = self.types.setdefault(type_name, [])
        if member not in members:
            members.append(member)

    def to_xml(self) -> str:
        """Render manifest as package descriptor XML"""
        root = ET.Element('Package', xmlns=METADATA_NAMESPACE)

        for type_name, members in self.types.items():
            types_el = ET.SubElement(root, 'types')
            for member in members:
                ET.SubElement(types_el, 'members').text = member
            ET.SubElement(types_el, 'name').text = type_name

        ET.SubElement(root, 'version').text = self.api_version

        ET.indent(root, space="    ")
        body = ET.tostring(root, encoding='unicode')
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + '\n'

    def to_dict(self) -> Dict[str, List[str]]:
        """Convert to dictionary"""
        return {name: list(members) for name, members in self.types.items()}


@dataclass
class DestructiveManifest(PackageManifest):
    """Descriptor listing components to delete from the remote"""

    def empty_package(self) -> PackageManifest:
        """Companion package descriptor that keeps nothing"""
        return PackageManifest(api_version=self.api_version)
