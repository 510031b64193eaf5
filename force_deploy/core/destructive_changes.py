"""Deletion manifests for removing components from the remote"""

import logging
from functools import reduce
from pathlib import Path
from typing import Dict, List

from ..api.exceptions import InputError
from ..constants import DEFAULT_API_VERSION, DESTRUCTIVE_CHANGES_XML, PACKAGE_XML
from ..models.manifest import DestructiveManifest
from .metadata_types import MetadataTypeRegistry

logger = logging.getLogger(__name__)


def group_by_directory(component_paths: List[str]) -> Dict[str, List[str]]:
    """Group component paths by their first path segment, in first-seen order"""
    def add(groups: Dict[str, List[str]], path: str) -> Dict[str, List[str]]:
        directory, _, name = path.strip().partition('/')
        return {**groups, directory: groups.get(directory, []) + [name]}

    return reduce(add, component_paths, {})


class DestructiveChangeBuilder:
    """Builds the deletion manifest and its empty companion package"""

    def __init__(self, registry: MetadataTypeRegistry, api_version: str = DEFAULT_API_VERSION):
        self.registry = registry
        self.api_version = api_version

    def build_manifest(self, component_paths: List[str]) -> DestructiveManifest:
        """Map component paths to remote type names and member names

        Args:
            component_paths: Paths such as ``classes/Foo.cls``

        Returns:
            Deletion manifest

        Raises:
            InputError: If a directory is unknown or lists no members
        """
        manifest = DestructiveManifest(api_version=self.api_version)

        for directory, names in group_by_directory(component_paths).items():
            metadata_type = self.registry.for_directory(directory)
            members = [name for name in names if name]
            if metadata_type is None or not members or members == ["*"]:
                raise InputError(f"Did not recognise directory: {directory}")

            extension = '.' + metadata_type.suffix if metadata_type.suffix else ''
            for name in members:
                member = name[:-len(extension)] if extension and name.endswith(extension) else name
                manifest.add_member(metadata_type.xml_name, member)

        return manifest

    def write_deployment_dir(self, component_paths: List[str], target_dir: Path) -> Path:
        """Write destructiveChanges.xml and an empty package.xml into a folder

        Args:
            component_paths: Components to delete
            target_dir: Folder to write into

        Returns:
            The folder, ready to be archived
        """
        manifest = self.build_manifest(component_paths)
        target_dir.mkdir(parents=True, exist_ok=True)

        (target_dir / DESTRUCTIVE_CHANGES_XML).write_text(manifest.to_xml(), encoding='utf-8')
        (target_dir / PACKAGE_XML).write_text(manifest.empty_package().to_xml(), encoding='utf-8')

        logger.debug(f"Deletion manifest with {sum(len(m) for m in manifest.types.values())} "
                     f"members written to {target_dir}")
        return target_dir
