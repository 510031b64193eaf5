"""Zip archive building and extraction for deployment packages"""

import logging
import os
import zipfile
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple, Union

from ..constants import ARCHIVE_CHUNK_SIZE, BACKUP_FILE_SUFFIX, HIDDEN_FILE_PREFIX
from ..utils.file_utils import last_modified_millis
from ..utils.hash_utils import copy_stream

logger = logging.getLogger(__name__)

IncludePredicate = Callable[[Path], bool]
ContentTransform = Callable[[Path], Path]
ArchiveSource = Union[str, Path, bytes, BinaryIO]


def is_ignored(path: Path) -> bool:
    """Check if a path is a hidden or backup file that never goes into an archive"""
    return path.name.startswith(HIDDEN_FILE_PREFIX) or path.name.endswith(BACKUP_FILE_SUFFIX)


class ArchiveBuilder:
    """Streams a filtered directory tree into a zip archive"""

    def __init__(self, chunk_size: int = ARCHIVE_CHUNK_SIZE):
        """Initialize archive builder

        Args:
            chunk_size: Buffer size used when copying file content
        """
        self.chunk_size = chunk_size

    def build(self,
              root_dir: Path,
              include: Optional[IncludePredicate] = None,
              transform: Optional[ContentTransform] = None) -> bytes:
        """Zip a directory tree into memory

        Entry names are prefixed with the name of root_dir, so building
        ``project/src`` produces entries such as ``src/classes/Foo.cls``.

        Args:
            root_dir: Top of the tree to archive
            include: Returns True for files that go into the archive
                (every file when None)
            transform: Maps a file to the file whose bytes are stored
                under its name (identity when None)

        Returns:
            Archive bytes
        """
        buffer = BytesIO()
        self._write(buffer, root_dir, include, transform)
        return buffer.getvalue()

    def build_to_file(self,
                      root_dir: Path,
                      output: Path,
                      include: Optional[IncludePredicate] = None,
                      transform: Optional[ContentTransform] = None) -> Path:
        """Zip a directory tree into a file

        Args:
            root_dir: Top of the tree to archive
            output: Archive path to create
            include: Returns True for files that go into the archive
            transform: Maps a file to the file whose bytes are stored

        Returns:
            Path to created archive
        """
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, 'wb') as f:
            self._write(f, root_dir, include, transform)
        return output

    def _write(self,
               target: BinaryIO,
               root_dir: Path,
               include: Optional[IncludePredicate],
               transform: Optional[ContentTransform]) -> None:
        root_dir = Path(root_dir)
        if not root_dir.is_dir():
            raise NotADirectoryError(f"Not a directory: {root_dir}")

        with zipfile.ZipFile(target, 'w', zipfile.ZIP_DEFLATED, strict_timestamps=False) as zf:
            self._add_directory(zf, root_dir, root_dir.name + '/', include, transform)

    def _add_directory(self,
                       zf: zipfile.ZipFile,
                       directory: Path,
                       arcname: str,
                       include: Optional[IncludePredicate],
                       transform: Optional[ContentTransform]) -> None:
        """Record a directory entry, then everything below it"""
        zf.write(directory, arcname)

        for child in sorted(directory.iterdir()):
            if is_ignored(child):
                logger.debug(f"Skipping ignored file: {child}")
                continue

            child_arcname = arcname + child.name
            if child.is_dir():
                self._add_directory(zf, child, child_arcname + '/', include, transform)
            elif include is None or include(child):
                self._add_file(zf, child, child_arcname, transform)

    def _add_file(self,
                  zf: zipfile.ZipFile,
                  file_path: Path,
                  arcname: str,
                  transform: Optional[ContentTransform]) -> None:
        """Stream one file into the archive"""
        content_path = transform(file_path) if transform else file_path
        if content_path != file_path:
            logger.debug(f"Storing {arcname} from {content_path}")

        # Timestamp always comes from the original file
        zinfo = zipfile.ZipInfo.from_file(file_path, arcname, strict_timestamps=False)
        zinfo.compress_type = zipfile.ZIP_DEFLATED

        with open(content_path, 'rb') as src, zf.open(zinfo, 'w') as dst:
            copy_stream(src, dst, chunk_size=self.chunk_size)

    def extract(self,
                archive: ArchiveSource,
                dest_dir: Path,
                compute_hash: bool = False) -> Dict[str, Tuple[int, Optional[str]]]:
        """Extract archive content into a directory

        Args:
            archive: Archive file path, bytes or binary stream
            dest_dir: Directory to extract into (created if missing)
            compute_hash: Calculate MD5 of each file while writing it

        Returns:
            Mapping of entry name to (local mtime in ms, md5 hex or None)
        """
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        root = dest_dir.resolve()
        extracted: Dict[str, Tuple[int, Optional[str]]] = {}

        with zipfile.ZipFile(self._open_source(archive)) as zf:
            for info in zf.infolist():
                target = dest_dir / info.filename
                if not target.resolve().is_relative_to(root):
                    raise ValueError(f"Archive entry outside of target directory: {info.filename}")

                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, 'wb') as dst:
                    md5 = copy_stream(src, dst, calculate_hash=compute_hash,
                                      chunk_size=self.chunk_size)

                extracted[info.filename] = (last_modified_millis(target), md5)

        logger.debug(f"Extracted {len(extracted)} files into {dest_dir}")
        return extracted

    def list_content(self, archive: ArchiveSource) -> List[str]:
        """List entry names of an archive in stored order"""
        with zipfile.ZipFile(self._open_source(archive)) as zf:
            return zf.namelist()

    @staticmethod
    def _open_source(archive: ArchiveSource) -> Union[str, BinaryIO]:
        if isinstance(archive, (bytes, bytearray)):
            return BytesIO(archive)
        if isinstance(archive, (str, os.PathLike)):
            return os.fspath(archive)
        return archive
