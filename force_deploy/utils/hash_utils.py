"""Hash calculation utilities"""

import hashlib
import zlib
from pathlib import Path
from typing import BinaryIO, Optional

from ..constants import ARCHIVE_CHUNK_SIZE


def calculate_md5(file_path: Path, chunk_size: int = ARCHIVE_CHUNK_SIZE) -> str:
    """
    Calculate MD5 hash of file

    Args:
        file_path: Path to file
        chunk_size: Read chunk size

    Returns:
        Hex digest string
    """
    md5_hash = hashlib.md5()

    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            md5_hash.update(chunk)

    return md5_hash.hexdigest()


def calculate_crc32(file_path: Path, chunk_size: int = ARCHIVE_CHUNK_SIZE) -> int:
    """
    Calculate CRC32 checksum of file

    Args:
        file_path: Path to file
        chunk_size: Read chunk size

    Returns:
        Unsigned CRC32 value
    """
    crc = 0

    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            crc = zlib.crc32(chunk, crc)

    return crc & 0xFFFFFFFF


def copy_stream(src: BinaryIO,
                dst: BinaryIO,
                calculate_hash: bool = False,
                chunk_size: int = ARCHIVE_CHUNK_SIZE) -> Optional[str]:
    """
    Copy bytes between streams through a fixed buffer

    Args:
        src: Readable binary stream
        dst: Writable binary stream
        calculate_hash: Also compute MD5 of the copied bytes
        chunk_size: Buffer size

    Returns:
        MD5 hex digest when calculate_hash is set, otherwise None
    """
    md5_hash = hashlib.md5() if calculate_hash else None

    while chunk := src.read(chunk_size):
        dst.write(chunk)
        if md5_hash is not None:
            md5_hash.update(chunk)

    return md5_hash.hexdigest() if md5_hash is not None else None
