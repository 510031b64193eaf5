"""File operation utilities"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional


def last_modified_millis(file_path: Path) -> int:
    """
    Get file modification time in epoch milliseconds

    Args:
        file_path: Path to file

    Returns:
        Modification time in milliseconds
    """
    return int(file_path.stat().st_mtime * 1000)


def remove_extension(file_path: Path) -> str:
    """Get file name without its last extension"""
    return file_path.name.rsplit('.', 1)[0] if '.' in file_path.name else file_path.name


def read_list_file(list_file: Path) -> List[str]:
    """
    Read non-blank lines of a line-oriented list file

    Args:
        list_file: Path to list file

    Returns:
        Stripped, non-blank lines in file order
    """
    with open(list_file, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def write_text_atomic(target: Path, content: str) -> None:
    """
    Write text to a file by replacing it in one step

    Args:
        target: Destination file
        content: Text content
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(target.parent))
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def create_temp_file(prefix: str,
                     suffix: str,
                     directory: Optional[Path] = None) -> Path:
    """
    Create an empty temporary file that outlives the process

    Args:
        prefix: File name prefix
        suffix: File name suffix
        directory: Parent directory (system temp dir when None)

    Returns:
        Path to the created file
    """
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix,
                                dir=str(directory) if directory else None)
    os.close(fd)
    return Path(name)
