# force_deploy/utils/__init__.py
"""Utility functions for force-deploy"""

from .file_utils import (
    last_modified_millis,
    remove_extension,
    read_list_file,
    write_text_atomic,
    create_temp_file,
)

from .hash_utils import (
    calculate_md5,
    calculate_crc32,
    copy_stream,
)

__all__ = [
    "last_modified_millis",
    "remove_extension",
    "read_list_file",
    "write_text_atomic",
    "create_temp_file",
    "calculate_md5",
    "calculate_crc32",
    "copy_stream",
]
