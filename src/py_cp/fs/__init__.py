"""File system subsystem — inodes, host-backed storage, and file descriptors.

Re-exports public symbols so callers can write::

    from py_cp.fs import FileSystem, FdTable
"""

from py_cp.fs.fd import (
    MAX_OPEN_FILES,
    STDIN_FD,
    STDOUT_FD,
    FdError,
    FdTable,
    FileMode,
    OpenFileDescription,
)
from py_cp.fs.filesystem import FileStore, FileSystem, FileType, InodeInfo
from py_cp.fs.host import HostFileSystem

__all__ = [
    "MAX_OPEN_FILES",
    "STDIN_FD",
    "STDOUT_FD",
    "FdError",
    "FdTable",
    "FileMode",
    "FileStore",
    "FileSystem",
    "FileType",
    "HostFileSystem",
    "InodeInfo",
    "OpenFileDescription",
]
