"""In-memory file system with inodes, directories, and path resolution.

- **Inode**: metadata record for a file or directory (type, size, data).
  The name lives in the parent directory, not in the inode.
- **Directory**: an inode whose ``children`` map names to inode numbers.
- **Path resolution**: ``/foo/bar/baz.txt`` is walked component by
  component from the root inode.

``FileStore`` is the interface the kernel programs against.  Both this
in-memory file system and ``HostFileSystem`` satisfy it structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from itertools import count
from typing import Protocol


class FileType(StrEnum):
    """The kind of object an inode represents."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class InodeInfo:
    """Read-only snapshot of an inode's metadata (returned by stat)."""

    inode_number: int
    file_type: FileType
    size: int


class FileStore(Protocol):
    """Interface every file system backend must satisfy."""

    def exists(self, path: str) -> bool:
        """Check whether a path exists."""
        ...  # pragma: no cover

    def stat(self, path: str) -> InodeInfo:
        """Return metadata for a path."""
        ...  # pragma: no cover

    def list_dir(self, path: str) -> list[str]:
        """List the names in a directory."""
        ...  # pragma: no cover

    def create_file(self, path: str) -> None:
        """Create an empty file, truncating one that already exists."""
        ...  # pragma: no cover

    def create_dir(self, path: str) -> None:
        """Create an empty directory."""
        ...  # pragma: no cover

    def check_readable(self, path: str) -> None:
        """Raise OSError unless *path* is a regular file that can be read."""
        ...  # pragma: no cover

    def read(self, path: str) -> bytes:
        """Read a whole file."""
        ...  # pragma: no cover

    def write(self, path: str, data: bytes) -> None:
        """Replace a file's content."""
        ...  # pragma: no cover

    def read_at(self, path: str, *, offset: int, count: int) -> bytes:
        """Read up to *count* bytes starting at *offset*."""
        ...  # pragma: no cover

    def write_at(self, path: str, *, offset: int, data: bytes) -> int:
        """Write *data* at *offset* and return the bytes written."""
        ...  # pragma: no cover

    def delete(self, path: str) -> None:
        """Delete a file or empty directory."""
        ...  # pragma: no cover


@dataclass
class _Inode:
    """Internal inode.

    For files, ``data`` holds the raw bytes.
    For directories, ``children`` maps names to inode numbers.
    """

    inode_number: int
    file_type: FileType
    data: bytes = b""
    children: dict[str, int] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]

    @property
    def size(self) -> int:
        """Return the size of the file data in bytes."""
        return len(self.data)

    def to_info(self) -> InodeInfo:
        """Create a read-only snapshot of this inode."""
        return InodeInfo(
            inode_number=self.inode_number,
            file_type=self.file_type,
            size=self.size,
        )


def split_path(path: str) -> tuple[str, str]:
    """Split a path into (parent_path, child_name).

    Examples::

        "/foo/bar/baz.txt" → ("/foo/bar", "baz.txt")
        "/hello.txt"       → ("/", "hello.txt")
        "/"                → ("", "")

    """
    if path == "/":
        return ("", "")
    path = path.rstrip("/")
    last_slash = path.rfind("/")
    if last_slash == 0:
        return ("/", path[1:])
    return (path[:last_slash], path[last_slash + 1 :])


class FileSystem:
    """An in-memory file system with inodes and hierarchical directories.

    Initialised with an empty root directory at ``/``.  All operations
    take absolute paths.
    """

    def __init__(self) -> None:
        """Create a file system with an empty root directory."""
        self._inode_counter = count(start=0)
        root = _Inode(inode_number=next(self._inode_counter), file_type=FileType.DIRECTORY)
        self._inodes: dict[int, _Inode] = {root.inode_number: root}
        self._root_ino: int = root.inode_number

    def _resolve(self, path: str) -> _Inode | None:
        """Walk the path from root and return the target inode, if any."""
        current = self._inodes[self._root_ino]
        if path == "/":
            return current
        for part in path.strip("/").split("/"):
            if current.file_type is not FileType.DIRECTORY:
                return None
            child_ino = current.children.get(part)
            if child_ino is None:
                return None
            current = self._inodes[child_ino]
        return current

    def _resolve_file(self, path: str) -> _Inode:
        """Resolve a path that must name a regular file."""
        inode = self._resolve(path)
        if inode is None:
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        if inode.file_type is FileType.DIRECTORY:
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        return inode

    def exists(self, path: str) -> bool:
        """Check whether a path exists in the file system."""
        return self._resolve(path) is not None

    def stat(self, path: str) -> InodeInfo:
        """Return metadata for the given path.

        Raises:
            FileNotFoundError: If the path does not exist.

        """
        inode = self._resolve(path)
        if inode is None:
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        return inode.to_info()

    def list_dir(self, path: str) -> list[str]:
        """List the names in a directory.

        Raises:
            FileNotFoundError: If the path does not exist.
            NotADirectoryError: If the path is not a directory.

        """
        inode = self._resolve(path)
        if inode is None:
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        if inode.file_type is not FileType.DIRECTORY:
            msg = f"Not a directory: {path}"
            raise NotADirectoryError(msg)
        return sorted(inode.children.keys())

    def create_file(self, path: str) -> None:
        """Create an empty file, or truncate the existing one.

        Args:
            path: Absolute path for the file.

        Raises:
            IsADirectoryError: If the path names a directory.
            FileNotFoundError: If the parent directory does not exist.

        """
        existing = self._resolve(path)
        if existing is not None:
            if existing.file_type is FileType.DIRECTORY:
                msg = f"Is a directory: {path}"
                raise IsADirectoryError(msg)
            existing.data = b""
            return
        self._create(path, FileType.FILE)

    def create_dir(self, path: str) -> None:
        """Create an empty directory at the given path.

        Raises:
            FileExistsError: If the path already exists.
            FileNotFoundError: If the parent directory does not exist.

        """
        if self.exists(path):
            _, name = split_path(path)
            msg = f"Already exists: {name}"
            raise FileExistsError(msg)
        self._create(path, FileType.DIRECTORY)

    def _create(self, path: str, file_type: FileType) -> None:
        """Create an inode and link it into its parent directory."""
        parent_path, name = split_path(path)
        parent = self._resolve(parent_path) if parent_path else None
        if parent is None or parent.file_type is not FileType.DIRECTORY or not name:
            msg = f"Parent directory not found: {parent_path or path}"
            raise FileNotFoundError(msg)

        new_inode = _Inode(inode_number=next(self._inode_counter), file_type=file_type)
        self._inodes[new_inode.inode_number] = new_inode
        parent.children[name] = new_inode.inode_number

    def check_readable(self, path: str) -> None:
        """Raise unless *path* is a file; in-memory files carry no permissions."""
        self._resolve_file(path)

    def read(self, path: str) -> bytes:
        """Read the contents of a file.

        Raises:
            FileNotFoundError: If the path does not exist.
            IsADirectoryError: If the path is a directory.

        """
        return self._resolve_file(path).data

    def write(self, path: str, data: bytes) -> None:
        """Write data to a file (replaces existing content)."""
        self._resolve_file(path).data = bytes(data)

    def read_at(self, path: str, *, offset: int, count: int) -> bytes:
        """Read *count* bytes from a file starting at *offset*.

        Reading past EOF returns fewer bytes than requested; reading at
        or beyond EOF returns ``b""``.
        """
        return self._resolve_file(path).data[offset : offset + count]

    def write_at(self, path: str, *, offset: int, data: bytes) -> int:
        r"""Write *data* into a file at *offset*, splicing into existing content.

        Writing beyond EOF pads the gap with ``\x00`` bytes.

        Returns:
            The number of bytes written (always ``len(data)``).

        """
        inode = self._resolve_file(path)
        existing = inode.data
        if offset > len(existing):
            existing = existing + b"\x00" * (offset - len(existing))
        inode.data = existing[:offset] + bytes(data) + existing[offset + len(data) :]
        return len(data)

    def delete(self, path: str) -> None:
        """Delete a file or empty directory.

        Raises:
            FileNotFoundError: If the path does not exist.
            OSError: If the path is the root or a non-empty directory.

        """
        if path == "/":
            msg = "Cannot delete root directory"
            raise OSError(msg)

        inode = self._resolve(path)
        if inode is None:
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        if inode.file_type is FileType.DIRECTORY and inode.children:
            msg = f"Directory not empty: {path}"
            raise OSError(msg)

        parent_path, name = split_path(path)
        parent = self._resolve(parent_path)
        if parent is None:  # pragma: no cover
            msg = f"Parent directory not found: {parent_path}"
            raise FileNotFoundError(msg)
        del parent.children[name]
        del self._inodes[inode.inode_number]
