"""Host-backed file system — kernel paths mapped onto a real directory.

The in-memory ``FileSystem`` vanishes with the kernel.  To copy real
files, the kernel can instead be booted on a ``HostFileSystem``: every
absolute kernel path ``/a/b.txt`` maps to ``<root>/a/b.txt`` on the
host.  Paths that would climb out of the root (``/../etc``) are treated
as missing.
"""

from pathlib import Path

from py_cp.fs.filesystem import FileType, InodeInfo


class HostFileSystem:
    """A ``FileStore`` whose files live under a host directory."""

    def __init__(self, *, root: Path | str = "/") -> None:
        """Create a file system rooted at *root*.

        Args:
            root: Existing host directory that kernel ``/`` maps to.

        Raises:
            NotADirectoryError: If *root* is not a directory.

        """
        self._root = Path(root).resolve()
        if not self._root.is_dir():
            msg = f"Not a directory: {self._root}"
            raise NotADirectoryError(msg)

    @property
    def root(self) -> Path:
        """Return the host directory backing ``/``."""
        return self._root

    def host_path(self, path: str) -> Path:
        """Translate a kernel path into a host path.

        Raises:
            FileNotFoundError: If the path escapes the root or is not a
                valid host path (e.g. it contains a NUL byte).

        """
        if "\0" in path:
            msg = f"Path not found: {path!r}"
            raise FileNotFoundError(msg)
        try:
            candidate = (self._root / path.lstrip("/")).resolve()
        except ValueError as e:
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg) from e
        if candidate != self._root and not candidate.is_relative_to(self._root):
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        return candidate

    def _file(self, path: str) -> Path:
        """Resolve a path that must name an existing regular file."""
        target = self.host_path(path)
        if target.is_dir():
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        if not target.exists():
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        return target

    def exists(self, path: str) -> bool:
        """Check whether a path exists under the root."""
        try:
            return self.host_path(path).exists()
        except FileNotFoundError:
            return False

    def stat(self, path: str) -> InodeInfo:
        """Return metadata for the given path."""
        target = self.host_path(path)
        if not target.exists():
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        st = target.stat()
        file_type = FileType.DIRECTORY if target.is_dir() else FileType.FILE
        size = 0 if file_type is FileType.DIRECTORY else st.st_size
        return InodeInfo(inode_number=st.st_ino, file_type=file_type, size=size)

    def list_dir(self, path: str) -> list[str]:
        """List the names in a directory."""
        target = self.host_path(path)
        if not target.exists():
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        if not target.is_dir():
            msg = f"Not a directory: {path}"
            raise NotADirectoryError(msg)
        return sorted(child.name for child in target.iterdir())

    def create_file(self, path: str) -> None:
        """Create an empty file, or truncate the existing one."""
        target = self.host_path(path)
        if target.is_dir():
            msg = f"Is a directory: {path}"
            raise IsADirectoryError(msg)
        if not target.parent.is_dir():
            msg = f"Parent directory not found: {path}"
            raise FileNotFoundError(msg)
        target.write_bytes(b"")

    def create_dir(self, path: str) -> None:
        """Create an empty directory."""
        target = self.host_path(path)
        if target.exists():
            msg = f"Already exists: {target.name}"
            raise FileExistsError(msg)
        if not target.parent.is_dir():
            msg = f"Parent directory not found: {path}"
            raise FileNotFoundError(msg)
        target.mkdir()

    def read(self, path: str) -> bytes:
        """Read the contents of a file."""
        return self._file(path).read_bytes()

    def write(self, path: str, data: bytes) -> None:
        """Replace a file's content."""
        self._file(path).write_bytes(data)

    def check_readable(self, path: str) -> None:
        """Open the file for reading and close it again.

        Raises:
            PermissionError: If the host refuses read access.

        """
        with self._file(path).open("rb"):
            pass

    def read_at(self, path: str, *, offset: int, count: int) -> bytes:
        """Read up to *count* bytes starting at *offset*."""
        with self._file(path).open("rb") as f:
            f.seek(offset)
            return f.read(count)

    def write_at(self, path: str, *, offset: int, data: bytes) -> int:
        """Write *data* at *offset* and return the bytes written."""
        with self._file(path).open("r+b") as f:
            f.seek(offset)
            return f.write(data)

    def delete(self, path: str) -> None:
        """Delete a file or empty directory.

        Raises:
            FileNotFoundError: If the path does not exist.
            OSError: If the path is the root or a non-empty directory.

        """
        target = self.host_path(path)
        if target == self._root:
            msg = "Cannot delete root directory"
            raise OSError(msg)
        if not target.exists():
            msg = f"Path not found: {path}"
            raise FileNotFoundError(msg)
        if target.is_dir():
            if any(target.iterdir()):
                msg = f"Directory not empty: {path}"
                raise OSError(msg)
            target.rmdir()
            return
        target.unlink()
