"""File descriptors — per-process tables tracking open files.

User programs never see paths after ``open``/``creat``; they get back a
small integer and pass it to ``read``, ``write`` and ``close``.

- **File descriptor (fd)**: a slot index into the process's table.
  Slot 0 is stdin and slot 1 is stdout (both the console); files are
  placed in the lowest free slot from 2 upward.
- **Open file description (OFD)**: the bookkeeping record behind an fd:
  path, access mode, and current byte offset.
- **Fd table**: a fixed number of slots (``MAX_OPEN_FILES``).  When every
  slot is taken, further opens fail until something is closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

MAX_OPEN_FILES = 16
"""Slots per process, console descriptors included."""

STDIN_FD = 0
STDOUT_FD = 1


class FdError(Exception):
    """Raise when a file descriptor operation fails."""


class FileMode(StrEnum):
    """Access mode for an open file.

    - READ  — opened by ``open``; reads only.
    - WRITE — console output; writes only.
    - READ_WRITE — opened by ``creat``; reads and writes.
    """

    READ = "r"
    WRITE = "w"
    READ_WRITE = "rw"


@dataclass
class OpenFileDescription:
    """Track an open file's path, mode, and current offset.

    Not frozen: ``offset`` advances with every read and write.
    ``console`` marks the stdin/stdout slots, which have no path.
    """

    path: str
    mode: FileMode
    offset: int = 0
    console: bool = False


class FdTable:
    """Per-process table mapping fd numbers to open file descriptions."""

    FIRST_FD = 2

    def __init__(self, *, capacity: int = MAX_OPEN_FILES) -> None:
        """Create a table with stdin and stdout already attached.

        Args:
            capacity: Total number of slots, console slots included.

        """
        self._capacity = capacity
        self._fds: dict[int, OpenFileDescription] = {
            STDIN_FD: OpenFileDescription(path="<stdin>", mode=FileMode.READ, console=True),
            STDOUT_FD: OpenFileDescription(path="<stdout>", mode=FileMode.WRITE, console=True),
        }

    @property
    def capacity(self) -> int:
        """Return the total number of slots."""
        return self._capacity

    def allocate(self, ofd: OpenFileDescription) -> int:
        """Place an open file description in the lowest free slot.

        Args:
            ofd: The open file description to register.

        Returns:
            The newly assigned fd number.

        Raises:
            FdError: If every slot is in use.

        """
        for fd in range(self.FIRST_FD, self._capacity):
            if fd not in self._fds:
                self._fds[fd] = ofd
                return fd
        msg = f"Too many open files (limit {self._capacity})"
        raise FdError(msg)

    def lookup(self, fd: int) -> OpenFileDescription:
        """Return the open file description for a given fd.

        Raises:
            FdError: If the fd is not open.

        """
        ofd = self._fds.get(fd)
        if ofd is None:
            msg = f"Bad file descriptor: {fd}"
            raise FdError(msg)
        return ofd

    def close(self, fd: int) -> OpenFileDescription:
        """Release an fd for reuse and return what it referred to.

        Raises:
            FdError: If the fd is not open.

        """
        if fd not in self._fds:
            msg = f"Bad file descriptor: {fd}"
            raise FdError(msg)
        return self._fds.pop(fd)

    def list_fds(self) -> dict[int, OpenFileDescription]:
        """Return a snapshot of all open fds."""
        return dict(self._fds)

    def file_fds(self) -> list[int]:
        """Return the fds that refer to files (console slots excluded)."""
        return sorted(fd for fd, ofd in self._fds.items() if not ofd.console)
