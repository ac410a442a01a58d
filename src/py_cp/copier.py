"""The copier — stream every byte of one file into another.

The copy runs entirely through system calls, the way a user program
would: ``open`` the source, ``creat`` the destination, then alternate
``read`` and ``write`` through a 1024-byte transfer buffer until a read
returns nothing.  Both descriptors are closed on every path that
acquired them.

Rules the loop keeps:

- Only the ``n`` bytes produced by the latest read are written.  A
  short read never lets leftovers from an earlier, longer read reach
  the destination.
- A write that transfers fewer bytes than asked is continued with the
  remainder.  A write that transfers nothing, or fails, ends the copy
  with ``WriteFailed``.
- The destination is only created once the source has been opened, so
  a missing source never creates or truncates the destination.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_cp.syscalls import SyscallError, SyscallNumber

if TYPE_CHECKING:
    from py_cp.kernel import Kernel

BUFFER_SIZE = 1024


class CopyError(Exception):
    """Base class for copy failures; ``path`` names the file involved."""

    action = "copy"

    def __init__(self, path: str, *, reason: str | None = None) -> None:
        """Record the failing path and an optional low-level reason."""
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to {self.action} {path}")


class SourceUnavailable(CopyError):
    """The source could not be opened for reading."""

    action = "open"


class DestinationUnavailable(CopyError):
    """The destination could not be created or opened for writing."""

    action = "create"


class ReadFailed(CopyError):
    """A read from the source failed mid-copy."""

    action = "read"


class WriteFailed(CopyError):
    """A write to the destination failed or made no progress."""

    action = "write"


class Descriptor:
    """A file descriptor owned by one process, usable as a byte source or sink.

    Wraps the read/write/close system calls so the copy loop can treat
    both ends the same way.  Closing is idempotent.
    """

    def __init__(self, kernel: Kernel, *, pid: int, fd: int, path: str) -> None:
        """Wrap an already-open descriptor."""
        self._kernel = kernel
        self._pid = pid
        self._fd: int | None = fd
        self.path = path

    @classmethod
    def open(cls, kernel: Kernel, *, pid: int, path: str) -> Descriptor:
        """Open an existing file for reading.

        Raises:
            SyscallError: If the kernel refuses.

        """
        result: dict[str, int] = kernel.syscall(SyscallNumber.SYS_OPEN, pid=pid, path=path)
        return cls(kernel, pid=pid, fd=result["fd"], path=path)

    @classmethod
    def create(cls, kernel: Kernel, *, pid: int, path: str) -> Descriptor:
        """Create or truncate a file and open it for writing.

        Raises:
            SyscallError: If the kernel refuses.

        """
        result: dict[str, int] = kernel.syscall(SyscallNumber.SYS_CREAT, pid=pid, path=path)
        return cls(kernel, pid=pid, fd=result["fd"], path=path)

    @property
    def fd(self) -> int | None:
        """Return the descriptor number, or None once closed."""
        return self._fd

    @property
    def closed(self) -> bool:
        """Return whether the descriptor has been released."""
        return self._fd is None

    def _require_open(self) -> int:
        if self._fd is None:
            msg = f"Descriptor for {self.path} is closed"
            raise SyscallError(msg)
        return self._fd

    def readinto(self, buffer: memoryview) -> int:
        """Fill the front of *buffer* and return how many bytes arrived.

        Returns 0 at end of input.
        """
        fd = self._require_open()
        result: dict[str, object] = self._kernel.syscall(
            SyscallNumber.SYS_READ, pid=self._pid, fd=fd, count=len(buffer)
        )
        data = result["data"]
        assert isinstance(data, bytes)  # noqa: S101
        n = len(data)
        buffer[:n] = data
        return n

    def write(self, data: bytes) -> int:
        """Write *data* and return how many bytes the kernel accepted."""
        fd = self._require_open()
        result: dict[str, int] = self._kernel.syscall(
            SyscallNumber.SYS_WRITE, pid=self._pid, fd=fd, data=data
        )
        return result["bytes_written"]

    def close(self) -> None:
        """Release the descriptor (no-op if already closed)."""
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        self._kernel.syscall(SyscallNumber.SYS_CLOSE, pid=self._pid, fd=fd)

    def __enter__(self) -> Descriptor:
        """Return self for use in a ``with`` block."""
        return self

    def __exit__(self, *_exc: object) -> None:
        """Close on leaving the ``with`` block."""
        self.close()


class Copier:
    """Copy files on behalf of one process.

    Each ``copy`` call owns its buffer and descriptors; nothing is shared
    between calls.
    """

    def __init__(self, kernel: Kernel, *, pid: int, buffer_size: int = BUFFER_SIZE) -> None:
        """Bind the copier to a kernel and the process it acts for.

        Raises:
            ValueError: If *buffer_size* is not positive.

        """
        if buffer_size <= 0:
            msg = f"Buffer size must be positive, got {buffer_size}"
            raise ValueError(msg)
        self._kernel = kernel
        self._pid = pid
        self._buffer_size = buffer_size

    @property
    def buffer_size(self) -> int:
        """Return the transfer buffer capacity in bytes."""
        return self._buffer_size

    def copy(self, source: str, destination: str) -> None:
        """Copy *source* to *destination*, replacing its content.

        Raises:
            SourceUnavailable: If the source cannot be opened.
            DestinationUnavailable: If the destination cannot be created.
            ReadFailed: If reading the source fails.
            WriteFailed: If writing the destination fails or stalls.

        """
        try:
            src = Descriptor.open(self._kernel, pid=self._pid, path=source)
        except SyscallError as e:
            raise SourceUnavailable(source, reason=str(e)) from e

        with src:
            try:
                dst = Descriptor.create(self._kernel, pid=self._pid, path=destination)
            except SyscallError as e:
                raise DestinationUnavailable(destination, reason=str(e)) from e
            with dst:
                self._pump(src, dst)

    def _pump(self, src: Descriptor, dst: Descriptor) -> None:
        """Move bytes from *src* to *dst* until *src* is exhausted."""
        buffer = bytearray(self._buffer_size)
        with memoryview(buffer) as view:
            while True:
                try:
                    n = src.readinto(view)
                except SyscallError as e:
                    raise ReadFailed(src.path, reason=str(e)) from e
                if n <= 0:
                    break
                _write_all(dst, bytes(view[:n]))


def _write_all(dst: Descriptor, chunk: bytes) -> None:
    """Write all of *chunk*, continuing after short writes."""
    remaining = chunk
    while remaining:
        try:
            written = dst.write(remaining)
        except SyscallError as e:
            raise WriteFailed(dst.path, reason=str(e)) from e
        if written <= 0:
            raise WriteFailed(dst.path, reason=f"wrote {written} of {len(remaining)} bytes")
        remaining = remaining[written:]


def copy(kernel: Kernel, source: str, destination: str, *, pid: int) -> None:
    """Copy a file as process *pid* with the default buffer size."""
    Copier(kernel, pid=pid).copy(source, destination)
