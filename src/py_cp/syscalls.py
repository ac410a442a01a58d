"""System call interface — the gateway between user programs and the kernel.

User programs never touch the file system or the fd tables directly.
They trap into the kernel with a syscall number and arguments; the
dispatcher routes to a handler, and any internal failure comes back out
as ``SyscallError``.

1. ``SyscallNumber`` — every operation the kernel supports.  The file
   operations keep the classic teaching-kernel numbering (halt 0,
   exit 1, creat 4, open 5, read 6, write 7, close 8, unlink 9).
2. ``SyscallError`` — the only exception user space sees.
3. ``dispatch_syscall()`` — the trap handler.
"""

from enum import IntEnum
from typing import Any

from py_cp.fs.fd import FdError
from py_cp.logging import LogLevel

MAX_FILENAME_LENGTH = 256
"""Longest path accepted by creat, open and unlink."""


class SyscallNumber(IntEnum):
    """Enumerate every system call the kernel supports."""

    # Process operations
    SYS_HALT = 0
    SYS_EXIT = 1

    # File operations
    SYS_CREAT = 4
    SYS_OPEN = 5
    SYS_READ = 6
    SYS_WRITE = 7
    SYS_CLOSE = 8
    SYS_UNLINK = 9

    # Directory operations (shell conveniences)
    SYS_MKDIR = 10
    SYS_LIST_DIR = 11
    SYS_STAT = 12

    # Logging operations
    SYS_READ_LOG = 50

    # Strace operations
    SYS_STRACE_ENABLE = 180
    SYS_STRACE_DISABLE = 181
    SYS_STRACE_LOG = 182
    SYS_STRACE_CLEAR = 183


class SyscallError(Exception):
    """Raised when a system call fails.

    Internal kernel exceptions are caught and wrapped so user space
    never sees them directly.
    """


def dispatch_syscall(
    kernel: Any,
    number: SyscallNumber,
    **kwargs: Any,
) -> Any:
    """Dispatch a system call to the appropriate kernel operation.

    Args:
        kernel: The running kernel instance.
        number: The syscall number identifying the operation.
        **kwargs: Arguments specific to the syscall.

    Returns:
        The syscall result (type depends on the operation).

    Raises:
        SyscallError: If the syscall fails or the number is unknown.

    """
    handlers: dict[SyscallNumber, Any] = {
        SyscallNumber.SYS_HALT: _sys_halt,
        SyscallNumber.SYS_EXIT: _sys_exit,
        SyscallNumber.SYS_CREAT: _sys_creat,
        SyscallNumber.SYS_OPEN: _sys_open,
        SyscallNumber.SYS_READ: _sys_read,
        SyscallNumber.SYS_WRITE: _sys_write,
        SyscallNumber.SYS_CLOSE: _sys_close,
        SyscallNumber.SYS_UNLINK: _sys_unlink,
        SyscallNumber.SYS_MKDIR: _sys_mkdir,
        SyscallNumber.SYS_LIST_DIR: _sys_list_dir,
        SyscallNumber.SYS_STAT: _sys_stat,
        SyscallNumber.SYS_READ_LOG: _sys_read_log,
        SyscallNumber.SYS_STRACE_ENABLE: _sys_strace_enable,
        SyscallNumber.SYS_STRACE_DISABLE: _sys_strace_disable,
        SyscallNumber.SYS_STRACE_LOG: _sys_strace_log,
        SyscallNumber.SYS_STRACE_CLEAR: _sys_strace_clear,
    }

    handler = handlers.get(number)
    if handler is None:
        msg = f"Unknown syscall: {number}"
        raise SyscallError(msg)

    return handler(kernel, **kwargs)


def _check_filename(path: str) -> None:
    """Reject empty or over-long path arguments."""
    if not path:
        msg = "Empty file name"
        raise SyscallError(msg)
    if len(path) > MAX_FILENAME_LENGTH:
        msg = f"File name too long ({len(path)} > {MAX_FILENAME_LENGTH})"
        raise SyscallError(msg)


# -- Process syscall handlers ------------------------------------------------


def _sys_halt(kernel: Any, **kwargs: Any) -> None:
    """Shut the machine down (only the init process may do this)."""
    pid: int = kwargs["pid"]
    kernel.halt(pid=pid)


def _sys_exit(kernel: Any, **kwargs: Any) -> None:
    """Terminate the calling process with an exit status."""
    pid: int = kwargs["pid"]
    status: int = kwargs.get("status", 0)
    try:
        kernel.exit_process(pid=pid, status=status)
    except (ValueError, RuntimeError) as e:
        raise SyscallError(str(e)) from e


# -- File syscall handlers ---------------------------------------------------


def _sys_creat(kernel: Any, **kwargs: Any) -> dict[str, int]:
    """Create (or truncate) a file and return a read-write descriptor."""
    pid: int = kwargs["pid"]
    path: str = kwargs["path"]
    _check_filename(path)
    try:
        fd = kernel.creat_file(pid, path)
    except (FdError, OSError) as e:
        raise SyscallError(str(e)) from e
    return {"fd": fd}


def _sys_open(kernel: Any, **kwargs: Any) -> dict[str, int]:
    """Open an existing file and return a read-only descriptor."""
    pid: int = kwargs["pid"]
    path: str = kwargs["path"]
    _check_filename(path)
    try:
        fd = kernel.open_file(pid, path)
    except (FdError, OSError) as e:
        raise SyscallError(str(e)) from e
    return {"fd": fd}


def _sys_read(kernel: Any, **kwargs: Any) -> dict[str, Any]:
    """Read up to ``count`` bytes from a descriptor."""
    pid: int = kwargs["pid"]
    fd: int = kwargs["fd"]
    count: int = kwargs["count"]
    try:
        data = kernel.read_fd(pid, fd, count=count)
    except (FdError, OSError) as e:
        raise SyscallError(str(e)) from e
    return {"data": data, "count": len(data)}


def _sys_write(kernel: Any, **kwargs: Any) -> dict[str, int]:
    """Write bytes to a descriptor; may transfer fewer than requested."""
    pid: int = kwargs["pid"]
    fd: int = kwargs["fd"]
    data: bytes = kwargs["data"]
    try:
        bytes_written = kernel.write_fd(pid, fd, data)
    except (FdError, OSError) as e:
        raise SyscallError(str(e)) from e
    return {"bytes_written": bytes_written}


def _sys_close(kernel: Any, **kwargs: Any) -> None:
    """Close a descriptor."""
    try:
        kernel.close_file(kwargs["pid"], kwargs["fd"])
    except FdError as e:
        raise SyscallError(str(e)) from e


def _sys_unlink(kernel: Any, **kwargs: Any) -> None:
    """Remove a file or empty directory."""
    path: str = kwargs["path"]
    _check_filename(path)
    try:
        kernel.unlink_file(path)
    except OSError as e:
        raise SyscallError(str(e)) from e


def _sys_mkdir(kernel: Any, **kwargs: Any) -> None:
    """Create a directory."""
    path: str = kwargs["path"]
    _check_filename(path)
    assert kernel.filesystem is not None  # noqa: S101
    try:
        kernel.filesystem.create_dir(path)
    except OSError as e:
        raise SyscallError(str(e)) from e


def _sys_list_dir(kernel: Any, **kwargs: Any) -> list[str]:
    """List directory contents."""
    assert kernel.filesystem is not None  # noqa: S101
    try:
        return kernel.filesystem.list_dir(kwargs["path"])
    except OSError as e:
        raise SyscallError(str(e)) from e


def _sys_stat(kernel: Any, **kwargs: Any) -> dict[str, Any]:
    """Return type and size for a path."""
    assert kernel.filesystem is not None  # noqa: S101
    path: str = kwargs["path"]
    try:
        info = kernel.filesystem.stat(path)
    except OSError as e:
        raise SyscallError(str(e)) from e
    return {"path": path, "type": info.file_type, "size": info.size}


# -- Logging syscall handlers ------------------------------------------------


def _sys_read_log(kernel: Any, **kwargs: Any) -> list[str]:
    """Return formatted log entries, optionally filtered."""
    min_level: LogLevel | None = kwargs.get("min_level")
    source: str | None = kwargs.get("source")
    entries = kernel.logger.filter(min_level=min_level, source=source)
    return [str(e) for e in entries]


# -- Strace syscall handlers -------------------------------------------------


def _sys_strace_enable(kernel: Any, **_kwargs: Any) -> None:
    """Start recording syscalls."""
    kernel.strace_enable()


def _sys_strace_disable(kernel: Any, **_kwargs: Any) -> None:
    """Stop recording syscalls, keeping the log."""
    kernel.strace_disable()


def _sys_strace_log(kernel: Any, **_kwargs: Any) -> list[str]:
    """Return the recorded syscall trace."""
    return kernel.strace_log()


def _sys_strace_clear(kernel: Any, **_kwargs: Any) -> None:
    """Clear the recorded syscall trace."""
    kernel.strace_clear()
