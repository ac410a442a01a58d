"""Tests for the system call interface.

User programs reach the kernel only through ``kernel.syscall()``.  The
dispatcher routes each number to a handler and turns every internal
failure into a ``SyscallError``.
"""

import pytest

from py_cp.fs.fd import STDOUT_FD
from py_cp.fs.filesystem import FileType
from py_cp.kernel import INIT_PID, Kernel, KernelState
from py_cp.logging import LogLevel
from py_cp.syscalls import MAX_FILENAME_LENGTH, SyscallError, SyscallNumber

FIRST_FILE_FD = 2
CONTENT = b"hello, world"


def _booted_kernel() -> Kernel:
    """Create and boot a kernel for testing."""
    kernel = Kernel()
    kernel.boot()
    return kernel


def _open(kernel: Kernel, path: str) -> int:
    result = kernel.syscall(SyscallNumber.SYS_OPEN, pid=INIT_PID, path=path)
    return result["fd"]


def _creat(kernel: Kernel, path: str) -> int:
    result = kernel.syscall(SyscallNumber.SYS_CREAT, pid=INIT_PID, path=path)
    return result["fd"]


class TestSyscallNumbers:
    """Verify the numbering of the file syscalls."""

    def test_classic_numbers(self) -> None:
        """The file operations keep their conventional numbers."""
        assert SyscallNumber.SYS_CREAT == 4  # noqa: PLR2004
        assert SyscallNumber.SYS_OPEN == 5  # noqa: PLR2004
        assert SyscallNumber.SYS_READ == 6  # noqa: PLR2004
        assert SyscallNumber.SYS_WRITE == 7  # noqa: PLR2004
        assert SyscallNumber.SYS_CLOSE == 8  # noqa: PLR2004

    def test_syscall_requires_running_kernel(self) -> None:
        """A halted kernel accepts no syscalls."""
        with pytest.raises(RuntimeError, match="not running"):
            Kernel().syscall(SyscallNumber.SYS_OPEN, pid=INIT_PID, path="/a")


class TestSyscallFileOps:
    """Verify creat, open, read, write, and close."""

    def test_creat_returns_lowest_free_fd(self) -> None:
        """The first file descriptor follows stdin and stdout."""
        kernel = _booted_kernel()
        assert _creat(kernel, "/a") == FIRST_FILE_FD
        assert _creat(kernel, "/b") == FIRST_FILE_FD + 1

    def test_write_then_read_back(self) -> None:
        """Bytes written through one descriptor are readable through another."""
        kernel = _booted_kernel()
        fd = _creat(kernel, "/a")
        result = kernel.syscall(SyscallNumber.SYS_WRITE, pid=INIT_PID, fd=fd, data=CONTENT)
        assert result == {"bytes_written": len(CONTENT)}
        kernel.syscall(SyscallNumber.SYS_CLOSE, pid=INIT_PID, fd=fd)

        fd = _open(kernel, "/a")
        result = kernel.syscall(SyscallNumber.SYS_READ, pid=INIT_PID, fd=fd, count=1024)
        assert result == {"data": CONTENT, "count": len(CONTENT)}
        eof = kernel.syscall(SyscallNumber.SYS_READ, pid=INIT_PID, fd=fd, count=1024)
        assert eof["count"] == 0

    def test_closed_fd_is_reused(self) -> None:
        """Closing frees the slot for the next open."""
        kernel = _booted_kernel()
        fd = _creat(kernel, "/a")
        kernel.syscall(SyscallNumber.SYS_CLOSE, pid=INIT_PID, fd=fd)
        assert _open(kernel, "/a") == fd

    def test_open_missing_raises(self) -> None:
        """Opening a file that does not exist fails."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError, match="File not found"):
            _open(kernel, "/missing")

    def test_open_directory_raises(self) -> None:
        """Directories cannot be opened as files."""
        kernel = _booted_kernel()
        kernel.syscall(SyscallNumber.SYS_MKDIR, path="/d")
        with pytest.raises(SyscallError, match="Is a directory"):
            _open(kernel, "/d")

    def test_creat_in_missing_directory_raises(self) -> None:
        """creat does not create parent directories."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError):
            _creat(kernel, "/nowhere/a")

    def test_read_bad_fd_raises(self) -> None:
        """Reading a descriptor that was never opened fails."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError, match="Bad file descriptor"):
            kernel.syscall(SyscallNumber.SYS_READ, pid=INIT_PID, fd=9, count=1)

    def test_read_zero_count_raises(self) -> None:
        """A read of zero bytes is rejected."""
        kernel = _booted_kernel()
        fd = _creat(kernel, "/a")
        with pytest.raises(SyscallError, match="Invalid read count"):
            kernel.syscall(SyscallNumber.SYS_READ, pid=INIT_PID, fd=fd, count=0)

    def test_write_read_only_raises(self) -> None:
        """Descriptors from open refuse writes."""
        kernel = _booted_kernel()
        _creat(kernel, "/a")
        fd = _open(kernel, "/a")
        with pytest.raises(SyscallError, match="not writable"):
            kernel.syscall(SyscallNumber.SYS_WRITE, pid=INIT_PID, fd=fd, data=b"x")

    def test_close_bad_fd_raises(self) -> None:
        """Closing an unopened slot fails."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError, match="Bad file descriptor"):
            kernel.syscall(SyscallNumber.SYS_CLOSE, pid=INIT_PID, fd=FIRST_FILE_FD)

    def test_write_stdout(self) -> None:
        """fd 1 is the console."""
        kernel = _booted_kernel()
        kernel.syscall(SyscallNumber.SYS_WRITE, pid=INIT_PID, fd=STDOUT_FD, data=b"out")
        assert kernel.console is not None
        assert kernel.console.peek() == b"out"

    def test_internal_error_is_chained(self) -> None:
        """The original exception is kept as the cause."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError) as exc_info:
            _open(kernel, "/missing")
        assert exc_info.value.__cause__ is not None


class TestFilenameChecks:
    """Verify path argument validation."""

    def test_empty_name_rejected(self) -> None:
        """An empty path is never valid."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError, match="Empty file name"):
            _creat(kernel, "")

    def test_name_at_limit_accepted(self) -> None:
        """A path of exactly the maximum length is fine."""
        kernel = _booted_kernel()
        path = "/" + "a" * (MAX_FILENAME_LENGTH - 1)
        assert _creat(kernel, path) == FIRST_FILE_FD

    def test_name_over_limit_rejected(self) -> None:
        """A path one byte over the maximum is refused."""
        kernel = _booted_kernel()
        path = "/" + "a" * MAX_FILENAME_LENGTH
        with pytest.raises(SyscallError, match="too long"):
            _open(kernel, path)


class TestDirectoryOps:
    """Verify mkdir, list_dir, stat, and unlink."""

    def test_mkdir_and_list(self) -> None:
        """New entries appear in their parent listing."""
        kernel = _booted_kernel()
        kernel.syscall(SyscallNumber.SYS_MKDIR, path="/d")
        _creat(kernel, "/d/a")
        assert kernel.syscall(SyscallNumber.SYS_LIST_DIR, path="/d") == ["a"]

    def test_stat(self) -> None:
        """stat reports type and size."""
        kernel = _booted_kernel()
        fd = _creat(kernel, "/a")
        kernel.syscall(SyscallNumber.SYS_WRITE, pid=INIT_PID, fd=fd, data=CONTENT)
        info = kernel.syscall(SyscallNumber.SYS_STAT, path="/a")
        assert info == {"path": "/a", "type": FileType.FILE, "size": len(CONTENT)}

    def test_unlink(self) -> None:
        """A removed file can no longer be opened."""
        kernel = _booted_kernel()
        _creat(kernel, "/a")
        kernel.syscall(SyscallNumber.SYS_UNLINK, path="/a")
        with pytest.raises(SyscallError):
            _open(kernel, "/a")

    def test_list_missing_raises(self) -> None:
        """Listing a missing directory fails."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError):
            kernel.syscall(SyscallNumber.SYS_LIST_DIR, path="/missing")


class TestProcessOps:
    """Verify exit and halt."""

    def test_exit_sets_status(self) -> None:
        """SYS_EXIT terminates the caller with the given status."""
        kernel = _booted_kernel()
        proc = kernel.create_process(name="p")
        kernel.syscall(SyscallNumber.SYS_EXIT, pid=proc.pid, status=4)
        assert proc.exit_status == 4  # noqa: PLR2004

    def test_exit_status_wins_over_return(self) -> None:
        """A program that exits explicitly keeps that status."""
        kernel = _booted_kernel()

        def program(k: Kernel, pid: int, _argv: list[str]) -> int:
            k.syscall(SyscallNumber.SYS_EXIT, pid=pid, status=5)
            return 0

        assert kernel.run_program(program, name="p", argv=[]) == 5  # noqa: PLR2004

    def test_exit_unknown_pid_raises(self) -> None:
        """Exiting a missing process fails."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError, match="not found"):
            kernel.syscall(SyscallNumber.SYS_EXIT, pid=99, status=0)

    def test_halt_from_init(self) -> None:
        """Init halting the machine shuts the kernel down."""
        kernel = _booted_kernel()
        kernel.syscall(SyscallNumber.SYS_HALT, pid=INIT_PID)
        assert kernel.state is KernelState.SHUTDOWN


class TestSyscallLogging:
    """Verify that syscalls leave a trail in the kernel log."""

    def test_every_syscall_logged_at_debug(self) -> None:
        """Each trap is recorded at DEBUG level."""
        kernel = _booted_kernel()
        _creat(kernel, "/a")
        entries = kernel.logger.filter(source="syscall")
        assert [e.message for e in entries] == ["syscall SYS_CREAT"]
        assert entries[0].level is LogLevel.DEBUG

    def test_failure_logged_at_error(self) -> None:
        """A failing syscall adds an ERROR entry with the reason."""
        kernel = _booted_kernel()
        with pytest.raises(SyscallError):
            _open(kernel, "/missing")
        errors = kernel.logger.filter(min_level=LogLevel.ERROR)
        assert len(errors) == 1
        assert errors[0].message == "SYS_OPEN failed: File not found: /missing"

    def test_read_log_syscall(self) -> None:
        """SYS_READ_LOG returns formatted entries."""
        kernel = _booted_kernel()
        entries = kernel.syscall(SyscallNumber.SYS_READ_LOG, min_level=LogLevel.INFO)
        assert "[INFO] kernel: Kernel running" in entries
