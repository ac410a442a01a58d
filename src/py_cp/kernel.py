"""The kernel — owner of the file system, the console, and every process.

The kernel follows an explicit lifecycle state machine:

    SHUTDOWN  →  BOOTING  →  RUNNING  →  SHUTTING_DOWN  →  SHUTDOWN

Boot sequence:
    0. Logger — capture events from the start.
    1. File system — mount the configured backend (in-memory by default).
    2. Console — stdin/stdout for every process.
    3. Init process — pid 0, the only process allowed to halt.

Shutdown runs in reverse and reclaims every descriptor still open.

User programs reach the kernel only through ``syscall()``.  The fd
operations below are what the syscall handlers call.
"""

from collections.abc import Callable
from enum import StrEnum
from typing import Any

from py_cp.console import ConsoleDevice
from py_cp.fs.fd import MAX_OPEN_FILES, FdError, FdTable, FileMode, OpenFileDescription
from py_cp.fs.filesystem import FileStore, FileSystem, FileType
from py_cp.logging import MAX_LOG_ENTRIES, Logger, LogLevel
from py_cp.process import Process, ProcessState
from py_cp.syscalls import SyscallError, SyscallNumber, dispatch_syscall

INIT_PID = 0

_MAX_STRACE_ENTRIES = 1000
_STRACE_MAX_ARG_LEN = 50
_STRACE_EXCLUDED_SYSCALLS: frozenset[SyscallNumber] = frozenset(
    {
        SyscallNumber.SYS_STRACE_ENABLE,
        SyscallNumber.SYS_STRACE_DISABLE,
        SyscallNumber.SYS_STRACE_LOG,
        SyscallNumber.SYS_STRACE_CLEAR,
        SyscallNumber.SYS_READ_LOG,
    }
)

# A user program: (kernel, pid, argv) → exit status.
Program = Callable[["Kernel", int, list[str]], int]


class KernelState(StrEnum):
    """Represent the lifecycle phases of the kernel."""

    SHUTDOWN = "shutdown"
    BOOTING = "booting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class Kernel:
    """The central coordinator of the simulated machine.

    Subsystem references are None until boot.
    """

    def __init__(
        self,
        *,
        filesystem: FileStore | None = None,
        max_open_files: int = MAX_OPEN_FILES,
        max_write: int | None = None,
        log_capacity: int = MAX_LOG_ENTRIES,
    ) -> None:
        """Create a kernel in the SHUTDOWN state.

        Args:
            filesystem: Backend to mount at boot.  A fresh in-memory
                ``FileSystem`` is created on every boot when omitted.
            max_open_files: Descriptor slots per process.
            max_write: If set, a single file write transfers at most this
                many bytes, like a device that accepts short writes.
            log_capacity: Most log entries kept; older ones are evicted.

        """
        self._state: KernelState = KernelState.SHUTDOWN
        self._configured_fs = filesystem
        self._max_open_files = max_open_files
        self._max_write = max_write
        self._filesystem: FileStore | None = None
        self._console: ConsoleDevice | None = None
        self._logger: Logger = Logger(capacity=log_capacity)
        self._processes: dict[int, Process] = {}
        # Per-process file descriptor tables: pid → FdTable
        self._fd_tables: dict[int, FdTable] = {}
        self._next_pid: int = INIT_PID

        self._strace_enabled: bool = False
        self._strace_log: list[str] = []
        self._strace_sequence: int = 0

    # -- Lifecycle --------------------------------------------------------------

    @property
    def state(self) -> KernelState:
        """Return the current kernel state."""
        return self._state

    @property
    def filesystem(self) -> FileStore | None:
        """Return the mounted file system, or None if not booted."""
        return self._filesystem

    @property
    def console(self) -> ConsoleDevice | None:
        """Return the console device, or None if not booted."""
        return self._console

    @property
    def logger(self) -> Logger:
        """Return the kernel log buffer."""
        return self._logger

    @property
    def processes(self) -> dict[int, Process]:
        """Return a snapshot of the process table."""
        return dict(self._processes)

    @property
    def max_write(self) -> int | None:
        """Return the per-call write cap, or None if unlimited."""
        return self._max_write

    def _require_running(self) -> None:
        """Raise RuntimeError unless the kernel is RUNNING."""
        if self._state is not KernelState.RUNNING:
            msg = f"Kernel is not running (state: {self._state})"
            raise RuntimeError(msg)

    def boot(self) -> None:
        """Boot the kernel and bring every subsystem up.

        Raises:
            RuntimeError: If the kernel is not in the SHUTDOWN state.

        """
        if self._state is not KernelState.SHUTDOWN:
            msg = f"Cannot boot from state {self._state}"
            raise RuntimeError(msg)

        self._state = KernelState.BOOTING
        self._logger.clear()
        self._log(LogLevel.INFO, "Kernel booting", source="kernel")

        self._filesystem = self._configured_fs if self._configured_fs is not None else FileSystem()
        backend = type(self._filesystem).__name__
        self._log(LogLevel.INFO, f"File system mounted ({backend})", source="kernel")

        self._console = ConsoleDevice()
        self._log(LogLevel.INFO, "Console attached", source="kernel")

        self._processes.clear()
        self._fd_tables.clear()
        self._next_pid = INIT_PID
        self.create_process(name="init")

        self._state = KernelState.RUNNING
        self._log(LogLevel.INFO, "Kernel running", source="kernel")

    def shutdown(self) -> None:
        """Shut down, reclaiming every open descriptor.

        Raises:
            RuntimeError: If the kernel is not RUNNING.

        """
        self._require_running()
        self._state = KernelState.SHUTTING_DOWN
        self._log(LogLevel.INFO, "Kernel shutting down", source="kernel")

        for process in list(self._processes.values()):
            if process.state is ProcessState.RUNNING:
                self._reap(process, status=0)

        self._processes.clear()
        self._fd_tables.clear()
        self._console = None
        self._filesystem = None
        self._state = KernelState.SHUTDOWN
        self._log(LogLevel.INFO, "Kernel halted", source="kernel")

    def dmesg(self) -> list[str]:
        """Return lifecycle and warning messages (INFO and above)."""
        return [str(e) for e in self._logger.filter(min_level=LogLevel.INFO)]

    def _log(self, level: LogLevel, message: str, *, source: str, pid: int = INIT_PID) -> None:
        self._logger.log(level, message, source=source, pid=pid)

    # -- Processes --------------------------------------------------------------

    def create_process(self, *, name: str, argv: list[str] | None = None) -> Process:
        """Create a process with a fresh descriptor table.

        Args:
            name: Program name.
            argv: Program arguments.

        Returns:
            The new process.

        """
        if self._state not in {KernelState.BOOTING, KernelState.RUNNING}:
            msg = f"Kernel is not running (state: {self._state})"
            raise RuntimeError(msg)
        process = Process(pid=self._next_pid, name=name, argv=argv)
        self._next_pid += 1
        self._processes[process.pid] = process
        self._fd_tables[process.pid] = FdTable(capacity=self._max_open_files)
        self._log(
            LogLevel.INFO,
            f"Created process {process.pid} ({name})",
            source="process",
            pid=process.pid,
        )
        return process

    def exit_process(self, *, pid: int, status: int) -> None:
        """Terminate a process and reclaim its descriptors.

        Raises:
            ValueError: If the process does not exist.
            RuntimeError: If the process already terminated.

        """
        self._require_running()
        process = self._processes.get(pid)
        if process is None:
            msg = f"Process {pid} not found"
            raise ValueError(msg)
        self._reap(process, status=status)

    def _reap(self, process: Process, *, status: int) -> None:
        """Terminate *process* and close any file descriptors it leaked."""
        process.terminate(status)
        table = self._fd_tables.pop(process.pid, None)
        if table is not None:
            for fd in table.file_fds():
                ofd = table.close(fd)
                self._log(
                    LogLevel.WARNING,
                    f"Reclaimed fd {fd} ({ofd.path}) from process {process.pid}",
                    source="process",
                    pid=process.pid,
                )
        self._log(
            LogLevel.INFO,
            f"Process {process.pid} ({process.name}) exited with status {status}",
            source="process",
            pid=process.pid,
        )

    def run_program(self, program: Program, *, name: str, argv: list[str]) -> int:
        """Run a user program to completion in a new process.

        The program's return value becomes its exit status unless it
        already called ``exit``.  The process is removed from the table
        afterwards.

        Args:
            program: The program entry point.
            name: Program name (for the process table and logs).
            argv: Program arguments, name excluded.

        Returns:
            The process exit status.

        """
        self._require_running()
        process = self.create_process(name=name, argv=argv)
        try:
            status = program(self, process.pid, process.argv)
        except Exception:
            if process.state is ProcessState.RUNNING and self._state is KernelState.RUNNING:
                self._reap(process, status=1)
            self._processes.pop(process.pid, None)
            raise

        if process.state is ProcessState.RUNNING and self._state is KernelState.RUNNING:
            self._reap(process, status=status)
        self._processes.pop(process.pid, None)
        return process.exit_status if process.exit_status is not None else status

    def halt(self, *, pid: int) -> None:
        """Shut down if *pid* is the init process; ignore anyone else."""
        if pid != INIT_PID:
            msg = f"Process {pid} may not halt the machine"
            self._log(LogLevel.WARNING, msg, source="kernel", pid=pid)
            return
        self.shutdown()

    # -- File descriptor operations --------------------------------------------

    def _fd_table(self, pid: int) -> FdTable:
        table = self._fd_tables.get(pid)
        if table is None:
            msg = f"Process {pid} not found"
            raise FdError(msg)
        return table

    def open_file(self, pid: int, path: str) -> int:
        """Open an existing file read-only and return a descriptor.

        Raises:
            FdError: If the process is unknown, the file is missing, the
                path is a directory, or the fd table is full.
            OSError: If the file system refuses read access.

        """
        self._require_running()
        assert self._filesystem is not None  # noqa: S101
        table = self._fd_table(pid)

        if not self._filesystem.exists(path):
            msg = f"File not found: {path}"
            raise FdError(msg)
        if self._filesystem.stat(path).file_type is FileType.DIRECTORY:
            msg = f"Is a directory: {path}"
            raise FdError(msg)
        self._filesystem.check_readable(path)

        return table.allocate(OpenFileDescription(path=path, mode=FileMode.READ))

    def creat_file(self, pid: int, path: str) -> int:
        """Create or truncate a file and return a read-write descriptor.

        Raises:
            FdError: If the process is unknown or the fd table is full.
            OSError: If the file system refuses to create the file.

        """
        self._require_running()
        assert self._filesystem is not None  # noqa: S101
        table = self._fd_table(pid)
        if len(table.list_fds()) >= table.capacity:
            msg = f"Too many open files (limit {table.capacity})"
            raise FdError(msg)
        self._filesystem.create_file(path)
        return table.allocate(OpenFileDescription(path=path, mode=FileMode.READ_WRITE))

    def close_file(self, pid: int, fd: int) -> None:
        """Close a file descriptor for a process.

        Raises:
            FdError: If the fd is not open.

        """
        self._require_running()
        self._fd_table(pid).close(fd)

    def read_fd(self, pid: int, fd: int, *, count: int) -> bytes:
        """Read up to *count* bytes and advance the offset.

        Returns fewer bytes than requested near EOF, and ``b""`` at EOF.

        Raises:
            FdError: If the fd is invalid, not readable, or *count* is
                not positive.

        """
        self._require_running()
        assert self._filesystem is not None  # noqa: S101
        assert self._console is not None  # noqa: S101
        if count <= 0:
            msg = f"Invalid read count: {count}"
            raise FdError(msg)

        ofd = self._fd_table(pid).lookup(fd)
        if ofd.mode is FileMode.WRITE:
            msg = f"fd {fd} is not readable"
            raise FdError(msg)
        if ofd.console:
            return self._console.read(count)

        data = self._filesystem.read_at(ofd.path, offset=ofd.offset, count=count)
        ofd.offset += len(data)
        return data

    def write_fd(self, pid: int, fd: int, data: bytes) -> int:
        """Write bytes at the fd's offset and advance it.

        When ``max_write`` is set only that many bytes are transferred;
        the caller sees the short count and must write the rest.

        Returns:
            The number of bytes actually written.

        Raises:
            FdError: If the fd is invalid, not writable, or *data* is empty.

        """
        self._require_running()
        assert self._filesystem is not None  # noqa: S101
        assert self._console is not None  # noqa: S101
        if not data:
            msg = "Invalid write count: 0"
            raise FdError(msg)

        ofd = self._fd_table(pid).lookup(fd)
        if ofd.mode is FileMode.READ:
            msg = f"fd {fd} is not writable (opened read-only)"
            raise FdError(msg)
        if ofd.console:
            return self._console.write(data)

        if self._max_write is not None:
            data = data[: self._max_write]
        if not data:
            return 0
        written = self._filesystem.write_at(ofd.path, offset=ofd.offset, data=data)
        ofd.offset += written
        return written

    def unlink_file(self, path: str) -> None:
        """Remove a file or empty directory from the file system."""
        self._require_running()
        assert self._filesystem is not None  # noqa: S101
        self._filesystem.delete(path)

    def list_fds(self, pid: int) -> dict[int, OpenFileDescription]:
        """Return all open descriptors for a process (empty if unknown)."""
        self._require_running()
        table = self._fd_tables.get(pid)
        if table is None:
            return {}
        return table.list_fds()

    # -- Strace: syscall tracing -----------------------------------------------

    @property
    def strace_enabled(self) -> bool:
        """Return whether strace is currently enabled."""
        return self._strace_enabled

    def strace_enable(self) -> None:
        """Enable strace, clearing the log and resetting the sequence."""
        self._strace_enabled = True
        self._strace_log.clear()
        self._strace_sequence = 0

    def strace_disable(self) -> None:
        """Disable strace, keeping the log for post-hoc review."""
        self._strace_enabled = False

    def strace_log(self) -> list[str]:
        """Return a copy of the strace log entries."""
        return list(self._strace_log)

    def strace_clear(self) -> None:
        """Clear the strace log and reset the sequence counter."""
        self._strace_log.clear()
        self._strace_sequence = 0

    def _append_strace_entry(
        self,
        number: SyscallNumber,
        kwargs: dict[str, Any],
        result: Any,
        *,
        error: str | None = None,
    ) -> None:
        """Format and append a strace entry, FIFO-evicting if over limit."""
        self._strace_sequence += 1
        args_str = ", ".join(f"{k}={self._sanitize_value(v)}" for k, v in kwargs.items())
        if error is not None:
            entry = f"#{self._strace_sequence} {number.name}({args_str}) = ERROR: {error}"
        else:
            entry = f"#{self._strace_sequence} {number.name}({args_str}) = {self._sanitize_value(result)}"
        self._strace_log.append(entry)
        if len(self._strace_log) > _MAX_STRACE_ENTRIES:
            del self._strace_log[: len(self._strace_log) - _MAX_STRACE_ENTRIES]

    def _sanitize_value(self, value: Any) -> str:
        """Render a value for strace: bytes as ``<N bytes>``, long strings cut."""
        if isinstance(value, bytes | bytearray | memoryview):
            return f"<{len(value)} bytes>"
        if isinstance(value, str):
            if len(value) > _STRACE_MAX_ARG_LEN:
                return f'"{value[:_STRACE_MAX_ARG_LEN]}..."'
            return f'"{value}"'
        if isinstance(value, dict):
            shown = ", ".join(
                f"{self._sanitize_value(k)}: {self._sanitize_value(v)}"
                for k, v in value.items()  # pyright: ignore[reportUnknownVariableType]
            )
            return "{" + shown + "}"
        return str(value)

    # -- Syscall gateway --------------------------------------------------------

    def syscall(self, number: SyscallNumber, **kwargs: Any) -> Any:
        """Execute a system call — the user-space → kernel-space gateway.

        Args:
            number: The syscall number identifying the operation.
            **kwargs: Arguments specific to the syscall.

        Returns:
            The syscall result (type depends on the operation).

        Raises:
            RuntimeError: If the kernel is not running.
            SyscallError: If the syscall fails.

        """
        self._require_running()
        pid: int = kwargs.get("pid", INIT_PID)
        self._log(LogLevel.DEBUG, f"syscall {number.name}", source="syscall", pid=pid)
        should_trace = self._strace_enabled and number not in _STRACE_EXCLUDED_SYSCALLS
        try:
            result = dispatch_syscall(self, number, **kwargs)
        except SyscallError as exc:
            self._log(LogLevel.ERROR, f"{number.name} failed: {exc}", source="syscall", pid=pid)
            if should_trace:
                self._append_strace_entry(number, kwargs, None, error=str(exc))
            raise
        if should_trace:
            self._append_strace_entry(number, kwargs, result)
        return result
