"""The shell — command interpreter running as the init process.

The shell reads a command string, splits it into a name and arguments,
dispatches to a handler, and returns a string result.  File commands
go through system calls exactly like user programs do; ``cp`` runs the
copy program in its own process and returns whatever that process
printed to the console.

Design choices:
    - **Returns strings, not prints.**  The caller decides how to
      display output, which keeps the shell testable.
    - **Command dispatch via a dict.**  Adding a command means writing a
      method and adding one dict entry.
"""

from collections.abc import Callable

from py_cp import programs
from py_cp.fs.filesystem import FileType
from py_cp.kernel import INIT_PID, Kernel, KernelState
from py_cp.logging import LogLevel
from py_cp.syscalls import SyscallError, SyscallNumber

# Type alias for a command handler: takes a list of args, returns output.
_Handler = Callable[[list[str]], str]

_CAT_CHUNK = 1024


class Shell:
    """Command interpreter that operates on a booted kernel."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, kernel: Kernel) -> None:
        """Create a shell attached to a running kernel.

        Raises:
            RuntimeError: If the kernel is not in the RUNNING state.

        """
        if kernel.state is not KernelState.RUNNING:
            msg = f"Shell requires a running kernel (state: {kernel.state}, not running)"
            raise RuntimeError(msg)

        self._kernel = kernel
        self._pid = INIT_PID
        self._history: list[str] = []

        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "ls": self._cmd_ls,
            "mkdir": self._cmd_mkdir,
            "touch": self._cmd_touch,
            "write": self._cmd_write,
            "cat": self._cmd_cat,
            "stat": self._cmd_stat,
            "rm": self._cmd_rm,
            "cp": self._cmd_cp,
            "log": self._cmd_log,
            "strace": self._cmd_strace,
            "history": self._cmd_history,
            "exit": self._cmd_exit,
        }

    @property
    def command_names(self) -> list[str]:
        """Return the sorted list of command names."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one shell command.

        Args:
            command: The raw command string (e.g. "cp /a.txt /b.txt").

        Returns:
            The command output as a string, or an error message.

        """
        parts = command.strip().split()
        if not parts:
            return ""
        self._history.append(command.strip())

        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        return handler(args)

    # -- Command handlers ------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.command_names)

    def _cmd_ls(self, args: list[str]) -> str:
        """List directory contents."""
        path = args[0] if args else "/"
        try:
            entries: list[str] = self._kernel.syscall(SyscallNumber.SYS_LIST_DIR, path=path)
        except SyscallError as e:
            return f"Error: {e}"
        return "\n".join(entries)

    def _cmd_mkdir(self, args: list[str]) -> str:
        """Create a directory."""
        if not args:
            return "Usage: mkdir <path>"
        try:
            self._kernel.syscall(SyscallNumber.SYS_MKDIR, path=args[0])
        except SyscallError as e:
            return f"Error: {e}"
        return ""

    def _cmd_touch(self, args: list[str]) -> str:
        """Create an empty file (truncating an existing one)."""
        if not args:
            return "Usage: touch <path>"
        try:
            result: dict[str, int] = self._kernel.syscall(
                SyscallNumber.SYS_CREAT, pid=self._pid, path=args[0]
            )
            self._kernel.syscall(SyscallNumber.SYS_CLOSE, pid=self._pid, fd=result["fd"])
        except SyscallError as e:
            return f"Error: {e}"
        return ""

    def _cmd_write(self, args: list[str]) -> str:
        """Replace a file's content with the remaining words."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: write <path> <content...>"

        path = args[0]
        data = " ".join(args[1:]).encode()
        try:
            result: dict[str, int] = self._kernel.syscall(
                SyscallNumber.SYS_CREAT, pid=self._pid, path=path
            )
            fd = result["fd"]
            try:
                while data:
                    written: dict[str, int] = self._kernel.syscall(
                        SyscallNumber.SYS_WRITE, pid=self._pid, fd=fd, data=data
                    )
                    if written["bytes_written"] <= 0:
                        return f"Error: short write to {path}"
                    data = data[written["bytes_written"] :]
            finally:
                self._kernel.syscall(SyscallNumber.SYS_CLOSE, pid=self._pid, fd=fd)
        except SyscallError as e:
            return f"Error: {e}"
        return ""

    def _cmd_cat(self, args: list[str]) -> str:
        """Print a file's content."""
        if not args:
            return "Usage: cat <path>"
        chunks: list[bytes] = []
        try:
            result: dict[str, int] = self._kernel.syscall(
                SyscallNumber.SYS_OPEN, pid=self._pid, path=args[0]
            )
            fd = result["fd"]
            try:
                while True:
                    read: dict[str, object] = self._kernel.syscall(
                        SyscallNumber.SYS_READ, pid=self._pid, fd=fd, count=_CAT_CHUNK
                    )
                    data = read["data"]
                    assert isinstance(data, bytes)  # noqa: S101
                    if not data:
                        break
                    chunks.append(data)
            finally:
                self._kernel.syscall(SyscallNumber.SYS_CLOSE, pid=self._pid, fd=fd)
        except SyscallError as e:
            return f"Error: {e}"
        return b"".join(chunks).decode(errors="replace")

    def _cmd_stat(self, args: list[str]) -> str:
        """Show a path's type and size."""
        if not args:
            return "Usage: stat <path>"
        try:
            info: dict[str, object] = self._kernel.syscall(SyscallNumber.SYS_STAT, path=args[0])
        except SyscallError as e:
            return f"Error: {e}"
        kind = "directory" if info["type"] is FileType.DIRECTORY else "file"
        return f"{info['path']}: {kind}, {info['size']} bytes"

    def _cmd_rm(self, args: list[str]) -> str:
        """Remove a file or empty directory."""
        if not args:
            return "Usage: rm <path>"
        try:
            self._kernel.syscall(SyscallNumber.SYS_UNLINK, path=args[0])
        except SyscallError as e:
            return f"Error: {e}"
        return ""

    def _cmd_cp(self, args: list[str]) -> str:
        """Run the cp program and return what it printed."""
        status = programs.run(self._kernel, "cp", args)
        console = self._kernel.console
        output = console.drain().decode(errors="replace").rstrip("\n") if console else ""
        if status != programs.EXIT_SUCCESS and not output:
            return f"Error: cp exited with status {status}"
        return output

    def _cmd_log(self, args: list[str]) -> str:
        """Show log entries, optionally at or above a level (e.g. ``log warning``)."""
        min_level: LogLevel | None = None
        if args:
            try:
                min_level = LogLevel[args[0].upper()]
            except KeyError:
                return f"Error: unknown log level '{args[0]}'"
        entries: list[str] = self._kernel.syscall(SyscallNumber.SYS_READ_LOG, min_level=min_level)
        return "\n".join(entries) if entries else "No log entries."

    def _cmd_strace(self, args: list[str]) -> str:
        """Control syscall tracing: ``strace on|off|show|clear``."""
        sub = args[0] if args else "show"
        match sub:
            case "on":
                self._kernel.syscall(SyscallNumber.SYS_STRACE_ENABLE)
                return "strace enabled"
            case "off":
                self._kernel.syscall(SyscallNumber.SYS_STRACE_DISABLE)
                return "strace disabled"
            case "clear":
                self._kernel.syscall(SyscallNumber.SYS_STRACE_CLEAR)
                return "strace log cleared"
            case "show":
                entries: list[str] = self._kernel.syscall(SyscallNumber.SYS_STRACE_LOG)
                return "\n".join(entries) if entries else "No strace entries."
            case _:
                return "Usage: strace on|off|show|clear"

    def _cmd_history(self, _args: list[str]) -> str:
        """Show previously entered commands."""
        return "\n".join(f"{i:>4}  {cmd}" for i, cmd in enumerate(self._history, start=1))

    def _cmd_exit(self, _args: list[str]) -> str:
        """Halt the machine and signal the REPL to stop."""
        self._kernel.syscall(SyscallNumber.SYS_HALT, pid=self._pid)
        return self.EXIT_SENTINEL
