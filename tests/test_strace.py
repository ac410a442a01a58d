"""Tests for strace mode — syscall tracing."""

from __future__ import annotations

import pytest

from py_cp.kernel import INIT_PID, Kernel
from py_cp.shell import Shell
from py_cp.syscalls import SyscallError, SyscallNumber

_FIFO_LIMIT = 1000
_OVERFLOW_COUNT = 5
_TRUNCATION_LIMIT = 50
_LONG_STRING_LENGTH = 80
_BYTES_LENGTH = 128


def _booted_kernel() -> Kernel:
    """Return a freshly booted kernel."""
    k = Kernel()
    k.boot()
    return k


class TestStraceState:
    """Verify enabling, disabling, and clearing."""

    def test_disabled_by_default(self) -> None:
        """Nothing is traced until strace is enabled."""
        k = _booted_kernel()
        k.syscall(SyscallNumber.SYS_LIST_DIR, path="/")
        assert not k.strace_enabled
        assert k.strace_log() == []

    def test_enable_records_calls(self) -> None:
        """Each syscall gets a numbered entry with args and result."""
        k = _booted_kernel()
        k.strace_enable()
        k.syscall(SyscallNumber.SYS_CREAT, pid=INIT_PID, path="/a")
        assert k.strace_log() == ['#1 SYS_CREAT(pid=0, path="/a") = {"fd": 2}']

    def test_disable_keeps_log(self) -> None:
        """Disabling stops recording but keeps entries."""
        k = _booted_kernel()
        k.strace_enable()
        k.syscall(SyscallNumber.SYS_LIST_DIR, path="/")
        k.strace_disable()
        k.syscall(SyscallNumber.SYS_LIST_DIR, path="/")
        assert len(k.strace_log()) == 1

    def test_enable_resets_sequence(self) -> None:
        """Re-enabling starts again from #1."""
        k = _booted_kernel()
        k.strace_enable()
        k.syscall(SyscallNumber.SYS_LIST_DIR, path="/")
        k.strace_enable()
        k.syscall(SyscallNumber.SYS_LIST_DIR, path="/")
        assert k.strace_log()[0].startswith("#1 ")

    def test_clear(self) -> None:
        """clear empties the log but leaves tracing on."""
        k = _booted_kernel()
        k.strace_enable()
        k.syscall(SyscallNumber.SYS_LIST_DIR, path="/")
        k.strace_clear()
        assert k.strace_log() == []
        assert k.strace_enabled


class TestStraceFormatting:
    """Verify how arguments, results, and errors are shown."""

    def test_bytes_shown_as_length(self) -> None:
        """Buffers are summarized, never dumped."""
        k = _booted_kernel()
        fd = k.syscall(SyscallNumber.SYS_CREAT, pid=INIT_PID, path="/a")["fd"]
        k.strace_enable()
        k.syscall(SyscallNumber.SYS_WRITE, pid=INIT_PID, fd=fd, data=b"x" * _BYTES_LENGTH)
        entry = k.strace_log()[0]
        assert f"data=<{_BYTES_LENGTH} bytes>" in entry
        assert entry.endswith(f'= {{"bytes_written": {_BYTES_LENGTH}}}')

    def test_long_strings_truncated(self) -> None:
        """Strings longer than the limit are cut with an ellipsis."""
        k = _booted_kernel()
        k.strace_enable()
        path = "/" + "p" * (_LONG_STRING_LENGTH - 1)
        k.syscall(SyscallNumber.SYS_CREAT, pid=INIT_PID, path=path)
        assert f'path="{path[:_TRUNCATION_LIMIT]}..."' in k.strace_log()[0]

    def test_errors_recorded(self) -> None:
        """Failures show the error text in place of a result."""
        k = _booted_kernel()
        k.strace_enable()
        with pytest.raises(SyscallError):
            k.syscall(SyscallNumber.SYS_OPEN, pid=INIT_PID, path="/missing")
        assert k.strace_log() == [
            '#1 SYS_OPEN(pid=0, path="/missing") = ERROR: File not found: /missing'
        ]

    def test_strace_calls_not_traced(self) -> None:
        """Reading the trace does not add to it."""
        k = _booted_kernel()
        k.syscall(SyscallNumber.SYS_STRACE_ENABLE)
        k.syscall(SyscallNumber.SYS_STRACE_LOG)
        k.syscall(SyscallNumber.SYS_READ_LOG)
        assert k.syscall(SyscallNumber.SYS_STRACE_LOG) == []

    def test_fifo_eviction(self) -> None:
        """Only the most recent entries are kept."""
        k = _booted_kernel()
        k.strace_enable()
        for _ in range(_FIFO_LIMIT + _OVERFLOW_COUNT):
            k.syscall(SyscallNumber.SYS_LIST_DIR, path="/")
        log = k.strace_log()
        assert len(log) == _FIFO_LIMIT
        assert log[0].startswith(f"#{_OVERFLOW_COUNT + 1} ")


class TestStraceShellCommand:
    """Verify the strace shell command."""

    def test_on_show_off(self) -> None:
        """A cp run shows its open/creat/read/write/close sequence."""
        k = _booted_kernel()
        shell = Shell(kernel=k)
        shell.execute("write /a.txt abc")
        assert shell.execute("strace on") == "strace enabled"
        shell.execute("cp /a.txt /b.txt")
        shown = shell.execute("strace")
        names = [line.split()[1].split("(")[0] for line in shown.splitlines()]
        assert names == [
            "SYS_OPEN",
            "SYS_CREAT",
            "SYS_READ",
            "SYS_WRITE",
            "SYS_READ",
            "SYS_CLOSE",
            "SYS_CLOSE",
        ]
        assert shell.execute("strace off") == "strace disabled"

    def test_show_empty(self) -> None:
        """An empty trace says so."""
        shell = Shell(kernel=_booted_kernel())
        assert shell.execute("strace show") == "No strace entries."

    def test_clear_and_usage(self) -> None:
        """clear reports and bad subcommands print usage."""
        shell = Shell(kernel=_booted_kernel())
        assert shell.execute("strace clear") == "strace log cleared"
        assert shell.execute("strace sideways") == "Usage: strace on|off|show|clear"
