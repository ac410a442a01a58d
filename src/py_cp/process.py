"""Processes — the unit a user program runs in.

Each program invocation gets its own process: a PID, the argument
vector it was started with, and (kept by the kernel) its own file
descriptor table.  When the program returns or calls ``exit``, the
process is terminated with an exit status and its descriptors are
reclaimed.

State machine::

    RUNNING → TERMINATED
"""

from __future__ import annotations

from enum import StrEnum


class ProcessState(StrEnum):
    """Lifecycle states of a process."""

    RUNNING = "running"
    TERMINATED = "terminated"


class Process:
    """A simulated process (the Process Control Block)."""

    def __init__(self, *, pid: int, name: str, argv: list[str] | None = None) -> None:
        """Create a running process.

        Args:
            pid: Process id assigned by the kernel.
            name: Program name (e.g. "cp").
            argv: Arguments passed to the program, name excluded.

        """
        self._pid = pid
        self._name = name
        self._argv: list[str] = list(argv) if argv else []
        self._state = ProcessState.RUNNING
        self._exit_status: int | None = None

    @property
    def pid(self) -> int:
        """Return the process id."""
        return self._pid

    @property
    def name(self) -> str:
        """Return the program name."""
        return self._name

    @property
    def argv(self) -> list[str]:
        """Return a copy of the argument vector."""
        return list(self._argv)

    @property
    def state(self) -> ProcessState:
        """Return the current state."""
        return self._state

    @property
    def exit_status(self) -> int | None:
        """Return the exit status, or None while still running."""
        return self._exit_status

    def terminate(self, status: int) -> None:
        """Move to TERMINATED with the given exit status.

        Raises:
            RuntimeError: If the process already terminated.

        """
        if self._state is ProcessState.TERMINATED:
            msg = f"Process {self._pid} already terminated"
            raise RuntimeError(msg)
        self._state = ProcessState.TERMINATED
        self._exit_status = status

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Process(pid={self._pid}, name={self._name!r}, state={self._state})"
