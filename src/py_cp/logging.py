"""Kernel log buffer.

The kernel records a structured entry for every system call, every
failed operation, and every lifecycle transition.  This is the
in-memory equivalent of ``dmesg``: nothing is written to disk, and the
buffer lives exactly as long as the kernel that owns it.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, pid).
- **Logger** — a bounded ring buffer with filtering and clearing.
"""

from collections import deque
from dataclasses import dataclass
from enum import IntEnum

MAX_LOG_ENTRIES = 1000


class LogLevel(IntEnum):
    """Severity levels for log entries.

    IntEnum so that minimum-level filtering is a plain ``>=``.
    """

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The subsystem that generated the event (e.g. "kernel").
        pid: The process that triggered the event (0 = kernel itself).

    """

    level: LogLevel
    message: str
    source: str
    pid: int = 0

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Bounded log buffer with filtering.

    Once ``capacity`` entries are held, each new entry evicts the oldest
    one, so a long copy cannot grow the log without limit.  ``dropped``
    counts how many entries have been evicted since the last ``clear``.
    """

    def __init__(self, *, capacity: int = MAX_LOG_ENTRIES) -> None:
        """Create an empty logger.

        Raises:
            ValueError: If *capacity* is not positive.

        """
        if capacity <= 0:
            msg = f"Log capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._dropped = 0

    @property
    def capacity(self) -> int:
        """Return the maximum number of entries kept."""
        assert self._entries.maxlen is not None  # noqa: S101
        return self._entries.maxlen

    @property
    def dropped(self) -> int:
        """Return how many entries were evicted to make room."""
        return self._dropped

    @property
    def entries(self) -> list[LogEntry]:
        """Return the retained entries, oldest first."""
        return list(self._entries)

    def log(self, level: LogLevel, message: str, *, source: str, pid: int = 0) -> None:
        """Record an event, evicting the oldest entry when full."""
        if len(self._entries) == self.capacity:
            self._dropped += 1
        self._entries.append(LogEntry(level=level, message=message, source=source, pid=pid))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return retained entries at or above *min_level* from *source*.

        Either criterion may be omitted.
        """
        return [
            e
            for e in self._entries
            if (min_level is None or e.level >= min_level)
            and (source is None or e.source == source)
        ]

    def clear(self) -> None:
        """Remove all entries and reset the drop counter."""
        self._entries.clear()
        self._dropped = 0
