"""The console — the device behind stdin (fd 0) and stdout (fd 1).

Programs print by writing to fd 1 and read keyboard input from fd 0,
using the same ``write``/``read`` system calls they use for files.  The
kernel routes those descriptors here.

The console keeps two independent FIFO byte buffers: input queued by
whoever drives the machine (``feed``), and output produced by programs
(``drain`` collects it for display).
"""

from collections import deque


class ConsoleDevice:
    """Buffered terminal I/O device."""

    def __init__(self) -> None:
        """Create a console with empty input and output buffers."""
        self._input: deque[int] = deque()
        self._output: bytearray = bytearray()

    @property
    def name(self) -> str:
        """Return 'console'."""
        return "console"

    def feed(self, data: bytes) -> None:
        """Queue bytes for programs to read from stdin."""
        self._input.extend(data)

    def read(self, count: int) -> bytes:
        """Dequeue up to *count* bytes of pending input (``b""`` if none)."""
        n = min(count, len(self._input))
        return bytes(self._input.popleft() for _ in range(n))

    def write(self, data: bytes) -> int:
        """Append program output and return the number of bytes accepted."""
        self._output.extend(data)
        return len(data)

    def peek(self) -> bytes:
        """Return buffered output without consuming it."""
        return bytes(self._output)

    def drain(self) -> bytes:
        """Return and clear all buffered output."""
        data = bytes(self._output)
        self._output.clear()
        return data
