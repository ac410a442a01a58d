"""Tests for the console device."""

from py_cp.console import ConsoleDevice


class TestConsoleDevice:
    """Verify the console's input and output buffers."""

    def test_name(self) -> None:
        """The device is called 'console'."""
        assert ConsoleDevice().name == "console"

    def test_read_empty(self) -> None:
        """Reading with no pending input returns nothing."""
        assert ConsoleDevice().read(10) == b""

    def test_feed_then_read_in_order(self) -> None:
        """Input comes out first-in first-out."""
        console = ConsoleDevice()
        console.feed(b"ab")
        console.feed(b"cd")
        assert console.read(3) == b"abc"
        assert console.read(3) == b"d"

    def test_write_returns_count(self) -> None:
        """Every byte written is accepted."""
        assert ConsoleDevice().write(b"hello") == len(b"hello")

    def test_peek_does_not_consume(self) -> None:
        """peek leaves output in place."""
        console = ConsoleDevice()
        console.write(b"x")
        assert console.peek() == b"x"
        assert console.peek() == b"x"

    def test_drain_clears(self) -> None:
        """drain returns output once."""
        console = ConsoleDevice()
        console.write(b"a")
        console.write(b"b")
        assert console.drain() == b"ab"
        assert console.drain() == b""
