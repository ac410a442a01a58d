"""Command-line front end: ``py-cp <source> <destination>``.

Boots a kernel on the host file system, runs the ``cp`` program with
the two paths, prints whatever the program wrote to its console, and
exits with the program's status (0 on success, 1 on any failure).
Relative paths are taken relative to the current directory.
"""

import sys
from pathlib import Path

from py_cp import programs
from py_cp.fs.host import HostFileSystem
from py_cp.kernel import Kernel


def to_kernel_path(arg: str) -> str:
    """Turn a command-line path into an absolute kernel path."""
    return Path(arg).absolute().as_posix()


def main(argv: list[str] | None = None) -> int:
    """Copy a host file through the simulated kernel.

    Args:
        argv: Arguments after the program name (defaults to ``sys.argv``).

    Returns:
        The cp program's exit status.

    """
    args = sys.argv[1:] if argv is None else argv
    kernel = Kernel(filesystem=HostFileSystem(root="/"))
    kernel.boot()
    try:
        status = programs.run(kernel, "cp", [to_kernel_path(a) for a in args])
        console = kernel.console
        output = console.drain() if console is not None else b""
    finally:
        kernel.shutdown()
    sys.stdout.write(output.decode(errors="replace"))
    return status


def run() -> None:
    """Console entry point."""
    sys.exit(main())
