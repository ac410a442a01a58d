"""User programs runnable with ``Kernel.run_program``.

A program is a plain function ``(kernel, pid, argv) -> exit status``.
It talks to the kernel only through system calls and prints by writing
to its stdout descriptor, which the kernel routes to the console.
"""

from py_cp.copier import CopyError, Copier
from py_cp.fs.fd import STDOUT_FD
from py_cp.kernel import Kernel, Program
from py_cp.syscalls import SyscallNumber

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def _print(kernel: Kernel, pid: int, line: str) -> None:
    """Write one line to the process's stdout."""
    kernel.syscall(SyscallNumber.SYS_WRITE, pid=pid, fd=STDOUT_FD, data=f"{line}\n".encode())


def cp(kernel: Kernel, pid: int, argv: list[str]) -> int:
    """Copy ``argv[0]`` to ``argv[1]``.

    Prints a usage line or an ``Unable to ...`` diagnostic on failure.
    """
    if len(argv) != 2:  # noqa: PLR2004
        _print(kernel, pid, "Usage: cp <src> <dst>")
        return EXIT_FAILURE

    source, destination = argv
    try:
        Copier(kernel, pid=pid).copy(source, destination)
    except CopyError as e:
        _print(kernel, pid, str(e))
        return EXIT_FAILURE
    return EXIT_SUCCESS


PROGRAMS: dict[str, Program] = {
    "cp": cp,
}


def run(kernel: Kernel, name: str, argv: list[str]) -> int:
    """Run the registered program *name* and return its exit status.

    Raises:
        KeyError: If no program is registered under *name*.

    """
    program = PROGRAMS.get(name)
    if program is None:
        msg = f"Unknown program: {name}"
        raise KeyError(msg)
    return kernel.run_program(program, name=name, argv=argv)
