"""Interactive REPL (Read-Eval-Print Loop) for the simulated machine.

Boots a kernel, creates a shell, and loops:

    1. **Read** — display a prompt and read user input.
    2. **Eval** — pass the command to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

The helpers (``build_prompt``, ``format_boot_log``, ``complete``) are
pure and testable.  ``run()`` is the I/O entrypoint.
"""

import readline
import sys
from pathlib import Path

from py_cp.fs.host import HostFileSystem
from py_cp.kernel import Kernel, KernelState
from py_cp.shell import Shell

_BANNER_WIDTH = 38


def format_boot_log(boot_log: list[str]) -> str:
    """Format the boot log into a displayable banner string."""
    border = "=" * _BANNER_WIDTH
    header = f"\n  {border}\n            py-cp\n     cp on a simulated kernel\n  {border}\n\n"
    body = "\n".join(f"  {msg}" for msg in boot_log)
    footer = "\nKernel running. Type 'help' for commands, 'exit' to quit.\n"
    return header + body + footer


def build_prompt(kernel: Kernel) -> str:
    """Return the prompt, or a bare one once the kernel has halted."""
    if kernel.state is not KernelState.RUNNING:
        return "$ "
    return "init@py-cp $ "


def complete(shell: Shell, text: str, state: int) -> str | None:
    """Readline completer over command names."""
    matches = [name for name in shell.command_names if name.startswith(text)]
    return matches[state] if state < len(matches) else None


def run(root: Path | None = None) -> None:
    """Boot the kernel and run the interactive REPL.

    Args:
        root: Host directory to mount as ``/``.  Without one the kernel
            runs on an empty in-memory file system.

    """
    filesystem = HostFileSystem(root=root) if root is not None else None
    kernel = Kernel(filesystem=filesystem)
    kernel.boot()
    shell = Shell(kernel=kernel)

    readline.set_completer(lambda text, state: complete(shell, text, state))
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_boot_log(kernel.dmesg()))  # noqa: T201

    try:
        while kernel.state is KernelState.RUNNING:
            try:
                command = input(build_prompt(kernel))
            except EOFError:
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        print("\nInterrupted.")  # noqa: T201

    finally:
        if kernel.state is KernelState.RUNNING:
            kernel.shutdown()
        print("System halted.")  # noqa: T201


def main() -> None:
    """Console entry point: ``py-cp-shell [ROOT]``."""
    args = sys.argv[1:]
    run(Path(args[0]) if args else None)
