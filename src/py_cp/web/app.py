"""Flask application factory for the py-cp web UI.

``create_app`` boots a kernel, creates a shell, and returns a Flask app
with four endpoints:

- ``GET /`` — render the terminal page with the boot log.
- ``POST /api/execute`` — execute a shell command and return JSON.
- ``POST /api/copy`` — run ``cp`` on two kernel paths and return JSON.
- ``GET /api/status`` — return whether the kernel is still running.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, render_template, request

from py_cp import programs
from py_cp.fs.filesystem import FileStore
from py_cp.kernel import Kernel, KernelState
from py_cp.shell import Shell

_HTTP_BAD_REQUEST = 400
_HTTP_UNPROCESSABLE = 422
_HTTP_CONFLICT = 409


def create_app(filesystem: FileStore | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        filesystem: Backend for the kernel (in-memory when omitted).

    Returns:
        A configured Flask application ready to serve.

    """
    kernel = Kernel(filesystem=filesystem)
    kernel.boot()
    shell = Shell(kernel=kernel)

    boot_log = "\n".join(kernel.dmesg())

    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the terminal HTML page."""
        return render_template("index.html", boot_log=boot_log)

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command.

        Expects JSON body: ``{"command": "..."}``
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST
        if not isinstance(data["command"], str):
            return jsonify({"error": "'command' must be a string"}), _HTTP_BAD_REQUEST

        if kernel.state is not KernelState.RUNNING:
            return jsonify({"output": "System halted.", "halted": True})

        result = shell.execute(data["command"])
        if result == Shell.EXIT_SENTINEL:
            return jsonify({"output": "System halted.", "halted": True})
        return jsonify({"output": result, "halted": False})

    @app.route("/api/copy", methods=["POST"])
    def copy() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Copy one file to another.

        Expects JSON body: ``{"source": "...", "destination": "..."}``.
        Responds with the exit status and the program's console output.
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "source" not in data or "destination" not in data:
            msg = "Missing 'source' or 'destination' field"
            return jsonify({"error": msg}), _HTTP_BAD_REQUEST
        if not isinstance(data["source"], str) or not isinstance(data["destination"], str):
            msg = "'source' and 'destination' must be strings"
            return jsonify({"error": msg}), _HTTP_BAD_REQUEST

        if kernel.state is not KernelState.RUNNING:
            return jsonify({"error": "System halted."}), _HTTP_CONFLICT

        status = programs.run(kernel, "cp", [data["source"], data["destination"]])
        console = kernel.console
        output = console.drain().decode(errors="replace") if console is not None else ""
        body = jsonify({"status": status, "output": output})
        if status != programs.EXIT_SUCCESS:
            return body, _HTTP_UNPROCESSABLE
        return body

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return whether the kernel is running."""
        running = kernel.state is KernelState.RUNNING
        return jsonify({"running": running, "state": str(kernel.state)})

    return app


def main() -> None:
    """Run the web UI development server (``py-cp-web``)."""
    app = create_app()
    app.run(debug=True, port=8080)
