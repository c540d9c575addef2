"""Flask application factory for the simulation's web view.

``create_app`` builds one ``MemorySimulation`` and returns a Flask app
whose routes read it or drive it one step at a time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import Flask, Response, jsonify

from py_mmu.config import DEFAULT_CONFIG
from py_mmu.entropy import RandomEntropy
from py_mmu.process.lifecycle import SlotsExhaustedError
from py_mmu.simulation import MemorySimulation
from py_mmu.visualize import format_summary, format_virtual_memory

if TYPE_CHECKING:
    from py_mmu.config import AddressSpaceConfig
    from py_mmu.memory.translator import TranslationResult
    from py_mmu.process.pcb import ProcessRecord
    from py_mmu.simulation import StepReport

_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409


def _process_json(process: ProcessRecord) -> dict[str, Any]:
    return {
        "pid": process.pid,
        "size": process.size,
        "size_in_memory": process.size_in_memory,
        "mappings": {str(page): frame for page, frame in process.page_table.mappings().items()},
    }


def _translation_json(result: TranslationResult | None) -> dict[str, Any] | None:
    if result is None:
        return None
    return {
        "status": str(result.status),
        "logical_address": result.logical_address,
        "page_number": result.page_number,
        "offset": result.offset,
        "outer_index": result.outer_index,
        "inner_index": result.inner_index,
        "required_pages": result.required_pages,
        "frame_number": result.frame_number,
        "physical_address": result.physical_address,
    }


def _step_json(report: StepReport) -> dict[str, Any]:
    return {
        "process": _process_json(report.process),
        "granted": report.granted,
        "translation": _translation_json(report.translation),
        "error": report.error,
    }


def create_app(config: AddressSpaceConfig = DEFAULT_CONFIG, *, seed: int | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Geometry of the simulation to serve.
        seed: Entropy seed; the wall clock is used if omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    sim = MemorySimulation(config, entropy=RandomEntropy(config, seed=seed))
    app = Flask(__name__)

    @app.route("/")
    def index() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the summary and virtual memory view as plain text."""
        text = f"{format_summary(sim)}\n\n{format_virtual_memory(sim.virtual)}\n"
        return Response(text, mimetype="text/plain")

    @app.route("/api/state")
    def state() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return a JSON snapshot of processes and memory."""
        return jsonify(
            {
                "stats": sim.stats(),
                "processes": [_process_json(p) for p in sim.processes],
                "frames": [sim.physical.frame_owner(f) for f in range(config.number_of_frames)],
                "pages": sim.virtual.snapshot(),
                "log": sim.logger.lines(),
            }
        )

    @app.route("/api/step", methods=["POST"])
    def step() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run one simulation step."""
        try:
            report = sim.step()
        except SlotsExhaustedError as e:
            return jsonify({"error": str(e)}), _HTTP_CONFLICT
        return jsonify(_step_json(report))

    @app.route("/api/processes/<int:pid>/deallocate", methods=["POST"])
    def deallocate(pid: int) -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Deallocate one live process."""
        process = sim.process_table.get(pid)
        if process is None:
            return jsonify({"error": f"No process {pid}"}), _HTTP_NOT_FOUND
        freed = sim.deallocate(process)
        return jsonify({"pid": pid, "freed_bytes": freed, "stats": sim.stats()})

    @app.route("/api/reset", methods=["POST"])
    def reset() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the simulation to its initial state."""
        sim.reset()
        return jsonify({"stats": sim.stats()})

    return app


def main() -> None:
    """Run the web view development server.

    This is the ``py-mmu-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
