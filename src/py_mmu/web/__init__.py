"""Browser/JSON view of an MMU simulation.

This package provides a Flask application that exposes a simulation
over HTTP.  It is an **optional** extra — install with::

    pip install py-mmu[web]

The ``create_app`` factory in ``app.py`` builds a simulation and serves:

- ``GET /`` — plain-text summary and memory grids.
- ``GET /api/state`` — JSON snapshot of processes and memory.
- ``POST /api/step`` — run one create → request → translate step.
- ``POST /api/processes/<pid>/deallocate`` — deallocate one process.
- ``POST /api/reset`` — return the simulation to its initial state.
"""
