"""Process subsystem — process records, the slot table, and lifecycle.

Re-exports public symbols so callers can write::

    from py_mmu.process import ProcessLifecycle, ProcessRecord
"""

from py_mmu.process.lifecycle import (
    InsufficientMemoryError,
    ProcessLifecycle,
    ProcessTable,
    SlotsExhaustedError,
)
from py_mmu.process.pcb import ProcessRecord

__all__ = [
    "InsufficientMemoryError",
    "ProcessLifecycle",
    "ProcessRecord",
    "ProcessTable",
    "SlotsExhaustedError",
]
