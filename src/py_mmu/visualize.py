"""Text views of simulation state.

These helpers only read state; none of them change memory or tables.
They return strings so the CLI can print them and tests can inspect
them.

- ``format_physical_memory`` — one row per frame, one cell per byte,
  holding the owning pid or ``-1`` for a free byte.
- ``format_virtual_memory`` — one row per held page (or every page).
- ``format_page_table`` — the valid entries of one process's table.
- ``format_summary`` — headline counters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_mmu.memory.physical import PhysicalMemory
    from py_mmu.memory.virtual import VirtualMemory
    from py_mmu.process.pcb import ProcessRecord
    from py_mmu.simulation import MemorySimulation

_FREE_BYTE = -1


def format_physical_memory(physical: PhysicalMemory) -> str:
    """Render physical memory as a frame × byte grid."""
    lines = ["Physical Memory:"]
    for frame in range(physical.number_of_frames):
        cells = " ".join(
            f"{_FREE_BYTE if owner is None else owner:2d}" for owner in physical.frame_bytes(frame)
        )
        lines.append(f"{frame:4d} | {cells}")
    return "\n".join(lines)


def format_virtual_memory(virtual: VirtualMemory, *, held_only: bool = True) -> str:
    """Render virtual memory as one ``page | owner`` row per page.

    Args:
        virtual: The address space to show.
        held_only: If True, skip pages no process holds.

    """
    lines = ["Virtual Memory:"]
    for page, owner in enumerate(virtual.snapshot()):
        if owner is None and held_only:
            continue
        lines.append(f"{page:4d} | {'-' if owner is None else owner}")
    if len(lines) == 1:
        lines.append("  (no pages held)")
    return "\n".join(lines)


def format_page_table(process: ProcessRecord) -> str:
    """Render the valid entries of a process's page table."""
    table = process.page_table
    lines = [f"Page table of process {process.pid}:"]
    for page, frame in sorted(table.mappings().items()):
        outer, inner = table.split(page)
        lines.append(f"  page {page:3d} [{outer:2d}][{inner}] → frame {frame}")
    if len(lines) == 1:
        lines.append("  (no valid entries)")
    return "\n".join(lines)


def format_summary(sim: MemorySimulation) -> str:
    """Render the simulation's headline counters, one per line."""
    return "\n".join(f"{name.replace('_', ' ')}: {value}" for name, value in sim.stats().items())
