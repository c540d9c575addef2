"""Process record — the slice of a PCB the MMU cares about.

The simulator tracks only what memory management needs about a process:

- **pid** — its slot in the process table (sequential, 0-based).
- **size** — how big the process is, drawn when it is created.
- **size_in_memory** — how many bytes a memory request actually granted
  (0 until granted, never more than ``size``).
- **page_table** — its own two-level page table, created all-invalid.

Physical and virtual memory refer to a process only by pid; the record
is the single owner of its page table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_mmu.memory.page_table import PageTable

if TYPE_CHECKING:
    from py_mmu.config import AddressSpaceConfig


class ProcessRecord:
    """A simulated process and its page table."""

    def __init__(self, *, pid: int, size: int, config: AddressSpaceConfig) -> None:
        """Create a process with no memory granted and an all-invalid page table.

        Args:
            pid: The process id (its slot index).
            size: The process size in bytes.
            config: Geometry used to shape the page table.

        Raises:
            ValueError: If pid is negative or size is not positive.

        """
        if pid < 0:
            msg = f"Process id must be non-negative, got {pid}"
            raise ValueError(msg)
        if size <= 0:
            msg = f"Process size must be positive, got {size}"
            raise ValueError(msg)
        self._pid = pid
        self._size = size
        self._size_in_memory = 0
        self._page_table = PageTable(config.levels)

    @property
    def pid(self) -> int:
        """Return the process id."""
        return self._pid

    @property
    def size(self) -> int:
        """Return the process size in bytes."""
        return self._size

    @property
    def size_in_memory(self) -> int:
        """Return the bytes granted by the last successful memory request."""
        return self._size_in_memory

    @size_in_memory.setter
    def size_in_memory(self, value: int) -> None:
        """Set the granted size, keeping it within ``[0, size]``."""
        if not 0 <= value <= self._size:
            msg = f"size_in_memory must be in [0, {self._size}], got {value}"
            raise ValueError(msg)
        self._size_in_memory = value

    @property
    def granted(self) -> bool:
        """Return True if a memory request has been granted."""
        return self._size_in_memory > 0

    @property
    def page_table(self) -> PageTable:
        """Return the process's page table."""
        return self._page_table

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"ProcessRecord(pid={self._pid}, size={self._size}, "
            f"size_in_memory={self._size_in_memory})"
        )
