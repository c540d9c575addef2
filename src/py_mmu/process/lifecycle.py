"""Process lifecycle — create, grant memory, deallocate.

A process moves through three memory-related steps::

    create_process   occupy a slot, draw a size, build an empty page table
    request_memory   draw a request in [1, size]; grant it if it fits
    (translation)    the translator places the granted bytes in frames
    deallocate       undo everything above and free the slot

The process table has a fixed number of slots (``max_process_count``).
Running out of slots is the one fatal error of a simulation run; a
denied memory request is expected and merely leaves the process
unmapped.

Deallocation sizes everything from ``size_in_memory`` (the bytes that
were actually granted and placed), so an allocate-then-deallocate round
trip returns physical and virtual memory exactly to their prior state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_mmu.logging import LogLevel
from py_mmu.process.pcb import ProcessRecord

if TYPE_CHECKING:
    from py_mmu.config import AddressSpaceConfig
    from py_mmu.entropy import EntropySource
    from py_mmu.logging import Logger
    from py_mmu.memory.physical import PhysicalMemory
    from py_mmu.memory.virtual import VirtualMemory

_SOURCE = "lifecycle"


class SlotsExhaustedError(RuntimeError):
    """Raise when the process table has no slot for a new process."""


class InsufficientMemoryError(Exception):
    """Raise when a memory request does not fit in remaining physical memory."""


class ProcessTable:
    """Fixed-capacity table of live processes, indexed by slot (= pid)."""

    def __init__(self, capacity: int) -> None:
        """Create a table with ``capacity`` empty slots."""
        if capacity < 1:
            msg = f"Process table capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self._slots: list[ProcessRecord | None] = [None] * capacity

    @property
    def capacity(self) -> int:
        """Return the number of slots."""
        return len(self._slots)

    def __len__(self) -> int:
        """Return the number of occupied slots."""
        return sum(1 for p in self._slots if p is not None)

    @property
    def is_full(self) -> bool:
        """Return True if every slot is occupied."""
        return len(self) == self.capacity

    def get(self, pid: int) -> ProcessRecord | None:
        """Return the process in a slot, or None."""
        if 0 <= pid < len(self._slots):
            return self._slots[pid]
        return None

    def next_free_slot(self) -> int | None:
        """Return the lowest empty slot, or None if the table is full."""
        for index, process in enumerate(self._slots):
            if process is None:
                return index
        return None

    def occupy(self, process: ProcessRecord) -> None:
        """Place a process in the slot matching its pid.

        Raises:
            ValueError: If the slot is already taken.

        """
        if self._slots[process.pid] is not None:
            msg = f"Slot {process.pid} is already occupied"
            raise ValueError(msg)
        self._slots[process.pid] = process

    def free(self, process: ProcessRecord) -> bool:
        """Empty the slot holding this process; return False if it was not there."""
        if self.get(process.pid) is not process:
            return False
        self._slots[process.pid] = None
        return True

    def active(self) -> list[ProcessRecord]:
        """Return live processes in slot order."""
        return [p for p in self._slots if p is not None]

    def clear(self) -> None:
        """Empty every slot."""
        self._slots = [None] * len(self._slots)


class ProcessLifecycle:
    """Create processes, grant them memory, and take it back."""

    def __init__(
        self,
        config: AddressSpaceConfig,
        *,
        physical: PhysicalMemory,
        virtual: VirtualMemory,
        table: ProcessTable,
        entropy: EntropySource,
        logger: Logger | None = None,
    ) -> None:
        """Wire the lifecycle to the shared simulation state."""
        self._config = config
        self._physical = physical
        self._virtual = virtual
        self._table = table
        self._entropy = entropy
        self._logger = logger

    def _log(self, level: LogLevel, message: str, pid: int | None = None) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source=_SOURCE, pid=pid)

    def create_process(self, slot_index: int) -> ProcessRecord:
        """Create a process in the given slot.

        Args:
            slot_index: The slot (and pid) for the new process.

        Returns:
            The new process, with no memory granted.

        Raises:
            SlotsExhaustedError: If the slot is past the table's capacity
                or no slot is free.
            ValueError: If the slot index is negative or already occupied.

        """
        if slot_index < 0:
            msg = f"Slot index must be non-negative, got {slot_index}"
            raise ValueError(msg)
        if slot_index >= self._table.capacity or self._table.is_full:
            self._log(LogLevel.ERROR, f"No process slot available for slot {slot_index}")
            msg = f"Process table is full ({self._table.capacity} slots)"
            raise SlotsExhaustedError(msg)

        process = ProcessRecord(
            pid=slot_index,
            size=self._entropy.next_process_size(),
            config=self._config,
        )
        self._table.occupy(process)
        self._log(LogLevel.INFO, f"Created process of {process.size} bytes", process.pid)
        return process

    def request_memory(self, process: ProcessRecord) -> int:
        """Draw a request size for the process and grant it if it fits.

        The request is drawn from ``[1, process.size]`` and granted only if
        it is strictly less than the bytes remaining.  There is no retry
        and no partial grant.

        Returns:
            The number of bytes granted.

        Raises:
            InsufficientMemoryError: If the request does not fit.
            ValueError: If the process already holds a grant.

        """
        if process.granted:
            msg = f"Process {process.pid} already holds {process.size_in_memory} bytes"
            raise ValueError(msg)
        request = self._entropy.next_request_size(process.size)
        remaining = self._physical.remaining_bytes
        if request >= remaining:
            self._log(
                LogLevel.WARNING,
                f"Denied request of {request} bytes ({remaining} bytes remaining)",
                process.pid,
            )
            msg = f"Cannot grant {request} bytes to process {process.pid}: {remaining} remaining"
            raise InsufficientMemoryError(msg)
        process.size_in_memory = request
        self._log(LogLevel.INFO, f"Granted {request} of {process.size} bytes", process.pid)
        return request

    def deallocate(self, process: ProcessRecord) -> int:
        """Undo every memory effect of a process and free its slot.

        The starting page is found by scanning virtual memory for the
        first page the process holds; its page-table entry gives the
        starting frame.  ``ceil(size_in_memory / frame_size)`` frames and
        pages are then released and the entry invalidated.  Pages left
        behind by a later translation that found no free block are
        released too.  A process that was never mapped only loses its
        slot; calling this twice is harmless.

        Returns:
            The number of physical bytes returned to free memory.

        """
        pid = process.pid
        start_page = self._virtual.first_page_of(pid)
        mappings = process.page_table.mappings()
        count = self._config.frames_for(process.size_in_memory)

        freed = 0
        for page, frame in sorted(mappings.items()):
            freed += self._physical.release(pid, start_frame=frame, frame_count=count)
            process.page_table.invalidate(page)

        starts = set(mappings)
        if start_page is not None:
            starts.add(start_page)
        for page in sorted(starts):
            self._virtual.release(pid, start_page=page, page_count=count)
        stray = self._virtual.pages_of(pid)
        for page in stray:
            self._virtual.release(pid, start_page=page, page_count=1)

        if process.granted or starts or stray:
            self._log(
                LogLevel.INFO,
                f"Deallocated {freed} bytes; {self._physical.remaining_bytes} bytes remaining",
                pid,
            )
        process.size_in_memory = 0
        self._table.free(process)
        return freed

    def teardown(self) -> int:
        """Deallocate every live process.

        Returns:
            The number of processes torn down.

        """
        processes = self._table.active()
        for process in processes:
            self.deallocate(process)
        return len(processes)
