"""Memory simulation — one self-contained MMU instance.

``MemorySimulation`` owns every piece of mutable state: physical memory,
virtual memory, the process table, the translator's counters and the
event log.  Nothing is global, so tests can run as many independent
simulations as they like.

Components are created in dependency order::

    logger → physical memory → virtual memory → process table
           → translator → lifecycle

``reset()`` returns all of them to their just-built state without
rebuilding them.  ``step()`` runs one create → request → translate
cycle, the unit of work the CLI and web view repeat.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from py_mmu.config import DEFAULT_CONFIG, AddressSpaceConfig
from py_mmu.entropy import RandomEntropy
from py_mmu.logging import Logger, LogLevel
from py_mmu.memory.physical import PhysicalMemory
from py_mmu.memory.translator import AddressTranslator, TranslationResult
from py_mmu.memory.virtual import AddressSpaceOverflowError, VirtualMemory
from py_mmu.process.lifecycle import (
    InsufficientMemoryError,
    ProcessLifecycle,
    ProcessTable,
)

if TYPE_CHECKING:
    from py_mmu.entropy import EntropySource
    from py_mmu.process.pcb import ProcessRecord

_SOURCE = "simulation"


@dataclass(frozen=True)
class StepReport:
    """Outcome of one create → request → translate cycle.

    Attributes:
        process: The process that was created.
        granted: Bytes granted, or None if the request was denied.
        translation: The translation result, or None if nothing was translated.
        error: Why translation was refused, if the process's pages would
            have run past the end of virtual memory.

    """

    process: ProcessRecord
    granted: int | None
    translation: TranslationResult | None
    error: str | None = None

    @property
    def denied(self) -> bool:
        """Return True if the memory request was refused."""
        return self.granted is None


class MemorySimulation:
    """A complete, independent MMU simulation."""

    def __init__(
        self,
        config: AddressSpaceConfig = DEFAULT_CONFIG,
        *,
        entropy: EntropySource | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Build every component for the given geometry.

        Args:
            config: Address-space geometry and process capacity.
            entropy: Source of sizes and addresses; defaults to a
                clock-seeded ``RandomEntropy``.
            logger: Event log; a fresh one is created if omitted.

        """
        self._config = config
        self._entropy: EntropySource = entropy if entropy is not None else RandomEntropy(config)
        self._logger = logger if logger is not None else Logger()
        self._physical = PhysicalMemory(config, logger=self._logger)
        self._virtual = VirtualMemory(config)
        self._table = ProcessTable(config.max_process_count)
        self._translator = AddressTranslator(
            config,
            physical=self._physical,
            virtual=self._virtual,
            logger=self._logger,
        )
        self._lifecycle = ProcessLifecycle(
            config,
            physical=self._physical,
            virtual=self._virtual,
            table=self._table,
            entropy=self._entropy,
            logger=self._logger,
        )
        self._log_boot()

    def _log_boot(self) -> None:
        for line in self.boot_log():
            self._logger.log(LogLevel.DEBUG, line, source=_SOURCE)

    def boot_log(self) -> list[str]:
        """Return the geometry banner (like a kernel's dmesg)."""
        c = self._config
        return [
            f"Physical memory: {c.physical_memory_size} bytes, "
            f"{c.number_of_frames} frames of {c.frame_size} bytes",
            f"Virtual memory: {c.virtual_memory_size} bytes, "
            f"{c.number_of_pages} pages of {c.page_size} bytes",
            f"Page table: {c.outer_table_size} outer entries x "
            f"{c.entries_per_table} inner entries",
            f"Process table: {c.max_process_count} slots, "
            f"sizes {c.min_process_size}..{c.max_process_size} bytes",
        ]

    def reset(self) -> None:
        """Return every component to its just-built state."""
        self._physical.reset()
        self._virtual.reset()
        self._table.clear()
        self._translator.reset_counters()
        self._logger.clear()
        self._log_boot()

    @property
    def config(self) -> AddressSpaceConfig:
        """Return the geometry."""
        return self._config

    @property
    def logger(self) -> Logger:
        """Return the event log."""
        return self._logger

    @property
    def physical(self) -> PhysicalMemory:
        """Return physical memory."""
        return self._physical

    @property
    def virtual(self) -> VirtualMemory:
        """Return virtual memory."""
        return self._virtual

    @property
    def process_table(self) -> ProcessTable:
        """Return the process table."""
        return self._table

    @property
    def translator(self) -> AddressTranslator:
        """Return the address translator."""
        return self._translator

    @property
    def lifecycle(self) -> ProcessLifecycle:
        """Return the process lifecycle manager."""
        return self._lifecycle

    @property
    def processes(self) -> list[ProcessRecord]:
        """Return live processes in pid order."""
        return self._table.active()

    def create_process(self, slot_index: int | None = None) -> ProcessRecord:
        """Create a process, in the lowest free slot unless one is given.

        Raises:
            SlotsExhaustedError: If no slot is available.

        """
        if slot_index is None:
            free = self._table.next_free_slot()
            slot_index = free if free is not None else self._table.capacity
        return self._lifecycle.create_process(slot_index)

    def request_memory(self, process: ProcessRecord) -> int:
        """Grant memory to a process (see ``ProcessLifecycle.request_memory``)."""
        return self._lifecycle.request_memory(process)

    def translate(
        self,
        process: ProcessRecord,
        logical_address: int | None = None,
    ) -> TranslationResult:
        """Translate an address for a process, drawing one if not given."""
        if logical_address is None:
            logical_address = self._entropy.next_logical_address()
        return self._translator.translate(logical_address, process)

    def deallocate(self, process: ProcessRecord) -> int:
        """Deallocate a process (see ``ProcessLifecycle.deallocate``)."""
        return self._lifecycle.deallocate(process)

    def teardown(self) -> int:
        """Deallocate every live process; return how many there were."""
        return self._lifecycle.teardown()

    def step(self) -> StepReport:
        """Create a process, request memory for it, and translate one address.

        A denied request is reported, not raised.  So is a drawn address
        whose page range would run past the end of virtual memory; the
        process then keeps its grant but stays unmapped.

        Raises:
            SlotsExhaustedError: If the process table is full.

        """
        process = self.create_process()
        try:
            granted = self.request_memory(process)
        except InsufficientMemoryError:
            return StepReport(process=process, granted=None, translation=None)
        try:
            translation = self.translate(process)
        except AddressSpaceOverflowError as e:
            self._logger.log(LogLevel.ERROR, str(e), source=_SOURCE, pid=process.pid)
            return StepReport(process=process, granted=granted, translation=None, error=str(e))
        return StepReport(process=process, granted=granted, translation=translation)

    def run(self, count: int) -> list[StepReport]:
        """Run ``count`` steps in a row."""
        return [self.step() for _ in range(count)]

    def stats(self) -> dict[str, int]:
        """Return headline counters for display."""
        return {
            "processes": len(self._table),
            "remaining_bytes": self._physical.remaining_bytes,
            "free_frames": self._physical.free_frame_count,
            "free_pages": self._virtual.free_page_count,
            "page_faults": self._translator.page_faults,
            "translations": self._translator.translations,
        }
