"""Address translation — the MMU's hot path.

Translating a logical address walks the pipeline::

    logical address  →  (page number, offset)
    page number      →  (outer index, inner index)   two-level split
    page table entry →  valid?  done : page fault
    page fault       →  first-fit a contiguous block of frames
                     →  record the start frame in the page table

Pages ``[page, page + required_pages)`` are marked as held by the
process in virtual memory, but only the **first** page's table entry is
checked and updated.  The remaining pages of a multi-page process stay
invalid in its page table; the start frame alone locates the whole
contiguous block.

Outcomes the caller is expected to handle come back as a
``TranslationResult``; only broken caller contracts (an address outside
virtual memory, a range past its end, a process with no memory granted)
raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from py_mmu.logging import LogLevel
from py_mmu.memory.physical import NoSuitableBlockError

if TYPE_CHECKING:
    from py_mmu.config import AddressSpaceConfig
    from py_mmu.logging import Logger
    from py_mmu.memory.physical import PhysicalMemory
    from py_mmu.memory.virtual import VirtualMemory
    from py_mmu.process.pcb import ProcessRecord

_SOURCE = "translator"


class InvalidAddressError(ValueError):
    """Raise when a logical address lies outside the virtual address space."""


class TranslationStatus(StrEnum):
    """How a translation ended.

    - MAPPED: the page faulted and a block of frames was allocated.
    - ALREADY_MAPPED: the page already had a frame; nothing changed.
    - ALLOCATION_FAILED: the page faulted and first-fit found no block.
    """

    MAPPED = "mapped"
    ALREADY_MAPPED = "already_mapped"
    ALLOCATION_FAILED = "allocation_failed"


@dataclass(frozen=True)
class TranslationResult:
    """Everything one translation learned about a logical address."""

    status: TranslationStatus
    pid: int
    logical_address: int
    page_number: int
    offset: int
    outer_index: int
    inner_index: int
    required_pages: int
    frame_number: int | None = None
    physical_address: int | None = None

    @property
    def page_fault(self) -> bool:
        """Return True if the page had no frame when translation began."""
        return self.status is not TranslationStatus.ALREADY_MAPPED

    @property
    def mapped(self) -> bool:
        """Return True if the page has a frame after translation."""
        return self.frame_number is not None


class AddressTranslator:
    """Translate logical addresses and service page faults."""

    def __init__(
        self,
        config: AddressSpaceConfig,
        *,
        physical: PhysicalMemory,
        virtual: VirtualMemory,
        logger: Logger | None = None,
    ) -> None:
        """Wire the translator to the memories it updates."""
        self._config = config
        self._physical = physical
        self._virtual = virtual
        self._logger = logger
        self._page_faults = 0
        self._translations = 0

    @property
    def page_faults(self) -> int:
        """Return how many translations found an invalid entry."""
        return self._page_faults

    @property
    def translations(self) -> int:
        """Return how many translations have completed."""
        return self._translations

    def reset_counters(self) -> None:
        """Zero the fault and translation counters."""
        self._page_faults = 0
        self._translations = 0

    def _log(self, level: LogLevel, message: str, pid: int) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source=_SOURCE, pid=pid)

    def decompose(self, logical_address: int) -> tuple[int, int]:
        """Split a logical address into (page number, offset).

        Raises:
            InvalidAddressError: If the address is outside virtual memory.

        """
        if not 0 <= logical_address < self._config.virtual_memory_size:
            msg = (
                f"Logical address {logical_address} is outside virtual memory "
                f"(0..{self._config.virtual_memory_size - 1})"
            )
            raise InvalidAddressError(msg)
        return divmod(logical_address, self._config.page_size)

    def translate(self, logical_address: int, process: ProcessRecord) -> TranslationResult:
        """Translate a logical address for a process, allocating on a fault.

        Args:
            logical_address: Address generated by the process.
            process: The process whose page table is consulted.

        Returns:
            The decomposition and outcome of the translation.

        Raises:
            InvalidAddressError: If the address is outside virtual memory.
            AddressSpaceOverflowError: If the process's pages would run past
                the last virtual page.
            ValueError: If the process has not been granted any memory.

        """
        page_number, offset = self.decompose(logical_address)
        if process.size_in_memory <= 0:
            msg = f"Process {process.pid} has no memory granted to translate for"
            raise ValueError(msg)
        pid = process.pid
        self._log(
            LogLevel.INFO,
            f"Logical address {logical_address} → page {page_number}, offset {offset}",
            pid,
        )

        required_pages = self._config.frames_for(process.size_in_memory)
        self._virtual.assign(pid, start_page=page_number, page_count=required_pages)

        table = process.page_table
        outer_index, inner_index = table.split(page_number)
        entry = table.lookup(page_number)
        base = {
            "pid": pid,
            "logical_address": logical_address,
            "page_number": page_number,
            "offset": offset,
            "outer_index": outer_index,
            "inner_index": inner_index,
            "required_pages": required_pages,
        }
        self._translations += 1

        if entry.valid:
            self._log(LogLevel.INFO, f"Page {page_number} is already mapped", pid)
            return TranslationResult(
                status=TranslationStatus.ALREADY_MAPPED,
                frame_number=entry.frame_number,
                physical_address=entry.frame_number * self._config.page_size + offset,
                **base,
            )

        self._page_faults += 1
        self._log(LogLevel.INFO, f"Page fault on page {page_number}", pid)
        try:
            frame = self._physical.first_fit(process, required_frames=required_pages)
        except NoSuitableBlockError:
            self._log(LogLevel.WARNING, f"Page {page_number} left unmapped", pid)
            return TranslationResult(status=TranslationStatus.ALLOCATION_FAILED, **base)

        table.update(page_number, frame)
        self._log(LogLevel.INFO, f"Page {page_number} mapped to frame {frame}", pid)
        return TranslationResult(
            status=TranslationStatus.MAPPED,
            frame_number=frame,
            physical_address=frame * self._config.page_size + offset,
            **base,
        )
