"""Memory subsystem — page tables, physical and virtual memory, translation.

Re-exports public symbols so callers can write::

    from py_mmu.memory import AddressTranslator, PageTable, PhysicalMemory
"""

from py_mmu.memory.page_table import INVALID_FRAME, PageTable, PageTableEntry
from py_mmu.memory.physical import NoSuitableBlockError, PhysicalMemory
from py_mmu.memory.translator import (
    AddressTranslator,
    InvalidAddressError,
    TranslationResult,
    TranslationStatus,
)
from py_mmu.memory.virtual import AddressSpaceOverflowError, VirtualMemory

__all__ = [
    "INVALID_FRAME",
    "AddressSpaceOverflowError",
    "AddressTranslator",
    "InvalidAddressError",
    "NoSuitableBlockError",
    "PageTable",
    "PageTableEntry",
    "PhysicalMemory",
    "TranslationResult",
    "TranslationStatus",
    "VirtualMemory",
]
