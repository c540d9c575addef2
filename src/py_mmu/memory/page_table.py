"""Two-level (hierarchical) page table.

A flat page table for 256 pages needs 256 entries per process, even if
the process only touches one page.  A hierarchical table splits the page
number so the table itself is paged::

    page number (8 bits)  →  outer index (6 bits) | inner index (2 bits)

    outer table[outer]    →  inner table (4 entries, one page worth)
    inner table[inner]    →  PageTableEntry(frame_number)

The split point is fixed by how many entries fit in one page
(``page_size // page_table_entry_size``).

Design choices:
    - **The table is a trie** described by its fan-out per level
      (``levels``), stored as nested lists.  The geometry always gives two
      levels; nothing here hardcodes array dimensions.
    - **PageTableEntry is immutable** and ``valid`` is derived from the
      frame number, so an entry can never claim to be valid without a
      frame (or hold a frame while invalid).
"""

from __future__ import annotations

from dataclasses import dataclass
from math import prod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

INVALID_FRAME = -1


@dataclass(frozen=True)
class PageTableEntry:
    """Map one virtual page to a physical frame.

    Attributes:
        frame_number: The physical frame, or ``INVALID_FRAME`` when unmapped.

    """

    frame_number: int = INVALID_FRAME

    def __post_init__(self) -> None:
        """Reject negative frame numbers other than the sentinel."""
        if self.frame_number < INVALID_FRAME:
            msg = f"Invalid frame number {self.frame_number}"
            raise ValueError(msg)

    @property
    def valid(self) -> bool:
        """Return True if this page has a frame."""
        return self.frame_number != INVALID_FRAME


_UNMAPPED = PageTableEntry()


class PageTable:
    """Per-process hierarchical page table.

    The table is created fully invalidated.  Only the address translator
    (on a page fault) and process deallocation change it.
    """

    def __init__(self, levels: Sequence[int]) -> None:
        """Create an all-invalid table with the given fan-out per level.

        Args:
            levels: Entries per level, outermost first, e.g. ``(64, 4)``.

        """
        if not levels or any(fan <= 0 for fan in levels):
            msg = f"Page table levels must be positive, got {tuple(levels)}"
            raise ValueError(msg)
        self._levels: tuple[int, ...] = tuple(levels)
        self._root: list = []
        self.initialize()

    @property
    def levels(self) -> tuple[int, ...]:
        """Return the fan-out per level, outermost first."""
        return self._levels

    @property
    def capacity(self) -> int:
        """Return how many pages this table can describe."""
        return prod(self._levels)

    def _build(self, depth: int) -> list:
        fan = self._levels[depth]
        if depth == len(self._levels) - 1:
            return [_UNMAPPED] * fan
        return [self._build(depth + 1) for _ in range(fan)]

    def initialize(self) -> None:
        """Reset every entry in every inner table to invalid."""
        self._root = self._build(0)

    def split(self, page_number: int) -> tuple[int, ...]:
        """Decompose a page number into one index per level.

        For two levels this is ``(page // inner, page % inner)``.

        Raises:
            IndexError: If the page is outside the table.

        """
        if not 0 <= page_number < self.capacity:
            msg = f"Page {page_number} is outside the page table (0..{self.capacity - 1})"
            raise IndexError(msg)
        indices: list[int] = []
        remaining = page_number
        for fan in reversed(self._levels):
            remaining, index = divmod(remaining, fan)
            indices.append(index)
        return tuple(reversed(indices))

    def _locate(self, page_number: int) -> tuple[list[PageTableEntry], int]:
        """Walk the outer levels and return (inner table, inner index)."""
        *outer, inner = self.split(page_number)
        table = self._root
        for index in outer:
            table = table[index]
        return table, inner

    def lookup(self, page_number: int) -> PageTableEntry:
        """Return the entry for a virtual page."""
        table, index = self._locate(page_number)
        return table[index]

    def update(self, page_number: int, frame_number: int) -> None:
        """Map a virtual page to a physical frame and mark it valid."""
        if frame_number < 0:
            msg = f"Cannot map page {page_number} to frame {frame_number}"
            raise ValueError(msg)
        table, index = self._locate(page_number)
        table[index] = PageTableEntry(frame_number)

    def invalidate(self, page_number: int) -> None:
        """Return a virtual page's entry to the invalid state."""
        table, index = self._locate(page_number)
        table[index] = _UNMAPPED

    def inner_tables(self) -> list[tuple[PageTableEntry, ...]]:
        """Return every inner table in page order (read-only snapshot)."""
        tables: list[tuple[PageTableEntry, ...]] = []
        pending: list[list] = [self._root]
        for _ in range(len(self._levels) - 1):
            pending = [child for table in pending for child in table]
        tables.extend(tuple(table) for table in pending)
        return tables

    def mappings(self) -> dict[int, int]:
        """Return every valid page → frame mapping."""
        result: dict[int, int] = {}
        for page, entry in enumerate(e for table in self.inner_tables() for e in table):
            if entry.valid:
                result[page] = entry.frame_number
        return result

    def __len__(self) -> int:
        """Return the number of valid entries."""
        return len(self.mappings())
