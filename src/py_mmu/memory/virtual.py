"""Virtual memory — which process holds which virtual page.

The virtual address space is a row of ``number_of_pages`` pages.  When
a process's logical address is translated, the pages it needs (starting
at the page the address falls in) are marked as belonging to it.  The
map stores only the process id: a back-reference, never the process
itself, so a destroyed process cannot linger here except as a stale id
that deallocation clears explicitly.

Ranges never wrap around the end of the address space; a range that
would run past the last page is rejected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_mmu.config import AddressSpaceConfig


class AddressSpaceOverflowError(ValueError):
    """Raise when a page range runs past the end of virtual memory."""


class VirtualMemory:
    """Page-indexed ownership map of the virtual address space."""

    def __init__(self, config: AddressSpaceConfig) -> None:
        """Create an address space with every page free."""
        self._config = config
        self._owners: list[int | None] = []
        self.reset()

    def reset(self) -> None:
        """Mark every page free."""
        self._owners = [None] * self._config.number_of_pages

    @property
    def number_of_pages(self) -> int:
        """Return the total number of pages."""
        return len(self._owners)

    @property
    def free_page_count(self) -> int:
        """Return how many pages no process holds."""
        return self._owners.count(None)

    def owner(self, page: int) -> int | None:
        """Return the pid holding a page, or None if free."""
        if not 0 <= page < len(self._owners):
            msg = f"Page {page} is outside virtual memory"
            raise IndexError(msg)
        return self._owners[page]

    def assign(self, pid: int, *, start_page: int, page_count: int) -> None:
        """Mark the pages ``[start_page, start_page + page_count)`` as held by pid.

        Raises:
            AddressSpaceOverflowError: If the range runs past the last page.

        """
        end = start_page + page_count
        if start_page < 0 or end > len(self._owners):
            msg = (
                f"Pages {start_page}..{end - 1} exceed the virtual address space "
                f"({len(self._owners)} pages)"
            )
            raise AddressSpaceOverflowError(msg)
        for page in range(start_page, end):
            self._owners[page] = pid

    def release(self, pid: int, *, start_page: int, page_count: int) -> int:
        """Free the pages in a range that pid still holds.

        Returns:
            The number of pages freed.

        """
        end = min(start_page + page_count, len(self._owners))
        freed = 0
        for page in range(max(start_page, 0), end):
            if self._owners[page] == pid:
                self._owners[page] = None
                freed += 1
        return freed

    def first_page_of(self, pid: int) -> int | None:
        """Return the lowest page held by pid, or None if it holds none."""
        for page, owner in enumerate(self._owners):
            if owner == pid:
                return page
        return None

    def pages_of(self, pid: int) -> list[int]:
        """Return every page held by pid."""
        return [page for page, owner in enumerate(self._owners) if owner == pid]

    def snapshot(self) -> list[int | None]:
        """Return the owner of every page (read-only copy)."""
        return list(self._owners)
