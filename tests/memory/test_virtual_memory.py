"""Tests for the virtual memory ownership map.

Virtual memory records which process holds each virtual page.  It
stores only pids, and page ranges never wrap past the last page.
"""

import pytest

from py_mmu.config import DEFAULT_CONFIG
from py_mmu.memory.virtual import AddressSpaceOverflowError, VirtualMemory

LAST_PAGE = 255


class TestAssign:
    """Verify marking page ranges."""

    def test_starts_free(self) -> None:
        """Every page is free at first."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        assert vm.free_page_count == DEFAULT_CONFIG.number_of_pages
        assert vm.first_page_of(0) is None

    def test_assign_range(self) -> None:
        """A half-open range [2, 4) marks pages 2 and 3."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        vm.assign(7, start_page=2, page_count=2)
        assert vm.pages_of(7) == [2, 3]
        assert vm.owner(1) is None
        assert vm.owner(4) is None

    def test_range_ending_at_last_page(self) -> None:
        """A range may end exactly at the end of the address space."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        vm.assign(1, start_page=LAST_PAGE - 1, page_count=2)
        assert vm.pages_of(1) == [LAST_PAGE - 1, LAST_PAGE]

    def test_overflow_does_not_wrap(self) -> None:
        """A range past the last page is rejected and marks nothing."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        with pytest.raises(AddressSpaceOverflowError, match="exceed"):
            vm.assign(1, start_page=LAST_PAGE, page_count=2)
        assert vm.owner(0) is None
        assert vm.owner(LAST_PAGE) is None

    def test_later_assign_overwrites(self) -> None:
        """The most recent holder of a page is recorded."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        vm.assign(0, start_page=2, page_count=2)
        vm.assign(1, start_page=3, page_count=2)
        assert vm.pages_of(0) == [2]
        assert vm.pages_of(1) == [3, 4]


class TestRelease:
    """Verify clearing page ranges."""

    def test_release_clears_own_pages(self) -> None:
        """Release frees the pages the process holds."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        vm.assign(0, start_page=10, page_count=3)
        assert vm.release(0, start_page=10, page_count=3) == 3
        assert vm.free_page_count == DEFAULT_CONFIG.number_of_pages

    def test_release_skips_other_owners(self) -> None:
        """Pages taken over by another process are left alone."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        vm.assign(0, start_page=2, page_count=2)
        vm.assign(1, start_page=3, page_count=2)
        assert vm.release(0, start_page=2, page_count=2) == 1
        assert vm.owner(3) == 1

    def test_release_past_end_is_clamped(self) -> None:
        """Releasing beyond the last page does not raise."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        vm.assign(0, start_page=LAST_PAGE, page_count=1)
        assert vm.release(0, start_page=LAST_PAGE, page_count=4) == 1

    def test_reset(self) -> None:
        """reset() frees every page."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        vm.assign(0, start_page=0, page_count=4)
        vm.reset()
        assert vm.snapshot() == [None] * DEFAULT_CONFIG.number_of_pages

    def test_owner_out_of_range(self) -> None:
        """Page queries past the end raise IndexError."""
        vm = VirtualMemory(DEFAULT_CONFIG)
        with pytest.raises(IndexError):
            vm.owner(LAST_PAGE + 1)
