"""Tests for process creation, memory requests and deallocation.

Processes occupy slots in a fixed-capacity table.  A memory request is
a one-shot draw that is granted only if it is smaller than the bytes
remaining.  Deallocation undoes every effect of allocation.
"""

import pytest

from py_mmu.config import DEFAULT_CONFIG, AddressSpaceConfig
from py_mmu.entropy import ScriptedEntropy
from py_mmu.logging import LogLevel
from py_mmu.memory.translator import TranslationStatus
from py_mmu.process.lifecycle import (
    InsufficientMemoryError,
    ProcessTable,
    SlotsExhaustedError,
)
from py_mmu.process.pcb import ProcessRecord
from py_mmu.simulation import MemorySimulation

TOTAL_BYTES = DEFAULT_CONFIG.physical_memory_size
PROCESS_SIZE = 32
GRANTED = 20
ADDRESS = 37


def _simulation(config: AddressSpaceConfig = DEFAULT_CONFIG, **script: list[int]) -> MemorySimulation:
    return MemorySimulation(config, entropy=ScriptedEntropy(**script))


def _memory_state(sim: MemorySimulation) -> tuple[int, list[list[int | None]], list[int | None]]:
    frames = [sim.physical.frame_bytes(f) for f in range(sim.config.number_of_frames)]
    return sim.physical.remaining_bytes, frames, sim.virtual.snapshot()


class TestProcessTable:
    """Verify the fixed-capacity slot table."""

    def test_next_free_slot(self) -> None:
        """Slots fill from the lowest index."""
        table = ProcessTable(2)
        assert table.next_free_slot() == 0
        table.occupy(ProcessRecord(pid=0, size=PROCESS_SIZE, config=DEFAULT_CONFIG))
        assert table.next_free_slot() == 1

    def test_full_table(self) -> None:
        """A table with every slot taken reports full."""
        table = ProcessTable(1)
        table.occupy(ProcessRecord(pid=0, size=PROCESS_SIZE, config=DEFAULT_CONFIG))
        assert table.is_full
        assert table.next_free_slot() is None

    def test_free_only_matching_process(self) -> None:
        """Freeing a stale record does not evict the slot's new owner."""
        table = ProcessTable(1)
        old = ProcessRecord(pid=0, size=PROCESS_SIZE, config=DEFAULT_CONFIG)
        table.occupy(old)
        table.free(old)
        new = ProcessRecord(pid=0, size=PROCESS_SIZE, config=DEFAULT_CONFIG)
        table.occupy(new)
        assert not table.free(old)
        assert table.get(0) is new

    def test_zero_capacity_rejected(self) -> None:
        """A table needs at least one slot."""
        with pytest.raises(ValueError, match="capacity"):
            ProcessTable(0)


class TestCreateProcess:
    """Verify process creation."""

    def test_create_assigns_slot_and_size(self) -> None:
        """The pid is the slot and the size comes from entropy."""
        sim = _simulation(sizes=[PROCESS_SIZE])
        process = sim.lifecycle.create_process(0)
        assert process.pid == 0
        assert process.size == PROCESS_SIZE
        assert process.size_in_memory == 0
        assert len(process.page_table) == 0
        assert sim.process_table.get(0) is process

    def test_table_at_capacity_fails(self) -> None:
        """With every slot filled, the next creation is fatal."""
        config = AddressSpaceConfig(max_process_count=2)
        sim = _simulation(config, sizes=[16, 16, 16])
        sim.lifecycle.create_process(0)
        sim.lifecycle.create_process(1)
        with pytest.raises(SlotsExhaustedError, match="full"):
            sim.lifecycle.create_process(2)

    def test_slot_past_capacity_fails(self) -> None:
        """A slot index at or past the capacity is never valid."""
        config = AddressSpaceConfig(max_process_count=2)
        sim = _simulation(config, sizes=[16])
        with pytest.raises(SlotsExhaustedError):
            sim.lifecycle.create_process(5)

    def test_occupied_slot_rejected(self) -> None:
        """Two live processes cannot share a slot."""
        sim = _simulation(sizes=[16, 16])
        sim.lifecycle.create_process(0)
        with pytest.raises(ValueError, match="already occupied"):
            sim.lifecycle.create_process(0)

    def test_negative_slot_rejected(self) -> None:
        """Slot indices are non-negative."""
        sim = _simulation(sizes=[16])
        with pytest.raises(ValueError, match="non-negative"):
            sim.lifecycle.create_process(-1)


class TestRequestMemory:
    """Verify the one-shot admission check."""

    def test_grant(self) -> None:
        """A request smaller than what remains is granted in full."""
        sim = _simulation(sizes=[PROCESS_SIZE], requests=[GRANTED])
        process = sim.lifecycle.create_process(0)
        assert sim.lifecycle.request_memory(process) == GRANTED
        assert process.size_in_memory == GRANTED

    def test_grant_does_not_touch_physical_memory(self) -> None:
        """Bytes are charged on placement, not on the grant itself."""
        sim = _simulation(sizes=[PROCESS_SIZE], requests=[GRANTED])
        sim.lifecycle.request_memory(sim.lifecycle.create_process(0))
        assert sim.physical.remaining_bytes == TOTAL_BYTES

    def test_request_equal_to_remaining_denied(self) -> None:
        """The request must be strictly smaller than what remains."""
        config = AddressSpaceConfig(physical_memory_size=64)
        sim = _simulation(config, sizes=[64], requests=[64])
        process = sim.lifecycle.create_process(0)
        with pytest.raises(InsufficientMemoryError, match="Cannot grant 64"):
            sim.lifecycle.request_memory(process)
        assert process.size_in_memory == 0
        assert sim.logger.filter(min_level=LogLevel.WARNING, pid=0)

    @pytest.mark.parametrize("request_size", [1, 8, 16])
    def test_no_memory_left_always_denies(self, request_size: int) -> None:
        """With 0 bytes remaining every request fails."""
        config = AddressSpaceConfig(physical_memory_size=64)
        sim = _simulation(config, sizes=[16], requests=[request_size])
        hog = ProcessRecord(pid=1, size=64, config=config)
        hog.size_in_memory = 64
        sim.physical.first_fit(hog, required_frames=4)
        assert sim.physical.remaining_bytes == 0
        process = sim.lifecycle.create_process(0)
        with pytest.raises(InsufficientMemoryError):
            sim.lifecycle.request_memory(process)

    def test_second_request_rejected(self) -> None:
        """A process is granted memory at most once."""
        sim = _simulation(sizes=[PROCESS_SIZE], requests=[GRANTED, GRANTED])
        process = sim.lifecycle.create_process(0)
        sim.lifecycle.request_memory(process)
        with pytest.raises(ValueError, match="already holds"):
            sim.lifecycle.request_memory(process)


class TestDeallocate:
    """Verify that deallocation reverses allocation."""

    def test_round_trip_restores_memory(self) -> None:
        """Allocate then deallocate leaves memory exactly as before."""
        sim = _simulation(sizes=[PROCESS_SIZE], requests=[GRANTED], addresses=[ADDRESS])
        before = _memory_state(sim)
        report = sim.step()
        assert report.translation is not None
        assert report.translation.status is TranslationStatus.MAPPED
        assert sim.deallocate(report.process) == GRANTED
        assert _memory_state(sim) == before

    def test_process_is_reset(self) -> None:
        """The page table is invalidated, the grant cleared, the slot freed."""
        sim = _simulation(sizes=[PROCESS_SIZE], requests=[GRANTED], addresses=[ADDRESS])
        process = sim.step().process
        sim.deallocate(process)
        assert len(process.page_table) == 0
        assert process.size_in_memory == 0
        assert sim.process_table.get(process.pid) is None

    def test_second_deallocate_is_noop(self) -> None:
        """Deallocating twice is harmless."""
        sim = _simulation(sizes=[PROCESS_SIZE], requests=[GRANTED], addresses=[ADDRESS])
        process = sim.step().process
        sim.deallocate(process)
        state = _memory_state(sim)
        assert sim.deallocate(process) == 0
        assert _memory_state(sim) == state

    def test_never_mapped_process(self) -> None:
        """A process that never got memory only gives up its slot."""
        sim = _simulation(sizes=[PROCESS_SIZE])
        process = sim.lifecycle.create_process(0)
        before = _memory_state(sim)
        assert sim.deallocate(process) == 0
        assert _memory_state(sim) == before
        assert len(sim.process_table) == 0

    def test_failed_allocation_clears_virtual_pages(self) -> None:
        """Pages marked before a failed first-fit are released."""
        config = AddressSpaceConfig(physical_memory_size=64)
        sim = _simulation(config, sizes=[PROCESS_SIZE], requests=[GRANTED], addresses=[ADDRESS])
        hog = ProcessRecord(pid=5, size=64, config=config)
        hog.size_in_memory = 40
        sim.physical.first_fit(hog, required_frames=3)
        report = sim.step()
        assert report.translation is not None
        assert report.translation.status is TranslationStatus.ALLOCATION_FAILED
        assert sim.virtual.pages_of(0) == [2, 3]
        assert sim.deallocate(report.process) == 0
        assert sim.virtual.pages_of(0) == []

    def test_pages_of_later_failed_translation_released(self) -> None:
        """A second translation that finds no block leaves no pages behind."""
        config = AddressSpaceConfig(physical_memory_size=32)
        sim = _simulation(config, sizes=[PROCESS_SIZE], requests=[GRANTED])
        process = sim.create_process()
        sim.request_memory(process)
        assert sim.translate(process, 160).status is TranslationStatus.MAPPED
        assert sim.translate(process, 800).status is TranslationStatus.ALLOCATION_FAILED
        assert sim.virtual.pages_of(process.pid) == [10, 11, 50, 51]
        assert sim.deallocate(process) == GRANTED
        assert sim.virtual.pages_of(process.pid) == []
        assert sim.virtual.free_page_count == config.number_of_pages
        assert sim.physical.remaining_bytes == config.physical_memory_size

    def test_slot_reuse_inherits_no_pages(self) -> None:
        """A process reusing a freed slot starts with no virtual pages."""
        config = AddressSpaceConfig(physical_memory_size=32)
        sim = _simulation(config, sizes=[PROCESS_SIZE, 16], requests=[GRANTED])
        process = sim.create_process()
        sim.request_memory(process)
        sim.translate(process, 160)
        sim.translate(process, 800)
        sim.deallocate(process)
        successor = sim.create_process()
        assert successor.pid == process.pid
        assert sim.virtual.pages_of(successor.pid) == []

    def test_neighbour_untouched(self) -> None:
        """Deallocating one process leaves an overlapping neighbour intact."""
        sim = _simulation(
            sizes=[PROCESS_SIZE, PROCESS_SIZE],
            requests=[GRANTED, GRANTED],
            addresses=[32, 48],
        )
        first = sim.step().process
        second = sim.step().process
        sim.deallocate(first)
        assert sim.virtual.pages_of(second.pid) == [3, 4]
        assert sim.physical.frames_owned_by(second.pid) == [2, 3]
        assert sim.physical.remaining_bytes == TOTAL_BYTES - GRANTED

    def test_frames_found_when_pages_taken_over(self) -> None:
        """Frames are freed even if another process now holds every page."""
        sim = _simulation(
            sizes=[PROCESS_SIZE, PROCESS_SIZE],
            requests=[GRANTED, GRANTED],
            addresses=[32, 32],
        )
        first = sim.step().process
        second = sim.step().process
        assert sim.virtual.pages_of(first.pid) == []
        assert sim.deallocate(first) == GRANTED
        assert sim.physical.frames_owned_by(first.pid) == []
        assert sim.virtual.pages_of(second.pid) == [2, 3]

    def test_teardown_frees_everything(self) -> None:
        """Tearing down every process empties memory and the table."""
        sim = _simulation(
            sizes=[16, 32, 64],
            requests=[10, 20, 30],
            addresses=[0, 100, 200],
        )
        sim.run(3)
        assert sim.teardown() == 3
        assert sim.physical.remaining_bytes == TOTAL_BYTES
        assert sim.virtual.free_page_count == DEFAULT_CONFIG.number_of_pages
        assert len(sim.process_table) == 0
