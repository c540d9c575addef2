"""Address-space geometry — the fixed numbers every other module derives from.

A paging MMU is defined by a handful of sizes.  Everything else (how many
frames exist, how a page number splits into table indices, how many
entries fit in one inner table) follows from them:

    physical memory 1024 B / frame 16 B   →  64 frames
    virtual memory  4096 B / page  16 B   → 256 pages
    page 16 B / page-table entry 4 B      →   4 entries per inner table
    256 pages / 4 entries                 →  64 outer-table slots

An 8-bit page number therefore splits into a 6-bit outer index (which
inner table) and a 2-bit inner index (which entry in it).

Design choices:
    - **Frozen dataclass** — geometry never changes while a simulation
      runs; a new simulation is built to try a different one.
    - **Derived values are properties**, not fields, so they can never
      drift out of sync with the sizes they come from.
    - **levels** describes the page table as a trie of fan-outs
      ``(outer, inner)`` so the table code never hardcodes dimensions.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class ConfigError(ValueError):
    """Raise when a geometry is inconsistent or a config file is unreadable."""


@dataclass(frozen=True)
class AddressSpaceConfig:
    """Sizes (in bytes) and limits that define a simulated MMU.

    Attributes:
        frame_size: Bytes per physical frame (and per virtual page).
        physical_memory_size: Total bytes of physical memory.
        virtual_memory_size: Total bytes of the virtual address space.
        page_table_entry_size: Bytes occupied by one page-table entry.
        min_process_size: Smallest process size the entropy source draws.
        max_process_size: Largest process size the entropy source draws.
        max_process_count: Capacity of the process slot table.

    """

    frame_size: int = 16
    physical_memory_size: int = 1024
    virtual_memory_size: int = 4096
    page_table_entry_size: int = 4
    min_process_size: int = 16
    max_process_size: int = 64
    max_process_count: int = 64

    def __post_init__(self) -> None:
        """Reject geometries that cannot describe a two-level page table.

        Raises:
            ConfigError: If any size is non-positive or does not divide evenly.

        """
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                msg = f"{f.name} must be a positive integer, got {value!r}"
                raise ConfigError(msg)
        if self.physical_memory_size % self.frame_size:
            msg = "physical_memory_size must be a multiple of frame_size"
            raise ConfigError(msg)
        if self.virtual_memory_size % self.frame_size:
            msg = "virtual_memory_size must be a multiple of the page size"
            raise ConfigError(msg)
        if self.page_size % self.page_table_entry_size:
            msg = "page size must be a multiple of page_table_entry_size"
            raise ConfigError(msg)
        if self.outer_table_size * self.entries_per_table != self.number_of_pages:
            msg = (
                f"{self.number_of_pages} pages cannot be split into inner tables "
                f"of {self.entries_per_table} entries"
            )
            raise ConfigError(msg)
        if self.min_process_size > self.max_process_size:
            msg = "min_process_size must not exceed max_process_size"
            raise ConfigError(msg)

    @property
    def page_size(self) -> int:
        """Return the page size — always equal to the frame size."""
        return self.frame_size

    @property
    def number_of_frames(self) -> int:
        """Return how many frames physical memory holds."""
        return self.physical_memory_size // self.frame_size

    @property
    def number_of_pages(self) -> int:
        """Return how many pages the virtual address space holds."""
        return self.virtual_memory_size // self.page_size

    @property
    def entries_per_table(self) -> int:
        """Return how many page-table entries fit in one page."""
        return self.page_size // self.page_table_entry_size

    @property
    def outer_table_size(self) -> int:
        """Return the number of slots in the outer (directory) table."""
        return self.number_of_pages // self.entries_per_table

    @property
    def levels(self) -> tuple[int, int]:
        """Return the page-table fan-out per level, outermost first."""
        return (self.outer_table_size, self.entries_per_table)

    def frames_for(self, size: int) -> int:
        """Return how many frames (or pages) are needed to hold ``size`` bytes."""
        return -(-size // self.frame_size)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> AddressSpaceConfig:
        """Build a config from a dict of field overrides.

        Raises:
            ConfigError: If the dict has unknown keys or an invalid geometry.

        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown config keys: {', '.join(unknown)}"
            raise ConfigError(msg)
        return cls(**data)


DEFAULT_CONFIG = AddressSpaceConfig()


def load_config(path: Path) -> AddressSpaceConfig:
    """Load a geometry from a JSON file of field overrides.

    Args:
        path: A JSON file holding an object such as ``{"max_process_count": 32}``.

    Returns:
        The validated config (defaults fill any missing field).

    Raises:
        ConfigError: If the file cannot be read or describes a bad geometry.

    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load config: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = "Config file must contain a JSON object"
        raise ConfigError(msg)
    return AddressSpaceConfig.from_mapping(data)
