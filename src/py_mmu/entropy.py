"""Entropy sources — where process sizes and addresses come from.

The simulator never calls ``random`` directly.  Every random draw goes
through an object satisfying the ``EntropySource`` protocol, so a test
can replay exact values and a demo can be reproduced from a seed.

Three draws are needed:

    next_process_size()      → int in [min_process_size, max_process_size]
    next_logical_address()   → int in [0, virtual_memory_size)
    next_request_size(max)   → int in [1, max]

- **RandomEntropy** — ``random.Random`` seeded from the wall clock unless
  a seed is given.
- **ScriptedEntropy** — replays fixed sequences; runs dry loudly.
"""

from __future__ import annotations

import random
from collections import deque
from time import time_ns
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable

    from py_mmu.config import AddressSpaceConfig


class EntropySource(Protocol):
    """Interface for the random draws the simulator makes."""

    def next_process_size(self) -> int:
        """Return a process size in bytes."""
        ...

    def next_logical_address(self) -> int:
        """Return a logical address inside the virtual address space."""
        ...

    def next_request_size(self, maximum: int) -> int:
        """Return a memory request size in ``[1, maximum]``."""
        ...


class RandomEntropy:
    """Pseudo-random draws bounded by a geometry."""

    def __init__(self, config: AddressSpaceConfig, *, seed: int | None = None) -> None:
        """Create a source for the given geometry.

        Args:
            config: Supplies the size and address ranges.
            seed: Fixed seed for reproducible runs; defaults to the clock.

        """
        self._config = config
        self._seed = seed if seed is not None else time_ns()
        self._rng = random.Random(self._seed)  # noqa: S311

    @property
    def seed(self) -> int:
        """Return the seed this source was started from."""
        return self._seed

    def next_process_size(self) -> int:
        """Draw uniformly from ``[min_process_size, max_process_size]``."""
        return self._rng.randint(self._config.min_process_size, self._config.max_process_size)

    def next_logical_address(self) -> int:
        """Draw uniformly from ``[0, virtual_memory_size)``."""
        return self._rng.randrange(self._config.virtual_memory_size)

    def next_request_size(self, maximum: int) -> int:
        """Draw uniformly from ``[1, maximum]``.

        Raises:
            ValueError: If ``maximum`` is less than 1.

        """
        if maximum < 1:
            msg = f"Request maximum must be at least 1, got {maximum}"
            raise ValueError(msg)
        return self._rng.randint(1, maximum)


class ScriptedEntropy:
    """Replay pre-chosen values in order.

    Usage::

        entropy = ScriptedEntropy(sizes=[32], addresses=[37], requests=[20])

    """

    def __init__(
        self,
        *,
        sizes: Iterable[int] = (),
        addresses: Iterable[int] = (),
        requests: Iterable[int] = (),
    ) -> None:
        """Create a source that replays the given sequences."""
        self._sizes: deque[int] = deque(sizes)
        self._addresses: deque[int] = deque(addresses)
        self._requests: deque[int] = deque(requests)

    @staticmethod
    def _take(queue: deque[int], what: str) -> int:
        if not queue:
            msg = f"Scripted entropy has no {what} left"
            raise LookupError(msg)
        return queue.popleft()

    def next_process_size(self) -> int:
        """Return the next scripted process size."""
        return self._take(self._sizes, "process sizes")

    def next_logical_address(self) -> int:
        """Return the next scripted logical address."""
        return self._take(self._addresses, "logical addresses")

    def next_request_size(self, maximum: int) -> int:
        """Return the next scripted request size.

        Raises:
            ValueError: If the scripted value falls outside ``[1, maximum]``.

        """
        value = self._take(self._requests, "request sizes")
        if not 1 <= value <= maximum:
            msg = f"Scripted request {value} is outside [1, {maximum}]"
            raise ValueError(msg)
        return value
