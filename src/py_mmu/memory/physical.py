"""Physical memory — byte-level ownership and first-fit allocation.

Physical memory is divided into fixed-size **frames**.  Unlike a paged
allocator that can hand out any free frame, this MMU gives each process
one **contiguous** run of frames, found with the first-fit strategy:

    scan frames 0, 1, 2, ... in order
    count consecutive free frames, resetting on any owned frame
    stop at the first run that is long enough

Ownership is tracked per **byte**: a process granted 20 bytes owns the
16 bytes of its first frame and 4 bytes of its second.  The unused tail
of the last frame is not owned by anyone, but the frame is not free
either — a frame is free only if every byte in it is unowned.  That
tail is internal fragmentation, and it is why ``remaining_bytes`` can
exceed the bytes actually available to first-fit.

Invariant::

    remaining_bytes == physical_memory_size - owned_bytes()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from py_mmu.logging import LogLevel

if TYPE_CHECKING:
    from py_mmu.config import AddressSpaceConfig
    from py_mmu.logging import Logger
    from py_mmu.process.pcb import ProcessRecord

_SOURCE = "physical"


class NoSuitableBlockError(Exception):
    """Raise when no run of free frames is long enough for a request."""


class PhysicalMemory:
    """Frame-indexed physical memory with a first-fit allocator."""

    def __init__(self, config: AddressSpaceConfig, *, logger: Logger | None = None) -> None:
        """Create an empty physical memory for the given geometry.

        Args:
            config: Supplies the frame size and frame count.
            logger: Optional event log.

        """
        self._config = config
        self._logger = logger
        self._owners: list[int | None] = []
        self._remaining = 0
        self.reset()

    def reset(self) -> None:
        """Mark every byte free."""
        self._owners = [None] * self._config.physical_memory_size
        self._remaining = self._config.physical_memory_size

    @property
    def remaining_bytes(self) -> int:
        """Return the number of bytes not granted to any process."""
        return self._remaining

    @property
    def number_of_frames(self) -> int:
        """Return the total number of frames."""
        return self._config.number_of_frames

    def _frame_range(self, frame: int) -> range:
        if not 0 <= frame < self._config.number_of_frames:
            msg = f"Frame {frame} is outside physical memory"
            raise IndexError(msg)
        start = frame * self._config.frame_size
        return range(start, start + self._config.frame_size)

    def frame_bytes(self, frame: int) -> list[int | None]:
        """Return the owner of each byte in a frame."""
        return [self._owners[i] for i in self._frame_range(frame)]

    def is_frame_free(self, frame: int) -> bool:
        """Return True if no byte in the frame is owned."""
        return all(self._owners[i] is None for i in self._frame_range(frame))

    def frame_owner(self, frame: int) -> int | None:
        """Return the pid owning any byte of the frame, or None if free."""
        for i in self._frame_range(frame):
            if self._owners[i] is not None:
                return self._owners[i]
        return None

    def byte_owner(self, address: int) -> int | None:
        """Return the pid owning a physical byte, or None."""
        if not 0 <= address < len(self._owners):
            msg = f"Physical address {address} is outside physical memory"
            raise IndexError(msg)
        return self._owners[address]

    def frames_owned_by(self, pid: int) -> list[int]:
        """Return the frames holding at least one byte of a process."""
        return [
            frame
            for frame in range(self._config.number_of_frames)
            if pid in self.frame_bytes(frame)
        ]

    def owned_bytes(self) -> int:
        """Return how many bytes are owned across all frames."""
        return sum(1 for owner in self._owners if owner is not None)

    @property
    def free_frame_count(self) -> int:
        """Return how many frames are entirely free."""
        return sum(1 for f in range(self._config.number_of_frames) if self.is_frame_free(f))

    def find_first_fit(self, required_frames: int) -> int | None:
        """Return the lowest start frame of a long-enough free run, or None.

        Raises:
            ValueError: If fewer than one frame is requested.

        """
        if required_frames < 1:
            msg = f"Must request at least 1 frame, got {required_frames}"
            raise ValueError(msg)
        run = 0
        for frame in range(self._config.number_of_frames):
            if self.is_frame_free(frame):
                run += 1
                if run == required_frames:
                    return frame - required_frames + 1
            else:
                run = 0
        return None

    def first_fit(self, process: ProcessRecord, *, required_frames: int) -> int:
        """Allocate a contiguous run of frames to a process.

        The process's ``size_in_memory`` bytes are written from the first
        byte of the start frame onward and ``remaining_bytes`` drops by the
        same amount.

        Args:
            process: The process being placed in memory.
            required_frames: Length of the run needed (at least 1).

        Returns:
            The start frame of the allocated run.

        Raises:
            NoSuitableBlockError: If no run of free frames is long enough.
            ValueError: If fewer than one frame is requested, or the
                frames cannot hold the process's granted bytes.

        """
        if required_frames < 1:
            msg = f"Must request at least 1 frame, got {required_frames}"
            raise ValueError(msg)
        granted = process.size_in_memory
        if granted > required_frames * self._config.frame_size:
            msg = f"{required_frames} frame(s) cannot hold {granted} bytes"
            raise ValueError(msg)
        start = self.find_first_fit(required_frames)
        if start is None:
            if self._logger is not None:
                self._logger.log(
                    LogLevel.WARNING,
                    f"No free block of {required_frames} frame(s) found",
                    source=_SOURCE,
                    pid=process.pid,
                )
            msg = f"No block of {required_frames} free frame(s) for process {process.pid}"
            raise NoSuitableBlockError(msg)

        first_byte = start * self._config.frame_size
        for i in range(first_byte, first_byte + granted):
            self._owners[i] = process.pid
        self._remaining -= granted

        if self._logger is not None:
            self._logger.log(
                LogLevel.INFO,
                f"Allocated frames {start}..{start + required_frames - 1} "
                f"({required_frames} frame(s)); {self._remaining} bytes remaining",
                source=_SOURCE,
                pid=process.pid,
            )
        return start

    def release(self, pid: int, *, start_frame: int, frame_count: int) -> int:
        """Free the bytes a process owns in a run of frames.

        Bytes owned by other processes are left alone.  Frames past the
        end of memory are ignored.

        Args:
            pid: The process giving memory back.
            start_frame: First frame of the run.
            frame_count: Number of frames in the run.

        Returns:
            The number of bytes freed (added back to ``remaining_bytes``).

        """
        end_frame = min(start_frame + frame_count, self._config.number_of_frames)
        freed = 0
        for frame in range(start_frame, end_frame):
            for i in self._frame_range(frame):
                if self._owners[i] == pid:
                    self._owners[i] = None
                    freed += 1
        self._remaining += freed
        if self._logger is not None and freed:
            self._logger.log(
                LogLevel.INFO,
                f"Released {freed} bytes from frame {start_frame}; "
                f"{self._remaining} bytes remaining",
                source=_SOURCE,
                pid=pid,
            )
        return freed
