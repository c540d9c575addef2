"""Event log for the MMU simulation.

Each component records what it did (a process was created, a request
was denied, a page faulted, first-fit placed a block) as a ``LogEntry``
tagged with the subsystem and, where there is one, the pid.  Nothing is
printed here: the CLI renders ``lines()``, the web view returns them as
JSON, and tests query entries for one process.

Boot and reset messages carry no pid, so ``pid`` filters never match
them.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity of an event, ordered so levels compare with ``<``."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """One recorded event.

    Attributes:
        level: Severity.
        message: What happened.
        source: Subsystem name, e.g. ``"physical"`` or ``"translator"``.
        pid: Process the event concerns, or None for system events.

    """

    level: LogLevel
    message: str
    source: str
    pid: int | None = None

    def matches(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        pid: int | None = None,
    ) -> bool:
        """Return True if the entry passes every criterion that is set."""
        if min_level is not None and self.level < min_level:
            return False
        if source is not None and self.source != source:
            return False
        return pid is None or self.pid == pid

    def __str__(self) -> str:
        """Render as ``[LEVEL] source: message``, plus ``(pid N)`` if any."""
        suffix = "" if self.pid is None else f" (pid {self.pid})"
        return f"[{self.level.name}] {self.source}: {self.message}{suffix}"


class Logger:
    """Chronological, append-only list of ``LogEntry`` records."""

    def __init__(self) -> None:
        """Create an empty log."""
        self._entries: list[LogEntry] = []

    def __len__(self) -> int:
        """Return the number of recorded events."""
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        """Iterate over a snapshot of the entries."""
        return iter(list(self._entries))

    @property
    def entries(self) -> list[LogEntry]:
        """Return a copy of every entry, oldest first."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        pid: int | None = None,
    ) -> None:
        """Record one event.

        Args:
            level: Severity of the event.
            message: What happened.
            source: Subsystem that produced it.
            pid: Process it concerns, if any.

        """
        self._entries.append(LogEntry(level=level, message=message, source=source, pid=pid))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        pid: int | None = None,
    ) -> list[LogEntry]:
        """Return the entries that pass ``LogEntry.matches`` for the criteria."""
        return [
            e for e in self._entries if e.matches(min_level=min_level, source=source, pid=pid)
        ]

    def for_process(self, pid: int) -> list[LogEntry]:
        """Return the history of one process."""
        return self.filter(pid=pid)

    def lines(self, *, min_level: LogLevel = LogLevel.INFO) -> list[str]:
        """Return rendered entries at or above ``min_level``."""
        return [str(e) for e in self.filter(min_level=min_level)]

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
