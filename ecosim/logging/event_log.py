"""
Event Log for the ecosystem simulator.

Collects the narrative events the simulation emits (births, deaths,
attacks, courtship, disasters, population milestones) as
(tick, category, message) records:

  - keeps a bounded in-memory history for the UI
  - optionally echoes each event to the console
  - optionally appends each event to a text file
  - forwards each event to subscriber callbacks

Pass `EventLog.log` (or the EventLog itself) as a World's event sink.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TextIO


@dataclass(frozen=True, slots=True)
class Event:
    tick: int
    category: str
    message: str

    def format(self) -> str:
        return f"[{self.tick:>5}] {self.category:<10} {self.message}"


class EventLog:
    """
    Bounded event history with optional console and file output.

    Attributes:
        history_size: Maximum events kept in memory.
        console: Echo events to stdout with print().
        file_path: Append-only output file, or None.
        tick: Tick stamped on incoming events (set by the engine).
    """

    def __init__(
        self,
        history_size: int = 500,
        console: bool = False,
        file_path: Optional[str | Path] = None,
    ):
        self.history_size = history_size
        self.console = console
        self.file_path = Path(file_path) if file_path is not None else None
        self.tick: int = 0

        self._history: deque[Event] = deque(maxlen=history_size)
        self._subscribers: list[Callable[[Event], None]] = []
        self._file: Optional[TextIO] = None

        if self.file_path is not None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.file_path, "a", encoding="utf-8")

    def __call__(self, category: str, message: str) -> None:
        self.log(category, message)

    def log(self, category: str, message: str) -> Event:
        """Record one event and fan it out to every output."""
        event = Event(self.tick, category, message)
        self._history.append(event)

        if self.console:
            print(event.format())
        if self._file is not None:
            self._file.write(event.format() + "\n")
            self._file.flush()
        for callback in list(self._subscribers):
            callback(event)
        return event

    def subscribe(self, callback: Callable[[Event], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Event], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def last(self, n: int = 10, category: Optional[str] = None) -> list[Event]:
        """Most recent n events, oldest first, optionally filtered by category."""
        events = [e for e in self._history if category is None or e.category == category]
        return events[-n:] if n > 0 else []

    def clear(self) -> None:
        self._history.clear()

    def close(self) -> None:
        """Close the output file. Later events are kept in memory only."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __len__(self) -> int:
        return len(self._history)

    def __repr__(self) -> str:
        return (
            f"EventLog(events={len(self._history)}/{self.history_size}, "
            f"console={self.console}, file={self.file_path})"
        )
