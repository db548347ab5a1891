from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any, Optional

DEFAULT_CAPACITY = 100
DEFAULT_READ_LIMIT = 5


@dataclass(frozen=True)
class LogEntry:
    message: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class LogSink:
    """Bounded narrative of cycle outcomes for the dashboard.

    Oldest entries are evicted first once ``capacity`` is reached. This is a
    view for humans, not a record of trades.
    """

    def __init__(self, *, capacity: int = DEFAULT_CAPACITY, read_limit: int = DEFAULT_READ_LIMIT) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        if read_limit <= 0:
            raise ValueError("read_limit must be > 0")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._read_limit = read_limit

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, message: str, *, timestamp: Optional[datetime] = None) -> LogEntry:
        ts = timestamp or datetime.now(UTC)
        entry = LogEntry(message=message, timestamp=ts.isoformat())
        self._entries.append(entry)
        return entry

    def recent(self, limit: Optional[int] = None) -> list[LogEntry]:
        n = self._read_limit if limit is None else min(limit, self._read_limit)
        if n <= 0:
            return []
        return list(reversed(self._entries))[:n]

    def entries(self) -> list[LogEntry]:
        """All buffered entries, oldest first."""
        return list(self._entries)
