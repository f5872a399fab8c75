"""Bounded in-memory cache of meetings, in front of the durable store."""
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from .models import Meeting

logger = logging.getLogger(__name__)


class MeetingCache:
    """
    Thread-safe LRU cache with an idle TTL.

    Entries are ordered by last access. Anything evicted (by size or TTL) is
    simply rehydrated from the store on the next lookup.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 6 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict = OrderedDict()  # {meeting_id: (meeting, touched_at)}
        self._lock = threading.Lock()

    def get(self, meeting_id: str) -> Optional[Meeting]:
        now = self._clock()
        with self._lock:
            self._expire(now)
            entry = self._entries.get(meeting_id)
            if entry is None:
                return None
            self._entries[meeting_id] = (entry[0], now)
            self._entries.move_to_end(meeting_id)
            return entry[0]

    def set(self, meeting: Meeting):
        now = self._clock()
        with self._lock:
            self._entries[meeting.meeting_id] = (meeting, now)
            self._entries.move_to_end(meeting.meeting_id)
            self._expire(now)
            while len(self._entries) > self.max_size:
                oldest_id, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted meeting {oldest_id} from cache (size limit)")

    def evict(self, meeting_id: str):
        with self._lock:
            self._entries.pop(meeting_id, None)

    def _expire(self, now: float):
        # Oldest entries first, stop at the first one still fresh
        while self._entries:
            oldest_id, (_, touched_at) = next(iter(self._entries.items()))
            if now - touched_at > self.ttl_seconds:
                del self._entries[oldest_id]
                logger.debug(f"Evicted meeting {oldest_id} from cache (idle)")
            else:
                break

    def __contains__(self, meeting_id: str) -> bool:
        return self.get(meeting_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
