"""
Processed-game ledger for the completion orchestrator

Remembers which games were already advanced and with which outcome, so a
replayed or duplicated change event does not advance a game twice.
"""

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class IdempotencyLedger:
    """
    Bounded map of game id -> outcome fingerprint with TTL eviction

    Args:
        ttl: Seconds an entry stays valid
        max_entries: Oldest entries are dropped beyond this size
        clock: Monotonic time source
    """

    def __init__(self, ttl: float, max_entries: int, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, Tuple[Optional[str], float]]" = OrderedDict()
        self._lock = threading.Lock()

    def mark(self, game_id: str, fingerprint: Optional[str] = None) -> None:
        with self._lock:
            self._entries.pop(game_id, None)
            self._entries[game_id] = (fingerprint, self.clock())
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Ledger full, evicted game {evicted}")

    def is_processed(self, game_id: str, fingerprint: Optional[str] = None) -> bool:
        """
        Check whether a game was processed

        Args:
            game_id: Game ID
            fingerprint: When given, the stored fingerprint must match too

        Returns:
            True if a live entry exists (with the same fingerprint)
        """
        with self._lock:
            self._evict_expired()
            entry = self._entries.get(game_id)
            if entry is None:
                return False
            return fingerprint is None or entry[0] == fingerprint

    def discard(self, game_id: str) -> None:
        with self._lock:
            self._entries.pop(game_id, None)

    def evict(self) -> int:
        """Drop expired entries; returns how many were removed"""
        with self._lock:
            return self._evict_expired()

    def _evict_expired(self) -> int:
        cutoff = self.clock() - self.ttl
        expired = [game_id for game_id, (_, marked_at) in self._entries.items() if marked_at <= cutoff]
        for game_id in expired:
            del self._entries[game_id]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired ledger entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
