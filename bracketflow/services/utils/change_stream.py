"""
In-process change stream for game updates
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple
from constants import GAME_STATUS_COMPLETED, GAME_STATUS_CANCELLED
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameChange:
    """One committed change to a game, as seen by subscribers"""
    game_id: str
    division_id: str
    previous_status: Optional[str]
    status: str
    previous_scores: Tuple[int, int] = (0, 0)
    scores: Tuple[int, int] = (0, 0)
    pool_id: Optional[str] = None
    teams: Tuple[Optional[str], Optional[str]] = field(default=(None, None))

    @property
    def became_completed(self) -> bool:
        return self.status == GAME_STATUS_COMPLETED and self.previous_status != GAME_STATUS_COMPLETED

    @property
    def became_cancelled(self) -> bool:
        return self.status == GAME_STATUS_CANCELLED and self.previous_status != GAME_STATUS_CANCELLED

    @property
    def scores_changed(self) -> bool:
        return tuple(self.scores) != tuple(self.previous_scores)


class ChangeStream:
    """
    Synchronous publish/subscribe channel

    Subscriber errors are logged and never reach the publisher.
    """

    def __init__(self):
        self._subscribers: List[Callable[[GameChange], object]] = []

    def subscribe(self, callback: Callable[[GameChange], object]) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[GameChange], object]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, change: GameChange) -> List[object]:
        results = []
        for callback in list(self._subscribers):
            try:
                results.append(callback(change))
            except Exception as e:
                logger.error(f"Subscriber failed for game {change.game_id}: {str(e)}")
        return results
