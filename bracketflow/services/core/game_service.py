"""
Game Service with Repository Pattern
Handles score and status updates and publishes them to the change stream
"""

from typing import Optional
from models import Game
from bracketflow.services.base import BaseService
from bracketflow.services.utils.change_stream import ChangeStream, GameChange
from bracketflow.repositories.core import GameRepository
from bracketflow.exceptions import ValidationError, BusinessRuleError
from constants import GAME_STATUSES, GAME_STATUS_TRANSITIONS
import logging

logger = logging.getLogger(__name__)


class GameService(BaseService[Game]):
    """
    Service for game updates
    Every committed change is published as a GameChange
    """

    def __init__(self, repository: Optional[GameRepository] = None,
                 change_stream: Optional[ChangeStream] = None):
        if repository is None:
            repository = GameRepository()
        super().__init__(repository)
        self.change_stream = change_stream or ChangeStream()

    def get_game(self, game_id: str) -> Game:
        return self.require(game_id, "Game")

    def update_game(self, game_id: str, score_a: Optional[int] = None,
                    score_b: Optional[int] = None, status: Optional[str] = None) -> Game:
        """
        Update the score and/or status of a game

        Args:
            game_id: The game ID to update
            score_a: New score of team A (unchanged if None)
            score_b: New score of team B (unchanged if None)
            status: New status (unchanged if None)

        Returns:
            Updated game object

        Raises:
            NotFoundError: If game not found
            ValidationError: If scores or status are invalid
            BusinessRuleError: If the status transition is not allowed
        """
        game = self.require(game_id, "Game")

        for field_name, value in (('score_a', score_a), ('score_b', score_b)):
            if value is None:
                continue
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValidationError("Score must be an integer", field_name)
            if value < 0:
                raise ValidationError("Score cannot be negative", field_name)

        if status is not None:
            if status not in GAME_STATUSES:
                raise ValidationError(f"Invalid status: {status}", "status")
            if status not in GAME_STATUS_TRANSITIONS[game.status]:
                raise BusinessRuleError(f"Cannot change game status from {game.status} to {status}",
                                        "status_transition")

        previous_status = game.status
        previous_scores = (game.score_a, game.score_b)

        try:
            if score_a is not None:
                game.score_a = score_a
            if score_b is not None:
                game.score_b = score_b
            if status is not None:
                game.status = status
            self.commit()
        except Exception:
            self.rollback()
            raise

        logger.info(f"Updated game {game_id}: {game.score_a}-{game.score_b} ({game.status})")

        change = GameChange(
            game_id=game.id,
            division_id=game.division_id,
            previous_status=previous_status,
            status=game.status,
            previous_scores=previous_scores,
            scores=(game.score_a, game.score_b),
            pool_id=game.pool_id,
            teams=(game.team_a, game.team_b)
        )
        self.change_stream.publish(change)
        return game
