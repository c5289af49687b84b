"""
Game Repository for the tournament engine
Handles game-specific data access patterns
"""

from typing import List
from sqlalchemy import and_, or_
from models import Game
from constants import OPEN_GAME_STATUSES
from bracketflow.repositories.base import BaseRepository, store_operation
import logging

logger = logging.getLogger(__name__)


class GameRepository(BaseRepository[Game]):
    """
    Repository for game-specific queries and data access
    """

    def __init__(self):
        super().__init__(Game)

    def get_games_by_division(self, division_id: str) -> List[Game]:
        return self.find_all(division_id=division_id)

    def get_games_by_pool(self, pool_id: str) -> List[Game]:
        """
        Get all round robin games of a pool in game number order

        Args:
            pool_id: Pool ID

        Returns:
            List of pool games
        """
        return self.find_by({'pool_id': pool_id}, order_by='pool_game_number')

    def get_games_by_bracket(self, bracket_id: str) -> List[Game]:
        """
        Get all games of a bracket in bracket game number order

        Args:
            bracket_id: Bracket ID

        Returns:
            List of bracket games
        """
        return self.find_by({'bracket_id': bracket_id}, order_by='bracket_game_number')

    def get_pool_games_by_division(self, division_id: str) -> List[Game]:
        query = self.get_query().filter(
            and_(
                Game.division_id == division_id,
                Game.pool_id.isnot(None)
            )
        )
        with store_operation("query pool games"):
            return query.all()

    def count_open_pool_games(self, division_id: str) -> int:
        """
        Count pool games of a division that are still scheduled or in progress

        Args:
            division_id: Division ID

        Returns:
            Number of open pool games
        """
        query = self.get_query().filter(
            and_(
                Game.division_id == division_id,
                Game.pool_id.isnot(None),
                Game.status.in_(OPEN_GAME_STATUSES)
            )
        )
        with store_operation("count open pool games"):
            return query.count()

    def get_games_by_team(self, division_id: str, team_name: str) -> List[Game]:
        """
        Get all games of a division involving a team

        Args:
            division_id: Division ID
            team_name: Exact team name

        Returns:
            List of games involving the team
        """
        query = self.get_query().filter(
            and_(
                Game.division_id == division_id,
                or_(
                    Game.team_a == team_name,
                    Game.team_b == team_name
                )
            )
        )
        with store_operation("query team games"):
            return query.all()
