"""
Bracket Repository for the tournament engine
"""

from typing import List
from models import Bracket
from constants import POOL_SEEDED_SOURCES
from bracketflow.repositories.base import BaseRepository, store_operation


class BracketRepository(BaseRepository[Bracket]):
    """
    Repository for bracket queries
    """

    def __init__(self):
        super().__init__(Bracket)

    def get_brackets_by_division(self, division_id: str) -> List[Bracket]:
        return self.find_by({'division_id': division_id}, order_by=['created_at', 'name'])

    def get_pool_seeded_brackets(self, division_id: str) -> List[Bracket]:
        """
        Get the brackets of a division whose seeds come (at least partly) from pools

        Args:
            division_id: Division ID

        Returns:
            List of brackets with seeding source pools or mixed
        """
        query = self.get_query().filter(
            Bracket.division_id == division_id,
            Bracket.seeding_source.in_(POOL_SEEDED_SOURCES)
        ).order_by(Bracket.created_at, Bracket.name)
        with store_operation("query pool seeded brackets"):
            return query.all()
