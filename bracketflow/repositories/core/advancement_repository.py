"""
Advancement Repository for the tournament engine
Data access for the advancement edge table
"""

from typing import List, Optional
from models import AdvancementLink, Game
from bracketflow.repositories.base import BaseRepository, store_operation


class AdvancementRepository(BaseRepository[AdvancementLink]):
    """
    Repository for advancement links (winner/loser edges between games)
    """

    def __init__(self):
        super().__init__(AdvancementLink)

    def get_links_by_division(self, division_id: str) -> List[AdvancementLink]:
        """
        Get every advancement link whose source game belongs to a division

        Args:
            division_id: Division ID

        Returns:
            Links in insertion order
        """
        query = self.get_query().join(
            Game, AdvancementLink.source_game_id == Game.id
        ).filter(Game.division_id == division_id).order_by(AdvancementLink.id)
        with store_operation("query division links"):
            return query.all()

    def get_outgoing(self, source_game_id: str, outcome: Optional[str] = None) -> List[AdvancementLink]:
        criteria = {'source_game_id': source_game_id}
        if outcome:
            criteria['outcome'] = outcome
        return self.find_by(criteria, order_by='id')

    def get_incoming(self, target_game_id: str) -> List[AdvancementLink]:
        return self.find_by({'target_game_id': target_game_id}, order_by='id')

    def find_link(self, source_game_id: str, target_game_id: str, outcome: str) -> Optional[AdvancementLink]:
        return self.find_one(source_game_id=source_game_id, target_game_id=target_game_id, outcome=outcome)
