"""
Standings Service
UI-facing standings reads, cached per pool, division and team
"""

from typing import Any, Dict, List, Optional, Set
from models import Standing
from bracketflow.services.base import BaseService
from bracketflow.services.utils.cache_manager import CacheableService, cached
from bracketflow.repositories.core import GameRepository, PoolRepository
from bracketflow.exceptions import NotFoundError
from utils.standings import compute_standings, rank_qualifiers
from constants import DIVISION_STANDINGS_KEY, GAME_STATUS_COMPLETED
import logging

logger = logging.getLogger(__name__)


class StandingsService(CacheableService, BaseService[Standing]):
    """
    Service for standings
    Results are cached under "standings:pool:<id>", "standings:division:<id>[:...]"
    and "team:<division>:<name>"; the completion orchestrator invalidates them
    """

    def __init__(self, repository: Optional[GameRepository] = None,
                 pool_repository: Optional[PoolRepository] = None, **kwargs):
        if repository is None:
            repository = GameRepository()
        super().__init__(repository, **kwargs)
        self.pool_repository = pool_repository or PoolRepository()

    @cached(key_prefix="standings:pool")
    def get_pool_standings(self, pool_id: str) -> List[Standing]:
        """
        Get ranked standings of one pool

        Args:
            pool_id: Pool ID

        Returns:
            Standings ordered by rank

        Raises:
            NotFoundError: If pool not found
        """
        pool = self.pool_repository.get_by_id(pool_id)
        if pool is None:
            raise NotFoundError("Pool", pool_id)
        games = self.repository.get_games_by_pool(pool_id)
        return compute_standings(games, pool.teams, pool_id=pool.id, division_id=pool.division_id)

    @cached(key_prefix="standings:division")
    def get_division_standings(self, division_id: str) -> Dict[str, List[Standing]]:
        """
        Get standings of every pool in a division

        Args:
            division_id: Division ID

        Returns:
            Mapping pool id -> standings, in pool order
        """
        return {
            pool.id: self.get_pool_standings(pool.id)
            for pool in self.pool_repository.get_pools_by_division(division_id)
        }

    def get_division_ranking(self, division_id: str) -> List[Standing]:
        """
        Get one ranked table over every completed game of a division, pool and bracket games alike

        Cached below the division key, so it is dropped whenever the division's
        standings are invalidated.

        Args:
            division_id: Division ID

        Returns:
            Standings ordered by rank; games with unresolved participants are skipped
        """
        key = f"{DIVISION_STANDINGS_KEY.format(division_id=division_id)}:ranking"

        def compute() -> List[Standing]:
            games = self.repository.get_games_by_division(division_id)
            return compute_standings(games, division_id=division_id, pool_names=self._pool_names(division_id))

        return self.cache_manager.get_or_compute(key, compute)

    @cached(key_prefix="team")
    def get_team_record(self, division_id: str, team_name: str) -> Dict[str, Any]:
        """
        Get the record of one team over all completed games of a division

        Args:
            division_id: Division ID
            team_name: Exact team name

        Returns:
            Standing fields plus the list of completed games
        """
        games = self.repository.get_games_by_team(division_id, team_name)
        standings = compute_standings(games, division_id=division_id, pool_names=self._pool_names(division_id))
        standing = next((s for s in standings if s.team_name == team_name),
                        Standing(team_name=team_name, division_id=division_id))
        record = standing.to_dict()
        # rank among opponents only; meaningless for a single team
        record.pop('rank')
        record['games'] = [g.to_dict() for g in games if g.status == GAME_STATUS_COMPLETED]
        return record

    def get_advancing_teams(self, division_id: str) -> List[Standing]:
        """
        Get the teams that currently qualify from the division's pools, in seeding order
        """
        key = f"{DIVISION_STANDINGS_KEY.format(division_id=division_id)}:advancing"

        def compute() -> List[Standing]:
            pools = self.pool_repository.get_pools_by_division(division_id)
            standings_by_pool = {pool.id: self.get_pool_standings(pool.id) for pool in pools}
            counts = {pool.id: pool.advancement_count for pool in pools}
            return rank_qualifiers(standings_by_pool, counts)

        return self.cache_manager.get_or_compute(key, compute)

    def _pool_names(self, division_id: str) -> Set[str]:
        return {pool.name for pool in self.pool_repository.get_pools_by_division(division_id)}
