"""
Pool Service with Repository Pattern
Handles pool configuration and round robin game generation
"""

from typing import List, Optional, Sequence
from models import Pool, Game
from bracketflow.services.base import BaseService
from bracketflow.services.utils.cache_manager import CacheableService
from bracketflow.repositories.core import PoolRepository, GameRepository
from bracketflow.exceptions import InvalidConfiguration, BusinessRuleError, NotFoundError
from utils.graph_builder import generate_pool_games
from constants import (
    MAX_POOL_NAME_LENGTH, GAME_STATUS_COMPLETED, DIVISION_STANDINGS_KEY, POOL_STANDINGS_KEY, TEAM_CACHE_KEY
)
import logging

logger = logging.getLogger(__name__)


class PoolService(CacheableService, BaseService[Pool]):
    """
    Service for round robin pools
    Creating or re-teaming a pool regenerates its full set of games
    """

    def __init__(self, repository: Optional[PoolRepository] = None,
                 game_repository: Optional[GameRepository] = None, **kwargs):
        if repository is None:
            repository = PoolRepository()
        super().__init__(repository, **kwargs)
        self.game_repository = game_repository or GameRepository()

    def create_pool(self, tournament_id: str, division_id: str, name: str,
                    teams: Sequence[str], advancement_count: Optional[int] = None) -> Pool:
        """
        Create a pool and its round robin games

        Args:
            tournament_id: Tournament ID
            division_id: Division ID
            name: Pool name (max 50 characters)
            teams: Ordered team names, 2-16, unique
            advancement_count: Number of teams advancing to brackets (None = all)

        Returns:
            The created pool

        Raises:
            InvalidConfiguration: If name, teams or advancement count are invalid
        """
        name = self._validate_name(name)
        teams = self._validate_team_list(teams)
        skeletons = generate_pool_games(teams, name)
        self._validate_advancement_count(advancement_count, len(teams))
        self._validate_team_conflicts(division_id, teams)

        try:
            pool = self.repository.create(
                tournament_id=tournament_id,
                division_id=division_id,
                name=name,
                teams=teams,
                advancement_count=advancement_count
            )
            self._create_games(pool, skeletons)
            self.commit()
        except Exception:
            self.rollback()
            raise

        self._invalidate_standings(pool)
        logger.info(f"Created pool {pool.name} in division {division_id} with {len(teams)} teams and {len(skeletons)} games")
        return pool

    def update_pool_teams(self, pool_id: str, teams: Sequence[str],
                          advancement_count: Optional[int] = None) -> Pool:
        """
        Replace the team list of a pool and regenerate its games

        Args:
            pool_id: Pool ID
            teams: New ordered team names
            advancement_count: New advancement count (keeps the current one if None)

        Returns:
            The updated pool

        Raises:
            NotFoundError: If pool not found
            InvalidConfiguration: If the team list is invalid
            BusinessRuleError: If a pool game already feeds another game
        """
        pool = self.require(pool_id, "Pool")
        teams = self._validate_team_list(teams)
        skeletons = generate_pool_games(teams, pool.name)
        if advancement_count is None:
            advancement_count = pool.advancement_count
        self._validate_advancement_count(advancement_count, len(teams))
        self._validate_team_conflicts(pool.division_id, teams, exclude_pool_id=pool.id)

        old_games = self.game_repository.get_games_by_pool(pool.id)
        self._check_not_in_use(pool, old_games)
        completed = [g for g in old_games if g.status == GAME_STATUS_COMPLETED]
        if completed:
            logger.warning(f"Regenerating pool {pool.name} discards {len(completed)} completed games")

        old_teams = list(pool.teams or [])
        try:
            self.game_repository.delete_all(old_games)
            pool.teams = teams
            pool.advancement_count = advancement_count
            self._create_games(pool, skeletons)
            self.commit()
        except Exception:
            self.rollback()
            raise

        self._invalidate_standings(pool, old_teams + teams)
        logger.info(f"Updated pool {pool.name}: {len(teams)} teams, {len(skeletons)} games regenerated")
        return pool

    def get_pool(self, pool_id: str) -> Pool:
        return self.require(pool_id, "Pool")

    def get_pools_by_division(self, division_id: str) -> List[Pool]:
        return self.repository.get_pools_by_division(division_id)

    def get_games_by_pool(self, pool_id: str) -> List[Game]:
        """
        Get the games of a pool

        Raises:
            NotFoundError: If pool not found
        """
        if not self.repository.exists(pool_id):
            raise NotFoundError("Pool", pool_id)
        return self.game_repository.get_games_by_pool(pool_id)

    def delete_pool(self, pool_id: str) -> bool:
        """
        Delete a pool together with its games

        Raises:
            NotFoundError: If pool not found
            BusinessRuleError: If a pool game already feeds another game
        """
        pool = self.require(pool_id, "Pool")
        games = self.game_repository.get_games_by_pool(pool.id)
        self._check_not_in_use(pool, games)
        teams = list(pool.teams or [])

        try:
            self.game_repository.delete_all(games)
            self.repository.delete(pool.id)
            self.commit()
        except Exception:
            self.rollback()
            raise

        self._invalidate_standings(pool, teams)
        logger.info(f"Deleted pool {pool.name} ({len(games)} games)")
        return True

    def _create_games(self, pool: Pool, skeletons) -> List[Game]:
        return self.game_repository.bulk_create([
            {
                'tournament_id': pool.tournament_id,
                'division_id': pool.division_id,
                'pool_id': pool.id,
                'team_a': skeleton.team_a,
                'team_b': skeleton.team_b,
                'status': skeleton.status,
                'pool_game_number': skeleton.pool_game_number,
                'game_label': skeleton.game_label,
            }
            for skeleton in skeletons
        ])

    def _validate_name(self, name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidConfiguration("Pool name is required", "name")
        if len(name) > MAX_POOL_NAME_LENGTH:
            raise InvalidConfiguration(f"Pool name cannot exceed {MAX_POOL_NAME_LENGTH} characters", "name")
        return name

    def _validate_team_list(self, teams) -> List[str]:
        if not isinstance(teams, (list, tuple)) or not all(isinstance(t, str) for t in teams):
            raise InvalidConfiguration("Teams must be a list of team names", "teams")
        return [team.strip() for team in teams]

    def _validate_advancement_count(self, advancement_count: Optional[int], team_count: int) -> None:
        if advancement_count is None:
            return
        if not isinstance(advancement_count, int) or isinstance(advancement_count, bool):
            raise InvalidConfiguration("Advancement count must be an integer", "advancement_count")
        if advancement_count < 1 or advancement_count > team_count:
            raise InvalidConfiguration(
                f"Advancement count must be between 1 and {team_count}", "advancement_count")

    def _validate_team_conflicts(self, division_id: str, teams: Sequence[str],
                                 exclude_pool_id: Optional[str] = None) -> None:
        """A team may play in only one pool per division"""
        for other in self.repository.get_pools_by_division(division_id):
            if other.id == exclude_pool_id:
                continue
            overlap = sorted(set(teams) & set(other.teams or []))
            if overlap:
                raise InvalidConfiguration(
                    f"Teams already assigned to pool {other.name}: {', '.join(overlap)}", "teams")

    @staticmethod
    def _check_not_in_use(pool: Pool, games: Sequence[Game]) -> None:
        # deleting the games would silently drop their advancement links
        if any(game.outgoing_links for game in games):
            raise BusinessRuleError(
                f"Pool {pool.name} has games advancing into other games; remove those links first",
                "pool_in_use")

    def _invalidate_standings(self, pool: Pool, teams: Sequence[str] = ()) -> None:
        self.cache_manager.invalidate(DIVISION_STANDINGS_KEY.format(division_id=pool.division_id))
        self.cache_manager.invalidate(POOL_STANDINGS_KEY.format(pool_id=pool.id))
        for team_name in set(teams):
            self.cache_manager.invalidate(TEAM_CACHE_KEY.format(division_id=pool.division_id, team_name=team_name))
