"""
Seeding Service
Detects pool completion and seeds brackets from final pool standings
"""

from typing import Any, Dict, List, Optional, Sequence
from models import Bracket, Pool, Standing
from bracketflow.services.base import BaseService
from bracketflow.repositories.core import BracketRepository, GameRepository, PoolRepository
from bracketflow.exceptions import ServiceError, InvalidConfiguration, BusinessRuleError, StoreUnavailable
from utils.graph_builder import first_round_seed_pairs
from utils.standings import compute_standings, rank_qualifiers
from utils.team_resolution import is_placeholder, pool_rank_placeholder, seed_placeholder
from constants import (
    POOL_SEEDED_SOURCES, SEEDING_SOURCE_POOLS, GAME_STATUS_IN_PROGRESS, GAME_STATUS_COMPLETED
)
import logging

logger = logging.getLogger(__name__)

# Round 1 games in these states keep their participants
LOCKED_GAME_STATUSES = [GAME_STATUS_IN_PROGRESS, GAME_STATUS_COMPLETED]


class SeedingService(BaseService[Bracket]):
    """
    Service for pool completion and bracket seeding

    Standings used for seeding are always computed from fresh store reads,
    never from the UI cache.
    """

    def __init__(self, repository: Optional[BracketRepository] = None,
                 pool_repository: Optional[PoolRepository] = None,
                 game_repository: Optional[GameRepository] = None):
        if repository is None:
            repository = BracketRepository()
        super().__init__(repository)
        self.pool_repository = pool_repository or PoolRepository()
        self.game_repository = game_repository or GameRepository()

    def check_pools_complete(self, division_id: str) -> bool:
        """
        Check whether every pool game of a division is finished

        Args:
            division_id: Division ID

        Returns:
            True if no pool game is scheduled or in progress (also without pools)
        """
        return self.game_repository.count_open_pool_games(division_id) == 0

    def get_tournament_format(self, division_id: str) -> Dict[str, Any]:
        pool_count = len(self.pool_repository.get_pools_by_division(division_id))
        bracket_count = len(self.repository.get_brackets_by_division(division_id))
        return {
            'division_id': division_id,
            'pool_count': pool_count,
            'bracket_count': bracket_count,
            'has_pools': pool_count > 0,
            'has_brackets': bracket_count > 0,
            'is_hybrid': pool_count > 0 and bracket_count > 0,
        }

    def validate_structure(self, division_id: str) -> Dict[str, Any]:
        """
        Check the pool/bracket configuration of a division

        Errors make the structure invalid; warnings point at configurations
        that work but will probably surprise (empty seeds, unassigned games).

        Args:
            division_id: Division ID

        Returns:
            Dictionary with is_valid, errors and warnings
        """
        errors: List[str] = []
        warnings: List[str] = []
        pools = self.pool_repository.get_pools_by_division(division_id)
        brackets = self.repository.get_brackets_by_division(division_id)

        seen_in: Dict[str, str] = {}
        for pool in pools:
            teams = pool.teams or []
            if len(set(teams)) != len(teams):
                errors.append(f'Pool "{pool.name}": duplicate team names')
            if pool.advancement_count is not None and pool.advancement_count > len(teams):
                errors.append(f'Pool "{pool.name}": advancement count {pool.advancement_count} '
                              f'exceeds its {len(teams)} teams')
            for team_name in set(teams):
                if team_name in seen_in:
                    errors.append(f'Team "{team_name}" plays in pools "{seen_in[team_name]}" and "{pool.name}"')
                else:
                    seen_in[team_name] = pool.name

        if pools and brackets:
            self._validate_hybrid(pools, brackets, errors, warnings)

        pool_ids = {pool.id for pool in pools}
        bracket_ids = {bracket.id for bracket in brackets}
        orphaned = 0
        for game in self.game_repository.get_games_by_division(division_id):
            if game.pool_id and game.pool_id not in pool_ids:
                errors.append(f"Game {game.id} references a pool outside the division: {game.pool_id}")
            if game.bracket_id and game.bracket_id not in bracket_ids:
                errors.append(f"Game {game.id} references a bracket outside the division: {game.bracket_id}")
            if game.pool_id and game.bracket_id:
                errors.append(f"Game {game.id} belongs to both a pool and a bracket")
            if not game.pool_id and not game.bracket_id:
                orphaned += 1
        if orphaned and (pools or brackets):
            warnings.append(f"{orphaned} games are not assigned to any pool or bracket")

        if errors:
            logger.warning(f"Division {division_id} structure has {len(errors)} errors")
        return {
            'division_id': division_id,
            'is_valid': not errors,
            'errors': errors,
            'warnings': warnings,
        }

    @staticmethod
    def _validate_hybrid(pools: List[Pool], brackets: List[Bracket],
                         errors: List[str], warnings: List[str]) -> None:
        pool_seeded = [b for b in brackets if b.seeding_source in POOL_SEEDED_SOURCES]
        if not pool_seeded:
            warnings.append("No brackets are seeded from pools")
            return

        # a pool without an advancement count sends all of its teams
        advancing = sum(p.advancement_count if p.advancement_count is not None else len(p.teams or [])
                        for p in pools)
        capacity = sum(b.size - sum(1 for s in (b.seeds or []) if s.get('manual')) for b in pool_seeded)
        if advancing > capacity:
            errors.append(f"More teams advance from pools ({advancing}) than pool-seeded bracket "
                          f"positions ({capacity})")
        elif advancing < capacity:
            warnings.append(f"Fewer teams advance from pools ({advancing}) than pool-seeded bracket "
                            f"positions ({capacity}); {capacity - advancing} seeds will stay empty")

        without_count = [p.name for p in pools if p.advancement_count is None]
        if without_count:
            warnings.append(f"Pools without advancement count: {', '.join(without_count)}")

    def auto_seed_brackets(self, division_id: str) -> List[str]:
        """
        Seed every pool-fed bracket of a division from final pool standings

        Args:
            division_id: Division ID

        Returns:
            IDs of brackets whose seeds or first round changed

        Raises:
            BusinessRuleError: If pool play is not finished yet
        """
        if not self.pool_repository.get_pools_by_division(division_id):
            logger.info(f"Division {division_id} has no pools; nothing to seed")
            return []
        brackets = self.repository.get_pool_seeded_brackets(division_id)
        if not brackets:
            logger.info(f"Division {division_id} has no pool-seeded brackets; nothing to seed")
            return []
        if not self.check_pools_complete(division_id):
            raise BusinessRuleError(f"Pool play in division {division_id} is not complete", "pools_incomplete")

        seeded = []
        for bracket in brackets:
            try:
                if self.seed_bracket_from_pools(bracket.id):
                    seeded.append(bracket.id)
            except StoreUnavailable:
                self.rollback()
                raise
            except ServiceError as e:
                self.rollback()
                logger.error(f"Seeding bracket {bracket.id} failed: {e.message}")

        logger.info(f"Auto-seeded {len(seeded)} of {len(brackets)} brackets in division {division_id}")
        return seeded

    def seed_bracket_from_pools(self, bracket_id: str) -> bool:
        """
        Resolve a bracket's seeds from pool standings and patch its first round

        Explicit pool+rank seeds are resolved first; the remaining qualifiers
        fill the open non-manual positions in cross-pool rank order. Manual
        seeds are never overwritten.

        Args:
            bracket_id: Bracket ID

        Returns:
            True if anything was written

        Raises:
            NotFoundError: If bracket not found
            InvalidConfiguration: If the bracket is manual or more teams qualify than open positions
        """
        bracket = self.require(bracket_id, "Bracket")
        if bracket.seeding_source not in POOL_SEEDED_SOURCES:
            raise InvalidConfiguration(f"Bracket {bracket.name} is seeded manually", "seeding_source")

        pools = self._source_pools(bracket)
        pools_by_id = {pool.id: pool for pool in pools}
        standings_by_pool = {pool.id: self._final_standings(pool) for pool in pools}
        seeds = self._seed_entries(bracket)

        manual_teams = {s['team_name'] for s in seeds if s['manual'] and s['team_name']}
        used = set(manual_teams)

        for seed in seeds:
            if seed['manual'] or not seed['source_pool_id']:
                continue
            team = self._team_at_rank(standings_by_pool.get(seed['source_pool_id'], []), seed['source_pool_rank'])
            seed['team_name'] = team
            if team:
                used.add(team)

        open_seeds = [s for s in seeds if not s['manual'] and not s['source_pool_id']]
        qualifiers = [q for q in rank_qualifiers(standings_by_pool,
                                                 {pool.id: pool.advancement_count for pool in pools})
                      if q.team_name not in used]
        if len(qualifiers) > len(open_seeds):
            raise InvalidConfiguration(
                f"{len(qualifiers)} teams qualify for bracket {bracket.name} but only "
                f"{len(open_seeds)} seed positions are open", "seeds")
        if len(qualifiers) < len(open_seeds):
            logger.warning(f"Bracket {bracket.name}: {len(open_seeds) - len(qualifiers)} seed positions "
                           f"stay unresolved ({len(qualifiers)} qualifiers)")

        for index, seed in enumerate(open_seeds):
            seed['team_name'] = qualifiers[index].team_name if index < len(qualifiers) else None

        return self._apply_seeds(bracket, seeds, pools_by_id)

    def set_manual_seeds(self, bracket_id: str, seeds: Sequence[Optional[str]]) -> Bracket:
        """
        Set the manual seeds of a manual or mixed bracket

        Args:
            bracket_id: Bracket ID
            seeds: One entry per position; a team name sets a manual seed,
                None clears the manual seed at that position

        Returns:
            The updated bracket

        Raises:
            NotFoundError: If bracket not found
            InvalidConfiguration: For pool-seeded brackets, wrong length or duplicate teams
        """
        bracket = self.require(bracket_id, "Bracket")
        if bracket.seeding_source == SEEDING_SOURCE_POOLS:
            raise InvalidConfiguration(f"Bracket {bracket.name} is seeded from pools", "seeding_source")
        seeds_in = list(seeds or [])
        if len(seeds_in) != bracket.size:
            raise InvalidConfiguration(f"Expected {bracket.size} seeds, got {len(seeds_in)}", "seeds")

        pools_by_id = {pool.id: pool for pool in self.pool_repository.get_pools_by_division(bracket.division_id)}
        pool_names = {pool.name for pool in pools_by_id.values()}
        names = [s.strip() for s in seeds_in if isinstance(s, str) and not is_placeholder(s, pool_names)]
        if len(set(names)) != len(names):
            raise InvalidConfiguration("A team can only be seeded once", "seeds")

        entries = self._seed_entries(bracket)
        for entry, value in zip(entries, seeds_in):
            if isinstance(value, str) and not is_placeholder(value, pool_names):
                entry.update(team_name=value.strip(), manual=True, source_pool_id=None, source_pool_rank=None)
            elif entry['manual']:
                entry.update(team_name=None, manual=False)

        self._apply_seeds(bracket, entries, pools_by_id)
        return bracket

    def _apply_seeds(self, bracket: Bracket, seeds: List[Dict[str, Any]],
                     pools_by_id: Dict[str, Pool]) -> bool:
        changed = seeds != [dict(s) for s in (bracket.seeds or [])]
        try:
            if changed:
                # JSON columns track reassignment, not in-place mutation
                bracket.seeds = seeds
            patched = self._patch_first_round(bracket, seeds, pools_by_id)
            if changed or patched:
                self.commit()
        except Exception:
            self.rollback()
            raise

        if changed or patched:
            logger.info(f"Seeded bracket {bracket.name}: {patched} first round games updated")
        else:
            logger.debug(f"Bracket {bracket.name} seeds unchanged")
        return changed or patched > 0

    def _patch_first_round(self, bracket: Bracket, seeds: List[Dict[str, Any]],
                           pools_by_id: Dict[str, Pool]) -> int:
        pairs = first_round_seed_pairs(bracket.size)
        by_position = {seed['position']: seed for seed in seeds}
        patched = 0
        for game in self.game_repository.get_games_by_bracket(bracket.id):
            if game.bracket_round_number != 1 or not game.bracket_position:
                continue
            if game.status in LOCKED_GAME_STATUSES:
                logger.debug(f"Game {game.id} already started; first round slots kept")
                continue
            seed_a, seed_b = pairs[game.bracket_position - 1]
            team_a = self._seed_display(by_position.get(seed_a), seed_a, pools_by_id)
            team_b = self._seed_display(by_position.get(seed_b), seed_b, pools_by_id)
            if game.team_a != team_a or game.team_b != team_b:
                game.team_a = team_a
                game.team_b = team_b
                patched += 1
        return patched

    def _source_pools(self, bracket: Bracket) -> List[Pool]:
        if bracket.source_pool_ids:
            return self.pool_repository.get_pools_by_ids(bracket.source_pool_ids)
        return self.pool_repository.get_pools_by_division(bracket.division_id)

    def _final_standings(self, pool: Pool) -> List[Standing]:
        games = self.game_repository.get_games_by_pool(pool.id)
        return compute_standings(games, pool.teams, pool_id=pool.id, division_id=pool.division_id)

    @staticmethod
    def _team_at_rank(standings: List[Standing], rank: Optional[int]) -> Optional[str]:
        for standing in standings:
            if standing.rank == rank:
                return standing.team_name
        return None

    @staticmethod
    def _seed_entries(bracket: Bracket) -> List[Dict[str, Any]]:
        existing = {s['position']: dict(s) for s in (bracket.seeds or [])}
        entries = []
        for position in range(1, bracket.size + 1):
            entry = {'position': position, 'team_name': None, 'source_pool_id': None,
                     'source_pool_rank': None, 'manual': False}
            entry.update(existing.get(position, {}))
            entries.append(entry)
        return entries

    @staticmethod
    def _seed_display(seed: Optional[Dict[str, Any]], position: int, pools_by_id: Dict[str, Pool]) -> str:
        if seed and seed.get('team_name'):
            return seed['team_name']
        if seed and seed.get('source_pool_id') in pools_by_id:
            return pool_rank_placeholder(seed['source_pool_rank'], pools_by_id[seed['source_pool_id']].name)
        return seed_placeholder(position)
