"""
Bracket Service with Repository Pattern
Handles single-elimination bracket configuration and persistence
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence
from models import Bracket, Game, AdvancementLink
from bracketflow.services.base import BaseService
from bracketflow.repositories.core import BracketRepository, GameRepository, PoolRepository
from bracketflow.exceptions import InvalidConfiguration, BusinessRuleError
from utils.graph_builder import generate_bracket_games, validate_bracket_size
from utils.team_resolution import is_placeholder, pool_rank_placeholder, winner_and_loser
from constants import (
    SEEDING_SOURCES, SEEDING_SOURCE_MANUAL, SEEDING_SOURCE_POOLS, GAME_STATUS_COMPLETED,
    OUTCOME_WINNER, OUTCOME_LOSER, FINALS
)
import logging

logger = logging.getLogger(__name__)


class BracketService(BaseService[Bracket]):
    """
    Service for brackets
    A bracket is persisted together with its games and advancement links
    """

    def __init__(self, repository: Optional[BracketRepository] = None,
                 game_repository: Optional[GameRepository] = None,
                 pool_repository: Optional[PoolRepository] = None):
        if repository is None:
            repository = BracketRepository()
        super().__init__(repository)
        self.game_repository = game_repository or GameRepository()
        self.pool_repository = pool_repository or PoolRepository()

    def create_bracket(self, tournament_id: str, division_id: str, name: str, size: int,
                       seeding_source: str = SEEDING_SOURCE_MANUAL,
                       seeds: Optional[Sequence[Any]] = None,
                       source_pool_ids: Optional[Sequence[str]] = None,
                       include_third_place: bool = False) -> Bracket:
        """
        Create a bracket with its game tree

        Args:
            tournament_id: Tournament ID
            division_id: Division ID
            name: Bracket name
            size: 4, 8, 16 or 32
            seeding_source: manual, pools or mixed
            seeds: Optional list of length size; each entry is a team name (manual seed),
                a dict {"pool_id", "rank"} (pool reference) or None (open)
            source_pool_ids: Pools feeding this bracket (all division pools if None)
            include_third_place: Add a 3rd place game fed by the semifinal losers

        Returns:
            The created bracket

        Raises:
            InvalidConfiguration: If size, seeding source, seeds or pools are invalid
        """
        name = (name or "").strip()
        if not name:
            raise InvalidConfiguration("Bracket name is required", "name")
        validate_bracket_size(size)
        if seeding_source not in SEEDING_SOURCES:
            raise InvalidConfiguration(
                f"Seeding source must be one of {', '.join(SEEDING_SOURCES)}", "seeding_source")

        if source_pool_ids is not None:
            source_pool_ids = list(source_pool_ids)
            self._validate_source_pools(division_id, source_pool_ids)

        seed_entries = self._build_seed_entries(division_id, size, seeding_source, seeds)
        skeletons = generate_bracket_games(
            size,
            seeds=[self._seed_display(entry) for entry in seed_entries],
            include_third_place=include_third_place,
            bracket_name=name
        )

        try:
            bracket = self.repository.create(
                tournament_id=tournament_id,
                division_id=division_id,
                name=name,
                size=size,
                seeding_source=seeding_source,
                seeds=seed_entries,
                source_pool_ids=source_pool_ids,
                include_third_place=bool(include_third_place)
            )
            games = self._persist_games(bracket, skeletons)
            self.commit()
        except Exception:
            self.rollback()
            raise

        logger.info(f"Created bracket {bracket.name} ({size} teams, {seeding_source}) with {len(games)} games")
        return bracket

    def get_bracket(self, bracket_id: str) -> Bracket:
        return self.require(bracket_id, "Bracket")

    def get_brackets_by_division(self, division_id: str) -> List[Bracket]:
        return self.repository.get_brackets_by_division(division_id)

    def get_bracket_games(self, bracket_id: str) -> List[Game]:
        self.require(bracket_id, "Bracket")
        return self.game_repository.get_games_by_bracket(bracket_id)

    def get_bracket_state(self, bracket_id: str) -> Dict[str, Any]:
        """
        Get a bracket with its games grouped by round

        Returns:
            Dictionary with the bracket, ordered rounds and the champion if decided
        """
        bracket = self.require(bracket_id, "Bracket")
        games = self.game_repository.get_games_by_bracket(bracket_id)

        rounds: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
        for game in sorted(games, key=lambda g: (g.bracket_round_number or 0,
                                                 g.bracket_position or 0,
                                                 g.bracket_game_number or 0)):
            rounds.setdefault(game.bracket_round, []).append(game.to_dict())

        champion = None
        final = next((g for g in games if g.bracket_round == FINALS), None)
        if final is not None and final.status == GAME_STATUS_COMPLETED:
            result = winner_and_loser(final.team_a, final.team_b, final.score_a, final.score_b)
            if result is not None:
                champion = result[0]

        return {
            'bracket': bracket.to_dict(),
            'rounds': [{'name': name, 'games': round_games} for name, round_games in rounds.items()],
            'champion': champion,
        }

    def delete_bracket(self, bracket_id: str) -> bool:
        """
        Delete a bracket with its games and links

        Raises:
            NotFoundError: If bracket not found
            BusinessRuleError: If any bracket game is already completed
        """
        bracket = self.require(bracket_id, "Bracket")
        games = self.game_repository.get_games_by_bracket(bracket_id)
        if any(game.status == GAME_STATUS_COMPLETED for game in games):
            raise BusinessRuleError(
                f"Bracket {bracket.name} has completed games and cannot be deleted", "bracket_started")

        try:
            self.game_repository.delete_all(games)
            self.repository.delete(bracket.id)
            self.commit()
        except Exception:
            self.rollback()
            raise

        logger.info(f"Deleted bracket {bracket.name} ({len(games)} games)")
        return True

    def _persist_games(self, bracket: Bracket, skeletons) -> Dict[str, Game]:
        games: Dict[str, Game] = {}
        for skeleton in skeletons:
            games[skeleton.key] = self.game_repository.create(
                tournament_id=bracket.tournament_id,
                division_id=bracket.division_id,
                bracket_id=bracket.id,
                team_a=skeleton.team_a,
                team_b=skeleton.team_b,
                status=skeleton.status,
                bracket_round=skeleton.bracket_round,
                bracket_round_number=skeleton.bracket_round_number,
                bracket_position=skeleton.bracket_position,
                bracket_game_number=skeleton.bracket_game_number,
                game_label=skeleton.game_label
            )

        # Feeders come first in skeleton order, so link ids follow depends_on order
        for skeleton in skeletons:
            for target_key in skeleton.winner_advances_to:
                self.db.session.add(AdvancementLink(
                    source_game=games[skeleton.key], target_game=games[target_key], outcome=OUTCOME_WINNER))
            for target_key in skeleton.loser_advances_to:
                self.db.session.add(AdvancementLink(
                    source_game=games[skeleton.key], target_game=games[target_key], outcome=OUTCOME_LOSER))
        self.flush()
        return games

    def _build_seed_entries(self, division_id: str, size: int, seeding_source: str,
                            seeds: Optional[Sequence[Any]]) -> List[Dict[str, Any]]:
        seeds = list(seeds) if seeds is not None else [None] * size
        if len(seeds) != size:
            raise InvalidConfiguration(f"Expected {size} seeds, got {len(seeds)}", "seeds")

        pool_names = {pool.name for pool in self.pool_repository.get_pools_by_division(division_id)}
        entries = []
        manual_names = []
        for position, seed in enumerate(seeds, start=1):
            entry = {'position': position, 'team_name': None, 'source_pool_id': None,
                     'source_pool_rank': None, 'manual': False}
            if isinstance(seed, dict):
                if seeding_source == SEEDING_SOURCE_MANUAL:
                    raise InvalidConfiguration("Manual brackets cannot reference pool ranks", "seeds")
                pool_id = seed.get('pool_id')
                rank = seed.get('rank')
                pool = self.pool_repository.get_by_id(pool_id) if pool_id else None
                if pool is None or pool.division_id != division_id:
                    raise InvalidConfiguration(f"Seed {position} references an unknown pool", "seeds")
                if not isinstance(rank, int) or rank < 1 or rank > len(pool.teams or []):
                    raise InvalidConfiguration(f"Seed {position} references an invalid rank", "seeds")
                entry['source_pool_id'] = pool_id
                entry['source_pool_rank'] = rank
            elif isinstance(seed, str) and not is_placeholder(seed, pool_names):
                if seeding_source == SEEDING_SOURCE_POOLS:
                    raise InvalidConfiguration("Pool-seeded brackets cannot have manual seeds", "seeds")
                entry['team_name'] = seed.strip()
                entry['manual'] = True
                manual_names.append(entry['team_name'])
            elif seed is not None and not isinstance(seed, str):
                raise InvalidConfiguration(f"Seed {position} has an invalid value", "seeds")
            entries.append(entry)

        if len(set(manual_names)) != len(manual_names):
            raise InvalidConfiguration("A team can only be seeded once", "seeds")
        return entries

    def _seed_display(self, entry: Dict[str, Any]) -> Optional[str]:
        if entry.get('team_name'):
            return entry['team_name']
        if entry.get('source_pool_id'):
            pool = self.pool_repository.get_by_id(entry['source_pool_id'])
            if pool is not None:
                return pool_rank_placeholder(entry['source_pool_rank'], pool.name)
        return None

    def _validate_source_pools(self, division_id: str, source_pool_ids: List[str]) -> None:
        for pool_id in source_pool_ids:
            pool = self.pool_repository.get_by_id(pool_id)
            if pool is None or pool.division_id != division_id:
                raise InvalidConfiguration(f"Source pool {pool_id} is not part of division {division_id}",
                                           "source_pool_ids")
