"""
Advancement Service with Repository Pattern
Moves winners and losers of completed games into their downstream games and
edits the advancement graph at configuration time
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple
from models import Game, AdvancementLink
from bracketflow.services.base import BaseService
from bracketflow.repositories.core import AdvancementRepository, GameRepository, PoolRepository
from bracketflow.exceptions import (
    ServiceError, InvalidConfiguration, NotFoundError, NoValidWinner, TargetGameFull, CapacityExceeded,
    ConflictingAdvancement
)
from utils.advancement_graph import AdvancementGraph
from utils.team_resolution import (
    is_placeholder, winner_and_loser, winner_placeholder, loser_placeholder
)
from constants import (
    GAME_STATUS_COMPLETED, OUTCOME_WINNER, OUTCOME_LOSER, MAX_GAME_FEEDS, PLACEHOLDER_TBD
)
import logging

logger = logging.getLogger(__name__)

TEAM_SLOTS = ('team_a', 'team_b')

# Per-target results
FILLED = "filled"
UNCHANGED = "unchanged"
OVERWRITTEN = "overwritten"
FULL = "full"
CONFLICT = "conflict"
MISSING = "missing"


@dataclass
class TargetResult:
    target_game_id: str
    outcome: str
    team_name: str
    status: str
    slot: Optional[str] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target_game_id': self.target_game_id,
            'outcome': self.outcome,
            'team_name': self.team_name,
            'status': self.status,
            'slot': self.slot,
            'error': self.error.to_dict() if self.error else None,
        }


@dataclass
class AdvancementResult:
    game_id: str
    winner: str
    loser: str
    targets: List[TargetResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(target.ok for target in self.targets)

    @property
    def errors(self) -> List[ServiceError]:
        return [target.error for target in self.targets if target.error is not None]

    @property
    def fingerprint(self) -> str:
        return f"{self.winner}|{self.loser}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'game_id': self.game_id,
            'winner': self.winner,
            'loser': self.loser,
            'succeeded': self.succeeded,
            'targets': [target.to_dict() for target in self.targets],
        }


class AdvancementService(BaseService[AdvancementLink]):
    """
    Service for the advancement graph

    Completion time: advance_outcome writes a finished game's winner and loser
    into every downstream game. Configuration time: links are validated
    against the whole division graph before anything is written.
    """

    def __init__(self, repository: Optional[AdvancementRepository] = None,
                 game_repository: Optional[GameRepository] = None,
                 pool_repository: Optional[PoolRepository] = None):
        if repository is None:
            repository = AdvancementRepository()
        super().__init__(repository)
        self.game_repository = game_repository or GameRepository()
        self.pool_repository = pool_repository or PoolRepository()

    def _pool_names(self, division_id: str) -> FrozenSet[str]:
        return frozenset(pool.name for pool in self.pool_repository.get_pools_by_division(division_id))

    # --- completion time ---

    def winner_and_loser(self, game: Game) -> Tuple[str, str]:
        """
        Determine winner and loser of a finished game

        Args:
            game: The game

        Returns:
            Tuple (winner, loser)

        Raises:
            NoValidWinner: If the game is not completed, tied or has unresolved participants
        """
        if game.status != GAME_STATUS_COMPLETED:
            raise NoValidWinner(game.id, f"status is {game.status}")
        pool_names = self._pool_names(game.division_id)
        if is_placeholder(game.team_a, pool_names) or is_placeholder(game.team_b, pool_names):
            raise NoValidWinner(game.id, "participants are not resolved")
        result = winner_and_loser(game.team_a, game.team_b, game.score_a or 0, game.score_b or 0)
        if result is None:
            raise NoValidWinner(game.id, f"tied at {game.score_a}-{game.score_b}")
        return result

    def advance_outcome(self, game: Game, override: bool = False) -> AdvancementResult:
        """
        Write the winner and loser of a completed game into all downstream games

        Every target is handled and committed on its own; a full or
        conflicting target is reported without stopping the others.

        Args:
            game: A completed game
            override: Replace a previously written team when the result changed

        Returns:
            AdvancementResult with one entry per outgoing link

        Raises:
            NoValidWinner: If the game has no valid winner
            StoreUnavailable: If the store is unreachable (safe to retry)
        """
        winner, loser = self.winner_and_loser(game)
        result = AdvancementResult(game_id=game.id, winner=winner, loser=loser)

        for link in self.repository.get_outgoing(game.id):
            team = winner if link.outcome == OUTCOME_WINNER else loser
            result.targets.append(self._advance_link(link, team, override))

        if result.succeeded:
            logger.info(f"Advanced game {game.id}: winner {winner}, loser {loser} "
                        f"({len(result.targets)} targets)")
        else:
            logger.warning(f"Advancement of game {game.id} incomplete: "
                           f"{'; '.join(e.message for e in result.errors)}")
        return result

    def _advance_link(self, link: AdvancementLink, team: str, override: bool) -> TargetResult:
        target = self.game_repository.get_by_id(link.target_game_id)
        if target is None:
            error = InvalidConfiguration(f"Target game {link.target_game_id} no longer exists", "target_game_id")
            return TargetResult(link.target_game_id, link.outcome, team, MISSING, error=error)

        # Re-read slots right before writing
        self.game_repository.refresh(target)
        try:
            slot, status = self._place_team(target, link, team, override)
        except TargetGameFull as e:
            logger.warning(e.message)
            return TargetResult(target.id, link.outcome, team, FULL, error=e)
        except ConflictingAdvancement as e:
            logger.warning(e.message)
            return TargetResult(target.id, link.outcome, team, CONFLICT, error=e)

        if status != UNCHANGED or link.resolved_team != team:
            link.resolved_team = team
            self.commit()
            if status != UNCHANGED:
                logger.info(f"{link.outcome.capitalize()} {team} -> game {target.id} {slot} ({status})")
        return TargetResult(target.id, link.outcome, team, status, slot)

    def _place_team(self, target: Game, link: AdvancementLink, team: str,
                    override: bool) -> Tuple[str, str]:
        previous = link.resolved_team
        if previous is not None and previous != team:
            current_slot = self._slot_holding(target, previous)
            if current_slot is not None:
                if not override:
                    raise ConflictingAdvancement(target.id, previous, team)
                setattr(target, current_slot, team)
                return current_slot, OVERWRITTEN

        existing_slot = self._slot_holding(target, team)
        if existing_slot is not None:
            return existing_slot, UNCHANGED

        pool_names = self._pool_names(target.division_id)
        incoming_ids = [incoming.id for incoming in self.repository.get_incoming(target.id)]
        preferred = incoming_ids.index(link.id) if link.id in incoming_ids else None
        if preferred is not None and preferred < len(TEAM_SLOTS) \
                and is_placeholder(getattr(target, TEAM_SLOTS[preferred]), pool_names):
            slot = TEAM_SLOTS[preferred]
        else:
            slot = next((s for s in TEAM_SLOTS if is_placeholder(getattr(target, s), pool_names)), None)
        if slot is None:
            raise TargetGameFull(target.id, team)

        setattr(target, slot, team)
        return slot, FILLED

    @staticmethod
    def _slot_holding(game: Game, team: str) -> Optional[str]:
        for slot in TEAM_SLOTS:
            if getattr(game, slot) == team:
                return slot
        return None

    # --- configuration time ---

    def get_division_graph(self, division_id: str) -> AdvancementGraph:
        """Load every game and link of a division into an AdvancementGraph"""
        graph = AdvancementGraph(nodes=[g.id for g in self.game_repository.get_games_by_division(division_id)])
        for link in self.repository.get_links_by_division(division_id):
            graph.add_node(link.target_game_id)
            graph.add_edge(link.source_game_id, link.target_game_id, link.outcome)
        return graph

    def add_advancement(self, source_game_id: str, target_game_id: str, outcome: str) -> AdvancementLink:
        """
        Add one advancement link

        Args:
            source_game_id: Game whose outcome advances
            target_game_id: Game receiving the team
            outcome: winner or loser

        Returns:
            The new (or already existing identical) link

        Raises:
            NotFoundError: If a game does not exist
            InvalidConfiguration: If the games are in different divisions or outcome is invalid
            CapacityExceeded: If the target already has two feeds
            CycleDetected: If the link would create a cycle
        """
        source = self._require_game(source_game_id)
        target = self._require_game(target_game_id)
        self._check_same_division(source, target)

        existing = self.repository.find_link(source_game_id, target_game_id, outcome)
        if existing is not None:
            return existing

        graph = self.get_division_graph(source.division_id)
        graph.validate_edge(source_game_id, target_game_id, outcome)

        try:
            link = self.repository.create(source_game=source, target_game=target, outcome=outcome)
            self.commit()
        except Exception:
            self.rollback()
            raise
        logger.info(f"Linked {outcome} of game {source_game_id} to game {target_game_id}")
        return link

    def set_advancement_targets(self, game_id: str, winner_targets: Sequence[str] = (),
                                loser_targets: Sequence[str] = ()) -> Game:
        """
        Replace the outgoing links of a game as one unit

        Every new edge is validated before anything is written; on failure
        the stored graph is unchanged.

        Returns:
            The source game

        Raises:
            NotFoundError, InvalidConfiguration, CapacityExceeded, CycleDetected
        """
        source = self._require_game(game_id)
        wanted: List[Tuple[str, str]] = []
        for outcome, targets in ((OUTCOME_WINNER, winner_targets), (OUTCOME_LOSER, loser_targets)):
            for target_id in targets or []:
                if (target_id, outcome) not in wanted:
                    wanted.append((target_id, outcome))

        targets_by_id: Dict[str, Game] = {}
        for target_id, _ in wanted:
            if target_id not in targets_by_id:
                target = self._require_game(target_id)
                self._check_same_division(source, target)
                targets_by_id[target_id] = target

        graph = self.get_division_graph(source.division_id)
        graph.remove_edges_from(game_id)
        for target_id, outcome in wanted:
            graph.add_edge(game_id, target_id, outcome)

        existing = self.repository.get_outgoing(game_id)
        keep = {(link.target_game_id, link.outcome) for link in existing}
        try:
            for link in existing:
                if (link.target_game_id, link.outcome) not in wanted:
                    self.db.session.delete(link)
            for target_id, outcome in wanted:
                if (target_id, outcome) not in keep:
                    self.db.session.add(AdvancementLink(
                        source_game=source, target_game=targets_by_id[target_id], outcome=outcome))
            self.commit()
        except Exception:
            self.rollback()
            raise

        logger.info(f"Set advancement of game {game_id}: "
                    f"{len(winner_targets or [])} winner targets, {len(loser_targets or [])} loser targets")
        return source

    def setup_game_dependencies(self, target_game_id: str, sources: Sequence[Dict[str, Any]]) -> Game:
        """
        Set the feeders of a game

        Args:
            target_game_id: Game receiving the teams
            sources: Up to two entries {"game_id": ..., "takes_winner": bool}, in slot order

        Returns:
            The target game, placeholder slots relabelled after the feeders

        Raises:
            NotFoundError, InvalidConfiguration, CapacityExceeded, CycleDetected
        """
        sources = list(sources or [])
        if len(sources) > MAX_GAME_FEEDS:
            raise CapacityExceeded(target_game_id, [s.get('game_id') for s in sources])

        target = self._require_game(target_game_id)
        feeders: List[Tuple[Game, str]] = []
        for entry in sources:
            source_id = entry.get('game_id')
            source = self._require_game(source_id)
            self._check_same_division(source, target)
            outcome = OUTCOME_WINNER if entry.get('takes_winner', True) else OUTCOME_LOSER
            feeders.append((source, outcome))

        graph = self.get_division_graph(target.division_id)
        graph.remove_edges_to(target_game_id)
        for source, outcome in feeders:
            graph.add_edge(source.id, target_game_id, outcome)

        pool_names = self._pool_names(target.division_id)
        try:
            for link in self.repository.get_incoming(target_game_id):
                self.db.session.delete(link)
            self.flush()
            for index, (source, outcome) in enumerate(feeders):
                self.db.session.add(AdvancementLink(source_game=source, target_game=target, outcome=outcome))
                slot = TEAM_SLOTS[index]
                if is_placeholder(getattr(target, slot), pool_names):
                    setattr(target, slot, self._feeder_label(source, outcome))
            self.commit()
        except Exception:
            self.rollback()
            raise

        logger.info(f"Set {len(feeders)} feeders for game {target_game_id}")
        return target

    def remove_game_dependencies(self, game_id: str) -> Game:
        """
        Drop every feeder of a game and reset both team slots to TBD

        Raises:
            NotFoundError: If game not found
        """
        game = self._require_game(game_id)

        links = self.repository.get_incoming(game_id)
        try:
            for link in links:
                self.db.session.delete(link)
            game.team_a = PLACEHOLDER_TBD
            game.team_b = PLACEHOLDER_TBD
            self.commit()
        except Exception:
            self.rollback()
            raise

        logger.info(f"Removed {len(links)} feeders from game {game_id}")
        return game

    def get_feed_capacity(self, game_id: str) -> Tuple[int, List[str]]:
        """
        Count the feeders of a game

        Returns:
            Tuple (number of feeding games, their ids in slot order)
        """
        sources = [link.source_game_id for link in self.repository.get_incoming(game_id)]
        return len(sources), sources

    def _require_game(self, game_id: str) -> Game:
        game = self.game_repository.get_by_id(game_id) if game_id else None
        if game is None:
            raise NotFoundError("Game", game_id)
        return game

    @staticmethod
    def _check_same_division(source: Game, target: Game) -> None:
        if source.division_id != target.division_id:
            raise InvalidConfiguration(
                f"Games {source.id} and {target.id} belong to different divisions", "target_game_id")

    @staticmethod
    def _feeder_label(source: Game, outcome: str) -> str:
        number = source.bracket_game_number or source.pool_game_number
        if number is None:
            return PLACEHOLDER_TBD
        return winner_placeholder(number) if outcome == OUTCOME_WINNER else loser_placeholder(number)
