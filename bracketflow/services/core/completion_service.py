"""
Completion Orchestrator
Reacts to game changes: invalidates standings, advances finished games and
runs the debounced pool completion check that seeds brackets
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from flask import has_app_context
from models import Game
from bracketflow.services.core.advancement_service import AdvancementService, AdvancementResult
from bracketflow.services.core.seeding_service import SeedingService
from bracketflow.services.utils.cache_manager import CacheManager
from bracketflow.services.utils.change_stream import GameChange
from bracketflow.services.utils.debounce import CoalescingDebouncer
from bracketflow.services.utils.idempotency import IdempotencyLedger
from bracketflow.repositories.core import GameRepository
from bracketflow.exceptions import ServiceError, NotFoundError, NoValidWinner, StoreUnavailable
from constants import (
    GAME_STATUS_COMPLETED, DIVISION_STANDINGS_KEY, POOL_STANDINGS_KEY, TEAM_CACHE_KEY,
    DEFAULT_POOL_CHECK_DEBOUNCE_SECONDS, DEFAULT_PROCESSED_GAME_TTL_SECONDS,
    DEFAULT_PROCESSED_GAME_MAX_ENTRIES, DEFAULT_STORE_RETRY_ATTEMPTS, DEFAULT_STORE_RETRY_DELAY_SECONDS
)
import logging

logger = logging.getLogger(__name__)

# Report actions
ADVANCED = "advanced"
PARTIAL = "partial"
DUPLICATE = "duplicate"
NO_WINNER = "no_valid_winner"
RECORDED = "recorded"
CANCELLED = "cancelled"
REOPENED = "reopened"
IGNORED = "ignored"
FAILED = "failed"


@dataclass
class CompletionReport:
    game_id: str
    action: str
    advancement: Optional[AdvancementResult] = None
    error: Optional[ServiceError] = None
    pool_check_triggered: bool = False

    @property
    def processed(self) -> bool:
        return self.action in (ADVANCED, DUPLICATE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'game_id': self.game_id,
            'action': self.action,
            'processed': self.processed,
            'advancement': self.advancement.to_dict() if self.advancement else None,
            'error': self.error.to_dict() if self.error else None,
            'pool_check_triggered': self.pool_check_triggered,
        }


class CompletionOrchestrator:
    """
    Change stream subscriber driving automatic advancement and seeding

    Events for one game are serialized with a per-game lock; different games
    are processed concurrently. Errors are logged and reported, never raised
    to the publisher, and a game whose advancement failed stays eligible for
    reprocessing.
    """

    def __init__(self, advancement_service: AdvancementService,
                 seeding_service: SeedingService,
                 cache_manager: CacheManager,
                 game_repository: Optional[GameRepository] = None,
                 ledger: Optional[IdempotencyLedger] = None,
                 debounce_window: float = DEFAULT_POOL_CHECK_DEBOUNCE_SECONDS,
                 retry_attempts: int = DEFAULT_STORE_RETRY_ATTEMPTS,
                 retry_delay: float = DEFAULT_STORE_RETRY_DELAY_SECONDS,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic,
                 timer_factory: Callable[..., Any] = threading.Timer,
                 app=None):
        self.advancement_service = advancement_service
        self.seeding_service = seeding_service
        self.cache_manager = cache_manager
        self.game_repository = game_repository or GameRepository()
        self.ledger = ledger or IdempotencyLedger(DEFAULT_PROCESSED_GAME_TTL_SECONDS,
                                                  DEFAULT_PROCESSED_GAME_MAX_ENTRIES, clock=clock)
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.sleep = sleep
        self.app = app
        self.debouncer = CoalescingDebouncer(debounce_window, self._run_pool_check,
                                             clock=clock, timer_factory=timer_factory)
        # game id -> [lock, holders and waiters]
        self._locks: Dict[str, List[Any]] = {}
        self._locks_guard = threading.Lock()

    def __call__(self, change: GameChange) -> CompletionReport:
        return self.handle_change(change)

    def handle_change(self, change: GameChange) -> CompletionReport:
        """
        Process one game change

        Args:
            change: The committed change

        Returns:
            CompletionReport describing what was done
        """
        try:
            with self._game_lock(change.game_id):
                return self._process(change)
        except ServiceError as e:
            logger.error(f"Processing change of game {change.game_id} failed: {e.message}")
            return CompletionReport(change.game_id, FAILED, error=e)
        except Exception as e:
            logger.error(f"Unexpected error processing change of game {change.game_id}: {str(e)}")
            return CompletionReport(change.game_id, FAILED, error=ServiceError(str(e)))

    def _process(self, change: GameChange) -> CompletionReport:
        if change.became_cancelled:
            logger.info(f"Game {change.game_id} cancelled; no advancement")
            self.ledger.discard(change.game_id)
            self._invalidate_change(change)
            triggered = self._trigger_pool_check(change.division_id) if change.pool_id else False
            return CompletionReport(change.game_id, CANCELLED, pool_check_triggered=triggered)

        correction = (change.status == GAME_STATUS_COMPLETED
                      and change.previous_status == GAME_STATUS_COMPLETED
                      and change.scores_changed)
        if not change.became_completed and not correction:
            if change.previous_status == GAME_STATUS_COMPLETED:
                # Reopened: the result no longer counts and may change
                self.ledger.discard(change.game_id)
                self._invalidate_change(change)
                return CompletionReport(change.game_id, REOPENED)
            return CompletionReport(change.game_id, IGNORED)

        game = self._with_retry(lambda: self.game_repository.get_by_id(change.game_id), "load game")
        if game is None:
            raise NotFoundError("Game", change.game_id)

        self._invalidate_game(game)
        report = CompletionReport(game.id, RECORDED)

        outgoing = self._with_retry(lambda: self.advancement_service.repository.get_outgoing(game.id),
                                    "load advancement links")
        if game.bracket_id or outgoing:
            self._advance(game, report)

        if game.pool_id:
            report.pool_check_triggered = self._trigger_pool_check(game.division_id)
        return report

    def _advance(self, game: Game, report: CompletionReport) -> None:
        try:
            winner, loser = self.advancement_service.winner_and_loser(game)
        except NoValidWinner as e:
            logger.warning(f"{e.message}; game stays unprocessed")
            self.ledger.discard(game.id)
            report.action = NO_WINNER
            report.error = e
            return

        fingerprint = f"{winner}|{loser}"
        if self.ledger.is_processed(game.id, fingerprint):
            logger.info(f"Game {game.id} already advanced with this result; skipping")
            report.action = DUPLICATE
            return

        result = self._with_retry(lambda: self.advancement_service.advance_outcome(game), "advance outcome")
        report.advancement = result
        if result.succeeded:
            self.ledger.mark(game.id, result.fingerprint)
            report.action = ADVANCED
        else:
            self.ledger.discard(game.id)
            report.action = PARTIAL
            report.error = result.errors[0]

    def _with_retry(self, operation: Callable[[], Any], name: str) -> Any:
        """Run operation, retrying StoreUnavailable with linear back-off"""
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return operation()
            except StoreUnavailable:
                if attempt == self.retry_attempts:
                    logger.error(f"Store unavailable for {name}; giving up after {attempt} attempts")
                    raise
                logger.warning(f"Store unavailable for {name} (attempt {attempt}/{self.retry_attempts}); retrying")
                self.sleep(self.retry_delay * attempt)

    def _trigger_pool_check(self, division_id: str) -> bool:
        self.debouncer.trigger(division_id)
        return True

    def _run_pool_check(self, division_id: str):
        if self.app is not None and not has_app_context():
            with self.app.app_context():
                return self.check_and_seed(division_id)
        return self.check_and_seed(division_id)

    def check_and_seed(self, division_id: str) -> list:
        """
        Seed the division's brackets if all pool games are finished

        A store outage is retried; if it outlasts the retries the check is
        scheduled again so the last pool completion is not lost.

        Returns:
            IDs of brackets that changed
        """
        def seed_if_complete() -> Optional[list]:
            try:
                if not self.seeding_service.check_pools_complete(division_id):
                    return None
                return self.seeding_service.auto_seed_brackets(division_id)
            except StoreUnavailable:
                self.seeding_service.rollback()
                raise

        try:
            seeded = self._with_retry(seed_if_complete, f"pool check of division {division_id}")
        except StoreUnavailable:
            self.debouncer.reschedule(division_id)
            logger.warning(f"Pool completion check for division {division_id} rescheduled")
            return []
        except ServiceError as e:
            self.seeding_service.rollback()
            logger.error(f"Pool completion check for division {division_id} failed: {e.message}")
            return []

        if seeded is None:
            logger.debug(f"Pools of division {division_id} not complete yet")
            return []
        if seeded:
            self.cache_manager.invalidate(DIVISION_STANDINGS_KEY.format(division_id=division_id))
        return seeded

    def _invalidate_game(self, game: Game) -> None:
        self._invalidate(game.division_id, game.pool_id, (game.team_a, game.team_b))

    def _invalidate_change(self, change: GameChange) -> None:
        self._invalidate(change.division_id, change.pool_id, change.teams)

    def _invalidate(self, division_id: str, pool_id: Optional[str], teams) -> None:
        self.cache_manager.invalidate(DIVISION_STANDINGS_KEY.format(division_id=division_id))
        if pool_id:
            self.cache_manager.invalidate(POOL_STANDINGS_KEY.format(pool_id=pool_id))
        for team_name in teams:
            if team_name:
                self.cache_manager.invalidate(TEAM_CACHE_KEY.format(division_id=division_id, team_name=team_name))

    @contextmanager
    def _game_lock(self, game_id: str):
        """Hold the lock of one game; the lock is dropped once nobody waits for it"""
        with self._locks_guard:
            entry = self._locks.get(game_id)
            if entry is None:
                entry = self._locks[game_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[game_id]

    def shutdown(self) -> None:
        self.debouncer.cancel_all()
