"""
Tests for CompletionOrchestrator
Reaction to game changes: advancement, idempotency, retries, cache invalidation
"""

import pytest
from unittest.mock import Mock, patch

from bracketflow.exceptions import StoreUnavailable, ConflictingAdvancement, NoValidWinner
from bracketflow.services.core.advancement_service import AdvancementResult
from bracketflow.services.core.completion_service import (
    ADVANCED, PARTIAL, DUPLICATE, NO_WINNER, RECORDED, CANCELLED, REOPENED, IGNORED, FAILED
)
from bracketflow.services.utils.change_stream import GameChange
from models import db


def change_for(game, previous_status, status, previous_scores=(0, 0), scores=None):
    return GameChange(
        game_id=game.id,
        division_id=game.division_id,
        previous_status=previous_status,
        status=status,
        previous_scores=previous_scores,
        scores=scores if scores is not None else (game.score_a, game.score_b),
        pool_id=game.pool_id,
        teams=(game.team_a, game.team_b)
    )


def store_result(game, score_a, score_b, status="completed"):
    game.score_a = score_a
    game.score_b = score_b
    game.status = status
    db.session.commit()


class TestCompletionOrchestrator:
    """Test suite for CompletionOrchestrator"""

    @pytest.fixture
    def linked(self, advancement_service, make_game):
        source = make_game("A", "B")
        target = make_game()
        advancement_service.add_advancement(source.id, target.id, "winner")
        return source, target

    def test_completed_game_advances(self, orchestrator, linked):
        source, target = linked
        store_result(source, 5, 2)

        report = orchestrator.handle_change(change_for(source, "in_progress", "completed"))

        assert report.action == ADVANCED
        assert report.processed
        assert report.advancement.winner == "A"
        assert target.team_a == "A"
        assert orchestrator.ledger.is_processed(source.id, "A|B")

    def test_replayed_event_is_skipped(self, orchestrator, game_service, linked):
        """Test the same completion delivered twice advances once"""
        # Arrange
        source, target = linked
        game_service.update_game(source.id, 5, 2, "completed")

        # Act
        with patch.object(orchestrator.advancement_service, 'advance_outcome') as advance:
            report = orchestrator.handle_change(change_for(source, "scheduled", "completed"))

        # Assert
        assert report.action == DUPLICATE
        advance.assert_not_called()
        assert target.team_a == "A"

    def test_unrelated_changes_ignored(self, orchestrator, linked):
        source, target = linked
        store_result(source, 1, 0, status="in_progress")

        report = orchestrator.handle_change(change_for(source, "scheduled", "in_progress"))

        assert report.action == IGNORED
        assert target.team_a == "TBD"

    def test_game_without_links_is_recorded(self, orchestrator, make_game):
        game = make_game("A", "B")
        store_result(game, 2, 1)

        report = orchestrator.handle_change(change_for(game, "scheduled", "completed"))

        assert report.action == RECORDED
        assert not report.pool_check_triggered

    def test_tie_then_correction(self, orchestrator, game_service, linked):
        """Test a tied game stays unprocessed until its score is corrected"""
        source, target = linked
        store_result(source, 2, 2)

        report = orchestrator.handle_change(change_for(source, "in_progress", "completed"))

        assert report.action == NO_WINNER
        assert isinstance(report.error, NoValidWinner)
        assert not orchestrator.ledger.is_processed(source.id)
        assert target.team_a == "TBD"

        store_result(source, 2, 3)
        report = orchestrator.handle_change(change_for(source, "completed", "completed", previous_scores=(2, 2)))

        assert report.action == ADVANCED
        assert target.team_a == "B"

    def test_changed_result_reports_conflict(self, orchestrator, game_service, linked):
        source, target = linked
        game_service.update_game(source.id, 50, 40, "completed")
        store_result(source, 40, 50)

        report = orchestrator.handle_change(change_for(source, "completed", "completed", previous_scores=(50, 40)))

        assert report.action == PARTIAL
        assert isinstance(report.error, ConflictingAdvancement)
        assert target.team_a == "A"
        assert not orchestrator.ledger.is_processed(source.id)

    def test_reopened_game_forgotten(self, orchestrator, game_service, linked):
        source, target = linked
        game_service.update_game(source.id, 5, 2, "completed")
        store_result(source, 5, 2, status="in_progress")

        report = orchestrator.handle_change(change_for(source, "completed", "in_progress"))

        assert report.action == REOPENED
        assert not orchestrator.ledger.is_processed(source.id)

    def test_cancelled_pool_game_triggers_pool_check(self, orchestrator, pool_service):
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        game = pool_service.get_games_by_pool(pool.id)[0]
        store_result(game, 0, 0, status="cancelled")

        with patch.object(orchestrator.seeding_service, 'auto_seed_brackets', return_value=[]) as auto_seed:
            report = orchestrator.handle_change(change_for(game, "scheduled", "cancelled"))

        assert report.action == CANCELLED
        assert report.pool_check_triggered
        auto_seed.assert_called_once_with("div-1")

    def test_store_unavailable_is_retried(self, orchestrator, linked):
        source, target = linked
        store_result(source, 5, 2)
        orchestrator.sleep = Mock()
        outcome = AdvancementResult(game_id=source.id, winner="A", loser="B")

        with patch.object(orchestrator.advancement_service, 'advance_outcome',
                          side_effect=[StoreUnavailable("database is locked"), outcome]) as advance:
            report = orchestrator.handle_change(change_for(source, "in_progress", "completed"))

        assert report.action == ADVANCED
        assert advance.call_count == 2
        orchestrator.sleep.assert_called_once_with(0)

    def test_store_unavailable_gives_up(self, orchestrator, linked):
        source, target = linked
        store_result(source, 5, 2)
        orchestrator.sleep = Mock()

        with patch.object(orchestrator.advancement_service, 'advance_outcome',
                          side_effect=StoreUnavailable("database is locked")) as advance:
            report = orchestrator.handle_change(change_for(source, "in_progress", "completed"))

        assert report.action == FAILED
        assert isinstance(report.error, StoreUnavailable)
        assert advance.call_count == orchestrator.retry_attempts
        assert orchestrator.sleep.call_count == orchestrator.retry_attempts - 1
        assert not orchestrator.ledger.is_processed(source.id)

    def test_game_locks_released(self, orchestrator, linked):
        source, target = linked
        store_result(source, 5, 2)

        orchestrator.handle_change(change_for(source, "in_progress", "completed"))
        with patch.object(orchestrator.advancement_service, 'advance_outcome', side_effect=RuntimeError("boom")):
            orchestrator.handle_change(change_for(source, "completed", "completed", previous_scores=(2, 5)))

        assert orchestrator._locks == {}

    def test_pool_check_outage_rescheduled(self, orchestrator, seeding_service, timers):
        orchestrator.sleep = Mock()

        with patch.object(seeding_service, 'check_pools_complete',
                          side_effect=StoreUnavailable("database is locked")) as check:
            assert orchestrator.check_and_seed("div-1") == []

        assert check.call_count == orchestrator.retry_attempts
        assert orchestrator.debouncer.has_pending("div-1")
        assert len(timers.pending()) == 1

    def test_unexpected_errors_reported(self, orchestrator, linked):
        source, target = linked
        store_result(source, 5, 2)

        with patch.object(orchestrator.advancement_service, 'advance_outcome', side_effect=RuntimeError("boom")):
            report = orchestrator.handle_change(change_for(source, "in_progress", "completed"))

        assert report.action == FAILED
        assert report.error.message == "boom"
        assert report.to_dict()['error']['error'] == "SERVICE_ERROR"

    def test_publisher_never_sees_errors(self, orchestrator, game_service, linked):
        source, target = linked

        with patch.object(orchestrator.advancement_service, 'advance_outcome', side_effect=RuntimeError("boom")):
            game = game_service.update_game(source.id, 5, 2, "completed")

        assert game.status == "completed"

    def test_standings_caches_invalidated(self, game_service, pool_service, standings_service):
        """Test cached standings reflect a result right after it is recorded"""
        # Arrange
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        game = pool_service.get_games_by_pool(pool.id)[0]
        assert standings_service.get_pool_standings(pool.id)[0].wins == 0
        assert standings_service.get_division_standings("div-1")[pool.id][0].wins == 0
        assert standings_service.get_team_record("div-1", "B")['losses'] == 0

        # Act
        game_service.update_game(game.id, 1, 4, "completed")

        # Assert
        leader = standings_service.get_pool_standings(pool.id)[0]
        assert (leader.team_name, leader.wins) == ("B", 1)
        assert standings_service.get_division_standings("div-1")[pool.id][0].team_name == "B"
        assert standings_service.get_team_record("div-1", "A")['losses'] == 1
        assert standings_service.get_team_record("div-1", "B")['wins'] == 1

    def test_check_and_seed(self, orchestrator, pool_service, bracket_service):
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")
        assert orchestrator.check_and_seed("div-1") == []

        store_result(pool_service.get_games_by_pool(pool.id)[0], 3, 1)

        assert orchestrator.check_and_seed("div-1") == [bracket.id]
