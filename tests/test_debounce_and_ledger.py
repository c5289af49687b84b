"""
Tests for the coalescing debouncer and the processed-game ledger
"""

import pytest
from unittest.mock import Mock

from bracketflow.services.utils.debounce import CoalescingDebouncer
from bracketflow.services.utils.idempotency import IdempotencyLedger


class TestCoalescingDebouncer:
    """Test suite for CoalescingDebouncer"""

    @pytest.fixture
    def callback(self):
        return Mock()

    @pytest.fixture
    def debouncer(self, callback, clock, timers):
        return CoalescingDebouncer(5, callback, clock=clock, timer_factory=timers)

    def test_first_trigger_runs_immediately(self, debouncer, callback, timers):
        assert debouncer.trigger("div-1") is True

        callback.assert_called_once_with("div-1")
        assert timers.timers == []

    def test_burst_coalesces_into_one_trailing_run(self, debouncer, callback, timers, clock):
        """Test many triggers inside the window produce one extra run"""
        debouncer.trigger("div-1")
        clock.advance(1)
        for _ in range(5):
            assert debouncer.trigger("div-1") is False

        assert len(timers.timers) == 1
        assert timers.timers[0].interval == pytest.approx(4)
        assert timers.timers[0].daemon is True
        assert debouncer.has_pending("div-1")

        timers.fire_pending()

        assert callback.call_count == 2
        assert not debouncer.has_pending("div-1")

    def test_keys_are_independent(self, debouncer, callback):
        debouncer.trigger("div-1")
        debouncer.trigger("div-2")

        assert callback.call_count == 2

    def test_trigger_after_window_runs_again(self, debouncer, callback, clock, timers):
        debouncer.trigger("div-1")
        clock.advance(5)

        assert debouncer.trigger("div-1") is True
        assert callback.call_count == 2
        assert timers.timers == []

    def test_immediate_run_cancels_stale_timer(self, debouncer, clock, timers):
        debouncer.trigger("div-1")
        clock.advance(1)
        debouncer.trigger("div-1")
        clock.advance(10)

        debouncer.trigger("div-1")

        assert timers.timers[0].cancelled
        assert timers.pending() == []

    def test_callback_errors_are_logged_not_raised(self, clock, timers):
        failing = Mock(side_effect=RuntimeError("boom"))
        debouncer = CoalescingDebouncer(5, failing, clock=clock, timer_factory=timers)

        assert debouncer.trigger("div-1") is True
        failing.assert_called_once()

    def test_reschedule_arms_one_trailing_run(self, debouncer, callback, timers):
        debouncer.trigger("div-1")

        assert debouncer.reschedule("div-1") is True
        assert debouncer.reschedule("div-1") is False

        assert len(timers.pending()) == 1
        assert timers.timers[0].interval == 5
        timers.fire_pending()
        assert callback.call_count == 2

    def test_reschedule_from_inside_a_trailing_run(self, clock, timers):
        """Test a failed run can re-arm itself"""
        attempts = []

        def callback(key):
            attempts.append(key)
            if len(attempts) < 3:
                debouncer.reschedule(key)

        debouncer = CoalescingDebouncer(5, callback, clock=clock, timer_factory=timers)
        debouncer.trigger("div-1")
        timers.fire_pending()
        timers.fire_pending()

        assert attempts == ["div-1", "div-1", "div-1"]
        assert timers.pending() == []

    def test_cancel_all(self, debouncer, clock, timers):
        debouncer.trigger("div-1")
        clock.advance(1)
        debouncer.trigger("div-1")

        debouncer.cancel_all()

        assert timers.timers[0].cancelled
        assert not debouncer.has_pending("div-1")


class TestIdempotencyLedger:
    """Test suite for IdempotencyLedger"""

    @pytest.fixture
    def ledger(self, clock):
        return IdempotencyLedger(ttl=60, max_entries=3, clock=clock)

    def test_mark_and_check(self, ledger):
        ledger.mark("g1", "A|B")

        assert ledger.is_processed("g1")
        assert ledger.is_processed("g1", "A|B")
        assert not ledger.is_processed("g1", "B|A")
        assert not ledger.is_processed("g2")

    def test_entries_expire(self, ledger, clock):
        ledger.mark("g1", "A|B")
        clock.advance(60)

        assert not ledger.is_processed("g1")
        assert len(ledger) == 0

    def test_oldest_entries_dropped_when_full(self, ledger):
        for game_id in ("g1", "g2", "g3", "g4"):
            ledger.mark(game_id)

        assert len(ledger) == 3
        assert not ledger.is_processed("g1")
        assert ledger.is_processed("g4")

    def test_remark_refreshes_position(self, ledger):
        ledger.mark("g1")
        ledger.mark("g2")
        ledger.mark("g3")
        ledger.mark("g1", "new")
        ledger.mark("g4")

        assert ledger.is_processed("g1", "new")
        assert not ledger.is_processed("g2")

    def test_discard_and_evict(self, ledger, clock):
        ledger.mark("g1")
        ledger.mark("g2")
        ledger.discard("g1")
        clock.advance(61)

        assert ledger.evict() == 1
        assert len(ledger) == 0
