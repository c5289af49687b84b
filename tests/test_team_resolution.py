"""
Tests for placeholder detection and winner/loser resolution
"""

import pytest

from utils.team_resolution import (
    is_placeholder, is_team_final, winner_and_loser, winner_placeholder, loser_placeholder,
    seed_placeholder, pool_rank_placeholder
)


class TestPlaceholders:

    @pytest.mark.parametrize("value", [None, "", "   ", "TBD", "Winner of Game 3", "Loser of Game 12",
                                       "Seed 4"])
    def test_placeholders(self, value):
        assert is_placeholder(value)
        assert not is_team_final(value)

    @pytest.mark.parametrize("value", ["Lakers", "Team 1", "Seed", "Winner", "Game 4 Heroes", "tbd squad"])
    def test_concrete_names(self, value):
        assert is_team_final(value)

    def test_generated_labels_are_placeholders(self):
        for label in (winner_placeholder(7), loser_placeholder(7), seed_placeholder(2)):
            assert is_placeholder(label)
        assert is_placeholder(pool_rank_placeholder(1, "Pool A"), pool_names={"Pool A"})

    def test_pool_rank_label_needs_known_pool(self):
        """Test a team named like a pool rank label is a real team unless the pool exists"""
        pool_names = {"Pool A", "Group Blue"}

        assert is_placeholder("#2 Group Blue", pool_names)
        assert is_team_final("#1 Ladies", pool_names)
        assert is_team_final("#1 Pool A")
        assert is_team_final("#1 Pool C", pool_names)


class TestWinnerAndLoser:

    def test_higher_score_wins(self):
        assert winner_and_loser("A", "B", 50, 40) == ("A", "B")
        assert winner_and_loser("A", "B", 1, 2) == ("B", "A")

    def test_tie_has_no_winner(self):
        assert winner_and_loser("A", "B", 3, 3) is None
