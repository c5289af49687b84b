"""
Tests for SeedingService
Pool completion detection and bracket seeding from pool standings
"""

import pytest

from bracketflow.exceptions import InvalidConfiguration, BusinessRuleError
from models import db


def play_pool(pool_service, pool, results):
    """Finish every pool game; results maps (team_a, team_b) -> (score_a, score_b), default 3-1"""
    for game in pool_service.get_games_by_pool(pool.id):
        game.score_a, game.score_b = results.get((game.team_a, game.team_b), (3, 1))
        game.status = "completed"
    db.session.commit()


def first_round(bracket_service, bracket):
    return [(g.team_a, g.team_b) for g in bracket_service.get_bracket_games(bracket.id)
            if g.bracket_round_number == 1]


class TestPoolCompletion:
    """Test suite for pool completion and tournament format"""

    def test_check_pools_complete(self, seeding_service, pool_service):
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C"])
        assert not seeding_service.check_pools_complete("div-1")

        games = pool_service.get_games_by_pool(pool.id)
        games[0].status = "completed"
        games[1].status = "cancelled"
        games[2].status = "in_progress"
        db.session.commit()
        assert not seeding_service.check_pools_complete("div-1")

        games[2].status = "completed"
        db.session.commit()
        assert seeding_service.check_pools_complete("div-1")

    def test_division_without_pools_is_complete(self, seeding_service):
        assert seeding_service.check_pools_complete("empty")

    def test_tournament_format(self, seeding_service, pool_service, bracket_service):
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        assert seeding_service.get_tournament_format("div-1")['is_hybrid'] is False

        bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")

        fmt = seeding_service.get_tournament_format("div-1")
        assert (fmt['pool_count'], fmt['bracket_count'], fmt['is_hybrid']) == (1, 1, True)


class TestAutoSeed:
    """Test suite for bracket seeding from pools"""

    def test_top_teams_seeded_in_rank_order(self, seeding_service, pool_service, bracket_service):
        """Test a 4 team pool advancing 2 seeds positions 1 and 2"""
        # Arrange
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C", "D"], advancement_count=2)
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")
        play_pool(pool_service, pool, {})

        # Act
        seeded = seeding_service.auto_seed_brackets("div-1")

        # Assert
        assert seeded == [bracket.id]
        assert [s['team_name'] for s in bracket.seeds] == ["A", "B", None, None]
        assert first_round(bracket_service, bracket) == [("A", "Seed 4"), ("B", "Seed 3")]

    def test_seeding_twice_changes_nothing(self, seeding_service, pool_service, bracket_service):
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C", "D"])
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")
        play_pool(pool_service, pool, {})

        assert seeding_service.seed_bracket_from_pools(bracket.id) is True
        assert seeding_service.seed_bracket_from_pools(bracket.id) is False
        assert first_round(bracket_service, bracket) == [("A", "D"), ("B", "C")]

    def test_cross_pool_order(self, seeding_service, pool_service, bracket_service):
        """Test pool winners come first, ordered by point differential"""
        pool_a = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A1", "A2"])
        pool_b = pool_service.create_pool("tour-1", "div-1", "Pool B", ["B1", "B2"])
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")
        play_pool(pool_service, pool_a, {("A1", "A2"): (2, 1)})
        play_pool(pool_service, pool_b, {("B1", "B2"): (9, 1)})

        seeding_service.auto_seed_brackets("div-1")

        assert [s['team_name'] for s in bracket.seeds] == ["B1", "A1", "A2", "B2"]

    def test_mixed_bracket_keeps_manual_and_explicit_seeds(self, seeding_service, pool_service, bracket_service):
        # Arrange
        pool_a = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A1", "A2"])
        pool_b = pool_service.create_pool("tour-1", "div-1", "Pool B", ["B1", "B2"], advancement_count=1)
        bracket = bracket_service.create_bracket(
            "tour-1", "div-1", "Gold", 4, seeding_source="mixed",
            seeds=["X", {"pool_id": pool_a.id, "rank": 1}, None, None])
        assert first_round(bracket_service, bracket) == [("X", "Seed 4"), ("#1 Pool A", "Seed 3")]
        play_pool(pool_service, pool_a, {})
        play_pool(pool_service, pool_b, {})

        # Act
        seeding_service.auto_seed_brackets("div-1")

        # Assert
        assert [s['team_name'] for s in bracket.seeds] == ["X", "A1", "B1", "A2"]
        assert bracket.seeds[0]['manual'] is True
        assert first_round(bracket_service, bracket) == [("X", "A2"), ("A1", "B1")]

    def test_incomplete_pools_refused(self, seeding_service, pool_service, bracket_service):
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")

        with pytest.raises(BusinessRuleError):
            seeding_service.auto_seed_brackets("div-1")

    def test_nothing_to_seed(self, seeding_service, pool_service, bracket_service):
        assert seeding_service.auto_seed_brackets("div-1") == []

        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeds=["A", "B", "C", "D"])
        assert seeding_service.auto_seed_brackets("div-1") == []

    def test_too_many_qualifiers(self, seeding_service, pool_service, bracket_service):
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C", "D", "E"])
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")
        play_pool(pool_service, pool, {})

        with pytest.raises(InvalidConfiguration):
            seeding_service.seed_bracket_from_pools(bracket.id)
        # auto seeding logs the failure and carries on
        assert seeding_service.auto_seed_brackets("div-1") == []
        assert first_round(bracket_service, bracket) == [("Seed 1", "Seed 4"), ("Seed 2", "Seed 3")]

    def test_started_first_round_games_kept(self, seeding_service, pool_service, bracket_service):
        pool = pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C", "D"])
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")
        started = bracket_service.get_bracket_games(bracket.id)[0]
        started.status = "in_progress"
        db.session.commit()
        play_pool(pool_service, pool, {})

        seeding_service.auto_seed_brackets("div-1")

        assert first_round(bracket_service, bracket) == [("Seed 1", "Seed 4"), ("B", "C")]

    def test_manual_bracket_cannot_be_pool_seeded(self, seeding_service, bracket_service):
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4)

        with pytest.raises(InvalidConfiguration):
            seeding_service.seed_bracket_from_pools(bracket.id)


class TestManualSeeds:
    """Test suite for set_manual_seeds"""

    def test_set_manual_seeds(self, seeding_service, bracket_service):
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4)

        seeding_service.set_manual_seeds(bracket.id, ["A", "B", None, "D"])

        assert [s['team_name'] for s in bracket.seeds] == ["A", "B", None, "D"]
        assert first_round(bracket_service, bracket) == [("A", "D"), ("B", "Seed 3")]

    def test_clearing_a_manual_seed(self, seeding_service, bracket_service):
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeds=["A", "B", "C", "D"])

        seeding_service.set_manual_seeds(bracket.id, ["A", "B", "C", None])

        assert bracket.seeds[3]['manual'] is False
        assert first_round(bracket_service, bracket) == [("A", "Seed 4"), ("B", "C")]

    @pytest.mark.parametrize("seeds", [["A", "B"], ["A", "A", None, None]])
    def test_invalid_manual_seeds(self, seeding_service, bracket_service, seeds):
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4)

        with pytest.raises(InvalidConfiguration):
            seeding_service.set_manual_seeds(bracket.id, seeds)

    def test_pool_bracket_rejects_manual_seeds(self, seeding_service, bracket_service):
        bracket = bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")

        with pytest.raises(InvalidConfiguration):
            seeding_service.set_manual_seeds(bracket.id, ["A", "B", "C", "D"])


class TestValidateStructure:
    """Test suite for division structure validation"""

    def test_balanced_hybrid_division_is_valid(self, seeding_service, pool_service, bracket_service):
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C", "D"], advancement_count=2)
        pool_service.create_pool("tour-1", "div-1", "Pool B", ["E", "F", "G", "H"], advancement_count=2)
        bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")

        result = seeding_service.validate_structure("div-1")

        assert result == {'division_id': "div-1", 'is_valid': True, 'errors': [], 'warnings': []}

    def test_empty_division_is_valid(self, seeding_service):
        result = seeding_service.validate_structure("empty")

        assert result['is_valid'] is True
        assert result['warnings'] == []

    def test_more_advancing_teams_than_positions(self, seeding_service, pool_service, bracket_service):
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C", "D"])
        pool_service.create_pool("tour-1", "div-1", "Pool B", ["E", "F", "G", "H"])
        bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="pools")

        result = seeding_service.validate_structure("div-1")

        assert result['is_valid'] is False
        assert result['errors'] == ["More teams advance from pools (8) than pool-seeded bracket positions (4)"]
        assert result['warnings'] == ["Pools without advancement count: Pool A, Pool B"]

    def test_empty_seeds_warned(self, seeding_service, pool_service, bracket_service):
        """Test manual seeds of a mixed bracket are not counted as open positions"""
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B", "C", "D"], advancement_count=2)
        bracket_service.create_bracket("tour-1", "div-1", "Gold", 4, seeding_source="mixed",
                                       seeds=["X", None, None, None])

        result = seeding_service.validate_structure("div-1")

        assert result['is_valid'] is True
        assert result['warnings'] == [
            "Fewer teams advance from pools (2) than pool-seeded bracket positions (3); 1 seeds will stay empty"
        ]

    def test_no_pool_seeded_brackets_warned(self, seeding_service, pool_service, bracket_service):
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"], advancement_count=1)
        bracket_service.create_bracket("tour-1", "div-1", "Gold", 4)

        result = seeding_service.validate_structure("div-1")

        assert result['is_valid'] is True
        assert result['warnings'] == ["No brackets are seeded from pools"]

    def test_team_in_two_pools(self, seeding_service, pool_service):
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        pool_b = pool_service.create_pool("tour-1", "div-1", "Pool B", ["C", "D"])
        pool_b.teams = ["C", "A"]
        db.session.commit()

        result = seeding_service.validate_structure("div-1")

        assert result['is_valid'] is False
        assert result['errors'] == ['Team "A" plays in pools "Pool A" and "Pool B"']

    def test_unassigned_games_warned(self, seeding_service, pool_service, make_game):
        pool_service.create_pool("tour-1", "div-1", "Pool A", ["A", "B"])
        make_game("A", "X")
        make_game("B", "Y")

        result = seeding_service.validate_structure("div-1")

        assert result['is_valid'] is True
        assert result['warnings'] == ["2 games are not assigned to any pool or bracket"]
