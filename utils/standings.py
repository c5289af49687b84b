from typing import Collection, Dict, List, Optional, Sequence

from models import Standing
from constants import GAME_STATUS_COMPLETED
from .team_resolution import is_team_final


def _ranking_key(standing: Standing):
    # wins desc, point differential desc, points for desc, team name asc
    return (-standing.wins, -standing.point_differential, -standing.points_for, standing.team_name)


def compute_standings(games, teams: Optional[Sequence[str]] = None,
                      pool_id: Optional[str] = None,
                      division_id: Optional[str] = None,
                      pool_names: Collection[str] = ()) -> List[Standing]:
    """
    Computes ranked standings from a set of games.
    Only completed games count. A tie counts as neither win nor loss but is a game played.
    When `teams` is given, games involving any other team are ignored; otherwise every
    concrete team name found in completed games is ranked; `pool_names` lets
    "#1 Pool A" style labels be recognised as unresolved.
    Returns a new list on every call; inputs are never modified.
    """
    standings: Dict[str, Standing] = {}

    if teams is not None:
        for team_name in teams:
            if team_name not in standings:
                standings[team_name] = Standing(team_name=team_name, pool_id=pool_id, division_id=division_id)

    for game in games:
        if game.status != GAME_STATUS_COMPLETED:
            continue
        if teams is None:
            # Only games between two real teams can be ranked
            if not is_team_final(game.team_a, pool_names) or not is_team_final(game.team_b, pool_names):
                continue
            for team_name in (game.team_a, game.team_b):
                if team_name not in standings:
                    standings[team_name] = Standing(team_name=team_name, pool_id=pool_id, division_id=division_id)
        elif game.team_a not in standings or game.team_b not in standings:
            continue

        team_a_stats = standings[game.team_a]
        team_b_stats = standings[game.team_b]
        score_a = game.score_a or 0
        score_b = game.score_b or 0

        team_a_stats.games_played += 1
        team_b_stats.games_played += 1
        team_a_stats.points_for += score_a
        team_a_stats.points_against += score_b
        team_b_stats.points_for += score_b
        team_b_stats.points_against += score_a

        if score_a > score_b:
            team_a_stats.wins += 1
            team_b_stats.losses += 1
        elif score_b > score_a:
            team_b_stats.wins += 1
            team_a_stats.losses += 1
        else:
            team_a_stats.ties += 1
            team_b_stats.ties += 1

    # sorted() is stable: fully identical records keep first-seen order
    ranked = sorted(standings.values(), key=_ranking_key)
    for i, standing in enumerate(ranked):
        standing.rank = i + 1
    return ranked


def rank_qualifiers(standings_by_pool: Dict[str, List[Standing]],
                    advancement_counts: Dict[str, Optional[int]]) -> List[Standing]:
    """
    Orders the qualifying teams of several pools for bracket seeding.
    All pool winners come first, then all runners-up, and so on. Within one finishing
    position teams are ordered by point differential, points for, pool order and name.
    `standings_by_pool` preserves pool order; a count of None qualifies the whole pool.
    """
    pool_order = {pool_id: index for index, pool_id in enumerate(standings_by_pool)}
    qualifiers: List[Standing] = []
    for pool_id, pool_standings in standings_by_pool.items():
        count = advancement_counts.get(pool_id)
        limit = len(pool_standings) if count is None else min(count, len(pool_standings))
        qualifiers.extend(s for s in pool_standings if s.rank <= limit)

    qualifiers.sort(key=lambda s: (s.rank, -s.point_differential, -s.points_for,
                                   pool_order.get(s.pool_id, 0), s.team_name))
    return qualifiers
