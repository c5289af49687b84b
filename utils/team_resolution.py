import re
from typing import Collection, Optional, Tuple

from constants import (
    PLACEHOLDER_TBD, WINNER_PLACEHOLDER, LOSER_PLACEHOLDER, SEED_PLACEHOLDER, POOL_RANK_PLACEHOLDER
)

_PLACEHOLDER_PATTERNS = [
    re.compile(r"^(Winner|Loser) of Game \d+$"),
    re.compile(r"^Seed \d+$"),
]

# "#2 Pool A" is only a label when "Pool A" is a pool of the division
_POOL_RANK_PATTERN = re.compile(r"^#\d+ (?P<pool_name>.+)$")


def is_placeholder(team_name: Optional[str], pool_names: Collection[str] = ()) -> bool:
    """
    Checks if a team slot value is still unresolved (empty, TBD or a generated label).
    Pool rank labels are recognised only for the given pool names, so a real team
    called "#1 Ladies" stays a team.
    """
    if team_name is None:
        return True
    stripped = team_name.strip()
    if not stripped or stripped == PLACEHOLDER_TBD:
        return True
    if any(pattern.match(stripped) for pattern in _PLACEHOLDER_PATTERNS):
        return True
    match = _POOL_RANK_PATTERN.match(stripped)
    return match is not None and match.group('pool_name') in pool_names


def is_team_final(team_name: Optional[str], pool_names: Collection[str] = ()) -> bool:
    """Checks if a team slot holds a concrete team name."""
    return not is_placeholder(team_name, pool_names)


def winner_placeholder(game_number: int) -> str:
    return WINNER_PLACEHOLDER.format(number=game_number)


def loser_placeholder(game_number: int) -> str:
    return LOSER_PLACEHOLDER.format(number=game_number)


def seed_placeholder(position: int) -> str:
    return SEED_PLACEHOLDER.format(position=position)


def pool_rank_placeholder(rank: int, pool_name: str) -> str:
    return POOL_RANK_PLACEHOLDER.format(rank=rank, pool_name=pool_name)


def winner_and_loser(team_a: Optional[str], team_b: Optional[str],
                     score_a: int, score_b: int) -> Optional[Tuple[str, str]]:
    """
    Returns (winner, loser) for a decided result, None for a tie.
    Participants are returned as stored; callers check that they are final.
    """
    if score_a == score_b:
        return None
    if score_a > score_b:
        return team_a, team_b
    return team_b, team_a
