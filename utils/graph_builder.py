"""
Graph Builder - static shape of round-robin pools and single-elimination brackets.

Skeletons are keyed locally ("P1".., "B1"..); the services map keys to stored
game ids when persisting. Bracket edges are created through AdvancementGraph so
the forward and backward lists of every skeleton agree.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from constants import (
    GAME_STATUS_SCHEDULED, BRACKET_SIZES, MIN_POOL_TEAMS, MAX_POOL_TEAMS,
    ROUND_NAMES_FROM_END, THIRD_PLACE, OUTCOME_WINNER, OUTCOME_LOSER, PLACEHOLDER_TBD
)
from bracketflow.exceptions import InvalidConfiguration
from utils.advancement_graph import AdvancementGraph
from utils.team_resolution import winner_placeholder, loser_placeholder, seed_placeholder


@dataclass
class GameSkeleton:
    key: str
    team_a: str
    team_b: str
    status: str = GAME_STATUS_SCHEDULED
    pool_game_number: Optional[int] = None
    bracket_round: Optional[str] = None
    bracket_round_number: Optional[int] = None
    bracket_position: Optional[int] = None
    bracket_game_number: Optional[int] = None
    seed_positions: Optional[tuple] = None
    game_label: Optional[str] = None
    depends_on_games: List[str] = field(default_factory=list)
    winner_advances_to: List[str] = field(default_factory=list)
    loser_advances_to: List[str] = field(default_factory=list)


def generate_pool_games(teams: Sequence[str], pool_name: Optional[str] = None) -> List[GameSkeleton]:
    """
    Generate a full round robin: one game per unordered pair of teams.

    For N teams this yields N*(N-1)/2 games numbered 1..N*(N-1)/2.

    Raises:
        InvalidConfiguration: fewer than 2 or more than 16 teams, blank or duplicate names
    """
    teams = list(teams or [])
    if len(teams) < MIN_POOL_TEAMS:
        raise InvalidConfiguration(f"Pool must have at least {MIN_POOL_TEAMS} teams to generate games", "teams")
    if len(teams) > MAX_POOL_TEAMS:
        raise InvalidConfiguration(f"Pool cannot have more than {MAX_POOL_TEAMS} teams", "teams")
    if any(not team or not team.strip() for team in teams):
        raise InvalidConfiguration("Team names cannot be empty", "teams")
    if len(set(teams)) != len(teams):
        raise InvalidConfiguration("Pool contains duplicate team names", "teams")

    games = []
    game_number = 1
    for i in range(len(teams)):
        for j in range(i + 1, len(teams)):
            label = f"{pool_name} Game {game_number}" if pool_name else f"Game {game_number}"
            games.append(GameSkeleton(
                key=f"P{game_number}",
                team_a=teams[i],
                team_b=teams[j],
                pool_game_number=game_number,
                game_label=label,
            ))
            game_number += 1
    return games


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Name a round counted from the start: Finals, Semifinals, Quarterfinals, else 'Round N'."""
    rounds_from_end = total_rounds - round_number
    if rounds_from_end < len(ROUND_NAMES_FROM_END):
        return ROUND_NAMES_FROM_END[rounds_from_end]
    return f"Round {round_number}"


def generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Standard seeding order for the first round.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6] -> 1v8, 4v5, 2v7, 3v6, so the top
    two seeds can only meet in the final.
    """
    if bracket_size == 2:
        return [1, 2]
    upper_half = generate_bracket_order(bracket_size // 2)
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])
    return result


def first_round_seed_pairs(size: int) -> List[tuple]:
    """Seed position pairs of the first-round games, in bracket position order."""
    order = generate_bracket_order(size)
    return [(order[i], order[i + 1]) for i in range(0, len(order), 2)]


def validate_bracket_size(size) -> int:
    if not isinstance(size, int) or isinstance(size, bool) or size not in BRACKET_SIZES:
        raise InvalidConfiguration(
            f"Bracket size must be one of {', '.join(str(s) for s in BRACKET_SIZES)}", "size")
    return size


def generate_bracket_games(size: int, seeds: Optional[Sequence[Optional[str]]] = None,
                           include_third_place: bool = False,
                           bracket_name: Optional[str] = None) -> List[GameSkeleton]:
    """
    Build the single-elimination tree for a bracket of `size` teams.

    Args:
        size: 4, 8, 16 or 32
        seeds: optional team names by seed position (index 0 = seed 1); None, blank or
            TBD entries become "Seed N"
        include_third_place: add a game between the two semifinal losers
        bracket_name: prefix for game labels

    Returns:
        size-1 skeletons (size with the third place game), ordered by round
        then position, numbered 1..n in that order

    Raises:
        InvalidConfiguration: size not in {4, 8, 16, 32} or seeds of the wrong length
    """
    validate_bracket_size(size)
    seeds = list(seeds) if seeds is not None else [None] * size
    if len(seeds) != size:
        raise InvalidConfiguration(f"Expected {size} seeds, got {len(seeds)}", "seeds")

    total_rounds = int(math.log2(size))
    graph = AdvancementGraph()
    skeletons: List[GameSkeleton] = []
    rounds: List[List[GameSkeleton]] = []
    game_number = 1

    def seed_name(position: int) -> str:
        # pool references such as "#1 Pool A" are kept as the displayed placeholder
        team = seeds[position - 1]
        if team is None or not team.strip() or team.strip() == PLACEHOLDER_TBD:
            return seed_placeholder(position)
        return team.strip()

    def label(round_name: str, position: int) -> str:
        prefix = f"{bracket_name} " if bracket_name else ""
        return f"{prefix}{round_name} Game {position}"

    for round_number in range(1, total_rounds + 1):
        round_name = get_round_name(round_number, total_rounds)
        games_in_round = size // (2 ** round_number)
        round_games = []
        for position in range(1, games_in_round + 1):
            key = f"B{game_number}"
            if round_number == 1:
                seed_a, seed_b = first_round_seed_pairs(size)[position - 1]
                skeleton = GameSkeleton(key=key, team_a=seed_name(seed_a), team_b=seed_name(seed_b),
                                        seed_positions=(seed_a, seed_b))
            else:
                feeder_a = rounds[-1][(position - 1) * 2]
                feeder_b = rounds[-1][(position - 1) * 2 + 1]
                skeleton = GameSkeleton(key=key,
                                        team_a=winner_placeholder(feeder_a.bracket_game_number),
                                        team_b=winner_placeholder(feeder_b.bracket_game_number))
            skeleton.bracket_round = round_name
            skeleton.bracket_round_number = round_number
            skeleton.bracket_position = position
            skeleton.bracket_game_number = game_number
            skeleton.game_label = label(round_name, position)
            graph.add_node(key)
            if round_number > 1:
                graph.add_edge(feeder_a.key, key, OUTCOME_WINNER)
                graph.add_edge(feeder_b.key, key, OUTCOME_WINNER)
            round_games.append(skeleton)
            skeletons.append(skeleton)
            game_number += 1
        rounds.append(round_games)

    if include_third_place:
        semifinals = rounds[-2]
        key = f"B{game_number}"
        skeleton = GameSkeleton(
            key=key,
            team_a=loser_placeholder(semifinals[0].bracket_game_number),
            team_b=loser_placeholder(semifinals[1].bracket_game_number),
            bracket_round=THIRD_PLACE,
            bracket_round_number=total_rounds,
            bracket_position=2,
            bracket_game_number=game_number,
            game_label=label(THIRD_PLACE, 1),
        )
        graph.add_node(key)
        graph.add_edge(semifinals[0].key, key, OUTCOME_LOSER)
        graph.add_edge(semifinals[1].key, key, OUTCOME_LOSER)
        skeletons.append(skeleton)

    for skeleton in skeletons:
        skeleton.depends_on_games = graph.depends_on(skeleton.key)
        skeleton.winner_advances_to = graph.advances_to(skeleton.key, OUTCOME_WINNER)
        skeleton.loser_advances_to = graph.advances_to(skeleton.key, OUTCOME_LOSER)
    return skeletons


def bracket_round_count(size: int) -> int:
    return int(math.log2(validate_bracket_size(size)))
