# Pure tournament logic: no database access, safe to call from any layer

from .team_resolution import (
    is_placeholder,
    is_team_final,
    winner_and_loser,
    winner_placeholder,
    loser_placeholder,
    seed_placeholder,
    pool_rank_placeholder
)

from .standings import (
    compute_standings,
    rank_qualifiers
)

from .advancement_graph import (
    AdvancementEdge,
    AdvancementGraph
)

from .graph_builder import (
    GameSkeleton,
    generate_pool_games,
    generate_bracket_games,
    generate_bracket_order,
    first_round_seed_pairs,
    get_round_name
)
