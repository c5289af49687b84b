# Game lifecycle
GAME_STATUS_SCHEDULED = "scheduled"
GAME_STATUS_IN_PROGRESS = "in_progress"
GAME_STATUS_COMPLETED = "completed"
GAME_STATUS_CANCELLED = "cancelled"

GAME_STATUSES = [
    GAME_STATUS_SCHEDULED,
    GAME_STATUS_IN_PROGRESS,
    GAME_STATUS_COMPLETED,
    GAME_STATUS_CANCELLED,
]

# Statuses that keep a pool from being complete
OPEN_GAME_STATUSES = [GAME_STATUS_SCHEDULED, GAME_STATUS_IN_PROGRESS]

# Allowed status transitions; cancelled is terminal, completed may be reopened for corrections
GAME_STATUS_TRANSITIONS = {
    GAME_STATUS_SCHEDULED: {GAME_STATUS_SCHEDULED, GAME_STATUS_IN_PROGRESS, GAME_STATUS_COMPLETED, GAME_STATUS_CANCELLED},
    GAME_STATUS_IN_PROGRESS: {GAME_STATUS_SCHEDULED, GAME_STATUS_IN_PROGRESS, GAME_STATUS_COMPLETED, GAME_STATUS_CANCELLED},
    GAME_STATUS_COMPLETED: {GAME_STATUS_IN_PROGRESS, GAME_STATUS_COMPLETED},
    GAME_STATUS_CANCELLED: {GAME_STATUS_CANCELLED},
}

# Advancement outcomes
OUTCOME_WINNER = "winner"
OUTCOME_LOSER = "loser"
ADVANCEMENT_OUTCOMES = [OUTCOME_WINNER, OUTCOME_LOSER]

# Maximum number of upstream games feeding one game (one per team slot)
MAX_GAME_FEEDS = 2

# Pool configuration
MIN_POOL_TEAMS = 2
MAX_POOL_TEAMS = 16
MAX_POOL_NAME_LENGTH = 50

# Bracket configuration
BRACKET_SIZES = [4, 8, 16, 32]
SEEDING_SOURCE_MANUAL = "manual"
SEEDING_SOURCE_POOLS = "pools"
SEEDING_SOURCE_MIXED = "mixed"
SEEDING_SOURCES = [SEEDING_SOURCE_MANUAL, SEEDING_SOURCE_POOLS, SEEDING_SOURCE_MIXED]
POOL_SEEDED_SOURCES = [SEEDING_SOURCE_POOLS, SEEDING_SOURCE_MIXED]

# Round names counted from the end of the bracket
FINALS = "Finals"
SEMIFINALS = "Semifinals"
QUARTERFINALS = "Quarterfinals"
THIRD_PLACE = "3rd Place"
ROUND_NAMES_FROM_END = [FINALS, SEMIFINALS, QUARTERFINALS]

# Placeholder labels for unresolved team slots
PLACEHOLDER_TBD = "TBD"
WINNER_PLACEHOLDER = "Winner of Game {number}"
LOSER_PLACEHOLDER = "Loser of Game {number}"
SEED_PLACEHOLDER = "Seed {position}"
POOL_RANK_PLACEHOLDER = "#{rank} {pool_name}"

# Cache keys (owned by the standings layer, invalidated by the engine)
DIVISION_STANDINGS_KEY = "standings:division:{division_id}"
POOL_STANDINGS_KEY = "standings:pool:{pool_id}"
TEAM_CACHE_KEY = "team:{division_id}:{team_name}"

# Engine defaults
DEFAULT_POOL_CHECK_DEBOUNCE_SECONDS = 5
DEFAULT_PROCESSED_GAME_TTL_SECONDS = 24 * 60 * 60
DEFAULT_PROCESSED_GAME_MAX_ENTRIES = 10000
DEFAULT_STORE_RETRY_ATTEMPTS = 3
DEFAULT_STORE_RETRY_DELAY_SECONDS = 0.2
DEFAULT_STANDINGS_CACHE_TTL_SECONDS = 300
