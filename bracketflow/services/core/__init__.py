"""
Core services for main entities
"""

from .pool_service import PoolService
from .bracket_service import BracketService
from .advancement_service import AdvancementService, AdvancementResult, TargetResult
from .standings_service import StandingsService
from .seeding_service import SeedingService
from .game_service import GameService
from .completion_service import CompletionOrchestrator, CompletionReport

__all__ = [
    'PoolService',
    'BracketService',
    'AdvancementService',
    'AdvancementResult',
    'TargetResult',
    'StandingsService',
    'SeedingService',
    'GameService',
    'CompletionOrchestrator',
    'CompletionReport'
]
