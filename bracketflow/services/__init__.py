"""
Service Layer for the tournament engine
Provides business logic and orchestration
"""

from .base.base_service import BaseService
from .core import (
    PoolService, BracketService, AdvancementService, StandingsService,
    SeedingService, GameService, CompletionOrchestrator
)

__all__ = [
    'BaseService',
    'PoolService',
    'BracketService',
    'AdvancementService',
    'StandingsService',
    'SeedingService',
    'GameService',
    'CompletionOrchestrator'
]
