"""
Core repositories for main entities
"""

from .game_repository import GameRepository
from .pool_repository import PoolRepository
from .bracket_repository import BracketRepository
from .advancement_repository import AdvancementRepository

__all__ = ['GameRepository', 'PoolRepository', 'BracketRepository', 'AdvancementRepository']
