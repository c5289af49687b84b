"""
Repository Layer for the tournament engine
Provides data access abstraction for the service layer
"""

from .base.base_repository import BaseRepository

__all__ = ['BaseRepository']
