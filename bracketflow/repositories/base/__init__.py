from .base_repository import BaseRepository, store_operation

__all__ = ['BaseRepository', 'store_operation']
