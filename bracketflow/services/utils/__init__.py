"""
Service utilities and helpers
The service container lives in .service_container and is imported from there,
since it depends on the core services.
"""

from .cache_manager import CacheManager, CacheableService, cached
from .change_stream import ChangeStream, GameChange
from .debounce import CoalescingDebouncer
from .idempotency import IdempotencyLedger

__all__ = [
    'CacheManager', 'CacheableService', 'cached',
    'ChangeStream', 'GameChange',
    'CoalescingDebouncer',
    'IdempotencyLedger'
]
