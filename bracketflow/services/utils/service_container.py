"""
Service Container for Dependency Injection
Manages service and repository instances
"""

import threading
import time
from typing import Dict, Any, Optional, List, Mapping
from bracketflow.repositories.core import (
    GameRepository, PoolRepository, BracketRepository, AdvancementRepository
)
from bracketflow.services.core import (
    PoolService, BracketService, AdvancementService, StandingsService,
    SeedingService, GameService, CompletionOrchestrator
)
from bracketflow.services.utils.cache_manager import CacheManager
from bracketflow.services.utils.change_stream import ChangeStream
from bracketflow.services.utils.idempotency import IdempotencyLedger
from constants import (
    DEFAULT_POOL_CHECK_DEBOUNCE_SECONDS, DEFAULT_PROCESSED_GAME_TTL_SECONDS,
    DEFAULT_PROCESSED_GAME_MAX_ENTRIES, DEFAULT_STORE_RETRY_ATTEMPTS,
    DEFAULT_STORE_RETRY_DELAY_SECONDS, DEFAULT_STANDINGS_CACHE_TTL_SECONDS
)
import logging

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Simple dependency injection container for services and repositories
    Provides centralized management of service instances
    """

    def __init__(self, config: Optional[Mapping[str, Any]] = None, app=None):
        """
        Initialize the container

        Args:
            config: Application config (Flask app.config or a plain dict)
            app: Flask app, used to push an app context for background pool checks
        """
        self.config = dict(config or {})
        self.app = app
        self._repositories: Dict[str, Any] = {}
        self._services: Dict[str, Any] = {}
        self.cache_manager: Optional[CacheManager] = None
        self.change_stream: Optional[ChangeStream] = None
        self.orchestrator: Optional[CompletionOrchestrator] = None
        self._initialized = False

    def initialize(self) -> None:
        """
        Initialize all repositories and services
        Called once during application startup
        """
        if self._initialized:
            logger.warning("Service container already initialized")
            return

        try:
            self._initialize_repositories()
            self._initialize_services()
            self._initialized = True
            logger.info("Service container initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize service container: {str(e)}")
            raise

    def _initialize_repositories(self) -> None:
        """Initialize all repository instances"""
        self._repositories['game'] = GameRepository()
        self._repositories['pool'] = PoolRepository()
        self._repositories['bracket'] = BracketRepository()
        self._repositories['advancement'] = AdvancementRepository()

        logger.info(f"Initialized {len(self._repositories)} repositories")

    def _initialize_services(self) -> None:
        """Initialize all service instances with their dependencies"""
        games = self._repositories['game']
        pools = self._repositories['pool']
        brackets = self._repositories['bracket']

        self.cache_manager = CacheManager(
            default_ttl=self.config.get('STANDINGS_CACHE_TTL_SECONDS', DEFAULT_STANDINGS_CACHE_TTL_SECONDS))
        self.change_stream = ChangeStream()

        self._services['pool'] = PoolService(pools, games, cache_manager=self.cache_manager)
        self._services['bracket'] = BracketService(brackets, games, pools)
        self._services['advancement'] = AdvancementService(self._repositories['advancement'], games, pools)
        self._services['standings'] = StandingsService(games, pools, cache_manager=self.cache_manager)
        self._services['seeding'] = SeedingService(brackets, pools, games)
        self._services['game'] = GameService(games, self.change_stream)

        clock = self.config.get('DEBOUNCE_CLOCK') or time.monotonic
        timer_factory = self.config.get('DEBOUNCE_TIMER_FACTORY') or threading.Timer
        ledger = IdempotencyLedger(
            ttl=self.config.get('PROCESSED_GAME_TTL_SECONDS', DEFAULT_PROCESSED_GAME_TTL_SECONDS),
            max_entries=self.config.get('PROCESSED_GAME_MAX_ENTRIES', DEFAULT_PROCESSED_GAME_MAX_ENTRIES),
            clock=clock
        )
        self.orchestrator = CompletionOrchestrator(
            self._services['advancement'],
            self._services['seeding'],
            self.cache_manager,
            game_repository=games,
            ledger=ledger,
            debounce_window=self.config.get('POOL_CHECK_DEBOUNCE_SECONDS', DEFAULT_POOL_CHECK_DEBOUNCE_SECONDS),
            retry_attempts=self.config.get('STORE_RETRY_ATTEMPTS', DEFAULT_STORE_RETRY_ATTEMPTS),
            retry_delay=self.config.get('STORE_RETRY_DELAY_SECONDS', DEFAULT_STORE_RETRY_DELAY_SECONDS),
            clock=clock,
            timer_factory=timer_factory,
            app=self.app
        )
        self._services['completion'] = self.orchestrator
        self.change_stream.subscribe(self.orchestrator.handle_change)

        logger.info(f"Initialized {len(self._services)} services")

    def get_service(self, name: str) -> Optional[Any]:
        """
        Get service by name

        Args:
            name: Service name (e.g., 'game', 'pool', 'bracket')

        Returns:
            Service instance or None if not found
        """
        if not self._initialized:
            raise RuntimeError("Service container not initialized. Call initialize() first.")

        service = self._services.get(name)
        if not service:
            logger.warning(f"Service '{name}' not found in container")

        return service

    def get_repository(self, name: str) -> Optional[Any]:
        if not self._initialized:
            raise RuntimeError("Service container not initialized. Call initialize() first.")

        repository = self._repositories.get(name)
        if not repository:
            logger.warning(f"Repository '{name}' not found in container")

        return repository

    def list_services(self) -> List[str]:
        return list(self._services.keys())

    def list_repositories(self) -> List[str]:
        return list(self._repositories.keys())

    def reset(self) -> None:
        """
        Reset the container, clearing all instances
        Useful for testing
        """
        if self.orchestrator is not None:
            self.orchestrator.shutdown()
            self.change_stream.unsubscribe(self.orchestrator.handle_change)
        self._repositories.clear()
        self._services.clear()
        self.orchestrator = None
        self._initialized = False
        logger.info("Service container reset")
