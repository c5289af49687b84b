"""
Base Service Class with Repository Pattern
Provides common business logic patterns for all services
"""

from typing import TypeVar, Generic, Optional, List
from bracketflow.repositories.base import BaseRepository
from bracketflow.exceptions import NotFoundError
from models import db
import logging

T = TypeVar('T')
logger = logging.getLogger(__name__)


class BaseService(Generic[T]):
    """
    Base service class providing common business operations
    All services should inherit from this class
    """

    def __init__(self, repository: BaseRepository[T]):
        """
        Initialize the service with a repository

        Args:
            repository: The repository instance for data access
        """
        self.repository = repository
        self.db = db
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def get_by_id(self, id: str) -> Optional[T]:
        """
        Get entity by ID

        Args:
            id: The primary key ID

        Returns:
            The entity if found, None otherwise
        """
        return self.repository.get_by_id(id)

    def require(self, id: str, resource: str) -> T:
        """
        Get entity by ID or raise

        Raises:
            NotFoundError: If no entity has this ID
        """
        entity = self.repository.get_by_id(id)
        if entity is None:
            raise NotFoundError(resource, id)
        return entity

    def get_all(self, **filters) -> List[T]:
        """
        Get all entities with optional filters

        Args:
            **filters: Optional filter criteria

        Returns:
            List of entities
        """
        if filters:
            return self.repository.find_all(**filters)
        return self.repository.find_all()

    def exists(self, id: str) -> bool:
        return self.repository.exists(id)

    def count(self, **filters) -> int:
        return self.repository.count(**filters)

    def commit(self) -> None:
        """
        Commit current transaction
        """
        self.repository.commit()

    def rollback(self) -> None:
        """
        Rollback current transaction
        """
        self.repository.rollback()

    def flush(self) -> None:
        """
        Flush pending changes without committing
        """
        self.repository.flush()

    def refresh(self, entity: T) -> None:
        """
        Refresh entity from database

        Args:
            entity: The entity to refresh
        """
        self.repository.refresh(entity)
