"""
Base Repository Class for the tournament engine
Provides data access patterns and query abstractions
"""

from contextlib import contextmanager
from typing import TypeVar, Generic, Optional, List, Dict, Any, Union
from sqlalchemy.orm import Session, Query
from sqlalchemy import desc, asc
from sqlalchemy.exc import OperationalError, InterfaceError
from models import db
from bracketflow.exceptions import StoreUnavailable
import logging

T = TypeVar('T')
logger = logging.getLogger(__name__)


@contextmanager
def store_operation(operation: str):
    """
    Translates connection-level SQLAlchemy failures into StoreUnavailable

    The session is rolled back so the caller can retry on a clean transaction.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        db.session.rollback()
        logger.warning(f"Store unavailable during {operation}: {str(e)}")
        raise StoreUnavailable(f"Store unavailable during {operation}", operation) from e


class BaseRepository(Generic[T]):
    """
    Base repository providing data access patterns
    All repositories should inherit from this class
    """

    def __init__(self, model_class: type[T]):
        """
        Initialize the repository with a model class

        Args:
            model_class: The SQLAlchemy model class this repository manages
        """
        self.model_class = model_class
        self.db = db
        self.logger = logging.getLogger(f"{__name__}.{model_class.__name__}Repository")

    def get_by_id(self, id: str, session: Optional[Session] = None) -> Optional[T]:
        """
        Get entity by ID

        Args:
            id: The primary key ID
            session: Optional database session

        Returns:
            The entity if found, None otherwise
        """
        session = session or self.db.session
        with store_operation(f"get {self.model_class.__name__}"):
            return session.get(self.model_class, id)

    def find_one(self, session: Optional[Session] = None, **filters) -> Optional[T]:
        """
        Find single entity by filters

        Args:
            session: Optional database session
            **filters: Filter criteria

        Returns:
            First matching entity or None
        """
        session = session or self.db.session
        with store_operation(f"find {self.model_class.__name__}"):
            return session.query(self.model_class).filter_by(**filters).first()

    def find_all(self, session: Optional[Session] = None, **filters) -> List[T]:
        """
        Find all entities matching filters

        Args:
            session: Optional database session
            **filters: Filter criteria

        Returns:
            List of matching entities
        """
        session = session or self.db.session
        with store_operation(f"query {self.model_class.__name__}"):
            return session.query(self.model_class).filter_by(**filters).all()

    def find_by(self, criteria: Dict[str, Any],
                order_by: Optional[Union[str, List[str]]] = None,
                limit: Optional[int] = None,
                session: Optional[Session] = None) -> List[T]:
        """
        Find entities with ordering

        Args:
            criteria: Dictionary of filter criteria
            order_by: Column(s) to order by, '-' prefix for descending
            limit: Maximum number of results
            session: Optional database session

        Returns:
            List of matching entities
        """
        session = session or self.db.session
        query = session.query(self.model_class)

        for key, value in criteria.items():
            if hasattr(self.model_class, key):
                query = query.filter(getattr(self.model_class, key) == value)

        if order_by:
            if isinstance(order_by, str):
                order_by = [order_by]

            for order in order_by:
                if order.startswith('-'):
                    column = order[1:]
                    if hasattr(self.model_class, column):
                        query = query.order_by(desc(getattr(self.model_class, column)))
                else:
                    if hasattr(self.model_class, order):
                        query = query.order_by(asc(getattr(self.model_class, order)))

        if limit:
            query = query.limit(limit)

        with store_operation(f"query {self.model_class.__name__}"):
            return query.all()

    def create(self, commit: bool = False, **kwargs) -> T:
        """
        Create new entity

        Args:
            commit: Whether to commit immediately
            **kwargs: Entity attributes

        Returns:
            The created entity
        """
        entity = self.model_class(**kwargs)
        self.db.session.add(entity)

        if commit:
            self.commit()
        else:
            self.flush()

        self.logger.info(f"Created {self.model_class.__name__} with ID: {getattr(entity, 'id', 'N/A')}")
        return entity

    def bulk_create(self, entities_data: List[Dict[str, Any]],
                    commit: bool = False) -> List[T]:
        """
        Create multiple entities at once

        Args:
            entities_data: List of dictionaries with entity data
            commit: Whether to commit immediately

        Returns:
            List of created entities
        """
        entities = []
        for data in entities_data:
            entity = self.model_class(**data)
            self.db.session.add(entity)
            entities.append(entity)

        if commit:
            self.commit()
        else:
            self.flush()

        self.logger.info(f"Bulk created {len(entities)} {self.model_class.__name__} entities")
        return entities

    def update(self, id: str, commit: bool = False, **kwargs) -> Optional[T]:
        """
        Update entity by ID

        Args:
            id: The entity ID to update
            commit: Whether to commit immediately
            **kwargs: Attributes to update

        Returns:
            The updated entity if found, None otherwise
        """
        entity = self.get_by_id(id)
        if entity:
            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
                else:
                    self.logger.warning(f"Attribute {key} not found on {self.model_class.__name__}")

            if commit:
                self.commit()
            else:
                self.flush()

            self.logger.info(f"Updated {self.model_class.__name__} with ID: {id}")
        else:
            self.logger.warning(f"{self.model_class.__name__} with ID {id} not found for update")

        return entity

    def delete(self, id: str, commit: bool = False) -> bool:
        """
        Delete entity by ID

        Args:
            id: The entity ID to delete
            commit: Whether to commit immediately

        Returns:
            True if deleted, False if not found
        """
        entity = self.get_by_id(id)
        if entity:
            self.db.session.delete(entity)

            if commit:
                self.commit()
            else:
                self.flush()

            self.logger.info(f"Deleted {self.model_class.__name__} with ID: {id}")
            return True

        self.logger.warning(f"{self.model_class.__name__} with ID {id} not found for deletion")
        return False

    def delete_all(self, entities: List[T], commit: bool = False) -> int:
        """
        Delete a list of already loaded entities

        Returns:
            Number of deleted entities
        """
        for entity in entities:
            self.db.session.delete(entity)

        if commit:
            self.commit()
        else:
            self.flush()

        self.logger.info(f"Deleted {len(entities)} {self.model_class.__name__} entities")
        return len(entities)

    def exists(self, id: str) -> bool:
        with store_operation(f"exists {self.model_class.__name__}"):
            return self.db.session.query(
                self.db.session.query(self.model_class).filter_by(id=id).exists()
            ).scalar()

    def count(self, **filters) -> int:
        query = self.db.session.query(self.model_class)
        if filters:
            query = query.filter_by(**filters)
        with store_operation(f"count {self.model_class.__name__}"):
            return query.count()

    def get_query(self, session: Optional[Session] = None) -> Query:
        """
        Get base query for advanced operations

        Args:
            session: Optional database session

        Returns:
            SQLAlchemy Query object
        """
        session = session or self.db.session
        return session.query(self.model_class)

    def refresh(self, entity: T) -> None:
        """
        Re-read entity state from the database, discarding cached attributes

        Args:
            entity: The entity to refresh
        """
        with store_operation(f"refresh {self.model_class.__name__}"):
            self.db.session.refresh(entity)

    def flush(self) -> None:
        """
        Flush pending changes to database without committing
        """
        with store_operation(f"flush {self.model_class.__name__}"):
            self.db.session.flush()

    def commit(self) -> None:
        """
        Commit current transaction
        """
        try:
            with store_operation(f"commit {self.model_class.__name__}"):
                self.db.session.commit()
            self.logger.debug("Transaction committed successfully")
        except StoreUnavailable:
            raise
        except Exception as e:
            self.logger.error(f"Error committing transaction: {str(e)}")
            self.rollback()
            raise

    def rollback(self) -> None:
        """
        Rollback current transaction
        """
        self.db.session.rollback()
        self.logger.info("Transaction rolled back")
