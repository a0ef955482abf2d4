"""
Base repository pattern implementation.

This module provides the generic repository used by the stores. Every
entity of this backend is reversibly deleted through its ``archived_at``
column, so the default queries only see rows that are not archived.
"""

from abc import ABC
from datetime import datetime, timezone
from typing import TypeVar, Generic, List, Optional, Dict, Any, Type
from sqlalchemy.orm import Session, Query
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import inspect

# Type variable for generic entity type
T = TypeVar('T')


class RepositoryError(Exception):
    """Base exception for repository operations."""
    pass


class DuplicateError(RepositoryError):
    """Exception raised when attempting to create duplicate entity."""
    
    def __init__(self, entity_type: str, criteria: Dict[str, Any]):
        super().__init__(f"{entity_type} already exists with criteria: {criteria}")
        self.entity_type = entity_type
        self.criteria = criteria


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.
    
    This class implements the repository pattern, providing a clean
    abstraction over SQLAlchemy operations. Reads exclude archived rows
    unless ``include_archived`` is requested.
    """
    
    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize repository with database session and model class.
        
        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def query(self, include_archived: bool = False) -> Query:
        """
        Base query for the model.

        Args:
            include_archived: Also return archived rows

        Returns:
            SQLAlchemy query
        """
        query = self.db.query(self.model)
        if not include_archived:
            query = query.filter(self.model.archived_at.is_(None))
        return query
    
    def get_by_id_optional(self, entity_id: Any, include_archived: bool = False) -> Optional[T]:
        """
        Get entity by ID, returning None if not found.
        
        Args:
            entity_id: Entity identifier
            include_archived: Also return an archived row
            
        Returns:
            Entity instance or None
        """
        return self.query(include_archived).filter(
            self.model.id == entity_id
        ).first()

    def create(self, entity: T) -> T:
        """
        Create a new entity.
        
        Args:
            entity: Entity instance to create
            
        Returns:
            Created entity with updated fields (e.g., ID)
            
        Raises:
            DuplicateError: If entity violates unique constraints
            RepositoryError: If database operation fails
        """
        try:
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
            return entity
        except IntegrityError:
            self.db.rollback()
            raise DuplicateError(
                self.model.__name__,
                self._extract_entity_dict(entity)
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to create {self.model.__name__}: {str(e)}")

    def create_many(self, entities: List[T]) -> List[T]:
        """
        Insert several entities in one batched write and commit.

        Args:
            entities: Entity instances to create

        Returns:
            The created entities

        Raises:
            DuplicateError: If any entity violates a unique constraint;
                nothing of the batch is persisted
            RepositoryError: If database operation fails
        """
        try:
            self.db.add_all(entities)
            self.db.commit()
            return entities
        except IntegrityError:
            self.db.rollback()
            raise DuplicateError(
                self.model.__name__,
                {"count": len(entities)}
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to create {self.model.__name__} batch: {str(e)}")
    
    def update(self, entity: T, updates: Dict[str, Any]) -> T:
        """
        Update an existing entity.
        
        Args:
            entity: Entity instance to update
            updates: Dictionary of fields to update
            
        Returns:
            Updated entity
            
        Raises:
            DuplicateError: If the update violates unique constraints
            RepositoryError: If update fails
        """
        try:
            for key, value in updates.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            
            self.db.commit()
            self.db.refresh(entity)
            return entity
        except IntegrityError:
            self.db.rollback()
            raise DuplicateError(self.model.__name__, updates)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to update {self.model.__name__}: {str(e)}")
    
    def archive(self, entity: T) -> T:
        """
        Reversibly delete an entity by stamping ``archived_at``.
        
        Args:
            entity: Entity instance
            
        Returns:
            The archived entity
            
        Raises:
            RepositoryError: If archiving fails
        """
        try:
            entity.archived_at = utcnow()
            self.db.commit()
            return entity
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Failed to archive {self.model.__name__}: {str(e)}")
    
    def find_one_by(self, **criteria) -> Optional[T]:
        """
        Find single visible entity by criteria.
        
        Args:
            **criteria: Search criteria as keyword arguments
            
        Returns:
            First matching entity or None
        """
        return self._apply_criteria(self.query(), criteria).first()
    
    def _apply_criteria(self, query: Query, criteria: Dict[str, Any]) -> Query:
        for key, value in criteria.items():
            if hasattr(self.model, key):
                query = query.filter(getattr(self.model, key) == value)
        return query
    
    def _extract_entity_dict(self, entity: T) -> Dict[str, Any]:
        """
        Extract entity column values as dictionary.
        
        Args:
            entity: Entity instance
            
        Returns:
            Dictionary of entity attributes
        """
        mapper = inspect(entity).mapper
        return {
            column.key: getattr(entity, column.key)
            for column in mapper.column_attrs
        }
