"""
Base Repository implementation.
Provides common data access patterns with guaranteed eager loading.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TypeVar, Generic, Any, Sequence

from sqlalchemy import Select
from sqlalchemy.orm import Session

from shared.config.constants import Limits


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    """Base filters for repository queries."""

    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        """Clamp pagination into the allowed window."""
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Subclasses must implement:
    - model: The SQLAlchemy model class
    - _base_query(): Base query with eager loading
    - _apply_filters(): Entity-specific filters
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    @abstractmethod
    def _base_query(self) -> Select:
        """Return base query with proper eager loading and ordering."""
        ...

    @abstractmethod
    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        """Apply entity-specific filters to query."""
        ...

    def find_all(self, filters: RepositoryFilters | None = None) -> Sequence[ModelT]:
        """Find all entities matching filters, paginated."""
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._base_query(), filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(self, entity_id: Any) -> ModelT | None:
        """Find entity by primary key, or None."""
        return self._db.scalar(self._base_query().where(self.model.id == entity_id))

    def find_by_ids(self, entity_ids: Sequence[Any]) -> Sequence[ModelT]:
        """Find entities by primary keys (order not guaranteed)."""
        if not entity_ids:
            return []
        query = self._base_query().where(self.model.id.in_(entity_ids))
        return self._db.execute(query).scalars().unique().all()
