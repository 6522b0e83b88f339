"""Base repository with shared get-by-ID and scope patterns.

Subclasses specify model_class and id_prefix; the base
provides lookups, scope-filtered queries and id generation.
"""

import uuid
from typing import TypeVar, Generic, List, Optional, Type
from sqlalchemy.orm import Session, Query

from ..core.scope import OwnerScope, scope_filter
from ..database import Base, is_postgresql

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for scoped SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Link)
        id_prefix:       Prefix for generated ids (e.g., "lnk")
    """

    model_class: Type[ModelT]
    id_prefix: str

    def __init__(self, db: Session):
        self.db = db

    def new_id(self) -> str:
        return f"{self.id_prefix}-{uuid.uuid4().hex[:12]}"

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def in_scope(self, scope: OwnerScope) -> Query:
        """Query restricted to rows owned by ``scope``."""
        return self._base_query().filter(*scope_filter(self.model_class, scope))

    def get_by_id_optional(self, entity_id: str, lock: bool = False) -> Optional[ModelT]:
        """Get entity by primary key, or None if not found.

        ``lock`` takes a row lock (``SELECT ... FOR UPDATE``) on backends
        that support it.
        """
        query = self._base_query().filter(self.model_class.id == entity_id)
        if lock and is_postgresql():
            query = query.with_for_update()
        return query.first()

    def get_many(self, entity_ids: List[str]) -> List[ModelT]:
        if not entity_ids:
            return []
        return self._base_query().filter(self.model_class.id.in_(entity_ids)).all()
