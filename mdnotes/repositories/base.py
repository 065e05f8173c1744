"""Base repository with owner-scoped, soft-delete-aware lookups.

Every user-owned entity (files, groups) carries a ``user_id`` and a
``deleted_at`` column. Subclasses set model_class and not_found_error; the
base provides the partitioned queries and the lifecycle writes so services
never filter on ``deleted_at`` themselves.
"""

from datetime import datetime, timezone
from typing import TypeVar, Generic, Optional, Type

import sqlalchemy.exc
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import ConflictError, NoteException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for owner-scoped SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., MarkdownFile)
        not_found_error: Exception class to raise from get_active_or_raise
    """

    model_class: Type[ModelT]
    not_found_error: Type[NoteException]

    def __init__(self, db: Session):
        self.db = db

    # -- Partitioned queries -------------------------------------------------

    def owned_query(self, owner_id: str) -> Query:
        """All rows of this owner, active and trashed."""
        return self.db.query(self.model_class).filter(self.model_class.user_id == owner_id)

    def active_query(self, owner_id: str) -> Query:
        return self.owned_query(owner_id).filter(self.model_class.deleted_at.is_(None))

    def trashed_query(self, owner_id: str) -> Query:
        return self.owned_query(owner_id).filter(self.model_class.deleted_at.isnot(None))

    # -- Lookups -------------------------------------------------------------

    def get_active(self, owner_id: str, entity_id: str) -> Optional[ModelT]:
        return self.active_query(owner_id).filter(self.model_class.id == entity_id).first()

    def get_active_or_raise(self, owner_id: str, entity_id: str) -> ModelT:
        entity = self.get_active(owner_id, entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_trashed(self, owner_id: str, entity_id: str) -> Optional[ModelT]:
        return self.trashed_query(owner_id).filter(self.model_class.id == entity_id).first()

    def get_owned(self, owner_id: str, entity_id: str) -> Optional[ModelT]:
        """Row of this owner regardless of soft-delete status."""
        return self.owned_query(owner_id).filter(self.model_class.id == entity_id).first()

    def count_active(self, owner_id: str) -> int:
        return self.active_query(owner_id).count()

    # -- Writes --------------------------------------------------------------

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.flush()
        self.db.refresh(entity)
        return entity

    def flush(self) -> None:
        """Flush pending changes, translating unique-index violations.

        The partial unique indexes are the only uniqueness check for titles
        and group names, so concurrent writers cannot both win.
        """
        try:
            self.db.flush()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            raise self._conflict_from_integrity_error(e) from e

    def _conflict_from_integrity_error(self, error: sqlalchemy.exc.IntegrityError) -> NoteException:
        """Override to give the conflict a domain-specific message."""
        return ConflictError("Unique constraint violated")

    def soft_delete(self, entity: ModelT) -> ModelT:
        if entity.deleted_at is None:
            entity.deleted_at = datetime.now(timezone.utc)
            self.flush()
        return entity

    def restore(self, entity: ModelT) -> ModelT:
        if entity.deleted_at is not None:
            entity.deleted_at = None
            self.flush()
            self.db.refresh(entity)
        return entity

    def hard_delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()
