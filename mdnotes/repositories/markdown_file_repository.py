"""Markdown file repository.

Owns all file query logic including the active/trash partition. Every
query is scoped by an explicit owner id; bulk writes report the number of
rows they actually touched.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

import sqlalchemy.exc
from sqlalchemy import or_
from sqlalchemy.orm import Query

from ..exceptions import ConflictError, MarkdownFileNotFoundError
from ..models import MarkdownFile
from .base import BaseRepository


class MarkdownFileRepository(BaseRepository[MarkdownFile]):
    """Repository for markdown file CRUD and lifecycle writes."""

    model_class = MarkdownFile
    not_found_error = MarkdownFileNotFoundError

    def _conflict_from_integrity_error(self, error: sqlalchemy.exc.IntegrityError) -> ConflictError:
        return ConflictError("A file with this title already exists", field="title")

    # -- Filters -------------------------------------------------------------

    @staticmethod
    def filter_by_group(query: Query, group_id: Optional[str] = None, ungrouped: bool = False) -> Query:
        if group_id is not None:
            return query.filter(MarkdownFile.group_id == group_id)
        if ungrouped:
            return query.filter(MarkdownFile.group_id.is_(None))
        return query

    @staticmethod
    def filter_by_keyword(query: Query, keyword: str) -> Query:
        """Case-insensitive literal substring match on title or content."""
        return query.filter(
            or_(
                MarkdownFile.title.icontains(keyword, autoescape=True),
                MarkdownFile.content.icontains(keyword, autoescape=True),
            )
        )

    # -- Title uniqueness ----------------------------------------------------

    def active_titles(self, owner_id: str, titles: Iterable[str]) -> Set[str]:
        """Subset of *titles* already used by this owner's active files."""
        wanted = set(titles)
        if not wanted:
            return set()
        rows = (
            self.active_query(owner_id)
            .filter(MarkdownFile.title.in_(wanted))
            .with_entities(MarkdownFile.title)
            .all()
        )
        return {row[0] for row in rows}

    # -- Reads ---------------------------------------------------------------

    def get_trashed_batch(self, owner_id: str, limit: int) -> List[MarkdownFile]:
        """Most recently trashed files first, at most *limit* rows."""
        return (
            self.trashed_query(owner_id)
            .order_by(MarkdownFile.deleted_at.desc())
            .limit(limit)
            .all()
        )

    # -- Writes --------------------------------------------------------------

    def create(self, owner_id: str, title: str, content: str, group_id: Optional[str] = None) -> MarkdownFile:
        return self.add(
            MarkdownFile(
                user_id=owner_id,
                title=title,
                content=content,
                group_id=group_id,
            )
        )

    def bulk_soft_delete(self, owner_id: str, file_ids: Iterable[str]) -> int:
        """Trash every listed file that is owned and active. Returns rows affected."""
        ids = list(set(file_ids))
        if not ids:
            return 0
        return (
            self.active_query(owner_id)
            .filter(MarkdownFile.id.in_(ids))
            .update({MarkdownFile.deleted_at: datetime.now(timezone.utc)}, synchronize_session=False)
        )

    def bulk_restore(self, owner_id: str, file_ids: Iterable[str]) -> int:
        ids = list(set(file_ids))
        if not ids:
            return 0
        try:
            return (
                self.trashed_query(owner_id)
                .filter(MarkdownFile.id.in_(ids))
                .update({MarkdownFile.deleted_at: None}, synchronize_session=False)
            )
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            raise self._conflict_from_integrity_error(e) from e

    def purge_trashed(self, owner_id: str) -> int:
        """Physically delete every trashed file of this owner."""
        return self.trashed_query(owner_id).delete(synchronize_session=False)

    def detach_group(self, owner_id: str, group_id: str) -> int:
        """Clear the group reference on every file (either partition) pointing at *group_id*."""
        return (
            self.owned_query(owner_id)
            .filter(MarkdownFile.group_id == group_id)
            .update({MarkdownFile.group_id: None}, synchronize_session=False)
        )
