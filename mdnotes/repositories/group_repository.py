"""Repository for group database operations."""

from typing import Dict, Iterable

import sqlalchemy.exc
from sqlalchemy import func

from ..exceptions import ConflictError, GroupNotFoundError
from ..models import Group, MarkdownFile
from .base import BaseRepository


class GroupRepository(BaseRepository[Group]):
    """Data access layer for groups."""

    model_class = Group
    not_found_error = GroupNotFoundError

    def _conflict_from_integrity_error(self, error: sqlalchemy.exc.IntegrityError) -> ConflictError:
        return ConflictError("A group with this name already exists", field="name")

    def create(self, owner_id: str, name: str) -> Group:
        return self.add(Group(user_id=owner_id, name=name))

    def rename(self, group: Group, name: str) -> Group:
        group.name = name
        self.flush()
        self.db.refresh(group)
        return group

    def active_file_counts(self, group_ids: Iterable[str]) -> Dict[str, int]:
        ids = list(group_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(MarkdownFile.group_id, func.count(MarkdownFile.id))
            .filter(MarkdownFile.group_id.in_(ids), MarkdownFile.deleted_at.is_(None))
            .group_by(MarkdownFile.group_id)
            .all()
        )
        return {group_id: count for group_id, count in rows}
