"""Group service: named collections of markdown files.

Group names are unique per owner, case-insensitively, among non-deleted
groups. Deleting a group soft-deletes it and detaches its files; the files
themselves are never touched otherwise.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..exceptions import ValidationError
from ..models import Group, MarkdownFile
from ..repositories import GroupRepository, MarkdownFileRepository
from .pagination import Page, normalize_page_params, paginate

GROUP_NAME_MAX_LENGTH = 100
GROUP_ORDER_FIELDS = ("created_at", "updated_at", "name")

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Group name cannot be empty", field="name")
    if len(cleaned) > GROUP_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Group name cannot exceed {GROUP_NAME_MAX_LENGTH} characters", field="name"
        )
    return cleaned


@dataclass(frozen=True)
class GroupSummary:
    """Listing row: a group plus the number of active files in it."""
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    file_count: int

    @classmethod
    def of(cls, group: Group, file_count: int) -> "GroupSummary":
        return cls(
            id=group.id,
            name=group.name,
            created_at=group.created_at,
            updated_at=group.updated_at,
            file_count=file_count,
        )


class GroupService:
    """Business logic for group CRUD."""

    def __init__(self, db: Session):
        self.db = db
        self.group_repo = GroupRepository(db)
        self.file_repo = MarkdownFileRepository(db)

    def create_group(self, owner_id: str, name: str) -> Group:
        """Create a group. A case-insensitive name collision surfaces as ConflictError from the active-name index."""
        name = _clean_name(name)
        group = self.group_repo.create(owner_id, name)
        self.db.commit()
        logger.info("Group created", extra={"user_id": owner_id, "group_id": group.id})
        return group

    def list_groups(
        self,
        owner_id: str,
        page: Any = None,
        limit: Any = None,
        order_by: Any = None,
        order: Any = None,
    ) -> Page:
        """Paginated active groups (newest first by default) with their active file counts."""
        params = normalize_page_params(page, limit, order_by, order, allowed_order_by=GROUP_ORDER_FIELDS)
        result = paginate(self.group_repo.active_query(owner_id), params)
        counts = self.group_repo.active_file_counts(g.id for g in result.data)
        result.data = [GroupSummary.of(g, counts.get(g.id, 0)) for g in result.data]
        return result

    def get_group(self, owner_id: str, group_id: str) -> Tuple[Group, List[MarkdownFile]]:
        """Group plus its active files, newest first. Raises GroupNotFoundError."""
        group = self.group_repo.get_active_or_raise(owner_id, group_id)
        files = (
            self.file_repo.active_query(owner_id)
            .filter(MarkdownFile.group_id == group.id)
            .order_by(MarkdownFile.created_at.desc())
            .all()
        )
        return group, files

    def update_group(self, owner_id: str, group_id: str, name: Optional[str] = None) -> Group:
        """Rename a group. ``name=None`` leaves it unchanged."""
        group = self.group_repo.get_active_or_raise(owner_id, group_id)
        if name is None:
            return group

        name = _clean_name(name)
        group = self.group_repo.rename(group, name)
        self.db.commit()
        return group

    def delete_group(self, owner_id: str, group_id: str) -> None:
        """Soft-delete a group and ungroup every file that pointed at it, trashed ones included."""
        group = self.group_repo.get_active_or_raise(owner_id, group_id)
        detached = self.file_repo.detach_group(owner_id, group.id)
        self.group_repo.soft_delete(group)
        self.db.commit()
        logger.info(
            "Group deleted",
            extra={"user_id": owner_id, "group_id": group_id, "detached_files": detached},
        )
