"""Markdown file service: deep module for the file lifecycle and the trash.

A file is either active (``deleted_at`` NULL) or trashed; purging removes
the row. Titles are unique per owner within the active partition only,
which is why trashing never conflicts but restoring can. Every public
method is scoped by an explicit owner id and commits its own transaction.

Transitions:
    active  -> trashed   soft_delete, bulk_soft_delete
    trashed -> active    restore_file, restore_all (title guard)
    trashed -> purged    permanent_delete, empty_trash
"""

import logging
from collections import Counter
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from ..exceptions import ConflictError, MarkdownFileNotFoundError, ValidationError
from ..models import MarkdownFile
from ..repositories import GroupRepository, MarkdownFileRepository
from ..schemas.markdown_file import MarkdownFileUpdate
from .pagination import Page, PageParams, normalize_page_params, paginate

# Upper bound on trashed files handled by one restore_all call.
RESTORE_ALL_LIMIT = 1000

FILE_ORDER_FIELDS = ("created_at", "updated_at", "title")

logger = logging.getLogger(__name__)


def _clean_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title cannot be empty", field="title")
    return cleaned


class MarkdownFileService:
    """File CRUD, trash transitions, listing and search behind one interface."""

    def __init__(self, db: Session):
        self.db = db
        self.file_repo = MarkdownFileRepository(db)
        self.group_repo = GroupRepository(db)

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _ensure_group_owned(self, owner_id: str, group_id: str) -> None:
        """Target group must be an active group of the same owner."""
        self.group_repo.get_active_or_raise(owner_id, group_id)

    # ------------------------------------------------------------------
    # Active files
    # ------------------------------------------------------------------

    def create_file(
        self,
        owner_id: str,
        title: str,
        content: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> MarkdownFile:
        """Create an active file.

        Title uniqueness is enforced by the active-title index; a collision
        surfaces as ConflictError. Also raises ValidationError or
        GroupNotFoundError.
        """
        title = _clean_title(title)
        if group_id is not None:
            self._ensure_group_owned(owner_id, group_id)

        db_file = self.file_repo.create(owner_id, title, content or "", group_id=group_id)
        self.db.commit()
        logger.info("File created", extra={"user_id": owner_id, "file_id": db_file.id})
        return db_file

    def get_file(self, owner_id: str, file_id: str) -> MarkdownFile:
        """Active file of this owner. Raises MarkdownFileNotFoundError."""
        return self.file_repo.get_active_or_raise(owner_id, file_id)

    def count_files(self, owner_id: str) -> int:
        return self.file_repo.count_active(owner_id)

    def update_file(self, owner_id: str, file_id: str, update: MarkdownFileUpdate) -> MarkdownFile:
        """Apply a partial update to an active file.

        Only supplied fields change. A supplied title is re-validated; a
        collision with another active file of the owner is a ConflictError.
        A supplied group_id of None ungroups the file; any other value must
        name an active group of the same owner. Nothing is written unless
        every check passes.
        """
        db_file = self.file_repo.get_active_or_raise(owner_id, file_id)

        changes = {}
        if update.supplied("title"):
            changes["title"] = _clean_title(update.title)
        if update.supplied("content") and update.content is not None:
            changes["content"] = update.content
        if update.supplied("group_id"):
            if update.group_id is not None:
                self._ensure_group_owned(owner_id, update.group_id)
            changes["group_id"] = update.group_id

        for field, value in changes.items():
            setattr(db_file, field, value)

        self.file_repo.flush()
        self.db.commit()
        self.db.refresh(db_file)
        return db_file

    # ------------------------------------------------------------------
    # Active -> trashed
    # ------------------------------------------------------------------

    def soft_delete(self, owner_id: str, file_id: str) -> MarkdownFile:
        """Move an active file to the trash. Raises MarkdownFileNotFoundError."""
        db_file = self.file_repo.get_active_or_raise(owner_id, file_id)
        self.file_repo.soft_delete(db_file)
        self.db.commit()
        logger.info("File moved to trash", extra={"user_id": owner_id, "file_id": file_id})
        return db_file

    def bulk_soft_delete(self, owner_id: str, file_ids: Sequence[str]) -> int:
        """Trash every listed file that is owned and active.

        Ids that are unknown, foreign or already trashed are skipped silently.
        Returns the number of files actually moved to the trash.
        """
        if not file_ids:
            raise ValidationError("At least one file id is required", field="ids")

        affected = self.file_repo.bulk_soft_delete(owner_id, file_ids)
        self.db.commit()
        logger.info(
            "Files moved to trash",
            extra={"user_id": owner_id, "requested": len(file_ids), "affected": affected},
        )
        return affected

    # ------------------------------------------------------------------
    # Trashed -> active
    # ------------------------------------------------------------------

    def restore_file(self, owner_id: str, file_id: str) -> MarkdownFile:
        """Restore a trashed file.

        Raises MarkdownFileNotFoundError if the file is not in this owner's
        trash, ConflictError if an active file already uses its title. The
        title is never changed automatically.
        """
        db_file = self.file_repo.get_trashed(owner_id, file_id)
        if db_file is None:
            raise MarkdownFileNotFoundError(file_id, message=f"File not found in trash: {file_id}")

        title = db_file.title
        try:
            self.file_repo.restore(db_file)
        except ConflictError as e:
            raise ConflictError(
                f"Cannot restore '{title}': an active file with this title already exists",
                field="title",
                titles=[title],
            ) from e
        self.db.commit()
        logger.info("File restored", extra={"user_id": owner_id, "file_id": file_id})
        return db_file

    def restore_all(self, owner_id: str) -> int:
        """Restore the trash as one all-or-nothing batch.

        Loads up to RESTORE_ALL_LIMIT trashed files and checks every title
        before touching anything. A title conflicts when an active file
        already uses it or when it occurs more than once inside the batch.
        Any conflict aborts the whole call with a ConflictError listing all
        conflicting titles; nothing is restored.
        """
        trashed = self.file_repo.get_trashed_batch(owner_id, RESTORE_ALL_LIMIT)
        if not trashed:
            return 0

        title_counts = Counter(f.title for f in trashed)
        conflicts = self.file_repo.active_titles(owner_id, title_counts.keys())
        conflicts.update(title for title, n in title_counts.items() if n > 1)

        if conflicts:
            titles = sorted(conflicts)
            logger.info(
                "Restore all refused",
                extra={"user_id": owner_id, "conflicts": len(titles)},
            )
            raise ConflictError(
                "Cannot restore trash: active files already use these titles: " + ", ".join(titles),
                field="title",
                titles=titles,
            )

        restored = self.file_repo.bulk_restore(owner_id, [f.id for f in trashed])
        self.db.commit()
        logger.info("Trash restored", extra={"user_id": owner_id, "restored": restored})
        return restored

    # ------------------------------------------------------------------
    # Trashed -> purged
    # ------------------------------------------------------------------

    def permanent_delete(self, owner_id: str, file_id: str) -> None:
        """Irreversibly delete a trashed file.

        Active files must be trashed first; they are reported as not found
        here, the same as files of another owner.
        """
        db_file = self.file_repo.get_trashed(owner_id, file_id)
        if db_file is None:
            raise MarkdownFileNotFoundError(file_id, message=f"File not found in trash: {file_id}")

        self.file_repo.hard_delete(db_file)
        self.db.commit()
        logger.info("File permanently deleted", extra={"user_id": owner_id, "file_id": file_id})

    def empty_trash(self, owner_id: str) -> int:
        """Purge every trashed file of this owner. Returns the count removed (0 when empty)."""
        count = self.file_repo.purge_trashed(owner_id)
        self.db.commit()
        if count:
            logger.info("Trash emptied", extra={"user_id": owner_id, "deleted": count})
        return count

    # ------------------------------------------------------------------
    # Listing and search
    # ------------------------------------------------------------------

    def _scoped_active_query(self, owner_id: str, group_id: Optional[str], ungrouped: bool):
        if group_id is not None and ungrouped:
            raise ValidationError("Use either group_id or ungrouped, not both", field="group_id")
        if group_id is not None:
            self._ensure_group_owned(owner_id, group_id)
        query = self.file_repo.active_query(owner_id)
        return self.file_repo.filter_by_group(query, group_id=group_id, ungrouped=ungrouped)

    def list_active(
        self,
        owner_id: str,
        page: Any = None,
        limit: Any = None,
        order_by: Any = None,
        order: Any = None,
        group_id: Optional[str] = None,
        ungrouped: bool = False,
    ) -> Page:
        """Paginated active files, optionally scoped to one group or to ungrouped files."""
        params = normalize_page_params(page, limit, order_by, order, allowed_order_by=FILE_ORDER_FIELDS)
        query = self._scoped_active_query(owner_id, group_id, ungrouped)
        return paginate(query, params)

    def list_trashed(self, owner_id: str, page: Any = None, limit: Any = None) -> Page:
        """Paginated trash, most recently deleted first."""
        params = normalize_page_params(page, limit)
        query = self.file_repo.trashed_query(owner_id)
        return paginate(query, params, order_clause=MarkdownFile.deleted_at.desc())

    def search(
        self,
        owner_id: str,
        keyword: Optional[str],
        page: Any = None,
        limit: Any = None,
        group_id: Optional[str] = None,
        ungrouped: bool = False,
    ) -> Page:
        """Case-insensitive substring search over title or content of active files.

        An empty or whitespace-only keyword degrades to ``list_active``.
        """
        keyword = (keyword or "").strip()
        if not keyword:
            return self.list_active(owner_id, page=page, limit=limit, group_id=group_id, ungrouped=ungrouped)

        params: PageParams = normalize_page_params(page, limit)
        query = self._scoped_active_query(owner_id, group_id, ungrouped)
        query = self.file_repo.filter_by_keyword(query, keyword)
        return paginate(query, params, order_clause=MarkdownFile.created_at.desc())
