"""Trash API endpoints: listing, restoring and purging soft-deleted files."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.markdown_file import EmptyTrashResponse, MarkdownFileResponse, RestoreAllResponse
from ..schemas.pagination import PaginatedResponse, to_paginated
from ..services import MarkdownFileService

router = APIRouter(prefix="/api/trash", tags=["trash"])


@router.get("", response_model=PaginatedResponse[MarkdownFileResponse])
def list_trash(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Trashed files, most recently deleted first."""
    result = MarkdownFileService(db).list_trashed(auth.user_id, page=page, limit=limit)
    return to_paginated(result, MarkdownFileResponse)


@router.post("/restore-all", response_model=RestoreAllResponse)
def restore_all(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Restore the whole trash, or nothing at all if any title conflicts (409)."""
    restored = MarkdownFileService(db).restore_all(auth.user_id)
    return RestoreAllResponse(restored=restored)


@router.delete("", response_model=EmptyTrashResponse)
def empty_trash(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    deleted = MarkdownFileService(db).empty_trash(auth.user_id)
    return EmptyTrashResponse(deleted=deleted)


@router.post("/{file_id}/restore", response_model=MarkdownFileResponse)
def restore_file(
    file_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return MarkdownFileService(db).restore_file(auth.user_id, file_id)


@router.delete("/{file_id}", status_code=204)
def permanent_delete_file(
    file_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Permanently delete a trashed file. Active files must be trashed first."""
    MarkdownFileService(db).permanent_delete(auth.user_id, file_id)
    return None
