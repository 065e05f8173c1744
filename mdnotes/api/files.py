"""Markdown file API endpoints.

Endpoints are thin; MarkdownFileService owns validation, uniqueness,
ownership scoping and the trash transitions. Every route is scoped to the
authenticated user.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.markdown_file import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    FileCountResponse,
    MarkdownFileCreate,
    MarkdownFileResponse,
    MarkdownFileUpdate,
    normalize_group_id,
)
from ..schemas.pagination import PaginatedResponse, to_paginated
from ..services import MarkdownFileService

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("", response_model=PaginatedResponse[MarkdownFileResponse])
def list_files(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order: Optional[str] = Query(None),
    group_id: Optional[str] = Query(None, alias="groupId"),
    ungrouped: bool = Query(False),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """List active files. A non-empty ``search`` switches to keyword search."""
    service = MarkdownFileService(db)
    group_id = normalize_group_id(group_id)
    if search and search.strip():
        result = service.search(
            auth.user_id, search, page=page, limit=limit, group_id=group_id, ungrouped=ungrouped
        )
    else:
        result = service.list_active(
            auth.user_id,
            page=page,
            limit=limit,
            order_by=order_by,
            order=order,
            group_id=group_id,
            ungrouped=ungrouped,
        )
    return to_paginated(result, MarkdownFileResponse)


# --- Fixed-path endpoints (must be before /{file_id} to avoid route shadowing) ---


@router.get("/count", response_model=FileCountResponse)
def count_files(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return FileCountResponse(count=MarkdownFileService(db).count_files(auth.user_id))


@router.get("/search", response_model=PaginatedResponse[MarkdownFileResponse])
def search_files(
    q: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    group_id: Optional[str] = Query(None, alias="groupId"),
    ungrouped: bool = Query(False),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Case-insensitive search over title and content. Empty ``q`` lists all active files."""
    result = MarkdownFileService(db).search(
        auth.user_id,
        q,
        page=page,
        limit=limit,
        group_id=normalize_group_id(group_id),
        ungrouped=ungrouped,
    )
    return to_paginated(result, MarkdownFileResponse)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_files(
    body: BulkDeleteRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move several files to the trash. Returns how many were actually moved."""
    affected = MarkdownFileService(db).bulk_soft_delete(auth.user_id, body.ids)
    return BulkDeleteResponse(affected=affected)


@router.post("", response_model=MarkdownFileResponse, status_code=201)
def create_file(
    body: MarkdownFileCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return MarkdownFileService(db).create_file(
        auth.user_id, body.title, body.content, group_id=body.group_id
    )


# --- Parameterized endpoints ---


@router.get("/{file_id}", response_model=MarkdownFileResponse)
def get_file(
    file_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return MarkdownFileService(db).get_file(auth.user_id, file_id)


@router.put("/{file_id}", response_model=MarkdownFileResponse)
def update_file(
    file_id: str,
    body: MarkdownFileUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Partial update; only fields present in the body change."""
    return MarkdownFileService(db).update_file(auth.user_id, file_id, body)


@router.delete("/{file_id}", status_code=204)
def delete_file(
    file_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Soft-delete a file (moves it to the trash)."""
    MarkdownFileService(db).soft_delete(auth.user_id, file_id)
    return None
