"""Group API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.group import GroupCreate, GroupDetailResponse, GroupResponse, GroupUpdate
from ..schemas.markdown_file import MarkdownFileResponse
from ..schemas.pagination import PaginatedResponse, to_paginated
from ..services import GroupService

router = APIRouter(prefix="/api/groups", tags=["groups"])


def _group_response(group, file_count: int) -> GroupResponse:
    response = GroupResponse.model_validate(group)
    response.file_count = file_count
    return response


@router.get("", response_model=PaginatedResponse[GroupResponse])
def list_groups(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Active groups with their active file counts, newest first by default."""
    result = GroupService(db).list_groups(auth.user_id, page=page, limit=limit, order_by=order_by, order=order)
    return to_paginated(result, GroupResponse)


@router.post("", response_model=GroupResponse, status_code=201)
def create_group(
    body: GroupCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    group = GroupService(db).create_group(auth.user_id, body.name)
    return _group_response(group, 0)


@router.get("/{group_id}", response_model=GroupDetailResponse)
def get_group(
    group_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    group, files = GroupService(db).get_group(auth.user_id, group_id)
    return GroupDetailResponse(
        **_group_response(group, len(files)).model_dump(),
        files=[MarkdownFileResponse.model_validate(f) for f in files],
    )


@router.put("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: str,
    body: GroupUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    service = GroupService(db)
    group = service.update_group(auth.user_id, group_id, name=body.name)
    count = service.group_repo.active_file_counts([group.id]).get(group.id, 0)
    return _group_response(group, count)


@router.delete("/{group_id}", status_code=204)
def delete_group(
    group_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Delete a group. Its files stay and become ungrouped."""
    GroupService(db).delete_group(auth.user_id, group_id)
    return None
