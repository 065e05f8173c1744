"""Group schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from .markdown_file import MarkdownFileResponse


class GroupCreate(BaseModel):
    """Schema for creating a group. Name emptiness is checked by the service."""
    name: str


class GroupUpdate(BaseModel):
    """Schema for renaming a group. Omitting name leaves the group unchanged."""
    name: Optional[str] = None


class GroupResponse(BaseModel):
    """Schema for group response."""
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    file_count: int = 0

    class Config:
        from_attributes = True


class GroupDetailResponse(GroupResponse):
    """Group with its active files."""
    files: List[MarkdownFileResponse] = []
