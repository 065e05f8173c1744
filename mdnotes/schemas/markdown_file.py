"""Markdown file schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

# group_id values meaning "no group": ungroup on writes, no group filter on listings.
UNGROUP_SENTINELS = frozenset({"", "null"})


def normalize_group_id(v: Optional[str]) -> Optional[str]:
    """Strip *v*; map the ungroup sentinels to None."""
    if v is None:
        return None
    v = v.strip()
    if v.lower() in UNGROUP_SENTINELS:
        return None
    return v


class MarkdownFileCreate(BaseModel):
    """Schema for creating a file. Title emptiness is checked by the service."""
    title: str
    content: str = ""
    group_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("group_id", "groupId")
    )

    @field_validator("group_id")
    @classmethod
    def clean_group_id(cls, v: Optional[str]) -> Optional[str]:
        return normalize_group_id(v)


class MarkdownFileUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied.

    ``group_id`` distinguishes three cases:
    - absent: the file keeps its group
    - ``None`` / ``""`` / ``"null"``: the file is ungrouped
    - any other string: the file moves to that group
    """
    title: Optional[str] = None
    content: Optional[str] = None
    group_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("group_id", "groupId")
    )

    @field_validator("group_id")
    @classmethod
    def clean_group_id(cls, v: Optional[str]) -> Optional[str]:
        return normalize_group_id(v)

    def supplied(self, field: str) -> bool:
        """Whether *field* was explicitly provided (even as null)."""
        return field in self.model_fields_set


class MarkdownFileResponse(BaseModel):
    """Schema for file response."""
    id: str
    title: str
    content: str
    group_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BulkDeleteRequest(BaseModel):
    """Ids to move to the trash. Ids that are not owned or not active are skipped."""
    ids: List[str] = Field(validation_alias=AliasChoices("ids", "fileIds", "file_ids"))


class BulkDeleteResponse(BaseModel):
    affected: int


class RestoreAllResponse(BaseModel):
    restored: int


class EmptyTrashResponse(BaseModel):
    deleted: int


class FileCountResponse(BaseModel):
    count: int
