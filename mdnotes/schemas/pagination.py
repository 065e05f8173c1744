"""Paginated response envelope shared by every listing endpoint."""

from typing import Generic, List, TypeVar

from pydantic import AliasChoices, BaseModel, Field

T = TypeVar("T")


def _camel(name: str, camel: str):
    # Accepts either spelling on input, always emits camelCase.
    return Field(validation_alias=AliasChoices(name, camel), serialization_alias=camel)


class PaginationResponse(BaseModel):
    """Pagination block. Keys are serialized in camelCase for the web client."""
    page: int
    limit: int
    total: int
    total_pages: int = _camel("total_pages", "totalPages")
    has_next_page: bool = _camel("has_next_page", "hasNextPage")
    has_prev_page: bool = _camel("has_prev_page", "hasPrevPage")

    class Config:
        from_attributes = True


class PaginatedResponse(BaseModel, Generic[T]):
    """``{data: [...], pagination: {...}}``."""
    data: List[T]
    pagination: PaginationResponse

    class Config:
        from_attributes = True


def to_paginated(page, item_schema):
    """Convert a service-layer ``Page`` into ``PaginatedResponse[item_schema]``."""
    return PaginatedResponse[item_schema].model_validate(page, from_attributes=True)
