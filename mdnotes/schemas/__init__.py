"""Pydantic schemas for API validation."""

from .pagination import PaginatedResponse, PaginationResponse, to_paginated
from .markdown_file import (
    MarkdownFileCreate,
    MarkdownFileUpdate,
    MarkdownFileResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    RestoreAllResponse,
    EmptyTrashResponse,
    FileCountResponse,
)
from .group import GroupCreate, GroupUpdate, GroupResponse, GroupDetailResponse
from .user import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdate,
    ChangePasswordRequest,
    UserResponse,
    ProfileResponse,
    AuthResponse,
    OAuthLoginRequest,
    OAuthLoginResponse,
)

__all__ = [
    "PaginatedResponse",
    "PaginationResponse",
    "to_paginated",
    "MarkdownFileCreate",
    "MarkdownFileUpdate",
    "MarkdownFileResponse",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "RestoreAllResponse",
    "EmptyTrashResponse",
    "FileCountResponse",
    "GroupCreate",
    "GroupUpdate",
    "GroupResponse",
    "GroupDetailResponse",
    "RegisterRequest",
    "LoginRequest",
    "ProfileUpdate",
    "ChangePasswordRequest",
    "UserResponse",
    "ProfileResponse",
    "AuthResponse",
    "OAuthLoginRequest",
    "OAuthLoginResponse",
]
