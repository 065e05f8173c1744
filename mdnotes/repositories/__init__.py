"""Data access repositories."""

from .base import BaseRepository
from .markdown_file_repository import MarkdownFileRepository
from .group_repository import GroupRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "MarkdownFileRepository",
    "GroupRepository",
    "UserRepository",
]
