"""Database models."""

from .user import User, Account
from .group import Group
from .markdown_file import MarkdownFile

__all__ = ["User", "Account", "Group", "MarkdownFile"]
