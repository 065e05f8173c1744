"""Business logic services."""

from .markdown_file_service import MarkdownFileService
from .group_service import GroupService
from .oauth_service import OAuthLoginResult, OAuthProfile, OAuthProvider

__all__ = [
    "MarkdownFileService",
    "GroupService",
    "OAuthLoginResult",
    "OAuthProfile",
    "OAuthProvider",
]
