"""API routes."""

from .auth_routes import router as auth_router
from .files import router as files_router
from .trash import router as trash_router
from .groups import router as groups_router

__all__ = [
    "auth_router",
    "files_router",
    "trash_router",
    "groups_router",
]
