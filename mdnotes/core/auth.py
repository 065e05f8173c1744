"""Authentication module exposing the FastAPI dependency.

Public interface:
    ``require_auth`` returns an AuthContext or raises 401.

Every file, trash and group endpoint depends on it; the resolved user id
is the owner id passed to the services.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import Settings
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..repositories import UserRepository

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity of the caller."""

    user_id: str
    email: str


def get_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


def get_oauth_providers(request: Request) -> Mapping:
    """OAuth providers registered on the application, keyed by provider name."""
    return request.app.state.oauth_providers


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid JWT for an existing, non-deleted user."""
    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    user = UserRepository(db).get_by_id(payload.sub)
    if user is None:
        logger.info("Token for unknown or deleted user rejected", extra={"user_id": payload.sub})
        raise AuthenticationError("User not found")

    return AuthContext(user_id=user.id, email=user.email)
