"""Authentication and profile API endpoints.

Public endpoints:
    POST /api/auth/register          create account, returns user + JWT
    POST /api/auth/login             authenticate, returns user + JWT
    POST /api/auth/oauth/{provider}  exchange a provider code, returns user + JWT

Authenticated endpoints:
    GET    /api/auth/profile          current user + linked providers
    PUT    /api/auth/profile          change email and/or username
    PUT    /api/auth/change-password  replace the password
    DELETE /api/auth/account          soft-delete the account
"""

import logging
from typing import Mapping

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, get_oauth_providers, get_settings, require_auth
from ..core.config import Settings
from ..database import get_db
from ..models import User
from ..schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    OAuthLoginRequest,
    OAuthLoginResponse,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    UserResponse,
)
from ..services import auth_service, oauth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _profile(db: Session, user: User) -> ProfileResponse:
    return ProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        linked_providers=auth_service.linked_providers(db, user.id),
    )


@router.post("/register", response_model=AuthResponse, status_code=201, summary="Register a new user")
def register_user(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = auth_service.register(db, body.email, body.username, body.password)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=auth_service.issue_token(user, settings),
    )


@router.post("/login", response_model=AuthResponse, summary="Authenticate and receive a JWT")
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = auth_service.authenticate(db, body.email, body.password)
    logger.info("User logged in", extra={"user_id": user.id})
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=auth_service.issue_token(user, settings),
    )


@router.post("/oauth/{provider}", response_model=OAuthLoginResponse, summary="Log in with an OAuth provider")
def oauth_login(
    provider: str,
    body: OAuthLoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    providers: Mapping = Depends(get_oauth_providers),
):
    """Exchange the provider code, then log into, link or create the matching user."""
    oauth_provider = oauth_service.resolve_provider(providers, provider)
    result = oauth_service.login_with_provider(db, oauth_provider, body.code)
    return OAuthLoginResponse(
        user=UserResponse.model_validate(result.user),
        token=auth_service.issue_token(result.user, settings),
        is_new=result.is_new,
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    user = auth_service.get_profile(db, auth.user_id)
    return _profile(db, user)


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    user = auth_service.update_profile(db, auth.user_id, email=body.email, username=body.username)
    return _profile(db, user)


@router.put("/change-password", status_code=204)
def change_password(
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    auth_service.change_password(db, auth.user_id, body.current_password, body.new_password)
    return None


@router.delete("/account", status_code=204)
def delete_account(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Soft-delete the account. Files and groups are kept; the token stops working."""
    auth_service.delete_account(db, auth.user_id)
    return None
