"""User and authentication schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    email: str
    username: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    """Omitted or empty fields keep their current value."""
    email: Optional[str] = None
    username: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class UserResponse(BaseModel):
    """Public view of a user. Never carries the password hash."""
    id: str
    email: str
    username: str
    avatar_url: Optional[str] = None
    has_password: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileResponse(UserResponse):
    linked_providers: List[str] = []


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


class OAuthLoginRequest(BaseModel):
    """Authorization code returned to the client by the provider redirect."""
    code: str


class OAuthLoginResponse(AuthResponse):
    is_new: bool
