"""Authentication service: user lifecycle, password hashing, token issuing.

All password operations use bcrypt via passlib. Passwords are never stored
or logged in plaintext. The service layer owns user lifecycle; endpoints
are thin wrappers.
"""

import logging
from typing import List, Optional

from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from ..core.token_factory import create_token
from ..exceptions import AuthenticationError, ConflictError, UserNotFoundError, ValidationError
from ..models import User
from ..repositories import UserRepository

MIN_PASSWORD_LENGTH = 6
USERNAME_MAX_LENGTH = 50

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationError("Valid email address required", field="email")
    return email


def _clean_username(username: Optional[str]) -> str:
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username required", field="username")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username cannot exceed {USERNAME_MAX_LENGTH} characters", field="username"
        )
    return username


def _check_password(password: Optional[str], field: str = "password") -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field=field
        )
    return password


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return bcrypt.verify(password, password_hash)


def register(db: Session, email: str, username: str, password: str) -> User:
    """Create a password account.

    Raises ValidationError on malformed input and ConflictError when the
    email or username is already taken (by any user, deleted ones included).
    """
    email = normalize_email(email)
    username = _clean_username(username)
    _check_password(password)

    repo = UserRepository(db)
    if repo.email_taken(email):
        raise ConflictError("Email already registered", field="email")
    if repo.username_taken(username):
        raise ConflictError("Username already taken", field="username")

    user = repo.create(email=email, username=username, password_hash=hash_password(password))
    db.commit()
    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Validate credentials and return the user.

    Raises AuthenticationError on unknown email, wrong password or an
    account that was created through an OAuth provider and has no password.
    """
    try:
        email = normalize_email(email)
    except ValidationError:
        raise AuthenticationError("Email or password is incorrect") from None

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise AuthenticationError("Email or password is incorrect")

    if not user.has_password:
        raise AuthenticationError(
            "This account was registered through an OAuth provider. Please log in with that provider."
        )

    if not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Email or password is incorrect")

    return user


def get_profile(db: Session, user_id: str) -> User:
    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def linked_providers(db: Session, user_id: str) -> List[str]:
    return [a.provider for a in UserRepository(db).list_accounts(user_id)]


def update_profile(
    db: Session,
    user_id: str,
    email: Optional[str] = None,
    username: Optional[str] = None,
) -> User:
    """Change email and/or username. Empty or omitted values keep the current one."""
    repo = UserRepository(db)
    user = repo.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    if email and email.strip():
        email = normalize_email(email)
        if email != user.email:
            if repo.email_taken(email, exclude_id=user.id):
                raise ConflictError("Email already registered", field="email")
            user.email = email

    if username and username.strip():
        username = _clean_username(username)
        if username != user.username:
            if repo.username_taken(username, exclude_id=user.id):
                raise ConflictError("Username already taken", field="username")
            user.username = username

    repo.flush()
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user_id: str, current_password: str, new_password: str) -> None:
    """Replace the password after verifying the current one.

    Accounts without a password (OAuth-only) cannot use this; they are
    reported the same as a wrong current password.
    """
    repo = UserRepository(db)
    user = repo.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    if not verify_password(current_password or "", user.password_hash):
        raise ValidationError("Current password is incorrect", field="current_password")
    _check_password(new_password, field="new_password")

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed", extra={"user_id": user.id})


def delete_account(db: Session, user_id: str) -> None:
    """Soft-delete the user. Files and groups stay in place."""
    repo = UserRepository(db)
    user = repo.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    repo.soft_delete(user)
    db.commit()
    logger.info("Account deleted", extra={"user_id": user_id})


def issue_token(user: User, settings) -> str:
    return create_token(
        subject=user.id,
        email=user.email,
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.jwt_expires_hours,
    )
