"""Repository for users and their linked OAuth accounts."""

from datetime import datetime, timezone
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..exceptions import ConflictError
from ..models import Account, User


class UserRepository:
    """Data access layer for users.

    Lookups skip soft-deleted users unless ``include_deleted`` is set;
    uniqueness checks always see every row because email and username
    are globally unique columns.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self, include_deleted: bool = False):
        query = self.db.query(User)
        if not include_deleted:
            query = query.filter(User.deleted_at.is_(None))
        return query

    def get_by_id(self, user_id: str, include_deleted: bool = False) -> Optional[User]:
        return self._query(include_deleted).filter(User.id == user_id).first()

    def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        return self._query(include_deleted).filter(User.email == email).first()

    def get_by_username(self, username: str, include_deleted: bool = False) -> Optional[User]:
        return self._query(include_deleted).filter(User.username == username).first()

    def email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(User.id).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def username_taken(self, username: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(User.id).filter(User.username == username)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def create(
        self,
        email: str,
        username: str,
        password_hash: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> User:
        user = User(
            email=email,
            username=username,
            password_hash=password_hash,
            avatar_url=avatar_url,
        )
        self.db.add(user)
        self.flush()
        self.db.refresh(user)
        return user

    def soft_delete(self, user: User) -> User:
        if user.deleted_at is None:
            user.deleted_at = datetime.now(timezone.utc)
            self.flush()
        return user

    def flush(self) -> None:
        try:
            self.db.flush()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Email or username already in use") from e

    # -- Linked accounts -----------------------------------------------------

    def get_account(self, provider: str, provider_id: str) -> Optional[Account]:
        return (
            self.db.query(Account)
            .filter(Account.provider == provider, Account.provider_id == provider_id)
            .first()
        )

    def list_accounts(self, user_id: str) -> List[Account]:
        return (
            self.db.query(Account)
            .filter(Account.user_id == user_id)
            .order_by(Account.created_at)
            .all()
        )

    def link_account(
        self,
        user: User,
        provider: str,
        provider_id: str,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> Account:
        account = Account(
            user_id=user.id,
            provider=provider,
            provider_id=provider_id,
            access_token=access_token,
            refresh_token=refresh_token,
        )
        self.db.add(account)
        try:
            self.db.flush()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"This {provider} account is already linked", field="provider_id") from e
        return account
