"""User and Account models.

Users log in with email/password or through an OAuth provider. Each linked
provider identity is an Account row keyed by (provider, provider_id) and
points to exactly one User. OAuth-only users have no password hash.
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base
from ._common import new_id, utcnow


class User(Base):
    """User account. Soft-deleted users keep their rows, files and groups."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(Text, nullable=True)  # NULL for OAuth-only accounts
    avatar_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")

    @property
    def has_password(self) -> bool:
        return self.password_hash is not None


class Account(Base):
    """External OAuth identity linked to a user."""

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_accounts_provider_identity"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(20), nullable=False)        # "google", "github"
    provider_id = Column(String(255), nullable=False)    # id assigned by the provider
    access_token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User", back_populates="accounts")
