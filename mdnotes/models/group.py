"""Group model."""

from sqlalchemy import Column, Index, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from ..database import Base
from ._common import new_id, utcnow


class Group(Base):
    """Named collection of markdown files owned by one user.

    Names are unique per owner, case-insensitively, among non-deleted groups
    only. A soft-deleted group frees its name for reuse.
    """

    __tablename__ = "group_notes"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Soft delete (NULL = active, timestamp = deleted)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    files = relationship("MarkdownFile", back_populates="group")


Index(
    "uq_group_notes_user_name_active",
    Group.user_id,
    func.lower(Group.name),
    unique=True,
    sqlite_where=Group.deleted_at.is_(None),
    postgresql_where=Group.deleted_at.is_(None),
)
