"""Markdown file model."""

from sqlalchemy import Column, Index, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base
from ._common import new_id, utcnow


class MarkdownFile(Base):
    """A user's markdown document.

    Lifecycle is carried by ``deleted_at``: NULL means active, a timestamp
    means the file sits in the trash. Purged files no longer have a row.
    """

    __tablename__ = "markdown_files"
    __table_args__ = (
        Index("ix_markdown_files_user_deleted", "user_id", "deleted_at"),
        Index("ix_markdown_files_group_id", "group_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")  # opaque, never parsed server-side

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # NULL = ungrouped
    group_id = Column(String(36), ForeignKey("group_notes.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Soft delete (NULL = active, timestamp = trashed)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    group = relationship("Group", back_populates="files")

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None


# Active titles are unique per owner; trashed files may share a title.
Index(
    "uq_markdown_files_user_title_active",
    MarkdownFile.user_id,
    MarkdownFile.title,
    unique=True,
    sqlite_where=MarkdownFile.deleted_at.is_(None),
    postgresql_where=MarkdownFile.deleted_at.is_(None),
)
