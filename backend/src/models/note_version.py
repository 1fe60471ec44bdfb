"""NoteVersion model for storing note version history."""
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, UUIDv7Mixin, utc_now

if TYPE_CHECKING:
    from models.note import Note


class ChangeDescription(StrEnum):
    """Why a version was created."""

    AUTOSAVE = "autosave"
    FORCED_SAVE = "forced_save"
    INITIAL_CREATION = "initial_creation"
    PRE_ROLLBACK_BACKUP = "pre_rollback_backup"
    ROLLBACK = "rollback"


class NoteVersion(Base, UUIDv7Mixin):
    """
    NoteVersion model - an immutable full-text snapshot of a note.

    Versions are append-only: a new snapshot is always a new row. Only the
    user-facing label (custom_name) and the automation metadata may be edited
    afterwards; content and created_at never change.

    Ordering is created_at descending, with the time-ordered id breaking ties.
    """

    __tablename__ = "note_versions"
    __table_args__ = (
        # Composite index for the primary query pattern:
        # SELECT * FROM note_versions WHERE note_id = ? ORDER BY created_at DESC
        Index("ix_note_versions_note_id_created_at", "note_id", "created_at"),
    )

    # id provided by UUIDv7Mixin
    note_id: Mapped[UUID] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    change_description: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="ChangeDescription value, free text for older rows",
    )
    custom_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_forced_save: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Automation metadata (provider, model, how long the edit took)
    ai_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ai_model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ai_duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    diff_ops_json: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Edit operations from the previous version (see services.edit_ops)",
    )

    note: Mapped["Note"] = relationship(back_populates="versions")
