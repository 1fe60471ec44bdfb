"""Note model for storing user notes."""
from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.note_version import NoteVersion


class Note(Base, UUIDv7Mixin, TimestampMixin):
    """
    Note model - the live text of a note.

    Note.content is always the current version; NoteVersion rows are
    snapshots of earlier states and are deleted with the note.
    """

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    versions: Mapped[list["NoteVersion"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
