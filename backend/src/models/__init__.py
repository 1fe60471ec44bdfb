"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.note import Note
from models.note_version import ChangeDescription, NoteVersion

__all__ = [
    "Base",
    "ChangeDescription",
    "Note",
    "NoteVersion",
    "TimestampMixin",
    "UUIDv7Mixin",
]
