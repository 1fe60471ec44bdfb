"""Shared exceptions for service layer operations."""
from uuid import UUID


class NoteNotFoundError(Exception):
    """Raised when a note referenced by a version operation doesn't exist."""

    def __init__(self, note_id: UUID) -> None:
        self.note_id = note_id
        super().__init__(f"Note not found: {note_id}")


class VersionNotFoundError(Exception):
    """Raised when a version doesn't exist (or belongs to another note)."""

    def __init__(self, version_id: UUID) -> None:
        self.version_id = version_id
        super().__init__(f"Version not found: {version_id}")


class RollbackError(Exception):
    """
    Raised when a rollback fails after its safety backup was written.

    The backup version of the pre-rollback content is kept, so the user can
    recover from it manually.
    """

    def __init__(self, note_id: UUID, backup_version_id: UUID | None = None) -> None:
        self.note_id = note_id
        self.backup_version_id = backup_version_id
        super().__init__(f"Rollback failed for note {note_id}")
