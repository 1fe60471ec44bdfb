"""Tests for the Note and NoteVersion models."""
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import UUIDv7Mixin
from models.note import Note
from models.note_version import ChangeDescription, NoteVersion


class TestUUIDv7Ids:
    """Tests for ids generated by UUIDv7Mixin."""

    def test__uuid7_mixin__has_id_attribute(self) -> None:
        """Test that UUIDv7Mixin defines an id attribute."""
        assert hasattr(UUIDv7Mixin, "id")

    async def test__version_ids__are_v7_and_time_ordered(
        self, db_session: AsyncSession, note: Note,
    ) -> None:
        """Test that version ids are UUIDv7 and sort in creation order."""
        first = NoteVersion(note_id=note.id, content="a")
        second = NoteVersion(note_id=note.id, content="b")
        db_session.add(first)
        await db_session.flush()
        db_session.add(second)
        await db_session.flush()

        assert isinstance(first.id, UUID)
        assert first.id.version == 7
        assert second.id > first.id


class TestNoteVersionDefaults:
    """Tests for NoteVersion column defaults."""

    async def test__defaults(self, db_session: AsyncSession, note: Note) -> None:
        """Test optional columns default to empty metadata."""
        version = NoteVersion(note_id=note.id, content="text")
        db_session.add(version)
        await db_session.flush()

        assert version.created_at is not None
        assert version.is_forced_save is False
        assert version.change_description is None
        assert version.custom_name is None
        assert version.ai_provider is None
        assert version.diff_ops_json is None

    def test__change_description_values(self) -> None:
        """Test stored change descriptions are stable strings."""
        assert [d.value for d in ChangeDescription] == [
            "autosave",
            "forced_save",
            "initial_creation",
            "pre_rollback_backup",
            "rollback",
        ]


class TestNoteCascade:
    """Tests for deleting notes with versions."""

    async def test__deleting_note_deletes_versions(self, db_session: AsyncSession) -> None:
        """Test a note's versions go with it."""
        note = Note(title="Doomed", content="bye")
        db_session.add(note)
        await db_session.flush()
        db_session.add_all([NoteVersion(note_id=note.id, content=f"v{i}") for i in range(3)])
        await db_session.flush()
        note_id = note.id

        await db_session.delete(note)
        await db_session.flush()

        count = (
            await db_session.execute(
                select(func.count())
                .select_from(NoteVersion)
                .where(NoteVersion.note_id == note_id),
            )
        ).scalar_one()
        assert count == 0
