"""Service layer for note versions: storage, automatic snapshots, rollback and diffs."""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.versioning_limits import SIMILARITY_THRESHOLD, VersioningLimits
from models.base import utc_now
from models.note import Note
from models.note_version import ChangeDescription, NoteVersion
from services.edit_ops import compute_edit_ops, dump_edit_ops
from services.exceptions import NoteNotFoundError, RollbackError, VersionNotFoundError
from services.legacy_ai_meta import AiMeta
from services.retention_policy import select_versions_to_evict, should_create_version
from services.version_diff import Highlight, build_history_diffs, diff_against_neighbors

logger = logging.getLogger(__name__)


@dataclass
class RollbackResult:
    """Result of rolling a note back to an earlier version."""

    note: Note
    backup: NoteVersion  # Snapshot of the content before the rollback
    rollback: NoteVersion  # Snapshot of the restored content


@dataclass
class VersionDiff:
    """A version classified against its chronological neighbors."""

    version: NoteVersion
    previous_version_id: UUID | None
    next_version_id: UUID | None
    highlights: list[Highlight]


@dataclass
class VersionWithDiff:
    """Entry of a history listing with its highlights."""

    version: NoteVersion
    highlights: list[Highlight]


class VersionService:
    """Service for creating, retrieving and pruning note versions."""

    async def get_note(self, db: AsyncSession, note_id: UUID) -> Note:
        """
        Get a note by id.

        Raises:
            NoteNotFoundError: If the note doesn't exist.
        """
        note = await db.get(Note, note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def create_version(
        self,
        db: AsyncSession,
        note_id: UUID,
        content: str,
        change_description: ChangeDescription | str | None = None,
        custom_name: str | None = None,
        *,
        is_forced_save: bool = False,
        ai_meta: AiMeta | None = None,
        now: datetime | None = None,
        max_versions: int | None = None,
    ) -> NoteVersion:
        """
        Append a new version to a note's history.

        The edit operations from the current latest version are stored alongside
        the snapshot. After the insert, the history is capped at ``max_versions``:
        older regular versions beyond the cap are deleted, forced saves are kept.
        A failure while capping is logged and does not fail the insert.

        Args:
            db: Database session.
            note_id: ID of the note.
            content: Full note text to snapshot.
            change_description: Why the version is created.
            custom_name: Optional user-facing label.
            is_forced_save: Whether the user explicitly asked for this snapshot.
            ai_meta: Automation metadata when the content came from an automated edit.
            now: Creation time (defaults to the current time).
            max_versions: Retention cap to enforce after the insert. None skips it.

        Returns:
            The created NoteVersion.

        Raises:
            NoteNotFoundError: If the note doesn't exist.
        """
        await self.get_note(db, note_id)

        latest = await self.get_latest_version(db, note_id)
        diff_ops_json = None
        if latest is not None:
            diff_ops_json = dump_edit_ops(compute_edit_ops(latest.content, content))

        version = NoteVersion(
            note_id=note_id,
            content=content,
            created_at=now or utc_now(),
            change_description=(
                change_description.value
                if isinstance(change_description, ChangeDescription)
                else change_description
            ),
            custom_name=custom_name,
            is_forced_save=is_forced_save,
            ai_provider=ai_meta.provider if ai_meta else None,
            ai_model=ai_meta.model if ai_meta else None,
            ai_duration_ms=ai_meta.duration_ms if ai_meta else None,
            diff_ops_json=diff_ops_json,
        )
        db.add(version)
        await db.flush()

        if max_versions is not None:
            await self._enforce_cap(db, note_id, max_versions)
        return version

    async def list_versions(self, db: AsyncSession, note_id: UUID) -> list[NoteVersion]:
        """List a note's versions, newest first (ties broken by id)."""
        stmt = (
            select(NoteVersion)
            .where(NoteVersion.note_id == note_id)
            .order_by(NoteVersion.created_at.desc(), NoteVersion.id.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_version(
        self,
        db: AsyncSession,
        version_id: UUID,
        note_id: UUID | None = None,
    ) -> NoteVersion | None:
        """
        Get a version by id.

        Args:
            db: Database session.
            version_id: ID of the version.
            note_id: If given, the version must belong to this note.

        Returns:
            The version, or None if not found.
        """
        stmt = select(NoteVersion).where(NoteVersion.id == version_id)
        if note_id is not None:
            stmt = stmt.where(NoteVersion.note_id == note_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest_version(self, db: AsyncSession, note_id: UUID) -> NoteVersion | None:
        """Get the newest version of a note, or None if it has none."""
        stmt = (
            select(NoteVersion)
            .where(NoteVersion.note_id == note_id)
            .order_by(NoteVersion.created_at.desc(), NoteVersion.id.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def count_versions(self, db: AsyncSession, note_id: UUID) -> int:
        """Count a note's versions."""
        stmt = (
            select(func.count())
            .select_from(NoteVersion)
            .where(NoteVersion.note_id == note_id)
        )
        return (await db.execute(stmt)).scalar_one()

    async def delete_version(
        self,
        db: AsyncSession,
        version_id: UUID,
        note_id: UUID | None = None,
    ) -> bool:
        """
        Delete a single version.

        Returns:
            True if a version was deleted, False if it didn't exist.
        """
        stmt = delete(NoteVersion).where(NoteVersion.id == version_id)
        if note_id is not None:
            stmt = stmt.where(NoteVersion.note_id == note_id)
        result = await db.execute(stmt)
        return result.rowcount > 0

    async def delete_all_versions(self, db: AsyncSession, note_id: UUID) -> int:
        """Delete every version of a note. Returns the number deleted."""
        result = await db.execute(delete(NoteVersion).where(NoteVersion.note_id == note_id))
        return result.rowcount

    async def rename_version(
        self,
        db: AsyncSession,
        version_id: UUID,
        custom_name: str | None,
        note_id: UUID | None = None,
    ) -> NoteVersion:
        """
        Set or clear a version's custom name.

        A blank name clears the label.

        Raises:
            VersionNotFoundError: If the version doesn't exist.
        """
        version = await self._require_version(db, version_id, note_id)
        name = custom_name.strip() if custom_name else ""
        version.custom_name = name or None
        await db.flush()
        return version

    async def update_ai_meta(
        self,
        db: AsyncSession,
        version_id: UUID,
        meta: AiMeta,
        note_id: UUID | None = None,
    ) -> NoteVersion:
        """
        Replace a version's automation metadata.

        Raises:
            VersionNotFoundError: If the version doesn't exist.
        """
        version = await self._require_version(db, version_id, note_id)
        version.ai_provider = meta.provider
        version.ai_model = meta.model
        version.ai_duration_ms = meta.duration_ms
        await db.flush()
        return version

    async def maybe_create_auto_version(
        self,
        db: AsyncSession,
        note_id: UUID,
        content: str,
        limits: VersioningLimits,
        now: datetime | None = None,
        on_exit: bool = False,
    ) -> NoteVersion | None:
        """
        Snapshot the note if the retention policy asks for it.

        Runs inside a savepoint: a storage failure is logged and reported as "no
        version", and never rolls back the caller's own changes (e.g. the note
        save that triggered the check).

        Args:
            db: Database session.
            note_id: ID of the note.
            content: Current note content.
            limits: Active versioning limits.
            now: Current time (defaults to the current time).
            on_exit: Whether the user is leaving the note.

        Returns:
            The created version, or None if none was needed or it could not be saved.

        Raises:
            NoteNotFoundError: If the note doesn't exist.
        """
        now = now or utc_now()

        try:
            async with db.begin_nested():
                await self.get_note(db, note_id)
                latest = await self.get_latest_version(db, note_id)
                decision = should_create_version(
                    last_created_at=latest.created_at if latest else None,
                    last_content=latest.content if latest else None,
                    new_content=content,
                    now=now,
                    limits=limits,
                    on_exit=on_exit,
                )
                if not decision.create:
                    logger.debug(
                        "No automatic version for note %s: %s", note_id, decision.reason,
                    )
                    return None

                version = await self.create_version(
                    db,
                    note_id,
                    content,
                    (
                        ChangeDescription.INITIAL_CREATION
                        if latest is None
                        else ChangeDescription.AUTOSAVE
                    ),
                    now=now,
                    max_versions=limits.max_regular_versions,
                )
        except SQLAlchemyError:
            logger.warning(
                "Automatic version for note %s could not be saved", note_id, exc_info=True,
            )
            return None
        return version

    async def force_save(
        self,
        db: AsyncSession,
        note_id: UUID,
        content: str,
        limits: VersioningLimits,
        custom_name: str | None = None,
        ai_meta: AiMeta | None = None,
    ) -> NoteVersion:
        """
        Save the note and snapshot it unconditionally.

        Forced versions survive the automatic retention cap. Storage errors propagate.

        Raises:
            NoteNotFoundError: If the note doesn't exist.
        """
        note = await self.get_note(db, note_id)
        note.content = content
        return await self.create_version(
            db,
            note_id,
            content,
            ChangeDescription.FORCED_SAVE,
            custom_name,
            is_forced_save=True,
            ai_meta=ai_meta,
            max_versions=limits.max_regular_versions,
        )

    async def rollback_to_version(
        self,
        db: AsyncSession,
        note_id: UUID,
        version_id: UUID,
        limits: VersioningLimits,
        current_content: str | None = None,
    ) -> RollbackResult:
        """
        Restore a note to the content of one of its versions.

        Steps, in order:
        1. Snapshot the current content as a pre-rollback backup.
        2. Write the target content to the note.
        3. Snapshot the restored content as a rollback version.

        If step 2 or 3 fails, the backup from step 1 is kept.

        Args:
            db: Database session.
            note_id: ID of the note.
            version_id: ID of the version to restore.
            limits: Active versioning limits (for the retention cap).
            current_content: Unsaved editor content to back up instead of the
                stored note content.

        Returns:
            RollbackResult with the updated note and both new versions.

        Raises:
            NoteNotFoundError: If the note doesn't exist.
            VersionNotFoundError: If the version doesn't exist for this note.
            RollbackError: If the note could not be updated after the backup.
        """
        note = await self.get_note(db, note_id)
        target = await self._require_version(db, version_id, note_id)
        # Read before the backup: the cap may evict the target
        target_content = target.content

        backup = await self.create_version(
            db,
            note_id,
            current_content if current_content is not None else note.content,
            ChangeDescription.PRE_ROLLBACK_BACKUP,
            max_versions=limits.max_regular_versions,
        )
        backup_id = backup.id

        try:
            async with db.begin_nested():
                note.content = target_content
                await db.flush()
                rollback = await self.create_version(
                    db,
                    note_id,
                    target_content,
                    ChangeDescription.ROLLBACK,
                    max_versions=limits.max_regular_versions,
                )
        except SQLAlchemyError as e:
            logger.error(
                "Rollback of note %s to version %s failed; backup %s kept",
                note_id, version_id, backup_id,
            )
            raise RollbackError(note_id, backup_id) from e

        logger.info("Rolled back note %s to version %s", note_id, version_id)
        return RollbackResult(note=note, backup=backup, rollback=rollback)

    async def cleanup_versions(self, db: AsyncSession, note_id: UUID, keep_count: int) -> int:
        """
        Delete every version beyond the ``keep_count`` most recent, forced saves included.

        Returns:
            Number of versions deleted.
        """
        deleted = await self.evict_excess(db, note_id, keep=keep_count, preserve_forced=False)
        if deleted:
            logger.info(
                "Cleaned up %d versions of note %s (kept %d)", deleted, note_id, keep_count,
            )
        return deleted

    async def get_history_with_diffs(
        self,
        db: AsyncSession,
        note_id: UUID,
        threshold: float = SIMILARITY_THRESHOLD,
    ) -> list[VersionWithDiff]:
        """
        List a note's versions (newest first), each diffed against its neighbors.

        The diffs are CPU-bound and run in a worker thread.
        """
        versions = await self.list_versions(db, note_id)
        contents = [version.content for version in versions]
        highlights = await asyncio.to_thread(build_history_diffs, contents, threshold)
        return [
            VersionWithDiff(version=version, highlights=version_highlights)
            for version, version_highlights in zip(versions, highlights, strict=True)
        ]

    async def get_version_diff(
        self,
        db: AsyncSession,
        note_id: UUID,
        version_id: UUID,
        threshold: float = SIMILARITY_THRESHOLD,
    ) -> VersionDiff:
        """
        Diff one version against the versions just before and after it.

        Raises:
            VersionNotFoundError: If the version doesn't exist for this note.
        """
        versions = await self.list_versions(db, note_id)
        index = next(
            (i for i, version in enumerate(versions) if version.id == version_id),
            None,
        )
        if index is None:
            raise VersionNotFoundError(version_id)

        previous = versions[index + 1] if index + 1 < len(versions) else None
        following = versions[index - 1] if index > 0 else None
        highlights = await asyncio.to_thread(
            diff_against_neighbors,
            versions[index].content,
            previous.content if previous else None,
            following.content if following else None,
            threshold,
        )
        return VersionDiff(
            version=versions[index],
            previous_version_id=previous.id if previous else None,
            next_version_id=following.id if following else None,
            highlights=highlights,
        )

    async def _require_version(
        self,
        db: AsyncSession,
        version_id: UUID,
        note_id: UUID | None,
    ) -> NoteVersion:
        version = await self.get_version(db, version_id, note_id)
        if version is None:
            raise VersionNotFoundError(version_id)
        return version

    async def _enforce_cap(self, db: AsyncSession, note_id: UUID, max_versions: int) -> int:
        """
        Apply the automatic retention cap, swallowing storage failures.

        Keeps the newest ``max_versions`` versions and any older forced saves.
        """
        try:
            async with db.begin_nested():
                deleted = await self.evict_excess(
                    db, note_id, keep=max_versions, preserve_forced=True,
                )
        except SQLAlchemyError:
            logger.warning(
                "Failed to enforce version cap for note %s", note_id, exc_info=True,
            )
            return 0
        if deleted:
            logger.info(
                "Evicted %d old versions of note %s (cap %d)", deleted, note_id, max_versions,
            )
        return deleted

    async def evict_excess(
        self,
        db: AsyncSession,
        note_id: UUID,
        keep: int,
        preserve_forced: bool,
    ) -> int:
        """Delete the versions outside the newest ``keep``. Returns the number deleted."""
        stmt = (
            select(NoteVersion.id, NoteVersion.is_forced_save)
            .where(NoteVersion.note_id == note_id)
            .order_by(NoteVersion.created_at.desc(), NoteVersion.id.desc())
        )
        rows = (await db.execute(stmt)).all()
        doomed = select_versions_to_evict(rows, keep, preserve_forced=preserve_forced)
        if not doomed:
            return 0

        await db.execute(
            delete(NoteVersion).where(NoteVersion.id.in_([row.id for row in doomed])),
        )
        return len(doomed)


# Singleton instance for use throughout the application
version_service = VersionService()
