"""
Scheduled version cleanup task.

Per-note caps are enforced whenever a version is created; this task is the
global pass that catches notes left over the cap (e.g. after the cap was
lowered, or when a cap enforcement failed). Designed to run as a cron job.

Usage:
    python -m tasks.cleanup

The task:
1. Evicts the oldest regular versions of every note over the configured cap
   (forced saves are kept)
2. Deletes versions whose note no longer exists
"""
import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.versioning_limits import get_versioning_limits
from db.session import async_session_factory
from models.note import Note
from models.note_version import NoteVersion
from services.version_service import version_service

logger = logging.getLogger(__name__)


@dataclass
class CleanupStats:
    """Statistics from a cleanup run."""

    notes_over_cap: int = 0
    versions_evicted: int = 0
    orphaned_deleted: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to simple dict for logging/return."""
        return {
            "notes_over_cap": self.notes_over_cap,
            "versions_evicted": self.versions_evicted,
            "orphaned_deleted": self.orphaned_deleted,
        }


async def enforce_version_caps(db: AsyncSession, max_versions: int) -> CleanupStats:
    """
    Apply the retention cap to every note with more than ``max_versions`` versions.

    Args:
        db: Database session.
        max_versions: Number of most recent versions to keep per note.

    Returns:
        CleanupStats with notes_over_cap and versions_evicted.
    """
    stats = CleanupStats()

    stmt = (
        select(NoteVersion.note_id)
        .group_by(NoteVersion.note_id)
        .having(func.count() > max_versions)
    )
    note_ids = (await db.execute(stmt)).scalars().all()

    for note_id in note_ids:
        evicted = await version_service.evict_excess(
            db, note_id, keep=max_versions, preserve_forced=True,
        )
        stats.notes_over_cap += 1
        stats.versions_evicted += evicted
        if evicted > 0:
            logger.info(
                "Evicted %d versions of note %s (cap %d)", evicted, note_id, max_versions,
            )

    await db.commit()
    return stats


async def cleanup_orphaned_versions(db: AsyncSession) -> CleanupStats:
    """
    Delete versions whose note no longer exists.

    Versions are cascade-deleted with their note; this handles rows left behind
    where the database did not enforce the foreign key.

    Returns:
        CleanupStats with orphaned_deleted.
    """
    stats = CleanupStats()

    note_exists = select(Note.id).where(Note.id == NoteVersion.note_id).exists()
    result = await db.execute(delete(NoteVersion).where(~note_exists))
    stats.orphaned_deleted = result.rowcount

    if stats.orphaned_deleted > 0:
        logger.info("Cleaned %d orphaned versions", stats.orphaned_deleted)

    await db.commit()
    return stats


async def run_cleanup(
    db: AsyncSession | None = None,
    max_versions: int | None = None,
) -> CleanupStats:
    """
    Run all cleanup tasks.

    Args:
        db: Database session. If None, creates one from async_session_factory.
        max_versions: Per-note cap. Defaults to the configured VERSION_MAX_REGULAR.

    Returns:
        Combined CleanupStats from all cleanup operations.
    """
    if max_versions is None:
        max_versions = get_versioning_limits(get_settings()).max_regular_versions

    logger.info("Starting version cleanup task (cap=%d)", max_versions)

    async def _run(session: AsyncSession) -> CleanupStats:
        cap_stats = await enforce_version_caps(session, max_versions)
        orphan_stats = await cleanup_orphaned_versions(session)
        return CleanupStats(
            notes_over_cap=cap_stats.notes_over_cap,
            versions_evicted=cap_stats.versions_evicted,
            orphaned_deleted=orphan_stats.orphaned_deleted,
        )

    if db is not None:
        stats = await _run(db)
    else:
        async with async_session_factory() as session:
            stats = await _run(session)

    logger.info("Cleanup complete: %s", stats.to_dict())
    return stats


def main() -> None:
    """Entry point for running cleanup as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_cleanup())


if __name__ == "__main__":
    main()
