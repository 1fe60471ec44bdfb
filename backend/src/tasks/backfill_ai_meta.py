"""
One-off migration of legacy AI metadata.

Older clients stored automation metadata in a version's custom name
(``AI_META|provider=..|model=..|elapsedMs=..``). This task moves it into the
ai_provider / ai_model / ai_duration_ms columns and clears the custom name.
Versions whose custom name does not use the convention are left untouched.
Running it twice is harmless.

Usage:
    python -m tasks.backfill_ai_meta
"""
import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import async_session_factory
from models.note_version import NoteVersion
from services.legacy_ai_meta import LEGACY_AI_META_PREFIX, parse_legacy_ai_meta

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


@dataclass
class BackfillStats:
    """Statistics from a backfill run."""

    scanned: int = 0
    migrated: int = 0


async def backfill_ai_meta(db: AsyncSession, batch_size: int = BATCH_SIZE) -> BackfillStats:
    """
    Move legacy metadata out of custom names.

    Explicit fields that are already set are not overwritten.

    Args:
        db: Database session.
        batch_size: Rows committed per batch.

    Returns:
        BackfillStats with scanned and migrated counts.
    """
    stats = BackfillStats()

    stmt = (
        select(NoteVersion)
        .where(NoteVersion.custom_name.startswith(LEGACY_AI_META_PREFIX, autoescape=True))
        .order_by(NoteVersion.id)
        .limit(batch_size)
    )

    while True:
        versions = (await db.execute(stmt)).scalars().all()
        if not versions:
            break

        for version in versions:
            stats.scanned += 1
            meta = parse_legacy_ai_meta(version.custom_name)
            if meta is None:
                continue
            version.ai_provider = version.ai_provider or meta.provider
            version.ai_model = version.ai_model or meta.model
            if version.ai_duration_ms is None:
                version.ai_duration_ms = meta.duration_ms
            version.custom_name = None
            stats.migrated += 1

        await db.commit()
        logger.info("Backfilled AI metadata for %d versions so far", stats.migrated)

    return stats


async def run_backfill(db: AsyncSession | None = None) -> BackfillStats:
    """Run the backfill with the given session, or a new one."""
    logger.info("Starting AI metadata backfill")
    if db is not None:
        stats = await backfill_ai_meta(db)
    else:
        async with async_session_factory() as session:
            stats = await backfill_ai_meta(session)
    logger.info("Backfill complete: scanned=%d migrated=%d", stats.scanned, stats.migrated)
    return stats


def main() -> None:
    """Entry point for running the backfill as a script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_backfill())


if __name__ == "__main__":
    main()
