"""Seed script to populate the local dev database with notes and version histories.

Usage:
    PYTHONPATH=backend/src python backend/scripts/seed_data.py populate
    PYTHONPATH=backend/src python backend/scripts/seed_data.py populate --force
    PYTHONPATH=backend/src python backend/scripts/seed_data.py clear

Each seeded note gets a history that exercises the diff view: paragraphs that
move between versions, added and removed text, a forced save and a rollback.
"""

import argparse
import asyncio
from datetime import UTC, datetime, timedelta
from urllib.parse import urlparse

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings
from core.versioning_limits import get_versioning_limits
from db.sqlite import configure_sqlite_engine, is_sqlite_url
from models import Base, ChangeDescription, Note, NoteVersion
from services.legacy_ai_meta import AiMeta
from services.version_service import version_service

LOCAL_HOSTS = {'localhost', '127.0.0.1', '::1'}

# Each note: title and its versions oldest first. A tuple entry is
# (content, options) where options override the version fields.
NOTES = [
    {
        'title': 'Weekly planning',
        'versions': [
            'Goals\nShip the export feature.\n\nRisks\nQA capacity is thin this week.',
            # Paragraphs swapped: nothing should be highlighted
            'Risks\nQA capacity is thin this week.\n\nGoals\nShip the export feature.',
            (
                'Risks\nQA capacity is thin this week.\n\nGoals\nShip the export feature.'
                '\n\nDecisions\nFreeze scope on Thursday.',
                {'is_forced_save': True, 'custom_name': 'Before review'},
            ),
            'Goals\nShip the export feature and the audit log.\n\nDecisions\nFreeze scope on Thursday.',
        ],
        'rollback_to': 1,
    },
    {
        'title': 'Reading list',
        'versions': [
            'Designing Data-Intensive Applications\nThe Pragmatic Programmer',
            'The Pragmatic Programmer\nDesigning Data-Intensive Applications\nRefactoring',
            (
                'Summary of the reading list, grouped by topic.\n\n'
                'Systems\nDesigning Data-Intensive Applications\n\n'
                'Craft\nThe Pragmatic Programmer\nRefactoring',
                {'ai_meta': AiMeta(provider='OPENAI', model='gpt-4o', duration_ms=125_000)},
            ),
        ],
    },
    {
        'title': 'Scratchpad',
        'versions': [],
    },
]


def ensure_local_database(database_url: str) -> None:
    """Refuse to run against anything but a local database."""
    if is_sqlite_url(database_url):
        return
    host = urlparse(database_url).hostname
    if host not in LOCAL_HOSTS:
        print(
            f'ERROR: Seed script only runs against a local database (got host {host!r}).\n'
            'This script modifies data directly and must only run against a local dev database.'
        )
        raise SystemExit(1)


async def create_notes(session: AsyncSession) -> None:
    """Create seed notes with their version histories."""
    limits = get_versioning_limits(get_settings())
    start = datetime.now(UTC) - timedelta(days=2)
    version_count = 0

    for data in NOTES:
        versions = data['versions']
        note = Note(title=data['title'], content='')
        session.add(note)
        await session.flush()

        for i, entry in enumerate(versions):
            content, options = entry if isinstance(entry, tuple) else (entry, {})
            forced = options.get('is_forced_save', False)
            await version_service.create_version(
                session,
                note.id,
                content,
                (
                    ChangeDescription.FORCED_SAVE if forced
                    else ChangeDescription.INITIAL_CREATION if i == 0
                    else ChangeDescription.AUTOSAVE
                ),
                options.get('custom_name'),
                is_forced_save=forced,
                ai_meta=options.get('ai_meta'),
                now=start + timedelta(hours=i),
                max_versions=limits.max_regular_versions,
            )
            note.content = content
            version_count += 1

        rollback_to = data.get('rollback_to')
        if rollback_to is not None:
            history = await version_service.list_versions(session, note.id)
            target = history[len(history) - 1 - rollback_to]
            await version_service.rollback_to_version(session, note.id, target.id, limits)
            version_count += 2

    await session.flush()
    print(f'  Created {len(NOTES)} notes with {version_count} versions')


async def clear_data(session: AsyncSession) -> None:
    """Clear all notes and versions."""
    note_count = (await session.execute(select(func.count()).select_from(Note))).scalar()
    version_count = (
        await session.execute(select(func.count()).select_from(NoteVersion))
    ).scalar()

    # Versions first: SQLite only cascades when foreign keys are enforced
    await session.execute(delete(NoteVersion))
    await session.execute(delete(Note))
    await session.flush()

    print(f'  Deleted {note_count} notes, {version_count} versions')
    print('Clear complete.')


def _session_factory(database_url: str) -> tuple:
    engine = create_async_engine(database_url, echo=False)
    if is_sqlite_url(database_url):
        configure_sqlite_engine(engine)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def populate(force: bool = False) -> None:
    """Populate the database with seed data."""
    engine, session_factory = _session_factory(get_settings().database_url)

    # Local SQLite databases are created on the fly; Postgres uses migrations
    if is_sqlite_url(get_settings().database_url):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        try:
            note_count = (await session.execute(select(func.count()).select_from(Note))).scalar()
            if note_count and note_count > 0:
                if force:
                    print('Existing data found, clearing first (--force)...')
                    await clear_data(session)
                else:
                    print(
                        f'Data already exists ({note_count} notes). '
                        f'Use --force to clear and re-seed.'
                    )
                    return

            print('Populating seed data...')
            await create_notes(session)
            await session.commit()
            print('Seed data created successfully.')
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()


async def clear() -> None:
    """Clear all seeded data."""
    engine, session_factory = _session_factory(get_settings().database_url)

    async with session_factory() as session:
        try:
            await clear_data(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()


def main() -> None:
    """CLI entry point."""
    ensure_local_database(get_settings().database_url)

    parser = argparse.ArgumentParser(description='Seed the dev database with notes and versions.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    populate_parser = subparsers.add_parser('populate', help='Populate database with test data')
    populate_parser.add_argument(
        '--force', action='store_true',
        help='Clear existing data before populating',
    )

    subparsers.add_parser('clear', help='Remove all notes and versions')

    args = parser.parse_args()

    if args.command == 'populate':
        asyncio.run(populate(force=args.force))
    elif args.command == 'clear':
        asyncio.run(clear())


if __name__ == '__main__':
    main()
