"""SQLite engine setup (local development and the test suite)."""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine


def is_sqlite_url(url: str) -> bool:
    """Whether a database URL points at SQLite."""
    return url.startswith("sqlite")


def configure_sqlite_engine(engine: AsyncEngine) -> None:
    """
    Make a SQLite engine behave like the production database where it matters.

    - Foreign keys are enforced (ON DELETE CASCADE for versions).
    - The driver's own transaction handling is disabled and SQLAlchemy emits
      BEGIN itself, which SAVEPOINT (``begin_nested``) requires.
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # noqa: ANN001, ARG001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sync_engine, "begin")
    def _on_begin(conn) -> None:  # noqa: ANN001
        conn.exec_driver_sql("BEGIN")
