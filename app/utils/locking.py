"""
Pessimistic row locking.

All read-check-write sequences in the core (coupon redemption, withdrawal
balance checks, payout approval) go through acquire_row_lock() so that they
serialize on the row being decided.

PostgreSQL: SELECT ... FOR UPDATE. Concurrent lockers of the same row block
until the holder commits or rolls back, then re-read the committed state.

SQLite has no row locks and silently drops FOR UPDATE. There a no-op UPDATE
on the row is issued first, which takes the database write lock for the rest
of the transaction; competing writers wait on it (busy timeout) and then see
the committed state.
"""
import logging

from sqlalchemy import event, inspect, update

from ..extensions import db

logger = logging.getLogger(__name__)


def acquire_row_lock(model, *criteria):
    """
    Lock and return the first row of `model` matching `criteria`.

    Must be called inside the transaction that will act on the row; the lock
    is released by that transaction's commit or rollback.

    Returns:
        The locked instance, or None if no row matches
    """
    if db.session.get_bind().dialect.name == 'sqlite':
        pk = inspect(model).primary_key[0]
        db.session.execute(
            update(model).where(*criteria).values({pk.name: pk}).execution_options(synchronize_session=False)
        )

    return (
        db.session.query(model)
        .filter(*criteria)
        .with_for_update()
        .populate_existing()
        .first()
    )


def configure_engine(engine, lock_timeout_ms=None) -> None:
    """Per-connection settings for the engine backing db.session."""
    if engine.dialect.name == 'postgresql' and lock_timeout_ms:
        @event.listens_for(engine, 'connect')
        def set_lock_timeout(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute(f"SET lock_timeout = {int(lock_timeout_ms)}")
            cursor.close()
            dbapi_conn.commit()

        logger.info(f"Row lock waits bounded to {int(lock_timeout_ms)}ms")

    elif engine.dialect.name == 'sqlite':
        @event.listens_for(engine, 'connect')
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.execute("PRAGMA busy_timeout = 30000")
            cursor.close()
