"""
Database transaction management

Provides a context manager for explicit transaction control. Repositories
never commit; callers group their writes with `with transaction(conn):`.
"""

from contextlib import contextmanager
import sqlite3

from config import get_logger

logger = get_logger(__name__).bind(component="transaction")


@contextmanager
def transaction(conn: sqlite3.Connection, immediate: bool = False, rollback_on_exception: bool = True):
    """Context manager for database transactions

    Args:
        conn: SQLite connection object
        immediate: Take the write lock up front (BEGIN IMMEDIATE) so reads
            inside the block cannot go stale before the writes land
        rollback_on_exception: If True, rollback on any exception (default: True)

    Yields:
        The connection object (for convenience)

    Example:
        with transaction(db.conn, immediate=True):
            meeting = db.meetings.get_meeting(meeting_id)
            db.ballots.create_ballot(...)
            # Automatic commit on success, rollback on exception
    """
    if immediate and not conn.in_transaction:
        conn.execute("BEGIN IMMEDIATE")

    try:
        yield conn
        conn.commit()
        logger.debug("transaction committed")
    except Exception as e:
        if rollback_on_exception:
            conn.rollback()
            logger.warning("transaction rolled back", error=str(e), error_type=type(e).__name__)
        raise
