"""
Unified Database for Movie Night - Repository Pattern

Single SQLite database with a thin facade over focused repositories:
- MovieRepository: Movie suggestions and metadata
- MeetingRepository: Meetings, voting flag and resolution results
- BallotRepository: Ranked ballots and availability
- ReviewRepository: Post-watch reviews

Business rules (validation, resolution, lifecycle) live in
database/services/voting.py and the pure voting/ package.
"""

import sqlite3
from typing import Any, Dict
from pathlib import Path
from importlib.resources import files

from config import get_logger
from exceptions import DatabaseConnectionError
from database.repositories.movies import MovieRepository
from database.repositories.meetings import MeetingRepository
from database.repositories.ballots import BallotRepository
from database.repositories.reviews import ReviewRepository

logger = get_logger(__name__).bind(component="database")


class UnifiedDatabase:
    """
    Single database interface for all Movie Night data.

    Threading Model:
    - Each instance creates its own SQLite connection
    - WAL mode lets request handlers write with separate connections
    - DO NOT share instances across threads - create one per request
    """

    conn: sqlite3.Connection

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connect()
        self._init_schema()

        # Initialize repositories with shared connection
        self.movies = MovieRepository(self.conn)
        self.meetings = MeetingRepository(self.conn)
        self.ballots = BallotRepository(self.conn)
        self.reviews = ReviewRepository(self.conn)

        logger.debug("initialized unified database", db_path=db_path)

    def _connect(self):
        """Create database connection with optimizations"""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=10.0)
        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Could not open database: {e}", context={"db_path": self.db_path}
            )
        self.conn.row_factory = sqlite3.Row

        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA foreign_keys=ON")

    def _init_schema(self):
        """Initialize schema from the packaged schema.sql (idempotent)"""
        if self.conn is None:
            raise DatabaseConnectionError("Database connection not established")

        schema = files("database").joinpath("schema.sql").read_text()

        self.conn.executescript(schema)
        self.conn.commit()

    # ========== Utilities ==========

    def get_stats(self) -> Dict[str, Any]:
        """Row counts for health checks"""
        stats = {}
        for table in ("movies", "meetings", "ballots", "reviews"):
            row = self.conn.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()
            stats[table] = row["cnt"]
        return stats

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            logger.debug("database connection closed")

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensures connection cleanup"""
        self.close()
        return False
