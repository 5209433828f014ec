"""
Review Repository - Post-watch scores and comments

REPOSITORY PATTERN: All methods are atomic operations.
Transaction management is the CALLER'S responsibility.
"""

from typing import Any, Dict, List, Optional

from config import get_logger
from database.models import Review
from database.repositories.base import BaseRepository
from exceptions import DatabaseError

logger = get_logger(__name__).bind(component="database")


class ReviewRepository(BaseRepository):
    """Repository for review operations"""

    def add_review(
        self,
        movie_id: int,
        score: int,
        username: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> Review:
        """Insert a review

        NOTE: Does not commit - caller must manage transaction.
        """
        cursor = self._execute(
            "INSERT INTO reviews (movie_id, username, score, comment) VALUES (?, ?, ?, ?)",
            (movie_id, username, score, comment),
        )
        row = self._fetch_one("SELECT * FROM reviews WHERE id = ?", (cursor.lastrowid,))
        if row is None:
            raise DatabaseError(f"Failed to retrieve newly stored review: {cursor.lastrowid}")
        return Review.from_db_row(row)

    def get_reviews(self, movie_id: int) -> List[Review]:
        """Reviews for a movie, newest first"""
        rows = self._fetch_all(
            "SELECT * FROM reviews WHERE movie_id = ? ORDER BY created_at DESC, id DESC",
            (movie_id,),
        )
        return [Review.from_db_row(row) for row in rows]

    def get_summary(self, movie_id: int) -> Dict[str, Any]:
        """Review count and average score (None when unreviewed)"""
        row = self._fetch_one(
            "SELECT COUNT(*) AS cnt, AVG(score) AS avg_score FROM reviews WHERE movie_id = ?",
            (movie_id,),
        )
        count = row["cnt"] if row else 0
        average = row["avg_score"] if row else None
        return {
            "count": count,
            "average": round(average, 2) if count and average is not None else None,
        }
