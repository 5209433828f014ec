"""
Meeting Repository - Meeting operations

Handles meeting lookups, storage, field updates, the voting_open
compare-and-set and persistence of resolution results.

REPOSITORY PATTERN: All methods are atomic operations.
Transaction management is the CALLER'S responsibility.
Use `with transaction(conn):` context manager to group operations.
"""

from typing import Any, Dict, List, Optional

from config import get_logger
from database.models import Meeting
from database.repositories.base import BaseRepository
from exceptions import DatabaseError

logger = get_logger(__name__).bind(component="database")

# Columns a patch may touch; voting_open goes through set_voting_open()
UPDATABLE_FIELDS = ("name", "date", "candidate_days", "allowed_movie_ids")
JSON_FIELDS = ("candidate_days", "allowed_movie_ids")


class MeetingRepository(BaseRepository):
    """Repository for meeting operations"""

    def get_meeting(self, meeting_id: int) -> Optional[Meeting]:
        """Get a single meeting by ID"""
        row = self._fetch_one("SELECT * FROM meetings WHERE id = ?", (meeting_id,))
        return Meeting.from_db_row(row) if row else None

    def get_meetings(self) -> List[Meeting]:
        """All meetings, latest date first (undated last), then newest"""
        rows = self._fetch_all(
            "SELECT * FROM meetings ORDER BY date DESC, created_at DESC, id DESC"
        )
        return [Meeting.from_db_row(row) for row in rows]

    def create_meeting(
        self,
        name: Optional[str] = None,
        date: Optional[str] = None,
        candidate_days: Optional[List[str]] = None,
        allowed_movie_ids: Optional[List[int]] = None,
        voting_open: bool = True,
        watched_movie_id: Optional[int] = None,
    ) -> Meeting:
        """Insert a meeting

        NOTE: Does not commit - caller must manage transaction.
        """
        cursor = self._execute(
            """
            INSERT INTO meetings (name, date, candidate_days, allowed_movie_ids, voting_open, watched_movie_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                name,
                date,
                self._dump_json(candidate_days or []),
                self._dump_json(allowed_movie_ids),
                1 if voting_open else 0,
                watched_movie_id,
            ),
        )
        meeting = self.get_meeting(cursor.lastrowid)
        if meeting is None:
            raise DatabaseError(f"Failed to retrieve newly stored meeting: {cursor.lastrowid}")
        return meeting

    def update_fields(self, meeting_id: int, fields: Dict[str, Any]) -> None:
        """Update plain meeting fields (never voting_open)

        NOTE: Does not commit - caller must manage transaction.
        """
        assignments = []
        params: List[Any] = []
        for name in UPDATABLE_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name in JSON_FIELDS:
                value = self._dump_json(value)
            assignments.append(f"{name} = ?")
            params.append(value)

        if not assignments:
            return

        params.append(meeting_id)
        self._execute(
            f"UPDATE meetings SET {', '.join(assignments)} WHERE id = ?",
            tuple(params),
        )

    def set_voting_open(self, meeting_id: int, voting_open: bool) -> bool:
        """Compare-and-set the voting flag

        Only changes the row when the flag currently holds the opposite
        value. Returns True when this call flipped it.

        NOTE: Does not commit - caller must manage transaction.
        """
        new_value = 1 if voting_open else 0
        cursor = self._execute(
            "UPDATE meetings SET voting_open = ? WHERE id = ? AND voting_open = ?",
            (new_value, meeting_id, 1 - new_value),
        )
        return cursor.rowcount == 1

    def store_resolution(
        self, meeting_id: int, date: Optional[str], movie_id: Optional[int]
    ) -> None:
        """Write resolved date/movie; None leaves the stored value unchanged

        NOTE: Does not commit - caller must manage transaction.
        """
        self._execute(
            """
            UPDATE meetings
            SET date = COALESCE(?, date),
                watched_movie_id = COALESCE(?, watched_movie_id)
            WHERE id = ?
            """,
            (date, movie_id, meeting_id),
        )

    def set_watched_movie(self, meeting_id: int, movie_id: Optional[int]) -> None:
        """Set or clear (movie_id=None) the watched movie

        NOTE: Does not commit - caller must manage transaction.
        """
        self._execute(
            "UPDATE meetings SET watched_movie_id = ? WHERE id = ?",
            (movie_id, meeting_id),
        )

    def get_meeting_watching(self, movie_id: int) -> Optional[Meeting]:
        """First meeting whose watched movie is movie_id"""
        row = self._fetch_one(
            "SELECT * FROM meetings WHERE watched_movie_id = ? ORDER BY id LIMIT 1",
            (movie_id,),
        )
        return Meeting.from_db_row(row) if row else None

    def remove_from_allow_lists(self, movie_id: int) -> int:
        """Prune movie_id from every allow-list; returns meetings touched

        NOTE: Does not commit - caller must manage transaction.
        """
        rows = self._fetch_all(
            "SELECT * FROM meetings WHERE allowed_movie_ids IS NOT NULL"
        )
        touched = 0
        for row in rows:
            meeting = Meeting.from_db_row(row)
            if meeting.allowed_movie_ids is None or movie_id not in meeting.allowed_movie_ids:
                continue
            pruned = [mid for mid in meeting.allowed_movie_ids if mid != movie_id]
            self.update_fields(meeting.id, {"allowed_movie_ids": pruned})
            touched += 1
        return touched

    def delete_meeting(self, meeting_id: int) -> bool:
        """Delete a meeting row

        NOTE: Does not commit - caller must manage transaction.
        """
        cursor = self._execute("DELETE FROM meetings WHERE id = ?", (meeting_id,))
        return cursor.rowcount > 0
