"""
Ballot Repository - Ranked ballots and their rank entries

Ballots are append-only: created once, never updated. Rank entries live in
ballot_votes and are loaded back into Ballot.votes ordered by rank.

REPOSITORY PATTERN: All methods are atomic operations.
Transaction management is the CALLER'S responsibility.
"""

import json
from typing import Dict, List, Optional

from config import get_logger
from database.models import Ballot, RankEntry, parse_timestamp
from database.repositories.base import BaseRepository

logger = get_logger(__name__).bind(component="database")


class BallotRepository(BaseRepository):
    """Repository for ballot operations"""

    def create_ballot(
        self,
        username: str,
        meeting_id: int,
        votes: List[RankEntry],
        availability: Optional[List[str]] = None,
    ) -> int:
        """Insert a ballot and all of its rank entries

        NOTE: Does not commit - caller must manage transaction so the ballot
        and its entries land together or not at all.
        """
        cursor = self._execute(
            "INSERT INTO ballots (username, meeting_id, availability) VALUES (?, ?, ?)",
            (username, meeting_id, self._dump_json(availability)),
        )
        ballot_id = cursor.lastrowid

        for vote in votes:
            self._execute(
                "INSERT INTO ballot_votes (ballot_id, movie_id, rank) VALUES (?, ?, ?)",
                (ballot_id, vote.movie_id, vote.rank),
            )

        return ballot_id

    def get_ballots(self, meeting_id: Optional[int] = None) -> List[Ballot]:
        """Ballots with their rank entries, optionally scoped to one meeting"""
        if meeting_id is None:
            rows = self._fetch_all("SELECT * FROM ballots ORDER BY id")
        else:
            rows = self._fetch_all(
                "SELECT * FROM ballots WHERE meeting_id = ? ORDER BY id", (meeting_id,)
            )
        if not rows:
            return []

        votes_by_ballot = self._get_votes([row["id"] for row in rows])

        ballots = []
        for row in rows:
            ballots.append(
                Ballot(
                    id=row["id"],
                    username=row["username"],
                    meeting_id=row["meeting_id"],
                    votes=votes_by_ballot.get(row["id"], []),
                    availability=self._load_availability(row["availability"]),
                    created_at=parse_timestamp(row["created_at"]),
                )
            )
        return ballots

    def get_availability(self, meeting_id: int) -> List[Ballot]:
        """Ballots of a meeting without rank entries (enough for a tally)"""
        rows = self._fetch_all(
            """
            SELECT id, username, meeting_id, availability, created_at FROM ballots
            WHERE meeting_id = ? AND availability IS NOT NULL
            ORDER BY id
            """,
            (meeting_id,),
        )
        return [
            Ballot(
                id=row["id"],
                username=row["username"],
                meeting_id=row["meeting_id"],
                availability=self._load_availability(row["availability"]),
                created_at=parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    def count_ballots(self, meeting_id: int) -> int:
        row = self._fetch_one(
            "SELECT COUNT(*) AS cnt FROM ballots WHERE meeting_id = ?", (meeting_id,)
        )
        return row["cnt"] if row else 0

    def delete_for_meeting(self, meeting_id: int) -> int:
        """Delete a meeting's ballots; rank entries cascade

        NOTE: Does not commit - caller must manage transaction.
        """
        cursor = self._execute("DELETE FROM ballots WHERE meeting_id = ?", (meeting_id,))
        return cursor.rowcount

    def _get_votes(self, ballot_ids: List[int]) -> Dict[int, List[RankEntry]]:
        placeholders = ",".join("?" * len(ballot_ids))
        rows = self._fetch_all(
            f"""
            SELECT ballot_id, movie_id, rank FROM ballot_votes
            WHERE ballot_id IN ({placeholders})
            ORDER BY ballot_id, rank, id
            """,
            tuple(ballot_ids),
        )
        votes: Dict[int, List[RankEntry]] = {}
        for row in rows:
            votes.setdefault(row["ballot_id"], []).append(
                RankEntry(movie_id=row["movie_id"], rank=row["rank"])
            )
        return votes

    @staticmethod
    def _load_availability(value: Optional[str]) -> Optional[List[str]]:
        """Malformed availability counts as not given"""
        if value is None:
            return None
        try:
            days = json.loads(value)
        except (TypeError, ValueError):
            logger.warning("malformed ballot availability", value=str(value)[:100])
            return None
        if not isinstance(days, list):
            return None
        return [day for day in days if isinstance(day, str)]
