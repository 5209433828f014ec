"""
Movie Repository - Movie suggestions

REPOSITORY PATTERN: All methods are atomic operations.
Transaction management is the CALLER'S responsibility.
"""

from typing import List, Optional, Set

from config import get_logger
from database.models import Movie, MovieMetadata
from database.repositories.base import BaseRepository
from exceptions import DatabaseError

logger = get_logger(__name__).bind(component="database")


class MovieRepository(BaseRepository):
    """Repository for movie operations"""

    def get_movie(self, movie_id: int) -> Optional[Movie]:
        """Get a single movie by ID"""
        row = self._fetch_one("SELECT * FROM movies WHERE id = ?", (movie_id,))
        return Movie.from_db_row(row) if row else None

    def get_movies(self) -> List[Movie]:
        """All movies, newest suggestion first"""
        rows = self._fetch_all("SELECT * FROM movies ORDER BY created_at DESC, id DESC")
        return [Movie.from_db_row(row) for row in rows]

    def get_movie_ids(self) -> Set[int]:
        rows = self._fetch_all("SELECT id FROM movies")
        return {row["id"] for row in rows}

    def get_movies_missing_metadata(self) -> List[Movie]:
        """Movies with no poster, genres or metadata yet (backfill candidates)"""
        rows = self._fetch_all(
            """
            SELECT * FROM movies
            WHERE poster IS NULL OR genres IS NULL OR metadata IS NULL
            ORDER BY id
            """
        )
        return [Movie.from_db_row(row) for row in rows]

    def add_movie(
        self,
        title: str,
        poster: Optional[str] = None,
        genres: Optional[List[str]] = None,
        notes: Optional[str] = None,
        suggester: Optional[str] = None,
        metadata: Optional[MovieMetadata] = None,
    ) -> Movie:
        """Insert a movie

        NOTE: Does not commit - caller must manage transaction.
        """
        cursor = self._execute(
            """
            INSERT INTO movies (title, poster, genres, notes, suggester, metadata)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                title,
                poster,
                self._dump_json(genres or None),
                notes,
                suggester,
                self._dump_json(metadata),
            ),
        )
        movie = self.get_movie(cursor.lastrowid)
        if movie is None:
            raise DatabaseError(f"Failed to retrieve newly stored movie: {cursor.lastrowid}")
        return movie

    def update_movie_metadata(
        self,
        movie_id: int,
        poster: Optional[str] = None,
        genres: Optional[List[str]] = None,
        metadata: Optional[MovieMetadata] = None,
    ) -> None:
        """Backfill poster/genres/metadata; None keeps the stored value

        NOTE: Does not commit - caller must manage transaction.
        """
        self._execute(
            """
            UPDATE movies
            SET poster = COALESCE(?, poster),
                genres = COALESCE(?, genres),
                metadata = COALESCE(?, metadata)
            WHERE id = ?
            """,
            (poster, self._dump_json(genres or None), self._dump_json(metadata), movie_id),
        )

    def delete_movie(self, movie_id: int) -> bool:
        """Delete a movie; rank entries and reviews cascade

        NOTE: Does not commit - caller must manage transaction.
        """
        cursor = self._execute("DELETE FROM movies WHERE id = ?", (movie_id,))
        return cursor.rowcount > 0
