"""
Database Models for Movie Night

Pydantic dataclasses with runtime validation for core entities.
JSON-bearing columns (genres, metadata, candidate_days, allowed_movie_ids,
availability) are stored as TEXT and decoded in from_db_row().
"""

import json
import sqlite3
from typing import Optional, List, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.dataclasses import dataclass
from dataclasses import asdict, field

from config import get_logger

logger = get_logger(__name__).bind(component="models")


def _load_json(value: Optional[str], default: Any = None) -> Any:
    """Decode a JSON TEXT column, tolerating legacy garbage"""
    if value is None or value == "":
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logger.warning("malformed json column", value=str(value)[:100])
        return default


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


# --- JSON Pydantic Models ---


class MovieMetadata(BaseModel):
    """Typed JSON for movies.metadata, filled from TMDB details"""
    model_config = ConfigDict(extra="ignore")

    release_year: Optional[int] = None
    runtime: Optional[int] = None  # minutes
    rating: Optional[float] = None  # TMDB vote_average, 1 decimal
    overview: Optional[str] = None
    imdb_id: Optional[str] = None


# --- Domain Dataclasses ---


@dataclass
class Movie:
    """A suggested movie"""

    id: int
    title: str
    poster: Optional[str] = None  # absolute image URL
    genres: Optional[List[str]] = None
    notes: Optional[str] = None
    suggester: Optional[str] = None
    metadata: Optional[MovieMetadata] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: sqlite3.Row) -> "Movie":
        metadata = _load_json(row["metadata"])
        return cls(
            id=row["id"],
            title=row["title"],
            poster=row["poster"],
            genres=_load_json(row["genres"]),
            notes=row["notes"],
            suggester=row["suggester"],
            metadata=MovieMetadata(**metadata) if isinstance(metadata, dict) else None,
            created_at=parse_timestamp(row["created_at"]),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        if self.created_at:
            data["created_at"] = self.created_at.isoformat()
        if self.metadata:
            data["metadata"] = self.metadata.model_dump(exclude_none=True)
        return data


@dataclass
class Meeting:
    """A voting round with candidate days and an optional movie allow-list

    date and watched_movie_id are the denormalized result of resolution.
    """

    id: int
    name: Optional[str] = None
    date: Optional[str] = None  # YYYY-MM-DD
    candidate_days: List[str] = field(default_factory=list)
    allowed_movie_ids: Optional[List[int]] = None  # None = every movie eligible
    voting_open: bool = True
    watched_movie_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: sqlite3.Row) -> "Meeting":
        candidate_days = _load_json(row["candidate_days"], default=[])
        allowed = _load_json(row["allowed_movie_ids"])
        return cls(
            id=row["id"],
            name=row["name"],
            date=row["date"],
            candidate_days=candidate_days if isinstance(candidate_days, list) else [],
            allowed_movie_ids=allowed if isinstance(allowed, list) else None,
            voting_open=bool(row["voting_open"]),
            watched_movie_id=row["watched_movie_id"],
            created_at=parse_timestamp(row["created_at"]),
        )

    def is_movie_allowed(self, movie_id: int) -> bool:
        return self.allowed_movie_ids is None or movie_id in self.allowed_movie_ids

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        data = asdict(self)
        if self.created_at:
            data["created_at"] = self.created_at.isoformat()
        return data


@dataclass
class RankEntry:
    """One (movie, rank) pair on a ballot; rank 1 is the top choice"""

    movie_id: int
    rank: int


@dataclass
class Ballot:
    """One voter's ranked choices plus availability for one meeting"""

    id: Optional[int]
    username: str
    meeting_id: int
    votes: List[RankEntry] = field(default_factory=list)
    availability: Optional[List[str]] = None
    created_at: Optional[datetime] = None


@dataclass
class Review:
    """A 0-10 score (and optional comment) for a watched movie"""

    id: int
    movie_id: int
    score: int
    username: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: sqlite3.Row) -> "Review":
        return cls(
            id=row["id"],
            movie_id=row["movie_id"],
            score=row["score"],
            username=row["username"],
            comment=row["comment"],
            created_at=parse_timestamp(row["created_at"]),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.created_at:
            data["created_at"] = self.created_at.isoformat()
        return data
