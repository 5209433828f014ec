"""
Input validation for ballots, reviews, meetings and movies

Structural checks run before any database access. Checks that need stored
state (meeting open, movies exist, allow-list) take that state as arguments
so the storage adapter can run them inside its write transaction.

All failures raise ValidationError (or ConflictError for a closed meeting)
with a reason fit to show the caller.
"""

import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from database.models import Meeting, RankEntry
from exceptions import ConflictError, ValidationError
from voting.scoring import MAX_RANK

MAX_RANKS = 3
MAX_AVAILABILITY = 3
MIN_REVIEW_SCORE = 0
MAX_REVIEW_SCORE = 10

URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _entry_value(entry: Any, *names: str) -> Any:
    """Read a field from a dict or an object, trying each alias in turn"""
    for name in names:
        if isinstance(entry, dict):
            if entry.get(name) is not None:
                return entry[name]
        elif getattr(entry, name, None) is not None:
            return getattr(entry, name)
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _clean_optional(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class BallotValidator:
    """Validates a ranked-vote submission

    Usage:
        username, votes, availability = BallotValidator.validate(
            payload.username, payload.ranks, payload.availability
        )
        BallotValidator.check_target(meeting, votes, existing_movie_ids)
    """

    @staticmethod
    def validate(
        username: Any, ranks: Any, availability: Any
    ) -> Tuple[str, List[RankEntry], Optional[List[str]]]:
        """Structural validation; returns normalized values"""
        name = _clean_optional(username) if isinstance(username, str) else None
        if not name:
            raise ValidationError("username is required", field="username")

        if not isinstance(ranks, (list, tuple)):
            raise ValidationError("ranks array is required", field="ranks")
        if len(ranks) == 0:
            raise ValidationError("at least one rank required", field="ranks")
        if len(ranks) > MAX_RANKS:
            raise ValidationError(
                f"maximum {MAX_RANKS} ranks allowed", field="ranks", value=len(ranks)
            )

        votes: List[RankEntry] = []
        for entry in ranks:
            rank = _entry_value(entry, "rank")
            movie_id = _entry_value(entry, "movie_id", "movieId")
            if rank is None or movie_id is None:
                raise ValidationError("invalid rank entry", field="ranks")
            if not _is_int(rank) or not 1 <= rank <= MAX_RANK:
                raise ValidationError(
                    f"rank must be between 1 and {MAX_RANK}", field="rank", value=rank
                )
            if not _is_int(movie_id):
                raise ValidationError("invalid movie id", field="movie_id", value=movie_id)
            votes.append(RankEntry(movie_id=movie_id, rank=rank))

        movie_ids = [vote.movie_id for vote in votes]
        if len(set(movie_ids)) != len(movie_ids):
            raise ValidationError("duplicate movie in ranks", field="ranks")

        return name, votes, BallotValidator.validate_availability(availability)

    @staticmethod
    def validate_availability(availability: Any) -> Optional[List[str]]:
        if availability is None:
            return None
        if not isinstance(availability, (list, tuple)):
            raise ValidationError("availability must be a list of dates", field="availability")
        if len(availability) > MAX_AVAILABILITY:
            raise ValidationError(
                f"maximum {MAX_AVAILABILITY} availability dates allowed",
                field="availability",
                value=len(availability),
            )
        days = []
        for day in availability:
            if not isinstance(day, str) or not day.strip():
                raise ValidationError("availability dates must be non-empty strings", field="availability")
            days.append(day.strip())
        return days

    @staticmethod
    def check_target(
        meeting: Optional[Meeting],
        votes: Sequence[RankEntry],
        existing_movie_ids: Iterable[int],
        enforce_allow_list: bool = False,
    ) -> None:
        """Checks against stored state; run inside the write transaction"""
        if meeting is None:
            raise ValidationError("meeting not found", field="meeting_id")
        if not meeting.voting_open:
            raise ConflictError(
                "voting is closed for this meeting", context={"meeting_id": meeting.id}
            )

        existing = set(existing_movie_ids)
        for vote in votes:
            if vote.movie_id not in existing:
                raise ValidationError("movie not found", field="movie_id", value=vote.movie_id)
            if enforce_allow_list and not meeting.is_movie_allowed(vote.movie_id):
                raise ValidationError(
                    "movie is not eligible for this meeting", field="movie_id", value=vote.movie_id
                )


def validate_review(username: Any, score: Any, comment: Any) -> Tuple[Optional[str], int, Optional[str]]:
    """Score must be an integer 0-10; name and comment are optional"""
    if not _is_int(score) or not MIN_REVIEW_SCORE <= score <= MAX_REVIEW_SCORE:
        raise ValidationError(
            f"score must be a number between {MIN_REVIEW_SCORE} and {MAX_REVIEW_SCORE}",
            field="score",
            value=score,
        )
    return _clean_optional(username), score, _clean_optional(comment)


def validate_movie(title: Any, poster: Any) -> Tuple[str, Optional[str]]:
    name = _clean_optional(title) if isinstance(title, str) else None
    if not name:
        raise ValidationError("title is required", field="title")

    poster_url = _clean_optional(poster)
    if poster_url and not URL_PATTERN.match(poster_url):
        raise ValidationError("poster must be an http(s) URL", field="poster", value=poster_url)
    return name, poster_url


def validate_candidate_days(candidate_days: Any) -> List[str]:
    if candidate_days is None:
        return []
    if not isinstance(candidate_days, (list, tuple)):
        raise ValidationError("candidate_days must be a list", field="candidate_days")
    days = []
    for day in candidate_days:
        if not isinstance(day, str) or not day.strip():
            raise ValidationError("candidate_days entries must be non-empty strings", field="candidate_days")
        days.append(day.strip())
    return days


def validate_allowed_movie_ids(allowed_movie_ids: Any) -> Optional[List[int]]:
    """None keeps every movie eligible; a list (even empty) restricts"""
    if allowed_movie_ids is None:
        return None
    if not isinstance(allowed_movie_ids, (list, tuple)):
        raise ValidationError("allowed_movie_ids must be a list", field="allowed_movie_ids")
    ids = []
    for movie_id in allowed_movie_ids:
        if not _is_int(movie_id):
            raise ValidationError("allowed_movie_ids must contain movie ids", field="allowed_movie_ids", value=movie_id)
        if movie_id not in ids:
            ids.append(movie_id)
    return ids


def validate_meeting_date(date: Any) -> Optional[str]:
    """None clears the date; otherwise YYYY-MM-DD"""
    if date is None:
        return None
    if not isinstance(date, str) or not DATE_PATTERN.match(date.strip()):
        raise ValidationError("date must be YYYY-MM-DD", field="date", value=date)
    return date.strip()
