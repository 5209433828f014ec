"""
Voting Service - Storage adapter around the pure voting engine

Loads ballots into plain Ballot objects, applies voting_open transitions with
a compare-and-set, and persists resolver output. Scoring, tallying and
tie-breaks are never re-derived here; they come from the voting package.

Responsibilities:
- Ballot submission (structural checks, then stored-state checks and inserts
  in one immediate transaction)
- Meeting lifecycle: close/reopen/patch, resolution on Open -> Closed only
- Results, meeting details, movies and reviews
"""

from typing import Any, Dict, List, Optional

from config import get_logger
from database.models import Meeting, Movie
from database.transaction import transaction
from exceptions import (
    ConflictError,
    NotFoundError,
    ResolutionError,
    ValidationError,
)
from server.metrics import metrics
from voting.lifecycle import Transition, plan_transition, should_resolve
from voting.resolver import Resolution, resolve
from voting.scoring import MovieScore, date_counts, ranking_key, score, tally
from voting.validator import (
    BallotValidator,
    validate_allowed_movie_ids,
    validate_candidate_days,
    validate_meeting_date,
    validate_movie,
    validate_review,
)
from vendors.tmdb import extract_imdb_id

logger = get_logger(__name__).bind(component="voting")

PATCHABLE_FIELDS = ("name", "date", "candidate_days", "allowed_movie_ids", "voting_open")


def _require_id(value: Any, field: str) -> int:
    """Integer id; digit strings from older clients are accepted"""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", field=field, value=value)
    return value


class VotingService:
    """Orchestrates repositories and the voting engine

    Usage:
        with UnifiedDatabase(path) as db:
            service = VotingService(db, metadata_client=tmdb)
            ballot_id = service.submit_ballot(1, "alice", ranks, ["2024-01-15"])
            service.close_voting(1)
    """

    def __init__(self, db, metadata_client=None, enforce_allow_list: bool = False):
        """
        Args:
            db: UnifiedDatabase instance
            metadata_client: Object with lookup(query) -> MovieLookup, or None
            enforce_allow_list: Reject ballots naming movies outside the
                meeting's allow-list
        """
        self.db = db
        self.metadata_client = metadata_client
        self.enforce_allow_list = enforce_allow_list

    # ========== Ballots ==========

    def submit_ballot(
        self,
        meeting_id: Any,
        username: Any,
        ranks: Any,
        availability: Any = None,
    ) -> int:
        """Validate and store one ballot; returns the new ballot id

        Raises:
            ValidationError: Malformed ballot, unknown meeting or movie
            ConflictError: Meeting is closed for voting
        """
        try:
            name, votes, days = BallotValidator.validate(username, ranks, availability)
            meeting_id = _require_id(meeting_id, "meeting_id")

            with transaction(self.db.conn, immediate=True):
                meeting = self.db.meetings.get_meeting(meeting_id)
                BallotValidator.check_target(
                    meeting,
                    votes,
                    self.db.movies.get_movie_ids(),
                    enforce_allow_list=self.enforce_allow_list,
                )
                ballot_id = self.db.ballots.create_ballot(name, meeting_id, votes, days)

        except ValidationError as e:
            metrics.ballots_rejected.labels(reason="validation").inc()
            logger.info("ballot rejected", reason=e.message, meeting_id=meeting_id)
            raise
        except ConflictError as e:
            metrics.ballots_rejected.labels(reason="conflict").inc()
            logger.info("ballot rejected", reason=e.message, meeting_id=meeting_id)
            raise

        metrics.ballots_submitted.inc()
        logger.info(
            "ballot submitted",
            ballot_id=ballot_id,
            meeting_id=meeting_id,
            ranks=len(votes),
            availability=len(days) if days else 0,
        )
        return ballot_id

    # ========== Meeting lifecycle ==========

    def close_voting(self, meeting_id: int) -> Dict[str, Any]:
        """Close voting; resolves the meeting if this call closed it"""
        self._apply_voting_flag(meeting_id, False)
        return self.get_meeting(meeting_id)

    def reopen_voting(self, meeting_id: int) -> Dict[str, Any]:
        """Reopen voting; earlier resolution results stay in place"""
        self._apply_voting_flag(meeting_id, True)
        return self.get_meeting(meeting_id)

    def update_meeting(self, meeting_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Patch meeting fields; a voting_open change goes through the lifecycle

        Raises:
            ValidationError: No recognized field, or a bad field value
            NotFoundError: Unknown meeting
        """
        patch = {name: fields[name] for name in PATCHABLE_FIELDS if name in fields}
        if not patch:
            raise ValidationError("no valid fields to update")

        plain: Dict[str, Any] = {}
        if "name" in patch:
            plain["name"] = self._clean_name(patch["name"])
        if "date" in patch:
            plain["date"] = validate_meeting_date(patch["date"])
        if "candidate_days" in patch:
            plain["candidate_days"] = validate_candidate_days(patch["candidate_days"])
        if "allowed_movie_ids" in patch:
            plain["allowed_movie_ids"] = validate_allowed_movie_ids(patch["allowed_movie_ids"])

        requested_open = patch.get("voting_open")
        if "voting_open" in patch and not isinstance(requested_open, bool):
            raise ValidationError("voting_open must be a boolean", field="voting_open", value=requested_open)

        with transaction(self.db.conn, immediate=True):
            self._get_meeting_or_404(meeting_id)
            self.db.meetings.update_fields(meeting_id, plain)

        if plain:
            logger.info("meeting updated", meeting_id=meeting_id, fields=sorted(plain))

        if requested_open is not None:
            self._apply_voting_flag(meeting_id, requested_open)

        return self.get_meeting(meeting_id)

    def _apply_voting_flag(self, meeting_id: int, requested_open: bool) -> Transition:
        """Plan and apply a voting_open change; resolve on a won close"""
        with transaction(self.db.conn, immediate=True):
            meeting = self._get_meeting_or_404(meeting_id)
            transition = plan_transition(meeting.voting_open, requested_open)
            flipped = False
            if transition is not Transition.NONE:
                flipped = self.db.meetings.set_voting_open(meeting_id, requested_open)

        if transition is Transition.NONE or not flipped:
            logger.debug("voting flag unchanged", meeting_id=meeting_id, voting_open=requested_open)
            return Transition.NONE

        metrics.voting_transitions.labels(transition=transition.value).inc()
        logger.info("voting transition applied", meeting_id=meeting_id, transition=transition.value)

        if should_resolve(transition, flipped):
            self._resolve_meeting(meeting_id)
        return transition

    def _resolve_meeting(self, meeting_id: int) -> Optional[Resolution]:
        """Run resolution and persist it; failures are logged and swallowed"""
        try:
            resolution = resolve(meeting_id, self.db.ballots.get_ballots(meeting_id))
            if resolution.has_changes:
                with transaction(self.db.conn):
                    self.db.meetings.store_resolution(
                        meeting_id, resolution.date, resolution.movie_id
                    )
        except Exception as e:
            error = ResolutionError(
                "meeting resolution failed", meeting_id=meeting_id, original_error=e
            )
            metrics.resolution_failures.inc()
            metrics.record_error("voting", error)
            logger.error(
                "meeting resolution failed",
                meeting_id=meeting_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return None

        metrics.meetings_resolved.labels(outcome=resolution.outcome).inc()
        logger.info(
            "meeting resolved",
            meeting_id=meeting_id,
            outcome=resolution.outcome,
            date=resolution.date,
            movie_id=resolution.movie_id,
            ballots=resolution.ballot_count,
        )
        return resolution

    # ========== Meetings ==========

    def get_meeting(self, meeting_id: int) -> Dict[str, Any]:
        return self.meeting_detail(self._get_meeting_or_404(meeting_id))

    def list_meetings(self) -> List[Dict[str, Any]]:
        return [self.meeting_detail(meeting) for meeting in self.db.meetings.get_meetings()]

    def meeting_detail(self, meeting: Meeting) -> Dict[str, Any]:
        """Meeting dict plus ballot_count, date_counts and the watched movie"""
        detail = meeting.to_dict()
        detail["ballot_count"] = self.db.ballots.count_ballots(meeting.id)
        counts = tally(self.db.ballots.get_availability(meeting.id))
        detail["date_counts"] = date_counts(counts)

        watched = None
        if meeting.watched_movie_id is not None:
            movie = self.db.movies.get_movie(meeting.watched_movie_id)
            watched = movie.to_dict() if movie else None
        detail["watched_movie"] = watched
        return detail

    def create_meeting(
        self,
        name: Any = None,
        date: Any = None,
        candidate_days: Any = None,
        allowed_movie_ids: Any = None,
        voting_open: Any = True,
    ) -> Dict[str, Any]:
        if not isinstance(voting_open, bool):
            raise ValidationError("voting_open must be a boolean", field="voting_open", value=voting_open)

        with transaction(self.db.conn):
            meeting = self.db.meetings.create_meeting(
                name=self._clean_name(name),
                date=validate_meeting_date(date),
                candidate_days=validate_candidate_days(candidate_days),
                allowed_movie_ids=validate_allowed_movie_ids(allowed_movie_ids),
                voting_open=voting_open,
            )

        logger.info("meeting created", meeting_id=meeting.id, voting_open=meeting.voting_open)
        return self.meeting_detail(meeting)

    def delete_meeting(self, meeting_id: int) -> None:
        """Delete a meeting and its ballots"""
        with transaction(self.db.conn, immediate=True):
            self._get_meeting_or_404(meeting_id)
            ballots = self.db.ballots.delete_for_meeting(meeting_id)
            self.db.meetings.delete_meeting(meeting_id)

        logger.info("meeting deleted", meeting_id=meeting_id, ballots=ballots)

    def mark_watched(self, meeting_id: int, movie_id: Optional[int]) -> Dict[str, Any]:
        """Set (or clear with None) the meeting's watched movie"""
        if movie_id is not None:
            movie_id = _require_id(movie_id, "movie_id")

        with transaction(self.db.conn, immediate=True):
            self._get_meeting_or_404(meeting_id)
            if movie_id is not None and self.db.movies.get_movie(movie_id) is None:
                raise ValidationError("movie not found", field="movie_id", value=movie_id)
            self.db.meetings.set_watched_movie(meeting_id, movie_id)

        logger.info("watched movie set", meeting_id=meeting_id, movie_id=movie_id)
        return self.get_meeting(meeting_id)

    # ========== Results ==========

    def get_results(self, meeting_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Every movie with its Borda score and vote count, best first

        Scoped to one meeting's ballots when meeting_id is given.
        """
        if meeting_id is not None:
            self._get_meeting_or_404(meeting_id)

        scores = score(self.db.ballots.get_ballots(meeting_id))

        results = []
        for movie in self.db.movies.get_movies():
            movie_score = scores.get(movie.id, MovieScore())
            row = movie.to_dict()
            row["score"] = movie_score.score
            row["vote_count"] = movie_score.vote_count
            results.append(row)

        results.sort(key=lambda row: ranking_key(row["id"], MovieScore(row["score"], row["vote_count"])))
        return results

    # ========== Movies ==========

    def list_movies(self) -> List[Dict[str, Any]]:
        return [movie.to_dict() for movie in self.db.movies.get_movies()]

    def add_movie(
        self,
        title: Any,
        poster: Any = None,
        notes: Any = None,
        suggester: Any = None,
    ) -> Dict[str, Any]:
        """Store a suggestion, enriching poster/genres/metadata from TMDB

        An IMDB title link as poster is looked up and replaced by the TMDB
        poster; with no poster at all the title is looked up instead.
        """
        title, poster = validate_movie(title, poster)

        genres = None
        metadata = None
        if self.metadata_client is not None:
            query = poster if extract_imdb_id(poster) else (None if poster else title)
            if query:
                found = self.metadata_client.lookup(query)
                if found.poster:
                    poster = found.poster
                genres = found.genres
                metadata = found.metadata

        with transaction(self.db.conn):
            movie = self.db.movies.add_movie(
                title,
                poster=poster,
                genres=genres,
                notes=self._clean_name(notes),
                suggester=self._clean_name(suggester),
                metadata=metadata,
            )

        logger.info("movie added", movie_id=movie.id, enriched=metadata is not None)
        return movie.to_dict()

    def delete_movie(self, movie_id: int) -> None:
        """Delete a movie unless some meeting watched it

        Raises:
            NotFoundError: Unknown movie
            ConflictError: Movie is a meeting's watched movie
        """
        with transaction(self.db.conn, immediate=True):
            self._get_movie_or_404(movie_id)
            watching = self.db.meetings.get_meeting_watching(movie_id)
            if watching is not None:
                raise ConflictError(
                    "cannot delete movie: it is marked as watched in a meeting",
                    context={"movie_id": movie_id, "meeting_id": watching.id},
                )
            pruned = self.db.meetings.remove_from_allow_lists(movie_id)
            self.db.movies.delete_movie(movie_id)

        logger.info("movie deleted", movie_id=movie_id, allow_lists_pruned=pruned)

    def refresh_movie_metadata(self, movie_id: int) -> Dict[str, Any]:
        """Re-run the TMDB lookup for a stored movie and backfill what it finds"""
        movie = self._get_movie_or_404(movie_id)
        if self.metadata_client is None:
            raise ConflictError("metadata lookup is not configured")

        query = movie.poster if extract_imdb_id(movie.poster) else movie.title
        found = self.metadata_client.lookup(query)
        if found.found:
            with transaction(self.db.conn):
                self.db.movies.update_movie_metadata(
                    movie_id, poster=found.poster, genres=found.genres, metadata=found.metadata
                )

        logger.info("movie metadata refreshed", movie_id=movie_id, found=found.found)
        return self._get_movie_or_404(movie_id).to_dict()

    def backfill_metadata(self, dry_run: bool = False, limit: Optional[int] = None) -> Dict[str, int]:
        """Look up every movie still missing poster, genres or metadata

        Returns:
            Stats dict with counts (found, updated, skipped)
        """
        if self.metadata_client is None:
            raise ConflictError("metadata lookup is not configured")

        candidates = self.db.movies.get_movies_missing_metadata()
        if limit:
            candidates = candidates[:limit]

        updated = 0
        skipped = 0
        for movie in candidates:
            query = movie.poster if extract_imdb_id(movie.poster) else movie.title
            found = self.metadata_client.lookup(query)
            if not found.found:
                skipped += 1
                continue

            if dry_run:
                logger.info("would update movie metadata", movie_id=movie.id, title=movie.title)
            else:
                with transaction(self.db.conn):
                    self.db.movies.update_movie_metadata(
                        movie.id, poster=found.poster, genres=found.genres, metadata=found.metadata
                    )
            updated += 1

        return {"found": len(candidates), "updated": updated, "skipped": skipped}

    # ========== Reviews ==========

    def get_reviews(self, movie_id: int) -> Dict[str, Any]:
        """Review summary (count, average rounded to 2 places) plus reviews"""
        self._get_movie_or_404(movie_id)
        summary = self.db.reviews.get_summary(movie_id)
        summary["reviews"] = [review.to_dict() for review in self.db.reviews.get_reviews(movie_id)]
        return summary

    def add_review(
        self, movie_id: int, username: Any = None, score: Any = None, comment: Any = None
    ) -> Dict[str, Any]:
        name, review_score, text = validate_review(username, score, comment)

        with transaction(self.db.conn):
            self._get_movie_or_404(movie_id)
            review = self.db.reviews.add_review(movie_id, review_score, username=name, comment=text)

        metrics.reviews_submitted.inc()
        logger.info("review submitted", movie_id=movie_id, review_id=review.id, score=review_score)

        result = {"review_id": review.id}
        result.update(self.get_reviews(movie_id))
        return result

    # ========== Helpers ==========

    def _get_meeting_or_404(self, meeting_id: int) -> Meeting:
        meeting = self.db.meetings.get_meeting(meeting_id)
        if meeting is None:
            raise NotFoundError("meeting not found", entity="meeting", entity_id=meeting_id)
        return meeting

    def _get_movie_or_404(self, movie_id: int) -> Movie:
        movie = self.db.movies.get_movie(movie_id)
        if movie is None:
            raise NotFoundError("movie not found", entity="movie", entity_id=movie_id)
        return movie

    @staticmethod
    def _clean_name(value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError("expected a string", value=value)
        return value.strip() or None
