"""
Tests for ballot, review, movie and meeting-field validation
"""

import pytest

from database.models import Meeting, RankEntry
from exceptions import ConflictError, ValidationError
from voting.validator import (
    BallotValidator,
    validate_allowed_movie_ids,
    validate_candidate_days,
    validate_meeting_date,
    validate_movie,
    validate_review,
)


def _ranks(*pairs):
    return [{"movie_id": movie_id, "rank": rank} for movie_id, rank in pairs]


class TestBallotStructure:
    def test_valid_ballot_normalized(self):
        name, votes, days = BallotValidator.validate(
            "  alice ", _ranks((1, 1), (2, 2)), [" 2024-01-15 "]
        )
        assert name == "alice"
        assert votes == [RankEntry(movie_id=1, rank=1), RankEntry(movie_id=2, rank=2)]
        assert days == ["2024-01-15"]

    def test_camel_case_movie_id_accepted(self):
        _, votes, _ = BallotValidator.validate("bob", [{"movieId": 3, "rank": 1}], None)
        assert votes == [RankEntry(movie_id=3, rank=1)]

    @pytest.mark.parametrize("username", [None, "", "   ", 42])
    def test_username_required(self, username):
        with pytest.raises(ValidationError, match="username is required"):
            BallotValidator.validate(username, _ranks((1, 1)), None)

    def test_ranks_must_be_list(self):
        with pytest.raises(ValidationError, match="ranks array is required"):
            BallotValidator.validate("alice", {"movie_id": 1, "rank": 1}, None)

    def test_ranks_not_empty(self):
        with pytest.raises(ValidationError, match="at least one rank required"):
            BallotValidator.validate("alice", [], None)

    def test_at_most_three_ranks(self):
        with pytest.raises(ValidationError, match="maximum 3 ranks allowed"):
            BallotValidator.validate("alice", _ranks((1, 1), (2, 2), (3, 3), (4, 3)), None)

    def test_entry_needs_rank_and_movie(self):
        with pytest.raises(ValidationError, match="invalid rank entry"):
            BallotValidator.validate("alice", [{"movie_id": 1}], None)

    @pytest.mark.parametrize("rank", [0, 4, 1.5, "1", True])
    def test_rank_range(self, rank):
        with pytest.raises(ValidationError, match="rank must be between 1 and 3"):
            BallotValidator.validate("alice", [{"movie_id": 1, "rank": rank}], None)

    def test_duplicate_movie_rejected(self):
        with pytest.raises(ValidationError, match="duplicate movie in ranks"):
            BallotValidator.validate("alice", _ranks((5, 1), (5, 2)), None)

    def test_movie_id_must_be_int(self):
        with pytest.raises(ValidationError, match="invalid movie id"):
            BallotValidator.validate("alice", [{"movie_id": "abc", "rank": 1}], None)


class TestAvailability:
    def test_none_allowed(self):
        assert BallotValidator.validate_availability(None) is None

    def test_at_most_three_dates(self):
        with pytest.raises(ValidationError):
            BallotValidator.validate_availability(["a", "b", "c", "d"])

    def test_empty_strings_rejected(self):
        with pytest.raises(ValidationError):
            BallotValidator.validate_availability(["2024-01-15", " "])

    def test_must_be_list(self):
        with pytest.raises(ValidationError):
            BallotValidator.validate_availability("2024-01-15")


class TestCheckTarget:
    def _meeting(self, **kwargs):
        return Meeting(id=1, **kwargs)

    def test_missing_meeting(self):
        with pytest.raises(ValidationError, match="meeting not found"):
            BallotValidator.check_target(None, [RankEntry(movie_id=1, rank=1)], {1})

    def test_closed_meeting_conflicts(self):
        with pytest.raises(ConflictError, match="voting is closed"):
            BallotValidator.check_target(
                self._meeting(voting_open=False), [RankEntry(movie_id=1, rank=1)], {1}
            )

    def test_unknown_movie(self):
        with pytest.raises(ValidationError, match="movie not found"):
            BallotValidator.check_target(self._meeting(), [RankEntry(movie_id=9, rank=1)], {1})

    def test_allow_list_ignored_by_default(self):
        BallotValidator.check_target(
            self._meeting(allowed_movie_ids=[1]), [RankEntry(movie_id=2, rank=1)], {1, 2}
        )

    def test_allow_list_enforced_when_enabled(self):
        with pytest.raises(ValidationError, match="not eligible"):
            BallotValidator.check_target(
                self._meeting(allowed_movie_ids=[1]),
                [RankEntry(movie_id=2, rank=1)],
                {1, 2},
                enforce_allow_list=True,
            )


class TestReview:
    def test_valid(self):
        assert validate_review(" carol ", 7, "") == ("carol", 7, None)

    @pytest.mark.parametrize("score", [-1, 11, None, "7", 7.5, True])
    def test_score_range(self, score):
        with pytest.raises(ValidationError, match="score must be a number between 0 and 10"):
            validate_review("carol", score, None)

    def test_bounds_inclusive(self):
        assert validate_review(None, 0, None)[1] == 0
        assert validate_review(None, 10, None)[1] == 10


class TestMovieFields:
    def test_title_required(self):
        with pytest.raises(ValidationError, match="title is required"):
            validate_movie("  ", None)

    def test_poster_must_be_http(self):
        with pytest.raises(ValidationError):
            validate_movie("Heat", "ftp://example.com/poster.jpg")

    def test_valid_movie(self):
        assert validate_movie(" Heat ", "https://www.imdb.com/title/tt0113277/") == (
            "Heat",
            "https://www.imdb.com/title/tt0113277/",
        )


class TestMeetingFields:
    def test_candidate_days(self):
        assert validate_candidate_days(None) == []
        assert validate_candidate_days(["2024-01-15"]) == ["2024-01-15"]
        with pytest.raises(ValidationError):
            validate_candidate_days("2024-01-15")

    def test_allowed_movie_ids_deduped(self):
        assert validate_allowed_movie_ids(None) is None
        assert validate_allowed_movie_ids([3, 1, 3]) == [3, 1]
        with pytest.raises(ValidationError):
            validate_allowed_movie_ids(["1"])

    def test_meeting_date_format(self):
        assert validate_meeting_date(None) is None
        assert validate_meeting_date("2024-01-15") == "2024-01-15"
        with pytest.raises(ValidationError):
            validate_meeting_date("Jan 15")
