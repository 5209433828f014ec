"""
Pydantic request models for API validation

Models stay permissive about types: domain rules (and their error messages)
live in voting/validator.py. These models only accept both snake_case and
the legacy camelCase keys, and cap free-text lengths.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TITLE_LENGTH = 200
MAX_NAME_LENGTH = 100
MAX_TEXT_LENGTH = 2000


def _check_length(value: Any, limit: int, label: str) -> Any:
    if isinstance(value, str) and len(value) > limit:
        raise ValueError(f"{label} too long (max {limit} characters)")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BallotRequest(CamelModel):
    username: Any = None
    meeting_id: Any = Field(default=None, alias="meetingId")
    ranks: Any = None
    availability: Any = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Any) -> Any:
        return _check_length(v, MAX_NAME_LENGTH, "username")


class MovieRequest(CamelModel):
    title: Any = None
    poster: Any = None
    notes: Any = None
    suggester: Any = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Any) -> Any:
        return _check_length(v, MAX_TITLE_LENGTH, "title")

    @field_validator("poster", "notes")
    @classmethod
    def validate_text(cls, v: Any) -> Any:
        return _check_length(v, MAX_TEXT_LENGTH, "field")

    @field_validator("suggester")
    @classmethod
    def validate_suggester(cls, v: Any) -> Any:
        return _check_length(v, MAX_NAME_LENGTH, "suggester")


class MeetingCreateRequest(CamelModel):
    name: Any = None
    date: Any = None
    candidate_days: Any = Field(default=None, alias="candidateDays")
    allowed_movie_ids: Any = Field(default=None, alias="allowedMovieIds")
    voting_open: Any = Field(default=True, alias="votingOpen")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Any) -> Any:
        return _check_length(v, MAX_TITLE_LENGTH, "name")


class MeetingUpdateRequest(MeetingCreateRequest):
    """Patch body; only keys the client actually sent are applied"""

    voting_open: Any = Field(default=None, alias="votingOpen")

    def provided_fields(self) -> dict:
        """Sent fields by snake_case name, explicit nulls included"""
        return {name: getattr(self, name) for name in self.model_fields_set}


class WatchedRequest(CamelModel):
    movie_id: Any = Field(default=None, alias="movieId")


class ReviewRequest(CamelModel):
    username: Any = None
    score: Any = None
    comment: Any = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Any) -> Any:
        return _check_length(v, MAX_NAME_LENGTH, "username")

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: Any) -> Any:
        return _check_length(v, MAX_TEXT_LENGTH, "comment")


class LoginRequest(BaseModel):
    password: Optional[str] = None
