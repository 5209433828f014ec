"""
Custom Exception Hierarchy - Domain-specific error types

Provides clear, typed exceptions for the failure modes of the voting service.
All custom exceptions inherit from MovieNightError for easy catching.

Boundary errors (validation, conflict, authorization, not-found) are raised
synchronously to the caller and mapped to HTTP statuses in server/errors.py.
ResolutionError never reaches a caller: it is logged where it is caught.
"""

from typing import Optional, Dict, Any


class MovieNightError(Exception):
    """Base exception for all Movie Night errors

    Carries an optional context dict that is rendered into str() and
    is convenient to pass straight into structured log calls.
    """

    code: str = "MOVIENIGHT_ERROR"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self):
        base_msg = super().__str__()
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "code": self.code}


# ========== Database Errors ==========


class DatabaseError(MovieNightError):
    """Database operation failures

    Examples:
    - Query errors
    - Transaction rollbacks
    - Data integrity violations
    """

    code = "DATABASE_ERROR"


class DatabaseConnectionError(DatabaseError):
    """Failed to establish or maintain database connection"""


# ========== Request Errors ==========


class ValidationError(MovieNightError):
    """Malformed or out-of-policy input

    Examples:
    - Ballot without a username
    - More than three ranks
    - Review score outside 0-10
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        self.field = field
        self.value = value

        context = {}
        if field:
            context['field'] = field
        if value is not None:
            context['value'] = str(value)

        super().__init__(message, context)


class ConflictError(MovieNightError):
    """Request conflicts with current state

    Examples:
    - Deleting a movie that is a meeting's watched movie
    - Voting on a meeting whose voting is closed
    """

    code = "CONFLICT"


class AuthorizationError(MovieNightError):
    """Missing, invalid or expired admin credential"""

    code = "UNAUTHORIZED"


class NotFoundError(MovieNightError):
    """Referenced movie or meeting does not exist"""

    code = "NOT_FOUND"

    def __init__(self, message: str, entity: Optional[str] = None, entity_id: Optional[Any] = None):
        self.entity = entity
        self.entity_id = entity_id

        context = {}
        if entity:
            context['entity'] = entity
        if entity_id is not None:
            context['entity_id'] = entity_id

        super().__init__(message, context)


# ========== Internal Errors ==========


class ResolutionError(MovieNightError):
    """Failure while picking or persisting a meeting's winner and date

    Raised inside the close-voting flow and caught there. Closing voting
    succeeds regardless.
    """

    code = "RESOLUTION_ERROR"

    def __init__(self, message: str, meeting_id: Optional[int] = None, original_error: Optional[Exception] = None):
        self.meeting_id = meeting_id
        self.original_error = original_error

        context = {}
        if meeting_id is not None:
            context['meeting_id'] = meeting_id
        if original_error:
            context['original_error'] = str(original_error)

        super().__init__(message, context)


class MetadataLookupError(MovieNightError):
    """TMDB request failed

    Lookups are best-effort; callers log this and fall back to no metadata.
    """

    code = "METADATA_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url

        context = {}
        if status_code:
            context['status_code'] = status_code
        if url:
            context['url'] = url

        super().__init__(message, context)


class ConfigurationError(MovieNightError):
    """Configuration or environment errors

    Examples:
    - Invalid port
    - Unknown session backend
    """

    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        context = {}
        if config_key:
            context['config_key'] = config_key
        super().__init__(message, context)
