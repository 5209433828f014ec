"""FastAPI Dependencies

Centralized dependency injection for reuse across all route modules.
Shared collaborators (database path, session store, metadata client) live on
app.state and are set once by create_app().
"""

import re
from typing import Iterator, Optional

from fastapi import Depends, Request

from auth.sessions import SessionStatus, SessionStore
from database.db import UnifiedDatabase
from database.services.voting import VotingService
from exceptions import AuthorizationError

BEARER_PATTERN = re.compile(r"^Bearer\s+", re.IGNORECASE)


def get_db(request: Request) -> Iterator[UnifiedDatabase]:
    """Dependency yielding a per-request database connection

    Usage in routes:
        @router.get("/endpoint")
        def endpoint(db: UnifiedDatabase = Depends(get_db)):
            return db.movies.get_movies()

    The connection is closed when the response has been produced.
    """
    db = UnifiedDatabase(request.app.state.db_path)
    try:
        yield db
    finally:
        db.close()


def get_service(request: Request, db: UnifiedDatabase = Depends(get_db)) -> VotingService:
    """Dependency building the voting service over the request's connection"""
    return VotingService(
        db,
        metadata_client=request.app.state.metadata_client,
        enforce_allow_list=request.app.state.enforce_allow_list,
    )


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def extract_admin_token(request: Request) -> Optional[str]:
    """Token from X-Admin-Token, else from Authorization: Bearer"""
    token = request.headers.get("x-admin-token")
    if token:
        return token.strip()
    authorization = request.headers.get("authorization") or ""
    token = BEARER_PATTERN.sub("", authorization).strip()
    return token or None


def require_admin(request: Request, store: SessionStore = Depends(get_session_store)) -> bool:
    """Dependency rejecting requests without a live admin session

    Raises:
        AuthorizationError: Missing, unknown or expired token
    """
    token = extract_admin_token(request)
    if not token:
        raise AuthorizationError("admin token required")

    status = store.check(token)
    if status is SessionStatus.EXPIRED:
        raise AuthorizationError("token expired")
    if status is not SessionStatus.VALID:
        raise AuthorizationError("invalid token")
    return True
