"""
Movie Night API Server

FastAPI application factory. Shared collaborators are built once and
stored on app.state; every request opens its own SQLite connection.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth.sessions import SessionStore, create_session_store
from config import config, get_logger
from database.db import UnifiedDatabase
from server.errors import register_exception_handlers
from server.middleware.logging import log_requests
from server.middleware.metrics import metrics_middleware
from server.middleware.request_id import RequestIDMiddleware
from server.routes import auth, meetings, monitoring, movies, reviews, votes
from vendors.tmdb import TMDBClient

logger = get_logger(__name__).bind(component="api")


def build_metadata_client() -> Optional[TMDBClient]:
    """TMDB client when TMDB_API_KEY is set, else None (lookups disabled)"""
    api_key = config.get_tmdb_key()
    if not api_key:
        logger.info("TMDB_API_KEY not set - movie metadata lookup disabled")
        return None
    return TMDBClient(api_key, timeout=config.TMDB_TIMEOUT_SECONDS)


def create_app(
    db_path: Optional[str] = None,
    session_store: Optional[SessionStore] = None,
    metadata_client=None,
    enforce_allow_list: Optional[bool] = None,
) -> FastAPI:
    """Build the API app

    Args:
        db_path: SQLite database file (default: config.DB_PATH)
        session_store: Admin session store (default: from config)
        metadata_client: Object with lookup(query); default builds a TMDB
            client when an API key is configured
        enforce_allow_list: Reject ballots outside a meeting's allow-list
    """
    app = FastAPI(title="movie night API", description="Ranked-choice movie night voting")

    if db_path is None:
        config.ensure_data_dir()
        db_path = config.DB_PATH
    if session_store is None:
        session_store = create_session_store(
            config.SESSION_BACKEND,
            ttl_seconds=config.SESSION_TTL_SECONDS,
            db_path=config.SESSION_DB_PATH,
        )
    if metadata_client is None:
        metadata_client = build_metadata_client()
    if enforce_allow_list is None:
        enforce_allow_list = config.ENFORCE_ALLOW_LIST

    # Create schema up front so the first request doesn't pay for it
    UnifiedDatabase(db_path).close()

    app.state.db_path = db_path
    app.state.session_store = session_store
    app.state.metadata_client = metadata_client
    app.state.enforce_allow_list = enforce_allow_list

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    # Request ID middleware (must be early in stack for tracing)
    app.add_middleware(RequestIDMiddleware)

    # Last registered runs first: metrics wraps logging
    @app.middleware("http")
    async def log_requests_middleware(request, call_next):
        return await log_requests(request, call_next)

    @app.middleware("http")
    async def metrics_middleware_wrapper(request, call_next):
        return await metrics_middleware(request, call_next)

    register_exception_handlers(app)

    app.include_router(monitoring.router)  # Root, health, Prometheus
    app.include_router(auth.router)        # Admin login/logout
    app.include_router(movies.router)      # Movie suggestions
    app.include_router(reviews.router)     # Post-watch reviews
    app.include_router(meetings.router)    # Meetings and lifecycle
    app.include_router(votes.router)       # Ballots and results

    logger.info(
        "api initialized",
        db_path=db_path,
        session_store=type(session_store).__name__,
        metadata_lookup=metadata_client is not None,
        enforce_allow_list=enforce_allow_list,
    )
    return app


if __name__ == "__main__":
    import uvicorn

    if not config.has_admin_password():
        logger.warning("WARNING: No admin password configured. Admin endpoints will not work.")
        logger.warning("Set ADMIN_PASSWORD_HASH (see scripts/hash_admin_password.py).")

    logger.info("starting movie night API server")
    logger.info("configuration", config_summary=config.summary())

    uvicorn.run(
        create_app(),
        host=config.API_HOST,
        port=config.API_PORT,
        access_log=False,  # Custom middleware logs requests
    )
