"""
Monitoring and health check API routes
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import Response

from config import config, get_logger
from database.db import UnifiedDatabase
from exceptions import MovieNightError
from server.metrics import get_metrics_text

logger = get_logger(__name__).bind(component="api")

VERSION = "1.0.0"

router = APIRouter()


@router.get("/")
def root():
    """API status and info"""
    return {
        "service": "movie night API",
        "status": "running",
        "version": VERSION,
        "endpoints": {
            "movies": "GET/POST /api/movies",
            "meetings": "GET/POST /api/meetings",
            "votes": "POST /api/votes",
            "results": "GET /api/results?meeting_id=",
            "health": "GET /api/health",
            "metrics": "GET /metrics",
        },
    }


@router.get("/api/health")
def health_check(request: Request):
    """Health check endpoint"""
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
        "checks": {},
    }

    try:
        with UnifiedDatabase(request.app.state.db_path) as db:
            stats = db.get_stats()
        health_status["checks"]["database"] = {"status": "healthy", **stats}
    except MovieNightError as e:
        logger.error("health check database failure", error=str(e))
        health_status["checks"]["database"] = {"status": "unhealthy", "error": e.message}
        health_status["status"] = "unhealthy"

    health_status["checks"]["metadata_lookup"] = {
        "status": "available" if request.app.state.metadata_client is not None else "disabled",
    }

    health_status["checks"]["configuration"] = {
        "status": "healthy",
        "is_development": config.is_development(),
        "session_backend": config.SESSION_BACKEND,
        "has_admin_password": config.has_admin_password(),
    }

    return health_status


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics endpoint

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(content=get_metrics_text(), media_type="text/plain")
