"""
Request/response logging middleware

One line per request: method, path, status, duration.
"""

import time
from fastapi import Request

from config import get_logger

logger = get_logger(__name__).bind(component="api")

# Prometheus scraping and health probes are noise
QUIET_PATHS = ("/metrics", "/api/health")


async def log_requests(request: Request, call_next):
    """Log incoming requests and responses"""
    if request.url.path in QUIET_PATHS:
        return await call_next(request)

    start_time = time.time()
    path_info = f"{request.method} {request.url.path}"

    try:
        response = await call_next(request)
        duration = time.time() - start_time

        logger.info(
            f"{path_info} → {response.status_code} ({duration:.3f}s)",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 1),
        )
        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"{path_info} → ERROR ({duration:.3f}s): {str(e)}",
            error_type=type(e).__name__,
        )
        raise
