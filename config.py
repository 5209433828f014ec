import os
import logging
import sys
from typing import Optional

import structlog

from exceptions import ConfigurationError

logger = logging.getLogger("movienight")

SESSION_BACKENDS = ("memory", "sqlite")


def get_logger(name: str = "movienight"):
    """Get a structured logger instance

    Usage:
        logger = get_logger(__name__)
        logger = logger.bind(component="voting")
        logger.info("meeting resolved", meeting_id=3, movie_id=12)

    Args:
        name: Logger name (typically __name__ or module path)

    Returns:
        Structured logger instance with context binding support
    """
    return structlog.get_logger(name)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Configuration management for Movie Night"""

    def __init__(self):
        # Database configuration - SQLite
        default_data_dir = os.path.join(os.getcwd(), "data")
        self.DB_DIR = os.getenv("MOVIENIGHT_DB_DIR", default_data_dir)
        self.DB_PATH = os.getenv("MOVIENIGHT_DB_PATH", f"{self.DB_DIR}/movienight.db")

        # Admin sessions
        self.SESSION_BACKEND = os.getenv("MOVIENIGHT_SESSION_BACKEND", "memory").lower()
        self.SESSION_DB_PATH = os.getenv(
            "MOVIENIGHT_SESSION_DB_PATH", f"{self.DB_DIR}/sessions.db"
        )
        self.SESSION_TTL_SECONDS = int(
            os.getenv("MOVIENIGHT_SESSION_TTL_SECONDS", str(4 * 60 * 60))
        )  # 4 hours

        # Admin authentication - bcrypt hash preferred, plaintext kept for migration
        self.ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")
        self.ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

        # Voting policy
        self.ENFORCE_ALLOW_LIST = _env_flag("MOVIENIGHT_ENFORCE_ALLOW_LIST")

        # External APIs
        self.TMDB_API_KEY = os.getenv("TMDB_API_KEY")
        self.TMDB_TIMEOUT_SECONDS = float(os.getenv("MOVIENIGHT_TMDB_TIMEOUT", "10"))

        # Default log path to repo-relative
        default_log_path = os.path.join(os.getcwd(), "movienight.log")
        self.LOG_PATH = os.getenv("MOVIENIGHT_LOG_PATH", default_log_path)

        # API configuration
        self.API_HOST = os.getenv("MOVIENIGHT_HOST", "0.0.0.0")
        self.API_PORT = int(os.getenv("MOVIENIGHT_PORT", "3000"))
        self.DEBUG = _env_flag("MOVIENIGHT_DEBUG")

        # CORS settings
        self.ALLOWED_ORIGINS = self._parse_origins(
            os.getenv(
                "MOVIENIGHT_ALLOWED_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
            )
        )

        # Logging
        self.LOG_LEVEL = os.getenv("MOVIENIGHT_LOG_LEVEL", "INFO").upper()

        # Validate configuration
        self._validate()

    def _parse_origins(self, origins_str: str) -> list:
        """Parse comma-separated origins string"""
        if not origins_str:
            return []
        return [origin.strip() for origin in origins_str.split(",") if origin.strip()]

    def _validate(self):
        """Validate configuration values"""
        if self.API_PORT <= 0 or self.API_PORT > 65535:
            raise ConfigurationError(
                "MOVIENIGHT_PORT must be between 1 and 65535", config_key="MOVIENIGHT_PORT"
            )

        if self.SESSION_TTL_SECONDS <= 0:
            raise ConfigurationError(
                "MOVIENIGHT_SESSION_TTL_SECONDS must be positive",
                config_key="MOVIENIGHT_SESSION_TTL_SECONDS",
            )

        if self.SESSION_BACKEND not in SESSION_BACKENDS:
            raise ConfigurationError(
                f"MOVIENIGHT_SESSION_BACKEND must be one of: {', '.join(SESSION_BACKENDS)}",
                config_key="MOVIENIGHT_SESSION_BACKEND",
            )

        if not self.has_admin_password():
            logger.warning("No admin password configured - admin login will be rejected")

    def has_admin_password(self) -> bool:
        return bool(self.ADMIN_PASSWORD_HASH or self.ADMIN_PASSWORD)

    def get_tmdb_key(self) -> Optional[str]:
        return self.TMDB_API_KEY or None

    def ensure_data_dir(self) -> str:
        """Lazily create data directory if it doesn't exist

        Returns:
            Path to the data directory

        Note: Only creates directories when actually needed, not at import time
        """
        if not os.path.exists(self.DB_DIR):
            logger.info("creating data directory %s", self.DB_DIR)
            os.makedirs(self.DB_DIR, exist_ok=True)
        return self.DB_DIR

    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.DEBUG or "localhost" in str(self.ALLOWED_ORIGINS)

    def summary(self) -> dict:
        """Get a summary of current configuration (excluding secrets)"""
        return {
            "db_dir": self.DB_DIR,
            "database": os.path.basename(self.DB_PATH),
            "session_backend": self.SESSION_BACKEND,
            "session_ttl_seconds": self.SESSION_TTL_SECONDS,
            "enforce_allow_list": self.ENFORCE_ALLOW_LIST,
            "api_host": self.API_HOST,
            "api_port": self.API_PORT,
            "debug": self.DEBUG,
            "allowed_origins_count": len(self.ALLOWED_ORIGINS),
            "log_level": self.LOG_LEVEL,
            "has_admin_password": self.has_admin_password(),
            "has_tmdb_key": bool(self.get_tmdb_key()),
            "is_development": self.is_development(),
        }


def configure_structlog(is_development: bool = False, log_level: str = "INFO"):
    """Configure structlog for structured logging

    Args:
        is_development: If True, use human-readable console output. If False, use JSON.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # No timestamp processor - the process supervisor stamps lines
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if is_development:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"], drop_missing=True),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )


# Global configuration instance
config = Config()

# Use development mode if DEBUG=true or localhost in origins
configure_structlog(
    is_development=config.is_development(),
    log_level=config.LOG_LEVEL
)
