"""Admin session tokens with TTL

Two stores behind one interface:
- MemorySessionStore: process-local dict (lost on restart)
- SQLiteSessionStore: survives restarts, shared across workers

Tokens are 48 hex chars from secrets.token_hex(24). Expired tokens are
deleted the first time they are checked.
"""

import secrets
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from config import get_logger

logger = get_logger(__name__).bind(component="auth")

DEFAULT_TTL_SECONDS = 4 * 60 * 60


class SessionStatus(str, Enum):
    VALID = "valid"
    UNKNOWN = "unknown"
    EXPIRED = "expired"


def generate_token() -> str:
    return secrets.token_hex(24)


class SessionStore(ABC):
    """Interface for admin session storage

    Args (implementations):
        ttl_seconds: Lifetime of a new token
        clock: Returns current time in seconds (injectable for tests)
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @abstractmethod
    def create(self) -> str:
        """Issue a new token valid for ttl_seconds"""

    @abstractmethod
    def check(self, token: Optional[str]) -> SessionStatus:
        """Status of a token; expired tokens are removed"""

    @abstractmethod
    def revoke(self, token: Optional[str]) -> bool:
        """Forget a token; True if it existed"""

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop every expired token; returns how many"""

    def validate(self, token: Optional[str]) -> bool:
        return self.check(token) is SessionStatus.VALID


class MemorySessionStore(SessionStore):
    """In-process store guarded by a lock"""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        super().__init__(ttl_seconds, clock)
        self._sessions: Dict[str, float] = {}
        self._lock = threading.Lock()

    def create(self) -> str:
        token = generate_token()
        with self._lock:
            self._sessions[token] = self.clock() + self.ttl_seconds
        logger.info("admin session created", backend="memory")
        return token

    def check(self, token: Optional[str]) -> SessionStatus:
        if not token:
            return SessionStatus.UNKNOWN
        with self._lock:
            expires_at = self._sessions.get(token)
            if expires_at is None:
                return SessionStatus.UNKNOWN
            if self.clock() > expires_at:
                del self._sessions[token]
                return SessionStatus.EXPIRED
        return SessionStatus.VALID

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def purge_expired(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [token for token, expires_at in self._sessions.items() if now > expires_at]
            for token in expired:
                del self._sessions[token]
        return len(expired)


class SQLiteSessionStore(SessionStore):
    """
    Persistent session store using SQLite.

    Survives restarts and works across multiple API workers. Each call
    opens its own short-lived connection.
    """

    def __init__(
        self,
        db_path: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(ttl_seconds, clock)
        self.db_path = db_path

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize session table"""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS admin_sessions (
                    token TEXT PRIMARY KEY,
                    expires_at REAL NOT NULL,
                    created_at REAL NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_admin_sessions_expiry ON admin_sessions(expires_at)"
            )

    def create(self) -> str:
        token = generate_token()
        now = self.clock()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO admin_sessions (token, expires_at, created_at) VALUES (?, ?, ?)",
                (token, now + self.ttl_seconds, now),
            )
        logger.info("admin session created", backend="sqlite")
        return token

    def check(self, token: Optional[str]) -> SessionStatus:
        if not token:
            return SessionStatus.UNKNOWN
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT expires_at FROM admin_sessions WHERE token = ?", (token,)
            ).fetchone()
            if row is None:
                return SessionStatus.UNKNOWN
            if self.clock() > row[0]:
                conn.execute("DELETE FROM admin_sessions WHERE token = ?", (token,))
                return SessionStatus.EXPIRED
        return SessionStatus.VALID

    def revoke(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM admin_sessions WHERE token = ?", (token,))
            return cursor.rowcount > 0

    def purge_expired(self) -> int:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM admin_sessions WHERE expires_at < ?", (self.clock(),)
            )
            removed = cursor.rowcount
        if removed:
            logger.info("purged expired admin sessions", count=removed)
        return removed


def create_session_store(
    backend: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    db_path: Optional[str] = None,
) -> SessionStore:
    """Build the configured store ("memory" or "sqlite")"""
    if backend == "sqlite":
        if not db_path:
            raise ValueError("db_path required for sqlite session store")
        return SQLiteSessionStore(db_path, ttl_seconds=ttl_seconds)
    if backend == "memory":
        return MemorySessionStore(ttl_seconds=ttl_seconds)
    raise ValueError(f"Unknown session backend: {backend}")
