"""Admin password verification

ADMIN_PASSWORD_HASH (bcrypt) is preferred. ADMIN_PASSWORD (plaintext) is
still accepted for old deployments and logs a warning on every use.
With neither configured, every login is rejected.
"""

import secrets
from typing import Optional

import bcrypt

from config import get_logger

logger = get_logger(__name__).bind(component="auth")


def hash_password(password: str, rounds: int = 12) -> str:
    """bcrypt hash suitable for ADMIN_PASSWORD_HASH"""
    if not password:
        raise ValueError("password must not be empty")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(
    candidate: Optional[str],
    password_hash: Optional[str] = None,
    plaintext: Optional[str] = None,
) -> bool:
    """Check a login attempt against the configured credential"""
    if not candidate:
        return False

    if password_hash:
        try:
            return bcrypt.checkpw(candidate.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.error("invalid admin password hash", error=str(e))
            return False

    if plaintext:
        logger.warning("using plaintext admin password comparison - set ADMIN_PASSWORD_HASH instead")
        return secrets.compare_digest(candidate.encode("utf-8"), plaintext.encode("utf-8"))

    return False
