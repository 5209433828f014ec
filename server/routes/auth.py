"""
Admin session API routes

POST /api/admin/login exchanges the admin password for a session token.
The token is then sent as X-Admin-Token or Authorization: Bearer.
"""

from fastapi import APIRouter, Depends, Request

from auth.passwords import verify_password
from auth.sessions import SessionStore
from config import config, get_logger
from exceptions import AuthorizationError
from server.dependencies import extract_admin_token, get_session_store
from server.models.requests import LoginRequest

logger = get_logger(__name__).bind(component="auth")


router = APIRouter(prefix="/api/admin")


@router.post("/login")
def login(body: LoginRequest, store: SessionStore = Depends(get_session_store)):
    """Issue an admin session token for the correct password"""
    if not config.has_admin_password():
        logger.warning("admin login attempted with no admin password configured")
        raise AuthorizationError("admin login is not configured")

    if not verify_password(body.password, config.ADMIN_PASSWORD_HASH, config.ADMIN_PASSWORD):
        logger.warning("admin login failed")
        raise AuthorizationError("invalid password")

    store.purge_expired()
    token = store.create()
    logger.info("admin login succeeded")
    return {"success": True, "token": token, "expires_in": store.ttl_seconds}


@router.post("/logout")
def logout(request: Request, store: SessionStore = Depends(get_session_store)):
    """Revoke the presented token, if any"""
    revoked = store.revoke(extract_admin_token(request))
    if revoked:
        logger.info("admin logged out")
    return {"success": True}


@router.get("/me")
def whoami(request: Request, store: SessionStore = Depends(get_session_store)):
    """Whether the presented token is a live admin session"""
    return {"success": True, "admin": store.validate(extract_admin_token(request))}
