"""FastAPI dependencies: caller identity, admin gate, cron auth, and collaborators."""

import logging
import secrets

from fastapi import Depends, HTTPException, Request, status
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from portal.core.config import constants, settings
from portal.core.events import EventBus
from portal.core.store import RecordStore, get_record_store
from portal.interface.graph_mailer import Mailer, get_mailer
from portal.services.triage_service import RequestRegistry


logger = logging.getLogger(__name__)

SESSION_COOKIE = "portal_session"
USER_HEADER = "X-User-Email"

session_serializer = URLSafeTimedSerializer(settings.secret_key, salt="portal-session")


def issue_session_token(email: str) -> str:
    """Sign a session cookie value carrying the caller's email."""
    return session_serializer.dumps({"email": email})


def _email_from_cookie(token: str) -> str | None:
    try:
        data = session_serializer.loads(token, max_age=constants.SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        logger.warning("session_cookie_tampered_or_expired")
        return None
    email = data.get("email") if isinstance(data, dict) else None
    return email or None


async def get_current_user_email(request: Request) -> str:
    """Resolve the caller's email from the session cookie, or the proxy header when trusted.

    Raises:
        HTTPException: 401 when neither identifies the caller
    """
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        email = _email_from_cookie(token)
        if email:
            return email

    if settings.trust_user_header:
        header_email = request.headers.get(USER_HEADER, "").strip()
        if header_email:
            return header_email

    logger.warning("auth_missing_identity", extra={"path": request.url.path})
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def require_admin(user_email: str = Depends(get_current_user_email)) -> str:
    """Allow only staff listed in ``admin_emails``.

    Raises:
        HTTPException: 403 for authenticated non-staff callers
    """
    if user_email.lower() not in settings.admin_email_set:
        logger.warning("admin_access_denied", extra={"user_email": user_email})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user_email


async def verify_cron_secret(request: Request) -> None:
    """Require ``Authorization: Bearer <cron_secret>`` when a secret is configured."""
    if not settings.cron_secret:
        return

    expected = f"Bearer {settings.cron_secret}"
    provided = request.headers.get("Authorization", "")
    if not secrets.compare_digest(provided.encode(), expected.encode()):
        logger.warning("cron_auth_failed", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


def get_request_registry(store: RecordStore = Depends(get_record_store)) -> RequestRegistry:
    return RequestRegistry(store)


__all__ = [
    "Mailer",
    "get_current_user_email",
    "get_event_bus",
    "get_mailer",
    "get_record_store",
    "get_request_registry",
    "issue_session_token",
    "require_admin",
    "verify_cron_secret",
]
