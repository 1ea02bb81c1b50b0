"""
Session Management Module
=========================

Keeps the authenticated Principal server-side, keyed by a random session id.

The browser only holds the signed session cookie (Starlette
``SessionMiddleware``), which carries the session id and Authlib's transient
state/nonce data. The Principal itself is stored here as the exact JSON text
pydantic produced, and handed back unchanged on later requests.
"""

import asyncio
import logging
import secrets
import time
from typing import Dict, Optional, Tuple

from starlette.requests import Request

from ..models import Principal

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "sid"

DEFAULT_TTL_SECONDS = 14 * 24 * 60 * 60


class SessionStore:
    """
    In-memory TTL store of principals keyed by session id.

    Contents are lost on restart. Guarded by an asyncio.Lock so concurrent
    requests on one event loop never interleave a read with a write.

    Each entry lives for ``ttl_seconds`` after it was last saved or loaded,
    matching the session cookie, which is re-issued with a fresh ``max_age``
    on every response. Expired entries are swept on save and load.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        """
        Args:
            ttl_seconds: Idle lifetime of an entry in seconds
        """
        self._sessions: Dict[str, Tuple[str, float]] = {}
        self._lock = asyncio.Lock()
        self._ttl_seconds = ttl_seconds

    def _sweep(self, now: float) -> None:
        # Caller holds the lock
        expired_keys = [key for key, (_, expires_at) in self._sessions.items() if now >= expires_at]
        for key in expired_keys:
            del self._sessions[key]
        if expired_keys:
            logger.debug(f"Removed {len(expired_keys)} expired session(s)")

    async def save(self, session_id: str, principal: Principal) -> None:
        serialized = principal.model_dump_json()
        async with self._lock:
            now = time.time()
            self._sweep(now)
            self._sessions[session_id] = (serialized, now + self._ttl_seconds)
        logger.debug("Stored principal for session")

    async def load(self, session_id: str) -> Optional[Principal]:
        """Return the session's principal, or None if absent or expired."""
        async with self._lock:
            now = time.time()
            self._sweep(now)
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            serialized = entry[0]
            self._sessions[session_id] = (serialized, now + self._ttl_seconds)
        return Principal.model_validate_json(serialized)

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._sessions.pop(session_id, None)


# =============================================================================
# Request Helpers
# =============================================================================

def get_session_id(request: Request) -> Optional[str]:
    """
    Read the session id from the signed cookie session.

    Args:
        request: Incoming request (SessionMiddleware must be installed)

    Returns:
        The session id, or None for a session that never signed in
    """
    return request.session.get(SESSION_ID_KEY)


async def login_principal(
    request: Request,
    store: SessionStore,
    principal: Principal,
) -> str:
    """
    Bind a freshly authenticated principal to the request's session.

    A new session id is issued on every login and any principal stored under
    the previous id is dropped.
    """
    previous_id = get_session_id(request)
    if previous_id is not None:
        await store.delete(previous_id)

    session_id = secrets.token_urlsafe(32)
    request.session[SESSION_ID_KEY] = session_id
    await store.save(session_id, principal)
    return session_id


async def current_principal(
    request: Request,
    store: SessionStore,
) -> Optional[Principal]:
    """
    Return the session's principal, or None if the request is unauthenticated.

    A principal whose access token has passed its ``expires_at`` is dropped
    from the store and treated as absent. Tokens are not refreshed.
    """
    session_id = get_session_id(request)
    if session_id is None:
        return None

    principal = await store.load(session_id)
    if principal is None:
        return None

    if principal.tokenset.is_expired():
        logger.info("Access token expired, discarding session principal")
        await store.delete(session_id)
        return None

    return principal
