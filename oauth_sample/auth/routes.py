"""
Authentication routes for the OIDC authorization-code flow.

- GET /auth     : redirect to the identity provider's authorization endpoint
- GET /auth/cb  : exchange the authorization response, store the principal,
                  redirect to the landing page
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from .session import SessionStore, login_principal
from .strategy import OIDCStrategy

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
)


# =============================================================================
# Dependencies
# =============================================================================

def get_strategy(request: Request) -> OIDCStrategy:
    """Return the OIDC strategy built at startup."""
    strategy = getattr(request.app.state, "oidc_strategy", None)
    if strategy is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="OIDC not configured",
        )
    return strategy


def get_session_store(request: Request) -> SessionStore:
    """Return the application's session store."""
    return request.app.state.session_store


# =============================================================================
# Login Endpoint
# =============================================================================

@auth_router.get("", response_class=RedirectResponse)
async def login(
    request: Request,
    strategy: OIDCStrategy = Depends(get_strategy),
):
    """
    Initiate the OIDC login flow.

    Authlib generates state and nonce, keeps them in the cookie session and
    returns a 302 to the authorization endpoint with the configured scopes
    (plus ``idp`` when an identity provider hint is configured).
    """
    return await strategy.login_redirect(request)


# =============================================================================
# Callback Endpoint
# =============================================================================

@auth_router.get("/cb", response_class=RedirectResponse)
async def callback(
    request: Request,
    strategy: OIDCStrategy = Depends(get_strategy),
    store: SessionStore = Depends(get_session_store),
):
    """
    Handle the redirect back from the identity provider.

    Success and failure both end on the landing page; only a successful
    exchange writes a principal into the session.
    """
    result = await strategy.authenticate(request)

    if result.ok:
        await login_principal(request, store, result.principal)
    else:
        logger.info(f"Login failed: {result.error}")

    return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
