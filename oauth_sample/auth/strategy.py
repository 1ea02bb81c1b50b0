"""
OIDC authentication strategy.

Wraps the Authlib client registered under ``oidc`` and exposes the two
transitions of the login flow:

1. ``login_redirect``: send the user to the authorization endpoint
2. ``authenticate``: exchange the authorization response for a token set
   and user info, returning an ``AuthResult`` instead of raising
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from authlib.integrations.starlette_client import OAuthError
from authlib.jose.errors import JoseError
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import RedirectResponse

from ..models import Principal, TokenSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a callback exchange."""
    principal: Optional[Principal] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.principal is not None

    @classmethod
    def success(cls, principal: Principal) -> "AuthResult":
        return cls(principal=principal)

    @classmethod
    def failure(cls, error: str) -> "AuthResult":
        return cls(error=error)


class OIDCStrategy:
    """Authorization-code login against the registered OIDC client."""

    def __init__(
        self,
        client: Any,
        redirect_uri: str,
        identity_provider: Optional[str] = None,
    ) -> None:
        self._client = client
        self._redirect_uri = redirect_uri
        self._params: Dict[str, str] = {}
        if identity_provider:
            self._params["idp"] = identity_provider

    async def login_redirect(self, request: Request) -> RedirectResponse:
        """Build the authorization URL and redirect the browser to it."""
        return await self._client.authorize_redirect(
            request, self._redirect_uri, **self._params
        )

    async def authenticate(self, request: Request) -> AuthResult:
        """
        Complete the callback leg of the flow.

        Exchanges the authorization code (Authlib validates state and nonce),
        then fetches user info. Any provider or transport failure yields a
        failed result; the exchange is never retried.
        """
        try:
            token = await self._client.authorize_access_token(request)
            userinfo = await self._client.userinfo(token=token)
        except OAuthError as e:
            logger.warning(f"OIDC callback rejected: {e.error}")
            return AuthResult.failure(e.error or "oauth_error")
        except JoseError as e:
            logger.warning(f"ID token rejected: {e.error}")
            return AuthResult.failure("invalid_id_token")
        except httpx.HTTPError as e:
            logger.warning(f"OIDC provider request failed: {type(e).__name__}")
            return AuthResult.failure("provider_unavailable")
        except (ValueError, RuntimeError) as e:
            # Non-JSON userinfo body, or Authlib unable to check the ID token
            logger.warning(f"OIDC provider response unusable: {type(e).__name__}: {e}")
            return AuthResult.failure("invalid_provider_response")

        try:
            principal = Principal(
                userinfo=dict(userinfo),
                tokenset=TokenSet.model_validate(dict(token)),
            )
        except ValidationError:
            logger.warning("Token response did not contain an access token")
            return AuthResult.failure("invalid_token_response")

        logger.info(
            "OIDC login completed",
            extra={"sub": principal.userinfo.get("sub")},
        )
        return AuthResult.success(principal)
