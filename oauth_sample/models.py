"""
Data Models Module

Pydantic models shared across the application:
- Identity provider metadata (OpenID discovery document)
- Session principal (userinfo + token set)
- Health check response
"""

import time
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Identity Provider Models
# ============================================================================

class IssuerMetadata(BaseModel):
    """
    OpenID Connect discovery document.

    The endpoints the login flow calls are required; every other
    key of the document is kept as-is.
    """
    model_config = ConfigDict(extra="allow")

    issuer: str = Field(..., min_length=1, description="Issuer identifier")
    authorization_endpoint: str = Field(..., min_length=1, description="Authorization endpoint URL")
    token_endpoint: str = Field(..., min_length=1, description="Token endpoint URL")
    userinfo_endpoint: str = Field(..., min_length=1, description="UserInfo endpoint URL")
    jwks_uri: str = Field(..., min_length=1, description="JSON Web Key Set URL")

    def as_server_metadata(self) -> Dict[str, Any]:
        """Return the document as a plain dict for Authlib's server metadata."""
        return self.model_dump(exclude_none=True)


# ============================================================================
# Session Principal Models
# ============================================================================

class TokenSet(BaseModel):
    """
    Token response from the token endpoint, kept verbatim.

    Only ``access_token`` is declared; ``token_type``, ``expires_at``,
    ``id_token`` and anything else the provider returns ride along as extras.
    """
    model_config = ConfigDict(extra="allow")

    access_token: str = Field(..., min_length=1)

    @property
    def expires_at(self) -> Optional[float]:
        value = (self.model_extra or {}).get("expires_at")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None

    def is_expired(self, now: Optional[float] = None) -> bool:
        """True when the provider told us when the token expires and that time has passed."""
        expires_at = self.expires_at
        if expires_at is None:
            return False
        if now is None:
            now = time.time()
        return expires_at <= now


class Principal(BaseModel):
    """Authenticated identity plus credentials bound to a session."""
    userinfo: Dict[str, Any] = Field(default_factory=dict)
    tokenset: TokenSet


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
