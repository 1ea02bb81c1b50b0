"""OIDC client construction using Authlib."""

import logging

from authlib.integrations.starlette_client import OAuth, StarletteOAuth2App

from ..config import ClientCredentials, ConfigurationError, Settings
from ..models import IssuerMetadata

logger = logging.getLogger(__name__)

OIDC_CLIENT_NAME = "oidc"


def build_oidc_client(
    metadata: IssuerMetadata,
    credentials: ClientCredentials,
    settings: Settings,
) -> StarletteOAuth2App:
    """
    Register the identity provider and return the Authlib client.

    The resolved discovery document is handed to Authlib as server metadata,
    so building the client performs no network calls. The same client is
    shared by every request.

    Raises:
        ConfigurationError: If Authlib rejects the registration
    """
    oauth = OAuth()
    try:
        client = oauth.register(
            name=OIDC_CLIENT_NAME,
            client_id=credentials.client_id,
            client_secret=credentials.client_secret,
            client_kwargs={
                "scope": settings.OIDC_SCOPES,
                "timeout": settings.HTTP_TIMEOUT_SECONDS,
            },
            **metadata.as_server_metadata(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Cannot construct OIDC client: {e}") from e

    logger.info(
        f"Registered OIDC client '{OIDC_CLIENT_NAME}'",
        extra={"issuer": metadata.issuer, "scope": settings.OIDC_SCOPES},
    )
    return client
