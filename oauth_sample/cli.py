"""OAuth sample CLI entry point."""

import logging

import click
import uvicorn

from . import __version__
from .auth.metadata import resolve_issuer_metadata
from .auth.oidc import build_oidc_client
from .config import OAuthSampleError, get_settings, load_client_credentials
from .main import create_app, setup_logging

logger = logging.getLogger(__name__)


def build_application(use_local: bool):
    """
    Run the startup sequence: settings, credentials, metadata, client, app.

    Each step must succeed before the next one starts.

    Raises:
        OAuthSampleError: If any step fails
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    credentials = load_client_credentials(settings.CONFIG_FILE)
    metadata = resolve_issuer_metadata(settings, use_local=use_local)
    oidc_client = build_oidc_client(metadata, credentials, settings)

    return settings, create_app(settings, credentials, oidc_client)


@click.command()
@click.version_option(version=__version__)
@click.option(
    "--local",
    is_flag=True,
    default=False,
    help="Use the OpenID configuration for the localhost OAuth proxy instead of the dev environment proxy",
)
def main(local: bool) -> None:
    """A sample application for testing the Lighthouse OAuth flow."""
    try:
        settings, app = build_application(use_local=local)
    except OAuthSampleError as e:
        logger.error(f"Startup failed: {e}")
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
