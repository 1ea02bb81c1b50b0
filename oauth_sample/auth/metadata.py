"""
Identity provider metadata resolution.

The issuer description comes from exactly one of two places, chosen once at
startup:
- a local discovery document on disk (``--local``), or
- the provider's well-known discovery URL, fetched over HTTPS.
"""

import json
import logging
from pathlib import Path
from typing import Any, Union

import httpx
from pydantic import ValidationError

from ..config import OAuthSampleError, Settings
from ..models import IssuerMetadata

logger = logging.getLogger(__name__)


class MetadataError(OAuthSampleError):
    """Raised when the issuer metadata cannot be loaded"""
    pass


def _parse_metadata(data: Any, source: str) -> IssuerMetadata:
    try:
        return IssuerMetadata.model_validate(data)
    except ValidationError as e:
        raise MetadataError(f"Invalid OpenID configuration from {source}: {e}") from e


def load_local_metadata(path: Union[str, Path]) -> IssuerMetadata:
    """
    Read a discovery document from disk.

    Raises:
        MetadataError: If the file is missing, not JSON, or lacks required endpoints
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise MetadataError(f"Cannot read metadata file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise MetadataError(f"Metadata file {path} is not valid JSON: {e}") from e

    return _parse_metadata(data, str(path))


def discover_metadata(url: str, timeout: float) -> IssuerMetadata:
    """
    Fetch the discovery document from the identity provider.

    One GET request, no retries.

    Args:
        url: Well-known OpenID configuration URL
        timeout: Request timeout in seconds

    Raises:
        MetadataError: On timeout, transport error, non-2xx status or bad body
    """
    try:
        response = httpx.get(url, timeout=timeout)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        raise MetadataError(f"Timed out fetching OpenID configuration from {url}") from e
    except httpx.HTTPStatusError as e:
        raise MetadataError(
            f"OpenID configuration request to {url} failed with status {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        raise MetadataError(f"Cannot fetch OpenID configuration from {url}: {e}") from e

    try:
        data = response.json()
    except ValueError as e:
        raise MetadataError(f"OpenID configuration from {url} is not valid JSON") from e

    return _parse_metadata(data, url)


def resolve_issuer_metadata(settings: Settings, use_local: bool) -> IssuerMetadata:
    """
    Resolve the issuer metadata from the local file or the remote provider.

    Args:
        settings: Application settings (file path, discovery URL, timeout)
        use_local: True to read LOCAL_METADATA_FILE instead of fetching DISCOVERY_URL

    Returns:
        Validated IssuerMetadata
    """
    if use_local:
        logger.info("Loading local metadata...")
        metadata = load_local_metadata(settings.LOCAL_METADATA_FILE)
    else:
        logger.info("Loading dev metadata...")
        metadata = discover_metadata(settings.DISCOVERY_URL, settings.HTTP_TIMEOUT_SECONDS)

    logger.info(f"Resolved issuer {metadata.issuer}")
    return metadata
