"""Shared fixtures for the OAuth sample test suite."""

import time
from typing import Callable, List
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from fastapi.testclient import TestClient

from oauth_sample.auth.session import SessionStore
from oauth_sample.config import ClientCredentials, Settings
from oauth_sample.main import create_app


DISCOVERY_DOCUMENT = {
    "issuer": "https://idp.example.com/oauth2",
    "authorization_endpoint": "https://idp.example.com/oauth2/authorization",
    "token_endpoint": "https://idp.example.com/oauth2/token",
    "userinfo_endpoint": "https://idp.example.com/oauth2/userinfo",
    "jwks_uri": "https://idp.example.com/oauth2/keys",
    "scopes_supported": ["openid", "profile", "veteran_status.read"],
}

STATUS_URL = "https://api.example.com/services/veteran_verification/v0/status"


@pytest.fixture
def discovery_document():
    return dict(DISCOVERY_DOCUMENT)


@pytest.fixture
def settings():
    """Settings built without reading the process environment's .env file"""
    return Settings(
        _env_file=None,
        SESSION_SECRET="test-session-secret-0123456789",
        DISCOVERY_URL="https://idp.example.com/oauth2/.well-known/openid-configuration",
        VETERAN_STATUS_URL=STATUS_URL,
    )


@pytest.fixture
def credentials():
    return ClientCredentials(client_id="test-client-id", client_secret="test-client-secret")


@pytest.fixture
def token_response():
    """Token set as returned by the token endpoint"""
    return {
        "access_token": "access-token-123",
        "token_type": "Bearer",
        "expires_in": 3600,
        "expires_at": int(time.time()) + 3600,
        "id_token": "header.payload.signature",
        "scope": "openid profile veteran_status.read",
    }


@pytest.fixture
def userinfo():
    return {"sub": "user-123", "name": "Test User", "email": "test@example.com"}


@pytest.fixture
def mock_oidc_client(token_response, userinfo):
    """Authlib client stand-in with async login and exchange methods"""
    client = Mock()
    client.authorize_redirect = AsyncMock()
    client.authorize_access_token = AsyncMock(return_value=dict(token_response))
    client.userinfo = AsyncMock(return_value=dict(userinfo))
    return client


class DownstreamRecorder:
    """Collects requests sent to the veteran status service."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []
        self._responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)


@pytest.fixture
def downstream():
    """Veteran status service answering with a confirmed status by default"""
    return DownstreamRecorder(
        lambda request: httpx.Response(
            200, json={"data": {"attributes": {"veteran_status": "confirmed"}}}
        )
    )


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def app(settings, credentials, mock_oidc_client, downstream, session_store):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(downstream))
    return create_app(
        settings,
        credentials,
        mock_oidc_client,
        http_client=http_client,
        session_store=session_store,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login(client):
    """Complete the callback leg so the test client holds a signed-in session"""

    def _login():
        response = client.get(
            "/auth/cb",
            params={"code": "auth-code", "state": "state-value"},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/"
        return response

    return _login
