"""
Route Tests
===========

End-to-end behaviour of the HTTP surface with the identity provider mocked
and the veteran status service served by an httpx MockTransport.

Test Coverage:
--------------
1. Public landing page and health check
2. /auth redirect delegation
3. /auth/cb success and failure handling
4. /status redirect for anonymous sessions
5. /status downstream call and error mapping
"""

import asyncio
import time

import httpx
import pytest
from authlib.integrations.starlette_client import OAuthError
from fastapi import status
from fastapi.responses import RedirectResponse


# ============================================================================
# Public Endpoints
# ============================================================================

def test_landing_page_is_public(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Hello World!"


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# ============================================================================
# Login Flow
# ============================================================================

def test_auth_delegates_to_strategy_redirect(client, mock_oidc_client, settings):
    mock_oidc_client.authorize_redirect.return_value = RedirectResponse(
        "https://idp.example.com/oauth2/authorization?state=abc", status_code=302
    )

    response = client.get("/auth", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].startswith("https://idp.example.com/oauth2/authorization")
    args, kwargs = mock_oidc_client.authorize_redirect.call_args
    assert args[1] == settings.REDIRECT_URI
    assert "idp" not in kwargs


def test_callback_success_stores_principal(client, login, session_store, token_response, userinfo):
    login()

    assert len(session_store._sessions) == 1
    session_id = next(iter(session_store._sessions))
    principal = asyncio.run(session_store.load(session_id))
    assert principal.tokenset.access_token == token_response["access_token"]
    assert principal.userinfo == userinfo


def test_callback_failure_redirects_without_session_write(client, mock_oidc_client, session_store):
    mock_oidc_client.authorize_access_token.side_effect = OAuthError(
        error="invalid_grant", description="Authorization code expired"
    )

    response = client.get(
        "/auth/cb",
        params={"code": "expired-code", "state": "state-value"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "/"
    assert len(session_store._sessions) == 0
    mock_oidc_client.userinfo.assert_not_called()


def test_failed_callback_leaves_status_unauthenticated(client, mock_oidc_client, downstream):
    mock_oidc_client.authorize_access_token.side_effect = OAuthError(error="invalid_grant")
    client.get("/auth/cb", params={"code": "bad", "state": "s"}, follow_redirects=False)

    response = client.get("/status", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/auth"
    assert downstream.requests == []


def test_second_login_replaces_session(client, login, session_store):
    login()
    first_id = next(iter(session_store._sessions))

    login()

    assert list(session_store._sessions) != [first_id]
    assert len(session_store._sessions) == 1


def test_session_cookie_carries_max_age(client, login, settings):
    response = login()

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert f"Max-Age={settings.SESSION_MAX_AGE_SECONDS}" in cookie


# ============================================================================
# Veteran Status
# ============================================================================

def test_status_without_session_redirects_to_auth(client, downstream):
    response = client.get("/status", follow_redirects=False)

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "/auth"
    assert downstream.requests == []


def test_status_returns_veteran_status(client, login, downstream, token_response, settings):
    login()

    response = client.get("/status", follow_redirects=False)

    assert response.status_code == 200
    assert response.text == "confirmed"
    assert len(downstream.requests) == 1
    request = downstream.requests[0]
    assert str(request.url) == settings.VETERAN_STATUS_URL
    assert request.method == "GET"
    assert request.headers["Authorization"] == f"Bearer {token_response['access_token']}"


def test_status_calls_downstream_once_per_request(client, login, downstream):
    login()

    client.get("/status")
    client.get("/status")

    assert len(downstream.requests) == 2


@pytest.mark.parametrize(
    "responder, expected_status",
    [
        (lambda request: httpx.Response(500, text="boom"), status.HTTP_502_BAD_GATEWAY),
        (lambda request: httpx.Response(404, json={"errors": []}), status.HTTP_502_BAD_GATEWAY),
        (lambda request: httpx.Response(401, json={"message": "Invalid token"}), status.HTTP_401_UNAUTHORIZED),
        (lambda request: httpx.Response(403), status.HTTP_401_UNAUTHORIZED),
        (lambda request: httpx.Response(200, text="not json"), status.HTTP_502_BAD_GATEWAY),
        (lambda request: httpx.Response(200, json={"data": {}}), status.HTTP_502_BAD_GATEWAY),
        (lambda request: httpx.Response(200, json=["unexpected"]), status.HTTP_502_BAD_GATEWAY),
    ],
)
def test_status_downstream_failures_map_to_error_status(
    client, login, downstream, responder, expected_status
):
    downstream._responder = responder
    login()

    response = client.get("/status", follow_redirects=False)

    assert response.status_code == expected_status
    assert "detail" in response.json()
    assert len(downstream.requests) == 1


def test_status_downstream_timeout_returns_504(client, login, downstream):
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    downstream._responder = timeout
    login()

    response = client.get("/status", follow_redirects=False)

    assert response.status_code == status.HTTP_504_GATEWAY_TIMEOUT


def test_status_downstream_unreachable_returns_503(client, login, downstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    downstream._responder = refuse
    login()

    response = client.get("/status", follow_redirects=False)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_status_non_string_value_returned_as_json(client, login, downstream):
    downstream._responder = lambda request: httpx.Response(
        200, json={"data": {"attributes": {"veteran_status": {"confirmed": True}}}}
    )
    login()

    response = client.get("/status")

    assert response.status_code == 200
    assert response.json() == {"confirmed": True}


def test_status_with_expired_token_redirects_to_auth(
    client, login, downstream, mock_oidc_client, token_response, session_store
):
    expired = dict(token_response, expires_at=int(time.time()) - 60)
    mock_oidc_client.authorize_access_token.return_value = expired
    login()

    response = client.get("/status", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/auth"
    assert downstream.requests == []
    assert len(session_store._sessions) == 0
