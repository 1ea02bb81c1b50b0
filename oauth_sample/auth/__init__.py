"""
Authentication Package

Handles the OpenID Connect authorization-code login for the sample app.

Modules:
- metadata: loads the issuer discovery document (local file or remote)
- oidc: builds the Authlib client registered as "oidc"
- strategy: login redirect and callback exchange
- session: server-side principal store keyed by the cookie session id
- routes: /auth and /auth/cb endpoints

The authentication flow:
1. Browser hits /auth and is redirected to the identity provider
2. User authenticates with the identity provider
3. Provider redirects back to /auth/cb with an authorization code
4. The code is exchanged for a token set, user info is fetched
5. The principal is stored against the session and the browser returns to /
"""

from .routes import auth_router

__all__ = [
    "auth_router",
]
