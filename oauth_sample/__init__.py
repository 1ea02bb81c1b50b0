"""
OAuth Sample
============

Demonstration web application for the OpenID Connect authorization-code
flow: sign a user in through the identity provider, keep the resulting token
set in a server-side session, and call the veteran status API with it.

Run with ``oauth-sample`` (or ``python -m oauth_sample``); pass ``--local`` to
use the local OpenID configuration instead of the dev environment.
"""

__version__ = "1.0.0"
