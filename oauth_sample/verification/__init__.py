"""
Verification Package
====================

Downstream call to the veteran verification API made on behalf of the
signed-in user.

Main Components:
----------------
- client.py: VeteranStatusClient and its VerificationResult outcome type
- routes.py: the protected GET /status endpoint
"""

from .routes import status_router

__all__ = ["status_router"]
