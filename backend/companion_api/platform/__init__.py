"""
Companion API — Platform Layer
===============================

What:  The only code that talks to the managed platform.
How:   PlatformClient → PlatformSession (one credential) → gateways:
           session.auth     token → user
           session.records  table CRUD + RPC
           session.storage  object upload/remove/public URL
"""

from companion_api.platform.client import PlatformClient
from companion_api.platform.errors import NO_ROWS_CODE, PlatformError
from companion_api.platform.session import PlatformSession

__all__ = ["PlatformClient", "PlatformSession", "PlatformError", "NO_ROWS_CODE"]
