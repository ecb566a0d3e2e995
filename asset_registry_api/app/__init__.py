"""
Application package initializer.

The registry core (``services.asset_service``) enforces the
role‑based policy for every asset operation against an injected world
state.  The HTTP gateway under ``api/v1`` is only a hosting adapter:
it turns requests into invocations and maps registry errors to status
codes.
"""

from .main import app  # noqa: F401
