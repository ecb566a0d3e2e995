"""
Information endpoints for API v1.

``/health`` reports that the gateway is up.  ``/user-info`` tells a
caller which registry operations its role admits, so clients can hide
actions that would be refused anyway.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from asset_registry_api.app.api.v1.endpoints.assets import open_registry
from asset_registry_api.app.core.config import settings
from asset_registry_api.app.core.security import ClientIdentity, get_client_identity

router = APIRouter()


@router.get("/health", response_model=Dict[str, Any])
async def health() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.project_name,
    }


@router.get("/user-info", response_model=Dict[str, Any])
def user_info(identity: ClientIdentity = Depends(get_client_identity)) -> Dict[str, Any]:
    """Return the caller's role and the operations it is allowed to call."""
    with open_registry(identity, immediate=False) as service:
        return service.caller_permissions()
