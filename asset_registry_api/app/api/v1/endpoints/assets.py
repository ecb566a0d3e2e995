"""
Asset endpoints for API v1.

Each route turns one HTTP request into one registry invocation: the
caller identity comes from the proxy headers and all policy lives in
``AssetService``.  The world state transaction is opened and closed
inside the endpoint body, so a write is committed (or rolled back)
before any response is produced and a failing commit reaches the
client as an error.  Registry errors are not caught here; the handler
registered in ``main.py`` maps them to status codes.

Endpoints are plain ``def`` functions because opening a write
transaction may wait on SQLite's lock; FastAPI runs them in its
threadpool.
"""

from contextlib import contextmanager
from typing import Iterator, List

from fastapi import APIRouter, Depends, Query, status

from asset_registry_api.app.core.db import transaction
from asset_registry_api.app.core.security import ClientIdentity, InvocationContext, get_client_identity
from asset_registry_api.app.schemas.asset import Asset, AssetAck, AssetCreate, AssetUpdate
from asset_registry_api.app.services.asset_service import AssetService

router = APIRouter()


@contextmanager
def open_registry(identity: ClientIdentity, immediate: bool = True) -> Iterator[AssetService]:
    """Yield a registry bound to ``identity`` inside one world state transaction."""
    with transaction(immediate=immediate) as state:
        yield AssetService(InvocationContext(identity=identity, state=state))


@router.post("/", response_model=AssetAck, status_code=status.HTTP_201_CREATED)
def create_asset(body: AssetCreate, identity: ClientIdentity = Depends(get_client_identity)) -> AssetAck:
    """Create an asset (admin only).

    ``createdBy`` is taken from the caller identity and cannot be
    supplied in the body.  Returns 409 if the ID is already taken.
    """
    with open_registry(identity) as service:
        service.create_asset(body.id, body.owner, body.value)
    return AssetAck(message="Asset created successfully", asset_id=body.id)


@router.get("/", response_model=List[Asset], response_model_by_alias=True)
def list_assets(
    all_assets: bool = Query(False, alias="all", description="List every asset (auditors only) instead of the caller's own"),
    identity: ClientIdentity = Depends(get_client_identity),
) -> List[Asset]:
    """List assets.

    With ``all=true`` returns every asset and requires the auditor
    role; otherwise returns the assets owned by the caller.
    """
    with open_registry(identity, immediate=False) as service:
        if all_assets:
            return service.get_all_assets()
        return service.get_my_assets()


@router.get("/{asset_id}", response_model=Asset, response_model_by_alias=True)
def read_asset(asset_id: str, identity: ClientIdentity = Depends(get_client_identity)) -> Asset:
    """Retrieve a single asset.

    Auditors may read any asset; other callers only their own.
    """
    with open_registry(identity, immediate=False) as service:
        return service.read_asset(asset_id)


@router.put("/{asset_id}", response_model=AssetAck)
def update_asset(
    asset_id: str,
    body: AssetUpdate,
    identity: ClientIdentity = Depends(get_client_identity),
) -> AssetAck:
    """Change the value of an asset (admin only)."""
    with open_registry(identity) as service:
        service.update_asset(asset_id, body.value)
    return AssetAck(message="Asset updated successfully", asset_id=asset_id)


@router.delete("/{asset_id}", response_model=AssetAck)
def delete_asset(asset_id: str, identity: ClientIdentity = Depends(get_client_identity)) -> AssetAck:
    """Delete an asset (admin only)."""
    with open_registry(identity) as service:
        service.delete_asset(asset_id)
    return AssetAck(message="Asset deleted successfully", asset_id=asset_id)
