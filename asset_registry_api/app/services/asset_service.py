"""
Service layer for the asset registry.

``AssetService`` is created per invocation with an
``InvocationContext``; it never reaches for a global store.  Each
public operation first applies the policy from ``core.security``,
then checks existence, then reads or writes the world state.  Errors
from ``core.errors`` propagate unchanged; nothing is retried.

Create relies on the world state's ``put_if_absent`` so that two
racing creates of one key cannot both succeed even if both passed the
existence check.  Listing operations scan the whole key space and
always close the scan iterator, whether they finish or fail.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..core.errors import ConflictError, NotFoundError
from ..core.security import (
    InvocationContext,
    authorize_create,
    authorize_delete,
    authorize_list_all,
    authorize_read_owner,
    authorize_read_role,
    authorize_update,
    permissions_for,
    resolve_role,
)
from ..schemas.asset import Asset

logger = logging.getLogger(__name__)


class AssetService:
    """Authorization‑gated CRUD over assets in the world state."""

    def __init__(self, context: InvocationContext):
        self.context = context

    @property
    def identity(self):
        return self.context.identity

    @property
    def state(self):
        return self.context.state

    def create_asset(self, asset_id: str, owner: str, value: int) -> Asset:
        """Create an asset owned by ``owner``.

        ``created_by`` is always the caller's identity.  Raises
        ``AuthorizationError`` for non‑admins and ``ConflictError`` if
        the key is already taken.
        """
        creator = self.identity.get_id()
        authorize_create(self.identity)

        if self.asset_exists(asset_id):
            raise ConflictError(f"the asset {asset_id} already exists")

        asset = Asset(id=asset_id, owner=owner, value=value, created_by=creator)
        if not self.state.put_if_absent(asset_id, asset.to_bytes()):
            # Lost a race with a create that committed after our check.
            raise ConflictError(f"the asset {asset_id} already exists")
        logger.info("Asset %s created by %s for owner %s", asset_id, creator, owner)
        return asset

    def read_asset(self, asset_id: str) -> Asset:
        """Return an asset if the caller may see it.

        Auditors see every asset; any other role only sees assets
        whose owner is the caller.
        """
        role = authorize_read_role(self.identity)
        asset = self.read_asset_internal(asset_id)
        authorize_read_owner(self.identity, role, asset.owner)
        return asset

    def update_asset(self, asset_id: str, new_value: int) -> Asset:
        """Replace the value of an existing asset; other fields are untouched."""
        authorize_update(self.identity)

        if not self.asset_exists(asset_id):
            raise NotFoundError(f"the asset {asset_id} does not exist")

        current = self.read_asset_internal(asset_id)
        updated = current.model_copy(update={"value": new_value})
        self.state.put_state(asset_id, updated.to_bytes())
        logger.info("Asset %s value changed from %s to %s", asset_id, current.value, new_value)
        return updated

    def delete_asset(self, asset_id: str) -> None:
        authorize_delete(self.identity)

        if not self.asset_exists(asset_id):
            raise NotFoundError(f"the asset {asset_id} does not exist")

        self.state.del_state(asset_id)
        logger.info("Asset %s deleted", asset_id)

    def get_all_assets(self) -> List[Asset]:
        """Return every asset in key order.  Auditors only."""
        authorize_list_all(self.identity)
        return self._scan()

    def get_my_assets(self) -> List[Asset]:
        """Return the assets owned by the caller, in key order.

        Like a single read, requires the role attribute to be present.
        """
        authorize_read_role(self.identity)
        caller = self.identity.get_id()
        return self._scan(lambda asset: asset.owner == caller)

    def caller_permissions(self) -> Dict[str, object]:
        role = resolve_role(self.identity)
        return {
            "role": role.value if role else None,
            "permissions": permissions_for(role),
        }

    # -- internal helpers, not separately authorized -------------------------

    def asset_exists(self, asset_id: str) -> bool:
        """True if any value is stored at ``asset_id``, valid or not."""
        return self.state.get_state(asset_id) is not None

    def read_asset_internal(self, asset_id: str) -> Asset:
        raw = self.state.get_state(asset_id)
        if raw is None:
            raise NotFoundError(f"the asset {asset_id} does not exist")
        return Asset.from_bytes(raw)

    def _scan(self, keep: Optional[Callable[[Asset], bool]] = None) -> List[Asset]:
        assets: List[Asset] = []
        with self.state.get_state_by_range("", "") as results:
            for _key, raw in results:
                asset = Asset.from_bytes(raw)
                if keep is None or keep(asset):
                    assets.append(asset)
        return assets
