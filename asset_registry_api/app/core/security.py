"""
Caller identity and role‑based access control.

The hosting platform authenticates callers; the registry only
consumes the result through ``ClientIdentity``: an identifier and a
set of named attributes, one of which carries the caller's role.
``InvocationContext`` bundles that identity with the world state of
the current invocation.

Roles form a closed enumeration.  Attribute values outside
``admin``/``auditor``/``user`` become ``Role.UNKNOWN`` so that every
policy decision below is made over the full set of variants.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from fastapi import Header

from .config import settings
from .errors import AuthorizationError, IdentityError
from .world_state import WorldState

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "admin"
    AUDITOR = "auditor"
    USER = "user"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Map a raw attribute value to a role; anything unrecognised is UNKNOWN."""
        if value in (cls.ADMIN.value, cls.AUDITOR.value, cls.USER.value):
            return cls(value)
        return cls.UNKNOWN


class ClientIdentity(ABC):
    """Interface to the authenticated caller of an invocation."""

    @abstractmethod
    def get_id(self) -> str:
        """Return the caller's identifier or raise ``IdentityError``."""

    @abstractmethod
    def get_attribute_value(self, name: str) -> Tuple[Optional[str], bool]:
        """Return ``(value, found)`` for the named attribute.

        Raises ``IdentityError`` when the attributes cannot be read at
        all; a merely absent attribute is ``(None, False)``.
        """


@dataclass
class StaticIdentity(ClientIdentity):
    """Identity whose id and attributes were resolved upstream.

    Used by the HTTP gateway, which receives them from the
    authenticating proxy, and by tests.  A ``client_id`` of ``None``
    means the caller could not be identified.
    """

    client_id: Optional[str]
    attributes: Dict[str, str] = field(default_factory=dict)

    def get_id(self) -> str:
        if not self.client_id:
            raise IdentityError("failed to get client identity: caller is not identified")
        return self.client_id

    def get_attribute_value(self, name: str) -> Tuple[Optional[str], bool]:
        if name in self.attributes:
            return self.attributes[name], True
        return None, False


@dataclass
class InvocationContext:
    """Everything a single registry invocation may touch."""

    identity: ClientIdentity
    state: WorldState


def resolve_role(identity: ClientIdentity) -> Optional[Role]:
    """Return the caller's role, or ``None`` when the attribute is missing."""
    value, found = identity.get_attribute_value(settings.role_attribute)
    if not found:
        return None
    return Role.parse(value)


# ---------------------------------------------------------------------------
# Per-operation policy
# ---------------------------------------------------------------------------

def _require(identity: ClientIdentity, required: Role, message: str) -> Role:
    role = resolve_role(identity)
    if role is not required:
        logger.warning("Denied: %s (role=%s)", message, role.value if role else "<missing>")
        raise AuthorizationError(message)
    return role


def authorize_create(identity: ClientIdentity) -> Role:
    return _require(identity, Role.ADMIN, "only admin can create assets")


def authorize_update(identity: ClientIdentity) -> Role:
    return _require(identity, Role.ADMIN, "only admin can update assets")


def authorize_delete(identity: ClientIdentity) -> Role:
    return _require(identity, Role.ADMIN, "only admin can delete assets")


def authorize_list_all(identity: ClientIdentity) -> Role:
    return _require(identity, Role.AUDITOR, "only auditors can view all assets")


def authorize_read_role(identity: ClientIdentity) -> Role:
    """First half of the read policy: the role attribute must be present."""
    role = resolve_role(identity)
    if role is None:
        logger.warning("Denied: read without role attribute")
        raise AuthorizationError("role attribute not found")
    return role


def authorize_read_owner(identity: ClientIdentity, role: Role, owner: str) -> None:
    """Second half of the read policy, applied once the asset is loaded.

    Auditors may read any asset.  Every other role, admin included,
    may only read assets it owns.
    """
    if role is Role.AUDITOR:
        return
    if identity.get_id() != owner:
        logger.warning("Denied: %s read of an asset owned by someone else", role.value)
        raise AuthorizationError("access denied: you can only view your own assets")


def permissions_for(role: Optional[Role]) -> Dict[str, bool]:
    """Which operations the policy admits for ``role``."""
    return {
        "createAsset": role is Role.ADMIN,
        "updateAsset": role is Role.ADMIN,
        "deleteAsset": role is Role.ADMIN,
        "viewAllAssets": role is Role.AUDITOR,
        "viewOwnAssets": role is not None,
    }


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------

def get_client_identity(
    x_client_id: Optional[str] = Header(None, description="Caller identity set by the authenticating proxy"),
    x_client_role: Optional[str] = Header(None, description="Caller role attribute set by the authenticating proxy"),
) -> ClientIdentity:
    """Build the caller identity from headers set upstream.

    The gateway does not authenticate anyone itself.  A missing
    ``X-Client-Id`` surfaces as ``IdentityError`` as soon as an
    operation needs the identifier; a missing ``X-Client-Role`` is a
    missing role attribute.
    """
    attributes: Dict[str, str] = {}
    if x_client_role is not None:
        attributes[settings.role_attribute] = x_client_role
    return StaticIdentity(client_id=x_client_id, attributes=attributes)
