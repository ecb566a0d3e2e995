"""
Error kinds raised by the asset registry.

Every failure of a registry invocation is one of the classes below.
They carry a descriptive message and are surfaced unchanged to the
hosting layer, which maps them to transport status codes.
"""


class AssetRegistryError(Exception):
    """Base class for all registry failures."""

    kind = "registry_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(AssetRegistryError):
    """Missing or insufficient role, or ownership mismatch on read."""

    kind = "authorization_error"


class NotFoundError(AssetRegistryError):
    """The targeted asset does not exist."""

    kind = "not_found"


class ConflictError(AssetRegistryError):
    """Create targeted a key that already holds an asset."""

    kind = "conflict"


class SerializationError(AssetRegistryError):
    """Stored bytes are not a valid asset, or an asset failed to encode."""

    kind = "serialization_error"


class StoreError(AssetRegistryError):
    """The world state failed for reasons unrelated to the asset itself."""

    kind = "store_error"


class IdentityError(AssetRegistryError):
    """The caller's identity or attributes could not be resolved."""

    kind = "identity_error"
