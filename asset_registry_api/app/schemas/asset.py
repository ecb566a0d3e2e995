"""
Pydantic models for asset data.

``Asset`` is both the stored record and the API response.  Its wire
names (``ID``, ``owner``, ``value``, ``createdBy``) are the JSON keys
written to the world state, so the model is populated by alias and
dumped by alias.  Decoding is strict: unknown keys, missing keys or a
non‑integer value mean the stored record is corrupt.

``AssetCreate`` and ``AssetUpdate`` are request bodies.  Neither
accepts ``createdBy``; the registry fills it from the caller's
identity.
"""

from pydantic import BaseModel, Field, ValidationError

from ..core.errors import SerializationError


class Asset(BaseModel):
    """An asset as stored in the world state."""

    id: str = Field(..., alias="ID", example="asset1")
    owner: str = Field(..., example="x509::CN=user1::CN=ca.org1")
    value: int = Field(..., example=100)
    created_by: str = Field(..., alias="createdBy", example="x509::CN=admin::CN=ca.org1")

    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
        "strict": True,
        "frozen": True,
    }

    def to_bytes(self) -> bytes:
        """Encode the asset as it is written to the world state."""
        try:
            return self.model_dump_json(by_alias=True).encode("utf-8")
        except (ValueError, TypeError) as exc:
            raise SerializationError(f"failed to encode asset {self.id}: {exc}") from exc

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Asset":
        """Decode a stored record, raising ``SerializationError`` when corrupt."""
        try:
            return cls.model_validate_json(raw)
        except (ValidationError, ValueError) as exc:
            raise SerializationError(f"failed to decode asset: {exc}") from exc


class AssetCreate(BaseModel):
    """Schema for creating an asset."""

    id: str = Field(..., min_length=1, example="asset1")
    owner: str = Field(..., min_length=1, example="x509::CN=user1::CN=ca.org1")
    value: int = Field(..., example=100)

    model_config = {"extra": "forbid"}


class AssetUpdate(BaseModel):
    """Schema for updating an asset.  Only the value may change."""

    value: int = Field(..., example=250)

    model_config = {"extra": "forbid"}


class AssetAck(BaseModel):
    """Acknowledgement returned by write endpoints."""

    message: str
    asset_id: str = Field(..., alias="assetId")

    model_config = {"populate_by_name": True}
