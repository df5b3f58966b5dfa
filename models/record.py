"""
Record schemas: product-like entities fetched from either platform.

A record has a strongly typed core (identity, natural key and the
common business fields) plus one open `extensions` map for
platform-specific fields. `raw_payload` keeps the platform response
verbatim for inspection.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

from models.base import WireSchema
from exceptions import ValidationError


class Platform(str, Enum):
    """The two platforms being reconciled."""
    NETSUITE = "netsuite"  # ERP, source side
    SHOPIFY = "shopify"    # storefront, target side


# Fields a staged patch may overwrite directly; anything else is an extension
MUTABLE_FIELDS = frozenset({"natural_key", "name", "price", "quantity", "status"})
IDENTITY_FIELDS = frozenset({"id", "platform", "raw_payload"})


class Record(WireSchema):
    """A product from one platform."""

    id: str = Field(..., min_length=1, description="Platform-local identifier")
    natural_key: Optional[str] = Field(
        None,
        description="Business key used for cross-platform matching (SKU)",
        examples=["SKU-A"]
    )
    platform: Platform = Field(..., description="Originating platform")
    name: Optional[str] = Field(None, description="Product name")
    price: Optional[float] = Field(None, ge=0, description="Unit price")
    quantity: Optional[float] = Field(None, description="Available quantity")
    status: Optional[str] = Field(None, description="Platform status (active, draft, ...)")
    extensions: dict[str, Any] = Field(
        default_factory=dict,
        description="Platform-specific fields outside the typed core"
    )
    raw_payload: Optional[Any] = Field(
        None,
        description="Original platform payload, preserved verbatim"
    )

    @property
    def has_natural_key(self) -> bool:
        """True when the record can take part in automatic pairing."""
        return bool(self.natural_key and self.natural_key.strip())

    def apply(self, changes: dict[str, Any]) -> "Record":
        """
        Return a copy of this record with a partial patch merged in.

        Core fields are overwritten; an `extensions` entry is merged key by
        key; any other key lands in `extensions`.

        Raises:
            ValidationError: If the patch tries to change identity fields or
                carries values the record cannot hold
        """
        forbidden = IDENTITY_FIELDS.intersection(changes)
        if forbidden:
            raise ValidationError(
                message="Pending changes cannot modify record identity",
                code="RECORD_IDENTITY_CHANGE",
                details={"record_id": self.id, "fields": sorted(forbidden)}
            )

        data = self.model_dump(exclude={"raw_payload"})
        extensions = dict(data["extensions"])
        for key, value in changes.items():
            if key in MUTABLE_FIELDS:
                data[key] = value
            elif key == "extensions":
                if value is not None and not isinstance(value, dict):
                    raise ValidationError(
                        message="Pending extensions must be an object",
                        code="RECORD_PATCH_INVALID",
                        details={"record_id": self.id, "fields": ["extensions"]}
                    )
                extensions.update(value or {})
            else:
                extensions[key] = value
        data["extensions"] = extensions
        data["raw_payload"] = self.raw_payload

        try:
            return Record.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                message="Pending changes are not valid for this record",
                code="RECORD_PATCH_INVALID",
                details={
                    "record_id": self.id,
                    "errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]
                }
            ) from e


class StagedRecord(WireSchema):
    """A record with a pending local edit that has not been transmitted yet."""

    record: Record = Field(..., description="Base record as fetched")
    pending_changes: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial patch to apply on transmission"
    )
    staged: bool = True
    staged_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def record_id(self) -> str:
        return self.record.id

    def effective(self) -> Record:
        """Base record with the pending changes merged over it."""
        if not self.pending_changes:
            return self.record
        return self.record.apply(self.pending_changes)
