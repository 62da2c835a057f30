"""
Global Vendor List models.

A VendorList is an immutable snapshot: the cache replaces it wholesale and
never mutates one in place.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from privacy_gate.errors import VendorListError


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class VendorInfo(BaseModel):
    """One vendor entry in the IAB Global Vendor List."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    name: str
    purposes: FrozenSet[int] = frozenset()               # consent legal basis
    legitimate_interests: FrozenSet[int] = frozenset()   # legitimate interest legal basis
    features: FrozenSet[int] = frozenset()
    special_features: FrozenSet[int] = frozenset()

    @property
    def declared_purposes(self) -> FrozenSet[int]:
        return self.purposes | self.legitimate_interests


class VendorList(BaseModel):
    """Snapshot of declared vendor capabilities."""

    model_config = ConfigDict(frozen=True)

    vendors: Dict[int, VendorInfo] = {}
    last_updated: Optional[datetime] = None   # None: never loaded
    version: int = 0

    def is_valid_vendor(self, vendor_id: int) -> bool:
        return vendor_id in self.vendors

    def get_vendor(self, vendor_id: int) -> Optional[VendorInfo]:
        return self.vendors.get(vendor_id)

    def vendor_declares_purpose(self, vendor_id: int, purpose_id: int) -> bool:
        """True if the vendor declares the purpose under consent or legitimate interest."""
        vendor = self.vendors.get(vendor_id)
        if vendor is None:
            return False
        return purpose_id in vendor.declared_purposes

    def is_stale(self, max_age: timedelta, current_time: Optional[datetime] = None) -> bool:
        """A snapshot that was never loaded, or is older than ``max_age``, is stale."""
        if self.last_updated is None:
            return True
        if current_time is None:
            current_time = datetime.now(timezone.utc)
        return as_utc(current_time) - as_utc(self.last_updated) > max_age

    @classmethod
    def from_gvl(cls, payload: dict) -> "VendorList":
        """
        Build a snapshot from an IAB GVL v3 JSON document.

        Raises VendorListError if the document is not a usable vendor list.
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("vendors"), dict):
            raise VendorListError("GVL payload has no 'vendors' object")

        try:
            vendors = {}
            for key, entry in payload["vendors"].items():
                vendor = VendorInfo(
                    id=entry.get("id", key),
                    name=entry.get("name", ""),
                    purposes=entry.get("purposes", []),
                    legitimate_interests=entry.get("legIntPurposes", []),
                    features=entry.get("features", []),
                    special_features=entry.get("specialFeatures", []),
                )
                vendors[vendor.id] = vendor

            return cls(
                vendors=vendors,
                last_updated=payload.get("lastUpdated") or datetime.now(timezone.utc),
                version=payload.get("vendorListVersion", 0),
            )
        except (ValidationError, AttributeError, TypeError) as e:
            raise VendorListError(f"Invalid GVL payload: {e}") from e
