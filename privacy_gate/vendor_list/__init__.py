"""Vendor List Cache — cached IAB Global Vendor List snapshots."""

from privacy_gate.vendor_list.cache import (
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_RETRY_INTERVAL,
    VendorListCache,
    VendorListFetcher,
)

__all__ = [
    "DEFAULT_REFRESH_INTERVAL",
    "DEFAULT_RETRY_INTERVAL",
    "VendorListCache",
    "VendorListFetcher",
]
