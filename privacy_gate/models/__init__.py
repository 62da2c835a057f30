"""Privacy Gate data models."""

from privacy_gate.models.consent import AdvertisingConsentLevel, PurposeGroup, RawTcModel
from privacy_gate.models.decision import PrivacyDecision
from privacy_gate.models.identity import (
    ATTRIBUTE_DEFAULTS,
    IdentityAttributes,
    IdentityProvenance,
    RequestSignals,
    SyntheticIdentity,
)
from privacy_gate.models.vendor_list import VendorInfo, VendorList

__all__ = [
    "ATTRIBUTE_DEFAULTS",
    "AdvertisingConsentLevel",
    "IdentityAttributes",
    "IdentityProvenance",
    "PrivacyDecision",
    "PurposeGroup",
    "RawTcModel",
    "RequestSignals",
    "SyntheticIdentity",
    "VendorInfo",
    "VendorList",
]
