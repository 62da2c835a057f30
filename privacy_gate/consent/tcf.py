"""
TCF Consent — the per-request, queryable consent model.

Behavioral Contract:
- Built fresh for every request from decoder output, or as the default
- Anything absent from the consent maps is treated as denied
- has_consent is a strict conjunction: vendor consent AND every purpose consent
- When a vendor list snapshot is supplied, unknown vendors and undeclared
  purposes are denied regardless of the bits in the consent string
- Never cached, never shared across requests
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, Field

from privacy_gate.constants import TCF_VERSION
from privacy_gate.models.consent import AdvertisingConsentLevel, PurposeGroup, RawTcModel
from privacy_gate.models.vendor_list import VendorList

logger = structlog.get_logger(__name__)

Purposes = Union[PurposeGroup, Iterable[int]]


def purpose_ids_of(purposes: Purposes) -> Tuple[int, ...]:
    if isinstance(purposes, PurposeGroup):
        return purposes.purpose_ids
    return tuple(purposes)


class TcfConsent(BaseModel):
    """CMP-agnostic TCF v2 consent for one request."""

    tc_string: str = ""                        # Carried through unparsed for forwarding
    gdpr_applies: bool = False
    purpose_consents: Dict[int, bool] = {}     # Purpose ID -> consent
    vendor_consents: Dict[int, bool] = {}      # Vendor ID -> consent
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = TCF_VERSION

    @classmethod
    def default(cls) -> "TcfConsent":
        """Fully denied consent; used whenever no usable consent string exists."""
        return cls()

    @classmethod
    def from_raw_model(cls, raw: RawTcModel, tc_string: str) -> "TcfConsent":
        """Build consent from decoder output. Every listed id maps to True."""
        purpose_consents = {purpose_id: True for purpose_id in raw.purposes_consent}
        vendor_consents = {vendor_id: True for vendor_id in raw.vendors_consent}

        # GDPR applicability is inferred from the presence of a consent string,
        # not from the string's own gdprApplies field.
        gdpr_applies = bool(tc_string)

        logger.info(
            "tcf_consent_parsed",
            purposes=len(purpose_consents),
            vendors=len(vendor_consents),
            gdpr_applies=gdpr_applies,
        )

        return cls(
            tc_string=tc_string,
            gdpr_applies=gdpr_applies,
            purpose_consents=purpose_consents,
            vendor_consents=vendor_consents,
        )

    def has_purpose_consent(self, purposes: Purposes) -> bool:
        """True only if every purpose has consent. Ignores vendor consent."""
        return all(self.purpose_consents.get(p, False) for p in purpose_ids_of(purposes))

    def has_consent(
        self,
        vendor_id: int,
        purposes: Purposes,
        vendor_list: Optional[VendorList] = None,
    ) -> bool:
        """
        Check whether a vendor has consent for ALL of the given purposes.

        Returns True only if the vendor consent is set and every purpose
        consent is set. With a vendor list, the vendor must also be listed and
        declare every purpose (by consent or legitimate interest).
        """
        purpose_ids = purpose_ids_of(purposes)

        if vendor_list is not None:
            if not vendor_list.is_valid_vendor(vendor_id):
                logger.warning("vendor_not_in_gvl", vendor_id=vendor_id)
                return False

            for purpose_id in purpose_ids:
                if not vendor_list.vendor_declares_purpose(vendor_id, purpose_id):
                    logger.warning(
                        "vendor_purpose_not_declared",
                        vendor_id=vendor_id,
                        purpose_id=purpose_id,
                    )
                    return False

        if not self.vendor_consents.get(vendor_id, False):
            logger.debug("vendor_consent_denied", vendor_id=vendor_id)
            return False

        for purpose_id in purpose_ids:
            if not self.purpose_consents.get(purpose_id, False):
                logger.debug(
                    "purpose_consent_denied",
                    vendor_id=vendor_id,
                    purpose_id=purpose_id,
                )
                return False

        logger.debug("consent_granted", vendor_id=vendor_id, purposes=list(purpose_ids))
        return True

    def has_basic_advertising_consent(
        self, vendor_id: int, vendor_list: Optional[VendorList] = None
    ) -> bool:
        return self.has_consent(vendor_id, PurposeGroup.BASIC_ADS, vendor_list)

    def has_personalized_advertising_consent(
        self, vendor_id: int, vendor_list: Optional[VendorList] = None
    ) -> bool:
        return self.has_consent(vendor_id, PurposeGroup.ADVERTISING, vendor_list)

    def has_analytics_consent(
        self, vendor_id: int, vendor_list: Optional[VendorList] = None
    ) -> bool:
        return self.has_consent(vendor_id, PurposeGroup.ANALYTICS, vendor_list)

    def has_functional_consent(
        self, vendor_id: int, vendor_list: Optional[VendorList] = None
    ) -> bool:
        return self.has_consent(vendor_id, PurposeGroup.DEVICE_ACCESS, vendor_list)

    def get_advertising_consent_level(
        self, vendor_id: int, vendor_list: Optional[VendorList] = None
    ) -> AdvertisingConsentLevel:
        """
        Graduated advertising consent for a vendor.

        Personalized is checked first: the two checks are independent, and
        basic-ads consent also holds whenever personalized consent does.
        """
        if self.has_personalized_advertising_consent(vendor_id, vendor_list):
            return AdvertisingConsentLevel.PERSONALIZED
        if self.has_basic_advertising_consent(vendor_id, vendor_list):
            return AdvertisingConsentLevel.BASIC_ONLY
        return AdvertisingConsentLevel.NONE

    def get_purpose_advertising_level(self) -> AdvertisingConsentLevel:
        """Advertising consent level from purpose bits alone (no vendor)."""
        if self.has_purpose_consent(PurposeGroup.ADVERTISING):
            return AdvertisingConsentLevel.PERSONALIZED
        if self.has_purpose_consent(PurposeGroup.BASIC_ADS):
            return AdvertisingConsentLevel.BASIC_ONLY
        return AdvertisingConsentLevel.NONE
