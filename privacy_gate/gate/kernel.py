"""
Privacy Gate — gates a request's personalization on TCF consent.

Per request:
  signals → consent (default deny on any problem)
          → allowed? (vendor + purposes, optionally checked against the GVL)
          → stable synthetic id + fresh id, or the non-personalized placeholder

Behavioral Contract:
- Consent-source problems never fail the request; they deny
- Configuration problems (template, secret key) always propagate
- Pure computation per request; the vendor list cache is the only shared state
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from privacy_gate.constants import NON_PERSONALIZED_ID
from privacy_gate.consent.extraction import TcfDecoder, get_tcf_consent
from privacy_gate.consent.tcf import Purposes, TcfConsent, purpose_ids_of
from privacy_gate.identity.resolver import IdentityResolver
from privacy_gate.models.consent import AdvertisingConsentLevel, PurposeGroup
from privacy_gate.models.decision import PrivacyDecision
from privacy_gate.models.identity import IdentityAttributes, IdentityProvenance, RequestSignals
from privacy_gate.models.vendor_list import VendorList
from privacy_gate.vendor_list.cache import VendorListCache

logger = structlog.get_logger(__name__)


class PrivacyGate:
    """
    Evaluates consent and resolves identity for one request at a time.

    With ``vendor_id`` set, consent requires that vendor's consent as well as
    the purposes. Without it, only the purpose bits are checked.
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        decoder: Optional[TcfDecoder] = None,
        vendor_list_cache: Optional[VendorListCache] = None,
        vendor_id: Optional[int] = None,
        validate_with_vendor_list: bool = True,
    ):
        self.resolver = resolver
        self.decoder = decoder
        self.vendor_list_cache = vendor_list_cache
        self.vendor_id = vendor_id
        self.validate_with_vendor_list = validate_with_vendor_list

    @classmethod
    def from_settings(
        cls,
        settings,
        decoder: Optional[TcfDecoder] = None,
        vendor_list_cache: Optional[VendorListCache] = None,
    ) -> "PrivacyGate":
        return cls(
            resolver=IdentityResolver.from_settings(settings),
            decoder=decoder,
            vendor_list_cache=vendor_list_cache,
            vendor_id=settings.consent.vendor_id,
            validate_with_vendor_list=settings.consent.validate_with_vendor_list,
        )

    def consent_for(self, signals: RequestSignals) -> TcfConsent:
        return get_tcf_consent(signals, self.decoder)

    def vendor_list(self, current_time: Optional[datetime] = None) -> Optional[VendorList]:
        """The GVL snapshot to validate against, or None to skip validation."""
        if not self.validate_with_vendor_list or self.vendor_list_cache is None:
            return None
        return self.vendor_list_cache.current(current_time)

    def is_allowed(
        self,
        consent: TcfConsent,
        purposes: Purposes,
        vendor_list: Optional[VendorList] = None,
    ) -> bool:
        if self.vendor_id is None:
            return consent.has_purpose_consent(purposes)
        return consent.has_consent(self.vendor_id, purposes, vendor_list)

    def advertising_level(
        self,
        consent: TcfConsent,
        vendor_list: Optional[VendorList] = None,
    ) -> AdvertisingConsentLevel:
        if self.vendor_id is None:
            return consent.get_purpose_advertising_level()
        return consent.get_advertising_consent_level(self.vendor_id, vendor_list)

    def evaluate(
        self,
        signals: RequestSignals,
        purposes: Purposes = PurposeGroup.DEVICE_ACCESS,
        current_time: Optional[datetime] = None,
    ) -> PrivacyDecision:
        """
        Gate a request on consent for ``purposes``.

        Allowed requests get the stable synthetic id and a fresh id. Denied
        requests get the non-personalized placeholder and no fresh id.
        """
        if current_time is None:
            current_time = datetime.now(timezone.utc)

        purpose_ids = purpose_ids_of(purposes)
        consent = self.consent_for(signals)
        vendor_list = self.vendor_list(current_time)

        allowed = self.is_allowed(consent, purpose_ids, vendor_list)
        device_access = self.is_allowed(consent, PurposeGroup.DEVICE_ACCESS, vendor_list)
        level = self.advertising_level(consent, vendor_list)

        synthetic_id = NON_PERSONALIZED_ID
        provenance: Optional[IdentityProvenance] = None
        fresh_id: Optional[str] = None

        if allowed:
            attributes = IdentityAttributes.from_signals(signals)
            identity = self.resolver.resolve(signals, attributes)
            synthetic_id = identity.value
            provenance = identity.provenance
            if provenance == IdentityProvenance.GENERATED:
                fresh_id = identity.value
            else:
                fresh_id = self.resolver.fresh_id(attributes)
        else:
            logger.info(
                "personalization_denied",
                purposes=list(purpose_ids),
                vendor_id=self.vendor_id,
                gdpr_applies=consent.gdpr_applies,
            )

        return PrivacyDecision(
            gdpr_applies=consent.gdpr_applies,
            tc_string=consent.tc_string,
            requested_purposes=list(purpose_ids),
            allowed=allowed,
            device_access=device_access,
            advertising_level=level,
            synthetic_id=synthetic_id,
            provenance=provenance,
            fresh_id=fresh_id,
            vendor_id=self.vendor_id,
            vendor_list_version=vendor_list.version if vendor_list else None,
            evaluated_at=current_time,
        )
