"""Privacy Decision — the outcome of gating one request on consent."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from privacy_gate.models.consent import AdvertisingConsentLevel
from privacy_gate.models.identity import IdentityProvenance


class PrivacyDecision(BaseModel):
    """What a request may do, and which identifier it may use."""

    gdpr_applies: bool
    tc_string: str = ""                              # Forwarded downstream unmodified
    requested_purposes: List[int]
    allowed: bool                                    # Requested purposes granted
    device_access: bool                              # Purpose 1: stable id cookie may be set
    advertising_level: AdvertisingConsentLevel
    synthetic_id: str                                # Stable id, or the placeholder when denied
    provenance: Optional[IdentityProvenance] = None  # None when denied
    fresh_id: Optional[str] = None                   # Recomputed every request, never sticky
    vendor_id: Optional[int] = None
    vendor_list_version: Optional[int] = None        # None: vendor list validation skipped
    evaluated_at: datetime

    @property
    def personalized(self) -> bool:
        return self.provenance is not None
