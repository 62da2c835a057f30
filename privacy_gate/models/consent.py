"""Consent models — decoder output, IAB purpose groupings, graduated consent levels."""

from enum import Enum
from typing import FrozenSet, Tuple

from pydantic import BaseModel, ConfigDict


class RawTcModel(BaseModel):
    """
    What a TCF v2 decoder yields for a consent string: the purpose ids and the
    vendor ids the user consented to. Decoding itself is done by the caller's
    decoder; the core only reads these two sets.
    """

    model_config = ConfigDict(frozen=True)

    purposes_consent: FrozenSet[int] = frozenset()
    vendors_consent: FrozenSet[int] = frozenset()


class PurposeGroup(Enum):
    """IAB TCF v2 purpose ids grouped by the features they gate."""

    DEVICE_ACCESS = (1,)        # Store and/or access information on a device
    ADVERTISING = (2, 3, 4)     # Basic ads, personalised ads profile, personalised ads
    ANALYTICS = (7, 8, 9)       # Ad performance, content performance, market research
    BASIC_ADS = (2,)            # Select basic ads only

    @property
    def purpose_ids(self) -> Tuple[int, ...]:
        return self.value


class AdvertisingConsentLevel(str, Enum):
    """Graduated advertising consent, most to least permissive."""
    PERSONALIZED = "personalized"
    BASIC_ONLY = "basic_only"
    NONE = "none"

    @property
    def privilege(self) -> int:
        return _PRIVILEGE[self]

    def at_least(self, other: "AdvertisingConsentLevel") -> bool:
        """True if this level grants everything ``other`` grants."""
        return self.privilege >= other.privilege


_PRIVILEGE = {
    AdvertisingConsentLevel.PERSONALIZED: 2,
    AdvertisingConsentLevel.BASIC_ONLY: 1,
    AdvertisingConsentLevel.NONE: 0,
}
