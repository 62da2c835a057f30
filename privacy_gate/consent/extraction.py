"""
Consent extraction — from the euconsent-v2 cookie to a TcfConsent.

Works with any CMP that writes the standard IAB TCF v2 cookie. Decoding the
consent string is delegated to a TcfDecoder supplied by the caller.

Behavioral Contract:
- A missing cookie, a missing decoder, or a decode failure never fails the
  request: the result is the fully denied default consent
- Decode failures are logged, never raised
"""

from typing import Optional, Protocol

import structlog

from privacy_gate.constants import COOKIE_TCF_CONSENT
from privacy_gate.consent.tcf import TcfConsent
from privacy_gate.errors import DecodeError
from privacy_gate.models.consent import RawTcModel
from privacy_gate.models.identity import RequestSignals

logger = structlog.get_logger(__name__)


class TcfDecoder(Protocol):
    """Decodes a TCF v2 consent string. Raises DecodeError on invalid input."""

    def decode(self, tc_string: str) -> RawTcModel:
        ...


def parse_tcf_consent(tc_string: str, decoder: Optional[TcfDecoder]) -> Optional[TcfConsent]:
    """
    Decode a consent string into a TcfConsent.

    Returns None if there is nothing usable; callers fall back to
    TcfConsent.default().
    """
    if not tc_string:
        return None

    if decoder is None:
        logger.debug("tcf_decoder_not_configured")
        return None

    try:
        raw = decoder.decode(tc_string)
        return TcfConsent.from_raw_model(raw, tc_string)
    except DecodeError as e:
        logger.warning("tcf_decode_failed", error=str(e))
        return None
    except Exception as e:
        # Third-party decoders raise their own error types or return malformed models
        logger.warning("tcf_decode_failed", error=str(e), error_type=type(e).__name__)
        return None


def get_tcf_consent(signals: RequestSignals, decoder: Optional[TcfDecoder]) -> TcfConsent:
    """Extract consent from a request, defaulting to full denial."""
    tc_string = signals.cookie(COOKIE_TCF_CONSENT)
    if tc_string is None:
        logger.debug("tcf_consent_cookie_missing", cookie=COOKIE_TCF_CONSENT)
        return TcfConsent.default()

    return parse_tcf_consent(tc_string, decoder) or TcfConsent.default()
