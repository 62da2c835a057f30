"""Consent Evaluator — TCF v2 consent modeling and vendor/purpose checks."""

from privacy_gate.consent.extraction import TcfDecoder, get_tcf_consent, parse_tcf_consent
from privacy_gate.consent.tcf import TcfConsent

__all__ = [
    "TcfConsent",
    "TcfDecoder",
    "get_tcf_consent",
    "parse_tcf_consent",
]
