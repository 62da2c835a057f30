"""Privacy Gate kernel — per-request consent gating and identity resolution."""

from privacy_gate.gate.kernel import PrivacyGate

__all__ = ["PrivacyGate"]
