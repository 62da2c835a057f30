"""Identity Resolver — synthetic id derivation and resolution."""

from privacy_gate.identity.resolver import IdentityResolver, generate_synthetic_id
from privacy_gate.identity.template import render_template, validate_template

__all__ = [
    "IdentityResolver",
    "generate_synthetic_id",
    "render_template",
    "validate_template",
]
