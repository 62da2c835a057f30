"""
Identity Resolver — synthetic id derivation and resolution.

Resolution precedence (first hit wins):
  1. The propagated identity header set by an upstream hop
  2. The stable synthetic id cookie
  3. A freshly generated id

Generated ids are HMAC-SHA256 over a rendered template of request
attributes: identical (secret, template, attributes) always give the
identical id. No randomness, no clock, no I/O.
"""

import hashlib
import hmac
from typing import Optional

import structlog

from privacy_gate.constants import (
    COOKIE_SYNTHETIC_ID,
    DEFAULT_SYNTHETIC_TEMPLATE,
    HEADER_SYNTHETIC_TRUSTED_SERVER,
)
from privacy_gate.errors import ConfigurationError, SyntheticIdError
from privacy_gate.identity.template import render_template, validate_template
from privacy_gate.models.identity import (
    ATTRIBUTE_DEFAULTS,
    IdentityAttributes,
    IdentityProvenance,
    RequestSignals,
    SyntheticIdentity,
)

logger = structlog.get_logger(__name__)


def generate_synthetic_id(
    secret_key: str,
    template: str,
    attributes: IdentityAttributes,
) -> str:
    """
    Generate a fresh synthetic id from request attributes.

    Raises:
        ConfigurationError: the secret key is empty
        TemplateError: the template is malformed or names an unknown attribute
        SyntheticIdError: the keyed hash could not be computed
    """
    if not secret_key:
        raise ConfigurationError("Synthetic secret key is empty")

    input_string = render_template(template, attributes.model_dump())

    try:
        mac = hmac.new(
            secret_key.encode("utf-8"),
            input_string.encode("utf-8"),
            hashlib.sha256,
        )
    except UnicodeEncodeError as e:
        raise SyntheticIdError(f"Failed to encode synthetic id input: {e}") from e

    return mac.hexdigest()


class IdentityResolver:
    """Resolves the stable synthetic id for a request, minting one if needed."""

    def __init__(
        self,
        secret_key: str,
        template: str = DEFAULT_SYNTHETIC_TEMPLATE,
        header_name: str = HEADER_SYNTHETIC_TRUSTED_SERVER,
        cookie_name: str = COOKIE_SYNTHETIC_ID,
    ):
        if not secret_key:
            raise ConfigurationError("Synthetic secret key is empty")
        validate_template(template, ATTRIBUTE_DEFAULTS)

        self._secret_key = secret_key
        self.template = template
        self.header_name = header_name
        self.cookie_name = cookie_name

    def __repr__(self) -> str:
        return f"IdentityResolver(template={self.template!r})"

    @classmethod
    def from_settings(cls, settings) -> "IdentityResolver":
        return cls(
            secret_key=settings.synthetic.secret_key.get_secret_value(),
            template=settings.synthetic.template,
        )

    def fresh_id(self, attributes: IdentityAttributes) -> str:
        """Always compute a new id from the current attributes. Never sticky."""
        fresh_id = generate_synthetic_id(self._secret_key, self.template, attributes)
        logger.debug("synthetic_id_generated", synthetic_id=fresh_id)
        return fresh_id

    def resolve(
        self,
        signals: RequestSignals,
        attributes: Optional[IdentityAttributes] = None,
    ) -> SyntheticIdentity:
        """
        Resolve the stable synthetic id: header, then cookie, then generate.

        ``attributes`` defaults to those extracted from ``signals``.
        """
        from_header = signals.header(self.header_name)
        if from_header:
            logger.info("synthetic_id_from_header", synthetic_id=from_header)
            return SyntheticIdentity(
                value=from_header, provenance=IdentityProvenance.FROM_HEADER
            )

        from_cookie = signals.cookie(self.cookie_name)
        if from_cookie:
            logger.info("synthetic_id_from_cookie", synthetic_id=from_cookie)
            return SyntheticIdentity(
                value=from_cookie, provenance=IdentityProvenance.FROM_COOKIE
            )

        if attributes is None:
            attributes = IdentityAttributes.from_signals(signals)
        fresh_id = self.fresh_id(attributes)
        logger.info("synthetic_id_generated_for_request", synthetic_id=fresh_id)
        return SyntheticIdentity(value=fresh_id, provenance=IdentityProvenance.GENERATED)
