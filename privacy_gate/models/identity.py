"""Identity models — request signals, templated attributes, resolved identity."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from privacy_gate.constants import (
    COOKIE_PUB_USER_ID,
    HEADER_ACCEPT_LANGUAGE,
    HEADER_HOST,
    HEADER_USER_AGENT,
    HEADER_X_PUB_USER_ID,
)


class RequestSignals(BaseModel):
    """
    The request values the core reads: a named-cookie lookup, a named-header
    lookup and the client address. Built by the HTTP layer; never persisted.
    """

    headers: Dict[str, str] = {}
    cookies: Dict[str, str] = {}
    client_ip: Optional[str] = None

    @field_validator("headers")
    @classmethod
    def _lowercase_header_names(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {k.lower(): v for k, v in value.items()}

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name)


ATTRIBUTE_DEFAULTS: Dict[str, str] = {
    "client_ip": "unknown",
    "user_agent": "unknown",
    "first_party_id": "anonymous",
    "auth_user_id": "anonymous",
    "publisher_domain": "unknown.com",
    "accept_language": "unknown",
}


class IdentityAttributes(BaseModel):
    """
    The fixed record of request attributes a synthetic id template may reference.
    Each field falls back to its own default when the request does not carry it.
    """

    model_config = ConfigDict(frozen=True)

    client_ip: str = ATTRIBUTE_DEFAULTS["client_ip"]
    user_agent: str = ATTRIBUTE_DEFAULTS["user_agent"]
    first_party_id: str = ATTRIBUTE_DEFAULTS["first_party_id"]
    auth_user_id: str = ATTRIBUTE_DEFAULTS["auth_user_id"]
    publisher_domain: str = ATTRIBUTE_DEFAULTS["publisher_domain"]
    accept_language: str = ATTRIBUTE_DEFAULTS["accept_language"]

    @field_validator("*", mode="before")
    @classmethod
    def _default_when_missing(cls, value, info):
        if value is None:
            return ATTRIBUTE_DEFAULTS[info.field_name]
        return value

    @classmethod
    def from_signals(cls, signals: RequestSignals) -> "IdentityAttributes":
        """Extract the templated attributes from request signals."""
        accept_language = signals.header(HEADER_ACCEPT_LANGUAGE)
        if accept_language is not None:
            accept_language = accept_language.split(",")[0]

        return cls(
            client_ip=signals.client_ip,
            user_agent=signals.header(HEADER_USER_AGENT),
            first_party_id=signals.cookie(COOKIE_PUB_USER_ID),
            auth_user_id=signals.header(HEADER_X_PUB_USER_ID),
            publisher_domain=signals.header(HEADER_HOST),
            accept_language=accept_language,
        )


class IdentityProvenance(str, Enum):
    """Where a resolved synthetic id came from."""
    FROM_HEADER = "from_header"
    FROM_COOKIE = "from_cookie"
    GENERATED = "generated"


class SyntheticIdentity(BaseModel):
    """A resolved synthetic id and its provenance (observability only)."""

    model_config = ConfigDict(frozen=True)

    value: str
    provenance: IdentityProvenance
