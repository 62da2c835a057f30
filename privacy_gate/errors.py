"""
Error taxonomy.

- Consent-source errors (DecodeError) are recovered where consent is extracted
  and never reach the caller.
- Configuration errors are fatal and propagate; an inconsistent identity
  scheme is worse than an outage.
- Vendor list errors are logged by the cache; the previous snapshot keeps serving.
"""


class PrivacyGateError(Exception):
    """Base class for all privacy gate errors."""

    status_code: int = 500


class ConfigurationError(PrivacyGateError):
    """Settings are missing, invalid, or unusable."""

    status_code = 500


class InsecureSecretKeyError(ConfigurationError):
    """The synthetic secret key is set to the insecure placeholder value."""

    def __init__(self, message: str = "Synthetic secret key is set to the default value - this is insecure"):
        super().__init__(message)


class TemplateError(ConfigurationError):
    """The synthetic id template is malformed or references an unknown attribute."""
    pass


class SyntheticIdError(PrivacyGateError):
    """The keyed hash for a synthetic id could not be computed."""

    status_code = 500


class DecodeError(PrivacyGateError):
    """A TCF consent string could not be decoded."""

    status_code = 400


class VendorListError(PrivacyGateError):
    """A Global Vendor List payload could not be parsed."""

    status_code = 503
