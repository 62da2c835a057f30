"""Conventional header, cookie and placeholder names shared across layers."""

# Headers (lower-case, as exposed by ASGI)
HEADER_SYNTHETIC_FRESH = "x-synthetic-fresh"
HEADER_SYNTHETIC_TRUSTED_SERVER = "x-synthetic-trusted-server"
HEADER_X_PUB_USER_ID = "x-pub-user-id"
HEADER_X_CONSENT_ADVERTISING = "x-consent-advertising"
HEADER_USER_AGENT = "user-agent"
HEADER_HOST = "host"
HEADER_ACCEPT_LANGUAGE = "accept-language"

# Cookies
COOKIE_TCF_CONSENT = "euconsent-v2"
COOKIE_SYNTHETIC_ID = "synthetic_id"
COOKIE_PUB_USER_ID = "pub_userid"
COOKIE_MAX_AGE = 365 * 24 * 60 * 60  # 1 year

# Used in place of the synthetic id when consent is denied
NON_PERSONALIZED_ID = "non-personalized"

TCF_VERSION = "2"

DEFAULT_SYNTHETIC_TEMPLATE = (
    "{{client_ip}}:{{user_agent}}:{{first_party_id}}:"
    "{{auth_user_id}}:{{publisher_domain}}:{{accept_language}}"
)
INSECURE_SECRET_KEY = "secret-key"
