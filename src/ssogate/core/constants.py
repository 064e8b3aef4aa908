"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

from enum import StrEnum


class PlatformMode(StrEnum):
    """Deployment policy governing just-in-time provisioning."""

    ENTERPRISE = "enterprise"
    CLOUD = "cloud"
    OPEN_SOURCE = "open_source"


# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_ROLE_NAME_LENGTH = 100
MAX_EXTERNAL_ID_LENGTH = 255
MAX_ACTIVITY_CODE_LENGTH = 50
MAX_LOGIN_MODE_LENGTH = 100

# Token settings
OAUTH_STATE_TTL_SECONDS = 600  # 10 minutes
ACCESS_TOKEN_JTI_LENGTH = 32
SESSION_ID_BYTES = 32

# Outbound calls to identity providers
DEFAULT_SSO_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_SSO_SCOPE = "openid profile email"

# Audit placeholder when the provider profile carries no email
EMPTY_USERNAME = "<empty>"

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
