"""Platform token issuance and decoding."""

from ssogate.core.auth.backend import (
    create_access_token,
    create_refresh_token,
    decode_token,
    issue_token_pair,
)
from ssogate.core.auth.schemas import TokenData, TokenPair


__all__ = [
    "TokenData",
    "TokenPair",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "issue_token_pair",
]
