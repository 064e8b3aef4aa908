"""Authentication schemas for token handling."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class TokenData(BaseModel):
    """Data extracted from a platform JWT.

    Attributes:
        user_id: The user's UUID
        organization_id: The active organization's UUID
        workspace_id: The active workspace's UUID
        exp: Token expiration time
        type: Token type (access or refresh)
    """

    user_id: UUID
    organization_id: UUID
    workspace_id: UUID
    exp: datetime
    type: str = "access"


class TokenPair(BaseModel):
    """Access and refresh tokens issued to the client after login."""

    access_token: str
    refresh_token: str
    expires_in: int
