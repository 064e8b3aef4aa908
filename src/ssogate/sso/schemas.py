"""SSO data shapes: external identities, logged-in sessions and login results."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field


class SSOErrorKind(StrEnum):
    """Failure categories raised inside the SSO flow."""

    CONFIG_MISSING = "config_missing"
    UNKNOWN_IDENTITY = "unknown_identity"
    USER_NOT_FOUND = "user_not_found"
    ROLE_NOT_FOUND = "role_not_found"
    ORGANIZATION_NOT_FOUND = "organization_not_found"
    WORKSPACE_NOT_FOUND = "workspace_not_found"
    PLATFORM_MISCONFIGURED = "platform_misconfigured"
    SESSION_REGENERATE_FAILED = "session_regenerate_failed"
    SESSION_BIND_FAILED = "session_bind_failed"
    PROVIDER_EXCHANGE_FAILED = "provider_exchange_failed"
    SSO_LOGIN_FAILED = "sso_login_failed"


class ExternalIdentity(BaseModel):
    """An identity verified by an external provider."""

    email: str | None = None
    name: str | None = None
    provider_name: str
    access_token: str | None = None
    refresh_token: str | None = None


class AssignedWorkspace(BaseModel):
    """A workspace the user can switch to."""

    id: UUID
    name: str
    role: str | None = None
    organization_id: UUID


class LoggedInSession(BaseModel):
    """The authenticated principal bound into the HTTP session."""

    id: UUID
    email: str
    name: str
    role_id: UUID
    active_organization_id: UUID
    active_organization_subscription_id: str | None = None
    active_organization_customer_id: str | None = None
    active_organization_product_id: str | None = None
    is_organization_admin: bool = False
    active_workspace_id: UUID
    active_workspace: str
    assigned_workspaces: list[AssignedWorkspace] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    sso_provider: str
    sso_token: str | None = None
    sso_refresh_token: str | None = None


class PublicSession(BaseModel):
    """LoggedInSession as returned to clients, without provider tokens."""

    id: UUID
    email: str
    name: str
    role_id: UUID
    active_organization_id: UUID
    active_organization_product_id: str | None = None
    is_organization_admin: bool
    active_workspace_id: UUID
    active_workspace: str
    assigned_workspaces: list[AssignedWorkspace]
    permissions: list[str]
    features: list[str]
    sso_provider: str


@dataclass(frozen=True)
class LoginSucceeded:
    session: LoggedInSession


@dataclass(frozen=True)
class LoginFailed:
    kind: SSOErrorKind
    message: str


LoginResult = LoginSucceeded | LoginFailed


class ProviderInfo(BaseModel):
    """An active provider as listed to clients."""

    key: str
    name: str
    login_url: str


class ProviderListResponse(BaseModel):
    providers: list[ProviderInfo]
