"""Default permission sets for the reserved roles."""

from ssogate.modules.roles.models import GeneralRole


MEMBER_PERMISSIONS: list[str] = [
    "workspace:view",
    "chatflows:view",
    "chatflows:create",
    "chatflows:update",
    "credentials:view",
    "documentStores:view",
]

OWNER_PERMISSIONS: list[str] = [
    *MEMBER_PERMISSIONS,
    "workspace:create",
    "workspace:update",
    "workspace:delete",
    "workspace:add-user",
    "workspace:unlink-user",
    "roles:manage",
    "users:manage",
    "sso:manage",
    "logs:view",
]

DEFAULT_ROLES: dict[GeneralRole, tuple[str, list[str]]] = {
    GeneralRole.OWNER: ("Organization owner with full access", OWNER_PERMISSIONS),
    GeneralRole.MEMBER: ("Workspace member", MEMBER_PERMISSIONS),
}
