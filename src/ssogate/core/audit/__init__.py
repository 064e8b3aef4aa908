"""Login activity audit trail."""

from ssogate.core.audit.models import LoginActivity, LoginActivityCode
from ssogate.core.audit.service import AuditService


__all__ = [
    "AuditService",
    "LoginActivity",
    "LoginActivityCode",
]
