"""Federated sign-on: providers, identity reconciliation and session binding."""

from ssogate.sso.base import SSOProvider
from ssogate.sso.establisher import SessionEstablisher
from ssogate.sso.reconciler import IdentityReconciler
from ssogate.sso.registry import ProviderRegistry, provider_registry
from ssogate.sso.schemas import (
    ExternalIdentity,
    LoggedInSession,
    LoginFailed,
    LoginResult,
    LoginSucceeded,
    SSOErrorKind,
)


__all__ = [
    "ExternalIdentity",
    "IdentityReconciler",
    "LoggedInSession",
    "LoginFailed",
    "LoginResult",
    "LoginSucceeded",
    "ProviderRegistry",
    "SSOErrorKind",
    "SSOProvider",
    "SessionEstablisher",
    "provider_registry",
]
