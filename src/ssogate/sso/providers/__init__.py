"""Built-in identity providers."""

from fastapi import FastAPI

from ssogate.sso.base import SSOProvider
from ssogate.sso.providers.auth0 import Auth0Config, Auth0SSO, auth0_config_from_settings
from ssogate.sso.providers.google import GoogleConfig, GoogleSSO, google_config_from_settings
from ssogate.sso.registry import ProviderRegistry


PROVIDER_CLASSES: dict[str, type[SSOProvider]] = {
    Auth0SSO.key: Auth0SSO,
    GoogleSSO.key: GoogleSSO,
}


def install_providers(
    app: FastAPI, registry: ProviderRegistry | None = None
) -> dict[str, SSOProvider]:
    """Create every built-in provider, activate the configured ones and mount routes.

    Providers without credentials in settings still get routes; those
    routes answer 400 until the provider is configured.
    """
    configs = {
        Auth0SSO.key: auth0_config_from_settings(),
        GoogleSSO.key: google_config_from_settings(),
    }
    providers: dict[str, SSOProvider] = {}
    for key, provider_class in PROVIDER_CLASSES.items():
        provider = provider_class(registry=registry)
        provider.configure(configs[key])
        provider.initialize(app)
        providers[key] = provider

    app.state.sso_providers = providers
    return providers


__all__ = [
    "PROVIDER_CLASSES",
    "Auth0Config",
    "Auth0SSO",
    "GoogleConfig",
    "GoogleSSO",
    "install_providers",
]
