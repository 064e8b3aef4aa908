"""Session and provider management endpoints.

Provider-specific login, callback and logout routes are mounted by each
provider's ``initialize``; these routes are shared by all providers.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Body, Request
from pydantic import ValidationError

from ssogate.core.errors import BadRequestError, NotFoundError
from ssogate.sso.base import SSOProvider
from ssogate.sso.dependencies import Establisher, OrganizationAdmin, Registry
from ssogate.sso.schemas import ProviderInfo, ProviderListResponse, PublicSession


logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=PublicSession,
    summary="Current session",
    description="Returns the logged-in session bound to the session cookie.",
)
async def me(request: Request, establisher: Establisher) -> PublicSession:
    """Get the current session."""
    return await establisher.public_session(request)


@router.post(
    "/sso/refresh",
    summary="Refresh provider tokens",
    description="Exchanges the session's provider refresh token and rebinds the session.",
)
async def refresh(
    request: Request, establisher: Establisher, registry: Registry
) -> dict[str, Any]:
    """Refresh the provider tokens held in the session."""
    return await establisher.refresh_provider_tokens(request, registry)


@router.get(
    "/sso/providers",
    response_model=ProviderListResponse,
    summary="List SSO providers",
    description="Returns the currently active SSO providers.",
)
async def list_providers(registry: Registry) -> ProviderListResponse:
    """List active SSO providers."""
    return ProviderListResponse(
        providers=[
            ProviderInfo(
                key=key,
                name=provider.get_provider_name(),
                login_url=f"/api/v1/{key}/login",
            )
            for key, provider in sorted(registry.active().items())
        ]
    )


@router.post(
    "/sso/{provider}/test",
    summary="Test provider credentials",
    description="Checks credentials against the provider without activating them.",
)
async def test_provider(
    provider: str,
    request: Request,
    admin: OrganizationAdmin,
    config: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Run a provider's setup test against submitted credentials.

    Restricted to organization admins.
    """
    providers: dict[str, SSOProvider] = getattr(request.app.state, "sso_providers", {})
    sso_provider = providers.get(provider)
    if sso_provider is None:
        raise NotFoundError(
            f"SSO provider '{provider}' not found",
            resource="sso_provider",
            resource_id=provider,
        )

    try:
        candidate = sso_provider.config_model.model_validate(config)
    except ValidationError as exc:
        raise BadRequestError(
            "Invalid provider configuration",
            error_code="invalid_configuration",
            details={"fields": [".".join(map(str, e["loc"])) for e in exc.errors()]},
        ) from exc

    result = await sso_provider.test_setup(candidate)
    logger.info(
        "sso_setup_tested",
        provider=sso_provider.get_provider_name(),
        user_id=str(admin.id),
        ok="error" not in result,
    )
    return result
