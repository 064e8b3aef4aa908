"""Operator CLI: platform checks, seeding and provider credential tests."""

import asyncio
import json

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ssogate import __version__
from ssogate.config import settings
from ssogate.core.constants import PlatformMode
from ssogate.core.database import unit_of_work
from ssogate.core.errors import PlatformMisconfiguredError
from ssogate.modules.accounts.invariants import verify_platform_invariants
from ssogate.modules.accounts.seeding import create_tables, seed_roles, seed_tenant
from ssogate.sso.providers import PROVIDER_CLASSES
from ssogate.sso.providers.auth0 import auth0_config_from_settings
from ssogate.sso.providers.google import google_config_from_settings
from ssogate.sso.registry import ProviderRegistry


console = Console()

app = typer.Typer(
    name="ssogate",
    help="Operate the SSO gateway.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_SETTINGS_CONFIGS = {
    "auth0": auth0_config_from_settings,
    "google": google_config_from_settings,
}


async def run_check(
    mode: PlatformMode,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> list[str]:
    async with unit_of_work(session_factory) as session:
        return await verify_platform_invariants(session, mode)


async def run_seed(
    organization: str | None,
    workspace: str,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    with_tables: bool = False,
) -> tuple[list[str], bool]:
    if with_tables:
        await create_tables()
    async with unit_of_work(session_factory) as session:
        roles = await seed_roles(session)
        tenant_created = False
        if organization:
            tenant_created = await seed_tenant(session, organization, workspace) is not None
    return roles, tenant_created


@app.command()
def check(
    mode: PlatformMode | None = typer.Option(
        None, "--mode", "-m", help="Platform mode to check (defaults to PLATFORM_MODE)"
    ),
) -> None:
    """Verify the data the SSO login path relies on."""
    mode = mode or settings.platform_mode
    try:
        warnings = asyncio.run(run_check(mode))
    except PlatformMisconfiguredError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    console.print(f"[green]✓[/green] Platform checks passed ({mode.value})")


@app.command()
def seed(
    organization: str | None = typer.Option(
        None, "--organization", "-o", help="Create the single organization with this name"
    ),
    workspace: str = typer.Option(
        "Default Workspace", "--workspace", "-w", help="Name of the organization's workspace"
    ),
    create: bool = typer.Option(
        False, "--create-tables", help="Create missing tables before seeding"
    ),
) -> None:
    """Create the reserved roles and, optionally, the open source tenant."""
    roles, tenant_created = asyncio.run(run_seed(organization, workspace, with_tables=create))

    if roles:
        console.print(f"[green]✓[/green] Created roles: {', '.join(roles)}")
    else:
        console.print("[dim]Roles already present.[/dim]")

    if organization and tenant_created:
        console.print(
            f"[green]✓[/green] Created organization '{organization}' "
            f"with workspace '{workspace}'"
        )
    elif organization:
        console.print("[yellow]Warning:[/yellow] An organization already exists; skipped.")


@app.command(name="test-setup")
def test_setup(
    provider: str = typer.Argument(..., help="Provider key (auth0, google)"),
    config: str | None = typer.Option(
        None, "--config", "-c", help="Credentials as JSON (defaults to settings)"
    ),
) -> None:
    """Test provider credentials without activating them."""
    provider_class = PROVIDER_CLASSES.get(provider)
    if provider_class is None:
        console.print(
            f"[red]Error:[/red] Unknown provider '{provider}'. "
            f"Choose from: {', '.join(sorted(PROVIDER_CLASSES))}"
        )
        raise typer.Exit(1)

    try:
        candidate = json.loads(config) if config else _SETTINGS_CONFIGS[provider]()
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] --config is not valid JSON: {e.msg}")
        raise typer.Exit(1) from e
    if candidate is None:
        console.print(f"[red]Error:[/red] No {provider} credentials in settings.")
        raise typer.Exit(1)

    sso_provider = provider_class(registry=ProviderRegistry())
    try:
        result = asyncio.run(sso_provider.test_setup(candidate))
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid {provider} configuration")
        console.print(str(e))
        raise typer.Exit(1) from e

    table = Table(title=sso_provider.get_provider_name(), show_header=True)
    table.add_column("Result", style="cyan", no_wrap=True)
    table.add_column("Detail")
    if "error" in result:
        table.add_row("[red]failed[/red]", str(result["error"]))
        console.print(table)
        raise typer.Exit(1)

    table.add_row("[green]ok[/green]", str(result["message"]))
    console.print(table)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """ssogate - federated SSO login for multi-tenant platforms."""
    if version:
        console.print(f"[bold cyan]ssogate[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
