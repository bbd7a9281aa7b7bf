"""CLI entry point for capability-policy.

Invoked as::

    capability-policy [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m capability_policy.cli.main

Commands
--------
catalog      List the capability catalog and its loadouts
resolve      Show the loadouts and capabilities a caller would get
check        Authorize a single capability for a caller
policy show  Display a project's stored (or default) policy
policy set   Customize a project's policy toggles
overwrite    Evaluate the write-arbitration rule
"""
from __future__ import annotations

import json
import sys
import uuid
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from capability_policy.access.discovery import DiscoveryFilter, describe_policy
from capability_policy.access.guard import CapabilityGuard, PolicyDependencies, parse_tenant_id
from capability_policy.arbitration.precedence import MetadataRecord, Origin, can_overwrite
from capability_policy.catalog.catalog import CapabilityCatalog
from capability_policy.catalog.loadout import LoadoutID
from capability_policy.config.policy import PolicyUpdate, TenantPolicyConfiguration, apply_update
from capability_policy.config.store import (
    FilesystemPolicyConfigStore,
    InMemoryPolicyConfigStore,
    PolicyConfigStore,
    PolicyStoreError,
)
from capability_policy.errors import CapabilityAccessError
from capability_policy.identity.classification import AGENT_SUBJECT, Claims, classify
from capability_policy.identity.context import RequestContext
from capability_policy.providers import InMemoryResourceProvider, StaticIntegrationOracle

console = Console()

_ROLE_CHOICES = ["unauthenticated", "agent", "user", "data", "admin"]
_LOADOUT_CHOICES = [lo.value for lo in LoadoutID]


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="capability-policy")
def cli() -> None:
    """Per-tenant capability access policy and write arbitration"""


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from capability_policy import __version__

    console.print(f"[bold]capability-policy[/bold] v{__version__}")


# ------------------------------------------------------------------
# catalog
# ------------------------------------------------------------------


@cli.command(name="catalog")
@click.option(
    "--loadout",
    "-l",
    type=click.Choice(_LOADOUT_CHOICES),
    default=None,
    help="Only list capabilities in this loadout.",
)
def catalog_command(loadout: str | None) -> None:
    """List the capability catalog in canonical order."""
    catalog = CapabilityCatalog.default()
    specs = (
        catalog.capabilities_in(LoadoutID(loadout)) if loadout else catalog.all_capabilities()
    )

    table = Table(title="Capability Catalog", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Capability", style="cyan")
    table.add_column("Loadouts")
    table.add_column("Description")

    for spec in specs:
        table.add_row(
            str(catalog.order_of(spec.name) + 1),
            spec.name,
            ", ".join(spec.to_dict()["loadouts"]),  # type: ignore[arg-type]
            spec.description,
        )

    console.print(table)
    console.print(f"\nTotal: {len(specs)} capability(ies)")


# ------------------------------------------------------------------
# Shared caller options
# ------------------------------------------------------------------


def _caller_options(func):  # type: ignore[no-untyped-def]
    func = click.option(
        "--integration-installed",
        is_flag=True,
        default=False,
        help="Treat the data liaison integration as installed.",
    )(func)
    func = click.option(
        "--config-dir",
        type=click.Path(file_okay=False),
        default=None,
        help="Directory of per-project policy JSON files (unconfigured if omitted).",
    )(func)
    func = click.option(
        "--project",
        "-p",
        default=None,
        help="Project ID (a random one is used if omitted).",
    )(func)
    func = click.option(
        "--role",
        "-r",
        type=click.Choice(_ROLE_CHOICES),
        required=True,
        help="Caller role.",
    )(func)
    return func


def _claims_for(role: str, project: str) -> Optional[Claims]:
    if role == "unauthenticated":
        return None
    if role == "agent":
        return Claims(subject=AGENT_SUBJECT, project_id=project)
    return Claims(subject="cli-user", project_id=project, roles=(role,))


def _open_store(config_dir: str | None) -> PolicyConfigStore:
    if config_dir:
        return FilesystemPolicyConfigStore(Path(config_dir))
    return InMemoryPolicyConfigStore()


def _build_deps(
    project: str, config_dir: str | None, integration_installed: bool
) -> PolicyDependencies:
    oracle = StaticIntegrationOracle()
    if integration_installed:
        oracle.install(parse_tenant_id(project))
    return PolicyDependencies(
        resources=InMemoryResourceProvider(),
        config_store=_open_store(config_dir),
        integration_oracle=oracle,
    )


# ------------------------------------------------------------------
# resolve
# ------------------------------------------------------------------


@cli.command(name="resolve")
@_caller_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit JSON.")
def resolve_command(
    role: str,
    project: str | None,
    config_dir: str | None,
    integration_installed: bool,
    as_json: bool,
) -> None:
    """Show the loadouts and capabilities a caller with ROLE would get."""
    project = project or str(uuid.uuid4())
    ctx = RequestContext(claims=_claims_for(role, project))

    try:
        deps = _build_deps(project, config_dir, integration_installed)
        specs = DiscoveryFilter(deps).filter(ctx)
    except CapabilityAccessError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    names = [spec.name for spec in specs]

    if as_json:
        click.echo(json.dumps({"role": role, "project": project, "capabilities": names}))
        return

    console.print(f"[bold]Classification:[/bold] {classify(ctx.claims).value}")
    console.print(f"[bold]Project:[/bold]        {project}")
    console.print(f"[bold]Capabilities ({len(names)}):[/bold]")
    for name in names:
        console.print(f"  {name}")


# ------------------------------------------------------------------
# check
# ------------------------------------------------------------------


@cli.command(name="check")
@click.argument("capability")
@_caller_options
def check_command(
    capability: str,
    role: str,
    project: str | None,
    config_dir: str | None,
    integration_installed: bool,
) -> None:
    """Authorize CAPABILITY for a caller. Exits 1 when denied."""
    project = project or str(uuid.uuid4())
    ctx = RequestContext(claims=_claims_for(role, project))

    try:
        deps = _build_deps(project, config_dir, integration_installed)
        with CapabilityGuard(deps).access(ctx, capability) as grant:
            console.print(
                f"[green]ALLOWED[/green]  {capability} for {grant.classification.value} "
                f"(write origin: {grant.origin.value})"
            )
    except CapabilityAccessError as exc:
        console.print(f"[red]DENIED[/red]   {capability}: {exc.message} ({exc.code})")
        sys.exit(1)


# ------------------------------------------------------------------
# policy command group
# ------------------------------------------------------------------


@cli.group(name="policy")
def policy_group() -> None:
    """Inspect and customize per-project policy."""


def _print_policy(project: str, store: PolicyConfigStore) -> None:
    tenant_id = parse_tenant_id(project)
    stored = store.get(RequestContext(), tenant_id)
    shown = stored if stored is not None else TenantPolicyConfiguration.defaults()

    table = Table(title=f"Policy: {project}", show_header=True)
    table.add_column("Toggle", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("developer.enabled", str(shown.developer.enabled))
    table.add_row("developer.addQueryTools", str(shown.developer.add_query_tools))
    table.add_row("developer.addOntologyMaintenance", str(shown.developer.add_ontology_maintenance))
    table.add_row("user.allowOntologyMaintenance", str(shown.user.allow_ontology_maintenance))
    table.add_row("agentTools.enabled", str(shown.agent_tools.enabled))
    console.print(table)

    if stored is None:
        console.print("  [yellow]Unconfigured[/yellow]: documented defaults apply.")
    elif stored.updated_at is not None:
        console.print(f"  Updated: {stored.updated_at.isoformat()}")

    preview = describe_policy(stored)
    for who, names in preview.items():
        console.print(f"  {who}: {len(names)} capability(ies)")


@policy_group.command(name="show")
@click.option("--project", "-p", required=True, help="Project ID.")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory of per-project policy JSON files.",
)
def policy_show_command(project: str, config_dir: str) -> None:
    """Display the stored (or default) policy for a project."""
    try:
        _print_policy(project, FilesystemPolicyConfigStore(Path(config_dir)))
    except (CapabilityAccessError, PolicyStoreError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


@policy_group.command(name="set")
@click.option("--project", "-p", required=True, help="Project ID.")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory of per-project policy JSON files.",
)
@click.option("--developer/--no-developer", default=None, help="Offer developer core tools.")
@click.option("--query-tools/--no-query-tools", default=None, help="developer.addQueryTools")
@click.option(
    "--developer-maintenance/--no-developer-maintenance",
    default=None,
    help="developer.addOntologyMaintenance",
)
@click.option(
    "--user-maintenance/--no-user-maintenance",
    default=None,
    help="user.allowOntologyMaintenance",
)
@click.option("--agent-tools/--no-agent-tools", default=None, help="agentTools.enabled")
def policy_set_command(
    project: str,
    config_dir: str,
    developer: bool | None,
    query_tools: bool | None,
    developer_maintenance: bool | None,
    user_maintenance: bool | None,
    agent_tools: bool | None,
) -> None:
    """Customize policy toggles; creates the record on first use."""
    update = PolicyUpdate(
        developer_enabled=developer,
        add_query_tools=query_tools,
        add_ontology_maintenance=developer_maintenance,
        allow_ontology_maintenance=user_maintenance,
        agent_tools_enabled=agent_tools,
    )
    if update.is_empty():
        console.print("[yellow]Nothing to update.[/yellow] Pass at least one toggle option.")
        sys.exit(1)

    store = FilesystemPolicyConfigStore(Path(config_dir))
    try:
        tenant_id = parse_tenant_id(project)
        ctx = RequestContext()
        store.save(ctx, tenant_id, apply_update(store.get(ctx, tenant_id), update))
        console.print(f"[green]Updated[/green] policy for project [bold]{project}[/bold]")
        _print_policy(project, store)
    except (CapabilityAccessError, PolicyStoreError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


# ------------------------------------------------------------------
# overwrite
# ------------------------------------------------------------------


@cli.command(name="overwrite")
@click.argument("existing", type=click.Choice(["none", "manual", "automated"]))
@click.argument("actor", type=click.Choice(["manual", "automated"]))
def overwrite_command(existing: str, actor: str) -> None:
    """Decide whether ACTOR may overwrite a value written by EXISTING.

    Exits 1 when the write is blocked.
    """
    record = None if existing == "none" else MetadataRecord(value=None, origin=Origin(existing))
    if can_overwrite(record, Origin(actor)):
        console.print(f"[green]ALLOWED[/green]  {actor} may overwrite {existing}")
        return
    console.print(f"[red]BLOCKED[/red]  precedence: {actor} may not overwrite {existing}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
