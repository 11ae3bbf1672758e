"""Deployment CLI commands.

This module provides CLI commands for whole deployments:
- create: Create a deployment from a JSON request or from sizing flags
- update: Update a deployment from a JSON request
- delete: Delete a deployment
- show: Show a deployment or one of its resources
- resync: Resynchronise one or every deployment
"""

import sys
from pathlib import Path
from typing import Optional

import typer

from deployctl.cli.common import make_tracker, run_command
from deployctl.deployment import deployments
from deployctl.deployment.payload import DeploymentSpec, StatelessSizing, build_deployment
from deployctl.deployment.topology import parse_topology
from deployctl.models import DeploymentCreateRequest, DeploymentUpdateRequest

deployment_app = typer.Typer(help="Manage deployments")


@deployment_app.command("create")
def create(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="JSON create request"),
    name: str = typer.Option("", "--name", help="Deployment name"),
    version: str = typer.Option("", "--version", help="Stack version, latest when omitted"),
    region: str = typer.Option("", "--region", help="Region, DEPLOYCTL_REGION when omitted"),
    template: str = typer.Option("", "--deployment-template", help="Deployment template ID"),
    es_ref_id: str = typer.Option("", "--es-ref-id", help="Elasticsearch ref ID"),
    es_size: int = typer.Option(0, "--es-size", help="Elasticsearch memory size in MB"),
    es_zones: int = typer.Option(0, "--es-zones", help="Elasticsearch zone count"),
    topology: Optional[list[str]] = typer.Option(
        None, "--topology-element", "-e", help='Topology element, e.g. \'{"name":"data","size":1024}\''
    ),
    kibana_ref_id: str = typer.Option("", "--kibana-ref-id", help="Kibana ref ID"),
    kibana_size: int = typer.Option(0, "--kibana-size", help="Kibana memory size in MB"),
    kibana_zones: int = typer.Option(0, "--kibana-zones", help="Kibana zone count"),
    apm: bool = typer.Option(False, "--apm", help="Add an APM resource"),
    apm_ref_id: str = typer.Option("", "--apm-ref-id", help="APM ref ID"),
    apm_size: int = typer.Option(0, "--apm-size", help="APM memory size in MB"),
    apm_zones: int = typer.Option(0, "--apm-zones", help="APM zone count"),
    appsearch: bool = typer.Option(False, "--appsearch", help="Add an App Search resource"),
    appsearch_ref_id: str = typer.Option("", "--appsearch-ref-id", help="App Search ref ID"),
    appsearch_size: int = typer.Option(0, "--appsearch-size", help="App Search memory size in MB"),
    appsearch_zones: int = typer.Option(0, "--appsearch-zones", help="App Search zone count"),
    request_id: str = typer.Option("", "--request-id", help="Idempotency token for retried creates"),
    track: bool = typer.Option(False, "--track", "-t", help="Track the creation progress"),
) -> None:
    """Create a deployment."""

    async def _create(client, settings):
        if file is not None:
            request = DeploymentCreateRequest.model_validate_json(file.read_text())
            overrides = deployments.CreateOverrides(name=name, region=region, version=version)
        else:
            spec = DeploymentSpec(
                region=region or settings.region,
                name=name,
                version=version,
                template_id=template,
                elasticsearch_ref_id=es_ref_id,
                elasticsearch_size=es_size,
                elasticsearch_zone_count=es_zones,
                topology=parse_topology(topology or []),
                kibana=StatelessSizing(kibana_ref_id, kibana_size, kibana_zones),
                apm=StatelessSizing(apm_ref_id, apm_size, apm_zones) if apm else None,
                appsearch=(
                    StatelessSizing(appsearch_ref_id, appsearch_size, appsearch_zones)
                    if appsearch
                    else None
                ),
            )
            request = await build_deployment(client, spec, sys.stdout)
            overrides = None

        return await deployments.create(
            client,
            request,
            request_id=request_id,
            overrides=overrides,
            tracker=make_tracker(client, settings, track),
        )

    run_command(_create)


@deployment_app.command("update")
def update(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
    file: Path = typer.Option(..., "--file", "-f", help="JSON update request"),
    skip_snapshot: bool = typer.Option(False, "--skip-snapshot", help="Skip the snapshot before shutting down orphans"),
    hide_pruned_orphans: bool = typer.Option(False, "--hide-pruned-orphans", help="Hide pruned resources"),
    region: str = typer.Option("", "--region", help="Region of resources without one"),
    track: bool = typer.Option(False, "--track", "-t", help="Track the update progress"),
) -> None:
    """Update a deployment. Resources absent from the request are kept unless it prunes orphans."""

    async def _update(client, settings):
        request = DeploymentUpdateRequest.model_validate_json(file.read_text())
        return await deployments.update(
            client,
            deployment_id,
            request,
            skip_snapshot=skip_snapshot,
            hide_pruned_orphans=hide_pruned_orphans,
            region=region,
            tracker=make_tracker(client, settings, track),
        )

    run_command(_update)


@deployment_app.command("delete")
def delete(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
) -> None:
    """Delete a deployment. Every resource must be shut down first."""

    async def _delete(client, settings):
        return await deployments.delete(client, deployment_id)

    run_command(_delete)


@deployment_app.command("show")
def show(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
    kind: str = typer.Option("", "--kind", "-k", help="Show one resource of this kind"),
    ref_id: str = typer.Option("", "--ref-id", help="Resource ref ID, last of its kind when omitted"),
    plans: bool = typer.Option(True, "--plans/--no-plans", help="Include plans"),
    plan_logs: bool = typer.Option(False, "--plan-logs", help="Include plan logs"),
    plan_defaults: bool = typer.Option(False, "--plan-defaults", help="Include plan defaults"),
    metadata: bool = typer.Option(False, "--metadata", help="Include metadata"),
    settings_flag: bool = typer.Option(False, "--settings", help="Include settings"),
) -> None:
    """Show a deployment or one of its resources."""
    flags = {
        "show_plans": plans,
        "show_plan_logs": plan_logs,
        "show_plan_defaults": plan_defaults,
        "show_metadata": metadata,
        "show_settings": settings_flag,
    }

    async def _show(client, settings):
        if kind:
            return await deployments.get_resource(client, deployment_id, kind, ref_id, **flags)
        return await deployments.get(client, deployment_id, **flags)

    run_command(_show)


@deployment_app.command("resync")
def resync(
    deployment_id: str = typer.Argument("", help="Deployment ID"),
    all_deployments: bool = typer.Option(False, "--all", help="Resynchronise every deployment"),
) -> None:
    """Resynchronise the search index and cache of deployments."""

    async def _resync(client, settings):
        if all_deployments:
            return await deployments.resync_all(client)
        return await deployments.resync(client, deployment_id)

    run_command(_resync)
