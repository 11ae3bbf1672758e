"""Stateless resource CLI commands."""

import typer

from deployctl.cli.common import run_command
from deployctl.deployment import deployments
from deployctl.deployment.payload import build_stateless
from deployctl.models import DeploymentResources, DeploymentUpdateRequest
from deployctl.types import ResourceKind, SimpleSpec

stateless_app = typer.Typer(help="Manage Kibana, APM and App Search resources")


@stateless_app.command("create")
def create(
    deployment_id: str = typer.Argument(..., help="Deployment ID to attach the resource to"),
    kind: str = typer.Option(..., "--kind", "-k", help="Stateless kind (kibana, apm, appsearch)"),
    ref_id: str = typer.Option("", "--ref-id", help="Ref ID, main-<kind> when omitted"),
    es_ref_id: str = typer.Option("", "--elasticsearch-ref-id", help="Elasticsearch ref ID, discovered when omitted"),
    template: str = typer.Option("", "--deployment-template", help="Deployment template ID, discovered when omitted"),
    version: str = typer.Option("", "--version", help="Version, the Elasticsearch one when omitted"),
    region: str = typer.Option("", "--region", help="Region, DEPLOYCTL_REGION when omitted"),
    name: str = typer.Option("", "--name", help="Display name"),
    size: int = typer.Option(0, "--size", help="Memory size in MB, template default when omitted"),
    zones: int = typer.Option(0, "--zones", help="Zone count, template default when omitted"),
    generate_payload: bool = typer.Option(
        False, "--generate-payload", help="Print the payload instead of sending it"
    ),
) -> None:
    """Add a stateless resource to an existing deployment."""

    async def _create(client, settings):
        spec = SimpleSpec(
            region=region or settings.region,
            deployment_id=deployment_id,
            name=name,
            version=version,
            template_id=template,
            ref_id=ref_id,
            elasticsearch_ref_id=es_ref_id,
            size=size,
            zone_count=zones,
        )
        payload = await build_stateless(client, kind, spec)
        if generate_payload:
            return payload

        resources = DeploymentResources()
        setattr(resources, ResourceKind.parse(kind).value, [payload])
        return await deployments.update(
            client,
            deployment_id,
            DeploymentUpdateRequest(prune_orphans=False, resources=resources),
        )

    run_command(_create)
