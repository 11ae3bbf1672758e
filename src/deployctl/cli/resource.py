"""Resource lifecycle CLI commands.

Every command addresses one resource of a deployment by
DEPLOYMENT_ID --kind KIND --ref-id REF_ID.
"""

from typing import Optional

import typer

from deployctl.cli.common import make_tracker, run_command
from deployctl.deployment import resources
from deployctl.types import ResourceParams

resource_app = typer.Typer(help="Manage deployment resources")

KIND_HELP = "Resource kind (elasticsearch, kibana, apm, appsearch)"


def _params(deployment_id: str, kind: str, ref_id: str) -> ResourceParams:
    return ResourceParams(deployment_id=deployment_id, kind=kind, ref_id=ref_id)


@resource_app.command("shutdown")
def shutdown(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
    kind: str = typer.Option(..., "--kind", "-k", help=KIND_HELP),
    ref_id: str = typer.Option(..., "--ref-id", help="Resource ref ID"),
    skip_snapshot: bool = typer.Option(False, "--skip-snapshot", help="Skip the snapshot before shutdown"),
    hide: bool = typer.Option(False, "--hide", help="Hide the resource once shut down"),
    track: bool = typer.Option(False, "--track", "-t", help="Track the shutdown progress"),
) -> None:
    """Shut down a deployment resource."""

    async def _shutdown(client, settings):
        return await resources.shutdown(
            client,
            _params(deployment_id, kind, ref_id),
            skip_snapshot=skip_snapshot,
            hide=hide,
            tracker=make_tracker(client, settings, track),
        )

    run_command(_shutdown)


@resource_app.command("restore")
def restore(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
    kind: str = typer.Option(..., "--kind", "-k", help=KIND_HELP),
    ref_id: str = typer.Option(..., "--ref-id", help="Resource ref ID"),
    restore_snapshot: bool = typer.Option(False, "--restore-snapshot", help="Restore the latest snapshot"),
    track: bool = typer.Option(False, "--track", "-t", help="Track the restore progress"),
) -> None:
    """Restore a shut down deployment resource."""

    async def _restore(client, settings):
        return await resources.restore(
            client,
            _params(deployment_id, kind, ref_id),
            restore_snapshot=restore_snapshot,
            tracker=make_tracker(client, settings, track),
        )

    run_command(_restore)


@resource_app.command("upgrade")
def upgrade(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
    kind: str = typer.Option(..., "--kind", "-k", help=KIND_HELP),
    ref_id: str = typer.Option("", "--ref-id", help="Resource ref ID, discovered when omitted"),
    track: bool = typer.Option(False, "--track", "-t", help="Track the upgrade progress"),
) -> None:
    """Upgrade a resource to the version of its Elasticsearch resource."""

    async def _upgrade(client, settings):
        return await resources.upgrade(
            client,
            _params(deployment_id, kind, ref_id),
            tracker=make_tracker(client, settings, track),
        )

    run_command(_upgrade)


def _instances_command(operation, name: str, help_text: str) -> None:
    """Register a command acting on all or some instances of a resource."""

    @resource_app.command(name, help=help_text)
    def command(
        deployment_id: str = typer.Argument(..., help="Deployment ID"),
        kind: str = typer.Option(..., "--kind", "-k", help=KIND_HELP),
        ref_id: str = typer.Option(..., "--ref-id", help="Resource ref ID"),
        all_instances: bool = typer.Option(False, "--all", help="Act on every instance"),
        instance_ids: Optional[list[str]] = typer.Option(None, "--instance-id", "-i", help="Instance ID"),
        ignore_missing: bool = typer.Option(False, "--ignore-missing", help="Ignore unknown instance IDs"),
    ) -> None:
        async def _run(client, settings):
            return await operation(
                client,
                _params(deployment_id, kind, ref_id),
                all_instances=all_instances,
                instance_ids=instance_ids,
                ignore_missing=ignore_missing,
            )

        run_command(_run)


_instances_command(resources.start, "start", "Start instances of a deployment resource.")
_instances_command(resources.stop, "stop", "Stop instances of a deployment resource.")
_instances_command(
    resources.start_maintenance,
    "start-maintenance",
    "Put instances of a deployment resource in maintenance mode.",
)
_instances_command(
    resources.stop_maintenance,
    "stop-maintenance",
    "Take instances of a deployment resource out of maintenance mode.",
)


@resource_app.command("delete")
def delete(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
    kind: str = typer.Option(..., "--kind", "-k", help="Stateless kind (kibana, apm, appsearch)"),
    ref_id: str = typer.Option(..., "--ref-id", help="Resource ref ID"),
) -> None:
    """Delete a shut down stateless resource."""

    async def _delete(client, settings):
        return await resources.delete_stateless(client, _params(deployment_id, kind, ref_id))

    run_command(_delete)


@resource_app.command("cancel-plan")
def cancel_plan(
    deployment_id: str = typer.Argument(..., help="Deployment ID"),
    kind: str = typer.Option(..., "--kind", "-k", help=KIND_HELP),
    ref_id: str = typer.Option(..., "--ref-id", help="Resource ref ID"),
    force_delete: bool = typer.Option(False, "--force-delete", help="Remove the pending plan without cancelling it"),
) -> None:
    """Cancel the pending plan of a deployment resource."""

    async def _cancel(client, settings):
        return await resources.cancel_pending_plan(
            client, _params(deployment_id, kind, ref_id), force_delete=force_delete
        )

    run_command(_cancel)


@resource_app.command("delete-cluster")
def delete_cluster(
    resource_id: str = typer.Argument(..., help="Resource ID"),
    kind: str = typer.Option(..., "--kind", "-k", help=KIND_HELP),
) -> None:
    """Delete a stopped cluster by resource ID."""

    async def _delete(client, settings):
        return await resources.delete_cluster(client, kind, resource_id)

    run_command(_delete)


@resource_app.command("restart")
def restart(
    resource_id: str = typer.Argument(..., help="Resource ID"),
    kind: str = typer.Option(..., "--kind", "-k", help=KIND_HELP),
    cancel_pending: bool = typer.Option(False, "--cancel-pending", help="Cancel the pending plan first"),
    track: bool = typer.Option(False, "--track", "-t", help="Track the restart progress"),
) -> None:
    """Restart a cluster by resource ID."""

    async def _restart(client, settings):
        return await resources.restart(
            client,
            kind,
            resource_id,
            cancel_pending=cancel_pending,
            tracker=make_tracker(client, settings, track),
        )

    run_command(_restart)
