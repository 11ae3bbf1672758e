"""
Resource lifecycle operations.

Two addressing schemes are supported:

- Deployment resources, addressed by (deployment id, kind, ref id):
  shutdown, restore, upgrade, start, stop, maintenance mode, deletion of
  stateless resources and cancellation of pending plans.
- Clusters, addressed by (kind, resource id): restart, upgrade, shutdown,
  delete, resync and the plan endpoints.

Every operation validates all of its parameters before any request and
reports the faults together. Operations accepting a tracker follow the
resource's plan after the change was submitted.
"""

import logging
from typing import Any

from deployctl.api.client import CloudClient
from deployctl.deployment.deployments import get_kind_ref_id
from deployctl.deployment.kinds import adapter_for
from deployctl.deployment.tracking import ChangeTracker
from deployctl.exceptions import (
    MissingAPIError,
    MultiError,
    NotStoppedError,
    ParameterError,
    UnsupportedKindError,
)
from deployctl.models import PlanAttempt, PlansInfo, ResourcePlan
from deployctl.types import ResourceKind, ResourceParams, validate_deployment_id

logger = logging.getLogger(__name__)

STATUS_STOPPED = "stopped"


def _validate(
    client: CloudClient | None,
    params: ResourceParams,
    require_ref_id: bool = True,
    extra: list[Exception] | None = None,
) -> None:
    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    try:
        params.validate(require_ref_id=require_ref_id)
    except MultiError as e:
        merr.append(e)
    for err in extra or []:
        merr.append(err)
    merr.raise_if_any()


def _validate_cluster(client: CloudClient | None, kind: ResourceKind | str, resource_id: str) -> str:
    """Validate a cluster address and return the kind's name."""
    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    merr.append(validate_deployment_id(resource_id))
    name = ""
    try:
        name = adapter_for(kind).kind.value
    except UnsupportedKindError as e:
        merr.append(e)
    merr.raise_if_any()
    return name


async def _track_ref(
    client: CloudClient,
    params: ResourceParams,
    tracker: ChangeTracker | None,
    response: Any,
) -> None:
    if tracker is None:
        return
    resource = await client.get_deployment_resource(params.deployment_id, params.kind.value, params.ref_id)
    await tracker.track_resource(params.kind, resource.id, response=response)


def _instances_path(instance_ids: list[str] | None, action: str) -> str:
    if instance_ids:
        return f"instances/{','.join(instance_ids)}/{action}"
    return f"instances/{action}"


# =============================================================================
# Deployment resources
# =============================================================================


async def shutdown(
    client: CloudClient | None,
    params: ResourceParams,
    skip_snapshot: bool = False,
    hide: bool = False,
    tracker: ChangeTracker | None = None,
) -> dict[str, Any]:
    """Shut down a resource, optionally hiding it from listings."""
    _validate(client, params)
    response = await client.resource_action(
        params.deployment_id,
        params.kind.value,
        params.ref_id,
        "_shutdown",
        params={"skip_snapshot": skip_snapshot, "hide": hide},
    )
    await _track_ref(client, params, tracker, response)
    return response


async def restore(
    client: CloudClient | None,
    params: ResourceParams,
    restore_snapshot: bool = False,
    tracker: ChangeTracker | None = None,
) -> dict[str, Any]:
    """Restore a previously shut down resource."""
    _validate(client, params)
    response = await client.resource_action(
        params.deployment_id,
        params.kind.value,
        params.ref_id,
        "_restore",
        params={"restore_snapshot": restore_snapshot},
    )
    await _track_ref(client, params, tracker, response)
    return response


async def upgrade(
    client: CloudClient | None,
    params: ResourceParams,
    tracker: ChangeTracker | None = None,
) -> dict[str, Any]:
    """
    Upgrade a resource to the version of its Elasticsearch resource.

    The ref id is discovered from the deployment when empty.
    """
    _validate(client, params, require_ref_id=False)
    if not params.ref_id:
        params.ref_id = await get_kind_ref_id(client, params.deployment_id, params.kind)

    response = await client.resource_action(
        params.deployment_id, params.kind.value, params.ref_id, "_upgrade"
    )
    await _track_ref(client, params, tracker, response)
    return response


async def _instances_action(
    client: CloudClient | None,
    params: ResourceParams,
    action: str,
    verb: str,
    all_instances: bool,
    instance_ids: list[str] | None,
    ignore_missing: bool | None,
) -> dict[str, Any]:
    extra = []
    if not all_instances and not instance_ids:
        extra.append(ParameterError(f"deployment {verb}: at least 1 instance ID must be provided"))
    _validate(client, params, extra=extra)

    query = None
    if not all_instances:
        query = {"ignore_missing": ignore_missing}
    return await client.resource_action(
        params.deployment_id,
        params.kind.value,
        params.ref_id,
        _instances_path(None if all_instances else instance_ids, action),
        params=query,
    )


async def start(
    client: CloudClient | None,
    params: ResourceParams,
    all_instances: bool = True,
    instance_ids: list[str] | None = None,
    ignore_missing: bool | None = None,
) -> dict[str, Any]:
    """Start all instances of a resource, or the listed ones."""
    return await _instances_action(
        client, params, "_start", "start", all_instances, instance_ids, ignore_missing
    )


async def stop(
    client: CloudClient | None,
    params: ResourceParams,
    all_instances: bool = True,
    instance_ids: list[str] | None = None,
    ignore_missing: bool | None = None,
) -> dict[str, Any]:
    """Stop all instances of a resource, or the listed ones."""
    return await _instances_action(
        client, params, "_stop", "stop", all_instances, instance_ids, ignore_missing
    )


async def start_maintenance(
    client: CloudClient | None,
    params: ResourceParams,
    all_instances: bool = True,
    instance_ids: list[str] | None = None,
    ignore_missing: bool | None = None,
) -> dict[str, Any]:
    """Put instances in maintenance mode, stopping traffic routing to them."""
    return await _instances_action(
        client,
        params,
        "maintenance-mode/_start",
        "start maintenance",
        all_instances,
        instance_ids,
        ignore_missing,
    )


async def stop_maintenance(
    client: CloudClient | None,
    params: ResourceParams,
    all_instances: bool = True,
    instance_ids: list[str] | None = None,
    ignore_missing: bool | None = None,
) -> dict[str, Any]:
    return await _instances_action(
        client,
        params,
        "maintenance-mode/_stop",
        "stop maintenance",
        all_instances,
        instance_ids,
        ignore_missing,
    )


async def delete_stateless(client: CloudClient | None, params: ResourceParams) -> dict[str, Any]:
    """
    Delete a stopped Kibana, APM or App Search resource.

    Elasticsearch resources are removed by deleting their deployment.
    """
    extra = []
    if params.kind == ResourceKind.ELASTICSEARCH:
        extra.append(UnsupportedKindError(ResourceKind.ELASTICSEARCH.value, "stateless deletion"))
    _validate(client, params, extra=extra)
    return await client.delete_deployment_resource(
        params.deployment_id, params.kind.value, params.ref_id
    )


async def cancel_pending_plan(
    client: CloudClient | None,
    params: ResourceParams,
    force_delete: bool = False,
) -> dict[str, Any]:
    """Cancel the pending plan of a resource."""
    _validate(client, params)
    return await client.cancel_deployment_resource_plan(
        params.deployment_id, params.kind.value, params.ref_id, force_delete=force_delete
    )


# =============================================================================
# Clusters
# =============================================================================


async def _cluster_change(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
    action: str,
    query: dict[str, Any] | None,
    tracker: ChangeTracker | None,
) -> dict[str, Any]:
    name = _validate_cluster(client, kind, resource_id)
    response = await client.cluster_action(name, resource_id, action, params=query)
    if tracker is not None:
        await tracker.track_resource(name, resource_id, response=response)
    return response


async def restart(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
    cancel_pending: bool = False,
    tracker: ChangeTracker | None = None,
) -> dict[str, Any]:
    """Restart a cluster, optionally cancelling its pending plan first."""
    return await _cluster_change(
        client, kind, resource_id, "_restart", {"cancel_pending": cancel_pending}, tracker
    )


async def upgrade_cluster(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
    tracker: ChangeTracker | None = None,
) -> dict[str, Any]:
    return await _cluster_change(client, kind, resource_id, "_upgrade", None, tracker)


async def shutdown_cluster(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
    hide: bool = False,
    tracker: ChangeTracker | None = None,
) -> dict[str, Any]:
    return await _cluster_change(client, kind, resource_id, "_shutdown", {"hide": hide}, tracker)


async def delete_cluster(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
) -> dict[str, Any]:
    """
    Delete a stopped cluster.

    Raises:
        NotStoppedError: When the cluster is not stopped; nothing is deleted.
    """
    name = _validate_cluster(client, kind, resource_id)
    cluster = await client.get_cluster(name, resource_id)
    if cluster.status != STATUS_STOPPED:
        raise NotStoppedError(name, cluster.status or "")
    return await client.delete_cluster(name, resource_id)


async def resync_cluster(client: CloudClient | None, kind: ResourceKind | str, resource_id: str) -> dict[str, Any]:
    return await _cluster_change(client, kind, resource_id, "_resync", None, None)


async def resync_clusters(client: CloudClient | None, kind: ResourceKind | str) -> dict[str, Any]:
    """Resynchronise every cluster of a kind."""
    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    try:
        name = adapter_for(kind).kind.value
    except UnsupportedKindError as e:
        merr.append(e)
    merr.raise_if_any()
    return await client.resync_clusters(name)


# =============================================================================
# Plans
# =============================================================================


async def get_plan_activity(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
    show_plan_defaults: bool = False,
) -> PlansInfo:
    name = _validate_cluster(client, kind, resource_id)
    return await client.get_plan_activity(name, resource_id, show_plan_defaults=show_plan_defaults)


async def list_plan_history(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
    show_plan_defaults: bool = False,
) -> list[PlanAttempt]:
    """Plan attempts of a cluster, oldest first."""
    activity = await get_plan_activity(client, kind, resource_id, show_plan_defaults)
    return activity.history


async def update_plan(
    client: CloudClient | None,
    kind: ResourceKind | str,
    resource_id: str,
    plan: ResourcePlan,
    validate_only: bool = False,
    tracker: ChangeTracker | None = None,
) -> dict[str, Any]:
    """
    Submit a new plan for a cluster.

    validate_only asks the server to check the plan without applying it and
    is only accepted for Elasticsearch.
    """
    name = _validate_cluster(client, kind, resource_id)
    adapter = adapter_for(name)
    if validate_only and not adapter.supports_validate_only:
        raise UnsupportedKindError(name, "validate only plans")

    response = await client.update_plan(
        name, resource_id, plan, validate_only=validate_only if adapter.supports_validate_only else None
    )
    if tracker is not None and not validate_only:
        await tracker.track_resource(name, resource_id, response=response)
    return response


async def cancel_plan(client: CloudClient | None, kind: ResourceKind | str, resource_id: str) -> dict[str, Any]:
    name = _validate_cluster(client, kind, resource_id)
    return await client.cancel_plan(name, resource_id)
