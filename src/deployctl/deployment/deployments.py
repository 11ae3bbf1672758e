"""
Deployment level operations.

Create, update, delete, show and resync whole deployments. Create and update
optionally track every resource of the response until its plan settles.
"""

import logging
from dataclasses import dataclass
from typing import Any

from deployctl.api.client import CloudClient
from deployctl.deployment.kinds import adapter_for
from deployctl.deployment.tracking import ChangeTracker
from deployctl.exceptions import MissingAPIError, MultiError, ParameterError
from deployctl.models import (
    DeploymentCreateRequest,
    DeploymentCreateResponse,
    DeploymentGetResponse,
    DeploymentResources,
    DeploymentUpdateRequest,
    DeploymentUpdateResponse,
    ResourceInfo,
)
from deployctl.types import ResourceKind, ResourceRef, validate_deployment_id

logger = logging.getLogger(__name__)


@dataclass
class CreateOverrides:
    """
    Values laid over a create request before it is sent.

    Attributes:
        name: Replaces the deployment name when set.
        region: Fills every resource without a region.
        version: Replaces the version of every resource.
    """

    name: str = ""
    region: str = ""
    version: str = ""


def set_overrides(resources: DeploymentResources | None, region: str = "", version: str = "") -> None:
    """Apply region and version overrides to every resource in place."""
    if resources is None:
        return
    for kind in ResourceKind:
        adapter = adapter_for(kind)
        for payload in resources.of_kind(kind.value):
            if region and payload.region is None:
                payload.region = region
            if version and payload.plan is not None:
                config = adapter.plan_config(payload.plan)
                if config is not None:
                    config.version = version


def _check(client: CloudClient | None, deployment_id: str | None = None, **required: Any) -> None:
    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    for name, value in required.items():
        if value is None:
            merr.append(ParameterError(f"deployment {name}: request payload cannot be empty"))
    if deployment_id is not None:
        merr.append(validate_deployment_id(deployment_id))
    merr.raise_if_any()


async def create(
    client: CloudClient | None,
    request: DeploymentCreateRequest | None,
    request_id: str | None = None,
    overrides: CreateOverrides | None = None,
    tracker: ChangeTracker | None = None,
) -> DeploymentCreateResponse:
    """
    Create a deployment.

    request_id makes the call idempotent: resending the same id returns the
    original deployment instead of creating another one.

    Raises:
        MultiError: Without a client or a request.
        RemoteError: When the API rejects the request.
        TrackingError: When tracking fails, with the response attached.
    """
    _check(client, create=request)

    if overrides is not None:
        if overrides.name:
            request.name = overrides.name
        set_overrides(request.resources, overrides.region, overrides.version)

    response = await client.create_deployment(request, request_id=request_id or None)
    logger.info(f"Created deployment {response.id}")

    if tracker is not None:
        await tracker.track(response.resources, response=response)
    return response


async def update(
    client: CloudClient | None,
    deployment_id: str,
    request: DeploymentUpdateRequest | None,
    skip_snapshot: bool = False,
    hide_pruned_orphans: bool = False,
    region: str = "",
    tracker: ChangeTracker | None = None,
) -> DeploymentUpdateResponse:
    """
    Update a deployment.

    Resources omitted from the request survive unless the request sets
    prune_orphans explicitly. With a tracker, both the updated and the
    orphaned resources are followed.
    """
    _check(client, deployment_id, update=request)

    if request.prune_orphans is None:
        request.prune_orphans = False
    set_overrides(request.resources, region=region)

    response = await client.update_deployment(
        deployment_id,
        request,
        skip_snapshot=skip_snapshot,
        hide_pruned_orphans=hide_pruned_orphans,
    )

    if tracker is not None:
        await tracker.track(response.resources, response.shutdown_resources, response=response)
    return response


async def delete(client: CloudClient | None, deployment_id: str) -> dict[str, Any]:
    _check(client, deployment_id)
    return await client.delete_deployment(deployment_id)


async def get(client: CloudClient | None, deployment_id: str, **flags: Any) -> DeploymentGetResponse:
    """Fetch a deployment. Keyword flags override the default query."""
    _check(client, deployment_id)
    return await client.get_deployment(deployment_id, **flags)


def resource_refs(deployment: DeploymentGetResponse) -> list[ResourceRef]:
    """Every resource of a deployment, Elasticsearch first, in server order within a kind."""
    return [
        ResourceRef(kind=kind, ref_id=info.ref_id, resource_id=info.id)
        for kind in ResourceKind
        for info in deployment.resources.of_kind(kind.value)
    ]


async def get_kind_ref_id(client: CloudClient | None, deployment_id: str, kind: ResourceKind | str) -> str:
    """
    Ref id of the last resource of a kind in a deployment.

    Raises:
        UnsupportedKindError: For an unknown kind.
        ParameterError: When the deployment has no resource of that kind.
    """
    adapter = adapter_for(kind)
    deployment = await get(client, deployment_id)
    refs = [ref for ref in resource_refs(deployment) if ref.kind is adapter.kind]
    if not refs:
        raise ParameterError(f"deployment get: resource kind {adapter.kind.value} is not available")
    return refs[-1].ref_id


async def get_resource(
    client: CloudClient | None,
    deployment_id: str,
    kind: ResourceKind | str,
    ref_id: str = "",
    **flags: Any,
) -> ResourceInfo:
    """Fetch one resource, discovering its ref id when empty."""
    adapter = adapter_for(kind)
    if not ref_id:
        ref_id = await get_kind_ref_id(client, deployment_id, adapter.kind)
    return await client.get_deployment_resource(deployment_id, adapter.kind.value, ref_id, **flags)


async def resync(client: CloudClient | None, deployment_id: str) -> dict[str, Any]:
    """Resynchronise the search index and cache of one deployment."""
    _check(client, deployment_id)
    return await client.resync_deployment(deployment_id)


async def resync_all(client: CloudClient | None) -> dict[str, Any]:
    _check(client)
    return await client.resync_deployments()
