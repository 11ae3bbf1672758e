"""
Pydantic wire models for the deployment control-plane API.

This module provides Pydantic models for:
- Deployment payloads: create and update requests, per resource payloads
- Plans: cluster topology, kind configuration, transient settings
- Responses: deployment info, plan activity, orphaned resources
- Platform configuration: deployment templates and stack versions

These are API types. Internal values (SimpleSpec, ReapplyOverrides, ...) are
dataclasses in deployctl.types.

Notes:
- Every model accepts unknown fields (extra="allow") so server data read
  from one endpoint survives a round trip to another untouched.
- Optional booleans stay None until set. The server distinguishes an
  absent field from an explicit false, so serialisation goes through
  to_wire(), which drops None but keeps False.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for every control-plane model."""

    model_config = ConfigDict(extra="allow")

    def to_wire(self) -> dict[str, Any]:
        """Serialise to a JSON compatible dict, omitting unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# Plan building blocks
# =============================================================================


class TopologySize(WireModel):
    """Size of a topology element, always expressed in MB of memory."""

    resource: str = "memory"
    value: int | None = None


class ElasticsearchNodeType(WireModel):
    """Role flags of an Elasticsearch topology element."""

    data: bool | None = None
    master: bool | None = None
    ingest: bool | None = None
    ml: bool | None = None


class ClusterTopologyElement(WireModel):
    """
    One element of a plan's cluster_topology.

    Shared by every resource kind. Only Elasticsearch elements carry a
    node_type.
    """

    instance_configuration_id: str | None = None
    node_type: ElasticsearchNodeType | None = None
    size: TopologySize | None = None
    zone_count: int | None = None


class DeploymentTemplateReference(WireModel):
    id: str | None = None


class KindConfiguration(WireModel):
    """Kind specific configuration block (plan.elasticsearch, plan.kibana, ...)."""

    version: str | None = None


class RollingStrategyConfig(WireModel):
    group_by: str | None = None


class PlanStrategy(WireModel):
    """
    Change strategy of a plan.

    An empty strategy lets the server choose. Exactly one field is set
    otherwise, e.g. {"rolling": {"group_by": "__name__"}}.
    """

    rolling: RollingStrategyConfig | None = None
    grow_and_shrink: dict[str, Any] | None = None
    rolling_grow_and_shrink: dict[str, Any] | None = None
    autodetect: dict[str, Any] | None = None


class PlanControlConfiguration(WireModel):
    """Plan level control flags of the transient block."""

    extended_maintenance: bool | None = None
    override_failsafe: bool | None = None
    reallocate_instances: bool | None = None
    skip_data_migration: bool | None = None
    skip_post_upgrade_steps: bool | None = None
    skip_snapshot: bool | None = None
    skip_upgrade_checker: bool | None = None


class TransientPlanConfiguration(WireModel):
    """The ephemeral part of a plan controlling how a change is applied."""

    strategy: PlanStrategy | None = None
    plan_configuration: PlanControlConfiguration | None = None
    restore_snapshot: dict[str, Any] | None = None


class ResourcePlan(WireModel):
    """
    Plan of a single resource.

    Exactly one of the kind configuration blocks is expected to be set,
    matching the resource kind.
    """

    cluster_topology: list[ClusterTopologyElement] = Field(default_factory=list)
    elasticsearch: KindConfiguration | None = None
    kibana: KindConfiguration | None = None
    apm: KindConfiguration | None = None
    appsearch: KindConfiguration | None = None
    deployment_template: DeploymentTemplateReference | None = None
    transient: TransientPlanConfiguration | None = None


# =============================================================================
# Requests
# =============================================================================


class ResourcePayload(WireModel):
    """Create or update payload for one resource of any kind."""

    ref_id: str | None = None
    region: str | None = None
    display_name: str | None = None
    elasticsearch_cluster_ref_id: str | None = None
    plan: ResourcePlan | None = None


class DeploymentResources(WireModel):
    """Resources of a deployment request grouped by kind."""

    elasticsearch: list[ResourcePayload] | None = None
    kibana: list[ResourcePayload] | None = None
    apm: list[ResourcePayload] | None = None
    appsearch: list[ResourcePayload] | None = None

    def of_kind(self, kind: str) -> list[ResourcePayload]:
        return getattr(self, kind) or []

    def all(self) -> list[ResourcePayload]:
        return [
            payload
            for kind in ("elasticsearch", "kibana", "apm", "appsearch")
            for payload in self.of_kind(kind)
        ]


class DeploymentCreateRequest(WireModel):
    """Request body of POST /deployments."""

    name: str | None = None
    resources: DeploymentResources | None = None


class DeploymentUpdateRequest(WireModel):
    """
    Request body of PUT /deployments/{id}.

    prune_orphans=False keeps resources omitted from the request alive.
    """

    name: str | None = None
    prune_orphans: bool | None = None
    resources: DeploymentResources | None = None


# =============================================================================
# Responses
# =============================================================================


class DeploymentResource(WireModel):
    """A resource created or updated by a deployment call."""

    id: str
    kind: str
    ref_id: str | None = None
    region: str | None = None


class OrphanedElasticsearch(WireModel):
    id: str


class Orphaned(WireModel):
    """Resources which disappear once an update is applied."""

    apm: list[str] = Field(default_factory=list)
    appsearch: list[str] = Field(default_factory=list)
    kibana: list[str] = Field(default_factory=list)
    elasticsearch: list[OrphanedElasticsearch] = Field(default_factory=list)


class DeploymentCreateResponse(WireModel):
    id: str
    name: str | None = None
    created: bool | None = None
    resources: list[DeploymentResource] = Field(default_factory=list)


class DeploymentUpdateResponse(WireModel):
    id: str
    name: str | None = None
    resources: list[DeploymentResource] = Field(default_factory=list)
    shutdown_resources: Orphaned | None = None


class PlanStepInfo(WireModel):
    """One step of a plan attempt log."""

    step_id: str
    status: str | None = None
    stage: str | None = None
    started: str | None = None
    completed: str | None = None
    duration_in_millis: int | None = None


class PlanAttempt(WireModel):
    """A single attempt at applying a plan."""

    plan: ResourcePlan | None = None
    plan_attempt_id: str | None = None
    plan_attempt_log: list[PlanStepInfo] = Field(default_factory=list)
    attempt_start_time: str | None = None
    attempt_end_time: str | None = None
    healthy: bool | None = None


class PlansInfo(WireModel):
    """
    Plan information of a resource.

    Returned embedded in deployment info and by the plan activity endpoint.
    A resource is changing while ``pending`` is present.
    """

    pending: PlanAttempt | None = None
    current: PlanAttempt | None = None
    history: list[PlanAttempt] = Field(default_factory=list)
    healthy: bool | None = None


class ResourceInfoBody(WireModel):
    status: str | None = None
    healthy: bool | None = None
    plan_info: PlansInfo | None = None


class ResourceInfo(WireModel):
    """A resource as reported by GET /deployments/{id}."""

    id: str
    ref_id: str
    region: str | None = None
    elasticsearch_cluster_ref_id: str | None = None
    info: ResourceInfoBody | None = None


class DeploymentInfoResources(WireModel):
    elasticsearch: list[ResourceInfo] = Field(default_factory=list)
    kibana: list[ResourceInfo] = Field(default_factory=list)
    apm: list[ResourceInfo] = Field(default_factory=list)
    appsearch: list[ResourceInfo] = Field(default_factory=list)

    def of_kind(self, kind: str) -> list[ResourceInfo]:
        return getattr(self, kind)


class DeploymentGetResponse(WireModel):
    """Response of GET /deployments/{id}."""

    id: str
    name: str | None = None
    healthy: bool | None = None
    resources: DeploymentInfoResources = Field(default_factory=DeploymentInfoResources)


# =============================================================================
# Platform configuration
# =============================================================================


class KindTemplate(WireModel):
    """Template block of one stateless kind: {"plan": {...}}."""

    plan: ResourcePlan | None = None


class ClusterTemplate(WireModel):
    """
    The cluster_template of a deployment template.

    The Elasticsearch plan sits at the top level; stateless kinds each have
    their own block, absent when the template does not support the kind.
    """

    plan: ResourcePlan | None = None
    kibana: KindTemplate | None = None
    apm: KindTemplate | None = None
    appsearch: KindTemplate | None = None


class DeploymentTemplateInfo(WireModel):
    """Response of GET /platform/configuration/templates/{id}."""

    id: str | None = None
    name: str | None = None
    cluster_template: ClusterTemplate = Field(default_factory=ClusterTemplate)


class StackVersionConfig(WireModel):
    version: str


class StackVersionConfigs(WireModel):
    """Response of GET /platform/configuration/stacks."""

    stacks: list[StackVersionConfig] = Field(default_factory=list)
