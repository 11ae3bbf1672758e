"""
Deployment payload construction.

Builds typed create and update payloads from a SimpleSpec by merging the
deployment template's default topology with the requested sizes:

- build_elasticsearch: one Elasticsearch resource payload
- build_stateless: one Kibana, APM or App Search payload attached to the
  Elasticsearch resource of an existing deployment
- build_deployment: a complete create request holding Elasticsearch, Kibana
  and, optionally, APM and App Search resources

Every fault in the input is reported at once through MultiError, before
any request is made.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import TextIO

from deployctl.api.client import CloudClient
from deployctl.deployment.kinds import KindAdapter, adapter_for
from deployctl.deployment.stack import latest_stack_version
from deployctl.deployment.template import resolve
from deployctl.deployment.topology import (
    build_elasticsearch_topology,
    default_topology_element,
    validate_topology,
)
from deployctl.exceptions import (
    MissingAPIError,
    MultiError,
    ParameterError,
    TemplateKindMissingError,
    UnsupportedKindError,
)
from deployctl.models import (
    ClusterTopologyElement,
    DeploymentCreateRequest,
    DeploymentResources,
    DeploymentTemplateInfo,
    DeploymentTemplateReference,
    KindConfiguration,
    ResourcePayload,
    ResourcePlan,
    TopologySize,
)
from deployctl.types import (
    DEFAULT_TEMPLATE_ID,
    ResourceKind,
    SimpleSpec,
    TopologyElement,
    validate_deployment_id,
    validate_sizing,
)

logger = logging.getLogger(__name__)

ELASTICSEARCH = adapter_for(ResourceKind.ELASTICSEARCH)


@dataclass
class StatelessSizing:
    """Sizing and ref id of one stateless resource of a new deployment."""

    ref_id: str = ""
    size: int = 0
    zone_count: int = 0


@dataclass
class DeploymentSpec:
    """
    Simplified description of a whole new deployment.

    Attributes:
        region: Target region of every resource.
        name: Deployment name.
        version: Stack version of every resource; latest when empty.
        template_id: Deployment template; "default" when empty.
        elasticsearch_ref_id: Ref id of the Elasticsearch resource.
        elasticsearch_size: Memory size of the default data element.
        elasticsearch_zone_count: Zone count of the default data element.
        topology: Requested Elasticsearch topology; replaces the default
            data element when given.
        kibana: Kibana sizing.
        apm: APM sizing, None to leave APM out.
        appsearch: App Search sizing, None to leave App Search out.
    """

    region: str
    name: str = ""
    version: str = ""
    template_id: str = ""
    elasticsearch_ref_id: str = ""
    elasticsearch_size: int = 0
    elasticsearch_zone_count: int = 0
    topology: list[TopologyElement] = field(default_factory=list)
    kibana: StatelessSizing = field(default_factory=StatelessSizing)
    apm: StatelessSizing | None = None
    appsearch: StatelessSizing | None = None


def requested_topology(spec: SimpleSpec) -> list[TopologyElement]:
    """
    The topology to request for an Elasticsearch spec.

    Without explicit elements a single data element is used. Non-zero
    spec.size and spec.zone_count override every element.
    """
    if not spec.topology:
        return [default_topology_element(spec.size, spec.zone_count)]

    overrides = {}
    if spec.size > 0:
        overrides["size"] = spec.size
    if spec.zone_count > 0:
        overrides["zone_count"] = spec.zone_count
    return [element.model_copy(update=overrides) for element in spec.topology]


def _template_plan(adapter: KindAdapter, template: DeploymentTemplateInfo, template_id: str) -> ResourcePlan:
    plan = adapter.template_plan(template)
    if plan is None:
        raise TemplateKindMissingError(adapter.kind.value, template_id)
    return plan


def _elasticsearch_payload(
    spec: SimpleSpec,
    topology: list[TopologyElement],
    template: DeploymentTemplateInfo,
) -> ResourcePayload:
    plan = _template_plan(ELASTICSEARCH, template, spec.template_id)
    cluster_topology = build_elasticsearch_topology(
        plan.cluster_topology, topology, spec.template_id
    )
    return ResourcePayload(
        ref_id=spec.ref_id,
        region=spec.region,
        display_name=spec.name or None,
        plan=ResourcePlan(
            elasticsearch=KindConfiguration(version=spec.version),
            deployment_template=DeploymentTemplateReference(id=spec.template_id),
            cluster_topology=cluster_topology,
        ),
    )


def _stateless_payload(
    adapter: KindAdapter,
    spec: SimpleSpec,
    template: DeploymentTemplateInfo,
) -> ResourcePayload:
    plan = _template_plan(adapter, template, spec.template_id)
    if plan.cluster_topology:
        element = plan.cluster_topology[0].model_copy(deep=True)
    else:
        element = ClusterTopologyElement(size=TopologySize())

    if spec.size > 0:
        if element.size is None:
            element.size = TopologySize()
        element.size.value = spec.size
    if spec.zone_count > 0:
        element.zone_count = spec.zone_count

    resource_plan = ResourcePlan(cluster_topology=[element])
    adapter.set_plan_config(resource_plan, KindConfiguration(version=spec.version or None))

    return ResourcePayload(
        ref_id=spec.ref_id,
        region=spec.region,
        display_name=spec.name or None,
        elasticsearch_cluster_ref_id=spec.elasticsearch_ref_id,
        plan=resource_plan,
    )


async def build_elasticsearch(
    client: CloudClient | None,
    spec: SimpleSpec,
    writer: TextIO | None = None,
) -> ResourcePayload:
    """
    Build an Elasticsearch resource payload.

    Discovers the latest stack version when spec.version is empty, writing
    a notice to writer, then fetches the deployment template.

    Raises:
        MultiError: On invalid input, before any request.
        VersionDiscoveryError: When no version is given and none can be found.
        TopologyUnsatisfiableError: When the template has no matching element.
    """
    spec = replace(
        spec,
        ref_id=spec.ref_id or ELASTICSEARCH.default_ref_id,
        template_id=spec.template_id or DEFAULT_TEMPLATE_ID,
    )
    topology = requested_topology(spec)

    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    if not spec.region:
        merr.append(ParameterError("deployment topology: region cannot be empty"))
    merr.append(validate_sizing(spec.size, spec.zone_count, "deployment topology"))
    merr.append(validate_topology(topology))
    merr.raise_if_any()

    spec.version = await latest_stack_version(client, spec.version, writer)
    template = await client.get_deployment_template(spec.template_id)
    return _elasticsearch_payload(spec, topology, template)


async def build_stateless(
    client: CloudClient | None,
    kind: ResourceKind | str,
    spec: SimpleSpec,
) -> ResourcePayload:
    """
    Build a Kibana, APM or App Search payload for an existing deployment.

    The template id, Elasticsearch ref id and version are discovered from
    the deployment when missing from spec.

    Raises:
        MultiError: On invalid input, before any request.
        UnsupportedKindError: For kind "elasticsearch" or an unknown kind.
        TemplateUnavailableError: When nothing can be discovered.
        TemplateKindMissingError: When the template does not support the kind.
    """
    adapter = adapter_for(kind)
    if not adapter.kind.is_stateless:
        raise UnsupportedKindError(adapter.kind.value, "stateless resource creation")

    spec = replace(spec, ref_id=spec.ref_id or adapter.default_ref_id)

    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    merr.append(validate_deployment_id(spec.deployment_id))
    if not spec.region:
        merr.append(ParameterError("deployment topology: region cannot be empty"))
    merr.append(validate_sizing(spec.size, spec.zone_count, f"deployment {adapter.kind.value}"))
    merr.raise_if_any()

    spec = await resolve(client, spec, inherit_version=True)
    template = await client.get_deployment_template(spec.template_id)
    return _stateless_payload(adapter, spec, template)


async def build_deployment(
    client: CloudClient | None,
    spec: DeploymentSpec,
    writer: TextIO | None = None,
) -> DeploymentCreateRequest:
    """
    Build the create request of a new deployment.

    The stateless resources share the template, region and version of the
    Elasticsearch resource and reference its ref id. At most two requests
    are made: the stack list (only without a version) and the template.
    """
    es_spec = SimpleSpec(
        region=spec.region,
        version=spec.version,
        template_id=spec.template_id or DEFAULT_TEMPLATE_ID,
        ref_id=spec.elasticsearch_ref_id or ELASTICSEARCH.default_ref_id,
        size=spec.elasticsearch_size,
        zone_count=spec.elasticsearch_zone_count,
        topology=spec.topology,
    )
    topology = requested_topology(es_spec)
    stateless = {
        ResourceKind.KIBANA: spec.kibana,
        ResourceKind.APM: spec.apm,
        ResourceKind.APPSEARCH: spec.appsearch,
    }

    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    if not spec.region:
        merr.append(ParameterError("deployment topology: region cannot be empty"))
    merr.append(validate_sizing(es_spec.size, es_spec.zone_count, "deployment topology"))
    merr.append(validate_topology(topology))
    for kind, sizing in stateless.items():
        if sizing is not None:
            merr.append(validate_sizing(sizing.size, sizing.zone_count, f"deployment {kind.value}"))
    merr.raise_if_any()

    es_spec.version = await latest_stack_version(client, es_spec.version, writer)
    template = await client.get_deployment_template(es_spec.template_id)

    resources = DeploymentResources(
        elasticsearch=[_elasticsearch_payload(es_spec, topology, template)],
    )

    for kind, sizing in stateless.items():
        if sizing is None:
            continue
        adapter = adapter_for(kind)
        kind_spec = SimpleSpec(
            region=spec.region,
            version=es_spec.version,
            template_id=es_spec.template_id,
            ref_id=sizing.ref_id or adapter.default_ref_id,
            elasticsearch_ref_id=es_spec.ref_id,
            size=sizing.size,
            zone_count=sizing.zone_count,
        )
        setattr(resources, kind.value, [_stateless_payload(adapter, kind_spec, template)])

    logger.info(
        f"Built deployment request from template {es_spec.template_id!r} "
        f"with version {es_spec.version}"
    )
    return DeploymentCreateRequest(name=spec.name or None, resources=resources)
