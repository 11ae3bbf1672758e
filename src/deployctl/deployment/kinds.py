"""
Per resource kind adapter table.

Every flow which differs by resource kind (default ref ids, plan
configuration fields, tracking support, validate-only plans) dispatches
through KIND_ADAPTERS instead of branching on the kind.
"""

from dataclasses import dataclass

from deployctl.models import ClusterTemplate, DeploymentTemplateInfo, KindConfiguration, ResourcePlan
from deployctl.types import ResourceKind

ES_PLAN_CONFIGURATION_FIELDS = (
    "extended_maintenance",
    "override_failsafe",
    "reallocate_instances",
    "skip_data_migration",
    "skip_post_upgrade_steps",
    "skip_snapshot",
    "skip_upgrade_checker",
)

STATELESS_PLAN_CONFIGURATION_FIELDS = (
    "extended_maintenance",
    "reallocate_instances",
)


@dataclass(frozen=True)
class KindAdapter:
    """
    Static facts about one resource kind.

    Attributes:
        kind: The resource kind.
        default_ref_id: Ref id used when the caller gives none.
        plan_configuration_fields: Transient plan_configuration fields the
            kind accepts. Each one is always serialised explicitly.
        supports_tracking: Whether plan activity can be followed.
        supports_validate_only: Whether plan updates accept validate_only.
    """

    kind: ResourceKind
    default_ref_id: str
    plan_configuration_fields: tuple[str, ...]
    supports_tracking: bool = True
    supports_validate_only: bool = False

    @property
    def config_key(self) -> str:
        """Key of the kind configuration block within a plan."""
        return self.kind.value

    def plan_config(self, plan: ResourcePlan) -> KindConfiguration | None:
        return getattr(plan, self.config_key)

    def set_plan_config(self, plan: ResourcePlan, config: KindConfiguration) -> None:
        setattr(plan, self.config_key, config)

    def template_plan(self, template: DeploymentTemplateInfo) -> ResourcePlan | None:
        """Return the kind's plan in a deployment template, None when absent."""
        cluster: ClusterTemplate = template.cluster_template
        if self.kind is ResourceKind.ELASTICSEARCH:
            return cluster.plan
        block = getattr(cluster, self.config_key)
        return block.plan if block is not None else None


KIND_ADAPTERS: dict[ResourceKind, KindAdapter] = {
    ResourceKind.ELASTICSEARCH: KindAdapter(
        kind=ResourceKind.ELASTICSEARCH,
        default_ref_id="elasticsearch",
        plan_configuration_fields=ES_PLAN_CONFIGURATION_FIELDS,
        supports_validate_only=True,
    ),
    ResourceKind.KIBANA: KindAdapter(
        kind=ResourceKind.KIBANA,
        default_ref_id="main-kibana",
        plan_configuration_fields=STATELESS_PLAN_CONFIGURATION_FIELDS,
    ),
    ResourceKind.APM: KindAdapter(
        kind=ResourceKind.APM,
        default_ref_id="main-apm",
        plan_configuration_fields=STATELESS_PLAN_CONFIGURATION_FIELDS,
    ),
    ResourceKind.APPSEARCH: KindAdapter(
        kind=ResourceKind.APPSEARCH,
        default_ref_id="main-appsearch",
        plan_configuration_fields=STATELESS_PLAN_CONFIGURATION_FIELDS,
        supports_tracking=False,
    ),
}


def adapter_for(kind: "ResourceKind | str") -> KindAdapter:
    """Look up the adapter of a kind, raising UnsupportedKindError when unknown."""
    return KIND_ADAPTERS[ResourceKind.parse(kind)]
