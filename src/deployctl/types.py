"""
Shared data types for deployment orchestration.

This module defines the internal value types flowing between the payload
builder, the plan reapply engine and the change tracker. These are not wire
models: the control-plane request and response shapes live in
deployctl.models.

All types use @dataclass. Pydantic is reserved for wire models and for
decoding raw user input (see TopologyElement.parse).
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, ValidationError

from deployctl.exceptions import (
    EmptyRefIdError,
    InvalidDeploymentIdError,
    InvalidTransientError,
    MixedStrategiesError,
    MultiError,
    ParameterError,
    UnsupportedKindError,
)

DeploymentId = str
"""Opaque 32 character deployment or resource identifier."""

DEPLOYMENT_ID_LENGTH = 32

DEFAULT_TEMPLATE_ID = "default"
DEFAULT_DATA_SIZE = 4096
DEFAULT_ZONE_COUNT = 1

DATA_NODE = "data"
MASTER_NODE = "master"
ML_NODE = "ml"
NODE_TYPES = (DATA_NODE, MASTER_NODE, ML_NODE)


class ResourceKind(str, Enum):
    """Closed set of resource kinds a deployment can hold."""

    ELASTICSEARCH = "elasticsearch"
    KIBANA = "kibana"
    APM = "apm"
    APPSEARCH = "appsearch"

    @classmethod
    def parse(cls, value: "str | ResourceKind") -> "ResourceKind":
        """Return the kind named by value, raising UnsupportedKindError otherwise."""
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedKindError(str(value)) from None

    @property
    def is_stateless(self) -> bool:
        return self is not ResourceKind.ELASTICSEARCH


def validate_deployment_id(deployment_id: str | None) -> InvalidDeploymentIdError | None:
    """
    Check a deployment or resource id.

    Returns the error instead of raising it, so callers can collect every
    parameter fault into a MultiError.
    """
    if deployment_id is None or len(deployment_id) != DEPLOYMENT_ID_LENGTH:
        return InvalidDeploymentIdError(deployment_id or "")
    return None


@dataclass
class ResourceRef:
    """
    A resource within a deployment.

    Attributes:
        kind: Resource kind.
        ref_id: Short stable name, unique per kind within the deployment.
        resource_id: The 32 character resource id.
    """

    kind: ResourceKind
    ref_id: str
    resource_id: str = ""


@dataclass
class ResourceParams:
    """
    Parameters addressing one resource of a deployment by ref id.

    Attributes:
        deployment_id: Owning deployment.
        kind: Resource kind.
        ref_id: Resource ref id; some operations discover it when empty.
    """

    deployment_id: DeploymentId
    kind: ResourceKind | str
    ref_id: str = ""

    def validate(self, require_ref_id: bool = True) -> None:
        """Raise a MultiError holding every fault in these parameters."""
        merr = MultiError()
        merr.append(validate_deployment_id(self.deployment_id))
        if not self.kind:
            merr.append(ParameterError("deployment resource type cannot be empty"))
        else:
            try:
                self.kind = ResourceKind.parse(self.kind)
            except UnsupportedKindError as e:
                merr.append(e)
        if require_ref_id and not self.ref_id:
            merr.append(EmptyRefIdError())
        merr.raise_if_any()


class TopologyElement(BaseModel):
    """
    A requested topology element.

    Attributes:
        name: Node role, one of "data", "master" or "ml".
        size: Memory size in MB.
        zone_count: Number of availability zones.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    size: int = 0
    zone_count: int = DEFAULT_ZONE_COUNT

    @classmethod
    def parse(cls, raw: str) -> "TopologyElement":
        """Decode a JSON encoded element such as '{"name":"data","size":2048}'."""
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise ParameterError(f"failed unpacking raw topology: {e}") from e

    def validate_element(self) -> MultiError | None:
        merr = MultiError()
        if not self.name:
            merr.append(ParameterError("deployment topology: name cannot be empty"))
        elif self.name not in NODE_TYPES:
            merr.append(
                ParameterError(
                    f'deployment topology: name "{self.name}" is not one of {", ".join(NODE_TYPES)}'
                )
            )
        if self.size <= 0:
            merr.append(ParameterError("deployment topology: size cannot be empty"))
        if self.zone_count < 0:
            merr.append(ParameterError("deployment topology: zone count cannot be negative"))
        return merr.error_or_none()


def validate_sizing(size: int, zone_count: int, subject: str) -> MultiError | None:
    """Reject negative size or zone count overrides. Zero means "use the default"."""
    merr = MultiError()
    if size < 0:
        merr.append(ParameterError(f"{subject}: size cannot be negative"))
    if zone_count < 0:
        merr.append(ParameterError(f"{subject}: zone count cannot be negative"))
    return merr.error_or_none()


@dataclass
class SimpleSpec:
    """
    Simplified description of a resource to create or update.

    Zero values mean "use the template default" for size and zone_count.

    Attributes:
        region: Target region, required.
        deployment_id: Deployment to attach stateless resources to.
        name: Display name.
        version: Stack version; discovered when empty.
        template_id: Deployment template; "default" or discovered when empty.
        ref_id: Ref id of the resource being built; per-kind default when empty.
        elasticsearch_ref_id: Ref id of the Elasticsearch resource stateless
            resources attach to; discovered when empty.
        size: Memory size in MB overriding every topology element.
        zone_count: Zone count overriding every topology element.
        topology: Requested Elasticsearch topology elements.
    """

    region: str = ""
    deployment_id: DeploymentId = ""
    name: str = ""
    version: str = ""
    template_id: str = ""
    ref_id: str = ""
    elasticsearch_ref_id: str = ""
    size: int = 0
    zone_count: int = 0
    topology: list[TopologyElement] = field(default_factory=list)


@dataclass
class ReapplyOverrides:
    """
    User selected overrides applied to the transient block of a reapplied plan.

    Change strategies are mutually exclusive. ``default`` may only be
    combined with non strategy overrides.

    The skip_* fields are tri-state: None leaves the safe default in place.
    """

    hide_plan: bool = False

    default: bool = False
    rolling: bool = False
    grow_and_shrink: bool = False
    rolling_grow_and_shrink: bool = False
    rolling_all: bool = False

    reallocate: bool = False
    extended_maintenance: bool = False
    override_failsafe: bool = False
    skip_snapshot: bool | None = None
    skip_data_migration: bool | None = None
    skip_post_upgrade_steps: bool | None = None
    skip_upgrade_checker: bool | None = None

    def selected_strategies(self) -> list[str]:
        names = (
            "default",
            "rolling",
            "rolling_all",
            "grow_and_shrink",
            "rolling_grow_and_shrink",
        )
        return [name for name in names if getattr(self, name)]

    def validate(self) -> MultiError | None:
        """Collect every fault of these overrides without any I/O."""
        merr = MultiError()
        if len(self.selected_strategies()) > 1:
            merr.append(MixedStrategiesError())
        if self.skip_data_migration and self.reallocate:
            merr.append(InvalidTransientError())
        return merr.error_or_none()


@dataclass
class TrackTask:
    """
    One resource to follow until its pending plan finishes.

    Attributes:
        resource_id: The 32 character resource id.
        kind: Resource kind.
    """

    resource_id: str
    kind: ResourceKind
