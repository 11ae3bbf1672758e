"""
Elasticsearch topology construction.

A requested topology is a list of TopologyElement values naming a node role
("data", "master" or "ml") with a size and zone count. It is merged with the
cluster_topology of a deployment template: every template element playing
the requested role is copied and its size and zone count overridden with
the requested non-zero values.

Role matching on the template's boolean node_type flags:
- data: data is true
- master: data is false or unset, and master is true
- ml: data is false or unset, and ml is true
"""

from deployctl.exceptions import MultiError, ParameterError, TopologyUnsatisfiableError
from deployctl.models import ClusterTopologyElement, ElasticsearchNodeType, TopologySize
from deployctl.types import (
    DATA_NODE,
    DEFAULT_DATA_SIZE,
    DEFAULT_ZONE_COUNT,
    MASTER_NODE,
    ML_NODE,
    TopologyElement,
)


def default_topology_element(size: int = 0, zone_count: int = 0) -> TopologyElement:
    """The element used when no topology is requested, sized by any non-zero overrides."""
    return TopologyElement(
        name=DATA_NODE,
        size=size if size > 0 else DEFAULT_DATA_SIZE,
        zone_count=zone_count if zone_count > 0 else DEFAULT_ZONE_COUNT,
    )


def parse_topology(raw_elements: list[str]) -> list[TopologyElement]:
    """
    Decode JSON encoded topology elements.

    Example:
        parse_topology(['{"name": "data", "size": 2048, "zone_count": 2}'])

    Raises:
        ParameterError: On undecodable input.
        MultiError: When a decoded element has an unknown role or no size.
    """
    topology = []
    for raw in raw_elements:
        element = TopologyElement.parse(raw)
        err = element.validate_element()
        if err is not None:
            raise err
        topology.append(element)
    return topology


def validate_topology(topology: list[TopologyElement]) -> MultiError | None:
    """Collect element faults, each prefixed with its position."""
    merr = MultiError()
    for i, element in enumerate(topology):
        err = element.validate_element()
        if err is None:
            continue
        for fault in err.errors:
            merr.append(ParameterError(f"topology element [{i}]: {fault}"))
    return merr.error_or_none()


def match_node_type(got: ElasticsearchNodeType | None, name: str) -> bool:
    """Whether a template element with role flags ``got`` plays role ``name``."""
    if got is None:
        return False

    data_false = not got.data
    if name == DATA_NODE:
        return got.data is True
    if name == MASTER_NODE:
        return data_false and got.master is True
    if name == ML_NODE:
        return data_false and got.ml is True
    return False


def build_elasticsearch_topology(
    cluster_topology: list[ClusterTopologyElement],
    topology: list[TopologyElement],
    template_id: str,
) -> list[ClusterTopologyElement]:
    """
    Merge a requested topology with a template's cluster topology.

    Template elements are copied, never modified. A requested element
    matching several template elements emits one copy per match, in
    requested order then template order.

    Raises:
        TopologyUnsatisfiableError: When nothing in the template matches.
    """
    result = []
    for desired in topology:
        for element in cluster_topology:
            if not match_node_type(element.node_type, desired.name):
                continue

            merged = element.model_copy(deep=True)
            if desired.size > 0:
                if merged.size is None:
                    merged.size = TopologySize()
                merged.size.value = desired.size
            if desired.zone_count > 0:
                merged.zone_count = desired.zone_count
            result.append(merged)

    if not result:
        raise TopologyUnsatisfiableError(
            [element.model_dump() for element in topology], template_id
        )

    return result
