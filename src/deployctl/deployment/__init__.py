"""
Deployment orchestration.

This module provides the orchestration layer on top of CloudClient:
- resolve: Discover template and Elasticsearch ref id of a deployment
- build_elasticsearch, build_stateless, build_deployment: Payload builders
- PlanReapplyEngine: Reapply the latest plan attempt of a resource
- ChangeTracker: Follow plan changes of many resources concurrently
- deployments: Deployment level create, update, delete, show, resync
- resources: Resource lifecycle and plan operations
"""

from deployctl.deployment import deployments, resources
from deployctl.deployment.payload import (
    DeploymentSpec,
    StatelessSizing,
    build_deployment,
    build_elasticsearch,
    build_stateless,
)
from deployctl.deployment.reapply import PlanReapplyEngine, compute_transient
from deployctl.deployment.stack import latest_stack_version
from deployctl.deployment.template import resolve
from deployctl.deployment.topology import parse_topology
from deployctl.deployment.tracking import ChangeTracker, TrackFrequency

__all__ = [
    "deployments",
    "resources",
    "DeploymentSpec",
    "StatelessSizing",
    "build_deployment",
    "build_elasticsearch",
    "build_stateless",
    "PlanReapplyEngine",
    "compute_transient",
    "latest_stack_version",
    "resolve",
    "parse_topology",
    "ChangeTracker",
    "TrackFrequency",
]
