"""
deployctl

Command-line control tool for hosted Elasticsearch deployments.
This package provides:

- CloudClient: Async client for the deployment control-plane API
- Payload building: deployment and resource payloads from a SimpleSpec
- Plan reapply: resubmit the latest plan attempt with safe transient settings
- Change tracking: follow plan progress of many resources concurrently
- CLI infrastructure: Typer-based command structure
"""

__version__ = "0.1.0"

from deployctl.api.client import CloudClient, create_http_client
from deployctl.config import Settings
from deployctl.exceptions import DeployctlError, MultiError, RemoteError, TrackingError
from deployctl.types import (
    ReapplyOverrides,
    ResourceKind,
    ResourceParams,
    ResourceRef,
    SimpleSpec,
    TopologyElement,
    TrackTask,
)

__all__ = [
    "CloudClient",
    "create_http_client",
    "Settings",
    "DeployctlError",
    "MultiError",
    "RemoteError",
    "TrackingError",
    "ReapplyOverrides",
    "ResourceKind",
    "ResourceParams",
    "ResourceRef",
    "SimpleSpec",
    "TopologyElement",
    "TrackTask",
]
