"""
Stack version discovery.

When no version is requested for a new Elasticsearch resource, the latest
version known to the platform is used. The platform does not guarantee any
ordering of its stack list, so versions are sorted here in descending
semantic version order.
"""

import logging
import re
from typing import TextIO

import httpx

from deployctl.api.client import CloudClient
from deployctl.exceptions import MissingAPIError, RemoteError, VersionDiscoveryError

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-(.+))?$")


def version_key(version: str) -> tuple:
    """
    Sort key ordering versions semantically.

    Pre-release versions ("7.0.0-beta1") sort below their release, and
    unparseable strings sort below everything else.
    """
    match = _VERSION_RE.match(version.strip())
    if match is None:
        return (-1, -1, -1, 0, version)
    major, minor, patch, pre = match.groups()
    return (int(major), int(minor or 0), int(patch or 0), 0 if pre else 1, pre or "")


def sort_versions(versions: list[str]) -> list[str]:
    """Return versions newest first."""
    return sorted(versions, key=version_key, reverse=True)


async def latest_stack_version(
    client: CloudClient | None,
    version: str = "",
    writer: TextIO | None = None,
) -> str:
    """
    Return version when set, otherwise the newest stack version of the platform.

    Writes "Obtained latest stack version: <v>" to writer when a version
    was discovered.

    Raises:
        MissingAPIError: Without a client.
        VersionDiscoveryError: When the stack list is unavailable or empty.
    """
    if client is None:
        raise MissingAPIError()

    if version:
        return version

    try:
        stacks = await client.get_stacks()
    except (RemoteError, httpx.HTTPError) as e:
        raise VersionDiscoveryError("failed to obtain stack list, please specify a version") from e

    if not stacks.stacks:
        raise VersionDiscoveryError("stack list is seemingly empty, something is terribly wrong")

    latest = sort_versions([s.version for s in stacks.stacks])[0]
    logger.info(f"Discovered latest stack version {latest}")
    if writer is not None:
        print(f"Obtained latest stack version: {latest}", file=writer)

    return latest
