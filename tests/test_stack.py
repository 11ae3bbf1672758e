"""Tests for stack version discovery."""

import io

import pytest

from deployctl.deployment.stack import latest_stack_version, sort_versions
from deployctl.exceptions import MissingAPIError, VersionDiscoveryError


def stacks(*versions: str) -> dict:
    return {"GET /platform/configuration/stacks": {"json": {"stacks": [{"version": v} for v in versions]}}}


class TestSortVersions:
    def test_semantic_order(self):
        """7.10.0 is newer than 7.9.3 even though it sorts lower as text."""
        assert sort_versions(["7.9.3", "7.10.0", "6.8.1"]) == ["7.10.0", "7.9.3", "6.8.1"]

    def test_pre_release_below_release(self):
        assert sort_versions(["7.0.0-beta1", "7.0.0", "6.8.1"]) == ["7.0.0", "7.0.0-beta1", "6.8.1"]

    def test_unparseable_last(self):
        assert sort_versions(["latest", "5.4.2"]) == ["5.4.2", "latest"]


class TestLatestStackVersion:
    """Tests for latest_stack_version."""

    @pytest.mark.asyncio
    async def test_picks_newest(self, make_client):
        """The newest version wins whatever the server order, and a notice is written."""
        client, _ = make_client(stacks("6.4.2", "7.4.2", "5.4.2"))
        writer = io.StringIO()

        version = await latest_stack_version(client, writer=writer)

        assert version == "7.4.2"
        assert writer.getvalue() == "Obtained latest stack version: 7.4.2\n"

    @pytest.mark.asyncio
    async def test_given_version_makes_no_request(self, make_client):
        client, transport = make_client()
        writer = io.StringIO()

        version = await latest_stack_version(client, "6.8.1", writer)

        assert version == "6.8.1"
        assert transport.requests == []
        assert writer.getvalue() == ""

    @pytest.mark.asyncio
    async def test_empty_list(self, make_client):
        client, _ = make_client(stacks())

        with pytest.raises(VersionDiscoveryError, match="seemingly empty"):
            await latest_stack_version(client)

    @pytest.mark.asyncio
    async def test_remote_failure(self, make_client):
        client, _ = make_client({"GET /platform/configuration/stacks": {"status_code": 502}})

        with pytest.raises(VersionDiscoveryError) as exc_info:
            await latest_stack_version(client)

        assert str(exc_info.value) == "version discovery: failed to obtain stack list, please specify a version"
        assert exc_info.value.tag == "VersionDiscoveryFailed"

    @pytest.mark.asyncio
    async def test_missing_client(self):
        with pytest.raises(MissingAPIError):
            await latest_stack_version(None)
