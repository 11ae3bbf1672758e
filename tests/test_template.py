"""Tests for template and ref id discovery from a running deployment."""

import pytest

from conftest import DEPLOYMENT_ID
from deployctl.deployment.template import get_deployment_info, resolve
from deployctl.exceptions import InvalidDeploymentIdError, MultiError, TemplateUnavailableError
from deployctl.types import SimpleSpec


class TestResolve:
    """Tests for resolve."""

    @pytest.mark.asyncio
    async def test_complete_spec_makes_no_request(self, make_client):
        client, transport = make_client()
        spec = SimpleSpec(deployment_id=DEPLOYMENT_ID, template_id="io", elasticsearch_ref_id="es")

        resolved = await resolve(client, spec)

        assert resolved is spec
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_fills_missing_fields(self, make_client, deployment_response):
        client, transport = make_client({f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response}})
        spec = SimpleSpec(deployment_id=DEPLOYMENT_ID, region="ece-region")

        resolved = await resolve(client, spec)

        assert resolved.template_id == "default"
        assert resolved.elasticsearch_ref_id == "main-elasticsearch"
        assert resolved.version == ""
        assert spec.template_id == ""
        params = transport.requests[0].url.params
        assert params["enrich_with_template"] == "true"
        assert params["convert_legacy_plans"] == "true"

    @pytest.mark.asyncio
    async def test_given_values_win(self, make_client, deployment_response):
        client, _ = make_client({f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response}})
        spec = SimpleSpec(deployment_id=DEPLOYMENT_ID, template_id="hot-warm")

        resolved = await resolve(client, spec)

        assert resolved.template_id == "hot-warm"
        assert resolved.elasticsearch_ref_id == "main-elasticsearch"

    @pytest.mark.asyncio
    async def test_inherits_version(self, make_client, deployment_response):
        """A missing version alone triggers the lookup when inheriting."""
        client, transport = make_client({f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response}})
        spec = SimpleSpec(deployment_id=DEPLOYMENT_ID, template_id="io", elasticsearch_ref_id="es")

        resolved = await resolve(client, spec, inherit_version=True)

        assert resolved.version == "7.4.2"
        assert resolved.template_id == "io"
        assert len(transport.requests) == 1


class TestGetDeploymentInfo:
    """Tests for get_deployment_info."""

    @pytest.mark.asyncio
    async def test_no_template_in_plans(self, make_client, deployment_response):
        plan = deployment_response["resources"]["elasticsearch"][0]["info"]["plan_info"]["current"]["plan"]
        del plan["deployment_template"]
        client, _ = make_client({f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response}})

        with pytest.raises(TemplateUnavailableError) as exc_info:
            await get_deployment_info(client, DEPLOYMENT_ID)

        assert exc_info.value.deployment_id == DEPLOYMENT_ID

    @pytest.mark.asyncio
    async def test_invalid_id_and_missing_client(self):
        with pytest.raises(MultiError) as exc_info:
            await get_deployment_info(None, "abc")

        assert len(exc_info.value) == 2
        assert isinstance(exc_info.value.errors[1], InvalidDeploymentIdError)
