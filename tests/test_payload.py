"""
Tests for deployment payload construction.

These tests verify the payload builder correctly:
- Attaches stateless resources to a discovered Elasticsearch ref id
- Merges requested topology elements with the template topology
- Discovers the stack version only when none is given
- Reports every input fault at once, before any request
"""

import io

import pytest

from conftest import DEPLOYMENT_ID
from deployctl.deployment.payload import (
    DeploymentSpec,
    StatelessSizing,
    build_deployment,
    build_elasticsearch,
    build_stateless,
    requested_topology,
)
from deployctl.deployment.topology import parse_topology
from deployctl.exceptions import (
    MissingAPIError,
    MultiError,
    TemplateKindMissingError,
    UnsupportedKindError,
)
from deployctl.types import SimpleSpec, TopologyElement

TEMPLATE_PATH = "GET /platform/configuration/templates/default"


class TestRequestedTopology:
    def test_default_data_element(self):
        assert requested_topology(SimpleSpec()) == [TopologyElement(name="data", size=4096, zone_count=1)]

    def test_default_element_sized_by_spec(self):
        assert requested_topology(SimpleSpec(size=2048, zone_count=3)) == [
            TopologyElement(name="data", size=2048, zone_count=3)
        ]

    def test_spec_size_overrides_every_element(self):
        spec = SimpleSpec(
            size=8192,
            topology=[TopologyElement(name="data", size=1024, zone_count=2), TopologyElement(name="ml", size=1024)],
        )

        assert [(e.size, e.zone_count) for e in requested_topology(spec)] == [(8192, 2), (8192, 1)]


class TestBuildStateless:
    """Tests for build_stateless."""

    @pytest.mark.asyncio
    async def test_apm_attached_to_discovered_elasticsearch(
        self, make_client, deployment_response, template_response
    ):
        """Template and Elasticsearch ref id are discovered from the deployment."""
        client, transport = make_client(
            {
                f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response},
                TEMPLATE_PATH: {"json": template_response},
            }
        )
        spec = SimpleSpec(
            deployment_id=DEPLOYMENT_ID,
            version="7.4.2",
            region="ece-region",
            size=512,
            zone_count=1,
        )

        payload = await build_stateless(client, "apm", spec)

        assert payload.ref_id == "main-apm"
        assert payload.elasticsearch_cluster_ref_id == "main-elasticsearch"
        assert payload.region == "ece-region"
        assert len(payload.plan.cluster_topology) == 1
        assert payload.plan.cluster_topology[0].size.value == 512
        assert payload.plan.cluster_topology[0].zone_count == 1
        assert payload.plan.apm.version == "7.4.2"
        assert transport.calls() == [f"GET /deployments/{DEPLOYMENT_ID}", TEMPLATE_PATH]

    @pytest.mark.asyncio
    async def test_template_defaults_and_inherited_version(
        self, make_client, deployment_response, template_response
    ):
        client, _ = make_client(
            {
                f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response},
                TEMPLATE_PATH: {"json": template_response},
            }
        )
        spec = SimpleSpec(deployment_id=DEPLOYMENT_ID, region="ece-region", ref_id="my-kibana")

        payload = await build_stateless(client, "kibana", spec)

        assert payload.ref_id == "my-kibana"
        assert payload.plan.cluster_topology[0].size.value == 1024
        assert payload.plan.cluster_topology[0].instance_configuration_id == "kibana"
        assert payload.plan.kibana.version == "7.4.2"
        assert payload.plan.apm is None

    @pytest.mark.asyncio
    async def test_template_without_kind(self, make_client, template_response):
        client, _ = make_client({TEMPLATE_PATH: {"json": template_response}})
        spec = SimpleSpec(
            deployment_id=DEPLOYMENT_ID,
            region="ece-region",
            template_id="default",
            elasticsearch_ref_id="main-elasticsearch",
            version="7.4.2",
        )

        with pytest.raises(TemplateKindMissingError) as exc_info:
            await build_stateless(client, "appsearch", spec)

        assert exc_info.value.kind == "appsearch"

    @pytest.mark.asyncio
    async def test_elasticsearch_rejected(self, make_client):
        client, transport = make_client()

        with pytest.raises(UnsupportedKindError):
            await build_stateless(client, "elasticsearch", SimpleSpec(deployment_id=DEPLOYMENT_ID, region="r"))

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_faults_reported_together(self):
        with pytest.raises(MultiError) as exc_info:
            await build_stateless(None, "kibana", SimpleSpec(deployment_id="short"))

        messages = [str(e) for e in exc_info.value.errors]
        assert messages == [
            "api reference is required for command",
            'id "short" is invalid',
            "deployment topology: region cannot be empty",
        ]

    @pytest.mark.asyncio
    async def test_negative_size_rejected(self, make_client):
        client, transport = make_client()
        spec = SimpleSpec(deployment_id=DEPLOYMENT_ID, region="ece-region", size=-512)

        with pytest.raises(MultiError, match="deployment apm: size cannot be negative"):
            await build_stateless(client, "apm", spec)

        assert transport.requests == []


class TestBuildElasticsearch:
    """Tests for build_elasticsearch."""

    @pytest.mark.asyncio
    async def test_three_raw_elements(self, make_client, template_response):
        client, transport = make_client({TEMPLATE_PATH: {"json": template_response}})
        spec = SimpleSpec(
            region="ece-region",
            version="7.4.2",
            topology=parse_topology(
                [
                    '{"name": "data", "size": 2048, "zone_count": 2}',
                    '{"name": "ml", "size": 4096, "zone_count": 1}',
                    '{"name": "master", "size": 1024, "zone_count": 1}',
                ]
            ),
        )

        payload = await build_elasticsearch(client, spec)

        topology = payload.plan.cluster_topology
        assert [(e.size.value, e.zone_count) for e in topology] == [(2048, 2), (4096, 1), (1024, 1)]
        assert topology[0].node_type.data is True
        assert topology[1].node_type.ml is True
        assert topology[2].node_type.master is True
        assert topology[2].node_type.data is False
        assert payload.ref_id == "elasticsearch"
        assert payload.plan.elasticsearch.version == "7.4.2"
        assert payload.plan.deployment_template.id == "default"
        assert transport.calls() == [TEMPLATE_PATH]

    @pytest.mark.asyncio
    async def test_discovers_latest_version(self, make_client, template_response):
        client, _ = make_client(
            {
                "GET /platform/configuration/stacks": {
                    "json": {"stacks": [{"version": "6.4.2"}, {"version": "7.4.2"}, {"version": "5.4.2"}]}
                },
                TEMPLATE_PATH: {"json": template_response},
            }
        )
        writer = io.StringIO()

        payload = await build_elasticsearch(client, SimpleSpec(region="ece-region"), writer)

        assert payload.plan.elasticsearch.version == "7.4.2"
        assert "Obtained latest stack version: 7.4.2" in writer.getvalue()
        assert [e.instance_configuration_id for e in payload.plan.cluster_topology] == ["data.default"]
        assert payload.plan.cluster_topology[0].size.value == 4096

    @pytest.mark.asyncio
    async def test_faults_reported_together(self):
        spec = SimpleSpec(topology=[TopologyElement(name="", size=0)])

        with pytest.raises(MultiError) as exc_info:
            await build_elasticsearch(None, spec)

        assert len(exc_info.value) == 4
        assert isinstance(exc_info.value.errors[0], MissingAPIError)

    @pytest.mark.asyncio
    async def test_negative_sizing_rejected(self, make_client):
        client, transport = make_client()

        with pytest.raises(MultiError) as exc_info:
            await build_elasticsearch(client, SimpleSpec(region="ece-region", size=-5, zone_count=-1))

        assert [str(e) for e in exc_info.value.errors] == [
            "deployment topology: size cannot be negative",
            "deployment topology: zone count cannot be negative",
        ]
        assert transport.requests == []


class TestBuildDeployment:
    """Tests for build_deployment."""

    @pytest.mark.asyncio
    async def test_stateless_resources_reference_elasticsearch(self, make_client, template_response):
        client, transport = make_client({TEMPLATE_PATH: {"json": template_response}})
        spec = DeploymentSpec(
            region="ece-region",
            name="logging",
            version="7.4.2",
            elasticsearch_ref_id="main-elasticsearch",
            elasticsearch_size=2048,
            kibana=StatelessSizing(size=2048),
            apm=StatelessSizing(),
        )

        request = await build_deployment(client, spec)

        resources = request.resources
        assert request.name == "logging"
        assert resources.elasticsearch[0].plan.cluster_topology[0].size.value == 2048
        assert resources.kibana[0].ref_id == "main-kibana"
        assert resources.kibana[0].elasticsearch_cluster_ref_id == "main-elasticsearch"
        assert resources.kibana[0].plan.cluster_topology[0].size.value == 2048
        assert resources.apm[0].plan.apm.version == "7.4.2"
        assert resources.apm[0].plan.cluster_topology[0].size.value == 512
        assert resources.appsearch is None
        assert transport.calls() == [TEMPLATE_PATH]

    @pytest.mark.asyncio
    async def test_missing_region(self, make_client):
        client, transport = make_client()

        with pytest.raises(MultiError, match="region cannot be empty"):
            await build_deployment(client, DeploymentSpec(region=""))

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_negative_stateless_sizing(self, make_client):
        client, transport = make_client()
        spec = DeploymentSpec(region="ece-region", version="7.4.2", apm=StatelessSizing(zone_count=-2))

        with pytest.raises(MultiError) as exc_info:
            await build_deployment(client, spec)

        assert [str(e) for e in exc_info.value.errors] == ["deployment apm: zone count cannot be negative"]
        assert transport.requests == []
