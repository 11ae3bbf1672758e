"""Tests for resource lifecycle operations."""

import pytest

from conftest import APM_ID, DEPLOYMENT_ID, ES_ID, KIBANA_ID
from deployctl.deployment import resources
from deployctl.exceptions import (
    EmptyRefIdError,
    MultiError,
    NotStoppedError,
    ParameterError,
    UnsupportedKindError,
)
from deployctl.models import ResourcePlan
from deployctl.types import ResourceKind, ResourceParams


def params(kind: str = "kibana", ref_id: str = "main-kibana") -> ResourceParams:
    return ResourceParams(deployment_id=DEPLOYMENT_ID, kind=kind, ref_id=ref_id)


class TestResourceParams:
    def test_faults_collected(self):
        with pytest.raises(MultiError) as exc_info:
            ResourceParams(deployment_id="nope", kind="", ref_id="").validate()

        messages = [str(e) for e in exc_info.value.errors]
        assert messages == [
            'id "nope" is invalid',
            "deployment resource type cannot be empty",
            "deployment resource ref id cannot be empty",
        ]

    def test_kind_normalised(self):
        p = params("apm", "main-apm")

        p.validate()

        assert p.kind is ResourceKind.APM

    def test_ref_id_optional(self):
        ResourceParams(deployment_id=DEPLOYMENT_ID, kind="kibana").validate(require_ref_id=False)


class TestDeleteCluster:
    """Tests for delete_cluster, which only deletes stopped clusters."""

    @pytest.mark.asyncio
    async def test_not_stopped(self, make_client):
        client, transport = make_client({f"GET /clusters/apm/{APM_ID}": {"json": {"status": "started"}}})

        with pytest.raises(NotStoppedError) as exc_info:
            await resources.delete_cluster(client, "apm", APM_ID)

        assert str(exc_info.value) == "apm delete: deployment must be stopped"
        assert exc_info.value.status == "started"
        assert transport.calls() == [f"GET /clusters/apm/{APM_ID}"]

    @pytest.mark.asyncio
    async def test_stopped(self, make_client):
        client, transport = make_client(
            {
                f"GET /clusters/apm/{APM_ID}": {"json": {"status": "stopped"}},
                f"DELETE /clusters/apm/{APM_ID}": {"json": {}},
            }
        )

        await resources.delete_cluster(client, "apm", APM_ID)

        assert transport.calls()[-1] == f"DELETE /clusters/apm/{APM_ID}"


class TestDeploymentResources:
    """Tests for operations addressed by deployment id, kind and ref id."""

    @pytest.mark.asyncio
    async def test_shutdown(self, make_client):
        path = f"POST /deployments/{DEPLOYMENT_ID}/kibana/main-kibana/_shutdown"
        client, transport = make_client({path: {"json": {}}})

        await resources.shutdown(client, params(), skip_snapshot=True)

        assert transport.calls() == [path]
        query = transport.requests[0].url.params
        assert query["skip_snapshot"] == "true"
        assert query["hide"] == "false"

    @pytest.mark.asyncio
    async def test_stop_listed_instances(self, make_client):
        path = f"POST /deployments/{DEPLOYMENT_ID}/kibana/main-kibana/instances/instance-0,instance-1/_stop"
        client, transport = make_client({path: {"json": {}}})

        await resources.stop(
            client, params(), all_instances=False, instance_ids=["instance-0", "instance-1"], ignore_missing=True
        )

        assert transport.calls() == [path]
        assert transport.requests[0].url.params["ignore_missing"] == "true"

    @pytest.mark.asyncio
    async def test_start_all_instances(self, make_client):
        path = f"POST /deployments/{DEPLOYMENT_ID}/kibana/main-kibana/instances/_start"
        client, transport = make_client({path: {"json": {}}})

        await resources.start(client, params())

        assert transport.calls() == [path]

    @pytest.mark.asyncio
    async def test_maintenance_mode(self, make_client):
        path = (
            f"POST /deployments/{DEPLOYMENT_ID}/elasticsearch/main-elasticsearch/"
            "instances/instance-2/maintenance-mode/_start"
        )
        client, transport = make_client({path: {"json": {}}})

        await resources.start_maintenance(
            client, params("elasticsearch", "main-elasticsearch"), all_instances=False, instance_ids=["instance-2"]
        )

        assert transport.calls() == [path]

    @pytest.mark.asyncio
    async def test_instances_required(self, make_client):
        client, transport = make_client()

        with pytest.raises(MultiError, match="deployment stop: at least 1 instance ID must be provided"):
            await resources.stop(client, params(), all_instances=False)

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_delete_stateless_rejects_elasticsearch(self, make_client):
        client, transport = make_client()

        with pytest.raises(MultiError) as exc_info:
            await resources.delete_stateless(client, params("elasticsearch", "main-elasticsearch"))

        assert isinstance(exc_info.value.errors[0], UnsupportedKindError)
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_delete_stateless(self, make_client):
        path = f"DELETE /deployments/{DEPLOYMENT_ID}/apm/main-apm"
        client, transport = make_client({path: {"json": {}}})

        await resources.delete_stateless(client, params("apm", "main-apm"))

        assert transport.calls() == [path]

    @pytest.mark.asyncio
    async def test_missing_ref_id(self, make_client):
        client, _ = make_client()

        with pytest.raises(MultiError) as exc_info:
            await resources.cancel_pending_plan(client, params(ref_id=""))

        assert isinstance(exc_info.value.errors[0], EmptyRefIdError)

    @pytest.mark.asyncio
    async def test_upgrade_discovers_ref_id(self, make_client, deployment_response):
        upgrade_path = f"POST /deployments/{DEPLOYMENT_ID}/kibana/main-kibana/_upgrade"
        client, transport = make_client(
            {
                f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response},
                upgrade_path: {"json": {}},
            }
        )

        await resources.upgrade(client, params(ref_id=""))

        assert transport.calls() == [f"GET /deployments/{DEPLOYMENT_ID}", upgrade_path]

    @pytest.mark.asyncio
    async def test_upgrade_kind_not_present(self, make_client, deployment_response):
        client, _ = make_client({f"GET /deployments/{DEPLOYMENT_ID}": {"json": deployment_response}})

        with pytest.raises(ParameterError, match="resource kind apm is not available"):
            await resources.upgrade(client, params("apm", ""))


class TestClusters:
    """Tests for operations addressed by kind and resource id."""

    @pytest.mark.asyncio
    async def test_restart(self, make_client):
        path = f"POST /clusters/elasticsearch/{ES_ID}/_restart"
        client, transport = make_client({path: {"json": {}}})

        await resources.restart(client, "elasticsearch", ES_ID, cancel_pending=True)

        assert transport.calls() == [path]
        assert transport.requests[0].url.params["cancel_pending"] == "true"

    @pytest.mark.asyncio
    async def test_invalid_address(self):
        with pytest.raises(MultiError) as exc_info:
            await resources.restart(None, "beats", "x")

        assert [e.tag for e in exc_info.value.errors] == ["MissingAPI", "InvalidDeploymentId", "UnsupportedKind"]

    @pytest.mark.asyncio
    async def test_validate_only_elasticsearch(self, make_client):
        path = f"PUT /clusters/elasticsearch/{ES_ID}/plan"
        client, transport = make_client({path: {"json": {}}})

        await resources.update_plan(client, "elasticsearch", ES_ID, ResourcePlan(), validate_only=True)

        assert transport.requests[0].url.params["validate_only"] == "true"

    @pytest.mark.asyncio
    async def test_validate_only_stateless_rejected(self, make_client):
        client, transport = make_client()

        with pytest.raises(UnsupportedKindError, match="validate only plans"):
            await resources.update_plan(client, "kibana", KIBANA_ID, ResourcePlan(), validate_only=True)

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_plan_history(self, make_client):
        path = f"GET /clusters/kibana/{KIBANA_ID}/plan/activity"
        client, _ = make_client(
            {path: {"json": {"history": [{"plan_attempt_id": "a"}, {"plan_attempt_id": "b"}]}}}
        )

        history = await resources.list_plan_history(client, "kibana", KIBANA_ID)

        assert [attempt.plan_attempt_id for attempt in history] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_resync_clusters(self, make_client):
        client, transport = make_client({"POST /clusters/apm/_resync": {"json": {}}})

        await resources.resync_clusters(client, "apm")

        assert transport.calls() == ["POST /clusters/apm/_resync"]

    @pytest.mark.asyncio
    async def test_shutdown_cluster_hidden(self, make_client):
        path = f"POST /clusters/kibana/{KIBANA_ID}/_shutdown"
        client, transport = make_client({path: {"json": {}}})

        await resources.shutdown_cluster(client, "kibana", KIBANA_ID, hide=True)

        assert transport.calls() == [path]
        assert transport.requests[0].url.params["hide"] == "true"

    @pytest.mark.asyncio
    async def test_upgrade_and_resync_cluster(self, make_client):
        upgrade_path = f"POST /clusters/apm/{APM_ID}/_upgrade"
        resync_path = f"POST /clusters/apm/{APM_ID}/_resync"
        client, transport = make_client({upgrade_path: {"json": {}}, resync_path: {"json": {}}})

        await resources.upgrade_cluster(client, "apm", APM_ID)
        await resources.resync_cluster(client, "apm", APM_ID)

        assert transport.calls() == [upgrade_path, resync_path]

    @pytest.mark.asyncio
    async def test_cancel_plan(self, make_client):
        path = f"DELETE /clusters/elasticsearch/{ES_ID}/plan/pending"
        client, transport = make_client({path: {"json": {}}})

        await resources.cancel_plan(client, ResourceKind.ELASTICSEARCH, ES_ID)

        assert transport.calls() == [path]
