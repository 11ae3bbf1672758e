"""Shared fixtures: a recording mock transport and canned API responses."""

import json

import httpx
import pytest
from httpx import Request, Response

from deployctl.api.client import CloudClient

DEPLOYMENT_ID = "d324608c97154bdba2dff97511d40368"
ES_ID = "3531aaf988594efa87c1aabb7caed337"
KIBANA_ID = "9ce8ef86d8dc4e3a85bf1a2d7a43d0a7"
APM_ID = "5a3c1fe1e3a64ac0a02dd49e5e9c0d2e"
APPSEARCH_ID = "7b8d62bc1b9a4a6f9c4d6a1f3e5b2c10"


class MockTransport(httpx.AsyncBaseTransport):
    """
    Mock transport recording every request.

    Responses are keyed by "METHOD /path". A value is either one response
    dict (with optional 'status_code' and 'json' keys, or an 'error' to
    raise), served on every call, or a list of them served in order, the
    last one repeating.
    """

    def __init__(self, responses: dict[str, dict | list[dict]] | None = None):
        self._responses = {
            key: list(value) if isinstance(value, list) else [value]
            for key, value in (responses or {}).items()
        }
        self.requests: list[Request] = []

    async def handle_async_request(self, request: Request) -> Response:
        self.requests.append(request)
        queue = self._responses.get(f"{request.method} {request.url.path}")
        if not queue:
            return Response(
                status_code=404,
                json={"errors": [{"code": "root.resource_not_found", "message": "not found"}]},
                request=request,
            )
        resp_data = queue.pop(0) if len(queue) > 1 else queue[0]
        if "error" in resp_data:
            raise resp_data["error"]
        return Response(
            status_code=resp_data.get("status_code", 200),
            json=resp_data.get("json", {}),
            request=request,
        )

    def calls(self) -> list[str]:
        """Every request made, as "METHOD /path"."""
        return [f"{r.method} {r.url.path}" for r in self.requests]

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def make_client():
    """Factory building a CloudClient over a MockTransport."""

    def _make(responses: dict | None = None) -> tuple[CloudClient, MockTransport]:
        transport = MockTransport(responses)
        http = httpx.AsyncClient(transport=transport, base_url="http://test")
        return CloudClient(http=http), transport

    return _make


@pytest.fixture
def template_response():
    """A deployment template offering data, master and ml nodes of 1024 MB."""
    return {
        "id": "default",
        "name": "Default",
        "cluster_template": {
            "plan": {
                "elasticsearch": {},
                "cluster_topology": [
                    {
                        "instance_configuration_id": "data.default",
                        "node_type": {"data": True, "master": True, "ingest": True},
                        "size": {"resource": "memory", "value": 1024},
                        "zone_count": 1,
                    },
                    {
                        "instance_configuration_id": "master",
                        "node_type": {"data": False, "master": True, "ingest": False},
                        "size": {"resource": "memory", "value": 1024},
                        "zone_count": 1,
                    },
                    {
                        "instance_configuration_id": "ml",
                        "node_type": {"data": False, "master": False, "ingest": False, "ml": True},
                        "size": {"resource": "memory", "value": 1024},
                        "zone_count": 1,
                    },
                ],
            },
            "kibana": {
                "plan": {
                    "kibana": {},
                    "cluster_topology": [
                        {
                            "instance_configuration_id": "kibana",
                            "size": {"resource": "memory", "value": 1024},
                            "zone_count": 1,
                        }
                    ],
                }
            },
            "apm": {
                "plan": {
                    "apm": {},
                    "cluster_topology": [
                        {
                            "instance_configuration_id": "apm",
                            "size": {"resource": "memory", "value": 512},
                            "zone_count": 1,
                        }
                    ],
                }
            },
        },
    }


@pytest.fixture
def deployment_response():
    """A running deployment whose Elasticsearch plan names its template."""
    return {
        "id": DEPLOYMENT_ID,
        "name": "logging",
        "healthy": True,
        "resources": {
            "elasticsearch": [
                {
                    "id": ES_ID,
                    "ref_id": "main-elasticsearch",
                    "region": "ece-region",
                    "info": {
                        "status": "started",
                        "healthy": True,
                        "plan_info": {
                            "current": {
                                "plan": {
                                    "deployment_template": {"id": "default"},
                                    "elasticsearch": {"version": "7.4.2"},
                                    "cluster_topology": [],
                                }
                            },
                            "history": [],
                        },
                    },
                }
            ],
            "kibana": [
                {
                    "id": KIBANA_ID,
                    "ref_id": "main-kibana",
                    "elasticsearch_cluster_ref_id": "main-elasticsearch",
                    "info": {"status": "started"},
                }
            ],
        },
    }
