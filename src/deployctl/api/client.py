"""
Control-plane API client for deployment orchestration.

This module provides the CloudClient class for calling the deployment
REST API: deployments, per-kind deployment resources, cluster level plan
and lifecycle endpoints, and platform configuration (templates, stacks).

CloudClient receives an injected httpx.AsyncClient with base_url set to the
API root (e.g. https://ece:12443/api/v1). All methods are async and fail
loudly: any non-2xx response raises RemoteError carrying the server body
unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from deployctl.config import Settings
from deployctl.exceptions import RemoteError
from deployctl.models import (
    DeploymentCreateRequest,
    DeploymentCreateResponse,
    DeploymentGetResponse,
    DeploymentTemplateInfo,
    DeploymentUpdateRequest,
    DeploymentUpdateResponse,
    PlansInfo,
    ResourceInfo,
    ResourceInfoBody,
    ResourcePlan,
    StackVersionConfigs,
)

logger = logging.getLogger(__name__)

# Flags sent by GET /deployments/{id} unless the caller overrides them.
DEFAULT_DEPLOYMENT_QUERY: dict[str, Any] = {
    "show_plans": True,
    "show_plan_defaults": False,
    "show_plan_logs": False,
    "show_metadata": False,
    "show_settings": False,
    "enrich_with_template": False,
    "convert_legacy_plans": False,
    "show_system_alerts": 5,
}


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build the authenticated transport used by CloudClient.

    An API key takes precedence over user/password basic auth.
    """
    headers = {"Accept": "application/json"}
    auth = None
    if settings.api_key:
        headers["Authorization"] = f"ApiKey {settings.api_key}"
    elif settings.user:
        auth = httpx.BasicAuth(settings.user, settings.password)

    return httpx.AsyncClient(
        base_url=settings.host,
        headers=headers,
        auth=auth,
        timeout=settings.timeout,
        verify=not settings.insecure,
    )


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass
class CloudClient:
    """
    Deployment API client with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient with base_url set to the API root.

    Example:
        async with create_http_client(settings) as http:
            client = CloudClient(http=http)
            deployment = await client.get_deployment(deployment_id)
            for es in deployment.resources.elasticsearch:
                print(f"{es.ref_id}: {es.info.status}")
    """

    http: httpx.AsyncClient

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        None valued query parameters are omitted.

        Raises:
            RemoteError: On any non-2xx response.
            httpx.HTTPError: On transport failures.
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug(f"{method} {path} params={query}")

        response = await self.http.request(method, path, params=query or None, json=body)
        if not response.is_success:
            raise RemoteError(response.status_code, _decode_body(response))

        if not response.content:
            return {}
        return _decode_body(response)

    # -------------------------------------------------------------------------
    # Deployments
    # -------------------------------------------------------------------------

    async def get_deployment(self, deployment_id: str, **flags: Any) -> DeploymentGetResponse:
        """
        Get a deployment.

        Calls GET /deployments/{id}. Keyword flags override
        DEFAULT_DEPLOYMENT_QUERY, e.g. enrich_with_template=True.
        """
        query = {**DEFAULT_DEPLOYMENT_QUERY, **flags}
        data = await self._request("GET", f"/deployments/{deployment_id}", params=query)
        return DeploymentGetResponse.model_validate(data)

    async def create_deployment(
        self,
        request: DeploymentCreateRequest,
        request_id: str | None = None,
    ) -> DeploymentCreateResponse:
        """Calls POST /deployments."""
        data = await self._request(
            "POST",
            "/deployments",
            params={"request_id": request_id},
            body=request.to_wire(),
        )
        return DeploymentCreateResponse.model_validate(data)

    async def update_deployment(
        self,
        deployment_id: str,
        request: DeploymentUpdateRequest,
        skip_snapshot: bool = False,
        hide_pruned_orphans: bool = False,
    ) -> DeploymentUpdateResponse:
        """Calls PUT /deployments/{id}."""
        data = await self._request(
            "PUT",
            f"/deployments/{deployment_id}",
            params={"skip_snapshot": skip_snapshot, "hide_pruned_orphans": hide_pruned_orphans},
            body=request.to_wire(),
        )
        return DeploymentUpdateResponse.model_validate(data)

    async def delete_deployment(self, deployment_id: str) -> dict[str, Any]:
        """Calls DELETE /deployments/{id}."""
        return await self._request("DELETE", f"/deployments/{deployment_id}")

    async def resync_deployment(self, deployment_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/deployments/{deployment_id}/_resync")

    async def resync_deployments(self) -> dict[str, Any]:
        return await self._request("POST", "/deployments/_resync")

    # -------------------------------------------------------------------------
    # Deployment resources, addressed by ref id
    # -------------------------------------------------------------------------

    async def get_deployment_resource(
        self, deployment_id: str, kind: str, ref_id: str, **flags: Any
    ) -> ResourceInfo:
        """Calls GET /deployments/{id}/{kind}/{ref_id}."""
        query = {"show_plans": True, **flags}
        data = await self._request(
            "GET", f"/deployments/{deployment_id}/{kind}/{ref_id}", params=query
        )
        return ResourceInfo.model_validate(data)

    async def resource_action(
        self,
        deployment_id: str,
        kind: str,
        ref_id: str,
        action: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Trigger an action on a deployment resource.

        Calls POST /deployments/{id}/{kind}/{ref_id}/{action}, where action is
        a path suffix such as "_shutdown" or "instances/_stop".
        """
        return await self._request(
            "POST", f"/deployments/{deployment_id}/{kind}/{ref_id}/{action}", params=params
        )

    async def delete_deployment_resource(
        self, deployment_id: str, kind: str, ref_id: str
    ) -> dict[str, Any]:
        """Calls DELETE /deployments/{id}/{kind}/{ref_id}."""
        return await self._request("DELETE", f"/deployments/{deployment_id}/{kind}/{ref_id}")

    async def cancel_deployment_resource_plan(
        self, deployment_id: str, kind: str, ref_id: str, force_delete: bool = False
    ) -> dict[str, Any]:
        """Calls DELETE /deployments/{id}/{kind}/{ref_id}/plan/pending."""
        return await self._request(
            "DELETE",
            f"/deployments/{deployment_id}/{kind}/{ref_id}/plan/pending",
            params={"force_delete": force_delete},
        )

    # -------------------------------------------------------------------------
    # Clusters, addressed by resource id
    # -------------------------------------------------------------------------

    async def get_cluster(self, kind: str, resource_id: str) -> ResourceInfoBody:
        """Calls GET /clusters/{kind}/{id}."""
        data = await self._request("GET", f"/clusters/{kind}/{resource_id}")
        return ResourceInfoBody.model_validate(data)

    async def get_plan_activity(
        self, kind: str, resource_id: str, show_plan_defaults: bool = False
    ) -> PlansInfo:
        """
        Get the plan activity of a resource.

        Calls GET /clusters/{kind}/{id}/plan/activity with plan logs enabled.
        ``history`` is ordered oldest first.
        """
        data = await self._request(
            "GET",
            f"/clusters/{kind}/{resource_id}/plan/activity",
            params={"show_plan_defaults": show_plan_defaults, "show_plan_logs": True},
        )
        return PlansInfo.model_validate(data)

    async def update_plan(
        self,
        kind: str,
        resource_id: str,
        plan: ResourcePlan,
        validate_only: bool | None = None,
    ) -> dict[str, Any]:
        """Calls PUT /clusters/{kind}/{id}/plan."""
        return await self._request(
            "PUT",
            f"/clusters/{kind}/{resource_id}/plan",
            params={"validate_only": validate_only},
            body=plan.to_wire(),
        )

    async def cancel_plan(self, kind: str, resource_id: str) -> dict[str, Any]:
        """Calls DELETE /clusters/{kind}/{id}/plan/pending."""
        return await self._request("DELETE", f"/clusters/{kind}/{resource_id}/plan/pending")

    async def cluster_action(
        self,
        kind: str,
        resource_id: str,
        action: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Calls POST /clusters/{kind}/{id}/{action}, e.g. "_restart"."""
        return await self._request(
            "POST", f"/clusters/{kind}/{resource_id}/{action}", params=params
        )

    async def delete_cluster(self, kind: str, resource_id: str) -> dict[str, Any]:
        """Calls DELETE /clusters/{kind}/{id}."""
        return await self._request("DELETE", f"/clusters/{kind}/{resource_id}")

    async def resync_clusters(self, kind: str) -> dict[str, Any]:
        """Calls POST /clusters/{kind}/_resync."""
        return await self._request("POST", f"/clusters/{kind}/_resync")

    # -------------------------------------------------------------------------
    # Platform configuration
    # -------------------------------------------------------------------------

    async def get_deployment_template(
        self, template_id: str, show_instance_configurations: bool = True
    ) -> DeploymentTemplateInfo:
        """Calls GET /platform/configuration/templates/{id}."""
        data = await self._request(
            "GET",
            f"/platform/configuration/templates/{template_id}",
            params={"show_instance_configurations": show_instance_configurations},
        )
        return DeploymentTemplateInfo.model_validate(data)

    async def get_stacks(self) -> StackVersionConfigs:
        """Calls GET /platform/configuration/stacks."""
        data = await self._request("GET", "/platform/configuration/stacks")
        return StackVersionConfigs.model_validate(data)
