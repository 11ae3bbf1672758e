"""
Template resolution for stateless resources.

Kibana, APM and App Search resources attach to an existing Elasticsearch
resource. When the caller omits the deployment template id or the
Elasticsearch ref id, both are discovered from the running deployment.
"""

import logging
from dataclasses import dataclass, replace

from deployctl.api.client import CloudClient
from deployctl.exceptions import MissingAPIError, MultiError, TemplateUnavailableError
from deployctl.models import DeploymentGetResponse
from deployctl.types import SimpleSpec, validate_deployment_id

logger = logging.getLogger(__name__)


@dataclass
class DeploymentInfo:
    """
    Values discovered from a running deployment.

    Attributes:
        ref_id: Ref id of the Elasticsearch resource.
        template_id: Deployment template the Elasticsearch resource uses.
        version: Stack version of the Elasticsearch resource, when known.
    """

    ref_id: str
    template_id: str
    version: str = ""


def deployment_info_from(deployment: DeploymentGetResponse) -> DeploymentInfo:
    """
    Pick the first Elasticsearch resource whose current plan names a template.

    Raises:
        TemplateUnavailableError: When no resource carries a template id.
    """
    for resource in deployment.resources.elasticsearch:
        info = resource.info
        if info is None or info.plan_info is None:
            continue
        current = info.plan_info.current
        if current is None or current.plan is None:
            continue
        template = current.plan.deployment_template
        if template is not None and template.id:
            es_config = current.plan.elasticsearch
            return DeploymentInfo(
                ref_id=resource.ref_id,
                template_id=template.id,
                version=(es_config.version or "") if es_config else "",
            )

    raise TemplateUnavailableError(deployment.id)


async def get_deployment_info(client: CloudClient | None, deployment_id: str) -> DeploymentInfo:
    """
    Fetch a deployment and discover its Elasticsearch ref id and template id.

    Raises:
        MultiError: On a missing client or an invalid deployment id.
        TemplateUnavailableError: When nothing can be discovered.
        RemoteError: When the deployment cannot be fetched.
    """
    merr = MultiError()
    if client is None:
        merr.append(MissingAPIError())
    merr.append(validate_deployment_id(deployment_id))
    merr.raise_if_any()

    deployment = await client.get_deployment(
        deployment_id,
        enrich_with_template=True,
        convert_legacy_plans=True,
        show_plans=True,
    )
    info = deployment_info_from(deployment)
    logger.info(
        f"Discovered template {info.template_id!r} and elasticsearch ref id "
        f"{info.ref_id!r} from deployment {deployment_id}"
    )
    return info


async def resolve(
    client: CloudClient | None,
    spec: SimpleSpec,
    inherit_version: bool = False,
) -> SimpleSpec:
    """
    Fill in template_id and elasticsearch_ref_id when either is missing.

    Returns a new SimpleSpec; the input is never modified. Values already
    present in ``spec`` win over discovered ones. No request is made when
    both are set.

    With inherit_version, an empty version is also taken from the
    Elasticsearch resource, and its absence alone triggers the lookup.
    """
    needs_version = inherit_version and not spec.version
    if spec.template_id and spec.elasticsearch_ref_id and not needs_version:
        return spec

    info = await get_deployment_info(client, spec.deployment_id)
    return replace(
        spec,
        template_id=spec.template_id or info.template_id,
        elasticsearch_ref_id=spec.elasticsearch_ref_id or info.ref_id,
        version=spec.version or (info.version if inherit_version else ""),
    )
