"""
Amazon AppFlow service package.

ListFlows has no boto3 paginator, so ``find_flow_by_arn`` drives the
``nextToken`` continuation itself through a page-fetch callback.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import NotFoundError
from ..finder import Page, find_first
from ..registry import DataSourceRegistration, ServicePackage
from ..resource import DataSource
from ..tags import KeyValueTags
from ..types import AppFlowClient, ContinuationToken, TagMap
from ..utils import finder_error_handler, setup_logging

logger = setup_logging()

ERR_CODE_RESOURCE_NOT_FOUND = "ResourceNotFoundException"


@dataclass
class FlowQuery:
    arn: str


@dataclass
class FlowState:
    arn: str
    name: str
    description: str
    flow_status: str
    source_connector_type: str
    destination_connector_type: str
    trigger_type: str
    tags: Optional[TagMap] = None


def flatten_flow(flow: Dict[str, Any]) -> FlowState:
    return FlowState(
        arn=flow.get("flowArn", ""),
        name=flow.get("flowName", ""),
        description=flow.get("description", ""),
        flow_status=flow.get("flowStatus", ""),
        source_connector_type=flow.get("sourceConnectorType", ""),
        destination_connector_type=flow.get("destinationConnectorType", ""),
        trigger_type=flow.get("triggerType", ""),
    )


@finder_error_handler(ERR_CODE_RESOURCE_NOT_FOUND)
def find_flow_by_arn(appflow_client: AppFlowClient, arn: str) -> Dict[str, Any]:
    """
    Returns the flow definition with the given ARN.

    Raises:
        NotFoundError: If no listed flow has that ARN
    """

    def fetch_page(token: ContinuationToken) -> Page:
        kwargs = {"nextToken": token} if token else {}
        output = appflow_client.list_flows(**kwargs)
        return Page(items=output.get("flows"), next_token=output.get("nextToken"))

    request = {"operation": "ListFlows", "flowArn": arn}
    try:
        return find_first(fetch_page, lambda flow: flow.get("flowArn") == arn, request=request)
    except NotFoundError as e:
        raise NotFoundError(f"No flow with arn {arn!r}", last_request=e.last_request) from e


def list_tags(appflow_client: AppFlowClient, identifier: str) -> KeyValueTags:
    """Lists appflow service tags. The identifier is the resource ARN."""
    response = appflow_client.list_tags_for_resource(resourceArn=identifier)
    return KeyValueTags(response.get("tags", {}))


class FlowDataSource(DataSource[FlowQuery, FlowState]):
    type_name = "aws_appflow_flow"
    display_name = "AppFlow Flow"

    def _read(self, meta: Any, config: FlowQuery) -> FlowState:
        appflow_client = meta.client("appflow")
        state = flatten_flow(find_flow_by_arn(appflow_client, config.arn))
        state.tags = list_tags(appflow_client, state.arn).ignore_aws().ignore_config(meta.config.ignore_tags).map()
        return state


SERVICE_PACKAGE = ServicePackage(
    name="appflow",
    data_sources=(DataSourceRegistration(type_name="aws_appflow_flow", factory=FlowDataSource),),
)
