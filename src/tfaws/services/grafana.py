"""
Amazon Managed Grafana service package.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import EmptyResultError
from ..finder import find_first_in_pages
from ..registry import DataSourceRegistration, ServicePackage
from ..resource import DataSource
from ..tags import KeyValueTags
from ..types import GrafanaClient, TagMap
from ..utils import finder_error_handler, setup_logging

logger = setup_logging()

ERR_CODE_RESOURCE_NOT_FOUND = "ResourceNotFoundException"


@dataclass
class WorkspaceQuery:
    workspace_id: str = ""
    name: str = ""


@dataclass
class WorkspaceState:
    id: str
    arn: str
    name: str
    description: str
    endpoint: str
    grafana_version: str
    status: str
    account_access_type: str
    authentication_providers: List[str]
    data_sources: List[str]
    permission_type: str
    tags: Optional[TagMap] = None


def workspace_arn(partition: str, region: str, account_id: str, workspace_id: str) -> str:
    return f"arn:{partition}:grafana:{region}:{account_id}:/workspaces/{workspace_id}"


def flatten_workspace(workspace: Dict[str, Any], arn: str) -> WorkspaceState:
    return WorkspaceState(
        id=workspace.get("id", ""),
        arn=arn,
        name=workspace.get("name", ""),
        description=workspace.get("description", ""),
        endpoint=workspace.get("endpoint", ""),
        grafana_version=workspace.get("grafanaVersion", ""),
        status=workspace.get("status", ""),
        account_access_type=workspace.get("accountAccessType", ""),
        authentication_providers=list(workspace.get("authentication", {}).get("providers", [])),
        data_sources=list(workspace.get("dataSources", [])),
        permission_type=workspace.get("permissionType", ""),
    )


@finder_error_handler(ERR_CODE_RESOURCE_NOT_FOUND)
def find_workspace_by_id(grafana_client: GrafanaClient, workspace_id: str) -> Dict[str, Any]:
    output = grafana_client.describe_workspace(workspaceId=workspace_id)
    if not output or not output.get("workspace"):
        raise EmptyResultError(last_request={"workspaceId": workspace_id})
    return output["workspace"]


def find_workspace_id_by_name(grafana_client: GrafanaClient, name: str) -> str:
    pages = grafana_client.get_paginator("list_workspaces").paginate()
    summary = find_first_in_pages(
        pages, "workspaces", lambda ws: ws.get("name") == name, request={"operation": "ListWorkspaces", "name": name}
    )
    return summary["id"]


class WorkspaceDataSource(DataSource[WorkspaceQuery, WorkspaceState]):
    type_name = "aws_grafana_workspace"
    display_name = "Grafana Workspace"

    def _read(self, meta: Any, config: WorkspaceQuery) -> WorkspaceState:
        grafana_client = meta.client("grafana")
        if config.workspace_id:
            workspace_id = config.workspace_id
        elif config.name:
            workspace_id = find_workspace_id_by_name(grafana_client, config.name)
        else:
            raise ValueError("one of workspace_id or name must be set")

        workspace = find_workspace_by_id(grafana_client, workspace_id)
        state = flatten_workspace(workspace, workspace_arn(meta.partition, meta.region, meta.account_id, workspace_id))
        state.tags = KeyValueTags(workspace.get("tags", {})).ignore_aws().ignore_config(meta.config.ignore_tags).map()
        return state


SERVICE_PACKAGE = ServicePackage(
    name="grafana",
    data_sources=(DataSourceRegistration(type_name="aws_grafana_workspace", factory=WorkspaceDataSource),),
)
