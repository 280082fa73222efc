"""
Elastic Load Balancing v2 service package.

Provides the ``aws_lb`` and ``aws_lb_target_group`` data sources. DescribeTags
takes a list of ARNs and returns tags as ``{"Key", "Value"}`` pairs.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import NotFoundError
from ..finder import find_first_in_pages
from ..registry import DataSourceRegistration, ServicePackage
from ..resource import DataSource
from ..tags import KeyValueTags
from ..types import ELBv2Client, TagMap
from ..utils import finder_error_handler, setup_logging

logger = setup_logging()

ERR_CODE_LOAD_BALANCER_NOT_FOUND = "LoadBalancerNotFound"
ERR_CODE_TARGET_GROUP_NOT_FOUND = "TargetGroupNotFound"


@dataclass
class LoadBalancerQuery:
    arn: str = ""
    name: str = ""


@dataclass
class LoadBalancerState:
    arn: str
    name: str
    dns_name: str
    load_balancer_type: str
    scheme: str
    vpc_id: str
    security_groups: List[str]
    subnets: List[str]
    tags: Optional[TagMap] = None


@dataclass
class TargetGroupQuery:
    arn: str = ""
    name: str = ""


@dataclass
class TargetGroupState:
    arn: str
    name: str
    port: Optional[int]
    protocol: str
    target_type: str
    vpc_id: str
    load_balancer_arns: List[str]
    tags: Optional[TagMap] = None


def flatten_load_balancer(lb: Dict[str, Any]) -> LoadBalancerState:
    return LoadBalancerState(
        arn=lb.get("LoadBalancerArn", ""),
        name=lb.get("LoadBalancerName", ""),
        dns_name=lb.get("DNSName", ""),
        load_balancer_type=lb.get("Type", ""),
        scheme=lb.get("Scheme", ""),
        vpc_id=lb.get("VpcId", ""),
        security_groups=list(lb.get("SecurityGroups", [])),
        subnets=[az["SubnetId"] for az in lb.get("AvailabilityZones", []) if az.get("SubnetId")],
    )


def flatten_target_group(tg: Dict[str, Any]) -> TargetGroupState:
    return TargetGroupState(
        arn=tg.get("TargetGroupArn", ""),
        name=tg.get("TargetGroupName", ""),
        port=tg.get("Port"),
        protocol=tg.get("Protocol", ""),
        target_type=tg.get("TargetType", ""),
        vpc_id=tg.get("VpcId", ""),
        load_balancer_arns=list(tg.get("LoadBalancerArns", [])),
    )


@finder_error_handler(ERR_CODE_LOAD_BALANCER_NOT_FOUND)
def find_load_balancer_by_arn(elbv2_client: ELBv2Client, arn: str) -> Dict[str, Any]:
    request = {"LoadBalancerArns": [arn]}
    pages = elbv2_client.get_paginator("describe_load_balancers").paginate(**request)
    return find_first_in_pages(pages, "LoadBalancers", lambda lb: lb.get("LoadBalancerArn") == arn, request=request)


@finder_error_handler(ERR_CODE_LOAD_BALANCER_NOT_FOUND)
def find_load_balancer_by_name(elbv2_client: ELBv2Client, name: str) -> Dict[str, Any]:
    request = {"Names": [name]}
    pages = elbv2_client.get_paginator("describe_load_balancers").paginate(**request)
    return find_first_in_pages(pages, "LoadBalancers", lambda lb: lb.get("LoadBalancerName") == name, request=request)


@finder_error_handler(ERR_CODE_TARGET_GROUP_NOT_FOUND)
def find_target_group_by_arn(elbv2_client: ELBv2Client, arn: str) -> Dict[str, Any]:
    request = {"TargetGroupArns": [arn]}
    pages = elbv2_client.get_paginator("describe_target_groups").paginate(**request)
    return find_first_in_pages(pages, "TargetGroups", lambda tg: tg.get("TargetGroupArn") == arn, request=request)


@finder_error_handler(ERR_CODE_TARGET_GROUP_NOT_FOUND)
def find_target_group_by_name(elbv2_client: ELBv2Client, name: str) -> Dict[str, Any]:
    request = {"Names": [name]}
    pages = elbv2_client.get_paginator("describe_target_groups").paginate(**request)
    return find_first_in_pages(pages, "TargetGroups", lambda tg: tg.get("TargetGroupName") == name, request=request)


def list_tags(elbv2_client: ELBv2Client, identifier: str) -> KeyValueTags:
    """Lists elbv2 service tags. The identifier is the resource ARN."""
    response = elbv2_client.describe_tags(ResourceArns=[identifier])
    descriptions = response.get("TagDescriptions", [])
    if not descriptions:
        raise NotFoundError(last_request={"ResourceArns": [identifier]})
    return KeyValueTags.from_list(descriptions[0].get("Tags", []))


class LoadBalancerDataSource(DataSource[LoadBalancerQuery, LoadBalancerState]):
    type_name = "aws_lb"
    display_name = "ELBv2 Load Balancer"

    def _read(self, meta: Any, config: LoadBalancerQuery) -> LoadBalancerState:
        elbv2_client = meta.client("elbv2")
        if config.arn:
            lb = find_load_balancer_by_arn(elbv2_client, config.arn)
        elif config.name:
            lb = find_load_balancer_by_name(elbv2_client, config.name)
        else:
            raise ValueError("one of arn or name must be set")

        state = flatten_load_balancer(lb)
        state.tags = list_tags(elbv2_client, state.arn).ignore_aws().ignore_config(meta.config.ignore_tags).map()
        return state


class TargetGroupDataSource(DataSource[TargetGroupQuery, TargetGroupState]):
    type_name = "aws_lb_target_group"
    display_name = "ELBv2 Target Group"

    def _read(self, meta: Any, config: TargetGroupQuery) -> TargetGroupState:
        elbv2_client = meta.client("elbv2")
        if config.arn:
            tg = find_target_group_by_arn(elbv2_client, config.arn)
        elif config.name:
            tg = find_target_group_by_name(elbv2_client, config.name)
        else:
            raise ValueError("one of arn or name must be set")

        state = flatten_target_group(tg)
        state.tags = list_tags(elbv2_client, state.arn).ignore_aws().ignore_config(meta.config.ignore_tags).map()
        return state


SERVICE_PACKAGE = ServicePackage(
    name="elbv2",
    data_sources=(
        DataSourceRegistration(type_name="aws_lb", factory=LoadBalancerDataSource),
        DataSourceRegistration(type_name="aws_lb_target_group", factory=TargetGroupDataSource),
    ),
)
