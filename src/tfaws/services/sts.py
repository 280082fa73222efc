"""
STS service package.

STS may be pinned to its own region (``TFAWS_STS_REGION``), independent of
the region used for every other service.
"""

from dataclasses import dataclass
from typing import Any

from ..config import Config
from ..registry import DataSourceRegistration, ServicePackage, new_boto3_client
from ..resource import DataSource
from ..types import STSClient


@dataclass
class CallerIdentityQuery:
    pass


@dataclass
class CallerIdentityState:
    id: str
    account_id: str
    arn: str
    user_id: str


def new_client(config: Config) -> STSClient:
    return new_boto3_client("sts", config, region_name=config.sts_region)


class CallerIdentityDataSource(DataSource[CallerIdentityQuery, CallerIdentityState]):
    type_name = "aws_caller_identity"
    display_name = "STS Caller Identity"

    def _read(self, meta: Any, config: CallerIdentityQuery) -> CallerIdentityState:
        output = meta.client("sts").get_caller_identity()
        return CallerIdentityState(
            id=output["Account"],
            account_id=output["Account"],
            arn=output["Arn"],
            user_id=output["UserId"],
        )


SERVICE_PACKAGE = ServicePackage(
    name="sts",
    data_sources=(DataSourceRegistration(type_name="aws_caller_identity", factory=CallerIdentityDataSource),),
    client_factory=new_client,
)
