"""
CloudWatch RUM service package.

App monitors are identified by name. GetAppMonitor does not return an ARN,
so it is built from the provider's partition, region and account.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import EmptyResultError
from ..registry import ResourceRegistration, ServicePackage, TagsSpec
from ..resource import Resource
from ..tags import KeyValueTags, update_tags as reconcile_tags
from ..types import RUMClient, TagMap
from ..utils import finder_error_handler, setup_logging

logger = setup_logging()

ERR_CODE_RESOURCE_NOT_FOUND = "ResourceNotFoundException"

CUSTOM_EVENTS_STATUS_ENABLED = "ENABLED"
CUSTOM_EVENTS_STATUS_DISABLED = "DISABLED"
TELEMETRY_VALUES = ("errors", "performance", "http")


@dataclass
class AppMonitorConfiguration:
    allow_cookies: bool = False
    enable_xray: bool = False
    excluded_pages: List[str] = field(default_factory=list)
    favorite_pages: List[str] = field(default_factory=list)
    guest_role_arn: Optional[str] = None
    identity_pool_id: Optional[str] = None
    included_pages: List[str] = field(default_factory=list)
    session_sample_rate: float = 0.1
    telemetries: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 0 <= self.session_sample_rate <= 1:
            raise ValueError(f"session_sample_rate must be between 0 and 1, got {self.session_sample_rate}")
        for telemetry in self.telemetries:
            if telemetry not in TELEMETRY_VALUES:
                raise ValueError(f"telemetries must be one of {TELEMETRY_VALUES}, got '{telemetry}'")


@dataclass
class AppMonitorConfig:
    name: str
    domain: str
    app_monitor_configuration: Optional[AppMonitorConfiguration] = None
    custom_events_status: str = CUSTOM_EVENTS_STATUS_DISABLED
    cw_log_enabled: bool = False
    tags: TagMap = field(default_factory=dict)


@dataclass
class AppMonitorState:
    id: str
    arn: str
    app_monitor_id: str
    name: str
    domain: str
    app_monitor_configuration: Optional[AppMonitorConfiguration]
    custom_events_status: str
    cw_log_enabled: bool
    cw_log_group: str
    tags: Optional[TagMap] = None


def expand_app_monitor_configuration(config: Optional[AppMonitorConfiguration]) -> Optional[Dict[str, Any]]:
    if config is None:
        return None

    api_object: Dict[str, Any] = {
        "AllowCookies": config.allow_cookies,
        "EnableXRay": config.enable_xray,
        "SessionSampleRate": config.session_sample_rate,
    }
    if config.excluded_pages:
        api_object["ExcludedPages"] = list(config.excluded_pages)
    if config.favorite_pages:
        api_object["FavoritePages"] = list(config.favorite_pages)
    if config.guest_role_arn:
        api_object["GuestRoleArn"] = config.guest_role_arn
    if config.identity_pool_id:
        api_object["IdentityPoolId"] = config.identity_pool_id
    if config.included_pages:
        api_object["IncludedPages"] = list(config.included_pages)
    if config.telemetries:
        api_object["Telemetries"] = list(config.telemetries)
    return api_object


def flatten_app_monitor_configuration(api_object: Optional[Dict[str, Any]]) -> Optional[AppMonitorConfiguration]:
    if not api_object:
        return None

    return AppMonitorConfiguration(
        allow_cookies=bool(api_object.get("AllowCookies", False)),
        enable_xray=bool(api_object.get("EnableXRay", False)),
        excluded_pages=list(api_object.get("ExcludedPages", [])),
        favorite_pages=list(api_object.get("FavoritePages", [])),
        guest_role_arn=api_object.get("GuestRoleArn"),
        identity_pool_id=api_object.get("IdentityPoolId"),
        included_pages=list(api_object.get("IncludedPages", [])),
        session_sample_rate=float(api_object.get("SessionSampleRate", 0.1)),
        telemetries=list(api_object.get("Telemetries", [])),
    )


def expand_custom_events(status: str) -> Dict[str, str]:
    return {"Status": status}


def flatten_custom_events(api_object: Optional[Dict[str, Any]]) -> str:
    if not api_object:
        return CUSTOM_EVENTS_STATUS_DISABLED
    return api_object.get("Status", CUSTOM_EVENTS_STATUS_DISABLED)


def app_monitor_arn(partition: str, region: str, account_id: str, name: str) -> str:
    return f"arn:{partition}:rum:{region}:{account_id}:appmonitor/{name}"


@finder_error_handler(ERR_CODE_RESOURCE_NOT_FOUND)
def find_app_monitor_by_name(rum_client: RUMClient, name: str) -> Dict[str, Any]:
    output = rum_client.get_app_monitor(Name=name)
    if not output or not output.get("AppMonitor"):
        raise EmptyResultError(last_request={"Name": name})
    return output["AppMonitor"]


def list_tags(rum_client: RUMClient, identifier: str) -> KeyValueTags:
    """Lists rum service tags. The identifier is the resource ARN."""
    response = rum_client.list_tags_for_resource(ResourceArn=identifier)
    return KeyValueTags(response.get("Tags", {}))


def update_tags(rum_client: RUMClient, identifier: str, old: Any, new: Any) -> None:
    """Updates rum service tags. The identifier is the resource ARN."""
    reconcile_tags(
        identifier,
        old,
        new,
        untag=lambda keys: rum_client.untag_resource(ResourceArn=identifier, TagKeys=keys),
        tag=lambda tags: rum_client.tag_resource(ResourceArn=identifier, Tags=tags),
    )


class AppMonitorResource(Resource[AppMonitorConfig, AppMonitorState]):
    type_name = "aws_rum_app_monitor"
    display_name = "CloudWatch RUM App Monitor"

    def _create(self, meta: Any, config: AppMonitorConfig) -> str:
        kwargs: Dict[str, Any] = {
            "Name": config.name,
            "Domain": config.domain,
            "CwLogEnabled": config.cw_log_enabled,
            "CustomEvents": expand_custom_events(config.custom_events_status),
        }
        app_monitor_configuration = expand_app_monitor_configuration(config.app_monitor_configuration)
        if app_monitor_configuration is not None:
            kwargs["AppMonitorConfiguration"] = app_monitor_configuration
        if config.tags:
            kwargs["Tags"] = dict(config.tags)

        meta.client("rum").create_app_monitor(**kwargs)
        return config.name

    def _find(self, meta: Any, resource_id: str) -> AppMonitorState:
        app_monitor = find_app_monitor_by_name(meta.client("rum"), resource_id)
        cw_log = app_monitor.get("DataStorage", {}).get("CwLog", {})
        name = app_monitor.get("Name", resource_id)

        return AppMonitorState(
            id=resource_id,
            arn=app_monitor_arn(meta.partition, meta.region, meta.account_id, name),
            app_monitor_id=app_monitor.get("Id", ""),
            name=name,
            domain=app_monitor.get("Domain", ""),
            app_monitor_configuration=flatten_app_monitor_configuration(app_monitor.get("AppMonitorConfiguration")),
            custom_events_status=flatten_custom_events(app_monitor.get("CustomEvents")),
            cw_log_enabled=bool(cw_log.get("CwLogEnabled", False)),
            cw_log_group=cw_log.get("CwLogGroup", ""),
            tags=dict(app_monitor.get("Tags", {})),
        )

    def _update(self, meta: Any, resource_id: str, old: AppMonitorConfig, new: AppMonitorConfig) -> None:
        kwargs: Dict[str, Any] = {"Name": resource_id}

        if old.app_monitor_configuration != new.app_monitor_configuration:
            app_monitor_configuration = expand_app_monitor_configuration(new.app_monitor_configuration)
            if app_monitor_configuration is not None:
                kwargs["AppMonitorConfiguration"] = app_monitor_configuration
        if old.custom_events_status != new.custom_events_status:
            kwargs["CustomEvents"] = expand_custom_events(new.custom_events_status)
        if old.cw_log_enabled != new.cw_log_enabled:
            kwargs["CwLogEnabled"] = new.cw_log_enabled
        if old.domain != new.domain:
            kwargs["Domain"] = new.domain

        if len(kwargs) == 1:
            return
        meta.client("rum").update_app_monitor(**kwargs)

    def _delete(self, meta: Any, resource_id: str, config: Optional[AppMonitorConfig]) -> None:
        meta.client("rum").delete_app_monitor(Name=resource_id)


SERVICE_PACKAGE = ServicePackage(
    name="rum",
    resources=(
        ResourceRegistration(
            type_name="aws_rum_app_monitor",
            factory=AppMonitorResource,
            name="App Monitor",
            tags=TagsSpec(identifier_attribute="arn"),
        ),
    ),
    list_tags=list_tags,
    update_tags=update_tags,
)
