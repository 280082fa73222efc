"""
SQS service package.

Queues are identified by their URL. The Terraform state stores numeric queue
attributes as integers while the SQS API returns every attribute as a string,
so the expand/flatten converters below handle the conversion in one place.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..finder import find_all_in_pages, find_first_in_pages
from ..registry import DataSourceRegistration, ResourceRegistration, ServicePackage, TagsSpec
from ..resource import DataSource, Resource
from ..tags import KeyValueTags, update_tags as reconcile_tags
from ..types import SQSClient, TagMap
from ..utils import finder_error_handler, setup_logging

logger = setup_logging()

ERR_CODE_QUEUE_DOES_NOT_EXIST = "AWS.SimpleQueueService.NonExistentQueue"
ERR_CODE_QUEUE_DOES_NOT_EXIST_JSON = "QueueDoesNotExist"

FIFO_QUEUE_NAME_SUFFIX = ".fifo"

# Terraform attribute name -> SQS attribute name for integer attributes
INT_ATTRIBUTES = {
    "delay_seconds": "DelaySeconds",
    "max_message_size": "MaximumMessageSize",
    "message_retention_seconds": "MessageRetentionPeriod",
    "receive_wait_time_seconds": "ReceiveMessageWaitTimeSeconds",
    "visibility_timeout_seconds": "VisibilityTimeout",
}


@dataclass
class QueueConfig:
    name: str
    delay_seconds: int = 0
    max_message_size: int = 262144
    message_retention_seconds: int = 345600
    receive_wait_time_seconds: int = 0
    visibility_timeout_seconds: int = 30
    fifo_queue: bool = False
    policy: Optional[str] = None
    tags: TagMap = field(default_factory=dict)


@dataclass
class QueueState:
    id: str
    arn: str
    name: str
    url: str
    delay_seconds: int = 0
    max_message_size: int = 0
    message_retention_seconds: int = 0
    receive_wait_time_seconds: int = 0
    visibility_timeout_seconds: int = 0
    fifo_queue: bool = False
    policy: Optional[str] = None
    tags: Optional[TagMap] = None


@dataclass
class QueuesQuery:
    name_prefix: str = ""


@dataclass
class QueuesResult:
    queue_urls: List[str]


def queue_name_from_url(url: str) -> str:
    return url.rstrip("/").rsplit("/", 1)[-1]


def expand_queue_attributes(config: QueueConfig) -> Dict[str, str]:
    attributes = {sqs_name: str(getattr(config, tf_name)) for tf_name, sqs_name in INT_ATTRIBUTES.items()}
    if config.fifo_queue:
        attributes["FifoQueue"] = "true"
    if config.policy:
        attributes["Policy"] = config.policy
    return attributes


def flatten_queue_attributes(url: str, attributes: Dict[str, str]) -> QueueState:
    state = QueueState(
        id=url,
        arn=attributes.get("QueueArn", ""),
        name=queue_name_from_url(url),
        url=url,
        fifo_queue=attributes.get("FifoQueue", "false").lower() == "true",
        policy=attributes.get("Policy"),
    )
    for tf_name, sqs_name in INT_ATTRIBUTES.items():
        if sqs_name in attributes:
            setattr(state, tf_name, int(attributes[sqs_name]))
    return state


@finder_error_handler(ERR_CODE_QUEUE_DOES_NOT_EXIST, ERR_CODE_QUEUE_DOES_NOT_EXIST_JSON)
def find_queue_attributes_by_url(sqs_client: SQSClient, url: str) -> Dict[str, str]:
    """
    Returns all attributes of the queue at ``url``.

    Raises:
        NotFoundError: If the queue does not exist
    """
    response = sqs_client.get_queue_attributes(QueueUrl=url, AttributeNames=["All"])
    return response.get("Attributes", {})


def find_queue_url_by_name(sqs_client: SQSClient, name: str) -> str:
    """
    Returns the URL of the queue called exactly ``name``.

    ``QueueNamePrefix`` narrows the listing but also matches longer names, so
    each URL is checked for an exact name match.
    """
    request = {"QueueNamePrefix": name}
    pages = sqs_client.get_paginator("list_queues").paginate(**request)
    return find_first_in_pages(pages, "QueueUrls", lambda url: queue_name_from_url(url) == name, request=request)


def find_queue_urls(sqs_client: SQSClient, name_prefix: str = "") -> List[str]:
    request = {"QueueNamePrefix": name_prefix} if name_prefix else {}
    pages = sqs_client.get_paginator("list_queues").paginate(**request)
    return find_all_in_pages(pages, "QueueUrls")


def list_tags(sqs_client: SQSClient, identifier: str) -> KeyValueTags:
    """Lists sqs service tags. The identifier is the queue URL."""
    response = sqs_client.list_queue_tags(QueueUrl=identifier)
    return KeyValueTags(response.get("Tags", {}))


def update_tags(sqs_client: SQSClient, identifier: str, old: Any, new: Any) -> None:
    """Updates sqs service tags. The identifier is the queue URL."""
    reconcile_tags(
        identifier,
        old,
        new,
        untag=lambda keys: sqs_client.untag_queue(QueueUrl=identifier, TagKeys=keys),
        tag=lambda tags: sqs_client.tag_queue(QueueUrl=identifier, Tags=tags),
    )


class QueueResource(Resource[QueueConfig, QueueState]):
    type_name = "aws_sqs_queue"
    display_name = "SQS Queue"

    def _create(self, meta: Any, config: QueueConfig) -> str:
        if config.fifo_queue and not config.name.endswith(FIFO_QUEUE_NAME_SUFFIX):
            raise ValueError(f"FIFO queue name must end with '{FIFO_QUEUE_NAME_SUFFIX}': {config.name}")

        sqs_client = meta.client("sqs")
        kwargs: Dict[str, Any] = {
            "QueueName": config.name,
            "Attributes": expand_queue_attributes(config),
        }
        if config.tags:
            kwargs["tags"] = dict(config.tags)

        response = sqs_client.create_queue(**kwargs)
        logger.info(f"[SQS] Created queue {response['QueueUrl']}")
        return response["QueueUrl"]

    def _find(self, meta: Any, resource_id: str) -> QueueState:
        attributes = find_queue_attributes_by_url(meta.client("sqs"), resource_id)
        return flatten_queue_attributes(resource_id, attributes)

    def _update(self, meta: Any, resource_id: str, old: QueueConfig, new: QueueConfig) -> None:
        old_attributes = expand_queue_attributes(old)
        changed = {k: v for k, v in expand_queue_attributes(new).items() if old_attributes.get(k) != v}
        if old.policy and not new.policy:
            changed["Policy"] = ""
        # FifoQueue cannot change after creation
        changed.pop("FifoQueue", None)
        if not changed:
            return
        logger.debug(f"[SQS] Updating queue {resource_id} attributes: {sorted(changed)}")
        meta.client("sqs").set_queue_attributes(QueueUrl=resource_id, Attributes=changed)

    def _delete(self, meta: Any, resource_id: str, config: Optional[QueueConfig]) -> None:
        meta.client("sqs").delete_queue(QueueUrl=resource_id)


class QueueDataSource(DataSource[QueueConfig, QueueState]):
    type_name = "aws_sqs_queue"
    display_name = "SQS Queue"

    def _read(self, meta: Any, config: QueueConfig) -> QueueState:
        sqs_client = meta.client("sqs")
        url = find_queue_url_by_name(sqs_client, config.name)
        state = flatten_queue_attributes(url, find_queue_attributes_by_url(sqs_client, url))
        state.tags = list_tags(sqs_client, url).ignore_aws().ignore_config(meta.config.ignore_tags).map()
        return state


class QueuesDataSource(DataSource[QueuesQuery, QueuesResult]):
    type_name = "aws_sqs_queues"
    display_name = "SQS Queues"

    def _read(self, meta: Any, config: QueuesQuery) -> QueuesResult:
        return QueuesResult(queue_urls=find_queue_urls(meta.client("sqs"), config.name_prefix))


SERVICE_PACKAGE = ServicePackage(
    name="sqs",
    resources=(
        ResourceRegistration(
            type_name="aws_sqs_queue",
            factory=QueueResource,
            name="Queue",
            tags=TagsSpec(identifier_attribute="id"),
        ),
    ),
    data_sources=(
        DataSourceRegistration(type_name="aws_sqs_queue", factory=QueueDataSource),
        DataSourceRegistration(type_name="aws_sqs_queues", factory=QueuesDataSource),
    ),
    list_tags=list_tags,
    update_tags=update_tags,
)
