"""
Provider composition root.

The Provider ties configuration and the registration table together and is
passed as ``meta`` to every resource and data source operation. It owns the
per-service boto3 clients and runs the tagging layer around resource CRUD:
tags are read through the service package's ``list_tags`` when a resource
does not report them itself, and reconciled through ``update_tags`` on update.
"""

import dataclasses
from typing import Any, Dict, Optional

import boto3

from .config import Config
from .errors import ResourceOperationError
from .registry import Registry, ResourceRegistration, ServicePackage
from .tags import KeyValueTags
from .types import TagMap
from .utils import setup_logging

logger = setup_logging()

DEFAULT_REGION = "us-east-1"


class Provider:
    def __init__(self, config: Config, registry: Registry) -> None:
        self.config = config
        self.registry = registry
        self._clients: Dict[str, Any] = {}
        self._account_id: Optional[str] = None

    @property
    def region(self) -> str:
        return self.config.aws_region or boto3.session.Session().region_name or DEFAULT_REGION

    @property
    def partition(self) -> str:
        return boto3.session.Session().get_partition_for_region(self.region)

    @property
    def account_id(self) -> str:
        if self._account_id is None:
            self._account_id = self.client("sts").get_caller_identity()["Account"]
        return self._account_id

    def client(self, service_name: str) -> Any:
        """Returns the boto3 client for a registered service package."""
        if service_name not in self._clients:
            package = self.registry.package(service_name)
            self._clients[service_name] = package.new_client(self.config)
        return self._clients[service_name]

    def tags_all(self, tags: Optional[TagMap]) -> TagMap:
        """Resource tags merged over the configured default tags."""
        return KeyValueTags(self.config.default_tags).merge(KeyValueTags(tags)).map()

    def _filter_tags(self, tags: Any) -> KeyValueTags:
        return KeyValueTags(tags).ignore_aws().ignore_config(self.config.ignore_tags)

    def read_tags(self, type_name: str, identifier: str) -> KeyValueTags:
        package, registration = self.registry.resource(type_name)
        self._require_tagging(package, registration)
        tags = package.list_tags(self.client(package.name), identifier)
        return self._filter_tags(tags)

    def update_tags(self, type_name: str, identifier: str, old: Any, new: Any) -> None:
        package, registration = self.registry.resource(type_name)
        self._require_tagging(package, registration)
        package.update_tags(
            self.client(package.name),
            identifier,
            self._filter_tags(old),
            self._filter_tags(new),
        )

    def _require_tagging(self, package: ServicePackage, registration: ResourceRegistration) -> None:
        if registration.tags is None or package.list_tags is None or package.update_tags is None:
            raise ResourceOperationError(f"Resource type '{registration.type_name}' does not support tagging")

    def create(self, type_name: str, config: Any) -> Any:
        _, registration = self.registry.resource(type_name)
        if registration.tags is not None:
            config = dataclasses.replace(config, tags=self.tags_all(config.tags))
        state = registration.factory().create(self, config)
        return self._set_tags_out(registration, state)

    def read(self, type_name: str, resource_id: str) -> Any:
        """Returns the resource's state, or None if it should be removed from state."""
        _, registration = self.registry.resource(type_name)
        state = registration.factory().read(self, resource_id)
        return self._set_tags_out(registration, state)

    def update(self, type_name: str, resource_id: str, old: Any, new: Any) -> Any:
        _, registration = self.registry.resource(type_name)
        resource = registration.factory()

        if registration.tags is not None:
            old_tags = self.tags_all(old.tags)
            new_tags = self.tags_all(new.tags)
            if old_tags != new_tags:
                current = resource.read(self, resource_id)
                if current is None:
                    return None
                identifier = getattr(current, registration.tags.identifier_attribute)
                self.update_tags(type_name, identifier, old_tags, new_tags)

        state = resource.update(self, resource_id, old, new)
        return self._set_tags_out(registration, state)

    def delete(self, type_name: str, resource_id: str, config: Any = None) -> None:
        _, registration = self.registry.resource(type_name)
        registration.factory().delete(self, resource_id, config)

    def read_data_source(self, type_name: str, config: Any) -> Any:
        _, registration = self.registry.data_source(type_name)
        return registration.factory().read(self, config)

    def _set_tags_out(self, registration: ResourceRegistration, state: Any) -> Any:
        if state is None or registration.tags is None:
            return state
        if state.tags is None:
            identifier = getattr(state, registration.tags.identifier_attribute)
            state.tags = self.read_tags(registration.type_name, identifier).map()
        else:
            state.tags = self._filter_tags(state.tags).map()
        return state
