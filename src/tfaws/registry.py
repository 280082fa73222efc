"""
Service package registration table.

Each service module declares one ServicePackage listing the resource and data
source types it implements and how its resources are tagged. A Registry is
built from all packages once at startup and is read-only afterwards.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import boto3

from .config import Config
from .errors import UnknownResourceTypeError
from .tags import KeyValueTags
from .utils import setup_logging

logger = setup_logging()

ListTagsFunc = Callable[[Any, str], KeyValueTags]
UpdateTagsFunc = Callable[[Any, str, Any, Any], None]


@dataclass(frozen=True)
class TagsSpec:
    """Declares that a resource supports tagging and which state attribute identifies it."""

    identifier_attribute: str


@dataclass(frozen=True)
class ResourceRegistration:
    type_name: str
    factory: Callable[[], Any]
    name: str = ""
    tags: Optional[TagsSpec] = None


@dataclass(frozen=True)
class DataSourceRegistration:
    type_name: str
    factory: Callable[[], Any]
    name: str = ""


@dataclass(frozen=True)
class ServicePackage:
    """
    Registration for one AWS service.

    Attributes:
        name: boto3 service name, e.g. "sqs"
        resources: Resource types implemented by the package
        data_sources: Data source types implemented by the package
        list_tags: Reads a resource's tags, given a client and an identifier
        update_tags: Reconciles a resource's tags from old to new
        client_factory: Replaces the default client construction
    """

    name: str
    resources: Tuple[ResourceRegistration, ...] = ()
    data_sources: Tuple[DataSourceRegistration, ...] = ()
    list_tags: Optional[ListTagsFunc] = None
    update_tags: Optional[UpdateTagsFunc] = None
    client_factory: Optional[Callable[[Config], Any]] = None

    def new_client(self, config: Config) -> Any:
        """Returns a new boto3 client for this package's AWS API."""
        if self.client_factory is not None:
            return self.client_factory(config)
        return new_boto3_client(self.name, config)


def new_boto3_client(service_name: str, config: Config, region_name: Optional[str] = None) -> Any:
    kwargs: Dict[str, Any] = {
        "region_name": region_name or config.aws_region,
        "config": config.botocore_config(),
    }
    endpoint = config.endpoint_for(service_name)
    if endpoint:
        logger.debug(f"Using custom endpoint {endpoint} for {service_name}")
        kwargs["endpoint_url"] = endpoint
    return boto3.client(service_name, **kwargs)


class Registry:
    """Read-only lookup table from type name to registration."""

    def __init__(self, packages: Iterable[ServicePackage]) -> None:
        packages_by_name: Dict[str, ServicePackage] = {}
        resources: Dict[str, Tuple[ServicePackage, ResourceRegistration]] = {}
        data_sources: Dict[str, Tuple[ServicePackage, DataSourceRegistration]] = {}

        for package in packages:
            if package.name in packages_by_name:
                raise ValueError(f"Service package '{package.name}' registered twice")
            packages_by_name[package.name] = package

            for resource in package.resources:
                if resource.type_name in resources:
                    raise ValueError(f"Resource type '{resource.type_name}' registered twice")
                resources[resource.type_name] = (package, resource)

            for data_source in package.data_sources:
                if data_source.type_name in data_sources:
                    raise ValueError(f"Data source type '{data_source.type_name}' registered twice")
                data_sources[data_source.type_name] = (package, data_source)

        self._packages: Mapping[str, ServicePackage] = MappingProxyType(packages_by_name)
        self._resources: Mapping[str, Tuple[ServicePackage, ResourceRegistration]] = MappingProxyType(resources)
        self._data_sources: Mapping[str, Tuple[ServicePackage, DataSourceRegistration]] = MappingProxyType(
            data_sources
        )

    def package(self, name: str) -> ServicePackage:
        try:
            return self._packages[name]
        except KeyError:
            raise UnknownResourceTypeError(f"No service package named '{name}'") from None

    def resource(self, type_name: str) -> Tuple[ServicePackage, ResourceRegistration]:
        try:
            return self._resources[type_name]
        except KeyError:
            raise UnknownResourceTypeError(f"Unknown resource type '{type_name}'") from None

    def data_source(self, type_name: str) -> Tuple[ServicePackage, DataSourceRegistration]:
        try:
            return self._data_sources[type_name]
        except KeyError:
            raise UnknownResourceTypeError(f"Unknown data source type '{type_name}'") from None

    def resource_type_names(self) -> List[str]:
        return sorted(self._resources)

    def data_source_type_names(self) -> List[str]:
        return sorted(self._data_sources)

    def package_names(self) -> List[str]:
        return sorted(self._packages)
