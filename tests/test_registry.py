"""
Tests for the service package registration table.
"""

import unittest
from unittest.mock import MagicMock, patch

from tfaws.config import Config
from tfaws.errors import UnknownResourceTypeError
from tfaws.registry import DataSourceRegistration, Registry, ResourceRegistration, ServicePackage, TagsSpec
from tfaws.services import build_registry
from tfaws.services.backup import VaultResource
from tfaws.services.sqs import QueueDataSource, QueueResource


class TestRegistry(unittest.TestCase):
    """Tests for Registry lookups and construction."""

    def setUp(self) -> None:
        self.registry = build_registry()

    def test_resource_lookup(self) -> None:
        package, registration = self.registry.resource("aws_sqs_queue")
        self.assertEqual(package.name, "sqs")
        self.assertIs(registration.factory, QueueResource)
        self.assertEqual(registration.tags, TagsSpec(identifier_attribute="id"))

        _, vault = self.registry.resource("aws_backup_vault")
        self.assertIs(vault.factory, VaultResource)
        self.assertEqual(vault.tags.identifier_attribute, "arn")

    def test_data_source_lookup_is_separate_from_resources(self) -> None:
        """The same type name may be both a resource and a data source."""
        _, registration = self.registry.data_source("aws_sqs_queue")
        self.assertIs(registration.factory, QueueDataSource)

    def test_registered_types(self) -> None:
        self.assertEqual(
            self.registry.resource_type_names(),
            ["aws_backup_vault", "aws_rum_app_monitor", "aws_sqs_queue"],
        )
        self.assertIn("aws_caller_identity", self.registry.data_source_type_names())
        self.assertIn("aws_lb", self.registry.data_source_type_names())
        self.assertEqual(
            self.registry.package_names(),
            ["appflow", "backup", "elbv2", "grafana", "rum", "sqs", "sts"],
        )

    def test_tag_hooks_belong_to_taggable_resources(self) -> None:
        """Packages expose tag functions only when a registered resource can be tagged through them."""
        for name in self.registry.package_names():
            package = self.registry.package(name)
            taggable = any(resource.tags is not None for resource in package.resources)
            self.assertEqual(package.list_tags is not None, taggable, name)
            self.assertEqual(package.update_tags is not None, taggable, name)

    def test_unknown_type(self) -> None:
        with self.assertRaises(UnknownResourceTypeError):
            self.registry.resource("aws_nope")
        with self.assertRaises(UnknownResourceTypeError):
            self.registry.data_source("aws_nope")
        with self.assertRaises(UnknownResourceTypeError):
            self.registry.package("nope")

    def test_duplicate_type_name_rejected(self) -> None:
        first = ServicePackage(name="one", resources=(ResourceRegistration("aws_thing", object),))
        second = ServicePackage(name="two", resources=(ResourceRegistration("aws_thing", object),))
        with self.assertRaises(ValueError):
            Registry([first, second])

    def test_duplicate_data_source_rejected(self) -> None:
        package = ServicePackage(
            name="one",
            data_sources=(DataSourceRegistration("aws_thing", object), DataSourceRegistration("aws_thing", object)),
        )
        with self.assertRaises(ValueError):
            Registry([package])

    def test_table_is_read_only(self) -> None:
        with self.assertRaises(TypeError):
            self.registry._resources["aws_thing"] = None  # type: ignore[index]


class TestNewClient(unittest.TestCase):
    """Tests for client construction from configuration."""

    @patch("tfaws.registry.boto3.client")
    def test_endpoint_and_region(self, mock_boto3_client: MagicMock) -> None:
        config = Config(aws_region="eu-west-2", endpoints={"sqs": "http://localhost:9324"})
        build_registry().package("sqs").new_client(config)

        args, kwargs = mock_boto3_client.call_args
        self.assertEqual(args, ("sqs",))
        self.assertEqual(kwargs["region_name"], "eu-west-2")
        self.assertEqual(kwargs["endpoint_url"], "http://localhost:9324")

    @patch("tfaws.registry.boto3.client")
    def test_no_endpoint_override(self, mock_boto3_client: MagicMock) -> None:
        build_registry().package("backup").new_client(Config(aws_region="eu-west-2"))
        self.assertNotIn("endpoint_url", mock_boto3_client.call_args[1])

    @patch("tfaws.registry.boto3.client")
    def test_sts_region_override(self, mock_boto3_client: MagicMock) -> None:
        build_registry().package("sts").new_client(Config(aws_region="eu-west-2", sts_region="us-east-1"))
        self.assertEqual(mock_boto3_client.call_args[1]["region_name"], "us-east-1")


if __name__ == "__main__":
    unittest.main()
