"""
Unit tests for the CloudWatch RUM service package.
"""

import unittest
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from tfaws.services.rum import (
    AppMonitorConfig,
    AppMonitorConfiguration,
    AppMonitorResource,
    app_monitor_arn,
    expand_app_monitor_configuration,
    flatten_app_monitor_configuration,
    flatten_custom_events,
)


def make_meta(rum_client: MagicMock) -> MagicMock:
    meta = MagicMock()
    meta.client.return_value = rum_client
    meta.partition = "aws"
    meta.region = "eu-west-2"
    meta.account_id = "123456789012"
    return meta


class TestAppMonitorConverters(unittest.TestCase):
    def test_expand_skips_empty_values(self) -> None:
        api_object = expand_app_monitor_configuration(
            AppMonitorConfiguration(session_sample_rate=0.5, telemetries=["errors", "http"])
        )
        self.assertEqual(
            api_object,
            {"AllowCookies": False, "EnableXRay": False, "SessionSampleRate": 0.5, "Telemetries": ["errors", "http"]},
        )
        self.assertIsNone(expand_app_monitor_configuration(None))

    def test_flatten(self) -> None:
        config = flatten_app_monitor_configuration(
            {"AllowCookies": True, "SessionSampleRate": 1.0, "IncludedPages": ["https://example.com/"]}
        )
        self.assertTrue(config.allow_cookies)
        self.assertEqual(config.included_pages, ["https://example.com/"])
        self.assertIsNone(flatten_app_monitor_configuration({}))

    def test_custom_events_default_disabled(self) -> None:
        self.assertEqual(flatten_custom_events(None), "DISABLED")
        self.assertEqual(flatten_custom_events({"Status": "ENABLED"}), "ENABLED")

    def test_validation(self) -> None:
        with self.assertRaises(ValueError):
            AppMonitorConfiguration(session_sample_rate=1.5)
        with self.assertRaises(ValueError):
            AppMonitorConfiguration(telemetries=["logs"])

    def test_arn(self) -> None:
        self.assertEqual(
            app_monitor_arn("aws-us-gov", "us-gov-west-1", "123456789012", "web"),
            "arn:aws-us-gov:rum:us-gov-west-1:123456789012:appmonitor/web",
        )


class TestAppMonitorResource(unittest.TestCase):
    def test_read(self) -> None:
        rum_client = MagicMock()
        rum_client.get_app_monitor.return_value = {
            "AppMonitor": {
                "Id": "abc-123",
                "Name": "web",
                "Domain": "example.com",
                "CustomEvents": {"Status": "ENABLED"},
                "DataStorage": {"CwLog": {"CwLogEnabled": True, "CwLogGroup": "/aws/vendedlogs/RUMService_web"}},
                "Tags": {"env": "dev"},
            }
        }

        state = AppMonitorResource().read(make_meta(rum_client), "web")

        self.assertEqual(state.arn, "arn:aws:rum:eu-west-2:123456789012:appmonitor/web")
        self.assertEqual(state.app_monitor_id, "abc-123")
        self.assertEqual(state.custom_events_status, "ENABLED")
        self.assertTrue(state.cw_log_enabled)
        self.assertEqual(state.tags, {"env": "dev"})

    def test_read_gone(self) -> None:
        rum_client = MagicMock()
        rum_client.get_app_monitor.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "gone"}}, "GetAppMonitor"
        )
        self.assertIsNone(AppMonitorResource().read(make_meta(rum_client), "web"))

    def test_update_sends_only_changes(self) -> None:
        rum_client = MagicMock()
        rum_client.get_app_monitor.return_value = {"AppMonitor": {"Name": "web"}}

        AppMonitorResource().update(
            make_meta(rum_client),
            "web",
            AppMonitorConfig(name="web", domain="example.com"),
            AppMonitorConfig(name="web", domain="example.com", custom_events_status="ENABLED"),
        )

        rum_client.update_app_monitor.assert_called_once_with(Name="web", CustomEvents={"Status": "ENABLED"})

    def test_create(self) -> None:
        rum_client = MagicMock()
        rum_client.get_app_monitor.return_value = {"AppMonitor": {"Name": "web"}}

        AppMonitorResource().create(
            make_meta(rum_client),
            AppMonitorConfig(
                name="web", domain="example.com", app_monitor_configuration=AppMonitorConfiguration(), tags={"a": "b"}
            ),
        )

        kwargs = rum_client.create_app_monitor.call_args[1]
        self.assertEqual(kwargs["CustomEvents"], {"Status": "DISABLED"})
        self.assertEqual(kwargs["AppMonitorConfiguration"]["SessionSampleRate"], 0.1)
        self.assertEqual(kwargs["Tags"], {"a": "b"})


if __name__ == "__main__":
    unittest.main()
