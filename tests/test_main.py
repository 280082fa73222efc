"""
Tests for the tfaws-tags command line.
"""

import io
import json
import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from tfaws.main import parse_tag_arguments, run

QUEUE_URL = "https://sqs.eu-west-2.amazonaws.com/123456789012/jobs"


@patch.dict("os.environ", {"AWS_REGION": "eu-west-2"}, clear=True)
@patch("tfaws.registry.boto3.client")
class TestRun(unittest.TestCase):
    """Runs the command line against a mocked SQS client."""

    def run_cli(self, *argv: str):
        stdout, stderr = io.StringIO(), io.StringIO()
        with patch("sys.stdout", stdout), patch("sys.stderr", stderr):
            exit_code = run(list(argv))
        return exit_code, stdout.getvalue(), stderr.getvalue()

    def test_reconciles_tags(self, mock_boto3_client: MagicMock) -> None:
        sqs_client = mock_boto3_client.return_value
        sqs_client.list_queue_tags.return_value = {"Tags": {"env": "dev", "old": "x"}}

        exit_code, stdout, _ = self.run_cli(
            "--resource-type", "aws_sqs_queue", "--identifier", QUEUE_URL, "--tag", "env=prod"
        )

        self.assertEqual(exit_code, 0)
        sqs_client.untag_queue.assert_called_once_with(QueueUrl=QUEUE_URL, TagKeys=["old"])
        sqs_client.tag_queue.assert_called_once_with(QueueUrl=QUEUE_URL, Tags={"env": "prod"})
        self.assertIn("+  env=prod", stdout)
        self.assertIn("-  old", stdout)

    def test_dry_run_json(self, mock_boto3_client: MagicMock) -> None:
        sqs_client = mock_boto3_client.return_value
        sqs_client.list_queue_tags.return_value = {"Tags": {"env": "dev"}}

        exit_code, stdout, _ = self.run_cli(
            "--resource-type",
            "aws_sqs_queue",
            "--identifier",
            QUEUE_URL,
            "--tag",
            "env=dev",
            "--tag",
            "team=jobs",
            "--dry-run",
            "--output-format",
            "json",
        )

        self.assertEqual(exit_code, 0)
        report = json.loads(stdout)
        self.assertEqual(report["to_remove"], [])
        self.assertEqual(report["to_upsert"], {"team": "jobs"})
        self.assertTrue(report["dry_run"])
        sqs_client.tag_queue.assert_not_called()

    def test_no_changes(self, mock_boto3_client: MagicMock) -> None:
        sqs_client = mock_boto3_client.return_value
        sqs_client.list_queue_tags.return_value = {"Tags": {"env": "dev", "aws:cloudformation:stack-name": "s"}}

        exit_code, stdout, _ = self.run_cli(
            "--resource-type", "aws_sqs_queue", "--identifier", QUEUE_URL, "--tag", "env=dev"
        )

        self.assertEqual(exit_code, 0)
        self.assertIn("No changes", stdout)
        sqs_client.untag_queue.assert_not_called()
        sqs_client.tag_queue.assert_not_called()

    def test_resource_not_found(self, mock_boto3_client: MagicMock) -> None:
        mock_boto3_client.return_value.list_queue_tags.side_effect = ClientError(
            {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue", "Message": "gone"}}, "ListQueueTags"
        )
        exit_code, _, stderr = self.run_cli("--resource-type", "aws_sqs_queue", "--identifier", QUEUE_URL)
        self.assertEqual(exit_code, 1)
        self.assertIn("not found", stderr)

    def test_unknown_resource_type(self, mock_boto3_client: MagicMock) -> None:
        exit_code, _, stderr = self.run_cli("--resource-type", "aws_nope", "--identifier", "x")
        self.assertEqual(exit_code, 1)
        self.assertIn("Unknown resource type 'aws_nope'", stderr)
        mock_boto3_client.assert_not_called()

    def test_missing_arguments(self, mock_boto3_client: MagicMock) -> None:
        exit_code, _, stderr = self.run_cli("--resource-type", "aws_sqs_queue")
        self.assertEqual(exit_code, 1)
        self.assertIn("--identifier", stderr)

    def test_list_types(self, mock_boto3_client: MagicMock) -> None:
        exit_code, stdout, _ = self.run_cli("--list-types")
        self.assertEqual(exit_code, 0)
        self.assertEqual(stdout.split(), ["aws_backup_vault", "aws_rum_app_monitor", "aws_sqs_queue"])

    @patch.dict("os.environ", {"MAX_RETRIES": "lots"})
    def test_configuration_error(self, mock_boto3_client: MagicMock) -> None:
        exit_code, _, stderr = self.run_cli("--list-types")
        self.assertEqual(exit_code, 1)
        self.assertIn("Configuration error", stderr)


class TestParseTagArguments(unittest.TestCase):
    def test_parse(self) -> None:
        self.assertEqual(parse_tag_arguments(["a=1", "b=", "c=x=y"]), {"a": "1", "b": "", "c": "x=y"})

    def test_invalid(self) -> None:
        with self.assertRaises(ValueError):
            parse_tag_arguments(["novalue"])
        with self.assertRaises(ValueError):
            parse_tag_arguments(["=value"])


if __name__ == "__main__":
    unittest.main()
