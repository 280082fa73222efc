#!/usr/bin/env python3
"""
Command-line interface for reconciling the tags of a single AWS resource.

Requires AWS credentials to be configured (via AWS CLI, environment variables,
or IAM roles). Provider settings such as ignored tag keys and default tags are
read from the environment, see ``tfaws.config``.

Usage:
    tfaws-tags --resource-type aws_sqs_queue --identifier https://sqs.../my-queue --tag env=dev
    tfaws-tags --resource-type aws_backup_vault --identifier arn:aws:backup:... --tag team=infra --dry-run
    tfaws-tags --list-types
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from .config import load_config
from .errors import UnknownResourceTypeError, is_not_found
from .provider import Provider
from .services import build_registry
from .tags import KeyValueTags, diff_tags
from .utils import setup_logging


def parse_tag_arguments(values: List[str]) -> Dict[str, str]:
    """Turns ``key=value`` arguments into a tag mapping."""
    tags = {}
    for value in values:
        key, sep, tag_value = value.partition("=")
        if not sep or not key:
            raise ValueError(f"Tags must look like key=value, got '{value}'")
        tags[key] = tag_value
    return tags


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconcile the tags of an AWS resource with a desired tag set",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tfaws-tags --resource-type aws_sqs_queue --identifier https://sqs.eu-west-2.amazonaws.com/123456789012/jobs --tag env=dev
  tfaws-tags --resource-type aws_rum_app_monitor --identifier arn:aws:rum:... --tag team=web --dry-run
        """,
    )

    parser.add_argument("--resource-type", help="Registered resource type, e.g. aws_sqs_queue")
    parser.add_argument("--identifier", help="Identifier used by the service's tagging API (ARN or URL)")
    parser.add_argument(
        "--tag",
        action="append",
        default=[],
        help="Desired tag as key=value; repeat for more tags. Tags not listed are removed.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Show the changes without applying them")
    parser.add_argument("--region", default=None, help="AWS region for API calls (overrides AWS_REGION)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (overrides LOG_LEVEL)",
    )
    parser.add_argument(
        "--output-format",
        choices=["json", "pretty"],
        default="pretty",
        help="Output format for the tag changes (default: pretty)",
    )
    parser.add_argument("--list-types", action="store_true", help="List the taggable resource types and exit")
    return parser


def print_changes(report: Dict[str, Any]) -> None:
    """Print a human-readable summary of the tag changes."""
    print("\n" + "=" * 60)
    print(f"TAG CHANGES FOR {report['resource_type']} {report['identifier']}")
    print("=" * 60)

    to_remove = report["to_remove"]
    print(f"\n=== Tags to remove ({len(to_remove)}) ===")
    for key in to_remove:
        print(f"-  {key}")

    to_upsert = report["to_upsert"]
    print(f"\n=== Tags to add or update ({len(to_upsert)}) ===")
    for key in sorted(to_upsert):
        print(f"+  {key}={to_upsert[key]}")

    if not to_remove and not to_upsert:
        print("\nNo changes: tags are up to date.")
    elif report["dry_run"]:
        print("\nDry run: no changes applied.")
    print("\n" + "=" * 60)


def run(argv: Optional[List[str]] = None) -> int:
    """Runs the command line and returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config()
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1

    if args.region:
        config.aws_region = args.region
    if args.log_level:
        config.log_level = args.log_level
    logger = setup_logging(config.log_level)

    registry = build_registry()
    provider = Provider(config, registry)

    if args.list_types:
        for type_name in registry.resource_type_names():
            _, registration = registry.resource(type_name)
            if registration.tags is not None:
                print(type_name)
        return 0

    if not args.resource_type or not args.identifier:
        parser.print_usage(sys.stderr)
        print("ERROR: --resource-type and --identifier are required", file=sys.stderr)
        return 1

    try:
        desired = provider.tags_all(parse_tag_arguments(args.tag))
        current = provider.read_tags(args.resource_type, args.identifier)
        to_remove, to_upsert = diff_tags(current, KeyValueTags(desired).ignore_aws().ignore_config(config.ignore_tags))

        report = {
            "resource_type": args.resource_type,
            "identifier": args.identifier,
            "to_remove": sorted(to_remove),
            "to_upsert": to_upsert,
            "dry_run": args.dry_run,
        }

        if not args.dry_run and (to_remove or to_upsert):
            logger.info(f"Updating tags on {args.resource_type} {args.identifier}")
            provider.update_tags(args.resource_type, args.identifier, current, desired)

        if args.output_format == "json":
            print(json.dumps(report, indent=2))
        else:
            print_changes(report)
        return 0

    except UnknownResourceTypeError as e:
        print(f"ERROR: {e.args[0]}", file=sys.stderr)
        return 1
    except Exception as e:
        if is_not_found(e):
            logger.warning(f"{args.resource_type} ({args.identifier}) not found")
            print(f"ERROR: {args.resource_type} ({args.identifier}) not found", file=sys.stderr)
            return 1
        logger.error(f"Error reconciling tags: {str(e)}")
        print(f"ERROR: {str(e)}", file=sys.stderr)
        return 1


def main() -> None:
    """Main entry point for the command-line tag reconciler."""
    sys.exit(run())


if __name__ == "__main__":
    main()
