"""
Configuration loader for tfaws.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from botocore.config import Config as BotocoreConfig

from .tags import IgnoreConfig

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
ENDPOINT_ENV_PREFIX = "AWS_ENDPOINT_URL_"


@dataclass
class Config:
    """Configuration class for the provider."""

    aws_region: Optional[str] = None
    endpoint_url: Optional[str] = None
    endpoints: Dict[str, str] = field(default_factory=dict)
    sts_region: Optional[str] = None
    log_level: str = "INFO"
    max_retries: int = 3
    timeout_seconds: int = 30
    ignore_tags_keys: FrozenSet[str] = field(default_factory=frozenset)
    ignore_tags_key_prefixes: FrozenSet[str] = field(default_factory=frozenset)
    default_tags: Dict[str, str] = field(default_factory=dict)

    @property
    def ignore_tags(self) -> IgnoreConfig:
        return IgnoreConfig(keys=self.ignore_tags_keys, key_prefixes=self.ignore_tags_key_prefixes)

    def endpoint_for(self, service_name: str) -> Optional[str]:
        """Returns the endpoint override for a boto3 service name, if any."""
        return self.endpoints.get(service_name) or self.endpoint_url

    def botocore_config(self) -> BotocoreConfig:
        return BotocoreConfig(
            retries={"max_attempts": self.max_retries, "mode": "standard"},
            connect_timeout=self.timeout_seconds,
            read_timeout=self.timeout_seconds,
        )


def _split_list(value: str) -> FrozenSet[str]:
    return frozenset(item.strip() for item in value.split(",") if item.strip())


def _parse_default_tags(value: str) -> Dict[str, str]:
    tags = {}
    for item in value.split(","):
        if not item.strip():
            continue
        if "=" not in item:
            raise ValueError(f"TFAWS_DEFAULT_TAGS entries must look like key=value, got '{item.strip()}'")
        key, _, tag_value = item.partition("=")
        if not key.strip():
            raise ValueError("TFAWS_DEFAULT_TAGS contains an empty tag key")
        tags[key.strip()] = tag_value.strip()
    return tags


def _validate_endpoint(name: str, url: str) -> str:
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"{name} must be a URL starting with http:// or https://")
    return url


def _parse_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return value


def load_config() -> Config:
    """
    Loads and validates configuration from the environment.

    Returns:
        Config object with validated settings

    Raises:
        ValueError: If a setting is present but invalid
    """
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")

    endpoint_url = os.environ.get("AWS_ENDPOINT_URL") or None
    if endpoint_url:
        _validate_endpoint("AWS_ENDPOINT_URL", endpoint_url)

    # Per-service overrides, e.g. AWS_ENDPOINT_URL_SQS -> "sqs"
    endpoints = {}
    for name, url in os.environ.items():
        if name.startswith(ENDPOINT_ENV_PREFIX) and url:
            service_name = name[len(ENDPOINT_ENV_PREFIX):].lower().replace("_", "-")
            endpoints[service_name] = _validate_endpoint(name, url)

    return Config(
        aws_region=os.environ.get("AWS_REGION") or None,
        endpoint_url=endpoint_url,
        endpoints=endpoints,
        sts_region=os.environ.get("TFAWS_STS_REGION") or None,
        log_level=log_level,
        max_retries=_parse_int("MAX_RETRIES", "3"),
        timeout_seconds=_parse_int("TIMEOUT_SECONDS", "30"),
        ignore_tags_keys=_split_list(os.environ.get("TFAWS_IGNORE_TAGS_KEYS", "")),
        ignore_tags_key_prefixes=_split_list(os.environ.get("TFAWS_IGNORE_TAGS_KEY_PREFIXES", "")),
        default_tags=_parse_default_tags(os.environ.get("TFAWS_DEFAULT_TAGS", "")),
    )
