"""
AWS Backup service package.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import EmptyResultError, NotFoundError, ResourceOperationError
from ..finder import find_all_in_pages
from ..registry import ResourceRegistration, ServicePackage, TagsSpec
from ..resource import SDK_ERRORS, Resource
from ..tags import KeyValueTags, update_tags as reconcile_tags
from ..types import BackupClient, TagMap
from ..utils import finder_error_handler, setup_logging

logger = setup_logging()

ERR_CODE_RESOURCE_NOT_FOUND = "ResourceNotFoundException"
# DescribeBackupVault also reports a missing vault as access denied
ERR_CODE_ACCESS_DENIED = "AccessDeniedException"

VAULT_NAME_PATTERN = re.compile(r"^[0-9A-Za-z_-]{2,50}$")

RECOVERY_POINT_STATUS_DELETED = "DELETED"
RECOVERY_POINT_DELETE_POLL_SECONDS = 5


@dataclass
class VaultConfig:
    name: str
    kms_key_arn: Optional[str] = None
    force_destroy: bool = False
    tags: TagMap = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not VAULT_NAME_PATTERN.match(self.name):
            raise ValueError(
                f"invalid Backup Vault name '{self.name}': must be 2-50 letters, numbers, hyphens or underscores"
            )


@dataclass
class VaultState:
    id: str
    arn: str
    name: str
    kms_key_arn: Optional[str]
    recovery_points: int
    tags: Optional[TagMap] = None


@finder_error_handler(ERR_CODE_RESOURCE_NOT_FOUND, ERR_CODE_ACCESS_DENIED)
def find_vault_by_name(backup_client: BackupClient, name: str) -> Dict[str, Any]:
    output = backup_client.describe_backup_vault(BackupVaultName=name)
    if not output:
        raise EmptyResultError(last_request={"BackupVaultName": name})
    return output


def find_recovery_points_by_vault(backup_client: BackupClient, name: str) -> List[Dict[str, Any]]:
    pages = backup_client.get_paginator("list_recovery_points_by_backup_vault").paginate(BackupVaultName=name)
    return find_all_in_pages(pages, "RecoveryPoints")


@finder_error_handler(ERR_CODE_RESOURCE_NOT_FOUND)
def find_recovery_point_by_arn(backup_client: BackupClient, vault_name: str, arn: str) -> Dict[str, Any]:
    output = backup_client.describe_recovery_point(BackupVaultName=vault_name, RecoveryPointArn=arn)
    if not output:
        raise EmptyResultError(last_request={"BackupVaultName": vault_name, "RecoveryPointArn": arn})
    return output


def wait_recovery_point_deleted(backup_client: BackupClient, vault_name: str, arn: str, timeout: float) -> None:
    """
    Polls the recovery point until it is gone or reports DELETED.

    Raises:
        TimeoutError: If the recovery point still exists after ``timeout`` seconds
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            output = find_recovery_point_by_arn(backup_client, vault_name, arn)
        except NotFoundError:
            return

        status = output.get("Status", "")
        if status == RECOVERY_POINT_STATUS_DELETED:
            return
        if time.monotonic() >= deadline:
            raise TimeoutError(
                f"timeout while waiting for state to become '{RECOVERY_POINT_STATUS_DELETED}' "
                f"(last state: '{status}', timeout: {timeout}s)"
            )
        time.sleep(RECOVERY_POINT_DELETE_POLL_SECONDS)


def list_tags(backup_client: BackupClient, identifier: str) -> KeyValueTags:
    """Lists backup service tags. The identifier is the resource ARN."""
    response = backup_client.list_tags(ResourceArn=identifier)
    return KeyValueTags(response.get("Tags", {}))


def update_tags(backup_client: BackupClient, identifier: str, old: Any, new: Any) -> None:
    """Updates backup service tags. The identifier is the resource ARN."""
    reconcile_tags(
        identifier,
        old,
        new,
        untag=lambda keys: backup_client.untag_resource(ResourceArn=identifier, TagKeyList=keys),
        tag=lambda tags: backup_client.tag_resource(ResourceArn=identifier, Tags=tags),
    )


class VaultResource(Resource[VaultConfig, VaultState]):
    type_name = "aws_backup_vault"
    display_name = "Backup Vault"

    def _create(self, meta: Any, config: VaultConfig) -> str:
        kwargs: Dict[str, Any] = {"BackupVaultName": config.name}
        if config.tags:
            kwargs["BackupVaultTags"] = dict(config.tags)
        if config.kms_key_arn:
            kwargs["EncryptionKeyArn"] = config.kms_key_arn

        meta.client("backup").create_backup_vault(**kwargs)
        return config.name

    def _find(self, meta: Any, resource_id: str) -> VaultState:
        output = find_vault_by_name(meta.client("backup"), resource_id)
        return VaultState(
            id=resource_id,
            arn=output.get("BackupVaultArn", ""),
            name=output.get("BackupVaultName", resource_id),
            kms_key_arn=output.get("EncryptionKeyArn"),
            recovery_points=int(output.get("NumberOfRecoveryPoints", 0)),
        )

    def _delete(self, meta: Any, resource_id: str, config: Optional[VaultConfig]) -> None:
        backup_client = meta.client("backup")

        if config is not None and config.force_destroy:
            self._delete_recovery_points(backup_client, resource_id, meta.config.timeout_seconds)

        backup_client.delete_backup_vault(BackupVaultName=resource_id)

    def _delete_recovery_points(self, backup_client: BackupClient, name: str, timeout: float) -> None:
        try:
            recovery_points = find_recovery_points_by_vault(backup_client, name)
        except SDK_ERRORS as e:
            raise ResourceOperationError(f"listing Backup Vault ({name}) recovery points: {e}") from e

        errors = []
        for recovery_point in recovery_points:
            recovery_point_arn = recovery_point.get("RecoveryPointArn", "")
            logger.debug(f"[Backup] Deleting Backup Vault recovery point: {recovery_point_arn}")
            try:
                backup_client.delete_recovery_point(BackupVaultName=name, RecoveryPointArn=recovery_point_arn)
            except SDK_ERRORS as e:
                errors.append(f"deleting recovery point ({recovery_point_arn}): {e}")
                continue

            try:
                wait_recovery_point_deleted(backup_client, name, recovery_point_arn, timeout)
            except SDK_ERRORS + (TimeoutError,) as e:
                errors.append(f"waiting for recovery point ({recovery_point_arn}) delete: {e}")

        if errors:
            raise ResourceOperationError(f"deleting Backup Vault ({name}): " + "; ".join(errors))


SERVICE_PACKAGE = ServicePackage(
    name="backup",
    resources=(
        ResourceRegistration(
            type_name="aws_backup_vault",
            factory=VaultResource,
            name="Vault",
            tags=TagsSpec(identifier_attribute="arn"),
        ),
    ),
    list_tags=list_tags,
    update_tags=update_tags,
)
