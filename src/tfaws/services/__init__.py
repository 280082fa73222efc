"""
AWS service packages.

Each module declares a ``SERVICE_PACKAGE``; ``build_registry`` collects them
into the read-only registration table used by the provider.
"""

from typing import Tuple

from ..registry import Registry, ServicePackage
from . import appflow, backup, elbv2, grafana, rum, sqs, sts

SERVICE_PACKAGES: Tuple[ServicePackage, ...] = (
    appflow.SERVICE_PACKAGE,
    backup.SERVICE_PACKAGE,
    elbv2.SERVICE_PACKAGE,
    grafana.SERVICE_PACKAGE,
    rum.SERVICE_PACKAGE,
    sqs.SERVICE_PACKAGE,
    sts.SERVICE_PACKAGE,
)


def build_registry() -> Registry:
    return Registry(SERVICE_PACKAGES)


__all__ = ["SERVICE_PACKAGES", "build_registry"]
