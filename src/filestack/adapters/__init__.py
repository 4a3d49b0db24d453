"""Provisioner adapters, selected per ResourceKind from a static registry."""

from __future__ import annotations

from functools import partial

from filestack.adapters.function import LambdaFunctionAdapter
from filestack.adapters.notification import S3NotificationAdapter
from filestack.adapters.routing import HttpApiRoutingAdapter
from filestack.adapters.storage import S3BucketAdapter
from filestack.core.config import AppSettings
from filestack.core.protocols import IAdapterFactory
from filestack.models.deployment import ResourceKind

AdapterRegistry = dict[ResourceKind, IAdapterFactory]


def create_adapter_registry(
    settings: AppSettings | None = None, *, region: str | None = None,
) -> AdapterRegistry:
    """Bind each resource kind to its AWS adapter using the configured clients."""
    if settings is None:
        settings = AppSettings()

    aws = {"region": region or settings.aws.region, "endpoint_url": settings.aws.endpoint_url}
    return {
        ResourceKind.STORAGE: partial(S3BucketAdapter, **aws),
        ResourceKind.COMPUTE_FUNCTION: partial(
            LambdaFunctionAdapter,
            default_role=settings.aws.lambda_role_arn,
            default_runtime=settings.aws.lambda_runtime,
            **aws,
        ),
        ResourceKind.NOTIFICATION_WIRING: partial(S3NotificationAdapter, **aws),
        ResourceKind.API_ROUTING: partial(HttpApiRoutingAdapter, **aws),
    }


__all__ = [
    "AdapterRegistry",
    "HttpApiRoutingAdapter",
    "LambdaFunctionAdapter",
    "S3BucketAdapter",
    "S3NotificationAdapter",
    "create_adapter_registry",
]
