"""Pluggable state store and lock backends behind Protocol interfaces."""

from __future__ import annotations

from filestack.core.config import AppSettings
from filestack.core.protocols import IDeploymentLock, IStateStore
from filestack.persistence.dynamodb_backend import DynamoDBStateStore
from filestack.persistence.file_backend import FileStateStore
from filestack.persistence.memory_backend import MemoryDeploymentLock, MemoryStateStore
from filestack.persistence.redis_backend import RedisDeploymentLock
from filestack.persistence.s3_backend import S3StateStore


def create_state_store(settings: AppSettings | None = None) -> IStateStore:
    """Create the configured state store backend."""
    if settings is None:
        settings = AppSettings()

    backend = settings.state.backend
    if backend == "file":
        return FileStateStore(settings.state.path)
    if backend == "s3":
        return S3StateStore(
            bucket=settings.state.bucket,
            key_prefix=settings.state.key_prefix,
            region=settings.aws.region,
            endpoint_url=settings.aws.endpoint_url,
        )
    if backend == "dynamodb":
        return DynamoDBStateStore(
            table=settings.state.table,
            region=settings.aws.region,
            endpoint_url=settings.aws.endpoint_url,
        )
    return MemoryStateStore()


def create_lock(settings: AppSettings | None = None) -> IDeploymentLock:
    """Create the configured deployment lock backend."""
    if settings is None:
        settings = AppSettings()

    if settings.lock.backend == "redis":
        return RedisDeploymentLock(
            host=settings.lock.host,
            port=settings.lock.port,
            db=settings.lock.db,
            lease_seconds=settings.lock.lease_seconds,
            blocking_timeout=settings.lock.blocking_timeout,
        )
    return MemoryDeploymentLock(blocking_timeout=settings.lock.blocking_timeout)


def create_persistence(settings: AppSettings | None = None):
    """Create wired-up persistence backends from application settings.

    Returns:
        Tuple of (state_store, lock).
    """
    if settings is None:
        settings = AppSettings()
    return create_state_store(settings), create_lock(settings)
