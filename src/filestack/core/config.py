"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class AWSConfig(BaseSettings):
    """AWS client configuration shared by all provisioner adapters."""

    model_config = {"env_prefix": "FILESTACK_AWS_"}

    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    lambda_role_arn: str = ""
    lambda_runtime: str = "python3.12"


class StateConfig(BaseSettings):
    """Where the last successful deployment is persisted."""

    model_config = {"env_prefix": "FILESTACK_STATE_"}

    backend: Literal["memory", "file", "s3", "dynamodb"] = "memory"
    path: str = ".filestack/state"
    bucket: str = ""
    key_prefix: str = "filestack/state/"
    table: str = "filestack-deployments"


class LockConfig(BaseSettings):
    """Mutual exclusion for concurrent deploy/teardown passes."""

    model_config = {"env_prefix": "FILESTACK_LOCK_"}

    backend: Literal["memory", "redis"] = "memory"
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    lease_seconds: int = 1800
    blocking_timeout: float = 10.0


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "FILESTACK_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    log_json: bool = True

    deployment_id: str = "files"
    code_root: str = "functions"
    apply_timeout: float = 300.0

    aws: AWSConfig = Field(default_factory=AWSConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    lock: LockConfig = Field(default_factory=LockConfig)
