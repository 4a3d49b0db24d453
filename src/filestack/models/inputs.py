"""Deployment input models: the externally supplied file service configuration."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from filestack.core.exceptions import ConfigValidationError

DEFAULT_MAX_UPLOAD_SIZE = 26214400  # 25 MiB


class _InputModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class FunctionOptions(_InputModel):
    """Per-function overrides for one of the deployed functions."""

    code: Optional[str] = None
    handler: str = "handler.handler"
    runtime: Optional[str] = None
    memory_size: Optional[int] = Field(default=None, gt=0)
    timeout: Optional[int] = Field(default=None, gt=0)
    role: Optional[str] = None
    env: dict[str, str] = Field(default_factory=dict)


class ApiOptions(FunctionOptions):
    """API function options, including upload limits enforced by the API."""

    min_upload_size: int = Field(default=0, ge=0)
    max_upload_size: int = Field(default=DEFAULT_MAX_UPLOAD_SIZE, ge=0)
    debug: Optional[bool] = None
    plugins: Optional[list[str]] = None

    @model_validator(mode="after")
    def _check_upload_range(self) -> ApiOptions:
        if self.min_upload_size > self.max_upload_size:
            raise ValueError(
                f"minUploadSize ({self.min_upload_size}) exceeds maxUploadSize ({self.max_upload_size})"
            )
        return self


class DeploymentConfig(_InputModel):
    """Desired configuration for one file service deployment."""

    region: str = Field(min_length=1)
    bucket_name: str = Field(min_length=3, max_length=63)
    storage_options: dict[str, Any] = Field(default_factory=dict)
    cleanup_function_options: FunctionOptions = Field(default_factory=FunctionOptions)
    transform_function_options: FunctionOptions = Field(default_factory=FunctionOptions)
    download_function_options: FunctionOptions = Field(default_factory=FunctionOptions)
    api_options: ApiOptions = Field(default_factory=ApiOptions)
    debug_flag: Optional[bool] = None
    plugin_list: Optional[list[str]] = None

    @property
    def debug(self) -> bool:
        """`debugFlag`, else `apiOptions.debug`, else on."""
        for value in (self.debug_flag, self.api_options.debug):
            if value is not None:
                return value
        return True

    @property
    def plugins(self) -> list[str]:
        for value in (self.plugin_list, self.api_options.plugins):
            if value is not None:
                return list(value)
        return []


def parse_deployment_config(raw: dict[str, Any]) -> DeploymentConfig:
    """Validate raw input, raising ConfigValidationError on any problem."""
    try:
        return DeploymentConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid deployment configuration: {exc}") from exc
