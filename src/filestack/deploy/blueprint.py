"""The file service's fixed resource set and how the resources feed each other."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from filestack.models.deployment import Reference, ResourceKind, ResourceSpec, RoutingRule
from filestack.models.inputs import DeploymentConfig, FunctionOptions

MANAGE_FILES = "manage-files"
STORAGE = "storage"
FILE_CLEANUP = "file-cleanup"
IMAGE_TRANSFORMER = "image-transformer"
DOWNLOAD_FILES = "download-files"
API = "api"
API_GATEWAY = "api-gateway"

FILES_PATH_PREFIX = "/files"
FILES_CACHE_TTL = 2592000  # 30 days
OBJECT_REMOVED_EVENTS = ["s3:ObjectRemoved:*"]


def cleanup_rule_id(deployment_id: str) -> str:
    """Stable notification rule id, so re-deploys replace rather than add."""
    return f"{deployment_id}-manage-files-on-delete"


def derive_routing_rules() -> list[RoutingRule]:
    return [RoutingRule(path_pattern=f"{FILES_PATH_PREFIX}/*", ttl=FILES_CACHE_TTL)]


def _function_config(
    options: FunctionOptions,
    *,
    name: str,
    description: str,
    code_dir: Path,
    env: dict[str, str],
    timeout: int | None = None,
) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "handler": options.handler,
        "runtime": options.runtime,
        "role": options.role,
        "code": options.code or str(code_dir),
        "timeout": options.timeout or timeout,
        "memory_size": options.memory_size,
        "env": {**options.env, **env},
    }


def _ref(field: str, source: str, output_key: str) -> Reference:
    return Reference(field=field, source=source, output_key=output_key)


def build_resource_specs(
    config: DeploymentConfig,
    *,
    deployment_id: str,
    code_root: str | Path = "functions",
) -> list[ResourceSpec]:
    """Declare every resource of the file service with its cross-references."""
    code_root = Path(code_root)
    bucket = config.bucket_name
    api_options = config.api_options

    def fn_name(suffix: str) -> str:
        return f"{deployment_id}-{suffix}"

    return [
        ResourceSpec(
            name=MANAGE_FILES,
            kind=ResourceKind.COMPUTE_FUNCTION,
            config=_function_config(
                config.cleanup_function_options,
                name=fn_name("manage-files"),
                description="Triggered once a file was deleted.",
                code_dir=code_root / "manage_files",
                env={"S3_BUCKET": bucket},
                timeout=10,
            ),
        ),
        ResourceSpec(
            name=STORAGE,
            kind=ResourceKind.STORAGE,
            config={**config.storage_options, "name": bucket, "region": config.region},
        ),
        ResourceSpec(
            name=FILE_CLEANUP,
            kind=ResourceKind.NOTIFICATION_WIRING,
            config={"rule_id": cleanup_rule_id(deployment_id), "events": OBJECT_REMOVED_EVENTS},
            references=[
                _ref("bucket", STORAGE, "name"),
                _ref("bucket_arn", STORAGE, "arn"),
                _ref("function_arn", MANAGE_FILES, "arn"),
                _ref("function_name", MANAGE_FILES, "name"),
            ],
        ),
        ResourceSpec(
            name=IMAGE_TRANSFORMER,
            kind=ResourceKind.COMPUTE_FUNCTION,
            config=_function_config(
                config.transform_function_options,
                name=fn_name("image-transformer"),
                description="Performs image optimization, resizing, etc.",
                code_dir=code_root / "image_transformer",
                env={},
            ),
            references=[_ref("env.S3_BUCKET", STORAGE, "name")],
        ),
        ResourceSpec(
            name=DOWNLOAD_FILES,
            kind=ResourceKind.COMPUTE_FUNCTION,
            config=_function_config(
                config.download_function_options,
                name=fn_name("download-files"),
                description="Serves previously uploaded files.",
                code_dir=code_root / "download_file",
                env={},
            ),
            references=[
                _ref("env.S3_BUCKET", STORAGE, "name"),
                _ref("env.IMAGE_TRANSFORMER_LAMBDA_NAME", IMAGE_TRANSFORMER, "name"),
            ],
        ),
        ResourceSpec(
            name=API,
            kind=ResourceKind.COMPUTE_FUNCTION,
            config=_function_config(
                api_options,
                name=fn_name("api"),
                description="Files GraphQL API.",
                code_dir=code_root / "api",
                env={
                    "DEBUG": "true" if config.debug else "false",
                    "UPLOAD_MIN_FILE_SIZE": str(api_options.min_upload_size),
                    "UPLOAD_MAX_FILE_SIZE": str(api_options.max_upload_size),
                    "PLUGINS": json.dumps(config.plugins),
                },
            ),
            references=[_ref("env.S3_BUCKET", STORAGE, "name")],
        ),
        ResourceSpec(
            name=API_GATEWAY,
            kind=ResourceKind.API_ROUTING,
            config={
                "name": fn_name("api"),
                "description": "Files API",
                "endpoints": [
                    {"path": f"{FILES_PATH_PREFIX}/{{path+}}", "method": "ANY"},
                    {"path": "/graphql", "method": "ANY"},
                ],
            },
            references=[
                _ref("endpoints.0.function", DOWNLOAD_FILES, "arn"),
                _ref("endpoints.1.function", API, "arn"),
            ],
        ),
    ]
