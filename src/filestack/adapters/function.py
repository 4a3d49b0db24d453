"""Lambda function adapter (ResourceKind.COMPUTE_FUNCTION)."""

from __future__ import annotations

from typing import Any

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from filestack.adapters._aws import aws_client, error_code
from filestack.adapters.packaging import load_code
from filestack.core.exceptions import AdapterError
from filestack.models.deployment import ResourceKind

logger = structlog.get_logger()

KIND = ResourceKind.COMPUTE_FUNCTION


class LambdaFunctionAdapter:
    """Create-or-update a Lambda function from a code bundle."""

    def __init__(self, name: str, identity: dict[str, Any] | None = None, *,
                 region: str = "us-east-1", endpoint_url: str | None = None,
                 default_role: str = "", default_runtime: str = "python3.12") -> None:
        self._resource = name
        self._identity = dict(identity or {})
        self._region = self._identity.get("region", region)
        self._default_role = default_role
        self._default_runtime = default_runtime
        self._client = aws_client("lambda", self._region, endpoint_url)

    def identity(self) -> dict[str, Any]:
        return dict(self._identity)

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        function_name = spec["name"]
        role = spec.get("role") or self._default_role
        if not role:
            raise AdapterError(KIND, f"function {function_name!r} has no execution role configured")
        if spec.get("code") is None:
            raise AdapterError(KIND, f"function {function_name!r} has no code bundle configured")
        try:
            zip_bytes = load_code(spec["code"])
        except OSError as exc:
            raise AdapterError(KIND, f"loading code for {function_name!r} failed: {exc}") from exc

        settings: dict[str, Any] = {
            "FunctionName": function_name,
            "Role": role,
            "Runtime": spec.get("runtime") or self._default_runtime,
            "Handler": spec.get("handler", "handler.handler"),
            "Description": spec.get("description", ""),
            "Environment": {"Variables": {k: str(v) for k, v in spec.get("env", {}).items()}},
        }
        if spec.get("timeout"):
            settings["Timeout"] = int(spec["timeout"])
        if spec.get("memory_size"):
            settings["MemorySize"] = int(spec["memory_size"])

        try:
            if self._exists(function_name):
                self._client.update_function_configuration(**settings)
                self._client.get_waiter("function_updated_v2").wait(FunctionName=function_name)
                conf = self._client.update_function_code(
                    FunctionName=function_name, ZipFile=zip_bytes, Publish=True,
                )
                logger.info("function_updated", resource=self._resource, function=function_name)
            else:
                conf = self._client.create_function(
                    **settings, Code={"ZipFile": zip_bytes}, Publish=True,
                )
                logger.info("function_created", resource=self._resource, function=function_name)
            self._client.get_waiter("function_active_v2").wait(FunctionName=function_name)
        except (ClientError, BotoCoreError) as exc:
            raise AdapterError(KIND, f"applying function {function_name!r} failed: {exc}") from exc

        self._identity = {"name": function_name, "region": self._region}
        return {
            "name": function_name,
            "arn": _unqualified(conf["FunctionArn"], conf.get("Version", "$LATEST")),
            "version": conf.get("Version", "$LATEST"),
        }

    def remove(self) -> None:
        function_name = self._identity.get("name")
        if not function_name:
            return
        try:
            self._client.delete_function(FunctionName=function_name)
        except ClientError as exc:
            if error_code(exc) == "ResourceNotFoundException":
                return
            raise AdapterError(KIND, f"deleting function {function_name!r} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise AdapterError(KIND, f"deleting function {function_name!r} failed: {exc}") from exc
        logger.info("function_deleted", resource=self._resource, function=function_name)

    def _exists(self, function_name: str) -> bool:
        try:
            self._client.get_function(FunctionName=function_name)
            return True
        except ClientError as exc:
            if error_code(exc) == "ResourceNotFoundException":
                return False
            raise


def _unqualified(arn: str, version: str) -> str:
    """Strip a trailing `:<version>` so dependents always invoke the latest code."""
    suffix = f":{version}"
    if version != "$LATEST" and arn.endswith(suffix) and arn.count(":") > 6:
        return arn[: -len(suffix)]
    return arn
