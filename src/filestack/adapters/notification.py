"""Bucket notification -> function wiring (ResourceKind.NOTIFICATION_WIRING)."""

from __future__ import annotations

from typing import Any

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from filestack.adapters._aws import aws_client, error_code
from filestack.core.exceptions import AdapterError
from filestack.models.deployment import ResourceKind

logger = structlog.get_logger()

KIND = ResourceKind.NOTIFICATION_WIRING

DEFAULT_EVENTS = ["s3:ObjectRemoved:*"]


class S3NotificationAdapter:
    """Grant S3 invoke rights on a function and register one notification rule.

    The rule id doubles as the Lambda permission statement id, so
    re-applying with the same id replaces rather than duplicates both.
    """

    def __init__(self, name: str, identity: dict[str, Any] | None = None, *,
                 region: str = "us-east-1", endpoint_url: str | None = None) -> None:
        self._resource = name
        self._identity = dict(identity or {})
        self._region = self._identity.get("region", region)
        self._s3 = aws_client("s3", self._region, endpoint_url)
        self._lambda = aws_client("lambda", self._region, endpoint_url)

    def identity(self) -> dict[str, Any]:
        return dict(self._identity)

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        rule_id = spec["rule_id"]
        bucket = spec["bucket"]
        function_arn = spec["function_arn"]
        events = list(spec.get("events") or DEFAULT_EVENTS)

        rule: dict[str, Any] = {"Id": rule_id, "LambdaFunctionArn": function_arn, "Events": events}
        if spec.get("prefix") or spec.get("suffix"):
            rules = []
            if spec.get("prefix"):
                rules.append({"Name": "prefix", "Value": spec["prefix"]})
            if spec.get("suffix"):
                rules.append({"Name": "suffix", "Value": spec["suffix"]})
            rule["Filter"] = {"Key": {"FilterRules": rules}}

        try:
            self._grant_invoke(rule_id, spec["function_name"], spec["bucket_arn"])
            config = self._current_config(bucket)
            others = [r for r in config.get("LambdaFunctionConfigurations", []) if r.get("Id") != rule_id]
            config["LambdaFunctionConfigurations"] = others + [rule]
            self._s3.put_bucket_notification_configuration(
                Bucket=bucket, NotificationConfiguration=config,
            )
        except (ClientError, BotoCoreError) as exc:
            raise AdapterError(KIND, f"wiring {bucket!r} -> {function_arn!r} failed: {exc}") from exc

        logger.info("notification_wired", resource=self._resource, bucket=bucket, rule_id=rule_id)
        self._identity = {
            "rule_id": rule_id, "bucket": bucket,
            "function_name": spec["function_name"], "region": self._region,
        }
        return {"rule_id": rule_id, "bucket": bucket, "function_arn": function_arn, "events": events}

    def remove(self) -> None:
        rule_id = self._identity.get("rule_id")
        bucket = self._identity.get("bucket")
        if not rule_id or not bucket:
            return
        try:
            config = self._current_config(bucket)
            remaining = [r for r in config.get("LambdaFunctionConfigurations", []) if r.get("Id") != rule_id]
            config["LambdaFunctionConfigurations"] = remaining
            self._s3.put_bucket_notification_configuration(
                Bucket=bucket, NotificationConfiguration=config,
            )
        except ClientError as exc:
            if error_code(exc) != "NoSuchBucket":
                raise AdapterError(KIND, f"unwiring {bucket!r} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise AdapterError(KIND, f"unwiring {bucket!r} failed: {exc}") from exc

        function_name = self._identity.get("function_name")
        if function_name:
            try:
                self._lambda.remove_permission(FunctionName=function_name, StatementId=rule_id)
            except ClientError as exc:
                if error_code(exc) != "ResourceNotFoundException":
                    raise AdapterError(KIND, f"revoking {rule_id!r} failed: {exc}") from exc
            except BotoCoreError as exc:
                raise AdapterError(KIND, f"revoking {rule_id!r} failed: {exc}") from exc
        logger.info("notification_unwired", resource=self._resource, bucket=bucket, rule_id=rule_id)

    def _grant_invoke(self, statement_id: str, function_name: str, bucket_arn: str) -> None:
        try:
            self._lambda.add_permission(
                FunctionName=function_name,
                StatementId=statement_id,
                Action="lambda:InvokeFunction",
                Principal="s3.amazonaws.com",
                SourceArn=bucket_arn,
            )
        except ClientError as exc:
            if error_code(exc) != "ResourceConflictException":
                raise

    def _current_config(self, bucket: str) -> dict[str, Any]:
        resp = self._s3.get_bucket_notification_configuration(Bucket=bucket)
        return {k: v for k, v in resp.items() if k != "ResponseMetadata"}
