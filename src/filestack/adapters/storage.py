"""S3 bucket adapter (ResourceKind.STORAGE)."""

from __future__ import annotations

from typing import Any

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from filestack.adapters._aws import aws_client, error_code
from filestack.core.exceptions import AdapterError
from filestack.models.deployment import ResourceKind

logger = structlog.get_logger()

KIND = ResourceKind.STORAGE


class S3BucketAdapter:
    """Create-if-missing S3 bucket with optional versioning, CORS and tags."""

    def __init__(self, name: str, identity: dict[str, Any] | None = None, *,
                 region: str = "us-east-1", endpoint_url: str | None = None) -> None:
        self._resource = name
        self._identity = dict(identity or {})
        self._region = self._identity.get("region", region)
        self._client = aws_client("s3", self._region, endpoint_url)

    def identity(self) -> dict[str, Any]:
        return dict(self._identity)

    def apply(self, spec: dict[str, Any]) -> dict[str, Any]:
        bucket = spec["name"]
        region = spec.get("region", self._region)
        try:
            if not self._exists(bucket):
                self._create(bucket, region)
                logger.info("bucket_created", resource=self._resource, bucket=bucket)
            if "versioning" in spec:
                status = "Enabled" if spec["versioning"] else "Suspended"
                self._client.put_bucket_versioning(
                    Bucket=bucket, VersioningConfiguration={"Status": status},
                )
            if spec.get("cors"):
                self._client.put_bucket_cors(
                    Bucket=bucket, CORSConfiguration={"CORSRules": spec["cors"]},
                )
            if spec.get("tags"):
                self._client.put_bucket_tagging(
                    Bucket=bucket,
                    Tagging={"TagSet": [{"Key": k, "Value": str(v)} for k, v in spec["tags"].items()]},
                )
        except (ClientError, BotoCoreError) as exc:
            raise AdapterError(KIND, f"applying bucket {bucket!r} failed: {exc}") from exc

        self._identity = {"name": bucket, "region": region}
        return {"name": bucket, "arn": f"arn:aws:s3:::{bucket}", "region": region}

    def remove(self) -> None:
        bucket = self._identity.get("name")
        if not bucket:
            return
        try:
            self._client.delete_bucket(Bucket=bucket)
        except ClientError as exc:
            if error_code(exc) == "NoSuchBucket":
                return
            raise AdapterError(KIND, f"deleting bucket {bucket!r} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise AdapterError(KIND, f"deleting bucket {bucket!r} failed: {exc}") from exc
        logger.info("bucket_deleted", resource=self._resource, bucket=bucket)

    def _exists(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
            return True
        except ClientError as exc:
            if error_code(exc) in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise

    def _create(self, bucket: str, region: str) -> None:
        kwargs: dict[str, Any] = {"Bucket": bucket}
        if region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            self._client.create_bucket(**kwargs)
        except ClientError as exc:
            if error_code(exc) != "BucketAlreadyOwnedByYou":
                raise
