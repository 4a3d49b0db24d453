"""S3 backend implementing IStateStore."""

from __future__ import annotations

import boto3
from botocore.exceptions import ClientError

from filestack.core.exceptions import StateStoreError
from filestack.models.deployment import DeploymentState
from filestack.persistence.serialization import dumps, loads, next_revision, retain


class S3StateStore:
    """Production IStateStore backed by one S3 object per deployment.

    A single PutObject replaces the whole document, so readers see
    either the previous state or the new one.
    """

    def __init__(self, bucket: str, key_prefix: str = "filestack/state/",
                 region: str = "us-east-1", endpoint_url: str | None = None) -> None:
        self._bucket = bucket
        self._prefix = key_prefix
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("s3", **kwargs)

    def _key(self, deployment_id: str) -> str:
        return f"{self._prefix}{deployment_id}.json"

    def load(self, deployment_id: str) -> DeploymentState | None:
        key = self._key(deployment_id)
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if exc.response["Error"]["Code"] in ("NoSuchKey", "404"):
                return None
            raise StateStoreError(f"S3 read failed for {key!r}: {exc}") from exc
        return loads(resp["Body"].read())

    def save(self, state: DeploymentState) -> DeploymentState:
        stored = next_revision(self.load(state.deployment_id), state)
        self._put(stored)
        return stored

    def clear(self, deployment_id: str, preserving: set[str]) -> DeploymentState | None:
        current = self.load(deployment_id)
        if current is None:
            return None
        kept = retain(current, preserving)
        if kept is None:
            key = self._key(deployment_id)
            try:
                self._client.delete_object(Bucket=self._bucket, Key=key)
            except ClientError as exc:
                raise StateStoreError(f"S3 delete failed for {key!r}: {exc}") from exc
            return None
        stored = next_revision(current, kept)
        self._put(stored)
        return stored

    def _put(self, state: DeploymentState) -> None:
        key = self._key(state.deployment_id)
        try:
            self._client.put_object(
                Bucket=self._bucket, Key=key, Body=dumps(state).encode("utf-8"),
                ContentType="application/json",
            )
        except ClientError as exc:
            raise StateStoreError(f"S3 write failed for {key!r}: {exc}") from exc
