"""DynamoDB backend implementing IStateStore with optimistic versioning."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import ClientError

from filestack.core.exceptions import StateConflictError, StateStoreError
from filestack.models.deployment import DeploymentState
from filestack.persistence.serialization import dumps, loads, retain


class DynamoDBStateStore:
    """Production IStateStore: one item per deployment, conditional on `version`.

    Item layout: PK=DEPLOYMENT#{id}, SK=STATE, version (number),
    document (the JSON-encoded DeploymentState).
    """

    SK = "STATE"

    def __init__(self, table: str, region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._table_name = table
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)
        self._table = self._ddb.Table(table)

    @staticmethod
    def _pk(deployment_id: str) -> str:
        return f"DEPLOYMENT#{deployment_id}"

    def load(self, deployment_id: str) -> DeploymentState | None:
        try:
            resp = self._table.get_item(
                Key={"PK": self._pk(deployment_id), "SK": self.SK}, ConsistentRead=True,
            )
        except ClientError as exc:
            raise StateStoreError(f"DynamoDB read failed for {deployment_id!r}: {exc}") from exc
        item = resp.get("Item")
        return loads(item["document"]) if item else None

    def save(self, state: DeploymentState) -> DeploymentState:
        return self._conditional_put(state, expected_version=state.version)

    def clear(self, deployment_id: str, preserving: set[str]) -> DeploymentState | None:
        current = self.load(deployment_id)
        if current is None:
            return None
        kept = retain(current, preserving)
        if kept is not None:
            return self._conditional_put(kept, expected_version=current.version)
        try:
            self._table.delete_item(
                Key={"PK": self._pk(deployment_id), "SK": self.SK},
                ConditionExpression="#v = :expected",
                ExpressionAttributeNames={"#v": "version"},
                ExpressionAttributeValues={":expected": current.version},
            )
        except ClientError as exc:
            if exc.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise StateConflictError(deployment_id, current.version) from exc
            raise StateStoreError(f"DynamoDB delete failed for {deployment_id!r}: {exc}") from exc
        return None

    def _conditional_put(self, state: DeploymentState, expected_version: int) -> DeploymentState:
        stored = state.model_copy(
            update={"version": expected_version + 1, "updated_at": datetime.now(timezone.utc)}
        )
        kwargs: dict[str, Any] = {
            "Item": {
                "PK": self._pk(state.deployment_id),
                "SK": self.SK,
                "version": stored.version,
                "document": dumps(stored),
            },
        }
        if expected_version == 0:
            kwargs["ConditionExpression"] = "attribute_not_exists(PK)"
        else:
            kwargs["ConditionExpression"] = "#v = :expected"
            kwargs["ExpressionAttributeNames"] = {"#v": "version"}
            kwargs["ExpressionAttributeValues"] = {":expected": expected_version}
        try:
            self._table.put_item(**kwargs)
        except ClientError as exc:
            if exc.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise StateConflictError(state.deployment_id, expected_version) from exc
            raise StateStoreError(f"DynamoDB write failed for {state.deployment_id!r}: {exc}") from exc
        return stored
