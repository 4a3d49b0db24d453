"""Unit tests for DynamoDBStateStore using moto."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws

from filestack.core.exceptions import StateConflictError
from filestack.persistence.dynamodb_backend import DynamoDBStateStore
from tests.unit.persistence._states import DEPLOYMENT_ID, sample_state

TABLE = "filestack-deployments-test"
REGION = "us-east-1"


def _create_table(client, name: str):
    """Create a DynamoDB table with PK/SK key schema."""
    client.create_table(
        TableName=name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def aws():
    with mock_aws():
        _create_table(boto3.client("dynamodb", region_name=REGION), TABLE)
        yield boto3.resource("dynamodb", region_name=REGION)


@pytest.fixture
def store(aws):
    return DynamoDBStateStore(table=TABLE, region=REGION)


class TestSave:
    def test_first_save_creates_item(self, store, aws):
        saved = store.save(sample_state())
        item = aws.Table(TABLE).get_item(Key={"PK": f"DEPLOYMENT#{DEPLOYMENT_ID}", "SK": "STATE"})["Item"]
        assert item["version"] == 1
        assert saved.version == 1

    def test_successive_saves_advance_version(self, store):
        first = store.save(sample_state())
        second = store.save(first)
        assert second.version == 2
        assert store.load(DEPLOYMENT_ID).version == 2

    def test_concurrent_writer_loses(self, store):
        base = store.save(sample_state())
        store.save(base)
        with pytest.raises(StateConflictError):
            store.save(base)

    def test_first_save_conflicts_when_item_exists(self, store):
        store.save(sample_state())
        with pytest.raises(StateConflictError):
            store.save(sample_state())


class TestLoad:
    def test_missing_returns_none(self, store):
        assert store.load("nobody") is None

    def test_round_trip_keeps_resource_order(self, store):
        store.save(sample_state())
        assert list(store.load(DEPLOYMENT_ID).resources) == ["manage-files", "storage"]


class TestClear:
    def test_keeps_preserved(self, store):
        store.save(sample_state())
        kept = store.clear(DEPLOYMENT_ID, {"storage"})
        assert kept.version == 2
        assert list(store.load(DEPLOYMENT_ID).resources) == ["storage"]

    def test_deletes_item_when_nothing_kept(self, store):
        store.save(sample_state())
        assert store.clear(DEPLOYMENT_ID, set()) is None
        assert store.load(DEPLOYMENT_ID) is None
