"""Unit tests for S3StateStore using moto."""

from __future__ import annotations

import json

import boto3
import pytest
from moto import mock_aws

from filestack.core.exceptions import StateConflictError, StateStoreError
from filestack.persistence.s3_backend import S3StateStore
from tests.unit.persistence._states import DEPLOYMENT_ID, sample_state

BUCKET = "test-deploy-state"


@pytest.fixture
def s3():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def store(s3):
    return S3StateStore(bucket=BUCKET, key_prefix="state/", region="us-east-1")


class TestLoad:
    def test_missing_returns_none(self, store):
        assert store.load(DEPLOYMENT_ID) is None

    def test_missing_bucket_raises(self, s3):
        store = S3StateStore(bucket="no-such-bucket", region="us-east-1")
        with pytest.raises(StateStoreError):
            store.load(DEPLOYMENT_ID)


class TestSave:
    def test_writes_single_object(self, store, s3):
        store.save(sample_state())
        body = s3.get_object(Bucket=BUCKET, Key=f"state/{DEPLOYMENT_ID}.json")["Body"].read()
        assert json.loads(body)["version"] == 1

    def test_round_trip(self, store):
        saved = store.save(sample_state())
        assert store.load(DEPLOYMENT_ID) == saved

    def test_stale_version_conflicts(self, store):
        store.save(sample_state())
        with pytest.raises(StateConflictError):
            store.save(sample_state())


class TestClear:
    def test_keeps_preserved_entries(self, store):
        store.save(sample_state())
        store.clear(DEPLOYMENT_ID, {"storage"})
        assert list(store.load(DEPLOYMENT_ID).resources) == ["storage"]

    def test_deletes_object_when_nothing_kept(self, store, s3):
        store.save(sample_state())
        assert store.clear(DEPLOYMENT_ID, set()) is None
        listed = s3.list_objects_v2(Bucket=BUCKET, Prefix="state/")
        assert listed.get("KeyCount", 0) == 0

    def test_clear_missing_is_noop(self, store):
        assert store.clear(DEPLOYMENT_ID, {"storage"}) is None
