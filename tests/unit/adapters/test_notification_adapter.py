"""Unit tests for S3NotificationAdapter using moto."""

from __future__ import annotations

import pytest

from filestack.adapters.notification import S3NotificationAdapter
from tests.unit.adapters.conftest import REGION

BUCKET = "files-prod"
RULE_ID = "files-manage-files-on-delete"


@pytest.fixture
def wired(s3, make_function):
    s3.create_bucket(Bucket=BUCKET)
    function_arn = make_function("files-manage-files")
    spec = {
        "rule_id": RULE_ID,
        "bucket": BUCKET,
        "bucket_arn": f"arn:aws:s3:::{BUCKET}",
        "function_arn": function_arn,
        "function_name": "files-manage-files",
        "events": ["s3:ObjectRemoved:*"],
    }
    return spec


def _lambda_rules(s3):
    return s3.get_bucket_notification_configuration(Bucket=BUCKET).get("LambdaFunctionConfigurations", [])


class TestApply:
    def test_registers_rule(self, wired, s3):
        outputs = S3NotificationAdapter("file-cleanup", region=REGION).apply(wired)

        rules = _lambda_rules(s3)
        assert [r["Id"] for r in rules] == [RULE_ID]
        assert rules[0]["Events"] == ["s3:ObjectRemoved:*"]
        assert outputs["rule_id"] == RULE_ID

    def test_reapply_does_not_duplicate(self, wired, s3):
        adapter = S3NotificationAdapter("file-cleanup", region=REGION)
        adapter.apply(wired)
        S3NotificationAdapter("file-cleanup", adapter.identity(), region=REGION).apply(wired)

        assert [r["Id"] for r in _lambda_rules(s3)] == [RULE_ID]

    def test_keeps_unrelated_rules(self, wired, s3, make_function):
        other_arn = make_function("someone-else")
        s3.put_bucket_notification_configuration(
            Bucket=BUCKET,
            NotificationConfiguration={"LambdaFunctionConfigurations": [
                {"Id": "other", "LambdaFunctionArn": other_arn, "Events": ["s3:ObjectCreated:*"]},
            ]},
        )

        S3NotificationAdapter("file-cleanup", region=REGION).apply(wired)

        assert sorted(r["Id"] for r in _lambda_rules(s3)) == ["other", RULE_ID]

    def test_grants_s3_invoke_permission(self, wired, lambda_client):
        S3NotificationAdapter("file-cleanup", region=REGION).apply(wired)
        policy = lambda_client.get_policy(FunctionName="files-manage-files")["Policy"]
        assert RULE_ID in policy
        assert "s3.amazonaws.com" in policy


class TestRemove:
    def test_drops_only_own_rule(self, wired, s3):
        adapter = S3NotificationAdapter("file-cleanup", region=REGION)
        adapter.apply(wired)

        S3NotificationAdapter("file-cleanup", adapter.identity(), region=REGION).remove()

        assert _lambda_rules(s3) == []

    def test_missing_bucket_and_function_is_success(self, aws):
        identity = {"rule_id": RULE_ID, "bucket": "gone-bucket", "function_name": "gone-fn"}
        S3NotificationAdapter("file-cleanup", identity, region=REGION).remove()
