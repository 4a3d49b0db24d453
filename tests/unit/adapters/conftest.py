"""Adapter test fixtures: moto-backed AWS with a Lambda execution role."""

from __future__ import annotations

import io
import json
import zipfile

import boto3
import pytest
from moto import mock_aws

REGION = "us-east-1"


def make_zip(source: str = "def handler(event, context):\n    return event\n") -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("handler.py", source)
    return buf.getvalue()


@pytest.fixture
def aws():
    with mock_aws():
        yield


@pytest.fixture
def role_arn(aws):
    iam = boto3.client("iam", region_name=REGION)
    role = iam.create_role(
        RoleName="filestack-test-lambda",
        AssumeRolePolicyDocument=json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Effect": "Allow",
                "Principal": {"Service": "lambda.amazonaws.com"},
                "Action": "sts:AssumeRole",
            }],
        }),
    )
    return role["Role"]["Arn"]


@pytest.fixture
def s3(aws):
    return boto3.client("s3", region_name=REGION)


@pytest.fixture
def lambda_client(aws):
    return boto3.client("lambda", region_name=REGION)


@pytest.fixture
def make_function(lambda_client, role_arn):
    def _make(name: str) -> str:
        resp = lambda_client.create_function(
            FunctionName=name,
            Runtime="python3.12",
            Role=role_arn,
            Handler="handler.handler",
            Code={"ZipFile": make_zip()},
        )
        return resp["FunctionArn"]
    return _make
