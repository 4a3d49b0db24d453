"""Shared boto3 helpers for the AWS provisioner adapters."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import ClientError


def aws_client(service: str, region: str, endpoint_url: str | None = None) -> Any:
    kwargs: dict = {"region_name": region}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.client(service, **kwargs)


def error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def account_from_arn(arn: str) -> str:
    """arn:aws:lambda:us-east-1:123456789012:function:name -> 123456789012"""
    parts = arn.split(":")
    return parts[4] if len(parts) > 4 else ""
