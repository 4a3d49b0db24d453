"""Create the DynamoDB table backing the deployment state store.

Usage:
    python scripts/create_state_table.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
from typing import Any

import boto3

DEFAULT_TABLE = "filestack-deployments"


def create_state_table(ddb: Any, name: str = DEFAULT_TABLE) -> bool:
    """Create the PK/SK state table. Returns False if it already exists."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])
    if name in existing:
        print(f"  Table {name} already exists, skipping")
        return False

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
    client.get_waiter("table_exists").wait(TableName=name)
    print(f"  Created table {name}")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the filestack state table")
    parser.add_argument("--table", default=DEFAULT_TABLE)
    parser.add_argument("--region", default="us-east-1")
    parser.add_argument("--endpoint-url", default=None, help="LocalStack endpoint")
    args = parser.parse_args()

    kwargs: dict = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url
    create_state_table(boto3.resource("dynamodb", **kwargs), name=args.table)


if __name__ == "__main__":
    main()
