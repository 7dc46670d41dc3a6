"""Seed sample DynamoDB tables, items, and on-demand backups.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566 --bucket dynamodbexportglue25
"""

from __future__ import annotations

import argparse
from decimal import Decimal
from typing import Any

import boto3

TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {"name": "Orders", "key": "order_id"},
    {"name": "Customers", "key": "customer_id"},
    {"name": "Inventory", "key": "sku"},
]

SAMPLE_ITEMS: dict[str, list[dict[str, Any]]] = {
    "Orders": [
        {"order_id": "o-1001", "customer_id": "c-1", "total": Decimal("42.50"), "status": "SHIPPED"},
        {"order_id": "o-1002", "customer_id": "c-2", "total": Decimal("19.99"), "status": "PENDING"},
        {"order_id": "o-1003", "customer_id": "c-1", "total": Decimal("7"), "status": "CANCELLED"},
    ],
    "Customers": [
        {"customer_id": "c-1", "name": "Ada", "tier": "gold"},
        {"customer_id": "c-2", "name": "Grace", "tier": "silver"},
    ],
    "Inventory": [
        {"sku": "sku-1", "on_hand": 12, "tags": {"fragile", "bulk"}},
    ],
}


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create the sample tables. Skips if a table already exists."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])

    for defn in TABLE_DEFINITIONS:
        table_name = f"{defn['name']}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
            continue
        client.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": defn["key"], "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": defn["key"], "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        print(f"  Created table {table_name}")


def seed_items(ddb: Any, suffix: str = "") -> None:
    for name, items in SAMPLE_ITEMS.items():
        tbl = ddb.Table(f"{name}{suffix}")
        with tbl.batch_writer() as batch:
            for item in items:
                batch.put_item(Item=item)
        print(f"  Seeded {len(items)} items into {name}{suffix}")


def create_backups(ddb: Any, suffix: str = "", label: str = "seed") -> list[str]:
    """Create one on-demand backup per sample table. Returns the backup ARNs."""
    client = ddb.meta.client
    arns: list[str] = []
    for defn in TABLE_DEFINITIONS:
        table_name = f"{defn['name']}{suffix}"
        resp = client.create_backup(TableName=table_name, BackupName=f"{table_name}-{label}")
        arns.append(resp["BackupDetails"]["BackupArn"])
    print(f"  Created {len(arns)} backups")
    return arns


def create_bucket(s3: Any, bucket: str) -> None:
    existing = [b["Name"] for b in s3.list_buckets().get("Buckets", [])]
    if bucket in existing:
        print(f"  Bucket {bucket} already exists, skipping")
        return
    s3.create_bucket(Bucket=bucket)
    print(f"  Created bucket {bucket}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables and backups for ddbexport")
    parser.add_argument("--endpoint-url", default=None, help="AWS endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    parser.add_argument("--bucket", default=None, help="Also create this export bucket")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    print("Seeding data...")
    seed_items(ddb, suffix=args.table_suffix)

    print("Creating backups...")
    create_backups(ddb, suffix=args.table_suffix)

    if args.bucket:
        print("Creating bucket...")
        create_bucket(boto3.client("s3", **kwargs), args.bucket)

    print("Done!")


if __name__ == "__main__":
    main()
