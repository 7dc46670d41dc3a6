"""Unit tests for S3TableExporter using moto."""

from __future__ import annotations

import json
import re
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from ddbexport.models.workflow import ExportStatus
from ddbexport.persistence.s3_backend import S3TableExporter, export_key

BUCKET = "test-export-bucket"
REGION = "us-east-1"
FIXED_NOW = datetime(2026, 10, 18, 9, 30, 5)


@pytest.fixture
def aws():
    with mock_aws():
        ddb = boto3.resource("dynamodb", region_name=REGION)
        ddb.create_table(
            TableName="Orders",
            KeySchema=[{"AttributeName": "order_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "order_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        s3 = boto3.client("s3", region_name=REGION)
        s3.create_bucket(Bucket=BUCKET)
        yield ddb, s3


@pytest.fixture
def exporter(aws):
    return S3TableExporter(region=REGION, clock=lambda: FIXED_NOW)


class TestExportKey:
    def test_table_and_timestamp(self):
        assert export_key("Orders", FIXED_NOW) == "Orders-2026-10-18_09-30-05.json"

    def test_prefix_and_suffix(self):
        assert export_key("Orders", FIXED_NOW, prefix="daily/", suffix="") == "daily/Orders-2026-10-18_09-30-05"


class TestStartExport:
    def test_writes_all_items_as_json(self, aws, exporter):
        ddb, s3 = aws
        tbl = ddb.Table("Orders")
        tbl.put_item(Item={"order_id": "o-1", "total": Decimal("42.5")})
        tbl.put_item(Item={"order_id": "o-2", "total": Decimal("7")})

        outcome = exporter.start_export("Orders", BUCKET)

        assert outcome.status is ExportStatus.SUCCEEDED
        assert outcome.destination_key == "Orders-2026-10-18_09-30-05.json"
        assert outcome.destination_path == f"s3://{BUCKET}/Orders-2026-10-18_09-30-05.json"
        body = s3.get_object(Bucket=BUCKET, Key=outcome.destination_key)["Body"].read()
        items = sorted(json.loads(body), key=lambda i: i["order_id"])
        assert items == [{"order_id": "o-1", "total": 42.5}, {"order_id": "o-2", "total": 7}]

    def test_key_matches_table_timestamp_pattern(self, aws):
        outcome = S3TableExporter(region=REGION).start_export("Orders", BUCKET)
        assert re.fullmatch(r"Orders-\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}\.json", outcome.destination_key)

    def test_empty_table_writes_empty_list(self, aws, exporter):
        _, s3 = aws
        outcome = exporter.start_export("Orders", BUCKET)
        body = s3.get_object(Bucket=BUCKET, Key=outcome.destination_key)["Body"].read()
        assert json.loads(body) == []

    def test_missing_table_reports_failed(self, aws, exporter):
        outcome = exporter.start_export("NoSuchTable", BUCKET)
        assert outcome.status is ExportStatus.FAILED
        assert outcome.message.startswith("Backup failed:")

    def test_missing_bucket_reports_failed(self, aws, exporter):
        outcome = exporter.start_export("Orders", "no-such-bucket")
        assert outcome.status is ExportStatus.FAILED
        assert "NoSuchBucket" in outcome.message

    def test_scan_collects_every_page(self, aws, exporter):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Items": [{"order_id": {"S": "o-1"}, "qty": {"N": "2"}}]},
            {"Items": [{"order_id": {"S": "o-2"}, "tags": {"SS": ["b", "a"]}}]},
        ]
        exporter._ddb = MagicMock()
        exporter._ddb.get_paginator.return_value = paginator

        outcome = exporter.start_export("Orders", BUCKET)

        assert outcome.status is ExportStatus.SUCCEEDED
        paginator.paginate.assert_called_once_with(TableName="Orders")
        _, s3 = aws
        body = json.loads(s3.get_object(Bucket=BUCKET, Key=outcome.destination_key)["Body"].read())
        assert body == [{"order_id": "o-1", "qty": 2}, {"order_id": "o-2", "tags": ["a", "b"]}]

    def test_binary_attributes_are_base64(self, aws, exporter):
        ddb, s3 = aws
        ddb.Table("Orders").put_item(Item={"order_id": "o-1", "blob": b"\x00\x01"})
        outcome = exporter.start_export("Orders", BUCKET)
        body = json.loads(s3.get_object(Bucket=BUCKET, Key=outcome.destination_key)["Body"].read())
        assert body == [{"order_id": "o-1", "blob": "AAE="}]


class TestCheckStatus:
    def test_echoes_synchronous_outcome(self, aws, exporter):
        outcome = exporter.start_export("Orders", BUCKET)
        assert exporter.check_status(outcome) is ExportStatus.SUCCEEDED
