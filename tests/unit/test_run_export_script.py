"""End-to-end test of the run_export script against moto."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import boto3
import pytest
from moto import mock_aws

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "scripts"))

from run_export import main  # noqa: E402
from seed_dynamodb import create_backups, create_bucket, create_tables, seed_items  # noqa: E402

BUCKET = "bkt"


@pytest.fixture
def seeded(monkeypatch):
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    with mock_aws():
        ddb = boto3.resource("dynamodb", region_name="us-east-1")
        create_tables(ddb)
        seed_items(ddb)
        create_backups(ddb)
        s3 = boto3.client("s3", region_name="us-east-1")
        create_bucket(s3, BUCKET)
        yield s3


def test_exports_seeded_tables(seeded, capsys):
    capsys.readouterr()
    code = main(["Orders", "Customers", "--bucket", BUCKET, "--poll-interval", "0"])

    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["succeeded"] == 2
    keys = [o["Key"] for o in seeded.list_objects_v2(Bucket=BUCKET)["Contents"]]
    assert any(k.startswith("Orders-") for k in keys)
    assert any(k.startswith("Customers-") for k in keys)


def test_missing_backup_exits_non_zero(seeded, capsys):
    ddb = boto3.client("dynamodb", region_name="us-east-1")
    ddb.create_table(
        TableName="NoBackups",
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )

    capsys.readouterr()
    code = main(["Orders", "NoBackups", "--bucket", BUCKET, "--poll-interval", "0"])

    assert code == 1
    summary = json.loads(capsys.readouterr().out)
    assert summary["failed_tables"] == ["NoBackups"]
    assert summary["tables"]["Orders"]["status"] == "SUCCEEDED"
