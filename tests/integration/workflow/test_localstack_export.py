"""Integration tests for the full export workflow against LocalStack."""

from __future__ import annotations

import asyncio

import pytest

from ddbexport.models.workflow import TableStatus, WorkflowRequest
from ddbexport.orchestration.orchestrator import ExportWorkflowOrchestrator
from ddbexport.persistence.dynamodb_backend import DynamoDBBackupLocator
from ddbexport.persistence.s3_backend import S3TableExporter
from tests.integration.conftest import BUCKET, LOCALSTACK_URL, skip_no_localstack


@skip_no_localstack
class TestLocalStackExport:
    @pytest.fixture
    def orchestrator(self, seeded_tables):
        return ExportWorkflowOrchestrator(
            locator=DynamoDBBackupLocator(region="us-east-1", endpoint_url=LOCALSTACK_URL),
            exporter=S3TableExporter(
                region="us-east-1",
                endpoint_url=LOCALSTACK_URL,
                dynamodb_endpoint_url=LOCALSTACK_URL,
            ),
            poll_interval=0,
            max_polls=3,
        )

    def test_orders_exported(self, orchestrator, seeded_tables, localstack_s3):
        table = f"Orders{seeded_tables}"
        results = asyncio.run(orchestrator.run(WorkflowRequest(table_ids=[table], destination=BUCKET)))

        state = results[table]
        assert state.status is TableStatus.SUCCEEDED
        obj = localstack_s3.get_object(Bucket=BUCKET, Key=state.export_handle.destination_key)
        assert obj["ContentLength"] > 0

    def test_unknown_table_fails_alone(self, orchestrator, seeded_tables):
        table = f"Customers{seeded_tables}"
        results = asyncio.run(
            orchestrator.run(WorkflowRequest(table_ids=["does-not-exist", table], destination=BUCKET))
        )
        assert results["does-not-exist"].status is TableStatus.FAILED
        assert results[table].status is TableStatus.SUCCEEDED
