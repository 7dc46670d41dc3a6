"""DynamoDB backends: backup catalog lookup and native point-in-time export."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ddbexport.core.exceptions import BackupNotFoundError, RemoteCallError
from ddbexport.models.workflow import BackupRef, ExportOutcome, ExportStatus

logger = logging.getLogger(__name__)

# describe_export ExportStatus -> workflow status
_NATIVE_STATUS = {
    "COMPLETED": ExportStatus.SUCCEEDED,
    "FAILED": ExportStatus.FAILED,
}


def _client(region: str, endpoint_url: str | None):
    kwargs: dict = {"region_name": region}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.client("dynamodb", **kwargs)


class DynamoDBBackupLocator:
    """Production IBackupLocator backed by DynamoDB ListBackups."""

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None,
                 client: Any = None) -> None:
        self._region = region
        self._endpoint_url = endpoint_url
        self._client = client or _client(region, endpoint_url)

    def _list_backups(self, table_id: str) -> list[dict[str, Any]]:
        """Return every backup summary for a table, following pagination."""
        summaries: list[dict[str, Any]] = []
        kwargs: dict[str, Any] = {"TableName": table_id}
        while True:
            resp = self._client.list_backups(**kwargs)
            summaries.extend(resp.get("BackupSummaries", []))
            last = resp.get("LastEvaluatedBackupArn")
            if not last:
                return summaries
            kwargs["ExclusiveStartBackupArn"] = last

    def locate(self, table_id: str) -> BackupRef:
        if not table_id:
            raise ValueError("table_id must be non-empty")
        try:
            summaries = self._list_backups(table_id)
        except (ClientError, BotoCoreError) as exc:
            raise RemoteCallError(f"Error fetching backup: {exc}") from exc

        if not summaries:
            raise BackupNotFoundError(table_id)

        # Ties on creation time resolve to the larger ARN.
        latest = max(
            summaries,
            key=lambda s: (s["BackupCreationDateTime"], s["BackupArn"]),
        )
        created = latest["BackupCreationDateTime"]
        if not isinstance(created, datetime):
            created = datetime.fromisoformat(str(created))
        logger.debug("Latest backup for %s: %s", table_id, latest["BackupArn"])
        return BackupRef(backup_arn=latest["BackupArn"], created_at=created)


class DynamoDBNativeExporter:
    """IExporter using DynamoDB's asynchronous export-to-S3 feature.

    Requires point-in-time recovery on the source table. The export runs
    server side; check_status polls DescribeExport.
    """

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None,
                 key_prefix: str = "", client: Any = None) -> None:
        self._region = region
        self._endpoint_url = endpoint_url
        self._key_prefix = key_prefix
        self._client = client or _client(region, endpoint_url)

    def start_export(self, table_id: str, destination: str) -> ExportOutcome:
        prefix = f"{self._key_prefix}{table_id}"
        try:
            table_arn = self._client.describe_table(TableName=table_id)["Table"]["TableArn"]
            resp = self._client.export_table_to_point_in_time(
                TableArn=table_arn,
                S3Bucket=destination,
                S3Prefix=prefix,
                ExportFormat="DYNAMODB_JSON",
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning("Native export of %s failed to start: %s", table_id, exc)
            return ExportOutcome(
                destination_key=prefix,
                status=ExportStatus.FAILED,
                message=f"Backup failed: {exc}",
            )

        desc = resp["ExportDescription"]
        return ExportOutcome(
            destination_key=prefix,
            destination_path=f"s3://{destination}/{prefix}",
            status=_NATIVE_STATUS.get(desc.get("ExportStatus", ""), ExportStatus.IN_PROGRESS),
            message=desc.get("FailureMessage", ""),
            export_arn=desc["ExportArn"],
        )

    def check_status(self, outcome: ExportOutcome) -> ExportStatus:
        if outcome.export_arn is None:
            return outcome.status
        try:
            desc = self._client.describe_export(ExportArn=outcome.export_arn)["ExportDescription"]
        except (ClientError, BotoCoreError) as exc:
            raise RemoteCallError(f"DescribeExport failed for {outcome.export_arn!r}: {exc}") from exc
        return _NATIVE_STATUS.get(desc.get("ExportStatus", ""), ExportStatus.IN_PROGRESS)
