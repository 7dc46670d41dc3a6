"""Lambda-compatible handlers for the two remote steps.

find_latest_backup_handler
    Input:  {"TABLE_NAME": "Orders"}
    Output: {"statusCode": 200, "latest_backup_arn": ..., "backup_creation_time": ...}
            {"statusCode": 404, "body": "No backups found for table Orders"}
            {"statusCode": 500, "body": "Error fetching backup: ..."}

export_to_s3_handler
    Input:  {"TABLE_NAME": "Orders", "S3_BUCKET": "bkt"}
    Output: {"statusCode": 200, "message": ..., "S3File": ..., "S3Path": ..., "export_status": "SUCCEEDED"}
            {"statusCode": 500, "body": "Backup failed: ...", "export_status": "FAILED"}
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from ddbexport.core.config import AppSettings
from ddbexport.core.exceptions import BackupNotFoundError, RemoteCallError
from ddbexport.core.protocols import IBackupLocator, IExporter
from ddbexport.models.workflow import ExportStatus
from ddbexport.persistence.dynamodb_backend import DynamoDBBackupLocator
from ddbexport.persistence.s3_backend import S3TableExporter

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


def find_latest_backup_handler(
    event: Dict[str, Any], context: Any, locator: IBackupLocator | None = None
) -> Dict[str, Any]:
    """Return the latest backup of ``event["TABLE_NAME"]``."""
    logger.info("Find latest backup event: %s", json.dumps(event))

    table_name = event.get("TABLE_NAME")
    if not table_name:
        return {"statusCode": 500, "body": "Error fetching backup: missing TABLE_NAME"}

    if locator is None:
        settings = AppSettings()
        locator = DynamoDBBackupLocator(
            region=settings.dynamodb.region, endpoint_url=settings.dynamodb.endpoint_url,
        )

    try:
        backup = locator.locate(table_name)
    except BackupNotFoundError as e:
        logger.warning("%s", e)
        return {"statusCode": 404, "body": str(e)}
    except RemoteCallError as e:
        logger.error("Backup lookup failed for %s: %s", table_name, e)
        return {"statusCode": 500, "body": str(e)}
    except Exception as e:
        logger.exception("Unexpected error looking up backup for %s", table_name)
        return {"statusCode": 500, "body": f"Error fetching backup: {e}"}

    return {
        "statusCode": 200,
        "latest_backup_arn": backup.backup_arn,
        "backup_creation_time": str(backup.created_at),
    }


def export_to_s3_handler(
    event: Dict[str, Any], context: Any, exporter: IExporter | None = None
) -> Dict[str, Any]:
    """Export ``event["TABLE_NAME"]`` into ``event["S3_BUCKET"]``."""
    logger.info("Export event: %s", json.dumps(event))

    settings = AppSettings()
    table_name = event.get("TABLE_NAME")
    bucket = event.get("S3_BUCKET") or settings.s3.bucket

    if not table_name:
        return {
            "statusCode": 500,
            "body": "Backup failed: missing TABLE_NAME",
            "export_status": ExportStatus.FAILED.value,
        }

    if exporter is None:
        exporter = S3TableExporter(
            region=settings.s3.region,
            endpoint_url=settings.s3.endpoint_url,
            key_prefix=settings.s3.key_prefix,
            key_suffix=settings.s3.key_suffix,
            dynamodb_region=settings.dynamodb.region,
            dynamodb_endpoint_url=settings.dynamodb.endpoint_url,
        )

    outcome = exporter.start_export(table_name, bucket)
    if outcome.status is ExportStatus.FAILED:
        return {
            "statusCode": 500,
            "body": outcome.message,
            "export_status": ExportStatus.FAILED.value,
        }

    return {
        "statusCode": 200,
        "message": outcome.message,
        "S3File": outcome.destination_key,
        "S3Path": outcome.destination_path,
        "export_status": outcome.status.value,
    }
