"""S3 exporter: scans a DynamoDB table and writes it as one JSON object."""

from __future__ import annotations

import base64
import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

import boto3
from boto3.dynamodb.types import Binary, TypeDeserializer

from ddbexport.models.workflow import ExportOutcome, ExportStatus

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_deserializer = TypeDeserializer()


class _DecimalEncoder(json.JSONEncoder):
    """Encode DynamoDB Decimal, set, and binary values for JSON serialization."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return int(o) if o == int(o) else float(o)
        if isinstance(o, (set, frozenset)):
            return sorted(o, key=str)
        if isinstance(o, Binary):
            return base64.b64encode(o.value).decode("ascii")
        return super().default(o)


def export_key(table_id: str, now: datetime, prefix: str = "", suffix: str = ".json") -> str:
    """Object key for an export: ``<prefix><table>-<timestamp><suffix>``."""
    return f"{prefix}{table_id}-{now.strftime(TIMESTAMP_FORMAT)}{suffix}"


class S3TableExporter:
    """Production IExporter: full table scan written to a single S3 object.

    The write is synchronous, so start_export already reports a terminal
    status and check_status just echoes it back.
    """

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None,
                 key_prefix: str = "", key_suffix: str = ".json",
                 dynamodb_region: str | None = None, dynamodb_endpoint_url: str | None = None,
                 clock: Callable[[], datetime] = datetime.now) -> None:
        self._region = region
        self._endpoint_url = endpoint_url
        self._key_prefix = key_prefix
        self._key_suffix = key_suffix
        self._clock = clock
        s3_kwargs: dict = {"region_name": region}
        if endpoint_url:
            s3_kwargs["endpoint_url"] = endpoint_url
        ddb_kwargs: dict = {"region_name": dynamodb_region or region}
        if dynamodb_endpoint_url:
            ddb_kwargs["endpoint_url"] = dynamodb_endpoint_url
        self._ddb = boto3.client("dynamodb", **ddb_kwargs)
        self._s3 = boto3.client("s3", **s3_kwargs)

    def _scan_all(self, table_id: str) -> list[dict[str, Any]]:
        """Scan every item of a table as plain Python values."""
        items: list[dict[str, Any]] = []
        paginator = self._ddb.get_paginator("scan")
        for page in paginator.paginate(TableName=table_id):
            for raw in page.get("Items", []):
                items.append({k: _deserializer.deserialize(v) for k, v in raw.items()})
        return items

    def start_export(self, table_id: str, destination: str) -> ExportOutcome:
        key = export_key(table_id, self._clock(), self._key_prefix, self._key_suffix)
        path = f"s3://{destination}/{key}"
        try:
            items = self._scan_all(table_id)
            body = json.dumps(items, cls=_DecimalEncoder)
            self._s3.put_object(
                Bucket=destination, Key=key, Body=body.encode("utf-8"),
                ContentType="application/json",
            )
        except Exception as exc:  # noqa: BLE001 - any failure is reported as FAILED
            logger.warning("Export of %s to %s failed: %s", table_id, path, exc)
            return ExportOutcome(
                destination_key=key,
                destination_path=path,
                status=ExportStatus.FAILED,
                message=f"Backup failed: {exc}",
            )

        logger.info("Exported %d items from %s to %s", len(items), table_id, path)
        return ExportOutcome(
            destination_key=key,
            destination_path=path,
            status=ExportStatus.SUCCEEDED,
            message="Backup completed successfully",
        )

    def check_status(self, outcome: ExportOutcome) -> ExportStatus:
        return outcome.status
