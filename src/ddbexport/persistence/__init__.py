"""Pluggable backends behind Protocol interfaces."""

from __future__ import annotations

from ddbexport.core.config import AppSettings
from ddbexport.persistence.dynamodb_backend import DynamoDBBackupLocator, DynamoDBNativeExporter
from ddbexport.persistence.memory_backend import MemoryCacheBackend
from ddbexport.persistence.redis_backend import RedisCacheBackend
from ddbexport.persistence.s3_backend import S3TableExporter
from ddbexport.persistence.state_store import RunStateRecorder


def create_components(settings: AppSettings | None = None):
    """Create wired-up workflow backends from application settings.

    Returns:
        Tuple of (locator, exporter, state_store).
    """
    if settings is None:
        settings = AppSettings()

    locator = DynamoDBBackupLocator(
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )

    if settings.workflow.exporter == "native":
        exporter = DynamoDBNativeExporter(
            region=settings.dynamodb.region,
            endpoint_url=settings.dynamodb.endpoint_url,
            key_prefix=settings.s3.key_prefix,
        )
    else:
        exporter = S3TableExporter(
            region=settings.s3.region,
            endpoint_url=settings.s3.endpoint_url,
            key_prefix=settings.s3.key_prefix,
            key_suffix=settings.s3.key_suffix,
            dynamodb_region=settings.dynamodb.region,
            dynamodb_endpoint_url=settings.dynamodb.endpoint_url,
        )

    if settings.workflow.state_backend == "redis":
        cache = RedisCacheBackend(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
        )
    else:
        cache = MemoryCacheBackend()
    state_store = RunStateRecorder(cache, ttl=settings.redis.state_ttl)

    return locator, exporter, state_store
