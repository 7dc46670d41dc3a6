"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration (backup catalog and table reads)."""

    model_config = {"env_prefix": "DDBEXPORT_DYNAMO_"}

    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class S3Config(BaseSettings):
    """S3 export destination configuration."""

    model_config = {"env_prefix": "DDBEXPORT_S3_"}

    bucket: str = "dynamodbexportglue25"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    key_prefix: str = ""
    key_suffix: str = ".json"


class RedisConfig(BaseSettings):
    """Redis run-state store configuration."""

    model_config = {"env_prefix": "DDBEXPORT_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    state_ttl: int = 86400  # 24 hr


class WorkflowConfig(BaseSettings):
    """Per-table workflow tuning."""

    model_config = {"env_prefix": "DDBEXPORT_WORKFLOW_"}

    poll_interval_seconds: float = 30.0
    max_polls: int | None = None  # None = poll until terminal
    step_timeout_seconds: float = 900.0
    max_concurrency: int | None = None  # None = no cap
    exporter: Literal["s3", "native"] = "s3"
    state_backend: Literal["memory", "redis"] = "memory"


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "DDBEXPORT_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    dynamodb: DynamoDBConfig = Field(default_factory=DynamoDBConfig)
    s3: S3Config = Field(default_factory=S3Config)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
