"""Run the backup export workflow for a set of tables.

Usage:
    python scripts/run_export.py Orders Customers --bucket my-export-bucket
    python scripts/run_export.py Orders --endpoint-url http://localhost:4566 --poll-interval 1
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from ddbexport.core.config import AppSettings
from ddbexport.core.log import configure_logging
from ddbexport.models.workflow import WorkflowRequest, summarize
from ddbexport.orchestration.orchestrator import ExportWorkflowOrchestrator
from ddbexport.persistence import create_components


def build_settings(args: argparse.Namespace) -> AppSettings:
    settings = AppSettings()
    if args.endpoint_url:
        settings.dynamodb.endpoint_url = args.endpoint_url
        settings.s3.endpoint_url = args.endpoint_url
    if args.region:
        settings.dynamodb.region = args.region
        settings.s3.region = args.region
    if args.poll_interval is not None:
        settings.workflow.poll_interval_seconds = args.poll_interval
    if args.max_polls is not None:
        settings.workflow.max_polls = args.max_polls
    if args.max_concurrency is not None:
        settings.workflow.max_concurrency = args.max_concurrency
    if args.exporter:
        settings.workflow.exporter = args.exporter
    return settings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export the latest DynamoDB backups to S3")
    parser.add_argument("tables", nargs="+", help="DynamoDB table names")
    parser.add_argument("--bucket", default=None, help="Destination S3 bucket")
    parser.add_argument("--endpoint-url", default=None, help="AWS endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--region", default=None, help="AWS region")
    parser.add_argument("--poll-interval", type=float, default=None, help="Seconds between status checks")
    parser.add_argument("--max-polls", type=int, default=None, help="Give up after this many checks")
    parser.add_argument("--max-concurrency", type=int, default=None, help="Tables exported at once")
    parser.add_argument("--exporter", choices=["s3", "native"], default=None)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)

    settings = build_settings(args)
    configure_logging(args.log_level or settings.log_level)

    locator, exporter, state_store = create_components(settings)
    orchestrator = ExportWorkflowOrchestrator.from_settings(
        settings, locator=locator, exporter=exporter, state_store=state_store,
    )
    request = WorkflowRequest(table_ids=tuple(args.tables), destination=args.bucket or settings.s3.bucket)

    results = asyncio.run(orchestrator.run(request))
    summary = summarize(request.run_id, results)
    print(summary.model_dump_json(indent=2))
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
