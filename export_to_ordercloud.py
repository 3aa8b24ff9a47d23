#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
export_to_ordercloud.py

Command line entry point for exporting a source commerce snapshot to
OrderCloud.

    python export_to_ordercloud.py --request request.json --source snapshot.json

OrderCloud credentials come from the environment:
ORDERCLOUD_API_URL, ORDERCLOUD_AUTH_URL, ORDERCLOUD_CLIENT_ID,
ORDERCLOUD_CLIENT_SECRET and ORDERCLOUD_SCOPE.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from oc_logging import get_logger, setup_logging
from ordercloud_export.errors import ConfigurationError
from ordercloud_export.results import ExportRunResult
from ordercloud_export.runner import export_to_ordercloud, parse_export_request
from ordercloud_export.settings import OrderCloudClientPolicy
from ordercloud_export.source import JsonSourceRepository

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export source commerce data to OrderCloud.")
    parser.add_argument(
        "--request",
        type=str,
        required=True,
        help="JSON file with processSettings, buyerSettings, catalogSettings and productSettings",
    )
    parser.add_argument(
        "--source",
        type=str,
        required=True,
        help="JSON snapshot of the source entities and lists",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Optional path to write the run result as JSON",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for run log files (default ~/.ordercloud_export/logs)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


def print_summary(result: ExportRunResult) -> None:
    print("=" * 72)
    print(f"{'Resource':<30}{'Proc':>6}{'Same':>6}{'New':>6}{'Upd':>6}{'Pat':>6}{'Skip':>6}{'Err':>6}")
    print("-" * 72)
    for bucket, c in result.buckets.items():
        if not c.processed:
            continue
        print(
            f"{bucket.value:<30}{c.processed:>6}{c.not_changed:>6}{c.created:>6}"
            f"{c.updated:>6}{c.patched:>6}{c.skipped:>6}{c.errored:>6}"
        )
    print("=" * 72)
    if result.aborted:
        print(f"Run halted at stage: {result.aborted_stage}")


def main(argv: Optional[List[str]] = None) -> None:
    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_root=args.log_dir)

    request_path = Path(args.request)
    source_path = Path(args.source)
    for path in (request_path, source_path):
        if not path.exists():
            logger.error("Input file does not exist: %s", path)
            sys.exit(1)

    try:
        with open(request_path, "r", encoding="utf-8") as f:
            body = json.load(f)
        settings, buyer_policies, catalog_policies, product_policy = parse_export_request(body)
        source = JsonSourceRepository.from_file(source_path)

        result = export_to_ordercloud(
            settings,
            buyer_policies,
            catalog_policies,
            product_policy,
            source=source,
            client_policy=OrderCloudClientPolicy.from_env(),
        )
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        sys.exit(1)

    print_summary(result)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
        logger.info("Run result written to %s", args.output)

    if result.aborted:
        sys.exit(1)


if __name__ == "__main__":
    main()
