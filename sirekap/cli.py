"""CLI entrypoint for the Sirekap TPS result crawler."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sirekap.common.config_loader import DEFAULT_CONFIG_PATH, apply_overrides, load_settings
from sirekap.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from sirekap.common.errors import CrawlerError
from sirekap.common.http import HttpClient
from sirekap.common.ids import generate_run_id
from sirekap.common.logging import build_logger, log_event
from sirekap.crawl.fetcher import NodeFetcher
from sirekap.crawl.runner import run_crawl
from sirekap.store.mongo import MongoRecordStore


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--terminal-level", type=int, default=None)
    parser.add_argument("--concurrency-limit", type=int, default=None)
    parser.add_argument("--channel-capacity", type=int, default=None)
    return parser.parse_args(argv)


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    logger = build_logger(
        run_id,
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=args.log_level,
    )

    try:
        settings = load_settings(
            Path(args.config),
            overlay_path=Path(args.overlay_config) if args.overlay_config else None,
            env_file=Path(args.env_file) if args.env_file else None,
        )
        settings = apply_overrides(
            settings,
            base_url=args.base_url,
            terminal_level=args.terminal_level,
            concurrency_limit=args.concurrency_limit,
            channel_capacity=args.channel_capacity,
        )
    except CrawlerError as exc:
        log_event(
            logger,
            f"configuration failed: {exc}",
            severity=logging.ERROR,
            run_id=run_id,
            event="CONFIG_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL

    store = MongoRecordStore(settings.store_uri, settings.database, settings.collection)
    with HttpClient(timeout=settings.timeout, retry=settings.retry, rate_per_sec=settings.rate_per_sec) as client:
        try:
            report = run_crawl(
                settings,
                fetcher=NodeFetcher(client),
                store=store,
                logger=logger,
                run_id=run_id,
            )
        except CrawlerError as exc:
            log_event(
                logger,
                f"crawl aborted: {exc}",
                severity=logging.ERROR,
                run_id=run_id,
                event="CRAWL_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            return EXIT_HARD_FAIL

    if report.partial:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return run_command(args)
    except CrawlerError:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
