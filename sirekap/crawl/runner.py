"""Crawl orchestration: root fetch, sink lifecycle, top-level fan-out."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from sirekap.common.config_loader import CrawlSettings
from sirekap.common.logging import log_event
from sirekap.common.time_utils import elapsed_ms
from sirekap.crawl.channel import ResultChannel
from sirekap.crawl.engine import CrawlEngine
from sirekap.crawl.fetcher import NodeFetcher
from sirekap.store.mongo import RecordStore
from sirekap.store.sink import ResultSink, SinkStats


@dataclass(frozen=True)
class CrawlReport:
    run_id: str
    roots: int
    counts: dict[str, int]
    sink: SinkStats
    duration_ms: int

    @property
    def partial(self) -> bool:
        return (
            self.counts.get("branch_failures", 0) > 0
            or self.counts.get("leaf_failures", 0) > 0
            or self.counts.get("rejected_ids", 0) > 0
            or self.sink.failed > 0
        )

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "status": "partial" if self.partial else "success",
            "roots": self.roots,
            "counts": dict(self.counts),
            "sink": self.sink.to_dict(),
            "duration_ms": self.duration_ms,
        }


def run_crawl(
    settings: CrawlSettings,
    *,
    fetcher: NodeFetcher,
    store: RecordStore,
    logger: logging.Logger,
    run_id: str,
) -> CrawlReport:
    """Run one full traversal.

    A root fetch failure propagates as :class:`FetchError` and a store that
    cannot be indexed as :class:`StorageSetupError`; everything below the
    root is fail-soft.
    """
    started_at = time.monotonic()
    roots = fetcher.fetch(settings.root_url)

    channel = ResultChannel(settings.channel_capacity)
    sink = ResultSink(store, channel, logger, run_id=run_id)
    sink.open()
    sink.start()

    engine = CrawlEngine(
        fetcher,
        channel,
        logger,
        terminal_level=settings.terminal_level,
        concurrency_limit=settings.concurrency_limit,
        listing_segment=settings.listing_segment,
        result_segment=settings.result_segment,
        run_id=run_id,
    )
    log_event(
        logger,
        f"crawl start with {len(roots)} root regions",
        run_id=run_id,
        event="CRAWL_START",
        status="ok",
        url=settings.root_url,
    )
    try:
        engine.crawl(roots, settings.base_url)
    finally:
        channel.close()
        sink_stats = sink.join()

    report = CrawlReport(
        run_id=run_id,
        roots=len(roots),
        counts=engine.stats.snapshot(),
        sink=sink_stats,
        duration_ms=elapsed_ms(started_at),
    )
    log_event(
        logger,
        "all locations processed: "
        f"{report.counts['accepted']} accepted, {sink_stats.inserted} inserted, "
        f"{sink_stats.duplicates} duplicates, {report.counts['branch_failures']} failed branches, "
        f"{report.counts['leaf_failures']} failed leaves",
        run_id=run_id,
        event="CRAWL_END",
        status="partial" if report.partial else "ok",
        duration_ms=report.duration_ms,
    )
    return report
