"""Recursive, per-branch bounded traversal of the region hierarchy."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Union

from sirekap.common.errors import FetchError, IdentifierParseError
from sirekap.common.ids import parse_record_id
from sirekap.common.logging import log_event
from sirekap.common.models import Descriptor
from sirekap.crawl.channel import ResultChannel
from sirekap.crawl.concurrency import BoundedConcurrencyGroup
from sirekap.crawl.fetcher import NodeFetcher
from sirekap.crawl.urls import child_base, leaf_url, listing_url


@dataclass(frozen=True)
class Branch:
    descriptor: Descriptor


@dataclass(frozen=True)
class Leaf:
    descriptor: Descriptor


Step = Union[Branch, Leaf]


def classify(descriptor: Descriptor, terminal_level: int) -> Step:
    if descriptor.level == terminal_level:
        return Leaf(descriptor)
    return Branch(descriptor)


class CrawlStats:
    COUNTERS = (
        "nodes_expanded",
        "leaves_fetched",
        "accepted",
        "unconfirmed",
        "rejected_ids",
        "branch_failures",
        "leaf_failures",
    )

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts = dict.fromkeys(self.COUNTERS, 0)

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def __getitem__(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    @property
    def failures(self) -> int:
        with self._lock:
            return self._counts["branch_failures"] + self._counts["leaf_failures"]


class CrawlEngine:
    """Expand descriptors into subtrees and forward accepted leaf records.

    Every expansion spawns one thread per child, gated by a
    :class:`BoundedConcurrencyGroup` of its own, and returns only once the
    whole subtree below it has finished. Fetch failures are logged and drop
    only the branch or leaf they happened in.
    """

    def __init__(
        self,
        fetcher: NodeFetcher,
        channel: ResultChannel,
        logger: logging.Logger,
        *,
        terminal_level: int,
        concurrency_limit: int,
        listing_segment: str,
        result_segment: str,
        run_id: str | None = None,
        stats: CrawlStats | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.channel = channel
        self.logger = logger
        self.terminal_level = terminal_level
        self.concurrency_limit = concurrency_limit
        self.listing_segment = listing_segment
        self.result_segment = result_segment
        self.run_id = run_id
        self.stats = stats or CrawlStats()

    def run(self, step: Step, base: str) -> None:
        if isinstance(step, Leaf):
            self.fetch_leaf(step.descriptor, base)
        else:
            self.expand(step.descriptor, base)

    def expand(self, descriptor: Descriptor, base: str) -> None:
        url = listing_url(base, descriptor.code)
        try:
            children = self.fetcher.fetch(url)
        except FetchError as exc:
            self.stats.increment("branch_failures")
            log_event(
                self.logger,
                f"branch dropped: {exc}",
                severity=logging.ERROR,
                run_id=self.run_id,
                event="BRANCH_FAIL",
                status="error",
                url=url,
                code=descriptor.code,
                level=descriptor.level,
                error_code=exc.error_code,
            )
            return

        self.stats.increment("nodes_expanded")
        log_event(
            self.logger,
            f"processing {descriptor.name}",
            run_id=self.run_id,
            event="EXPAND",
            status="ok",
            url=url,
            code=descriptor.code,
            level=descriptor.level,
        )

        self._fan_out(children, child_base(url), self.concurrency_limit)

    def crawl(self, roots: list[Descriptor], base: str) -> None:
        """Traverse every root subtree in parallel and wait for all of them."""
        self._fan_out(roots, base, max(len(roots), 1))

    def _fan_out(self, children: list[Descriptor], base: str, limit: int) -> None:
        group = BoundedConcurrencyGroup(limit)
        for child in children:
            group.register(1)
            worker = threading.Thread(
                target=self._run_child,
                args=(group, classify(child, self.terminal_level), base),
                name=f"crawl-{child.code}",
                daemon=True,
            )
            try:
                worker.start()
            except RuntimeError:
                group.release()
                raise
        group.await_all()

    def fetch_leaf(self, descriptor: Descriptor, base: str) -> None:
        url = leaf_url(
            base,
            descriptor.code,
            listing_segment=self.listing_segment,
            result_segment=self.result_segment,
        )
        try:
            record_id = parse_record_id(descriptor.code)
        except IdentifierParseError as exc:
            self.stats.increment("rejected_ids")
            log_event(
                self.logger,
                f"record rejected: {exc}",
                severity=logging.WARNING,
                run_id=self.run_id,
                event="RECORD_REJECTED",
                status="rejected",
                url=url,
                code=descriptor.code,
                error_code=exc.error_code,
            )
            return

        try:
            record = self.fetcher.fetch_leaf(url)
        except FetchError as exc:
            self.stats.increment("leaf_failures")
            log_event(
                self.logger,
                f"leaf dropped: {exc}",
                severity=logging.ERROR,
                run_id=self.run_id,
                event="LEAF_FAIL",
                status="error",
                url=url,
                code=descriptor.code,
                level=descriptor.level,
                error_code=exc.error_code,
            )
            return
        self.stats.increment("leaves_fetched")
        record = replace(record, id=record_id)

        if not record.accepted:
            self.stats.increment("unconfirmed")
            log_event(
                self.logger,
                "vote tally not confirmed yet",
                severity=logging.DEBUG,
                run_id=self.run_id,
                event="RECORD_UNCONFIRMED",
                status="skipped",
                url=url,
                record_id=record.id,
            )
            return

        self.channel.send(record)
        self.stats.increment("accepted")

    def _run_child(self, group: BoundedConcurrencyGroup, step: Step, base: str) -> None:
        try:
            self.run(step, base)
        except Exception as exc:
            self.stats.increment("branch_failures")
            log_event(
                self.logger,
                f"unexpected failure under {step.descriptor.code}: {exc!r}",
                severity=logging.ERROR,
                run_id=self.run_id,
                event="UNEXPECTED_ERROR",
                status="error",
                code=step.descriptor.code,
                level=step.descriptor.level,
                error_code="UNEXPECTED_ERROR",
            )
        finally:
            group.release()
