"""Single consumer that drains the result channel into the record store."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from sirekap.common.constants import RECORD_KEY_FIELD
from sirekap.common.errors import DuplicateRecordError, StorageError, StorageSetupError
from sirekap.common.logging import log_event
from sirekap.common.models import ResultRecord
from sirekap.crawl.channel import ResultChannel
from sirekap.store.mongo import RecordStore


@dataclass(frozen=True)
class SinkStats:
    inserted: int
    duplicates: int
    failed: int

    def to_dict(self) -> dict[str, int]:
        return {"inserted": self.inserted, "duplicates": self.duplicates, "failed": self.failed}


class ResultSink:
    """Owns the store; one insert attempt per record received.

    ``open`` must succeed before producers start. It raises
    :class:`StorageSetupError` when the store or its index is unavailable.
    """

    def __init__(
        self,
        store: RecordStore,
        channel: ResultChannel,
        logger: logging.Logger,
        *,
        run_id: str | None = None,
        key_field: str = RECORD_KEY_FIELD,
    ) -> None:
        self.store = store
        self.channel = channel
        self.logger = logger
        self.run_id = run_id
        self.key_field = key_field
        self.inserted = 0
        self.duplicates = 0
        self.failed = 0
        self._thread: threading.Thread | None = None
        self._opened = False

    def open(self) -> None:
        try:
            self.store.ensure_unique_index(self.key_field)
        except StorageSetupError:
            self.store.close()
            raise
        self._opened = True
        log_event(
            self.logger,
            f"sink ready, unique index on {self.key_field}",
            run_id=self.run_id,
            event="SINK_START",
            status="ok",
        )

    def start(self) -> None:
        if not self._opened:
            raise RuntimeError("ResultSink.open() must succeed before start()")
        if self._thread is not None:
            raise RuntimeError("ResultSink already started")
        self._thread = threading.Thread(target=self.consume, name="result-sink", daemon=True)
        self._thread.start()

    def consume(self) -> None:
        try:
            for record in self.channel:
                self._store(record)
        finally:
            self.store.close()
            log_event(
                self.logger,
                f"sink drained: {self.inserted} inserted, {self.duplicates} duplicates, {self.failed} failed",
                run_id=self.run_id,
                event="SINK_END",
                status="ok",
            )

    def _store(self, record: ResultRecord) -> None:
        try:
            self.store.insert_one(record.to_document())
        except DuplicateRecordError as exc:
            self.duplicates += 1
            log_event(
                self.logger,
                str(exc),
                severity=logging.WARNING,
                run_id=self.run_id,
                event="DUPLICATE_KEY",
                status="duplicate",
                record_id=record.id,
                error_code=exc.error_code,
            )
        except StorageError as exc:
            self.failed += 1
            log_event(
                self.logger,
                str(exc),
                severity=logging.ERROR,
                run_id=self.run_id,
                event="INSERT_FAIL",
                status="error",
                record_id=record.id,
                error_code=exc.error_code,
            )
        except Exception as exc:
            # The sink is the only consumer; it must outlive any bad record.
            self.failed += 1
            log_event(
                self.logger,
                f"Insert of record {record.id} failed: {exc!r}",
                severity=logging.ERROR,
                run_id=self.run_id,
                event="INSERT_FAIL",
                status="error",
                record_id=record.id,
                error_code="UNEXPECTED_ERROR",
            )
        else:
            self.inserted += 1

    def join(self, timeout: float | None = None) -> SinkStats:
        if self._thread is not None:
            self._thread.join(timeout)
        return self.stats()

    def stats(self) -> SinkStats:
        return SinkStats(inserted=self.inserted, duplicates=self.duplicates, failed=self.failed)
