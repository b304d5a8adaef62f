"""JSON logging with stable schema."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from sirekap.common.constants import JSON_LOG_FIELDS
from sirekap.common.time_utils import utc_timestamp_iso


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": utc_timestamp_iso(),
            "severity": record.levelname,
            "run_id": getattr(record, "run_id", None),
            "event": getattr(record, "event", None),
            "status": getattr(record, "status", None),
            "url": getattr(record, "url", None),
            "code": getattr(record, "code", None),
            "level": getattr(record, "level", None),
            "record_id": getattr(record, "record_id", None),
            "duration_ms": getattr(record, "duration_ms", None),
            "error_code": getattr(record, "error_code", None),
            "message": record.getMessage(),
        }
        for field in JSON_LOG_FIELDS:
            payload.setdefault(field, None)
        return json.dumps(payload, ensure_ascii=False)


def build_logger(run_id: str, log_dir: Path | None = None, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(f"sirekap_crawl.{run_id}")
    logger.setLevel(level.upper())
    logger.handlers.clear()
    logger.propagate = False

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(JsonLineFormatter())
    logger.addHandler(stream)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / f"{run_id}.log.jsonl", encoding="utf-8")
        file_handler.setFormatter(JsonLineFormatter())
        logger.addHandler(file_handler)

    return logger


def log_event(logger: logging.Logger, message: str, *, severity: int = logging.INFO, **event_fields: Any) -> None:
    logger.log(severity, message, extra=event_fields)
