"""Application constants."""

USER_AGENT = "sirekap-crawl/0.3 (+research; contact: configured-email)"
JSON_SUFFIX = ".json"
RECORD_KEY_FIELD = "id"
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "event",
    "status",
    "url",
    "code",
    "level",
    "record_id",
    "duration_ms",
    "error_code",
    "message",
)
