"""Domain errors and failure typing."""


class CrawlerError(Exception):
    """Base class for crawler failures."""

    error_code = "CRAWLER_ERROR"


class ConfigError(CrawlerError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class FetchError(CrawlerError):
    """Raised when a node cannot be retrieved; contained to its branch."""

    error_code = "FETCH_ERROR"


class DecodeError(FetchError):
    """Raised when a response body does not match the expected shape."""

    error_code = "DECODE_ERROR"


class IdentifierParseError(CrawlerError):
    """Raised when a leaf code cannot be used as a record id."""

    error_code = "ID_PARSE_ERROR"


class StorageError(CrawlerError):
    error_code = "STORAGE_ERROR"


class DuplicateRecordError(StorageError):
    """Raised when a record with the same id is already stored."""

    error_code = "DUPLICATE_KEY"


class StorageSetupError(StorageError):
    """Raised when the store cannot be connected or indexed. Fatal."""

    error_code = "STORAGE_SETUP_ERROR"


class ConcurrencyLimitError(CrawlerError):
    """Raised on misuse of a concurrency group; a programming error."""

    error_code = "CONCURRENCY_LIMIT"


class ChannelClosedError(CrawlerError):
    """Raised when a record is sent after the result channel was closed."""

    error_code = "CHANNEL_CLOSED"
