"""MongoDB-backed record store with a unique key index."""

from __future__ import annotations

from typing import Any, Callable, Protocol

from pymongo import DESCENDING, MongoClient
from bson.errors import BSONError
from pymongo.errors import DuplicateKeyError, PyMongoError

from sirekap.common.errors import DuplicateRecordError, StorageError, StorageSetupError


class RecordStore(Protocol):
    def ensure_unique_index(self, field: str) -> None: ...

    def insert_one(self, document: dict[str, Any]) -> None: ...

    def close(self) -> None: ...


class MongoRecordStore:
    def __init__(
        self,
        uri: str,
        database: str,
        collection: str,
        *,
        client_factory: Callable[..., Any] = MongoClient,
        server_selection_timeout_ms: int = 10_000,
    ) -> None:
        self.uri = uri
        self.database = database
        self.collection_name = collection
        self.client_factory = client_factory
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client = None
        self.collection = None

    def connect(self) -> None:
        try:
            self.client = self.client_factory(
                self.uri,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            )
        except (PyMongoError, ValueError) as exc:
            raise StorageSetupError(f"Cannot connect to MongoDB: {exc}") from exc
        self.collection = self.client[self.database][self.collection_name]

    def ensure_unique_index(self, field: str) -> None:
        if self.collection is None:
            self.connect()
        try:
            self.collection.create_index([(field, DESCENDING)], unique=True)
        except PyMongoError as exc:
            raise StorageSetupError(f"Cannot create unique index on {field}: {exc}") from exc

    def insert_one(self, document: dict[str, Any]) -> None:
        if self.collection is None:
            raise StorageError("Store is not connected")
        # insert_one adds _id to the mapping it is given.
        try:
            self.collection.insert_one(dict(document))
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(f"Record {document.get('id')} already stored") from exc
        except (PyMongoError, BSONError, OverflowError, TypeError) as exc:
            # bson raises OverflowError for ints wider than 8 bytes.
            raise StorageError(f"Insert of record {document.get('id')} failed: {exc}") from exc

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
        self.client = None
        self.collection = None
