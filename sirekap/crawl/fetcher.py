"""Retrieval and decoding of listing and result documents."""

from __future__ import annotations

from typing import Any, Protocol

from sirekap.common.models import Descriptor, ResultRecord, decode_descriptors


class JsonClient(Protocol):
    def get_json(self, url: str, **kwargs: Any) -> Any: ...


class NodeFetcher:
    def __init__(self, client: JsonClient) -> None:
        self.client = client

    def fetch(self, url: str) -> list[Descriptor]:
        return decode_descriptors(self.client.get_json(url))

    def fetch_leaf(self, url: str) -> ResultRecord:
        return ResultRecord.from_payload(self.client.get_json(url))
