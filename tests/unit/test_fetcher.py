from __future__ import annotations

import pytest

from sirekap.common.errors import DecodeError, FetchError
from sirekap.common.http import HttpRequestError
from sirekap.crawl.fetcher import NodeFetcher


class FakeHttpClient:
    def __init__(self, payloads: dict):
        self.payloads = payloads
        self.calls: list[str] = []

    def get_json(self, url: str, **_kwargs):
        self.calls.append(url)
        if url not in self.payloads:
            raise HttpRequestError(f"HTTP status 404 from {url}")
        return self.payloads[url]


def test_fetch_decodes_child_descriptors():
    client = FakeHttpClient({"https://example.test/11.json": [{"nama": "ACEH BARAT", "id": 7, "kode": "1105", "tingkat": 2}]})
    descriptors = NodeFetcher(client).fetch("https://example.test/11.json")

    assert [d.code for d in descriptors] == ["1105"]
    assert client.calls == ["https://example.test/11.json"]


def test_fetch_leaf_decodes_result_record():
    client = FakeHttpClient({"https://example.test/1.json": {"chart": {"A": 1}, "status_suara": True}})
    record = NodeFetcher(client).fetch_leaf("https://example.test/1.json")

    assert record.tally == {"A": 1}
    assert record.suara_confirmed


def test_decode_error_is_reported_as_fetch_failure():
    client = FakeHttpClient({"https://example.test/11.json": {"not": "a list"}})

    with pytest.raises(FetchError) as excinfo:
        NodeFetcher(client).fetch("https://example.test/11.json")
    assert isinstance(excinfo.value, DecodeError)


def test_http_error_propagates_unchanged():
    with pytest.raises(HttpRequestError):
        NodeFetcher(FakeHttpClient({})).fetch_leaf("https://example.test/missing.json")
