from __future__ import annotations

import pytest

from sirekap.common.errors import DecodeError
from sirekap.common.models import STAT_FIELDS, AdministrativeStats, Descriptor, ResultRecord, decode_descriptors


def _result_payload(**overrides):
    payload = {
        "mode": "hhcw",
        "chart": {"100025": 10, "100026": 5, "100027": 3},
        "images": ["https://example.test/c1-1.jpg", "https://example.test/c1-2.jpg", None],
        "administrasi": {name: 1 for name in STAT_FIELDS},
        "psu": None,
        "ts": "2024-02-15 10:00:00",
        "status_suara": True,
        "status_adm": False,
    }
    payload.update(overrides)
    return payload


def test_decode_descriptor_listing():
    descriptors = decode_descriptors(
        [
            {"nama": "ACEH", "id": 1, "kode": "11", "tingkat": 1},
            {"nama": "BALI", "id": 2, "kode": "51", "tingkat": 1},
        ]
    )

    assert descriptors == [
        Descriptor(name="ACEH", identifier=1, code="11", level=1),
        Descriptor(name="BALI", identifier=2, code="51", level=1),
    ]


def test_decode_descriptor_listing_rejects_wrong_shapes():
    with pytest.raises(DecodeError):
        decode_descriptors({"nama": "ACEH"})
    with pytest.raises(DecodeError):
        decode_descriptors([{"nama": "ACEH", "id": 1, "tingkat": 1}])
    with pytest.raises(DecodeError):
        decode_descriptors([{"nama": "ACEH", "id": "1", "kode": "11", "tingkat": 1}])
    with pytest.raises(DecodeError):
        decode_descriptors([{"nama": "ACEH", "id": 1, "kode": "", "tingkat": 1}])


def test_decode_descriptor_listing_accepts_null_as_empty():
    assert decode_descriptors(None) == []


def test_decode_result_record_maps_source_fields():
    record = ResultRecord.from_payload(_result_payload(extra_field={"a": 1}))

    assert record.id == 0
    assert record.mode == "hhcw"
    assert record.tally == {"100025": 10, "100026": 5, "100027": 3}
    assert record.attachments == ["https://example.test/c1-1.jpg", "https://example.test/c1-2.jpg", ""]
    assert record.stats.suara_sah == 1
    assert record.stats.pengguna_non_dpt_p == 1
    assert record.auxiliary == {"psu": None, "extra_field": {"a": 1}}
    assert record.timestamp == "2024-02-15 10:00:00"
    assert record.suara_confirmed is True
    assert record.adm_confirmed is False
    assert record.accepted


def test_decode_result_record_null_fields_take_empty_values():
    record = ResultRecord.from_payload(
        {"chart": None, "images": None, "administrasi": None, "psu": None, "ts": None, "status_suara": False}
    )

    assert record.tally == {}
    assert record.attachments == []
    assert record.stats == AdministrativeStats()
    assert record.mode == ""
    assert not record.accepted


def test_decode_result_record_is_strict_on_known_field_types():
    with pytest.raises(DecodeError):
        ResultRecord.from_payload(_result_payload(chart={"100025": "ten"}))
    with pytest.raises(DecodeError):
        ResultRecord.from_payload(_result_payload(status_suara="true"))
    with pytest.raises(DecodeError):
        ResultRecord.from_payload(_result_payload(administrasi={"suara_sah": True}))
    with pytest.raises(DecodeError):
        ResultRecord.from_payload(["not", "an", "object"])


def test_decode_result_record_rejects_counts_wider_than_int64():
    with pytest.raises(DecodeError):
        ResultRecord.from_payload(_result_payload(chart={"100025": 2**64}))
    with pytest.raises(DecodeError):
        ResultRecord.from_payload(_result_payload(administrasi={"suara_sah": -(2**63) - 1}))

    record = ResultRecord.from_payload(_result_payload(chart={"100025": 2**63 - 1}))
    assert record.tally["100025"] == 2**63 - 1


def test_to_document_uses_source_key_names():
    record = ResultRecord.from_payload(_result_payload(psu="ulang", extra_field=7))
    document = record.to_document()

    assert set(document) == {
        "id",
        "mode",
        "chart",
        "images",
        "administrasi",
        "psu",
        "ts",
        "status_suara",
        "status_adm",
        "extra_field",
    }
    assert document["psu"] == "ulang"
    assert document["administrasi"]["pemilih_dpt_j"] == 1
    assert len(document["administrasi"]) == 18
