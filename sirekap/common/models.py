"""Data models for hierarchy descriptors and per-TPS result records."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from sirekap.common.errors import DecodeError
from sirekap.common.ids import INT64_MAX, INT64_MIN

STAT_FIELDS = (
    "suara_sah",
    "suara_total",
    "suara_tidak_sah",
    "pemilih_dpt_j",
    "pemilih_dpt_l",
    "pemilih_dpt_p",
    "pengguna_dpt_j",
    "pengguna_dpt_l",
    "pengguna_dpt_p",
    "pengguna_dptb_j",
    "pengguna_dptb_l",
    "pengguna_dptb_p",
    "pengguna_total_j",
    "pengguna_total_l",
    "pengguna_total_p",
    "pengguna_non_dpt_j",
    "pengguna_non_dpt_l",
    "pengguna_non_dpt_p",
)

RESULT_FIELDS = (
    "id",
    "mode",
    "chart",
    "images",
    "administrasi",
    "psu",
    "ts",
    "status_suara",
    "status_adm",
)


def _require_int(value: object, ctx: str) -> int:
    # bool is an int subclass but never a valid count.
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{ctx} must be an integer, got {type(value).__name__}")
    if not INT64_MIN <= value <= INT64_MAX:
        raise DecodeError(f"{ctx} out of int64 range: {value}")
    return value


def _require_str(value: object, ctx: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{ctx} must be a string, got {type(value).__name__}")
    return value


def _require_bool(value: object, ctx: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(f"{ctx} must be a boolean, got {type(value).__name__}")
    return value


def _require_mapping(value: object, ctx: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"{ctx} must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Descriptor:
    name: str
    identifier: int
    code: str
    level: int

    @classmethod
    def from_payload(cls, payload: object) -> "Descriptor":
        if not isinstance(payload, dict):
            raise DecodeError(f"Descriptor must be an object, got {type(payload).__name__}")
        missing = {"nama", "id", "kode", "tingkat"} - set(payload)
        if missing:
            raise DecodeError(f"Descriptor missing keys: {', '.join(sorted(missing))}")
        code = _require_str(payload["kode"], "descriptor.kode")
        if not code:
            raise DecodeError("descriptor.kode must not be empty")
        return cls(
            name=_require_str(payload["nama"], "descriptor.nama"),
            identifier=_require_int(payload["id"], "descriptor.id"),
            code=code,
            level=_require_int(payload["tingkat"], "descriptor.tingkat"),
        )


def decode_descriptors(payload: object) -> list[Descriptor]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise DecodeError(f"Descriptor listing must be an array, got {type(payload).__name__}")
    return [Descriptor.from_payload(item) for item in payload]


@dataclass(frozen=True)
class AdministrativeStats:
    suara_sah: int = 0
    suara_total: int = 0
    suara_tidak_sah: int = 0
    pemilih_dpt_j: int = 0
    pemilih_dpt_l: int = 0
    pemilih_dpt_p: int = 0
    pengguna_dpt_j: int = 0
    pengguna_dpt_l: int = 0
    pengguna_dpt_p: int = 0
    pengguna_dptb_j: int = 0
    pengguna_dptb_l: int = 0
    pengguna_dptb_p: int = 0
    pengguna_total_j: int = 0
    pengguna_total_l: int = 0
    pengguna_total_p: int = 0
    pengguna_non_dpt_j: int = 0
    pengguna_non_dpt_l: int = 0
    pengguna_non_dpt_p: int = 0

    @classmethod
    def from_payload(cls, payload: object) -> "AdministrativeStats":
        data = _require_mapping(payload, "administrasi")
        return cls(**{name: _require_int(data.get(name), f"administrasi.{name}") for name in STAT_FIELDS})

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ResultRecord:
    id: int
    mode: str
    tally: dict[str, int]
    attachments: list[str]
    stats: AdministrativeStats
    auxiliary: dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""
    suara_confirmed: bool = False
    adm_confirmed: bool = False

    @classmethod
    def from_payload(cls, payload: object) -> "ResultRecord":
        """Decode one result document.

        Known keys are type-checked, ``null`` decodes to the empty value and
        unknown keys are carried in ``auxiliary`` next to ``psu``. The ``id``
        is left at zero; callers derive it from the leaf code.
        """
        if not isinstance(payload, dict):
            raise DecodeError(f"Result record must be an object, got {type(payload).__name__}")

        chart = _require_mapping(payload.get("chart"), "chart")
        tally = {str(label): _require_int(count, f"chart.{label}") for label, count in chart.items()}

        images = payload.get("images")
        if images is None:
            images = []
        if not isinstance(images, list):
            raise DecodeError(f"images must be an array, got {type(images).__name__}")
        attachments = [_require_str(ref, f"images[{idx}]") for idx, ref in enumerate(images)]

        auxiliary = {"psu": payload.get("psu")}
        for key, value in payload.items():
            if key not in RESULT_FIELDS:
                auxiliary[key] = value

        return cls(
            id=0,
            mode=_require_str(payload.get("mode"), "mode"),
            tally=tally,
            attachments=attachments,
            stats=AdministrativeStats.from_payload(payload.get("administrasi")),
            auxiliary=auxiliary,
            timestamp=_require_str(payload.get("ts"), "ts"),
            suara_confirmed=_require_bool(payload.get("status_suara"), "status_suara"),
            adm_confirmed=_require_bool(payload.get("status_adm"), "status_adm"),
        )

    @property
    def accepted(self) -> bool:
        return self.suara_confirmed is True

    def to_document(self) -> dict[str, Any]:
        document = dict(self.auxiliary)
        document.update(
            {
                "id": self.id,
                "mode": self.mode,
                "chart": dict(self.tally),
                "images": list(self.attachments),
                "administrasi": self.stats.to_dict(),
                "ts": self.timestamp,
                "status_suara": self.suara_confirmed,
                "status_adm": self.adm_confirmed,
            }
        )
        return document

