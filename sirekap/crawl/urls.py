"""URL construction for the listing and result document trees."""

from __future__ import annotations

from sirekap.common.constants import JSON_SUFFIX


def listing_url(base: str, code: str) -> str:
    return f"{base}{code}{JSON_SUFFIX}"


def child_base(url: str) -> str:
    return url.removesuffix(JSON_SUFFIX) + "/"


def leaf_url(base: str, code: str, *, listing_segment: str, result_segment: str) -> str:
    """Map a child base in the listing tree onto the result tree.

    ``.../wilayah/pemilu/ppwp/11/1101/110101/1101012001/`` with code
    ``1101012001001`` becomes
    ``.../pemilu/hhcw/ppwp/11/1101/110101/1101012001/1101012001001.json``.
    """
    return listing_url(base.replace(listing_segment, result_segment, 1), code)
