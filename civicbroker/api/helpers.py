"""Request parsing for Falcon resource adapters.

Parsing failures raise ``falcon.HTTPBadRequest`` with the same fixed
``"Invalid input."`` description the core uses, so clients see one message
for every malformed request.

Examples
--------
>>> page = parse_page("2")
>>> update = build_profile_update({"party": "D"})
"""

from __future__ import annotations

import math
import re
import typing as typ

import falcon

from civicbroker.core.domain import Coordinates, ProfileUpdate, RawProviderRecord
from civicbroker.core.errors import INVALID_INPUT_MESSAGE

if typ.TYPE_CHECKING:
    from .types import JsonPayload

_INT_RE = re.compile(r"[+-]?\d+")


def _bad_request(description: str = INVALID_INPUT_MESSAGE) -> falcon.HTTPBadRequest:
    return falcon.HTTPBadRequest(description=description)


def require_payload_dict(payload: object) -> JsonPayload:
    """Validate that request media is a JSON object mapping.

    Raises
    ------
    falcon.HTTPBadRequest
        Raised when request media is not a JSON object.
    """
    if not isinstance(payload, dict):
        msg = "JSON object payload is required."
        raise _bad_request(msg)
    return typ.cast("JsonPayload", payload)


def require_text(payload: JsonPayload, field_name: str) -> str:
    """Return a required non-blank string field.

    Raises
    ------
    falcon.HTTPBadRequest
        Raised when the field is missing, blank or not a string.
    """
    value = payload.get(field_name)
    if not isinstance(value, str) or not value.strip():
        msg = f"Missing required field: {field_name}"
        raise _bad_request(msg)
    return value.strip()


def optional_text(payload: JsonPayload, field_name: str) -> str | None:
    """Return a string field, or ``None`` when absent or blank."""
    value = payload.get(field_name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _bad_request()
    return value.strip() or None


def _coerce_int(value: object) -> int | None:
    """Return ``value`` as an integer, or ``None`` when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped_value = value.strip()
        if _INT_RE.fullmatch(stripped_value) is None:
            return None
        return int(stripped_value)
    return None


def parse_page(raw_value: str | None) -> int:
    """Parse the 1-based ``page`` query parameter, defaulting to 1."""
    if raw_value is None or not raw_value.strip():
        return 1
    page = _coerce_int(raw_value)
    if page is None or page < 1:
        raise _bad_request()
    return page


def parse_score(payload: JsonPayload) -> int | None:
    """Parse the optional ``rating`` field of a rate request.

    Integral JSON numbers such as ``4.0`` are accepted as integers. Range
    checking is left to the core; this only rejects non-integers.
    """
    raw = payload.get("rating")
    if raw is None or raw == "":
        return None
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    score = _coerce_int(raw)
    if score is None:
        raise _bad_request()
    return score


def _coerce_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def parse_coordinates(payload: JsonPayload) -> Coordinates | None:
    """Parse ``lat``/``lng``; both absent means no coordinates.

    Raises
    ------
    falcon.HTTPBadRequest
        Raised when only one is present or either is not a finite number.
    """
    raw_lat, raw_lng = payload.get("lat"), payload.get("lng")
    if raw_lat in (None, "") and raw_lng in (None, ""):
        return None
    lat, lng = _coerce_float(raw_lat), _coerce_float(raw_lng)
    if lat is None or lng is None or not (math.isfinite(lat) and math.isfinite(lng)):
        raise _bad_request()
    return Coordinates(lat=lat, lng=lng)


def _division_ids(value: object) -> tuple[str, ...]:
    """Accept a list of ids or a civic-info ``divisions`` mapping."""
    if isinstance(value, dict):
        value = list(value)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise _bad_request()
    return tuple(item for item in value if item)


def build_profile_update(payload: JsonPayload) -> ProfileUpdate:
    """Build a ``ProfileUpdate`` from a profile request body."""
    return ProfileUpdate(
        party=optional_text(payload, "party"),
        address=optional_text(payload, "address"),
        coordinates=parse_coordinates(payload),
        divisions=_division_ids(payload.get("divisions")),
    )


def build_raw_record(payload: JsonPayload) -> RawProviderRecord:
    """Build a ``RawProviderRecord`` from an ingest request body.

    The provider record travels under ``record``; the optional context keys
    (``division_id``, ``office``, ``office_levels``, ``state``, ``district``)
    sit beside it.
    """
    record = payload.get("record")
    if not isinstance(record, dict):
        msg = "Missing required field: record"
        raise _bad_request(msg)
    levels = payload.get("office_levels") or []
    if not isinstance(levels, list) or not all(isinstance(level, str) for level in levels):
        raise _bad_request()
    return RawProviderRecord(
        payload=typ.cast("JsonPayload", record),
        division_id=optional_text(payload, "division_id"),
        office=optional_text(payload, "office"),
        office_levels=tuple(levels),
        state=optional_text(payload, "state"),
        district=optional_text(payload, "district"),
    )


def client_address(req: falcon.Request) -> str | None:
    """Return the originating client address, honouring proxy headers."""
    route = req.access_route
    return route[0] if route else req.remote_addr
