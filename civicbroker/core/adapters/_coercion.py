"""Shared coercion helpers for loosely typed provider payloads."""

from __future__ import annotations

import collections.abc as cabc

_SCALARS = (str, int, float)


def coerce_text(value: object) -> str | None:
    """Return ``value`` as stripped text, or ``None`` when blank.

    Parameters
    ----------
    value : object
        Candidate value. Only strings and numbers are conversion candidates;
        booleans and all other types yield ``None``.

    Returns
    -------
    str | None
        Stripped text, or ``None`` for missing, blank or unsupported values.
    """
    if isinstance(value, bool) or not isinstance(value, _SCALARS):
        return None
    text = str(value).strip()
    return text or None


def first_item(value: object) -> object | None:
    """Return the first element of a non-string sequence, else ``None``."""
    if isinstance(value, str) or not isinstance(value, cabc.Sequence):
        return None
    return value[0] if value else None


def as_mapping(value: object) -> cabc.Mapping[str, object]:
    """Return ``value`` when it is a mapping, else an empty mapping."""
    if isinstance(value, cabc.Mapping):
        return value
    return {}
