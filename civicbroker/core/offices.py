"""Office title classification.

Providers publish no authoritative taxonomy of offices, so chambers are
inferred from the government level and substrings of the office title. The
rules below are a heuristic and are kept in one place so they can be tuned
without touching ingestion.
"""

from __future__ import annotations

import re
import typing as typ

from .domain import Chamber

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_COUNTRY_LEVEL = "country"
_STATE_LEVEL = "administrativeArea1"
_TRAILING_DISTRICT_RE = re.compile(r" District.*$")
_STATE_LOWER_MARKERS = ("House", "Assembly", "Delegate")

US_HOUSE_TITLE = "U.S. House of Representatives"
US_SENATE_TITLE = "U.S. Senate"


def classify_office(
    name: str,
    levels: cabc.Iterable[str] = (),
) -> tuple[Chamber, str | None]:
    """Classify an office into a chamber and display title.

    Parameters
    ----------
    name : str
        Office title as published by the provider, for example
        ``"California State Senate District 11"``.
    levels : Iterable[str]
        Government levels the provider attached to the office.

    Returns
    -------
    tuple[Chamber, str | None]
        The chamber and, for legislative chambers, a title with any trailing
        district designation removed. Other federal offices and offices
        without levels classify as ``Chamber.OTHER`` with no title.

    Examples
    --------
    >>> classify_office("U.S. Senator", ["country"])
    (<Chamber.SENATE: 'sen'>, 'U.S. Senate')
    """
    level_set = frozenset(levels)
    if _COUNTRY_LEVEL in level_set:
        if "House of Representatives" in name:
            return Chamber.CONGRESSIONAL_DISTRICT, US_HOUSE_TITLE
        if "Senate" in name or "Senator" in name:
            return Chamber.SENATE, US_SENATE_TITLE
        return Chamber.OTHER, None
    if _STATE_LEVEL in level_set:
        title = _TRAILING_DISTRICT_RE.sub("", name)
        if "Senate" in name:
            return Chamber.STATE_UPPER, title
        if any(marker in name for marker in _STATE_LOWER_MARKERS):
            return Chamber.STATE_LOWER, title
    return Chamber.OTHER, None


def chamber_for_directory(chamber: str | None) -> Chamber | None:
    """Map a legislator-directory chamber (``upper``/``lower``) to a chamber."""
    if chamber == "upper":
        return Chamber.STATE_UPPER
    if chamber == "lower":
        return Chamber.STATE_LOWER
    return None


def district_from_division(division_id: str) -> str:
    """Return the district number encoded at the end of a division id.

    >>> district_from_division("ocd-division/country:us/state:ca/cd:12")
    '12'
    >>> district_from_division("ocd-division/country:us/state:ca")
    ''
    """
    tail = division_id.rsplit(":", 1)[-1]
    return tail if tail.isdigit() else ""
