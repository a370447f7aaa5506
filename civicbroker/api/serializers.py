"""Response serializers for the civic broker endpoints.

Ratings keep the long-standing client shape: resident stats keyed by party
code at the top level, non-resident stats under ``outsider`` and the caller's
own score under ``user``.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from civicbroker.core.domain import (
        CanonicalProfile,
        OfficeView,
        Party,
        RatingStat,
        RatingSummary,
        RepresentativesView,
        SearchPage,
    )

_PROFILE_SKIP = frozenset({"data_sources", "external_links"})


def serialize_profile(profile: CanonicalProfile) -> dict[str, typ.Any]:
    """Serialize a merged profile, omitting absent fields."""
    payload: dict[str, typ.Any] = {
        field.name: value
        for field in dc.fields(profile)
        if field.name not in _PROFILE_SKIP
        and (value := getattr(profile, field.name)) is not None
    }
    payload["data_sources"] = [
        {"source": item.source, "name": item.name, "link": item.link}
        for item in profile.data_sources
    ]
    payload["external_links"] = [
        {"site": item.site, "id": item.external_id, "url": item.url}
        for item in profile.external_links
    ]
    return payload


def _serialize_stats(stats: dict[Party, RatingStat]) -> dict[str, typ.Any]:
    return {
        party.value: {"rating": stat.rating, "total": stat.total}
        for party, stat in stats.items()
    }


def serialize_ratings(summary: RatingSummary) -> dict[str, typ.Any]:
    """Serialize a rating summary."""
    payload = _serialize_stats(summary.resident)
    payload["outsider"] = _serialize_stats(summary.non_resident)
    if summary.caller_score is not None:
        payload["user"] = summary.caller_score
    return payload


def serialize_search_page(page: SearchPage) -> dict[str, typ.Any]:
    """Serialize one page of search results."""
    return {
        "results": [serialize_profile(profile) for profile in page.results],
        "page": page.page,
        "pages": page.pages,
        "total": page.total,
    }


def _serialize_office(office: OfficeView) -> dict[str, typ.Any]:
    payload: dict[str, typ.Any] = {
        "key": office.key,
        "name": office.name,
        "state": office.state,
        "type": " ".join(office.levels),
        "district": office.district,
        "incumbents": [
            serialize_profile(incumbent.profile)
            | {"ratings": serialize_ratings(incumbent.ratings)}
            for incumbent in office.incumbents
        ],
        "challengers": [],
    }
    if office.title is not None:
        payload["title"] = office.title
    return payload


def serialize_representatives(view: RepresentativesView) -> dict[str, typ.Any]:
    """Serialize offices grouped by chamber code."""
    return {
        chamber.value: [_serialize_office(office) for office in offices]
        for chamber, offices in view.offices.items()
    }
