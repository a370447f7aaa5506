"""Representative lookup for an address.

The data-fetch collaborator hands over a civic-info representatives response
(divisions, offices and officials for one address) and, optionally, the
legislator-directory records for the same point. Every official is ingested
so later searches and ratings see them, then offices are grouped by chamber
with their incumbents' merged profiles and current ratings.
"""

from __future__ import annotations

import typing as typ

from civicbroker.logging import get_logger, log_info, log_warning

from .adapters._coercion import as_mapping, coerce_text
from .adapters.normaliser import NormaliserRegistry
from .domain import (
    Chamber,
    Incumbent,
    OfficeView,
    RawProviderRecord,
    RepresentativesView,
    Source,
)
from .errors import NormalisationError, store_boundary
from .offices import chamber_for_directory, classify_office, district_from_division
from .ratings import get_ratings
from .resolver import DEFAULT_REGISTRY, ingest, resolve, store_division

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .context import BrokerContext
    from .domain import JsonMapping

logger = get_logger(__name__)

_STATE_CHAMBERS = (Chamber.STATE_LOWER, Chamber.STATE_UPPER)


def _sequence(value: object) -> list[object]:
    return list(value) if isinstance(value, list) else []


def _pick(items: list[object], index: object) -> cabc.Mapping[str, object] | None:
    """Return ``items[index]`` as a mapping when ``index`` is a valid position."""
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    if not 0 <= index < len(items):
        return None
    return as_mapping(items[index])


def _text_items(value: object) -> tuple[str, ...]:
    return tuple(text for item in _sequence(value) if (text := coerce_text(item)))


async def _incumbent(
    ctx: BrokerContext,
    politician_id: str,
    caller_id: str | None,
) -> Incumbent:
    return Incumbent(
        profile=await resolve(ctx, politician_id),
        ratings=await get_ratings(ctx, politician_id, caller_id),
    )


async def _ingest_or_skip(
    ctx: BrokerContext,
    source: str,
    raw: RawProviderRecord,
    registry: NormaliserRegistry,
) -> str | None:
    try:
        return await ingest(ctx, source, raw, registry)
    except NormalisationError as exc:
        log_warning(logger, "Skipping %s record: %s", source, exc)
        return None


async def _civic_offices(  # noqa: PLR0913
    ctx: BrokerContext,
    response: cabc.Mapping[str, object],
    state: str | None,
    caller_id: str | None,
    registry: NormaliserRegistry,
    grouped: dict[Chamber, list[OfficeView]],
) -> None:
    offices = _sequence(response.get("offices"))
    officials = _sequence(response.get("officials"))
    for division_id, division in as_mapping(response.get("divisions")).items():
        details = as_mapping(division)
        if name := coerce_text(details.get("name")):
            await store_division(ctx, division_id, {"name": name})
        district = district_from_division(division_id)

        for position, office_index in enumerate(_sequence(details.get("officeIndices"))):
            office = _pick(offices, office_index)
            if office is None:
                continue
            office_name = coerce_text(office.get("name")) or ""
            levels = _text_items(office.get("levels"))
            chamber, title = classify_office(office_name, levels)

            incumbents: list[Incumbent] = []
            for official_index in _sequence(office.get("officialIndices")):
                official = _pick(officials, official_index)
                if official is None:
                    continue
                raw = RawProviderRecord(
                    payload=dict(official),
                    division_id=division_id,
                    office=office_name or None,
                    office_levels=levels,
                    state=state,
                    district=district,
                )
                politician_id = await _ingest_or_skip(
                    ctx, Source.CIVIC_INFO, raw, registry
                )
                if politician_id is not None:
                    incumbents.append(await _incumbent(ctx, politician_id, caller_id))

            grouped[chamber].append(
                OfficeView(
                    key=f"{division_id}:{position}",
                    name=office_name,
                    state=state,
                    district=district,
                    chamber=chamber,
                    title=title,
                    levels=levels,
                    incumbents=tuple(incumbents),
                )
            )


async def _directory_offices(  # noqa: PLR0913
    ctx: BrokerContext,
    legislators: cabc.Iterable[JsonMapping],
    state: str | None,
    caller_id: str | None,
    registry: NormaliserRegistry,
    grouped: dict[Chamber, list[OfficeView]],
) -> None:
    """Fill empty state chambers from active legislator-directory records."""
    missing = {chamber for chamber in _STATE_CHAMBERS if not grouped[chamber]}
    for position, legislator in enumerate(legislators):
        if not legislator.get("active"):
            continue
        chamber = chamber_for_directory(coerce_text(legislator.get("chamber")))
        chamber = chamber or Chamber.STATE_LOWER
        if chamber not in missing:
            continue
        raw = RawProviderRecord(payload=dict(legislator), state=state)
        politician_id = await _ingest_or_skip(
            ctx, Source.LEGISLATOR_DIRECTORY, raw, registry
        )
        if politician_id is None:
            continue
        incumbent = await _incumbent(ctx, politician_id, caller_id)
        profile = incumbent.profile
        grouped[chamber].append(
            OfficeView(
                key=f"{profile.division_id}:directory:{position}",
                name=profile.office or "",
                state=profile.state or state,
                district=profile.district or "",
                chamber=chamber,
                title=profile.office,
                incumbents=(incumbent,),
            )
        )


@store_boundary("lookup_representatives")
async def lookup_representatives(
    ctx: BrokerContext,
    civic_response: cabc.Mapping[str, object],
    legislators: cabc.Iterable[JsonMapping] = (),
    caller_id: str | None = None,
    registry: NormaliserRegistry = DEFAULT_REGISTRY,
) -> RepresentativesView:
    """Ingest the officials for an address and group their offices by chamber.

    Parameters
    ----------
    ctx : BrokerContext
        Injected capabilities.
    civic_response : Mapping[str, object]
        Civic-info representatives response with ``normalizedInput``,
        ``divisions``, ``offices`` and ``officials``.
    legislators : Iterable[JsonMapping]
        Legislator-directory records for the same location, used only when
        the civic-info response has no state lower or upper chamber office.
    caller_id : str | None
        Caller whose own scores are included in each incumbent's ratings.
    registry : NormaliserRegistry
        Normalisers used for ingestion.

    Returns
    -------
    RepresentativesView
        Offices keyed by chamber. Officials that fail normalisation are
        logged and left out.
    """
    state = coerce_text(as_mapping(civic_response.get("normalizedInput")).get("state"))
    grouped: dict[Chamber, list[OfficeView]] = {chamber: [] for chamber in Chamber}

    await _civic_offices(ctx, civic_response, state, caller_id, registry, grouped)
    if any(not grouped[chamber] for chamber in _STATE_CHAMBERS):
        await _directory_offices(ctx, legislators, state, caller_id, registry, grouped)

    log_info(
        logger,
        "Found %d offices for %s.",
        sum(len(views) for views in grouped.values()),
        state or "unknown state",
    )
    return RepresentativesView(
        offices={chamber: tuple(views) for chamber, views in grouped.items()}
    )
