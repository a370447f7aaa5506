"""Entity resolution across provider records.

Every provider writes its own hash per politician (``source:id``) and
registers it in the identity's reference set (``politician:id``). Reads merge
those hashes on the fly: for each field the first source in priority order
with a non-empty value wins. Nothing merged is ever persisted.

Examples
--------
Merge two records without touching the store:

>>> merged = merge_records(
...     {
...         "openstates": SourceRecord(name="Ada Lovelace", phone="555-0100"),
...         "googlecivics": SourceRecord(name="Ada King"),
...     }
... )
>>> merged.name, merged.phone
('Ada King', '555-0100')
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from civicbroker.logging import get_logger, log_debug, log_info

from . import keys
from .adapters.normaliser import NormaliserRegistry, default_registry
from .domain import (
    SOURCE_PRIORITY,
    CanonicalProfile,
    DataSource,
    ExternalLink,
    Source,
    SourceRecord,
)
from .errors import store_boundary
from .index import index_record

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .context import BrokerContext
    from .domain import RawProviderRecord

logger = get_logger(__name__)

DEFAULT_REGISTRY = default_registry()

#: Display name and deep-link template per provider. ``None`` links mean the
#: provider has no public per-politician page.
_ATTRIBUTIONS: dict[str, tuple[str, str | None]] = {
    Source.CIVIC_INFO: (
        "Google Civic Information API",
        "https://developers.google.com/civic-information",
    ),
    Source.LEGISLATOR_DIRECTORY: ("Open States", "https://openstates.org/"),
    Source.GENERIC: ("Community submissions", None),
}
_OPENSTATES_PERSON_URL = "https://openstates.org/person/{id}/"

#: Reference-site identifiers and their canonical URL templates.
EXTERNAL_LINK_TEMPLATES: dict[str, tuple[str, str]] = {
    "bioguide_id": ("bioguide", "https://bioguide.congress.gov/search/bio/{id}"),
    "votesmart_id": ("votesmart", "https://justfacts.votesmart.org/candidate/{id}"),
    "opensecrets_id": (
        "opensecrets",
        "https://www.opensecrets.org/members-of-congress/summary?cid={id}",
    ),
    "ballotpedia_id": ("ballotpedia", "https://ballotpedia.org/{id}"),
    "wikipedia_id": ("wikipedia", "https://en.wikipedia.org/wiki/{id}"),
    "govtrack_id": ("govtrack", "https://www.govtrack.us/congress/members/{id}"),
}

_PROFILE_FIELDS = frozenset(field.name for field in dc.fields(CanonicalProfile))


def order_sources(
    sources: cabc.Iterable[str],
    priority: cabc.Sequence[str] = SOURCE_PRIORITY,
) -> list[str]:
    """Order ``sources`` by ``priority``; unlisted sources follow alphabetically."""
    rank = {source: index for index, source in enumerate(priority)}
    return sorted(set(sources), key=lambda source: (rank.get(source, len(rank)), source))


def _repair_name(record: SourceRecord) -> SourceRecord:
    """Rebuild ``name`` from name parts when it is absent or "Last, First"."""
    if record.name and "," not in record.name:
        return record
    if not (record.first_name and record.last_name):
        return record
    return dc.replace(record, name=f"{record.first_name} {record.last_name}")


def merge_records(
    records: cabc.Mapping[str, SourceRecord],
    priority: cabc.Sequence[str] = SOURCE_PRIORITY,
) -> SourceRecord:
    """Collapse per-source records into one by field-level priority.

    Parameters
    ----------
    records : Mapping[str, SourceRecord]
        Records keyed by source name.
    priority : Sequence[str]
        Source names, highest priority first.

    Returns
    -------
    SourceRecord
        For each field, the first non-empty value in priority order, with the
        display name repaired from its parts when malformed.
    """
    ordered = [records[source] for source in order_sources(records, priority)]
    merged: dict[str, str] = {}
    for field in SourceRecord.field_names():
        for record in ordered:
            if value := getattr(record, field):
                merged[field] = value
                break
    return _repair_name(SourceRecord(**merged))


def _attribution(source: str, record: SourceRecord) -> DataSource:
    name, link = _ATTRIBUTIONS.get(source, (source, None))
    if source == Source.LEGISLATOR_DIRECTORY and record.openstates_id:
        link = _OPENSTATES_PERSON_URL.format(id=record.openstates_id)
    return DataSource(source=source, name=name, link=link)


def external_links(record: SourceRecord) -> tuple[ExternalLink, ...]:
    """Translate reference-site identifiers on ``record`` into links."""
    links: list[ExternalLink] = []
    for field, (site, template) in EXTERNAL_LINK_TEMPLATES.items():
        if external_id := getattr(record, field):
            links.append(
                ExternalLink(
                    site=site,
                    external_id=external_id,
                    url=template.format(id=external_id),
                )
            )
    return tuple(links)


def _photo_url(ctx: BrokerContext, politician_id: str, source_url: str | None) -> str | None:
    """Return the client-facing photo URL, warming the cache once per URL.

    A warm already in flight for the same source photo is reused, so a
    search page listing many profiles does not repeat proxy requests.
    """
    cache = ctx.photo_cache
    if source_url is None or cache is None:
        return source_url
    ctx.background.spawn_once(
        source_url,
        lambda: cache.warmer.warm(source_url),
        operation_name="warm_photo_cache",
        correlation_id=politician_id,
    )
    return cache.cached_url(politician_id, source_url)


async def _load_records(
    ctx: BrokerContext,
    politician_id: str,
) -> dict[str, SourceRecord]:
    records: dict[str, SourceRecord] = {}
    for reference in await ctx.store.smembers(keys.identity(politician_id)):
        source = reference.split(":", 1)[0]
        record = SourceRecord.from_mapping(await ctx.store.hgetall(reference))
        if not record.is_empty():
            records[source] = record
    return records


@store_boundary("resolve")
async def resolve(ctx: BrokerContext, politician_id: str) -> CanonicalProfile:
    """Return the merged profile for ``politician_id``.

    An identity with no source records yields a profile whose fields are all
    absent and whose ``data_sources`` is empty; absence is not an error.
    """
    records = await _load_records(ctx, politician_id)
    if not records:
        return CanonicalProfile(id=politician_id)

    merged = merge_records(records)
    fields = {
        name: value
        for name, value in merged.to_mapping().items()
        if name in _PROFILE_FIELDS
    }
    fields["photo_url"] = _photo_url(ctx, politician_id, merged.photo_url)
    return CanonicalProfile(
        id=politician_id,
        data_sources=tuple(
            _attribution(source, records[source]) for source in order_sources(records)
        ),
        external_links=external_links(merged),
        **fields,
    )


@store_boundary("ingest")
async def ingest(
    ctx: BrokerContext,
    source: str,
    raw: RawProviderRecord,
    registry: NormaliserRegistry = DEFAULT_REGISTRY,
) -> str:
    """Normalise, store and index one provider record.

    The source hash is fully overwritten, so ingesting identical input twice
    yields the same profile. A change in name or division derives a new id.

    Returns
    -------
    str
        The politician id the record was stored under.

    Raises
    ------
    NormalisationError
        If ``source`` is unknown or the record lacks a name or division.
    """
    normalised = registry.normalise(source, raw)
    politician_id = normalised.politician_id
    record = normalised.record
    record_key = keys.source_record(source, politician_id)

    await ctx.store.delete(record_key)
    await ctx.store.hset(record_key, record.to_mapping())
    await ctx.store.sadd(keys.identity(politician_id), record_key)
    if record.division_id:
        await ctx.store.sadd(keys.division_politicians(record.division_id), politician_id)
    await index_record(ctx, record, politician_id, provenance_key=source)
    log_info(logger, "Ingested %s record for %s.", source, politician_id)
    return politician_id


@store_boundary("store_division")
async def store_division(
    ctx: BrokerContext,
    division_id: str,
    fields: cabc.Mapping[str, str],
) -> None:
    """Write the descriptive hash for a division, skipping empty values."""
    values = {name: value for name, value in fields.items() if value}
    if not values:
        return
    await ctx.store.hset(keys.division(division_id), values)
    log_debug(logger, "Stored division %s.", division_id)


@store_boundary("division_of")
async def division_of(ctx: BrokerContext, politician_id: str) -> str | None:
    """Return the merged ``division_id`` of ``politician_id``, if any."""
    references = await ctx.store.smembers(keys.identity(politician_id))
    by_source = {reference.split(":", 1)[0]: reference for reference in references}
    for source in order_sources(by_source):
        if division_id := await ctx.store.hget(by_source[source], "division_id"):
            return division_id
    return None


@store_boundary("politicians_in_division")
async def politicians_in_division(ctx: BrokerContext, division_id: str) -> list[str]:
    """Return the ids of politicians serving ``division_id``."""
    return await ctx.store.smembers(keys.division_politicians(division_id))
