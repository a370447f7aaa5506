"""Provider record normalisers.

Each normaliser maps one provider's record layout onto ``SourceRecord`` and
derives the politician identifier from the division and name parts. The
identifier is content derived, so re-fetching the same provider record always
lands on the same identity, while two people sharing a name within one
division collide (a known limitation).

Examples
--------
Normalise a civic-info official:

>>> normaliser = CivicInfoNormaliser()
>>> result = normaliser.normalise(
...     RawProviderRecord(
...         payload={"name": "Ada Lovelace", "party": "Democratic Party"},
...         division_id="ocd-division/country:us/state:ca/cd:12",
...     )
... )
>>> result.record.party
'D'
"""

from __future__ import annotations

import datetime as dt
import hashlib
import typing as typ

from civicbroker.core.domain import (
    Chamber,
    NormalisedRecord,
    Party,
    RawProviderRecord,
    Source,
    SourceRecord,
)
from civicbroker.core.errors import NormalisationError
from civicbroker.core.offices import chamber_for_directory, classify_office

from ._coercion import as_mapping, coerce_text, first_item

if typ.TYPE_CHECKING:
    import collections.abc as cabc

type Clock = cabc.Callable[[], dt.datetime]

#: Civic-info channel types mapped to record fields.
_CHANNEL_FIELDS: dict[str, str] = {
    "Facebook": "facebook",
    "Twitter": "twitter",
    "GooglePlus": "googleplus",
}
_YOUTUBE_CHANNEL_PREFIX = "UC"


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def derive_politician_id(division_id: str, last_name: str, first_name: str) -> str:
    """Return the identifier for a politician.

    The identifier is the hex SHA-1 of
    ``division_id + ":" + lower(last_name) + ":" + lower(first_name)``.
    """
    material = f"{division_id}:{last_name.lower()}:{first_name.lower()}"
    return hashlib.sha1(material.encode("utf-8"), usedforsecurity=False).hexdigest()


def _party_code(label: object) -> str | None:
    party = Party.from_label(coerce_text(label))
    return party.value if party is not None else None


def _name_parts(name: str) -> tuple[str, str]:
    """Return ``(first, last)`` as the outer whitespace-separated tokens."""
    tokens = name.split()
    return tokens[0], tokens[-1]


def _postal_address(value: object) -> str | None:
    address = as_mapping(first_item(value))
    parts = [
        text
        for key in ("line1", "city", "state", "zip")
        if (text := coerce_text(address.get(key)))
    ]
    return ", ".join(parts) or None


def _channel_fields(channels: object) -> dict[str, str]:
    """Flatten civic-info social channels into record fields."""
    fields: dict[str, str] = {}
    if isinstance(channels, str) or not isinstance(channels, list):
        return fields
    for channel in channels:
        entry = as_mapping(channel)
        channel_type = coerce_text(entry.get("type"))
        channel_id = coerce_text(entry.get("id"))
        if channel_type is None or channel_id is None:
            continue
        if channel_type == "YouTube":
            key = "youtube_id" if channel_id.startswith(_YOUTUBE_CHANNEL_PREFIX) else "youtube"
            fields[key] = channel_id
        elif channel_type in _CHANNEL_FIELDS:
            fields[_CHANNEL_FIELDS[channel_type]] = channel_id
    return fields


class RecordNormaliser(typ.Protocol):
    """Maps one provider's raw records onto the canonical attribute set."""

    source: str

    def normalise(self, raw: RawProviderRecord) -> NormalisedRecord:
        """Normalise ``raw`` or raise ``NormalisationError``."""
        ...


class CivicInfoNormaliser:
    """Normaliser for civic-info officials (the primary source).

    Officials carry a display name, list-valued contact fields and social
    channels; the division, office and state come from the surrounding
    response through ``RawProviderRecord``.
    """

    source = Source.CIVIC_INFO.value

    def __init__(self, clock: Clock = _utc_now) -> None:
        self._clock = clock

    def normalise(self, raw: RawProviderRecord) -> NormalisedRecord:
        """Normalise a civic-info official.

        Raises
        ------
        NormalisationError
            If the official has no name or the record has no division.
        """
        payload = raw.payload
        name = coerce_text(payload.get("name"))
        if name is None or raw.division_id is None:
            msg = "Civic-info officials need a name and a division."
            raise NormalisationError(msg)
        first_name, last_name = _name_parts(name)
        chamber = None
        if raw.office is not None:
            chamber, _ = classify_office(raw.office, raw.office_levels)

        record = SourceRecord(
            name=name,
            division_id=raw.division_id,
            office=raw.office,
            chamber=chamber.value if chamber is not None else None,
            address=_postal_address(payload.get("address")),
            phone=coerce_text(first_item(payload.get("phones"))),
            email=coerce_text(first_item(payload.get("emails"))),
            party=_party_code(payload.get("party")),
            state=raw.state,
            district=raw.district or None,
            url=coerce_text(first_item(payload.get("urls"))),
            photo_url=coerce_text(payload.get("photoUrl")),
            last_updated=self._clock().isoformat(),
            **_channel_fields(payload.get("channels")),
        )
        return NormalisedRecord(
            source=self.source,
            politician_id=derive_politician_id(raw.division_id, last_name, first_name),
            record=record,
        )


class LegislatorDirectoryNormaliser:
    """Normaliser for state legislator-directory records.

    Directory records carry explicit first and last names, a ``boundary_id``
    division and an ``upper``/``lower`` chamber.
    """

    source = Source.LEGISLATOR_DIRECTORY.value

    def __init__(self, clock: Clock = _utc_now) -> None:
        self._clock = clock

    def normalise(self, raw: RawProviderRecord) -> NormalisedRecord:
        """Normalise a legislator-directory record.

        Raises
        ------
        NormalisationError
            If the record lacks a first name, last name or division.
        """
        payload = raw.payload
        first_name = coerce_text(payload.get("first_name"))
        last_name = coerce_text(payload.get("last_name"))
        division_id = coerce_text(payload.get("boundary_id")) or raw.division_id
        if first_name is None or last_name is None or division_id is None:
            msg = "Directory records need first and last names and a division."
            raise NormalisationError(msg)

        state = coerce_text(payload.get("state"))
        state = state.upper() if state else raw.state
        chamber = chamber_for_directory(coerce_text(payload.get("chamber")))
        office = as_mapping(first_item(payload.get("offices")))

        record = SourceRecord(
            name=coerce_text(payload.get("full_name")) or f"{first_name} {last_name}",
            first_name=first_name,
            last_name=last_name,
            division_id=division_id,
            office=raw.office or _directory_office_title(state, chamber),
            chamber=chamber.value if chamber is not None else None,
            address=coerce_text(office.get("address")),
            phone=coerce_text(office.get("phone")),
            email=coerce_text(payload.get("email")),
            party=_party_code(payload.get("party")),
            state=state,
            district=coerce_text(payload.get("district")) or raw.district,
            url=coerce_text(payload.get("url")),
            photo_url=coerce_text(payload.get("photo_url")),
            votesmart_id=coerce_text(payload.get("votesmart_id")),
            openstates_id=coerce_text(payload.get("leg_id")),
            last_updated=self._clock().isoformat(),
        )
        return NormalisedRecord(
            source=self.source,
            politician_id=derive_politician_id(division_id, last_name, first_name),
            record=record,
        )


def _directory_office_title(state: str | None, chamber: Chamber | None) -> str | None:
    if state is None or chamber is None:
        return None
    body = "Senate" if chamber is Chamber.STATE_UPPER else "House"
    return f"{state} State {body}"


class GenericRecordNormaliser:
    """Fallback normaliser for records already keyed by canonical field names.

    Name parts are taken from ``first_name``/``last_name`` when present and
    otherwise from the outer tokens of ``name``.
    """

    source = Source.GENERIC.value

    def normalise(self, raw: RawProviderRecord) -> NormalisedRecord:  # noqa: PLR6301
        """Normalise a flat record.

        Raises
        ------
        NormalisationError
            If the record has neither a name nor name parts, or no division.
        """
        fields = {key: value for key, value in raw.payload.items() if value is not None}
        fields.setdefault("division_id", raw.division_id)
        fields.setdefault("office", raw.office)
        fields.setdefault("state", raw.state)
        fields.setdefault("district", raw.district)
        fields["party"] = _party_code(fields.get("party"))
        record = SourceRecord.from_mapping(fields)

        first_name, last_name = record.first_name, record.last_name
        if (first_name is None or last_name is None) and record.name:
            first_name, last_name = _name_parts(record.name)
        if first_name is None or last_name is None or record.division_id is None:
            msg = "Records need a name and a division."
            raise NormalisationError(msg)
        return NormalisedRecord(
            source=self.source,
            politician_id=derive_politician_id(
                record.division_id, last_name, first_name
            ),
            record=record,
        )


class NormaliserRegistry:
    """Looks up the normaliser for a source name."""

    def __init__(self, normalisers: cabc.Iterable[RecordNormaliser]) -> None:
        self._normalisers = {normaliser.source: normaliser for normaliser in normalisers}

    @property
    def sources(self) -> tuple[str, ...]:
        return tuple(self._normalisers)

    def normalise(self, source: str, raw: RawProviderRecord) -> NormalisedRecord:
        """Normalise ``raw`` with the normaliser registered for ``source``.

        Raises
        ------
        NormalisationError
            If no normaliser is registered for ``source`` or the record is
            rejected.
        """
        normaliser = self._normalisers.get(source)
        if normaliser is None:
            msg = f"Unknown source: {source!r}."
            raise NormalisationError(msg)
        return normaliser.normalise(raw)


def default_registry(clock: Clock = _utc_now) -> NormaliserRegistry:
    """Return a registry holding the built-in normalisers."""
    return NormaliserRegistry(
        (
            CivicInfoNormaliser(clock),
            LegislatorDirectoryNormaliser(clock),
            GenericRecordNormaliser(),
        )
    )
