"""Domain models for aggregated civic-representative data."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

type JsonMapping = dict[str, object]
type PoliticianId = str


class Party(enum.StrEnum):
    """Closed set of party codes used to partition ratings."""

    DEMOCRAT = "D"
    REPUBLICAN = "R"
    INDEPENDENT = "I"
    GREEN = "G"
    LIBERTARIAN = "L"
    OTHER = "O"

    @classmethod
    def from_label(cls, label: str | None) -> Party | None:
        """Map a provider or user supplied party label onto a code.

        Short codes map to themselves and recognised full names (with or
        without a trailing "Party") map to their code. ``"unknown"`` and empty
        labels map to ``None``; anything else maps to ``Party.OTHER``.
        """
        if label is None:
            return None
        text = label.strip()
        if not text:
            return None
        if text.upper() in _CODES:
            return cls(text.upper())
        lowered = text.lower().removesuffix(" party")
        if lowered == "unknown":
            return None
        return _PARTY_NAMES.get(lowered, cls.OTHER)


_CODES = frozenset(party.value for party in Party)
_PARTY_NAMES: dict[str, Party] = {
    "republican": Party.REPUBLICAN,
    "democrat": Party.DEMOCRAT,
    "democratic": Party.DEMOCRAT,
    "green": Party.GREEN,
    "libertarian": Party.LIBERTARIAN,
    "independent": Party.INDEPENDENT,
}

#: Party assumed for citizens who never declared one.
DEFAULT_PARTY = Party.INDEPENDENT


class Residency(enum.StrEnum):
    """Whether a rater lives in the rated official's district."""

    RESIDENT = "resident"
    NON_RESIDENT = "non_resident"

    @classmethod
    def of(cls, *, resident: bool) -> Residency:
        return cls.RESIDENT if resident else cls.NON_RESIDENT

    @property
    def other(self) -> Residency:
        return Residency.NON_RESIDENT if self is Residency.RESIDENT else Residency.RESIDENT


class Source(enum.StrEnum):
    """Providers with a dedicated normaliser, in merge priority order."""

    CIVIC_INFO = "googlecivics"
    LEGISLATOR_DIRECTORY = "openstates"
    GENERIC = "generic"


#: Field conflicts resolve to the first source in this order.
SOURCE_PRIORITY: tuple[str, ...] = tuple(source.value for source in Source)


class Chamber(enum.StrEnum):
    """Legislative body an office belongs to."""

    CONGRESSIONAL_DISTRICT = "cd"
    SENATE = "sen"
    STATE_UPPER = "sldu"
    STATE_LOWER = "sldl"
    OTHER = "other"


@dc.dataclass(frozen=True, slots=True)
class SourceRecord:
    """Flat attribute map written by one provider for one politician.

    Every field is optional; empty strings are treated as absent.
    """

    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    division_id: str | None = None
    office: str | None = None
    chamber: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    party: str | None = None
    state: str | None = None
    district: str | None = None
    url: str | None = None
    photo_url: str | None = None
    facebook: str | None = None
    twitter: str | None = None
    googleplus: str | None = None
    youtube: str | None = None
    youtube_id: str | None = None
    bioguide_id: str | None = None
    votesmart_id: str | None = None
    opensecrets_id: str | None = None
    ballotpedia_id: str | None = None
    wikipedia_id: str | None = None
    govtrack_id: str | None = None
    openstates_id: str | None = None
    last_updated: str | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(field.name for field in dc.fields(cls))

    @classmethod
    def from_mapping(cls, mapping: typ.Mapping[str, object]) -> SourceRecord:
        """Build a record from a stored hash, ignoring unknown keys."""
        values: dict[str, str] = {}
        for name in cls.field_names():
            value = mapping.get(name)
            if value is None:
                continue
            text = str(value).strip()
            if text:
                values[name] = text
        return cls(**values)

    def to_mapping(self) -> dict[str, str]:
        """Return the non-empty fields as a flat string map."""
        return {
            name: value
            for name in self.field_names()
            if (value := getattr(self, name))
        }

    def is_empty(self) -> bool:
        return not self.to_mapping()


@dc.dataclass(frozen=True, slots=True)
class RawProviderRecord:
    """A provider record before normalisation.

    Civic-info officials arrive without the division, office and state that
    surround them in the provider response, so those travel alongside the
    payload.

    Attributes
    ----------
    payload : JsonMapping
        The provider's own record.
    division_id : str | None
        Division the record belongs to, when not part of ``payload``.
    office : str | None
        Office title, when not part of ``payload``.
    office_levels : tuple[str, ...]
        Government levels of the office (``country``, ``administrativeArea1``).
    state : str | None
        Two-letter state code from the normalised request.
    district : str | None
        District number derived from the division.
    """

    payload: JsonMapping
    division_id: str | None = None
    office: str | None = None
    office_levels: tuple[str, ...] = ()
    state: str | None = None
    district: str | None = None


@dc.dataclass(frozen=True, slots=True)
class NormalisedRecord:
    """A provider record mapped onto the canonical attribute set."""

    source: str
    politician_id: PoliticianId
    record: SourceRecord


@dc.dataclass(frozen=True, slots=True)
class DataSource:
    """Attribution for one provider contributing to a profile."""

    source: str
    name: str
    link: str | None


@dc.dataclass(frozen=True, slots=True)
class ExternalLink:
    """Identifier on a third-party reference site and its canonical URL."""

    site: str
    external_id: str
    url: str


@dc.dataclass(frozen=True, slots=True)
class CanonicalProfile:
    """Merged view of every source record for one identity.

    Computed on each read and never persisted.
    """

    id: PoliticianId
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    division_id: str | None = None
    office: str | None = None
    chamber: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    party: str | None = None
    state: str | None = None
    district: str | None = None
    url: str | None = None
    photo_url: str | None = None
    facebook: str | None = None
    twitter: str | None = None
    googleplus: str | None = None
    youtube: str | None = None
    youtube_id: str | None = None
    bioguide_id: str | None = None
    votesmart_id: str | None = None
    opensecrets_id: str | None = None
    ballotpedia_id: str | None = None
    wikipedia_id: str | None = None
    govtrack_id: str | None = None
    openstates_id: str | None = None
    data_sources: tuple[DataSource, ...] = ()
    external_links: tuple[ExternalLink, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Return True when no source contributed to this profile."""
        return not self.data_sources


@dc.dataclass(frozen=True, slots=True)
class RatingStat:
    """Mean star rating and sample count for one bucket."""

    rating: float = 0.0
    total: int = 0


@dc.dataclass(frozen=True, slots=True)
class RatingSummary:
    """Ratings for one politician, by residency and party.

    Attributes
    ----------
    resident : dict[Party, RatingStat]
        Ratings cast by voters living in the official's district.
    non_resident : dict[Party, RatingStat]
        Ratings cast by everyone else.
    caller_score : float | None
        The caller's own score (0 when they have not rated); ``None`` when
        no caller was supplied.
    """

    resident: dict[Party, RatingStat]
    non_resident: dict[Party, RatingStat]
    caller_score: float | None = None

    def total(self) -> int:
        """Return the number of ratings across every bucket."""
        return sum(stat.total for stat in self.resident.values()) + sum(
            stat.total for stat in self.non_resident.values()
        )


@dc.dataclass(frozen=True, slots=True)
class SearchPage:
    """One page of search results."""

    results: tuple[CanonicalProfile, ...]
    page: int
    pages: int
    total: int


@dc.dataclass(frozen=True, slots=True)
class TokenIdentity:
    """Caller identity handed to the core by the authentication layer."""

    caller_id: str
    party: str | None = None
    name: str | None = None
    email: str | None = None
    avatar: str | None = None


@dc.dataclass(frozen=True, slots=True)
class Coordinates:
    """Home coordinates of a citizen, in decimal degrees."""

    lat: float
    lng: float


@dc.dataclass(frozen=True, slots=True)
class ProfileUpdate:
    """Requested changes to a citizen profile.

    Attributes
    ----------
    party : str | None
        New party label, if changing.
    address : str | None
        New home address, if changing.
    coordinates : Coordinates | None
        Geocoded home coordinates; required for an address change to apply.
    divisions : tuple[str, ...]
        Division ids the new address belongs to, as reported by the
        geocoding collaborator.
    """

    party: str | None = None
    address: str | None = None
    coordinates: Coordinates | None = None
    divisions: tuple[str, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class Incumbent:
    """An office holder with current ratings."""

    profile: CanonicalProfile
    ratings: RatingSummary


@dc.dataclass(frozen=True, slots=True)
class OfficeView:
    """One office in a representative lookup."""

    key: str
    name: str
    state: str | None
    district: str
    chamber: Chamber
    title: str | None = None
    levels: tuple[str, ...] = ()
    incumbents: tuple[Incumbent, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class RepresentativesView:
    """Offices for an address, grouped by chamber."""

    offices: dict[Chamber, tuple[OfficeView, ...]]

    def for_chamber(self, chamber: Chamber) -> tuple[OfficeView, ...]:
        return self.offices.get(chamber, ())
