"""Civic broker core: resolution, ratings, search and citizen profiles.

Every operation takes a ``BrokerContext`` carrying the key-value store and
optional photo cache; nothing here holds connection state of its own.

Examples
--------
Ingest a record and read the merged profile back:

>>> ctx = BrokerContext(store=InMemoryKeyValueStore())
>>> politician_id = await ingest(ctx, "generic", raw)
>>> profile = await resolve(ctx, politician_id)
>>> page = await search(ctx, "california senate", page=1)
"""

from .citizens import record_identity, update_profile, validate_coordinates
from .context import BrokerContext, PhotoCache
from .domain import (
    DEFAULT_PARTY,
    SOURCE_PRIORITY,
    CanonicalProfile,
    Chamber,
    Coordinates,
    DataSource,
    ExternalLink,
    Incumbent,
    OfficeView,
    Party,
    ProfileUpdate,
    RatingStat,
    RatingSummary,
    RawProviderRecord,
    RepresentativesView,
    Residency,
    SearchPage,
    Source,
    SourceRecord,
    TokenIdentity,
)
from .errors import (
    CivicBrokerError,
    NormalisationError,
    OperationFailedError,
    StoreError,
    ValidationError,
)
from .index import index_record, normalise_token
from .offices import classify_office, district_from_division
from .ports import KeyValueStore, PhotoCacheWarmer
from .ratings import (
    citizen_party,
    get_ratings,
    is_resident,
    rate,
    rate_as_citizen,
    relocate_on_party_change,
    relocate_on_residency_change,
)
from .representatives import lookup_representatives
from .resolver import division_of, ingest, merge_records, resolve, store_division
from .search import search, tokenize_query

__all__ = [
    "DEFAULT_PARTY",
    "SOURCE_PRIORITY",
    "BrokerContext",
    "CanonicalProfile",
    "Chamber",
    "CivicBrokerError",
    "Coordinates",
    "DataSource",
    "ExternalLink",
    "Incumbent",
    "KeyValueStore",
    "NormalisationError",
    "OfficeView",
    "OperationFailedError",
    "Party",
    "PhotoCache",
    "PhotoCacheWarmer",
    "ProfileUpdate",
    "RatingStat",
    "RatingSummary",
    "RawProviderRecord",
    "RepresentativesView",
    "Residency",
    "SearchPage",
    "Source",
    "SourceRecord",
    "StoreError",
    "TokenIdentity",
    "ValidationError",
    "citizen_party",
    "classify_office",
    "district_from_division",
    "division_of",
    "get_ratings",
    "index_record",
    "ingest",
    "is_resident",
    "lookup_representatives",
    "merge_records",
    "normalise_token",
    "rate",
    "rate_as_citizen",
    "record_identity",
    "relocate_on_party_change",
    "relocate_on_residency_change",
    "resolve",
    "search",
    "store_division",
    "tokenize_query",
    "update_profile",
    "validate_coordinates",
]
