"""Inverted token index over source records.

Each indexed field value is collapsed into a single token (lowercased, with
every character that is not a letter or digit removed) and the politician id
is added to the set stored under ``zindex:<token>``. Search then matches query
words against these tokens by substring, so indexing ``"California State
Senate"`` makes the official findable by ``california``, ``senate`` or both.

Entries are additive: re-ingesting a corrected record adds its new tokens but
never removes stale ones.
"""

from __future__ import annotations

import re
import typing as typ

from civicbroker.logging import get_logger, log_debug

from . import keys
from .domain import SourceRecord
from .errors import store_boundary

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .context import BrokerContext

logger = get_logger(__name__)

_NON_TOKEN_RE = re.compile(r"[\W_]+")

#: Fields never indexed: identifiers and free-text contact details are either
#: too selective to be useful or too sensitive to expose through search.
INDEX_DENYLIST: frozenset[str] = frozenset({
    "division_id",
    "address",
    "phone",
    "email",
    "url",
    "photo_url",
    "last_updated",
    "facebook",
    "twitter",
    "googleplus",
    "youtube",
    "youtube_id",
    "bioguide_id",
    "votesmart_id",
    "opensecrets_id",
    "ballotpedia_id",
    "wikipedia_id",
    "govtrack_id",
    "openstates_id",
})


def normalise_token(value: str) -> str:
    """Collapse a field value or query word into an index token.

    >>> normalise_token("  O'Brien-Smith\\n")
    'obriensmith'
    """
    return _NON_TOKEN_RE.sub("", value.lower())


def indexable_tokens(fields: cabc.Mapping[str, str]) -> list[str]:
    """Return the distinct tokens for the indexable fields of ``fields``."""
    tokens: dict[str, None] = {}
    for name, value in fields.items():
        if name in INDEX_DENYLIST or not value:
            continue
        if token := normalise_token(value):
            tokens[token] = None
    return list(tokens)


async def _add_tokens(
    ctx: BrokerContext,
    tokens: cabc.Iterable[str],
    politician_id: str,
) -> None:
    for token in tokens:
        await ctx.store.sadd(keys.index_token(token), politician_id)


@store_boundary("index_record")
async def index_record(
    ctx: BrokerContext,
    record: SourceRecord,
    politician_id: str,
    provenance_key: str | None = None,
) -> None:
    """Index ``record`` under ``politician_id``.

    Parameters
    ----------
    ctx : BrokerContext
        Injected capabilities.
    record : SourceRecord
        Normalised record to index.
    politician_id : str
        Identity the record belongs to.
    provenance_key : str | None
        Literal tag (usually the source name) indexed alongside the fields.

    Notes
    -----
    The division hash referenced by ``record.division_id`` is indexed under
    the same politician id, one level deep, so that searching for a
    division's display name surfaces its officials.
    """
    tokens = indexable_tokens(record.to_mapping())
    if provenance_key and (token := normalise_token(provenance_key)):
        tokens.append(token)
    await _add_tokens(ctx, tokens, politician_id)

    if record.division_id:
        division = await ctx.store.hgetall(keys.division(record.division_id))
        await _add_tokens(ctx, indexable_tokens(division), politician_id)
    log_debug(logger, "Indexed %s under %d tokens.", politician_id, len(tokens))
