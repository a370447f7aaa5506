"""Free-text search over the inverted index.

A query is lowercased, stripped of punctuation, has multi-word legislative
body aliases collapsed into chamber codes and loses its stopwords. Each
remaining word selects index tokens (exactly for short words, by substring
otherwise) and the query matches the politicians present for every word.

Examples
--------
>>> tokenize_query("California State Senate District 11")
['california', 'sldu', '11']
"""

from __future__ import annotations

import math
import re
import typing as typ

from civicbroker.logging import get_logger, log_debug

from . import keys
from .domain import Chamber, Party, SearchPage
from .errors import ValidationError, store_boundary
from .index import normalise_token
from .resolver import resolve

if typ.TYPE_CHECKING:
    from .context import BrokerContext

logger = get_logger(__name__)

MAX_TOKENS = 5
PAGE_SIZE = 20
MAX_RESULTS = 500
MIN_WILDCARD_LENGTH = 4
#: Short words still matched by substring.
SHORT_TOKEN_ALLOWLIST = frozenset({"new"})
STOPWORDS = frozenset({"district", "legislative", "general", "party"})

TOO_MANY_WORDS_MESSAGE = "Too many search words."
TOO_MANY_RESULTS_MESSAGE = "Too many results, please refine your search."

#: Multi-word aliases for legislative bodies, longest first.
SYNONYMS: tuple[tuple[str, Chamber], ...] = (
    ("house of representatives", Chamber.CONGRESSIONAL_DISTRICT),
    ("state assembly", Chamber.STATE_LOWER),
    ("state senate", Chamber.STATE_UPPER),
    ("state house", Chamber.STATE_LOWER),
    ("us senate", Chamber.SENATE),
    ("us house", Chamber.CONGRESSIONAL_DISTRICT),
)
_SYNONYM_RES = tuple(
    (re.compile(rf"\b{re.escape(phrase)}\b"), chamber.value)
    for phrase, chamber in SYNONYMS
)
_PUNCTUATION_RE = re.compile(r"[^\w\s]+")


def tokenize_query(query: str) -> list[str]:
    """Split ``query`` into normalised search words."""
    text = _PUNCTUATION_RE.sub("", query.lower())
    for pattern, code in _SYNONYM_RES:
        text = pattern.sub(code, text)
    words = (normalise_token(word) for word in text.split())
    return [word for word in words if word and word not in STOPWORDS]


def _translate_party(word: str) -> str:
    party = Party.from_label(word)
    if party is None or party is Party.OTHER:
        return word
    return party.value.lower()


async def _matching_ids(ctx: BrokerContext, word: str) -> dict[str, None]:
    """Return the politician ids indexed under tokens matching ``word``."""
    if len(word) < MIN_WILDCARD_LENGTH and word not in SHORT_TOKEN_ALLOWLIST:
        index_keys = [keys.index_token(word)]
    else:
        index_keys = sorted(await ctx.store.keys(keys.index_token(f"*{word}*")))
    matches: dict[str, None] = {}
    for index_key in index_keys:
        matches.update(dict.fromkeys(await ctx.store.smembers(index_key)))
    return matches


async def matching_politicians(ctx: BrokerContext, words: list[str]) -> list[str]:
    """Return ids matching every word, in the order of the first word's matches."""
    running: dict[str, None] | None = None
    for word in words:
        matches = await _matching_ids(ctx, _translate_party(word))
        if running is None:
            running = matches
        else:
            running = {pid: None for pid in running if pid in matches}
        if not running:
            break
    return list(running or ())


@store_boundary("search")
async def search(ctx: BrokerContext, query: str, page: int = 1) -> SearchPage:
    """Return one page of politicians matching ``query``.

    Parameters
    ----------
    ctx : BrokerContext
        Injected capabilities.
    query : str
        Free-text query.
    page : int
        1-based page number. Pages past the end are empty.

    Returns
    -------
    SearchPage
        Resolved profiles for the requested page and the page count.

    Raises
    ------
    ValidationError
        If the query has more than five words, matches more than 500
        politicians or ``page`` is below 1.
    """
    words = tokenize_query(query)
    if len(words) > MAX_TOKENS:
        raise ValidationError(TOO_MANY_WORDS_MESSAGE)
    if page < 1:
        raise ValidationError

    ids = await matching_politicians(ctx, words) if words else []
    if len(ids) > MAX_RESULTS:
        raise ValidationError(TOO_MANY_RESULTS_MESSAGE)

    start = (page - 1) * PAGE_SIZE
    results = [await resolve(ctx, pid) for pid in ids[start : start + PAGE_SIZE]]
    log_debug(logger, "Search %r matched %d politicians.", words, len(ids))
    return SearchPage(
        results=tuple(results),
        page=page,
        pages=math.ceil(len(ids) / PAGE_SIZE),
        total=len(ids),
    )
