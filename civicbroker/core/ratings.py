"""Citizen approval ratings partitioned by party and residency.

Scores live in sorted sets keyed by politician, party and residency
(``politician:<id>:rating:<party>`` for residents of the official's district,
``politician:<id>:rating_outsider:<party>`` for everyone else). A citizen's
score for one politician must sit in exactly one of these buckets. ``rate``
only writes the bucket for the caller's current party and residency; moving a
score when either changes is the job of the relocation routines, which
``update_profile`` runs.

None of the multi-step mutations here are transactional. A concurrent reader
may observe a score mid-move, and a failure between the remove and the
re-insert loses that score.
"""

from __future__ import annotations

import typing as typ

from civicbroker.logging import get_logger, log_debug, log_info

from . import keys
from .domain import DEFAULT_PARTY, Party, RatingStat, RatingSummary, Residency
from .errors import ValidationError, store_boundary
from .resolver import division_of

if typ.TYPE_CHECKING:
    from .context import BrokerContext
    from .domain import TokenIdentity

logger = get_logger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5
_SCORES = range(MIN_SCORE, MAX_SCORE + 1)


def validate_score(score: object) -> int | None:
    """Return ``score`` as a star rating, or ``None`` for a read-only call.

    ``None`` and ``0`` mean "no rating supplied".

    Raises
    ------
    ValidationError
        If ``score`` is not an integer between 1 and 5.
    """
    if score is None:
        return None
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError
    if score == 0:
        return None
    if score not in _SCORES:
        raise ValidationError
    return score


async def _bucket_stat(ctx: BrokerContext, key: str) -> RatingStat:
    weighted = 0
    total = 0
    for score in _SCORES:
        count = await ctx.store.zcount(key, score, score)
        weighted += score * count
        total += count
    return RatingStat(rating=weighted / total if total else 0.0, total=total)


async def _caller_score(
    ctx: BrokerContext,
    politician_id: str,
    caller_id: str,
    party: Party,
) -> float:
    for residency in (Residency.RESIDENT, Residency.NON_RESIDENT):
        bucket = keys.rating_bucket(politician_id, party, residency)
        score = await ctx.store.zscore(bucket, caller_id)
        if score is not None:
            return score
    return 0.0


@store_boundary("citizen_party")
async def citizen_party(
    ctx: BrokerContext,
    caller_id: str,
    fallback: str | None = None,
) -> Party:
    """Return the party a citizen rates under.

    The stored profile party wins, then ``fallback`` (usually the party
    carried by the caller's token), then Independent.
    """
    for label in (await ctx.store.hget(keys.user(caller_id), "party"), fallback):
        party = Party.from_label(label)
        if party is not None:
            return party
    return DEFAULT_PARTY


@store_boundary("is_resident")
async def is_resident(ctx: BrokerContext, politician_id: str, caller_id: str) -> bool:
    """Return True when the politician's division is one of the caller's."""
    division_id = await division_of(ctx, politician_id)
    if division_id is None:
        return False
    return await ctx.store.sismember(keys.user_divisions(caller_id), division_id)


@store_boundary("get_ratings")
async def get_ratings(
    ctx: BrokerContext,
    politician_id: str,
    caller_id: str | None = None,
    *,
    caller_party: Party | None = None,
) -> RatingSummary:
    """Summarise the ratings of ``politician_id``.

    Parameters
    ----------
    ctx : BrokerContext
        Injected capabilities.
    politician_id : str
        Politician to summarise.
    caller_id : str | None
        When given, the summary includes this caller's own score (0 when they
        have not rated).
    caller_party : Party | None
        Party to look the caller's score up under; defaults to the caller's
        stored party.

    Returns
    -------
    RatingSummary
        Mean and count per party for residents and non-residents.
    """
    resident: dict[Party, RatingStat] = {}
    non_resident: dict[Party, RatingStat] = {}
    for party in Party:
        resident[party] = await _bucket_stat(
            ctx, keys.rating_bucket(politician_id, party, Residency.RESIDENT)
        )
        non_resident[party] = await _bucket_stat(
            ctx, keys.rating_bucket(politician_id, party, Residency.NON_RESIDENT)
        )

    caller_score = None
    if caller_id is not None:
        party = caller_party or await citizen_party(ctx, caller_id)
        caller_score = await _caller_score(ctx, politician_id, caller_id, party)
    return RatingSummary(
        resident=resident,
        non_resident=non_resident,
        caller_score=caller_score,
    )


@store_boundary("rate")
async def rate(  # noqa: PLR0913
    ctx: BrokerContext,
    politician_id: str,
    caller_id: str,
    score: int | None,
    party: Party,
    *,
    resident: bool,
) -> RatingSummary:
    """Record ``caller_id``'s score and return the updated summary.

    Without a score this is a read of ``get_ratings``. A prior score the
    caller holds in a different party or residency bucket is left in place.

    Raises
    ------
    ValidationError
        If the identifiers are blank or ``score`` is not between 1 and 5.
    """
    if not politician_id or not caller_id:
        raise ValidationError
    stars = validate_score(score)
    if stars is not None:
        await ctx.store.sadd(keys.user_ratings(caller_id), politician_id)
        bucket = keys.rating_bucket(politician_id, party, Residency.of(resident=resident))
        await ctx.store.zadd(bucket, caller_id, stars)
        log_info(logger, "Caller %s rated %s with %d.", caller_id, politician_id, stars)
    return await get_ratings(ctx, politician_id, caller_id, caller_party=party)


@store_boundary("rate_as_citizen")
async def rate_as_citizen(
    ctx: BrokerContext,
    politician_id: str,
    caller: TokenIdentity,
    score: int | None,
) -> RatingSummary:
    """Rate under the caller's own party and residency.

    The party a first score is filed under is written to the citizen's
    profile, so later reads and party changes look in the same buckets.
    """
    if not politician_id or not caller.caller_id:
        raise ValidationError
    user_key = keys.user(caller.caller_id)
    party = await citizen_party(ctx, caller.caller_id, caller.party)
    if validate_score(score) is not None and not await ctx.store.hget(user_key, "party"):
        await ctx.store.hset(user_key, {"party": party.value})
    resident = await is_resident(ctx, politician_id, caller.caller_id)
    return await rate(
        ctx,
        politician_id,
        caller.caller_id,
        score,
        party,
        resident=resident,
    )


async def _move_score(
    ctx: BrokerContext,
    caller_id: str,
    source_bucket: str,
    target_bucket: str,
) -> bool:
    score = await ctx.store.zscore(source_bucket, caller_id)
    if score is None:
        return False
    await ctx.store.zrem(source_bucket, caller_id)
    await ctx.store.zadd(target_bucket, caller_id, score)
    return True


@store_boundary("relocate_on_party_change")
async def relocate_on_party_change(
    ctx: BrokerContext,
    caller_id: str,
    old_party: Party,
    new_party: Party,
) -> None:
    """Move every score ``caller_id`` holds under ``old_party`` to ``new_party``.

    Residency is preserved. Must run before any other bucket mutation caused
    by the same profile change.
    """
    if old_party is new_party:
        return
    moved = 0
    for politician_id in await ctx.store.smembers(keys.user_ratings(caller_id)):
        for residency in Residency:
            moved += await _move_score(
                ctx,
                caller_id,
                keys.rating_bucket(politician_id, old_party, residency),
                keys.rating_bucket(politician_id, new_party, residency),
            )
    log_debug(
        logger,
        "Moved %d scores of %s from party %s to %s.",
        moved,
        caller_id,
        old_party,
        new_party,
    )


@store_boundary("relocate_on_residency_change")
async def relocate_on_residency_change(
    ctx: BrokerContext,
    caller_id: str,
    party: Party,
) -> None:
    """Move scores whose residency flipped after the caller's divisions changed."""
    moved = 0
    for politician_id in await ctx.store.smembers(keys.user_ratings(caller_id)):
        residency = Residency.of(resident=await is_resident(ctx, politician_id, caller_id))
        moved += await _move_score(
            ctx,
            caller_id,
            keys.rating_bucket(politician_id, party, residency.other),
            keys.rating_bucket(politician_id, party, residency),
        )
    log_debug(logger, "Moved %d scores of %s between residencies.", moved, caller_id)
