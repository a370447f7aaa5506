"""Citizen profiles: identity details, party and home district."""

from __future__ import annotations

import json
import math
import typing as typ

from civicbroker.logging import get_logger, log_info

from . import keys
from .domain import DEFAULT_PARTY, Party
from .errors import ValidationError, store_boundary
from .ratings import relocate_on_party_change, relocate_on_residency_change

if typ.TYPE_CHECKING:
    from .context import BrokerContext
    import collections.abc as cabc

    from .domain import Coordinates, ProfileUpdate, TokenIdentity

logger = get_logger(__name__)

MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0


def validate_coordinates(coordinates: Coordinates) -> Coordinates:
    """Return ``coordinates`` when they describe a point on Earth.

    Raises
    ------
    ValidationError
        If either value is not finite or lies outside its range.
    """
    lat, lng = coordinates.lat, coordinates.lng
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError
    if abs(lat) > MAX_LATITUDE or abs(lng) > MAX_LONGITUDE:
        raise ValidationError
    return coordinates


@store_boundary("record_identity")
async def record_identity(
    ctx: BrokerContext,
    identity: TokenIdentity,
    device_info: cabc.Mapping[str, object] | None = None,
) -> dict[str, str]:
    """Refresh the stored identity details and return the citizen's profile.

    A non-empty ``device_info`` is kept as one JSON member of the citizen's
    device set; reporting the same description twice stores it once.
    """
    if device_info:
        await ctx.store.sadd(
            keys.device_info(identity.caller_id),
            json.dumps(dict(device_info), sort_keys=True, separators=(",", ":")),
        )
    user_key = keys.user(identity.caller_id)
    details = {
        field: value
        for field, value in (
            ("name", identity.name),
            ("email", identity.email),
            ("avatar", identity.avatar),
        )
        if value
    }
    if details:
        await ctx.store.hset(user_key, details)
    return await ctx.store.hgetall(user_key)


async def _change_party(ctx: BrokerContext, caller_id: str, label: str) -> None:
    new_party = Party.from_label(label)
    if new_party is None:
        return
    user_key = keys.user(caller_id)
    stored = await ctx.store.hget(user_key, "party")
    if stored == new_party.value:
        return
    old_party = Party.from_label(stored) or DEFAULT_PARTY
    await ctx.store.hset(user_key, {"party": new_party.value})
    await relocate_on_party_change(ctx, caller_id, old_party, new_party)
    log_info(logger, "Citizen %s changed party to %s.", caller_id, new_party)


async def _change_address(
    ctx: BrokerContext,
    caller_id: str,
    update: ProfileUpdate,
) -> None:
    if not update.address or update.coordinates is None:
        return
    coordinates = update.coordinates
    user_key = keys.user(caller_id)
    if update.address == await ctx.store.hget(user_key, "home_address"):
        return
    await ctx.store.hset(
        user_key,
        {
            "home_address": update.address,
            "home_lat": repr(coordinates.lat),
            "home_lng": repr(coordinates.lng),
        },
    )
    divisions_key = keys.user_divisions(caller_id)
    await ctx.store.delete(divisions_key)
    if update.divisions:
        await ctx.store.sadd(divisions_key, *update.divisions)

    stored = await ctx.store.hget(user_key, "party")
    party = Party.from_label(stored) or DEFAULT_PARTY
    await relocate_on_residency_change(ctx, caller_id, party)
    log_info(logger, "Citizen %s moved into %d divisions.", caller_id, len(update.divisions))


@store_boundary("update_profile")
async def update_profile(
    ctx: BrokerContext,
    caller_id: str,
    update: ProfileUpdate,
) -> dict[str, str]:
    """Apply a profile change and keep the caller's ratings in the right buckets.

    The party change is applied first so that residency relocation moves
    scores within the new party's buckets.

    Raises
    ------
    ValidationError
        If the supplied coordinates are out of range.
    """
    if update.coordinates is not None:
        validate_coordinates(update.coordinates)
    if update.party:
        await _change_party(ctx, caller_id, update.party)
    await _change_address(ctx, caller_id, update)
    return await ctx.store.hgetall(keys.user(caller_id))
