"""Falcon resources for the civic broker endpoints.

Resources stay thin: they parse the request, resolve the caller, call one
core operation and serialize the result. Core errors propagate to the error
handlers registered in ``create_app``.
"""

from __future__ import annotations

import typing as typ

import falcon

from civicbroker.core.citizens import record_identity, update_profile
from civicbroker.core.errors import CivicBrokerError, StoreError
from civicbroker.core.ratings import get_ratings, rate_as_citizen
from civicbroker.core.representatives import lookup_representatives
from civicbroker.core.resolver import ingest, resolve
from civicbroker.core.search import search
from civicbroker.logging import get_logger, log_warning

from .helpers import (
    build_profile_update,
    build_raw_record,
    client_address,
    parse_page,
    parse_score,
    require_payload_dict,
    require_text,
)
from .serializers import (
    serialize_profile,
    serialize_ratings,
    serialize_representatives,
    serialize_search_page,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from civicbroker.core.context import BrokerContext
    from civicbroker.core.domain import JsonMapping, TokenIdentity

    from .audit import RequestAudit
    from .types import IdentityResolver

logger = get_logger(__name__)


class PokeResource:
    """Liveness probe backed by a store ping."""

    def __init__(self, ctx: BrokerContext) -> None:
        self._ctx = ctx

    async def on_get(self, req: falcon.Request, resp: falcon.Response) -> None:
        """Answer 200 when the store responds, 500 otherwise."""
        del req
        try:
            alive = await self._ctx.store.ping()
        except StoreError as exc:
            log_warning(logger, "Store ping failed: %s", exc)
            alive = False
        resp.content_type = falcon.MEDIA_TEXT
        resp.text = "OK" if alive else "Unavailable"
        resp.status = falcon.HTTP_200 if alive else falcon.HTTP_500


class _ResourceBase:
    """Shared base holding the context, audit log and identity resolver."""

    def __init__(
        self,
        ctx: BrokerContext,
        audit: RequestAudit,
        identity_resolver: IdentityResolver,
    ) -> None:
        self._ctx = ctx
        self._audit = audit
        self._identity_resolver = identity_resolver

    def _require_identity(self, req: falcon.Request) -> TokenIdentity:
        identity = self._identity_resolver(req)
        if identity is None:
            raise falcon.HTTPUnauthorized(description="Caller identity is required.")
        return identity

    async def _audited[T](
        self,
        req: falcon.Request,
        operation: str,
        identity: TokenIdentity,
        details: dict[str, object],
        call: cabc.Awaitable[T],
    ) -> T:
        """Await ``call`` and write an audit entry whatever the outcome."""
        try:
            result = await call
        except CivicBrokerError:
            details["error"] = 1
            raise
        finally:
            await self._audit.record(
                operation, identity.caller_id, client_address(req), details
            )
        return result


class IdentityResource(_ResourceBase):
    """Refresh the caller's identity details (``/api/v1/dinfo``)."""

    async def on_post(self, req: falcon.Request, resp: falcon.Response) -> None:
        identity = self._require_identity(req)
        payload = require_payload_dict(await req.get_media(default_when_empty={}))
        resp.media = await self._audited(
            req,
            "dinfo",
            identity,
            {"UniqueID": payload.get("UniqueID")},
            record_identity(self._ctx, identity, payload),
        )
        resp.status = falcon.HTTP_200


class ProfileResource(_ResourceBase):
    """Change the caller's party or home address (``/api/v1/dprofile``)."""

    async def on_post(self, req: falcon.Request, resp: falcon.Response) -> None:
        identity = self._require_identity(req)
        payload = require_payload_dict(await req.get_media())
        update = build_profile_update(payload)
        details: dict[str, object] = {
            "party": update.party,
            "address": update.address,
        }
        if update.coordinates is not None:
            details |= {"lat": update.coordinates.lat, "lng": update.coordinates.lng}
        resp.media = await self._audited(
            req,
            "dprofile",
            identity,
            details,
            update_profile(self._ctx, identity.caller_id, update),
        )
        resp.status = falcon.HTTP_200


class RateResource(_ResourceBase):
    """Rate a politician as the caller (``/api/v1/politician_rate``)."""

    async def on_post(self, req: falcon.Request, resp: falcon.Response) -> None:
        identity = self._require_identity(req)
        payload = require_payload_dict(await req.get_media())
        politician_id = require_text(payload, "politician_id")
        score = parse_score(payload)
        summary = await self._audited(
            req,
            "politician_rate",
            identity,
            {"politician_id": politician_id, "rating": score},
            rate_as_citizen(self._ctx, politician_id, identity, score),
        )
        resp.media = serialize_ratings(summary)
        resp.status = falcon.HTTP_200


class PoliticianResource(_ResourceBase):
    """Read a merged profile with ratings."""

    async def on_get(
        self,
        req: falcon.Request,
        resp: falcon.Response,
        politician_id: str,
    ) -> None:
        identity = self._require_identity(req)
        profile = await resolve(self._ctx, politician_id)
        if profile.is_empty:
            raise falcon.HTTPNotFound(description="Unknown politician.")
        summary = await get_ratings(self._ctx, politician_id, identity.caller_id)
        resp.media = serialize_profile(profile) | {
            "ratings": serialize_ratings(summary)
        }
        resp.status = falcon.HTTP_200


class IngestResource(_ResourceBase):
    """Accept one provider record from the data-fetch collaborator."""

    async def on_post(
        self,
        req: falcon.Request,
        resp: falcon.Response,
        source: str,
    ) -> None:
        identity = self._require_identity(req)
        raw = build_raw_record(require_payload_dict(await req.get_media()))
        politician_id = await self._audited(
            req,
            "ingest",
            identity,
            {"source": source},
            ingest(self._ctx, source, raw),
        )
        resp.media = {"id": politician_id}
        resp.status = falcon.HTTP_201


class RepresentativesResource(_ResourceBase):
    """Group an address's officials by chamber (``/api/v1/whorepme``)."""

    async def on_post(self, req: falcon.Request, resp: falcon.Response) -> None:
        identity = self._require_identity(req)
        payload = require_payload_dict(await req.get_media())
        civic = require_payload_dict(payload.get("civic"))
        legislators = payload.get("legislators") or []
        if not isinstance(legislators, list) or not all(
            isinstance(item, dict) for item in legislators
        ):
            raise falcon.HTTPBadRequest(description="Invalid input.")
        view = await self._audited(
            req,
            "whorepme",
            identity,
            {"address": payload.get("address")},
            lookup_representatives(
                self._ctx,
                civic,
                typ.cast("list[JsonMapping]", legislators),
                identity.caller_id,
            ),
        )
        resp.media = serialize_representatives(view)
        resp.status = falcon.HTTP_200


class SearchResource(_ResourceBase):
    """Free-text politician search (``/api/v1/search``)."""

    async def on_get(self, req: falcon.Request, resp: falcon.Response) -> None:
        identity = self._require_identity(req)
        query = req.get_param("str")
        if query is None:
            raise falcon.HTTPBadRequest(description="Missing required parameter: str")
        page = parse_page(req.get_param("page"))
        result = await self._audited(
            req,
            "search",
            identity,
            {"str": query},
            search(self._ctx, query, page),
        )
        resp.media = serialize_search_page(result)
        resp.status = falcon.HTTP_200
