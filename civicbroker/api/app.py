"""Falcon ASGI application for the civic broker."""

from __future__ import annotations

import typing as typ

import falcon
from falcon import asgi

from civicbroker.core.errors import OperationFailedError, ValidationError
from civicbroker.logging import get_logger, log_info

from .audit import RequestAudit
from .identity import header_identity
from .resources import (
    IdentityResource,
    IngestResource,
    PokeResource,
    PoliticianResource,
    ProfileResource,
    RateResource,
    RepresentativesResource,
    SearchResource,
)

if typ.TYPE_CHECKING:
    from civicbroker.core.context import BrokerContext

    from .types import IdentityResolver

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


async def _handle_validation_error(
    req: falcon.Request,
    resp: falcon.Response,
    ex: ValidationError,
    params: dict[str, typ.Any],
) -> None:
    del req, params
    resp.status = falcon.HTTP_400
    resp.media = {"msg": ex.message}


async def _handle_operation_failed(
    req: falcon.Request,
    resp: falcon.Response,
    ex: OperationFailedError,
    params: dict[str, typ.Any],
) -> None:
    del req, params
    resp.status = falcon.HTTP_503
    resp.media = {"msg": ex.message}


def create_app(
    ctx: BrokerContext,
    identity_resolver: IdentityResolver = header_identity,
    *,
    debug: bool = False,
) -> asgi.App:
    """Build and return the Falcon ASGI application.

    Parameters
    ----------
    ctx : BrokerContext
        Capabilities handed to every core operation.
    identity_resolver : IdentityResolver
        Extracts the verified caller identity from a request.
    debug : bool
        Log every audit entry at debug level.
    """
    app = asgi.App(cors_enable=True)
    app.add_error_handler(ValidationError, _handle_validation_error)
    app.add_error_handler(OperationFailedError, _handle_operation_failed)

    audit = RequestAudit(ctx.store, debug=debug)
    shared = (ctx, audit, identity_resolver)

    app.add_route("/poke", PokeResource(ctx))
    app.add_route(f"{API_PREFIX}/dinfo", IdentityResource(*shared))
    app.add_route(f"{API_PREFIX}/dprofile", ProfileResource(*shared))
    app.add_route(f"{API_PREFIX}/politician_rate", RateResource(*shared))
    app.add_route(
        f"{API_PREFIX}/politicians/{{politician_id}}",
        PoliticianResource(*shared),
    )
    app.add_route(f"{API_PREFIX}/ingest/{{source}}", IngestResource(*shared))
    app.add_route(f"{API_PREFIX}/whorepme", RepresentativesResource(*shared))
    app.add_route(f"{API_PREFIX}/search", SearchResource(*shared))

    log_info(logger, "Civic broker API ready.")
    return app
