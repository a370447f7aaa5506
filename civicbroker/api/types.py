"""Shared types for the Falcon API adapter.

``IdentityResolver`` is the seam where the upstream authentication layer
hands over the caller identity. The default resolver trusts headers set by the
gateway; tests and other deployments inject their own.

Example
-------
>>> resolver: IdentityResolver = lambda req: TokenIdentity("citizen-1")
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

if typ.TYPE_CHECKING:
    import falcon

    from civicbroker.core.domain import TokenIdentity

type JsonPayload = dict[str, object]
type IdentityResolver = cabc.Callable[[falcon.Request], TokenIdentity | None]
