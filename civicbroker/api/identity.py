"""Caller identity extraction.

Token verification happens upstream; the gateway forwards the verified claims
as ``X-Caller-*`` headers.
"""

from __future__ import annotations

import typing as typ

from civicbroker.core.domain import TokenIdentity

if typ.TYPE_CHECKING:
    import falcon

CALLER_ID_HEADER = "X-Caller-Id"
CALLER_PARTY_HEADER = "X-Caller-Party"
CALLER_NAME_HEADER = "X-Caller-Name"
CALLER_EMAIL_HEADER = "X-Caller-Email"
CALLER_AVATAR_HEADER = "X-Caller-Avatar"


def _header(req: falcon.Request, name: str) -> str | None:
    value = req.get_header(name)
    if value is None:
        return None
    return value.strip() or None


def header_identity(req: falcon.Request) -> TokenIdentity | None:
    """Return the identity forwarded by the gateway, or ``None``."""
    caller_id = _header(req, CALLER_ID_HEADER)
    if caller_id is None:
        return None
    return TokenIdentity(
        caller_id=caller_id,
        party=_header(req, CALLER_PARTY_HEADER),
        name=_header(req, CALLER_NAME_HEADER),
        email=_header(req, CALLER_EMAIL_HEADER),
        avatar=_header(req, CALLER_AVATAR_HEADER),
    )
