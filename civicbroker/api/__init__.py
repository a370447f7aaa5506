"""REST API adapters for the civic broker.

This package exposes the Falcon application factory used by the runtime
adapter and integration tests.

Examples
--------
>>> from civicbroker.api import create_app
>>> app = create_app(ctx)  # doctest: +SKIP
"""

from __future__ import annotations

from .app import create_app
from .identity import header_identity

__all__ = ["create_app", "header_identity"]
