"""Adapters translating provider data and external services for the core.

Examples
--------
>>> registry = default_registry()
>>> registry.sources
('googlecivics', 'openstates', 'generic')
"""

from __future__ import annotations

from .normaliser import (
    CivicInfoNormaliser,
    GenericRecordNormaliser,
    LegislatorDirectoryNormaliser,
    NormaliserRegistry,
    RecordNormaliser,
    default_registry,
    derive_politician_id,
)
from .photo_cache import HttpPhotoCacheWarmer

__all__ = [
    "CivicInfoNormaliser",
    "GenericRecordNormaliser",
    "HttpPhotoCacheWarmer",
    "LegislatorDirectoryNormaliser",
    "NormaliserRegistry",
    "RecordNormaliser",
    "default_registry",
    "derive_politician_id",
]
