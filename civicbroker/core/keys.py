"""Key shapes used in the key-value store.

Any storage backend must preserve these shapes; other deployments of the
service read the same keys.
"""

from __future__ import annotations

from .domain import Party, Residency

INDEX_PREFIX = "zindex:"


def source_record(source: str, politician_id: str) -> str:
    """Hash holding one provider's record for a politician."""
    return f"{source}:{politician_id}"


def identity(politician_id: str) -> str:
    """Set of ``source:politician_id`` references for an identity."""
    return f"politician:{politician_id}"


def division(division_id: str) -> str:
    """Hash describing a division (its display name and similar)."""
    return f"division:{division_id}"


def division_politicians(division_id: str) -> str:
    """Set of politician ids serving a division."""
    return f"division:{division_id}:politicians"


def rating_bucket(politician_id: str, party: Party, residency: Residency) -> str:
    """Sorted set of citizen scores for one party and residency."""
    suffix = "rating" if residency is Residency.RESIDENT else "rating_outsider"
    return f"politician:{politician_id}:{suffix}:{party.value}"


def user(caller_id: str) -> str:
    """Hash holding a citizen's profile fields."""
    return f"user:{caller_id}"


def device_info(caller_id: str) -> str:
    """Set of JSON device descriptions a citizen's clients have reported."""
    return f"dinfo:{caller_id}"


def user_ratings(caller_id: str) -> str:
    """Set of politician ids a citizen has rated."""
    return f"user:{caller_id}:politician_ratings"


def user_divisions(caller_id: str) -> str:
    """Set of division ids a citizen lives in."""
    return f"user:{caller_id}:divisions"


def index_token(token: str) -> str:
    """Inverted-index set of politician ids for a normalised token."""
    return f"{INDEX_PREFIX}{token}"


def request_log(operation: str) -> str:
    """List of JSON audit entries for one API operation."""
    return f"wslog:{operation}"
