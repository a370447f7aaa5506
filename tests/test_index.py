"""Tests for the inverted token index."""

from __future__ import annotations

import typing as typ

import pytest
from _broker_helpers import CA_SENATE_11

from civicbroker.core import keys
from civicbroker.core.domain import SourceRecord
from civicbroker.core.index import index_record, indexable_tokens, normalise_token

if typ.TYPE_CHECKING:
    from civicbroker.core.context import BrokerContext
    from civicbroker.storage import InMemoryKeyValueStore


def test_field_values_collapse_into_one_token() -> None:
    """Whole values become one lowercase alphanumeric token."""
    assert normalise_token("California State Senate") == "californiastatesenate", (
        "Expected spaces to be removed."
    )
    assert normalise_token("O'Brien_Smith") == "obriensmith", (
        "Expected punctuation and underscores to be removed."
    )


def test_denylisted_fields_are_not_indexed() -> None:
    """Contact details and reference identifiers stay out of the index."""
    tokens = indexable_tokens({
        "name": "Scott Wiener",
        "party": "D",
        "email": "senator@example.org",
        "phone": "916-651-4011",
        "division_id": CA_SENATE_11,
        "bioguide_id": "W000123",
    })

    assert tokens == ["scottwiener", "d"], "Expected only name and party tokens."


def test_duplicate_values_yield_one_token() -> None:
    """Values that normalise alike are indexed once."""
    assert indexable_tokens({"name": "CA", "state": "ca"}) == ["ca"], (
        "Expected a single token."
    )


@pytest.mark.asyncio
async def test_index_record_adds_provenance_and_division_tokens(
    broker_context: BrokerContext,
    store: InMemoryKeyValueStore,
) -> None:
    """Provenance tags and the division's own hash are indexed too."""
    await store.hset(keys.division(CA_SENATE_11), {"name": "California Senate District 11"})
    record = SourceRecord(name="Scott Wiener", division_id=CA_SENATE_11)

    await index_record(broker_context, record, "p1", provenance_key="openstates")

    for token in ("scottwiener", "openstates", "californiasenatedistrict11"):
        assert await store.smembers(keys.index_token(token)) == ["p1"], (
            f"Expected p1 under {token!r}."
        )


@pytest.mark.asyncio
async def test_index_entries_are_additive(
    broker_context: BrokerContext,
    store: InMemoryKeyValueStore,
) -> None:
    """Re-indexing a corrected record keeps the stale tokens."""
    await index_record(broker_context, SourceRecord(name="Scot Wiener"), "p1")
    await index_record(broker_context, SourceRecord(name="Scott Wiener"), "p1")

    assert await store.smembers(keys.index_token("scotwiener")) == ["p1"], (
        "Expected the old token to remain."
    )
    assert await store.smembers(keys.index_token("scottwiener")) == ["p1"], (
        "Expected the new token to be added."
    )
