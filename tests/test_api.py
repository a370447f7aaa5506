"""End-to-end tests for the Falcon API over the in-memory store."""

from __future__ import annotations

import asyncio
import json
import typing as typ

import falcon
import pytest
from _broker_helpers import CA_CD_12, CA_SENATE_11, CALLER_HEADERS

from civicbroker.core.errors import GENERIC_FAILURE_MESSAGE, StoreError

if typ.TYPE_CHECKING:
    from falcon import testing

    from civicbroker.storage import InMemoryKeyValueStore

WIENER_INGEST = {
    "record": {
        "name": "Scott Wiener",
        "party": "Democratic Party",
        "phones": ["(916) 651-4011"],
    },
    "division_id": CA_SENATE_11,
    "office": "California State Senate District 11",
    "office_levels": ["administrativeArea1"],
    "state": "CA",
    "district": "11",
}


def _ingest_wiener(client: testing.TestClient) -> str:
    result = client.simulate_post(
        "/api/v1/ingest/googlecivics", json=WIENER_INGEST, headers=CALLER_HEADERS
    )
    assert result.status == falcon.HTTP_201, f"Unexpected ingest status: {result.text}"
    return typ.cast("str", result.json["id"])


def test_poke_reports_store_health(
    api_client: testing.TestClient,
    store: InMemoryKeyValueStore,
) -> None:
    """The probe answers 200 while the store responds and 500 otherwise."""
    healthy = api_client.simulate_get("/poke")
    store.failure = StoreError("down")
    unhealthy = api_client.simulate_get("/poke")

    assert (healthy.status_code, healthy.text) == (200, "OK"), "Expected a healthy probe."
    assert unhealthy.status_code == 500, "Expected a failing probe."


def test_requests_without_identity_are_rejected(api_client: testing.TestClient) -> None:
    """Every API route needs a caller identity."""
    result = api_client.simulate_get("/api/v1/search", params={"str": "wiener"})

    assert result.status == falcon.HTTP_401, "Expected 401 without caller headers."


def test_ingested_profile_is_served_with_ratings(api_client: testing.TestClient) -> None:
    """Ingested records resolve into a profile with empty ratings."""
    politician_id = _ingest_wiener(api_client)

    result = api_client.simulate_get(
        f"/api/v1/politicians/{politician_id}", headers=CALLER_HEADERS
    )

    body = result.json
    assert result.status == falcon.HTTP_200, "Expected the profile to be found."
    assert (body["name"], body["party"], body["chamber"]) == ("Scott Wiener", "D", "sldu"), (
        "Expected merged profile fields."
    )
    assert "email" not in body, "Expected absent fields to be omitted."
    assert body["data_sources"][0]["source"] == "googlecivics", "Expected attribution."
    assert body["ratings"]["D"] == {"rating": 0.0, "total": 0}, "Expected no ratings."
    assert body["ratings"]["user"] == 0.0, "Expected the caller's own score."


def test_unknown_politician_is_not_found(api_client: testing.TestClient) -> None:
    """Profiles without source records answer 404."""
    result = api_client.simulate_get("/api/v1/politicians/nope", headers=CALLER_HEADERS)

    assert result.status == falcon.HTTP_404, "Expected 404 for an empty profile."


def test_unknown_source_is_a_bad_request(api_client: testing.TestClient) -> None:
    """Normalisation failures map to 400."""
    result = api_client.simulate_post(
        "/api/v1/ingest/carrier-pigeon", json=WIENER_INGEST, headers=CALLER_HEADERS
    )

    assert result.status == falcon.HTTP_400, "Expected 400 for an unknown source."
    assert "Unknown source" in result.json["msg"], "Expected the normaliser message."


def test_rating_is_recorded_and_audited(
    api_client: testing.TestClient,
    store: InMemoryKeyValueStore,
) -> None:
    """Ratings land in the caller's bucket and every call is logged."""
    politician_id = _ingest_wiener(api_client)

    result = api_client.simulate_post(
        "/api/v1/politician_rate",
        json={"politician_id": politician_id, "rating": 5},
        headers=CALLER_HEADERS,
    )

    body = result.json
    entry = json.loads(store.lrange("wslog:politician_rate")[0])
    assert result.status == falcon.HTTP_200, "Expected the rating to succeed."
    assert body["outsider"]["D"] == {"rating": 5.0, "total": 1}, (
        "Expected a non-resident Democrat score."
    )
    assert body["user"] == 5.0, "Expected the caller's score."
    assert (entry["politician_id"], entry["rating"], entry["user_id"]) == (
        politician_id,
        5,
        "citizen-1",
    ), "Expected the audit entry to describe the call."
    assert "error" not in entry, "Expected no error flag."


def test_out_of_range_rating_is_rejected_and_flagged(
    api_client: testing.TestClient,
    store: InMemoryKeyValueStore,
) -> None:
    """Core validation errors answer 400 and mark the audit entry."""
    result = api_client.simulate_post(
        "/api/v1/politician_rate",
        json={"politician_id": "p1", "rating": 9},
        headers=CALLER_HEADERS,
    )

    entry = json.loads(store.lrange("wslog:politician_rate")[0])
    assert result.status == falcon.HTTP_400, "Expected 400 for a score of 9."
    assert result.json == {"msg": "Invalid input."}, "Expected the fixed message."
    assert entry["error"] == 1, "Expected the audit entry to record the failure."


@pytest.mark.parametrize(
    "payload",
    [{"rating": 3}, {"politician_id": "p1", "rating": "three"}],
    ids=["missing_politician", "non_integer_rating"],
)
def test_malformed_rate_requests_are_rejected(
    api_client: testing.TestClient,
    payload: dict[str, object],
) -> None:
    """Request parsing errors answer 400 before reaching the core."""
    result = api_client.simulate_post(
        "/api/v1/politician_rate", json=payload, headers=CALLER_HEADERS
    )

    assert result.status == falcon.HTTP_400, "Expected 400 for malformed input."


def test_search_returns_a_page(api_client: testing.TestClient) -> None:
    """Search results carry resolved profiles and page metadata."""
    _ingest_wiener(api_client)

    result = api_client.simulate_get(
        "/api/v1/search", params={"str": "Wiener"}, headers=CALLER_HEADERS
    )

    body = result.json
    assert result.status == falcon.HTTP_200, "Expected the search to succeed."
    assert (body["page"], body["pages"], body["total"]) == (1, 1, 1), "Expected one page."
    assert body["results"][0]["name"] == "Scott Wiener", "Expected the senator."


@pytest.mark.parametrize(
    "params",
    [{}, {"str": "senate", "page": "0"}, {"str": "senate", "page": "two"}],
    ids=["missing_query", "page_zero", "page_text"],
)
def test_invalid_search_requests_are_rejected(
    api_client: testing.TestClient,
    params: dict[str, str],
) -> None:
    """Search needs a query and a positive page number."""
    result = api_client.simulate_get("/api/v1/search", params=params, headers=CALLER_HEADERS)

    assert result.status == falcon.HTTP_400, "Expected 400 for invalid parameters."


def test_too_many_words_reports_the_reason(api_client: testing.TestClient) -> None:
    """The word limit message reaches the client."""
    result = api_client.simulate_get(
        "/api/v1/search",
        params={"str": "one two three four five six"},
        headers=CALLER_HEADERS,
    )

    assert result.json == {"msg": "Too many search words."}, "Expected the limit message."


def test_store_outage_is_a_generic_failure(
    api_client: testing.TestClient,
    store: InMemoryKeyValueStore,
) -> None:
    """Store failures answer 503 without internal detail."""
    store.failure = StoreError("connection refused to 10.0.0.5")

    result = api_client.simulate_get(
        "/api/v1/search", params={"str": "wiener"}, headers=CALLER_HEADERS
    )

    assert result.status == falcon.HTTP_503, "Expected 503 during an outage."
    assert result.json == {"msg": GENERIC_FAILURE_MESSAGE}, "Expected the generic message."


def test_identity_details_are_recorded(
    api_client: testing.TestClient,
    store: InMemoryKeyValueStore,
) -> None:
    """dinfo stores the identity details and the posted device description."""
    result = api_client.simulate_post(
        "/api/v1/dinfo",
        json={"UniqueID": "device-1", "Platform": "android"},
        headers=CALLER_HEADERS | {"X-Caller-Name": "Ada", "X-Caller-Email": "ada@example.org"},
    )

    assert result.status == falcon.HTTP_200, "Expected dinfo to succeed."
    assert result.json == {"name": "Ada", "email": "ada@example.org"}, (
        "Expected the stored details."
    )
    devices = asyncio.run(store.smembers("dinfo:citizen-1"))
    assert [json.loads(device) for device in devices] == [
        {"Platform": "android", "UniqueID": "device-1"}
    ], "Expected the device description to be stored."
    assert store.lrange("wslog:dinfo"), "Expected the call to be audited."
    assert json.loads(store.lrange("wslog:dinfo")[0])["UniqueID"] == "device-1", (
        "Expected the device id in the audit entry."
    )


def test_profile_update_moves_the_caller(api_client: testing.TestClient) -> None:
    """dprofile stores the party and home address."""
    result = api_client.simulate_post(
        "/api/v1/dprofile",
        json={
            "party": "Green",
            "address": "1 Dr Carlton B Goodlett Pl",
            "lat": "37.7793",
            "lng": -122.4193,
            "divisions": {CA_SENATE_11: {"name": "District 11"}},
        },
        headers=CALLER_HEADERS,
    )

    body = result.json
    assert result.status == falcon.HTTP_200, "Expected the update to succeed."
    assert (body["party"], body["home_address"], body["home_lat"]) == (
        "G",
        "1 Dr Carlton B Goodlett Pl",
        "37.7793",
    ), "Expected the stored profile."


def test_profile_update_rejects_half_coordinates(api_client: testing.TestClient) -> None:
    """Latitude and longitude travel together."""
    result = api_client.simulate_post(
        "/api/v1/dprofile",
        json={"address": "City Hall", "lat": 37.7},
        headers=CALLER_HEADERS,
    )

    assert result.status == falcon.HTTP_400, "Expected 400 for a lone latitude."


def test_representatives_are_grouped_by_chamber(api_client: testing.TestClient) -> None:
    """whorepme ingests the officials and groups offices by chamber code."""
    civic = {
        "normalizedInput": {"state": "CA"},
        "divisions": {CA_CD_12: {"name": "CA-12", "officeIndices": [0]}},
        "offices": [
            {
                "name": "U.S. House of Representatives",
                "levels": ["country"],
                "officialIndices": [0],
            }
        ],
        "officials": [{"name": "Nancy Pelosi", "party": "Democratic Party"}],
    }

    result = api_client.simulate_post(
        "/api/v1/whorepme",
        json={"civic": civic, "address": "San Francisco"},
        headers=CALLER_HEADERS,
    )

    body = result.json
    office = body["cd"][0]
    assert result.status == falcon.HTTP_200, "Expected the lookup to succeed."
    assert set(body) == {"cd", "sen", "sldu", "sldl", "other"}, "Expected every chamber."
    assert (office["title"], office["type"], office["challengers"]) == (
        "U.S. House of Representatives",
        "country",
        [],
    ), "Expected the office shape."
    assert office["incumbents"][0]["name"] == "Nancy Pelosi", "Expected the incumbent."
    assert office["incumbents"][0]["ratings"]["user"] == 0.0, "Expected the caller score."
