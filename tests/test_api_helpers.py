"""Unit tests for request parsing in ``civicbroker.api.helpers``.

These tests cover payload-to-domain mapping used by the Falcon resources:
page and score parsing, coordinate handling and ingest payload assembly.

Run these tests directly with:

```bash
python -m pytest -v tests/test_api_helpers.py
```
"""

from __future__ import annotations

import falcon
import pytest
from _broker_helpers import CA_SENATE_11

from civicbroker.api import helpers
from civicbroker.core.domain import Coordinates, ProfileUpdate


class TestScalarParsing:
    """Tests for page and score parsing."""

    @staticmethod
    @pytest.mark.parametrize(
        ("raw_value", "expected"),
        [(None, 1), ("", 1), ("3", 3), (" 2 ", 2)],
    )
    def test_parse_page_defaults_to_first_page(raw_value: str | None, expected: int) -> None:
        """Absent pages mean page 1."""
        assert helpers.parse_page(raw_value) == expected, "Unexpected page number."

    @staticmethod
    @pytest.mark.parametrize("raw_value", ["0", "-1", "2.5", "two"])
    def test_parse_page_rejects_non_positive_integers(raw_value: str) -> None:
        """Pages must be positive integers."""
        with pytest.raises(falcon.HTTPBadRequest):
            helpers.parse_page(raw_value)

    @staticmethod
    def test_parse_score_accepts_numeric_strings() -> None:
        """Clients may send scores as strings or integral numbers."""
        assert helpers.parse_score({"rating": "4"}) == 4, "Expected the string to parse."
        assert helpers.parse_score({"rating": 4.0}) == 4, "Expected 4.0 to parse as 4."
        assert helpers.parse_score({}) is None, "Expected no score when absent."

    @staticmethod
    @pytest.mark.parametrize("raw_value", [True, 4.5, "four", [4]])
    def test_parse_score_rejects_non_integers(raw_value: object) -> None:
        """Booleans, fractional numbers and text are not scores."""
        with pytest.raises(falcon.HTTPBadRequest):
            helpers.parse_score({"rating": raw_value})


class TestProfileUpdate:
    """Tests for profile update assembly."""

    @staticmethod
    def test_build_profile_update_maps_every_field() -> None:
        """Party, address, coordinates and divisions are all carried over."""
        update = helpers.build_profile_update({
            "party": " Green ",
            "address": "City Hall",
            "lat": 37.7793,
            "lng": "-122.4193",
            "divisions": [CA_SENATE_11, ""],
        })

        assert update == ProfileUpdate(
            party="Green",
            address="City Hall",
            coordinates=Coordinates(lat=37.7793, lng=-122.4193),
            divisions=(CA_SENATE_11,),
        ), "Expected a fully populated update."

    @staticmethod
    def test_division_mappings_contribute_their_keys() -> None:
        """A civic-info ``divisions`` object is accepted as well as a list."""
        update = helpers.build_profile_update({"divisions": {CA_SENATE_11: {}}})

        assert update.divisions == (CA_SENATE_11,), "Expected the mapping keys."

    @staticmethod
    @pytest.mark.parametrize(
        "payload",
        [{"lat": 1.0}, {"lat": "north", "lng": 2.0}, {"lat": "nan", "lng": 0}],
        ids=["lat_only", "non_numeric", "not_finite"],
    )
    def test_invalid_coordinates_are_rejected(payload: dict[str, object]) -> None:
        """Coordinates must be a finite pair."""
        with pytest.raises(falcon.HTTPBadRequest):
            helpers.parse_coordinates(payload)

    @staticmethod
    def test_non_string_party_is_rejected() -> None:
        """Optional text fields must be strings when present."""
        with pytest.raises(falcon.HTTPBadRequest):
            helpers.build_profile_update({"party": 7})


class TestRawRecord:
    """Tests for ingest payload assembly."""

    @staticmethod
    def test_build_raw_record_keeps_context_beside_the_record() -> None:
        """The provider record and its surrounding context are separated."""
        raw = helpers.build_raw_record({
            "record": {"name": "Scott Wiener"},
            "division_id": CA_SENATE_11,
            "office": "California State Senate District 11",
            "office_levels": ["administrativeArea1"],
            "state": "CA",
        })

        assert raw.payload == {"name": "Scott Wiener"}, "Expected the record payload."
        assert raw.division_id == CA_SENATE_11, "Expected the division context."
        assert raw.office_levels == ("administrativeArea1",), "Expected the levels."
        assert raw.district is None, "Expected an absent district."

    @staticmethod
    @pytest.mark.parametrize(
        "payload",
        [{}, {"record": "Scott"}, {"record": {}, "office_levels": "country"}],
        ids=["missing_record", "record_not_object", "levels_not_list"],
    )
    def test_malformed_ingest_payloads_are_rejected(payload: dict[str, object]) -> None:
        """Ingest bodies need a record object and list-valued levels."""
        with pytest.raises(falcon.HTTPBadRequest):
            helpers.build_raw_record(payload)
