"""Tests for the response-shape helpers."""

import pytest

from shipment_recon.io.connectors.parsers import (
    first_item,
    first_list,
    first_present,
    path,
    unwrap_data,
)

TOKEN_ACCESSORS = [path("token"), path("data", "token"), path("result", "token")]


class TestFirstPresent:
    """Test first-present extraction over ordered accessors."""

    @pytest.mark.parametrize(
        "payload",
        [
            {"token": "t"},
            {"data": {"token": "t"}},
            {"result": {"token": "t"}},
            {"token": None, "data": {"token": "t"}},
            {"token": "   ", "result": {"token": "t"}},
        ],
    )
    def test_each_known_shape(self, payload):
        """Test the token is found in every accepted response shape."""
        assert first_present(payload, TOKEN_ACCESSORS) == "t"

    @pytest.mark.parametrize("payload", [None, "x", [], {}, {"data": "token"}])
    def test_nothing_found(self, payload):
        """Test None is returned when no accessor yields a value."""
        assert first_present(payload, TOKEN_ACCESSORS) is None

    def test_custom_predicate(self):
        """Test a custom predicate decides which values count."""
        assert first_present({"a": 0, "b": 5}, [path("a"), path("b")], accept=bool) == 5


class TestAccessors:
    """Test accessor builders."""

    def test_path_stops_at_non_mapping(self):
        """Test path returns None when an intermediate value is not a mapping."""
        assert path("data", "items")({"data": ["x"]}) is None

    def test_first_item(self):
        """Test first_item returns the head of a non-empty list only."""
        assert first_item("pu_nos")({"pu_nos": ["A", "B"]}) == "A"
        assert first_item("pu_nos")({"pu_nos": []}) is None
        assert first_item("pu_nos")({"pu_nos": "A"}) is None

    def test_first_list(self):
        """Test first_list skips non-list values."""
        accessors = [path("items"), path("data", "items")]
        assert first_list({"data": {"items": [1]}}, accessors) == [1]
        assert first_list({"items": {"not": "a list"}}, accessors) == []


class TestUnwrapData:
    """Test unwrapping of the data envelope."""

    def test_uses_data_when_present(self):
        """Test a non-empty data mapping is returned."""
        assert unwrap_data({"data": {"x": 1}, "code": 0}) == {"x": 1}

    @pytest.mark.parametrize("payload", [{"x": 1}, {"data": {}}, {"data": None}])
    def test_falls_back_to_payload(self, payload):
        """Test the payload itself is returned without a usable data mapping."""
        assert unwrap_data(payload) is payload
