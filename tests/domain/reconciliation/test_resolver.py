"""Tests for batched identifier resolution."""

import pytest

from shipment_recon.domain.reconciliation.identifiers import LookupMode
from shipment_recon.domain.reconciliation.models import ResolvedOrder
from shipment_recon.domain.reconciliation.resolver import (
    IdentifierResolver,
    build_order_map,
    extract_search_rows,
)
from shipment_recon.domain.reconciliation.session_store import SessionStore
from shipment_recon.errors import UpstreamError


class TestBuildOrderMap:
    """Test parsing of search payloads into the identifier map."""

    def test_items_at_top_level(self):
        """Test rows read from a top-level items list."""
        payload = {"items": [{"tracking_no": "100200300400", "order_no": "DO000123456"}]}
        assert build_order_map(LookupMode.TRACKING, payload) == {
            "100200300400": ResolvedOrder(order_ref="DO000123456")
        }

    def test_items_under_data_and_camel_case(self):
        """Test rows under a data wrapper with camelCase fields."""
        payload = {"data": {"items": [{"trackingNo": 100200300400, "orderNo": " DO000123456 "}]}}
        assert build_order_map(LookupMode.TRACKING, payload)["100200300400"].order_ref == (
            "DO000123456"
        )

    def test_invalid_rows_are_dropped(self):
        """Test rows failing either format check are silently dropped."""
        payload = {
            "items": [
                {"tracking_no": "12345", "order_no": "DO000123456"},
                {"tracking_no": "100200300400", "order_no": "SO000123456"},
                {"tracking_no": "100200300401"},
                "not-a-row",
                {"tracking_no": "100200300402", "order_no": "DO000999999"},
            ]
        }
        assert list(build_order_map(LookupMode.TRACKING, payload)) == ["100200300402"]

    def test_pickup_mode_reads_pickup_fields(self):
        """Test pickup mode keys rows by their pickup number fields."""
        payload = {
            "items": [
                {"pu_no": "PU-1", "order_no": "DO000000001"},
                {"puNo": "PU-2", "order_no": "DO000000002"},
                {"pu_nos": ["PU-3", "PU-X"], "order_no": "DO000000003"},
                {"tracking_no": "100200300400", "order_no": "DO000000004"},
            ]
        }
        resolved = build_order_map(LookupMode.PICKUP, payload)
        assert {k: v.order_ref for k, v in resolved.items()} == {
            "PU-1": "DO000000001",
            "PU-2": "DO000000002",
            "PU-3": "DO000000003",
        }

    def test_tracking_rows_carry_pickup_number(self):
        """Test tracking hits keep the row's reference5 pickup number."""
        payload = {
            "items": [
                {"tracking_no": "100200300400", "order_no": "DO000123456", "reference5": "PU9"}
            ]
        }
        assert build_order_map(LookupMode.TRACKING, payload)["100200300400"].pickup_no == "PU9"

    def test_pickup_mode_reports_matched_pickup_number(self):
        """Test pickup mode reports the pickup number the row matched on."""
        payload = {
            "items": [
                {"pu_no": "PU-1", "reference5": "CUSTREF-9", "order_no": "DO000000001"}
            ]
        }
        assert build_order_map(LookupMode.PICKUP, payload)["PU-1"].pickup_no == "PU-1"

    @pytest.mark.parametrize("payload", [None, [], {"items": None}, {"data": []}, "oops"])
    def test_unexpected_shapes_yield_no_rows(self, payload):
        """Test unrecognized payload shapes produce no rows."""
        assert extract_search_rows(payload) == []


class TestIdentifierResolver:
    """Test batched identifier resolution against the Order-System."""

    def test_single_search_call_for_whole_batch(self, settings, make_order_client, trace_client):
        """Test one search call resolves the batch and ignores foreign hits."""
        client = make_order_client(
            search_payload={
                "items": [
                    {"tracking_no": "100200300400", "order_no": "DO000123456"},
                    {"tracking_no": "999999999999", "order_no": "DO000999999"},
                ]
            }
        )
        resolver = IdentifierResolver(SessionStore(settings, client, trace_client), client)

        resolved = resolver.resolve(LookupMode.TRACKING, ["100200300400", "100200300401"])

        assert resolved == {"100200300400": ResolvedOrder(order_ref="DO000123456")}
        assert client.count("search_orders") == 1
        assert client.calls[-1] == (
            "search_orders",
            "fms-token",
            LookupMode.TRACKING,
            ["100200300400", "100200300401"],
        )

    def test_empty_batch_makes_no_calls(self, settings, order_client, trace_client):
        """Test an empty batch makes no outbound call."""
        resolver = IdentifierResolver(
            SessionStore(settings, order_client, trace_client), order_client
        )
        assert resolver.resolve(LookupMode.TRACKING, []) == {}
        assert order_client.calls == []

    def test_oversized_batch_rejected(self, settings, order_client, trace_client):
        """Test batches above 150 identifiers raise ValueError."""
        resolver = IdentifierResolver(
            SessionStore(settings, order_client, trace_client), order_client
        )
        with pytest.raises(ValueError):
            resolver.resolve(LookupMode.TRACKING, [str(i) for i in range(151)])

    def test_search_failure_propagates(self, settings, make_order_client, trace_client):
        """Test a failed search call raises UpstreamError."""
        client = make_order_client(search_payload=UpstreamError("HTTP 500", status_code=500))
        resolver = IdentifierResolver(SessionStore(settings, client, trace_client), client)
        with pytest.raises(UpstreamError):
            resolver.resolve(LookupMode.TRACKING, ["100200300400"])
