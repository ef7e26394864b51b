"""Pytest configuration and shared fakes for ShipmentRecon tests.

An optional ``.sr_env`` file at the project root is loaded FIRST with
override=True, so a developer's real credentials in the shell environment can
never leak into a test run. Without the file, Settings falls back to its
defaults and tests pass credentials explicitly.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_SR_ENV_FILE = Path(__file__).parent.parent / ".sr_env"
if _SR_ENV_FILE.exists():
    load_dotenv(_SR_ENV_FILE, override=True)

import threading
import time
from typing import Any, Dict, List, Optional, Sequence

import pytest

from shipment_recon.config.settings import Settings, get_settings
from shipment_recon.domain.reconciliation.concurrency import ConcurrencyLimiter
from shipment_recon.domain.reconciliation.detail_gatherer import DetailGatherer
from shipment_recon.domain.reconciliation.identifiers import LookupMode
from shipment_recon.domain.reconciliation.resolver import IdentifierResolver
from shipment_recon.domain.reconciliation.service import ReconciliationService
from shipment_recon.domain.reconciliation.session_store import SessionStore
from shipment_recon.domain.reconciliation.trace_gatherer import TraceGatherer
from shipment_recon.io.connectors.trace_system import TraceSession


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with credentials for both upstream systems."""
    return Settings(
        order_system_user="fms-user",
        order_system_password="fms-pass",
        trace_system_user="tms-user",
        trace_system_password="dG1zLXBhc3M=",
        trace_system_group_id="28",
        detail_concurrency=5,
    )


class FakeOrderClient:
    """
    In-memory Order-System client.

    ``basic`` / ``head`` map order references to either a payload or an
    exception instance to raise. Unknown references return an empty dict.
    """

    def __init__(
        self,
        login_payload: Any = None,
        search_payload: Any = None,
        basic: Optional[Dict[str, Any]] = None,
        head: Optional[Dict[str, Any]] = None,
        delay: float = 0.0,
    ) -> None:
        self.login_payload = {"token": "fms-token"} if login_payload is None else login_payload
        self.search_payload = {"items": []} if search_payload is None else search_payload
        self.basic = basic or {}
        self.head = head or {}
        self.delay = delay
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def _record(self, *call: Any) -> None:
        with self._lock:
            self.calls.append(call)

    def _respond(self, table: Dict[str, Any], order_ref: str) -> Any:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            outcome = table.get(order_ref, {})
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            with self._lock:
                self.in_flight -= 1

    def login(self, account: str, password: str) -> Any:
        self._record("login", account, password)
        if isinstance(self.login_payload, Exception):
            raise self.login_payload
        return self.login_payload

    def search_orders(self, token: str, mode: LookupMode, identifiers: Sequence[str]) -> Any:
        self._record("search_orders", token, mode, list(identifiers))
        if isinstance(self.search_payload, Exception):
            raise self.search_payload
        return self.search_payload

    def get_order_basic(self, token: str, order_ref: str) -> Any:
        self._record("get_order_basic", token, order_ref)
        return self._respond(self.basic, order_ref)

    def get_order_head(self, token: str, order_ref: str) -> Any:
        self._record("get_order_head", token, order_ref)
        return self._respond(self.head, order_ref)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeTraceClient:
    """In-memory Trace-System client; payloads may be exception instances."""

    def __init__(
        self,
        login_payload: Any = None,
        trace_payload: Any = None,
        group_error: Optional[Exception] = None,
    ) -> None:
        self.login_payload = (
            {"UserID": "42", "UserToken": "tms-token"}
            if login_payload is None
            else login_payload
        )
        self.trace_payload = [] if trace_payload is None else trace_payload
        self.group_error = group_error
        self.calls: List[tuple] = []

    def login(self, username: str, password: str) -> Any:
        self.calls.append(("login", username, password))
        if isinstance(self.login_payload, Exception):
            raise self.login_payload
        return self.login_payload

    def change_group(self, session: TraceSession, group_id: str) -> None:
        self.calls.append(("change_group", session, group_id))
        if self.group_error is not None:
            raise self.group_error

    def trace(self, session: TraceSession, mode: LookupMode, identifiers: Sequence[str]) -> Any:
        self.calls.append(("trace", session, mode, list(identifiers)))
        if isinstance(self.trace_payload, Exception):
            raise self.trace_payload
        return self.trace_payload

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def order_client() -> FakeOrderClient:
    return FakeOrderClient()


@pytest.fixture
def trace_client() -> FakeTraceClient:
    return FakeTraceClient()


def build_service(
    settings: Settings,
    order_client: FakeOrderClient,
    trace_client: FakeTraceClient,
) -> ReconciliationService:
    """Wire the engine around fake clients the way from_settings wires real ones."""
    store = SessionStore(settings, order_client, trace_client)
    return ReconciliationService(
        settings=settings,
        session_store=store,
        resolver=IdentifierResolver(store, order_client),
        detail_gatherer=DetailGatherer(
            order_client, ConcurrencyLimiter(settings.detail_concurrency)
        ),
        trace_gatherer=TraceGatherer(trace_client),
    )


@pytest.fixture
def make_order_client():
    return FakeOrderClient


@pytest.fixture
def make_trace_client():
    return FakeTraceClient


@pytest.fixture
def make_service(settings):
    def _make(
        order_client: FakeOrderClient,
        trace_client: Optional[FakeTraceClient] = None,
        settings_override: Optional[Settings] = None,
    ) -> ReconciliationService:
        return build_service(
            settings_override or settings,
            order_client,
            trace_client if trace_client is not None else FakeTraceClient(),
        )

    return _make
