"""Tests for the Trace-System HTTP client."""

from unittest.mock import Mock, patch

import pytest
import requests

from shipment_recon.domain.reconciliation.identifiers import LookupMode
from shipment_recon.errors import UpstreamNetworkError
from shipment_recon.io.connectors.trace_system import TraceSession, TraceSystemClient

BASE = "https://tms.example.com"
SESSION = TraceSession(user_id="42", user_token="tok")


def _ok(payload):
    response = Mock()
    response.status_code = 200
    response.json.return_value = payload
    return response


@pytest.fixture
def client():
    return TraceSystemClient(BASE, timeout=5, retry_max=0)


def test_form_headers(client):
    """Test the form and XHR headers are set on the session."""
    assert client.session.headers["X-Requested-With"] == "XMLHttpRequest"
    assert client.session.headers["Content-Type"].startswith(
        "application/x-www-form-urlencoded"
    )


def test_login_posts_form(client):
    """Test login posts the credentials as a form."""
    payload = {"UserID": "42", "UserToken": "tok"}
    with patch.object(client.session, "request", return_value=_ok(payload)) as req:
        assert client.login("user", "cGFzcw==") == payload

    args, kwargs = req.call_args
    assert args == ("POST", f"{BASE}/write/check_login.php")
    assert kwargs["data"]["username"] == "user"
    assert kwargs["data"]["password"] == "cGFzcw=="
    assert kwargs["data"]["UserID"] == "null"


def test_change_group_echoes_session(client):
    """Test group change echoes the session pair."""
    with patch.object(client.session, "request", return_value=_ok({})) as req:
        client.change_group(SESSION, "28")

    args, kwargs = req.call_args
    assert args == ("POST", f"{BASE}/write_new/write_change_user_group.php")
    assert kwargs["data"] == {
        "group_id": "28",
        "pageName": "dashboard",
        "UserID": "42",
        "UserToken": "tok",
    }


@pytest.mark.parametrize(
    "mode,field",
    [(LookupMode.TRACKING, "input_filter_pro"), (LookupMode.PICKUP, "input_filter_pu")],
)
def test_trace_joins_batch_into_one_filter(client, mode, field):
    """Test the batch is newline-joined into the mode's filter field."""
    with patch.object(client.session, "request", return_value=_ok([])) as req:
        client.trace(SESSION, mode, ["A1", "B2", "C3"])

    req.assert_called_once()
    data = req.call_args.kwargs["data"]
    assert data[field] == "A1\nB2\nC3"
    assert data["input_page_size"] == "30"
    assert data["UserID"] == "42"


def test_trace_timeout_is_network_error(client):
    """Test a trace timeout raises UpstreamNetworkError."""
    with patch.object(client.session, "request", side_effect=requests.Timeout("slow")):
        with pytest.raises(UpstreamNetworkError):
            client.trace(SESSION, LookupMode.TRACKING, ["A1"])
