"""
Trace-System HTTP client.

The Trace-System is a form-posting web backend. A session is a
(UserID, UserToken) pair obtained from the login form; every later call
echoes that pair back as form fields. Visible records are scoped to the
session's active group, so a group switch must follow each login.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import requests

from shipment_recon.config.settings import get_settings
from shipment_recon.domain.reconciliation.identifiers import LookupMode

from .transport import HTTPTransport

logger = logging.getLogger(__name__)

LOGIN_PATH = "/write/check_login.php"
CHANGE_GROUP_PATH = "/write_new/write_change_user_group.php"
TRACE_PATH = "/write_new/get_tms_trace.php"

MODE_FILTER_FIELD = {
    LookupMode.TRACKING: "input_filter_pro",
    LookupMode.PICKUP: "input_filter_pu",
}
# Rows requested per identifier; one identifier may match several trace rows
ROWS_PER_IDENTIFIER = 10


@dataclass(frozen=True)
class TraceSession:
    user_id: str
    user_token: str

    def as_form(self) -> Dict[str, str]:
        return {"UserID": self.user_id, "UserToken": self.user_token}


class TraceSystemClient(HTTPTransport):
    """Synchronous HTTP client for the Trace-System form endpoints."""

    system_name = "Trace-System"
    default_headers = {
        "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
        "X-Requested-With": "XMLHttpRequest",
    }

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        retry_max: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(
            base_url or get_settings().trace_system_base_url,
            timeout=timeout,
            retry_max=retry_max,
            session=session,
        )

    def login(self, username: str, password: str) -> Any:
        """
        Submit the login form.

        Returns:
            Raw login payload carrying ``UserID``/``UserToken`` (or their
            snake/camel-case variants)
        """
        url = f"{self.base_url}{LOGIN_PATH}"
        form = {
            "username": username,
            "password": password,
            "UserID": "null",
            "UserToken": "null",
            "pageName": "/index.html",
        }
        logger.info("Logging in to Trace-System", extra={"endpoint": "login"})
        response = self._make_request("POST", url, data=form)
        return self._decode_json(response, "login")

    def change_group(self, session: TraceSession, group_id: str) -> None:
        """Select the active group that scopes every later trace query."""
        url = f"{self.base_url}{CHANGE_GROUP_PATH}"
        form = {"group_id": str(group_id), "pageName": "dashboard", **session.as_form()}
        self._make_request("POST", url, data=form)
        logger.info(
            "Trace-System active group selected",
            extra={"endpoint": "change_group", "group_id": str(group_id)},
        )

    def trace(
        self, session: TraceSession, mode: LookupMode, identifiers: Sequence[str]
    ) -> Any:
        """
        Run one batched trace query for all identifiers.

        The filter field accepts several values joined by newlines, so the
        whole batch travels in a single request.

        Returns:
            Raw trace payload (rows at top level or under ``data``/``rows``/
            ``result``)
        """
        url = f"{self.base_url}{TRACE_PATH}"
        form = {
            MODE_FILTER_FIELD[mode]: "\n".join(identifiers),
            "input_page_num": "1",
            "input_page_size": str(len(identifiers) * ROWS_PER_IDENTIFIER),
            "input_total_rows": "0",
            "pageName": "dashboardTmsTrace",
            **session.as_form(),
        }
        logger.info(
            "Tracing batch via Trace-System",
            extra={
                "endpoint": "trace",
                "mode": mode.value,
                "batch_size": len(identifiers),
            },
        )
        response = self._make_request("POST", url, data=form)
        return self._decode_json(response, "trace")
