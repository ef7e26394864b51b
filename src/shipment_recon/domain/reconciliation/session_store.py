"""
Session management for the two upstream systems.

The Order-System token is cached on the store instance and reused until it is
invalidated or the process ends; a rejected token is not refreshed
automatically. Trace-System sessions are never cached: each batch logs in
again and re-selects the active group.
"""

import threading
from typing import Optional

from shipment_recon.config.settings import Settings
from shipment_recon.errors import AuthError, ConfigError, UpstreamError
from shipment_recon.io.connectors.order_system import OrderSystemClient
from shipment_recon.io.connectors.parsers import first_present, path
from shipment_recon.io.connectors.trace_system import TraceSession, TraceSystemClient
from shipment_recon.utils.logging import get_logger

logger = get_logger(__name__)

# Accepted login response shapes, tried in order.
ORDER_TOKEN_ACCESSORS = (
    path("token"),
    path("data", "token"),
    path("result", "token"),
)
TRACE_USER_ID_ACCESSORS = (path("UserID"), path("user_id"))
TRACE_USER_TOKEN_ACCESSORS = (path("UserToken"), path("userToken"))


class SessionStore:
    """
    Holds upstream credentials and session state for the reconciliation engine.

    Attributes:
        settings: Credentials and Trace-System group id
        order_client: Order-System client used for login
        trace_client: Trace-System client used for login and group selection
    """

    def __init__(
        self,
        settings: Settings,
        order_client: OrderSystemClient,
        trace_client: TraceSystemClient,
    ) -> None:
        self.settings = settings
        self.order_client = order_client
        self.trace_client = trace_client
        self._order_token: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def has_order_token(self) -> bool:
        return self._order_token is not None

    def invalidate(self) -> None:
        """Drop the cached Order-System token; the next call logs in again."""
        with self._lock:
            self._order_token = None
        logger.info("session.order_token_invalidated")

    def get_order_token(self, force_refresh: bool = False) -> str:
        """
        Return the cached Order-System token, logging in when needed.

        Args:
            force_refresh: Ignore the cached token and log in again

        Raises:
            ConfigError: Order-System credentials are not configured
            AuthError: Login failed or returned no token
        """
        with self._lock:
            if self._order_token and not force_refresh:
                return self._order_token

            account = self.settings.order_system_user
            password = self.settings.order_system_password
            if not account or not password:
                raise ConfigError("Order-System credentials are not configured")

            try:
                payload = self.order_client.login(account, password)
            except UpstreamError as e:
                logger.error("session.order_login_failed", error=str(e))
                raise AuthError(f"Order-System login failed: {e}") from e

            token = first_present(payload, ORDER_TOKEN_ACCESSORS)
            if token is None:
                logger.error(
                    "session.order_login_no_token",
                    response_keys=sorted(payload) if isinstance(payload, dict) else None,
                )
                raise AuthError("Order-System login returned no token")

            self._order_token = str(token)
            logger.info("session.order_login_succeeded", forced=force_refresh)
            return self._order_token

    def login_trace_system(self) -> TraceSession:
        """
        Log in to the Trace-System and select the configured active group.

        A failed group switch is logged and tolerated: the session still
        works, but queries may come back scoped to the wrong group.

        Raises:
            ConfigError: Trace-System credentials are not configured
            AuthError: Login failed or returned no UserID/UserToken
        """
        username = self.settings.trace_system_user
        password = self.settings.trace_system_password
        if not username or not password:
            raise ConfigError("Trace-System credentials are not configured")

        try:
            payload = self.trace_client.login(username, password)
        except UpstreamError as e:
            logger.error("session.trace_login_failed", error=str(e))
            raise AuthError(f"Trace-System login failed: {e}") from e

        user_id = first_present(payload, TRACE_USER_ID_ACCESSORS)
        user_token = first_present(payload, TRACE_USER_TOKEN_ACCESSORS)
        if user_id is None or user_token is None:
            logger.error("session.trace_login_incomplete")
            raise AuthError("Trace-System login returned no UserID/UserToken")

        session = TraceSession(user_id=str(user_id), user_token=str(user_token))

        group_id = self.settings.trace_system_group_id
        try:
            self.trace_client.change_group(session, group_id)
        except UpstreamError as e:
            logger.warning(
                "session.trace_group_change_failed", group_id=group_id, error=str(e)
            )

        logger.info("session.trace_login_succeeded", group_id=group_id)
        return session
