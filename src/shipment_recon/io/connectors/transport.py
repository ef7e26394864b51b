"""
HTTP transport shared by the Order-System and Trace-System connectors.
Handles session setup, timeouts, bounded retries and error translation.
"""

import logging
import random
import time
from typing import Any, Dict, Optional

import requests

from shipment_recon.config.settings import get_settings
from shipment_recon.errors import UpstreamError, UpstreamNetworkError

from .utils import sanitize_url_for_logging

logger = logging.getLogger(__name__)


class HTTPTransport:
    """
    Base HTTP transport for an upstream system.

    Connectivity failures (DNS, refused/reset connections, timeouts) surface
    as UpstreamNetworkError; any other failure of a call surfaces as
    UpstreamError so callers can tell the two apart.
    """

    system_name = "upstream"
    default_headers: Dict[str, str] = {}

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        retry_max: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize transport with configuration.

        Args:
            base_url: Upstream base URL (no trailing slash)
            timeout: Request timeout in seconds. If None, uses settings default
            retry_max: Retries on connectivity failures and 5xx responses.
                If None, uses settings default
            session: Optional pre-built requests session (tests inject fakes)
        """
        settings = get_settings()

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.retry_max = retry_max if retry_max is not None else settings.retry_max

        self.session = session or requests.Session()
        self.session.headers.update(self.default_headers)

        logger.info(
            f"{self.system_name} transport initialized",
            extra={
                "base_url": self.base_url,
                "timeout": self.timeout,
                "retry_max": self.retry_max,
            },
        )

    def _backoff(self, attempt: int) -> None:
        # Exponential backoff with jitter
        delay = (2**attempt) * (0.8 + 0.4 * random.random())
        logger.debug(f"Retrying after {delay:.1f}s")
        time.sleep(delay)

    def _make_request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Make HTTP request with retry logic and error translation.

        Args:
            method: HTTP method (GET, POST)
            url: Request URL
            **kwargs: Additional arguments for requests

        Returns:
            Response object for 2xx responses

        Raises:
            UpstreamNetworkError: Connection failure or timeout after retries
            UpstreamError: Non-2xx status or other request failure
        """
        sanitized_url = sanitize_url_for_logging(url)

        for attempt in range(self.retry_max + 1):
            try:
                logger.debug(
                    f"Making {self.system_name} request",
                    extra={
                        "method": method,
                        "url": sanitized_url,
                        "attempt": attempt + 1,
                        "max_attempts": self.retry_max + 1,
                    },
                )
                response = self.session.request(
                    method, url, timeout=self.timeout, **kwargs
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                logger.warning(
                    f"{self.system_name} request failed to connect",
                    extra={
                        "url": sanitized_url,
                        "error": str(e),
                        "attempt": attempt + 1,
                    },
                )
                if attempt < self.retry_max:
                    self._backoff(attempt)
                    continue
                raise UpstreamNetworkError(
                    f"{self.system_name} unreachable at {sanitized_url}: {e}"
                ) from e
            except requests.RequestException as e:
                logger.error(
                    f"{self.system_name} request failed",
                    extra={"url": sanitized_url, "error": str(e)},
                )
                raise UpstreamError(f"{self.system_name} request failed: {e}") from e

            if 200 <= response.status_code < 300:
                return response

            if response.status_code >= 500 and attempt < self.retry_max:
                logger.warning(
                    f"{self.system_name} server error",
                    extra={
                        "url": sanitized_url,
                        "status_code": response.status_code,
                        "attempt": attempt + 1,
                    },
                )
                self._backoff(attempt)
                continue

            logger.error(
                f"Unexpected {self.system_name} response",
                extra={"url": sanitized_url, "status_code": response.status_code},
            )
            raise UpstreamError(
                f"{self.system_name} HTTP {response.status_code} from {sanitized_url}",
                status_code=response.status_code,
            )

        # Should not reach here, but for completeness
        raise UpstreamError(f"{self.system_name} request failed for unknown reason")

    def _decode_json(self, response: requests.Response, endpoint: str) -> Any:
        """Decode a JSON body, translating decode failures into UpstreamError."""
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse {self.system_name} response",
                extra={"endpoint": endpoint, "error": str(e)},
            )
            raise UpstreamError(
                f"Invalid JSON response from {self.system_name} {endpoint}: {e}",
                status_code=response.status_code,
            ) from e
