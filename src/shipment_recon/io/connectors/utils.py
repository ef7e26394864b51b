"""
Utility functions for upstream connectors.
"""

import re

_CREDENTIAL_PARAM = re.compile(
    r"(?i)((?:user)?token|password|UserID)=[^&]*"
)


def sanitize_url_for_logging(url: str) -> str:
    """
    Sanitize URL for logging by masking credential query parameters.

    Args:
        url: Original URL that may contain sensitive data

    Returns:
        Sanitized URL safe for logging
    """
    return _CREDENTIAL_PARAM.sub(lambda m: f"{m.group(1)}=[SANITIZED]", url)
