"""URL helpers shared by the Home Assistant client and the presence service."""

from urllib.parse import urlsplit

import constants


def sanitize_url_for_logging(url: str) -> str:
    """Strip path, query, fragment and credentials from URL.

    Args:
        url: The URL to sanitize.

    Returns:
        URL containing only scheme, host and port, or a placeholder when
        the URL can not be parsed or has no host.
    """
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError:
        return constants.INVALID_URL_PLACEHOLDER

    if not parsed.hostname:
        return constants.INVALID_URL_PLACEHOLDER

    scheme = parsed.scheme or "http"
    host = parsed.hostname
    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"

    sanitized = f"{scheme}://{host}"
    if port is not None:
        sanitized += f":{port}"
    return sanitized


def join_api_url(base_url: str, path: str) -> str:
    """Append REST API path to the configured base URL."""
    return base_url.rstrip("/") + path
