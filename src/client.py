"""Home Assistant REST API client."""

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter

from utils.network import ensure_remote_destination, pin_url
from utils.url import join_api_url, sanitize_url_for_logging

logger = logging.getLogger(__name__)


class PinnedAddressAdapter(HTTPAdapter):
    """Transport adapter for requests sent to an already vetted IP address.

    The URL of such a request names the IP address and the `Host` header
    names the original host. TLS uses the original host for SNI and for
    certificate verification.
    """

    def build_connection_pool_key_attributes(
        self,
        request: requests.PreparedRequest,
        verify: bool | str,
        cert: Any = None,
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """Add the original host name to the TLS parameters of the pool."""
        host_params, pool_kwargs = super().build_connection_pool_key_attributes(
            request, verify, cert
        )
        host = request.headers.get("Host")
        if host and host_params["scheme"] == "https":
            pool_kwargs["server_hostname"] = urlsplit(f"//{host}").hostname
        return host_params, pool_kwargs


class HomeAssistantClient:
    """Blocking HTTP client for Home Assistant REST API.

    The client does not interpret responses, it only performs the call
    with bearer token authentication and applies the outbound destination
    policy before anything is sent. When local destinations are not
    allowed, the request connects to the address that passed the policy.
    """

    def __init__(
        self,
        allow_local_remote_servers: bool = False,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client.

        Args:
            allow_local_remote_servers: Allow calls to local and private addresses.
            session: HTTP session to use, a new one is created when not provided.
        """
        self.allow_local_remote_servers = allow_local_remote_servers
        self._session = session if session is not None else requests.Session()
        if not allow_local_remote_servers:
            adapter = PinnedAddressAdapter()
            self._session.mount("https://", adapter)
            self._session.mount("http://", adapter)

    def get(
        self,
        base_url: str,
        path: str,
        token: str,
        timeout: float,
        verify_ssl: bool,
    ) -> requests.Response:
        """Call GET on the Home Assistant REST API.

        Args:
            base_url: Home Assistant base URL, e.g. `https://ha.example.com:8123`.
            path: API path, e.g. `/api/states`.
            token: Long-lived access token.
            timeout: Connection and read timeout in seconds.
            verify_ssl: Whether to verify the server certificate.

        Returns:
            The HTTP response, regardless of its status code.

        Raises:
            LocalServerError: the target is a local or private address.
            requests.RequestException: transport or protocol failure.
        """
        url = join_api_url(base_url, path)
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if not self.allow_local_remote_servers:
            address = ensure_remote_destination(url)
            url, headers["Host"] = pin_url(url, address)

        logger.debug(
            "GET %s%s (timeout=%ss, verify_ssl=%s)",
            sanitize_url_for_logging(base_url),
            path,
            timeout,
            verify_ssl,
        )
        return self._session.get(
            url,
            headers=headers,
            timeout=timeout,
            verify=verify_ssl,
            allow_redirects=False,
        )

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
