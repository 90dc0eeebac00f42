"""Outbound destination policy.

Outbound calls to Home Assistant are refused when the target host resolves
to a loopback, private, link-local or otherwise non-public address, unless
the administrator explicitly allows local destinations in the service
configuration.
"""

import ipaddress
import logging
import socket
from urllib.parse import urlsplit, urlunsplit

import requests

logger = logging.getLogger(__name__)

LOCAL_HOST_NAMES = frozenset({"localhost", "localhost.localdomain"})

DEFAULT_PORTS = {"http": 80, "https": 443}


class LocalServerError(requests.exceptions.ConnectionError):
    """Outbound call refused because the target is a local or private address."""


def is_local_address(address: str) -> bool:
    """Check if the IP address points to a local or private network."""
    # strip IPv6 zone index, e.g. fe80::1%eth0
    ip = ipaddress.ip_address(address.split("%", 1)[0])
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )


def resolve_host(host: str, port: int) -> list[str]:
    """Resolve host name to the list of IP addresses it points to."""
    try:
        infos = socket.getaddrinfo(host, port, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        raise requests.exceptions.ConnectionError(
            f"Failed to resolve host {host}"
        ) from e
    if not infos:
        raise requests.exceptions.ConnectionError(f"Host {host} has no address")
    return [str(info[4][0]) for info in infos]


def ensure_remote_destination(url: str) -> str:
    """Raise LocalServerError when URL targets a local or private address.

    The request has to be sent to the returned address, resolving the host
    name again could give a different answer.

    Args:
        url: Full URL of the outbound request.

    Returns:
        The vetted IP address of the host.

    Raises:
        requests.exceptions.InvalidURL: URL has no host or an invalid port.
        requests.exceptions.ConnectionError: host name can not be resolved.
        LocalServerError: host resolves to a local or private address.
    """
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError as e:
        raise requests.exceptions.InvalidURL("Invalid URL") from e

    host = parsed.hostname
    if not host:
        raise requests.exceptions.InvalidURL("URL does not contain host")

    if host.lower() in LOCAL_HOST_NAMES:
        raise LocalServerError("Host violates local access rules")

    if port is None:
        port = DEFAULT_PORTS.get(parsed.scheme.lower(), 80)

    addresses = resolve_host(host, port)
    logger.debug("Host %s resolved to %d address(es)", host, len(addresses))
    if any(is_local_address(address) for address in addresses):
        raise LocalServerError("Host violates local access rules")
    return addresses[0]


def pin_url(url: str, address: str) -> tuple[str, str]:
    """Point the URL to the IP address.

    Returns:
        The URL with the IP address in place of the host, and the value of
        the `Host` header naming the original host and port.
    """
    parsed = urlsplit(url)
    host_header = parsed.netloc.rpartition("@")[2]
    host = f"[{address}]" if ":" in address else address
    netloc = host if parsed.port is None else f"{host}:{parsed.port}"
    return urlunsplit(parsed._replace(netloc=netloc)), host_header
