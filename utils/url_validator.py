"""
SSRF Protection Module

Validates URLs before the server fetches recipe pages or images on a
user's behalf. Blocks localhost, private networks and non-http(s) schemes,
and caps response sizes.
"""

import ipaddress
import logging
import socket
from urllib.parse import urlparse

import requests

from constants import ALLOWED_URL_SCHEMES

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/120.0 Safari/537.36'
    ),
    'Accept-Language': 'en-US,en;q=0.9',
}

DEFAULT_MAX_SIZE = 10 * 1024 * 1024

LOCALHOST_ALIASES = {
    'localhost', 'localhost.localdomain',
    '127.0.0.1', '::1', '0.0.0.0',
}


class SSRFError(Exception):
    """Raised when a URL fails SSRF validation or exceeds the size cap."""
    pass


def is_private_ip(ip_str):
    """Check if an IP address is private, loopback, or otherwise internal."""
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return True  # Invalid IP, treat as unsafe
    return (
        ip.is_private or
        ip.is_loopback or
        ip.is_reserved or
        ip.is_link_local or
        ip.is_multicast or
        ip.is_unspecified
    )


def is_safe_url(url, resolve=True):
    """
    Validate that a URL is safe to fetch.

    Returns (is_safe, error_message) tuple.

    Checks:
    - Scheme is http or https only
    - Host is not localhost or a private/internal address
    - When resolve is True, every address the host resolves to is public
    """
    if not url:
        return False, "Empty URL"

    try:
        parsed = urlparse(url)
    except ValueError:
        return False, "Invalid URL format"

    if parsed.scheme not in ALLOWED_URL_SCHEMES:
        return False, f"Invalid scheme: {parsed.scheme}. Only http and https are allowed."

    hostname = parsed.hostname
    if not hostname:
        return False, "No hostname in URL"

    if hostname.lower() in LOCALHOST_ALIASES:
        return False, "Cannot access localhost"

    try:
        ipaddress.ip_address(hostname)
        if is_private_ip(hostname):
            return False, f"Cannot access private/internal IP: {hostname}"
        return True, None
    except ValueError:
        # Not an IP address, resolve hostname
        pass

    if not resolve:
        return True, None

    try:
        resolved = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror:
        return False, f"Cannot resolve hostname: {hostname}"

    for _family, _type, _proto, _canon, sockaddr in resolved:
        if is_private_ip(sockaddr[0]):
            return False, f"Hostname resolves to private/internal IP: {sockaddr[0]}"

    return True, None


def safe_fetch(url, headers=None, timeout=10, max_size=DEFAULT_MAX_SIZE):
    """
    Fetch a URL with SSRF protection and size limits.

    Args:
        url: The URL to fetch
        headers: Optional HTTP headers dict
        timeout: Request timeout in seconds (default 10)
        max_size: Maximum response size in bytes (default 10MB)

    Returns:
        requests.Response object with its content already read

    Raises:
        SSRFError: If the URL fails security validation or is too large
        requests.RequestException: For network errors and non-2xx statuses
    """
    is_safe, error = is_safe_url(url)
    if not is_safe:
        raise SSRFError(error)

    response = requests.get(url, headers=headers or DEFAULT_HEADERS, timeout=timeout, stream=True)
    try:
        response.raise_for_status()

        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > max_size:
            raise SSRFError(f"Response too large: {content_length} bytes (max {max_size})")

        content = bytearray()
        for chunk in response.iter_content(chunk_size=8192):
            content.extend(chunk)
            if len(content) > max_size:
                raise SSRFError(f"Response exceeded maximum size of {max_size} bytes")
    finally:
        response.close()

    # Replace content in response for non-streaming use
    response._content = bytes(content)
    logger.debug(f"Fetched {url} ({len(content)} bytes)")
    return response
