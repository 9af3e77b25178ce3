"""
Proxy addressing and the allow-list shared by the client and the proxy boundary.

When proxying is enabled the client calls {proxy_base}?target={upstream URL}.
Only hosts on the allow-list (the configured upstream host plus
EGOV_ALLOWED_PROXY_HOSTS) may be targeted; anything else is rejected with a
400-class ProxyTargetError before any outbound request is made.
"""

import os
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from hourei_engine.core.law_explorer.config import DEFAULT_BASE_URL
from hourei_engine.core.law_explorer.errors import ProxyTargetError

TARGET_PARAM = "target"

HOP_BY_HOP_HEADERS = {
    "host",
    "connection",
    "content-length",
    "keep-alive",
    "transfer-encoding",
    "upgrade",
    "proxy-authorization",
    "te",
    "trailer",
}

PREFLIGHT_ALLOW_METHODS = "GET,POST,HEAD,OPTIONS"
DEFAULT_ALLOW_HEADERS = "Accept, Content-Type"


def build_proxy_url(proxy_base: str, target_url: str) -> str:
    """Return proxy_base with its target query parameter set to target_url (URL-encoded)."""
    parts = urlsplit(proxy_base)
    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key != TARGET_PARAM]
    query.append((TARGET_PARAM, target_url))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def resolve_allowed_hosts(base_url: str = DEFAULT_BASE_URL, extra_hosts: Optional[Iterable[str]] = None) -> List[str]:
    """
    Allow-list of upstream hosts.

    Args:
        base_url: Default upstream URL; its host is always allowed
        extra_hosts: Additional hosts; when None, EGOV_ALLOWED_PROXY_HOSTS (comma-separated) is read

    Returns:
        Hosts (netloc form, port included when present) without duplicates
    """
    if extra_hosts is None:
        extra_hosts = os.getenv("EGOV_ALLOWED_PROXY_HOSTS", "").split(",")
    hosts = [urlsplit(base_url).netloc]
    for host in extra_hosts:
        host = host.strip()
        if host and host not in hosts:
            hosts.append(host)
    return hosts


def validate_proxy_target(target: Optional[str], allowed_hosts: Iterable[str]) -> str:
    """
    Check a target URL against the allow-list.

    Returns:
        The target URL unchanged

    Raises:
        ProxyTargetError: If the target is missing, not an absolute http(s) URL, or not allowed
    """
    if not target:
        raise ProxyTargetError('Missing "target" query parameter.')
    parts = urlsplit(target)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ProxyTargetError("Invalid target URL.")
    if parts.netloc not in set(allowed_hosts):
        raise ProxyTargetError(f"Target host is not allowed: {parts.netloc}")
    return target


def filter_forward_headers(headers: Optional[Mapping[str, object]]) -> Dict[str, str]:
    """Drop hop-by-hop and empty headers; list values are joined with ', '."""
    forward: Dict[str, str] = {}
    for key, value in (headers or {}).items():
        if not value or key.lower() in HOP_BY_HOP_HEADERS:
            continue
        forward[key] = ", ".join(value) if isinstance(value, (list, tuple)) else str(value)
    return forward


def build_cors_headers(origin: Optional[str] = None, proxy_origin: Optional[str] = None) -> Dict[str, str]:
    """CORS headers for proxy answers. PROXY_ORIGIN wins over the request origin, then '*'."""
    allowed_origin = proxy_origin or os.getenv("PROXY_ORIGIN") or origin or "*"
    return {
        "Access-Control-Allow-Origin": allowed_origin,
        "Access-Control-Allow-Credentials": "true",
    }


def build_preflight_headers(
    origin: Optional[str] = None,
    request_headers: Optional[str] = None,
    proxy_origin: Optional[str] = None,
) -> Dict[str, str]:
    """Headers for the 204 answer to an OPTIONS preflight request."""
    headers = build_cors_headers(origin, proxy_origin)
    headers["Access-Control-Allow-Methods"] = PREFLIGHT_ALLOW_METHODS
    headers["Access-Control-Allow-Headers"] = request_headers or DEFAULT_ALLOW_HEADERS
    return headers
