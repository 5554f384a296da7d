from __future__ import annotations

import logging
import typing
from urllib.request import getproxies, proxy_bypass_environment

from ..exceptions import LocationParseError, ProxySchemeUnknown
from .url import Url, parse_url

log = logging.getLogger(__name__)

port_by_scheme = {
    "http": 80,
    "https": 443,
    "socks4": 1080,
    "socks4a": 1080,
    "socks5": 1080,
    "socks5h": 1080,
}

SUPPORTED_PROXY_SCHEMES = tuple(port_by_scheme)


def proxy_for(
    destination_scheme: str,
    hostname: str,
    proxies: typing.Mapping[str, str] | None = None,
) -> Url | None:
    """
    Returns the proxy that connections to ``hostname`` over
    ``destination_scheme`` should go through, or None for a direct connection.

    :param str destination_scheme:
        The scheme of the destination. (i.e https, http, ldap, etc)
    :param str hostname:
        The destination host, matched against the ``no`` entry.
    :param proxies:
        Mapping of scheme to proxy URL, in the format returned by
        :func:`urllib.request.getproxies`. An ``all`` entry applies to every
        scheme and a ``no`` entry lists hosts to reach directly. Defaults to
        the ``*_proxy`` environment variables.
    """
    if proxies is None:
        proxies = getproxies()

    if "no" in proxies and proxy_bypass_environment(hostname, proxies=dict(proxies)):
        log.debug("Bypassing proxy for %s", hostname)
        return None

    proxy_url = proxies.get(destination_scheme) or proxies.get("all")
    if not proxy_url or proxy_url == "direct://":
        return None

    proxy = parse_url(proxy_url)

    if proxy.scheme is None:
        raise ProxySchemeUnknown(None)
    if proxy.scheme not in SUPPORTED_PROXY_SCHEMES:
        raise ProxySchemeUnknown(proxy.scheme)
    if not proxy.host:
        raise LocationParseError(proxy_url)

    if not proxy.port:
        proxy = proxy._replace(port=port_by_scheme[proxy.scheme])

    return proxy
