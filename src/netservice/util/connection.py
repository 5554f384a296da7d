from __future__ import annotations

import socket
import typing

import trio

from ..address import InetSocketAddress

_TYPE_ADDRINFO = typing.Tuple[
    socket.AddressFamily,
    socket.SocketKind,
    int,
    str,
    typing.Union[typing.Tuple[str, int], typing.Tuple[str, int, int, int]],
]


def getaddrinfo(host: str, port: int) -> list[InetSocketAddress]:
    """
    Resolve ``host`` to the list of stream socket addresses it answers on,
    IPv6 first. Errors from the system resolver propagate as
    :class:`socket.gaierror`.
    """
    # Using the value from allowed_gai_family() in the context of getaddrinfo lets
    # us select whether to work with IPv4 DNS records, IPv6 records, or both.
    family = allowed_gai_family()
    addr_info = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
    return _to_addresses(addr_info)


async def getaddrinfo_async(host: str, port: int) -> list[InetSocketAddress]:
    """Same as :func:`getaddrinfo`, without blocking the trio event loop."""
    family = allowed_gai_family()
    addr_info = await trio.socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
    return _to_addresses(addr_info)


def _to_addresses(addr_info: typing.Iterable[_TYPE_ADDRINFO]) -> list[InetSocketAddress]:
    # Order our address results so we try IPv6 addresses before IPv4
    ordered = sorted(
        addr_info,
        key=lambda x: 0
        if x[0] == socket.AF_INET6
        else (1 if x[0] == socket.AF_INET else 2),
    )

    addresses: list[InetSocketAddress] = []
    for af, _socktype, _proto, _canonname, sa in ordered:
        if af not in (socket.AF_INET, socket.AF_INET6):
            continue
        address = InetSocketAddress.from_sockaddr(af, sa)
        if address not in addresses:
            addresses.append(address)
    return addresses


def allowed_gai_family() -> socket.AddressFamily:
    """This function is designed to work in the context of
    getaddrinfo, where family=socket.AF_UNSPEC is the default and
    will perform a DNS search for both IPv6 and IPv4 records."""

    family = socket.AF_INET
    if HAS_IPV6:
        family = socket.AF_UNSPEC
    return family


def _has_ipv6(host: str) -> bool:
    """Returns True if the system can bind an IPv6 address."""
    sock = None
    has_ipv6 = False

    if socket.has_ipv6:
        # has_ipv6 returns true if cPython was compiled with IPv6 support.
        # It does not tell us if the system has IPv6 support enabled. To
        # determine that we must bind to an IPv6 address.
        # https://github.com/urllib3/urllib3/pull/611
        # https://bugs.python.org/issue658327
        try:
            sock = socket.socket(socket.AF_INET6)
            sock.bind((host, 0))
            has_ipv6 = True
        except Exception:
            pass

    if sock:
        sock.close()
    return has_ipv6


HAS_IPV6 = _has_ipv6("::1")
