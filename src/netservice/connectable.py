from __future__ import annotations

import logging
import typing

from .address import InetSocketAddress, ProxyAddress, SocketAddress
from .cancellable import Cancellable, check_cancelled, open_cancel_scope
from .exceptions import LocationParseError, PerHostEnumerationFailed
from .util.connection import getaddrinfo, getaddrinfo_async
from .util.proxy import proxy_for
from .util.url import Url

log = logging.getLogger(__name__)


class HostConnectable:
    """
    A single host and port, as named by one service target.

    :param scheme:
        URI scheme the host is reached with. Only used to pick a proxy.
    :param hostname:
        ASCII hostname or IP literal.
    :param port:
        Port number, 1 to 65535.
    :param proxies:
        Proxy mapping handed to :func:`~netservice.util.proxy.proxy_for`.
        Defaults to the environment.
    """

    def __init__(
        self,
        scheme: str,
        hostname: str,
        port: int,
        proxies: typing.Mapping[str, str] | None = None,
    ) -> None:
        if not hostname:
            raise LocationParseError(f"{scheme}://:{port}")
        if not 0 < port <= 65535:
            raise LocationParseError(f"{scheme}://{hostname}:{port}")

        self.scheme = scheme
        self.hostname = hostname
        self.port = port
        self.proxies = proxies

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.scheme!r}, {self.hostname!r}, {self.port!r})"

    def enumerate(self) -> HostAddressEnumerator:
        return HostAddressEnumerator(self.hostname, self.port)

    def proxy_enumerate(self) -> ProxyAddressEnumerator:
        return ProxyAddressEnumerator(
            self.scheme, self.hostname, self.port, proxies=self.proxies
        )


class HostAddressEnumerator:
    """
    Resolves a host once, on the first pull, and hands out its addresses
    one at a time.
    """

    def __init__(self, hostname: str, port: int) -> None:
        self.hostname = hostname
        self.port = port
        self._addresses: list[InetSocketAddress] | None = None
        self._index = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hostname!r}, {self.port!r})"

    def next(self, cancellable: Cancellable | None = None) -> InetSocketAddress | None:
        if self._addresses is None:
            check_cancelled(cancellable)
            try:
                addresses = getaddrinfo(self.hostname, self.port)
            except (OSError, UnicodeError) as e:
                raise PerHostEnumerationFailed(self._location, e) from e
            check_cancelled(cancellable)
            self._set_addresses(addresses)

        return self._pop()

    async def next_async(
        self, cancellable: Cancellable | None = None
    ) -> InetSocketAddress | None:
        if self._addresses is None:
            with open_cancel_scope(cancellable):
                try:
                    addresses = await getaddrinfo_async(self.hostname, self.port)
                except (OSError, UnicodeError) as e:
                    raise PerHostEnumerationFailed(self._location, e) from e
            self._set_addresses(addresses)

        return self._pop()

    @property
    def _location(self) -> str:
        if ":" in self.hostname:
            return f"[{self.hostname}]:{self.port}"
        return f"{self.hostname}:{self.port}"

    def _set_addresses(self, addresses: list[InetSocketAddress]) -> None:
        if not addresses:
            raise PerHostEnumerationFailed(
                self._location, OSError("getaddrinfo returns an empty list")
            )
        log.debug("Resolved %s to %d address(es)", self._location, len(addresses))
        self._addresses = addresses

    def _pop(self) -> InetSocketAddress | None:
        assert self._addresses is not None
        if self._index >= len(self._addresses):
            return None
        address = self._addresses[self._index]
        self._index += 1
        return address


class ProxyAddressEnumerator:
    """
    Like :class:`HostAddressEnumerator`, but when a proxy is configured for
    the destination it yields :class:`~netservice.address.ProxyAddress`
    values for the proxy's addresses instead.
    """

    def __init__(
        self,
        scheme: str,
        hostname: str,
        port: int,
        proxies: typing.Mapping[str, str] | None = None,
    ) -> None:
        self.scheme = scheme
        self.hostname = hostname
        self.port = port
        self.proxies = proxies
        self._proxy: Url | None = None
        self._delegate: HostAddressEnumerator | None = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.scheme!r}, {self.hostname!r}, {self.port!r})"
        )

    def _get_delegate(self) -> HostAddressEnumerator:
        if self._delegate is None:
            self._proxy = proxy_for(self.scheme, self.hostname, self.proxies)
            if self._proxy is None:
                self._delegate = HostAddressEnumerator(self.hostname, self.port)
            else:
                log.debug(
                    "Routing %s://%s:%d through proxy %s",
                    self.scheme,
                    self.hostname,
                    self.port,
                    self._proxy,
                )
                assert self._proxy.host is not None and self._proxy.port is not None
                self._delegate = HostAddressEnumerator(
                    self._proxy.host, self._proxy.port
                )
        return self._delegate

    def _wrap(self, address: InetSocketAddress | None) -> SocketAddress | None:
        if address is None or self._proxy is None:
            return address
        assert self._proxy.scheme is not None
        return ProxyAddress(
            address=address,
            protocol=self._proxy.scheme,
            destination_protocol=self.scheme,
            destination_hostname=self.hostname,
            destination_port=self.port,
            username=self._proxy.username,
            password=self._proxy.password,
        )

    def next(self, cancellable: Cancellable | None = None) -> SocketAddress | None:
        return self._wrap(self._get_delegate().next(cancellable))

    async def next_async(
        self, cancellable: Cancellable | None = None
    ) -> SocketAddress | None:
        return self._wrap(await self._get_delegate().next_async(cancellable))
