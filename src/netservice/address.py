from __future__ import annotations

import socket
import typing

_TYPE_SOCKADDR = typing.Union[
    typing.Tuple[str, int], typing.Tuple[str, int, int, int]
]


class InetSocketAddress(typing.NamedTuple):
    """An IPv4 or IPv6 socket address, ready to be passed to ``connect()``."""

    family: socket.AddressFamily
    host: str
    port: int
    flowinfo: int = 0
    scope_id: int = 0

    @classmethod
    def from_sockaddr(
        cls, family: socket.AddressFamily, sockaddr: _TYPE_SOCKADDR
    ) -> InetSocketAddress:
        """Build an address from one ``getaddrinfo()`` result."""
        if family == socket.AF_INET6 and len(sockaddr) == 4:
            host, port, flowinfo, scope_id = sockaddr  # type: ignore[misc]
            return cls(family, host, port, flowinfo, scope_id)
        return cls(family, sockaddr[0], sockaddr[1])

    @property
    def sockaddr(self) -> _TYPE_SOCKADDR:
        if self.family == socket.AF_INET6:
            return (self.host, self.port, self.flowinfo, self.scope_id)
        return (self.host, self.port)

    def __str__(self) -> str:
        if self.family == socket.AF_INET6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class ProxyAddress(typing.NamedTuple):
    """
    Address of a proxy, along with the destination the proxy should be
    asked to reach on the caller's behalf.
    """

    address: InetSocketAddress
    protocol: str
    destination_protocol: str
    destination_hostname: str
    destination_port: int
    username: str | None = None
    password: str | None = None

    @property
    def family(self) -> socket.AddressFamily:
        return self.address.family

    @property
    def sockaddr(self) -> _TYPE_SOCKADDR:
        return self.address.sockaddr

    def __str__(self) -> str:
        return (
            f"{self.protocol}://{self.address} -> "
            f"{self.destination_protocol}://{self.destination_hostname}:{self.destination_port}"
        )


SocketAddress = typing.Union[InetSocketAddress, ProxyAddress]
