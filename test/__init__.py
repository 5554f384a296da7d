from __future__ import annotations

import socket
import typing

import trio

from netservice.address import InetSocketAddress
from netservice.cancellable import Cancellable, check_cancelled
from netservice.exceptions import OperationCancelled
from netservice.target import Target


def inet(host: str, port: int = 389) -> InetSocketAddress:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    return InetSocketAddress(family, host, port)


class _Sentinel:
    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name


TARGETS = [
    Target("ldap1.example.com", 389, priority=0, weight=10),
    Target("ldap2.example.com", 389, priority=0, weight=5),
    Target("ldap3.example.com", 636, priority=10, weight=0),
]

#: Script step: the pull is cancelled while in flight.
CANCELLED = _Sentinel("CANCELLED")
#: Script step: the pull never finishes on its own (async only).
HANG = _Sentinel("HANG")

_TYPE_STEP = typing.Any


class FakeResolver:
    """
    Resolver returning a fixed list of targets, or raising ``error`` when
    it is set. Counts how often it was asked.
    """

    def __init__(
        self,
        targets: typing.Iterable[Target] = (),
        error: Exception | None = None,
    ) -> None:
        self.targets = list(targets)
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    def lookup_service(
        self,
        service: str,
        protocol: str,
        domain: str,
        cancellable: Cancellable | None = None,
    ) -> list[Target]:
        self.calls.append((service, protocol, domain))
        check_cancelled(cancellable)
        if self.error is not None:
            raise self.error
        return list(self.targets)

    async def lookup_service_async(
        self,
        service: str,
        protocol: str,
        domain: str,
        cancellable: Cancellable | None = None,
    ) -> list[Target]:
        await trio.lowlevel.checkpoint()
        return self.lookup_service(service, protocol, domain, cancellable)


class FakeAddressEnumerator:
    """
    Replays a script, one step per pull. A step is an address to return,
    an exception to raise, a callable whose result is returned, or one of
    the :data:`CANCELLED` / :data:`HANG` sentinels. An empty script means
    end-of-sequence.
    """

    def __init__(self, steps: typing.Iterable[_TYPE_STEP]) -> None:
        self.steps = list(steps)
        self.pulls = 0

    def _step(self) -> _TYPE_STEP:
        self.pulls += 1
        if not self.steps:
            return None
        step = self.steps.pop(0)
        if step is CANCELLED:
            raise OperationCancelled()
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step()
        return step

    def next(self, cancellable: Cancellable | None = None) -> _TYPE_STEP:
        check_cancelled(cancellable)
        if self.steps and self.steps[0] is HANG:
            raise AssertionError("HANG steps only work with next_async()")
        return self._step()

    async def next_async(self, cancellable: Cancellable | None = None) -> _TYPE_STEP:
        await trio.lowlevel.checkpoint()
        check_cancelled(cancellable)
        if self.steps and self.steps[0] is HANG:
            self.steps.pop(0)
            await trio.sleep_forever()
        return self._step()


class FakeConnectable:
    def __init__(
        self, network: FakeNetwork, scheme: str, hostname: str, port: int
    ) -> None:
        self.network = network
        self.scheme = scheme
        self.hostname = hostname
        self.port = port

    def _enumerator(self, kind: str) -> FakeAddressEnumerator:
        self.network.enumerations.append((kind, self.hostname))
        enumerator = FakeAddressEnumerator(self.network.hosts.get(self.hostname, ()))
        self.network.enumerators.append(enumerator)
        return enumerator

    def enumerate(self) -> FakeAddressEnumerator:
        return self._enumerator("direct")

    def proxy_enumerate(self) -> FakeAddressEnumerator:
        return self._enumerator("proxy")


class FakeNetwork:
    """
    Connectable factory over scripted hosts. ``hosts`` maps a hostname to
    the script its enumerator replays.
    """

    def __init__(
        self, hosts: typing.Mapping[str, typing.Iterable[_TYPE_STEP]] | None = None
    ) -> None:
        self.hosts = {host: list(steps) for host, steps in (hosts or {}).items()}
        self.built: list[tuple[str, str, int]] = []
        self.enumerations: list[tuple[str, str]] = []
        self.enumerators: list[FakeAddressEnumerator] = []

    def __call__(self, scheme: str, hostname: str, port: int) -> FakeConnectable:
        self.built.append((scheme, hostname, port))
        return FakeConnectable(self, scheme, hostname, port)
