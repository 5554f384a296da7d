"""
Hypothesis property-based tests for service address enumeration.
"""
from __future__ import annotations

import typing

import trio
from hypothesis import given, settings, strategies as st

from netservice.exceptions import DeferrableError
from netservice.service import ServiceLocator
from netservice.target import Target

from . import FakeNetwork, FakeResolver, inet

# Strategy for the addresses of one host, optionally ending in an error
addresses = st.lists(
    st.integers(min_value=1, max_value=254).map(lambda n: inet(f"192.0.2.{n}")),
    max_size=3,
)
host_scripts = st.tuples(addresses, st.booleans()).map(
    lambda s: s[0] + [OSError("unreachable")] if s[1] else s[0]
)

# Strategy for one target: a usable host with its script, or an invalid name
targets = st.one_of(
    host_scripts.map(lambda script: (True, script)),
    st.just((False, [])),
)

services = st.lists(targets, min_size=1, max_size=6)


def build(
    service: list[tuple[bool, list[typing.Any]]]
) -> tuple[ServiceLocator, FakeResolver, FakeNetwork]:
    target_list = []
    hosts = {}
    for index, (valid, script) in enumerate(service):
        hostname = f"h{index}.example.com" if valid else f"bad..h{index}.example.com"
        target_list.append(Target(hostname, 389))
        hosts[hostname] = script
    return (
        ServiceLocator("ldap", "tcp", "example.com"),
        FakeResolver(target_list),
        FakeNetwork(hosts),
    )


def expected_addresses(service: list[tuple[bool, list[typing.Any]]]) -> list[typing.Any]:
    return [
        step
        for valid, script in service
        if valid
        for step in script
        if not isinstance(step, Exception)
    ]


def drain_blocking(
    service: list[tuple[bool, list[typing.Any]]]
) -> tuple[list[typing.Any], type[BaseException] | None]:
    locator, resolver, network = build(service)
    enumerator = locator.create_enumerator(resolver=resolver, connectable_factory=network)
    produced = []
    try:
        for address in enumerator:
            produced.append(address)
    except DeferrableError as e:
        return produced, type(e)
    return produced, None


def drain_async(
    service: list[tuple[bool, list[typing.Any]]]
) -> tuple[list[typing.Any], type[BaseException] | None]:
    locator, resolver, network = build(service)
    enumerator = locator.create_enumerator(resolver=resolver, connectable_factory=network)
    produced: list[typing.Any] = []

    async def main() -> None:
        async for address in enumerator:
            produced.append(address)

    try:
        trio.run(main)
    except DeferrableError as e:
        return produced, type(e)
    return produced, None


class TestEnumeratorProperties:
    @given(service=services)
    def test_addresses_follow_target_order(
        self, service: list[tuple[bool, list[typing.Any]]]
    ) -> None:
        produced, error = drain_blocking(service)

        assert produced == expected_addresses(service)

    @given(service=services)
    def test_error_only_without_addresses(
        self, service: list[tuple[bool, list[typing.Any]]]
    ) -> None:
        produced, error = drain_blocking(service)

        failed = any(
            not valid or any(isinstance(step, Exception) for step in script)
            for valid, script in service
        )
        if produced:
            assert error is None
        else:
            assert (error is not None) == failed

    @given(service=services)
    @settings(deadline=None)
    def test_blocking_and_async_agree(
        self, service: list[tuple[bool, list[typing.Any]]]
    ) -> None:
        assert drain_blocking(service) == drain_async(service)
