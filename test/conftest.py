from __future__ import annotations

import logging
import typing

import pytest
from hypothesis import settings

from netservice.service import ServiceLocator
from netservice.util import resolver as resolver_module

from . import TARGETS, FakeNetwork, FakeResolver, inet

# Selected with --hypothesis-profile=ci
settings.register_profile("ci", max_examples=1000, deadline=None)


@pytest.fixture
def locator() -> ServiceLocator:
    return ServiceLocator("ldap", "tcp", "example.com")


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver(TARGETS)


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork(
        {
            "ldap1.example.com": [inet("192.0.2.1"), inet("2001:db8::1")],
            "ldap2.example.com": [inet("192.0.2.2")],
            "ldap3.example.com": [inet("192.0.2.3", 636)],
        }
    )


@pytest.fixture(autouse=True)
def no_default_resolver() -> typing.Generator[None, None, None]:
    """Make sure no test silently falls back to real DNS."""
    resolver_module.set_default_resolver(FakeResolver(error=AssertionError("real DNS")))
    yield
    resolver_module.set_default_resolver(None)


@pytest.fixture
def debug_logging(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG, logger="netservice")
    return caplog
