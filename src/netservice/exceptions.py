from __future__ import annotations

import typing

if typing.TYPE_CHECKING:
    from .target import Target

_TYPE_REDUCE_RESULT = typing.Tuple[
    typing.Callable[..., object], typing.Tuple[object, ...]
]

# Base Exceptions


class NetServiceError(Exception):
    """Base exception used by this module."""

    pass


class DeferrableError(NetServiceError):
    """Base exception for failures that only affect a single target.

    An enumerator holds on to the first of these and only raises it once
    every target has been tried without producing an address.
    """

    pass


# Leaf Exceptions


class ServiceLookupFailed(NetServiceError):
    """Raised when the service record lookup for a locator fails.

    :param str srv_name: The ``_service._protocol.domain`` name looked up.
    :param str reason: Human readable cause.
    """

    def __init__(self, srv_name: str, reason: str) -> None:
        self.srv_name = srv_name
        self.reason = reason
        super().__init__(f"Error resolving '{srv_name}': {reason}")

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.srv_name, self.reason)


class LocationParseError(DeferrableError, ValueError):
    """Raised when a host/port pair cannot be turned into a connectable."""

    def __init__(self, location: str) -> None:
        message = f"Failed to parse: {location}"
        super().__init__(message)

        self.location = location

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.location,)


class InvalidHostname(DeferrableError, ValueError):
    """Raised when a hostname can't be converted to its ASCII form."""

    def __init__(self, hostname: str, reason: str | None = None) -> None:
        self.hostname = hostname
        self.reason = reason
        message = f"Received invalid hostname '{hostname}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.hostname, self.reason)


class ProxySchemeUnknown(LocationParseError):
    """ProxyAddressEnumerator does not support the supplied scheme"""

    def __init__(self, scheme: str | None) -> None:
        if scheme is None:
            message = (
                "Proxy URL had no scheme, should start with one of http://, "
                "https://, socks4://, socks4a://, socks5:// or socks5h://"
            )
        else:
            message = f"Not supported proxy scheme {scheme}"
        super().__init__(message)
        self.scheme = scheme

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.scheme,)


class PerHostEnumerationFailed(DeferrableError):
    """Raised when the addresses of a single target can't be enumerated."""

    # The original error is also available as __cause__.
    original_error: Exception | None

    def __init__(
        self, target: Target | str, original_error: Exception | None = None
    ) -> None:
        self.target = target
        self.original_error = original_error
        message = f"Failed to enumerate addresses for {target}"
        if original_error is not None:
            message = f"{message} (Caused by {original_error!r})"
        super().__init__(message)

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.target, None)


class OperationCancelled(NetServiceError):
    """Raised when a cancellation token is triggered during a call."""

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message)


class ConcurrentUseViolation(NetServiceError, RuntimeError):
    """Raised when a second request is issued on an enumerator before the
    previous one has completed. This is a programming error."""

    pass
