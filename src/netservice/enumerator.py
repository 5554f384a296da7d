from __future__ import annotations

import enum
import logging
import typing
from types import TracebackType

from .cancellable import Cancellable, check_cancelled
from .connectable import HostConnectable
from .exceptions import (
    ConcurrentUseViolation,
    DeferrableError,
    OperationCancelled,
    PerHostEnumerationFailed,
)
from .target import Target
from .util.hostname import normalize_hostname

if typing.TYPE_CHECKING:
    from typing_extensions import Self

    from ._base_enumerator import AddressEnumerator, ConnectableFactory
    from .address import SocketAddress
    from .service import ServiceLocator
    from .util.resolver import Resolver

log = logging.getLogger(__name__)


class EnumeratorState(enum.Enum):
    """States a single request on a :class:`ServiceAddressEnumerator` goes through.

    ``RESOLVING_TARGETS`` and ``PULLING_SUB_ENUMERATOR`` are the only states
    that block (or suspend, from a trio task).
    """

    IDLE = "idle"
    RESOLVING_TARGETS = "resolving-targets"
    ADVANCING_TARGET = "advancing-target"
    PULLING_SUB_ENUMERATOR = "pulling-sub-enumerator"
    COMPLETED = "completed"


class ServiceAddressEnumerator:
    """
    Walks the targets of a :class:`~netservice.service.ServiceLocator` in
    order and yields the socket addresses of each one in turn.

    Addresses can be pulled with :meth:`next` (blocking) or
    :meth:`next_async` (from a trio task). Both return ``None`` at the end of
    the sequence and go through the exact same state transitions, so they
    can be mixed freely on one enumerator as long as calls don't overlap.

    A target whose hostname is invalid, or whose addresses can't be
    enumerated, is skipped. The first such error is remembered and raised
    only if the whole sequence ends without a single address having
    been produced. A failed service lookup is raised right away.

    Enumerators are usually created with
    :meth:`ServiceLocator.create_enumerator() <netservice.service.ServiceLocator.create_enumerator>`.

    :param locator:
        The service to enumerate. Its target cache is shared with every
        other enumerator built from it.
    :param resolver:
        Used to look up the targets if the locator has none cached yet.
    :param connectable_factory:
        Called as ``factory(scheme, hostname, port)`` to build the
        connectable of each target. Defaults to
        :class:`~netservice.connectable.HostConnectable`.
    :param proxy_aware:
        Use each connectable's ``proxy_enumerate()`` instead of its
        ``enumerate()``.
    """

    def __init__(
        self,
        locator: ServiceLocator,
        resolver: Resolver,
        connectable_factory: ConnectableFactory | None = None,
        proxy_aware: bool = False,
    ) -> None:
        self.locator = locator
        self.resolver = resolver
        self.connectable_factory: ConnectableFactory = (
            connectable_factory or HostConnectable
        )
        self.proxy_aware = proxy_aware
        self.state = EnumeratorState.IDLE

        self._targets: tuple[Target, ...] | None = None
        self._cursor = 0
        self._current_target: Target | None = None
        self._addr_enum: AddressEnumerator | None = None
        self._error: DeferrableError | None = None
        self._has_produced = False
        self._pending = False
        self._closed = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.locator!r}, proxy_aware={self.proxy_aware}, "
            f"state={self.state.value})"
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> typing.Literal[False]:
        self.close()
        # Return False to re-raise any potential exceptions
        return False

    def __iter__(self) -> Self:
        return self

    def __next__(self) -> SocketAddress:
        address = self.next()
        if address is None:
            raise StopIteration
        return address

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> SocketAddress:
        address = await self.next_async()
        if address is None:
            raise StopAsyncIteration
        return address

    @property
    def deferred_error(self) -> DeferrableError | None:
        """The per-target error that will be raised at the end, if any."""
        return self._error

    def close(self) -> None:
        """
        Release the active sub-enumerator and forget any deferred error.
        Every later request returns None. The locator's target cache is left
        untouched.
        """
        self._closed = True
        self._addr_enum = None
        self._current_target = None
        self._error = None
        self._cursor = len(self._targets) if self._targets is not None else 0

    def next(self, cancellable: Cancellable | None = None) -> SocketAddress | None:
        """
        Return the next address, blocking as needed, or None once every
        target has been exhausted.

        :raises ServiceLookupFailed:
            If the targets had to be looked up and the lookup failed.
        :raises OperationCancelled:
            If ``cancellable`` was triggered.
        :raises DeferrableError:
            At the end of the sequence, if no address was produced at all
            and at least one target was skipped because of an error.
        :raises ConcurrentUseViolation:
            If another request on this enumerator hasn't completed yet.
        """
        self._begin_request()
        try:
            state = self._initial_state()
            while True:
                self.state = state

                if state is EnumeratorState.RESOLVING_TARGETS:
                    check_cancelled(cancellable)
                    self._set_targets(
                        self.locator.lookup_targets(self.resolver, cancellable)
                    )
                    state = EnumeratorState.ADVANCING_TARGET

                elif state is EnumeratorState.ADVANCING_TARGET:
                    state = self._advance_target()

                elif state is EnumeratorState.PULLING_SUB_ENUMERATOR:
                    assert self._addr_enum is not None
                    check_cancelled(cancellable)
                    try:
                        address = self._addr_enum.next(cancellable)
                    except (OperationCancelled, ConcurrentUseViolation):
                        raise
                    except Exception as e:
                        state = self._sub_enumerator_failed(e)
                        continue

                    if address is not None:
                        return self._produced(address)
                    state = self._sub_enumerator_exhausted()

                else:
                    return self._complete()
        finally:
            self._end_request()

    async def next_async(
        self, cancellable: Cancellable | None = None
    ) -> SocketAddress | None:
        """
        Same as :meth:`next`, from a trio task. Only the service lookup and
        the pull from the current target's enumerator suspend.

        If the task is cancelled by trio, :class:`trio.Cancelled` propagates
        as usual and the enumerator is left ready for another request.
        """
        self._begin_request()
        try:
            state = self._initial_state()
            while True:
                self.state = state

                if state is EnumeratorState.RESOLVING_TARGETS:
                    check_cancelled(cancellable)
                    self._set_targets(
                        await self.locator.lookup_targets_async(
                            self.resolver, cancellable
                        )
                    )
                    state = EnumeratorState.ADVANCING_TARGET

                elif state is EnumeratorState.ADVANCING_TARGET:
                    state = self._advance_target()

                elif state is EnumeratorState.PULLING_SUB_ENUMERATOR:
                    assert self._addr_enum is not None
                    check_cancelled(cancellable)
                    try:
                        address = await self._addr_enum.next_async(cancellable)
                    except (OperationCancelled, ConcurrentUseViolation):
                        raise
                    except Exception as e:
                        state = self._sub_enumerator_failed(e)
                        continue

                    if address is not None:
                        return self._produced(address)
                    state = self._sub_enumerator_exhausted()

                else:
                    return self._complete()
        finally:
            self._end_request()

    # The transitions below are shared by next() and next_async(). None of
    # them may block.

    def _begin_request(self) -> None:
        if self._pending:
            raise ConcurrentUseViolation(
                f"{self!r} already has a request outstanding"
            )
        self._pending = True

    def _end_request(self) -> None:
        self._pending = False
        self.state = EnumeratorState.IDLE

    def _initial_state(self) -> EnumeratorState:
        if self._closed:
            return EnumeratorState.COMPLETED
        if self._targets is None:
            return EnumeratorState.RESOLVING_TARGETS
        return EnumeratorState.ADVANCING_TARGET

    def _set_targets(self, targets: tuple[Target, ...]) -> None:
        log.debug("Enumerating %d target(s) of %s", len(targets), self.locator.srv_name)
        self._targets = targets
        self._cursor = 0

    def _advance_target(self) -> EnumeratorState:
        if self._addr_enum is not None:
            return EnumeratorState.PULLING_SUB_ENUMERATOR

        assert self._targets is not None
        if self._cursor >= len(self._targets):
            return EnumeratorState.COMPLETED

        target = self._targets[self._cursor]
        self._cursor += 1
        self._current_target = target

        try:
            hostname = normalize_hostname(target.hostname)
            connectable = self.connectable_factory(
                self.locator.scheme, hostname, target.port
            )
        except DeferrableError as e:
            log.debug("Skipping target %s: %s", target, e)
            self._defer(e)
            return EnumeratorState.ADVANCING_TARGET

        if self.proxy_aware:
            self._addr_enum = connectable.proxy_enumerate()
        else:
            self._addr_enum = connectable.enumerate()
        return EnumeratorState.PULLING_SUB_ENUMERATOR

    def _sub_enumerator_failed(self, error: Exception) -> EnumeratorState:
        target = self._current_target
        if not isinstance(error, DeferrableError):
            wrapped = PerHostEnumerationFailed(target or "unknown target", error)
            wrapped.__cause__ = error
            error = wrapped
        log.debug("Giving up on target %s: %s", target, error)
        self._defer(error)
        return self._sub_enumerator_exhausted()

    def _sub_enumerator_exhausted(self) -> EnumeratorState:
        self._addr_enum = None
        self._current_target = None
        return EnumeratorState.ADVANCING_TARGET

    def _defer(self, error: DeferrableError) -> None:
        # Only the first error is reported.
        if self._error is None:
            self._error = error
        else:
            log.debug("Discarding error, one is already deferred: %s", error)

    def _produced(self, address: SocketAddress) -> SocketAddress:
        self.state = EnumeratorState.COMPLETED
        self._has_produced = True
        return address

    def _complete(self) -> None:
        self.state = EnumeratorState.COMPLETED
        error, self._error = self._error, None
        if error is None:
            return None

        # Partial failures stay invisible once any target has worked.
        if self._has_produced:
            log.debug("Dropping deferred error for %s: %s", self.locator.srv_name, error)
            return None

        log.debug("No address found for %s, raising %r", self.locator.srv_name, error)
        raise error
