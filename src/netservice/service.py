from __future__ import annotations

import logging
import threading
import typing

import trio

from .cancellable import Cancellable
from .enumerator import ServiceAddressEnumerator
from .exceptions import ServiceLookupFailed
from .target import Target
from .util.resolver import Resolver, get_default_resolver, srv_name

if typing.TYPE_CHECKING:
    from ._base_enumerator import ConnectableFactory

log = logging.getLogger(__name__)

#: Seconds a trio task waits on an in-flight lookup before checking for
#: cancellation again.
LOOKUP_LOCK_POLL_INTERVAL = 0.05

_TYPE_SCHEME_OBSERVER = typing.Callable[["ServiceLocator"], None]


class ServiceLocator:
    """
    Names a network service by its service, protocol and domain, e.g.
    ``("ldap", "tcp", "example.com")``, and turns it into socket addresses.

    The targets of the service are looked up once, the first time any
    enumerator built from this locator needs them, and are shared by every
    enumerator built from it afterwards.

    :param service:
        Service name, e.g. ``"ldap"``.
    :param protocol:
        Network protocol, e.g. ``"tcp"``.
    :param domain:
        Network domain, e.g. ``"example.com"``.
    :param scheme:
        URI scheme used to reach the targets. Defaults to ``service``.

    Example:

    .. code-block:: python

        import netservice

        locator = netservice.ServiceLocator("xmpp-client", "tcp", "jabber.org")
        for address in locator.enumerate():
            print(address)
        # [2001:db8::1]:5222
        # 192.0.2.10:5222
    """

    def __init__(
        self,
        service: str,
        protocol: str,
        domain: str,
        scheme: str | None = None,
    ) -> None:
        self._service = service
        self._protocol = protocol
        self._domain = domain
        self._scheme = scheme
        self._scheme_observers: list[_TYPE_SCHEME_OBSERVER] = []

        self._targets: tuple[Target, ...] | None = None
        # Held across the resolver call by blocking callers and trio tasks alike.
        self._lookup_lock = threading.Lock()
        # Guards the compare-and-set of the cache itself.
        self._store_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.srv_name!r})"

    @property
    def service(self) -> str:
        return self._service

    @property
    def protocol(self) -> str:
        return self._protocol

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def srv_name(self) -> str:
        return srv_name(self._service, self._protocol, self._domain)

    @property
    def scheme(self) -> str:
        """URI scheme used to reach the targets, ``service`` unless set."""
        if self._scheme is not None:
            return self._scheme
        return self._service

    @scheme.setter
    def scheme(self, value: str | None) -> None:
        self._scheme = value
        for observer in list(self._scheme_observers):
            observer(self)

    def add_scheme_observer(self, observer: _TYPE_SCHEME_OBSERVER) -> None:
        """Call ``observer(locator)`` every time :attr:`scheme` is assigned."""
        self._scheme_observers.append(observer)

    def remove_scheme_observer(self, observer: _TYPE_SCHEME_OBSERVER) -> None:
        self._scheme_observers.remove(observer)

    @property
    def targets(self) -> tuple[Target, ...] | None:
        """The cached targets, or None if they haven't been looked up yet."""
        return self._targets

    def lookup_targets(
        self, resolver: Resolver, cancellable: Cancellable | None = None
    ) -> tuple[Target, ...]:
        """
        Return the cached targets, looking them up with ``resolver`` first
        if needed. Concurrent callers wait for a single lookup.

        :raises ServiceLookupFailed:
            If the lookup fails. Nothing is cached, so a later call will
            look up again.
        """
        targets = self._targets
        if targets is not None:
            return targets

        with self._lookup_lock:
            if self._targets is None:
                try:
                    found = resolver.lookup_service(
                        self._service, self._protocol, self._domain, cancellable
                    )
                except OSError as e:
                    raise ServiceLookupFailed(self.srv_name, str(e)) from e
                self._store_targets(found)
            assert self._targets is not None
            return self._targets

    async def lookup_targets_async(
        self, resolver: Resolver, cancellable: Cancellable | None = None
    ) -> tuple[Target, ...]:
        """
        Same as :meth:`lookup_targets`, from a trio task. Waits for a lookup
        already in flight in either mode instead of issuing a second one.
        """
        targets = self._targets
        if targets is not None:
            return targets

        await self._acquire_lookup_lock()
        try:
            if self._targets is None:
                try:
                    found = await resolver.lookup_service_async(
                        self._service, self._protocol, self._domain, cancellable
                    )
                except OSError as e:
                    raise ServiceLookupFailed(self.srv_name, str(e)) from e
                self._store_targets(found)
            assert self._targets is not None
            return self._targets
        finally:
            self._lookup_lock.release()

    async def _acquire_lookup_lock(self) -> None:
        # A blocking caller on another thread may hold the lock. Wait for it
        # from a worker thread, in bounded slices so cancellation gets through.
        while not self._lookup_lock.acquire(blocking=False):
            acquired = await trio.to_thread.run_sync(
                self._lookup_lock.acquire, True, LOOKUP_LOCK_POLL_INTERVAL
            )
            if acquired:
                return

    def _store_targets(self, found: typing.Sequence[Target]) -> None:
        if not found:
            raise ServiceLookupFailed(self.srv_name, "No targets found")

        with self._store_lock:
            # First writer wins if a blocking and an async lookup raced.
            if self._targets is None:
                self._targets = tuple(found)
                log.debug(
                    "Cached %d target(s) for %s", len(self._targets), self.srv_name
                )

    def create_enumerator(
        self,
        proxy_aware: bool = False,
        resolver: Resolver | None = None,
        connectable_factory: ConnectableFactory | None = None,
    ) -> ServiceAddressEnumerator:
        """
        Build a new enumerator over the addresses of this service.

        :param proxy_aware:
            Ask each target for its proxy-routing enumerator instead of its
            direct one.
        :param resolver:
            Resolver used if the targets still need to be looked up.
            Defaults to :func:`~netservice.util.resolver.get_default_resolver`.
        :param connectable_factory:
            Called as ``factory(scheme, hostname, port)`` for each target.
            Defaults to :class:`~netservice.connectable.HostConnectable`.
        """
        if resolver is None:
            resolver = get_default_resolver()
        return ServiceAddressEnumerator(
            self,
            resolver,
            connectable_factory=connectable_factory,
            proxy_aware=proxy_aware,
        )

    def enumerate(self, **kw: typing.Any) -> ServiceAddressEnumerator:
        return self.create_enumerator(proxy_aware=False, **kw)

    def proxy_enumerate(self, **kw: typing.Any) -> ServiceAddressEnumerator:
        return self.create_enumerator(proxy_aware=True, **kw)
