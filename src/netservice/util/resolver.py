from __future__ import annotations

import logging
import random
import typing

import dns.asyncresolver
import dns.exception
import dns.name
import dns.resolver

from ..cancellable import Cancellable, check_cancelled, open_cancel_scope
from ..exceptions import ServiceLookupFailed
from ..target import Target

log = logging.getLogger(__name__)

#: Seconds to wait for an answer before giving up, across all nameservers.
DEFAULT_LIFETIME = 10.0


def srv_name(service: str, protocol: str, domain: str) -> str:
    """Builds the owner name of the SRV records for a service.

    >>> srv_name("ldap", "tcp", "example.com")
    '_ldap._tcp.example.com'
    """
    return f"_{service}._{protocol}.{domain}"


class Resolver(typing.Protocol):
    """Type stub for the service record resolver.

    Implementations look up the SRV records of ``_service._protocol.domain``
    and return the targets in the order they should be tried. Failures are
    raised as :class:`~netservice.exceptions.ServiceLookupFailed`, and a
    triggered ``cancellable`` as
    :class:`~netservice.exceptions.OperationCancelled`.
    """

    def lookup_service(
        self,
        service: str,
        protocol: str,
        domain: str,
        cancellable: Cancellable | None = None,
    ) -> typing.Sequence[Target]:
        ...

    async def lookup_service_async(
        self,
        service: str,
        protocol: str,
        domain: str,
        cancellable: Cancellable | None = None,
    ) -> typing.Sequence[Target]:
        ...


def sort_targets(
    targets: typing.Iterable[Target], rng: random.Random | None = None
) -> list[Target]:
    """
    Order targets the way RFC 2782 asks clients to try them: by ascending
    priority, and within a priority by a weighted random selection where
    targets with a weight of 0 have a very small chance of going first.
    """
    randint = rng.randint if rng is not None else random.randint

    by_priority: dict[int, list[Target]] = {}
    for target in targets:
        by_priority.setdefault(target.priority, []).append(target)

    ordered: list[Target] = []
    for priority in sorted(by_priority):
        # Zero weights first, so the running sum below gives them a chance.
        remaining = sorted(by_priority[priority], key=lambda t: t.weight != 0)
        while remaining:
            total = sum(t.weight for t in remaining)
            threshold = randint(0, total)
            running = 0
            for index, target in enumerate(remaining):
                running += target.weight
                if running >= threshold:
                    break
            ordered.append(remaining.pop(index))

    return ordered


class DNSResolver:
    """
    Service resolver backed by dnspython.

    :param lifetime:
        Seconds to wait for an answer before giving up, across all
        nameservers. Defaults to :data:`DEFAULT_LIFETIME`.

    :param nameservers:
        Nameserver addresses to query instead of the ones configured in
        ``/etc/resolv.conf`` (or the platform equivalent).

    Example:

    .. code-block:: python

        resolver = DNSResolver(lifetime=2.0)
        resolver.lookup_service("xmpp-client", "tcp", "jabber.org")
        # [Target(hostname='xmpp.jabber.org', port=5222, priority=0, weight=0)]
    """

    def __init__(
        self,
        lifetime: float | None = None,
        nameservers: typing.Sequence[str] | None = None,
    ) -> None:
        self.lifetime = DEFAULT_LIFETIME if lifetime is None else lifetime
        self.nameservers = list(nameservers) if nameservers else None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(lifetime={self.lifetime!r}, "
            f"nameservers={self.nameservers!r})"
        )

    def _configure(self, resolver: dns.resolver.Resolver) -> None:
        resolver.lifetime = self.lifetime
        if self.nameservers is not None:
            resolver.nameservers = self.nameservers

    def lookup_service(
        self,
        service: str,
        protocol: str,
        domain: str,
        cancellable: Cancellable | None = None,
    ) -> list[Target]:
        name = srv_name(service, protocol, domain)
        check_cancelled(cancellable)

        resolver = dns.resolver.Resolver()
        self._configure(resolver)

        log.debug("Looking up SRV records for %s", name)
        try:
            answer = resolver.resolve(name, "SRV")
        except dns.exception.DNSException as e:
            raise _lookup_error(name, e) from e

        # The blocking query can't be interrupted, so a cancellation that
        # arrived meanwhile is honored here.
        check_cancelled(cancellable)
        return _targets_from_answer(name, answer)

    async def lookup_service_async(
        self,
        service: str,
        protocol: str,
        domain: str,
        cancellable: Cancellable | None = None,
    ) -> list[Target]:
        name = srv_name(service, protocol, domain)

        resolver = dns.asyncresolver.Resolver()
        self._configure(resolver)

        log.debug("Looking up SRV records for %s", name)
        with open_cancel_scope(cancellable):
            try:
                answer = await resolver.resolve(name, "SRV")
            except dns.exception.DNSException as e:
                raise _lookup_error(name, e) from e

        return _targets_from_answer(name, answer)


def _lookup_error(name: str, error: dns.exception.DNSException) -> ServiceLookupFailed:
    if isinstance(error, dns.resolver.NXDOMAIN):
        reason = "No such domain"
    elif isinstance(error, dns.resolver.NoAnswer):
        reason = "No SRV records for this name"
    elif isinstance(error, dns.exception.Timeout):
        reason = "Timed out waiting for an answer"
    else:
        reason = str(error) or type(error).__name__
    return ServiceLookupFailed(name, reason)


def _targets_from_answer(name: str, answer: typing.Iterable[typing.Any]) -> list[Target]:
    targets = [
        Target(
            hostname=rdata.target.to_text(omit_final_dot=True),
            port=rdata.port,
            priority=rdata.priority,
            weight=rdata.weight,
        )
        for rdata in answer
        if rdata.target != dns.name.root
    ]

    # RFC 2782: a lone "." target means the service is decidedly not
    # available at this domain.
    if not targets:
        raise ServiceLookupFailed(name, "Service is not available at this domain")

    log.debug("Found %d target(s) for %s", len(targets), name)
    return sort_targets(targets)


_default_resolver: Resolver | None = None


def get_default_resolver() -> Resolver:
    """Returns the process wide resolver used when none is given explicitly."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = DNSResolver()
    return _default_resolver


def set_default_resolver(resolver: Resolver | None) -> None:
    """Replace the process wide resolver. ``None`` restores the dnspython one."""
    global _default_resolver
    _default_resolver = resolver
