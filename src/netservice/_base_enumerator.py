from __future__ import annotations

import typing

if typing.TYPE_CHECKING:
    from typing_extensions import Protocol

    from .address import SocketAddress
    from .cancellable import Cancellable

    class AddressEnumerator(Protocol):
        """
        Produces socket addresses one at a time, either by blocking or from
        a trio task. Both forms return ``None`` once the sequence is over
        and raise on failure.
        """

        def next(
            self, cancellable: Cancellable | None = None
        ) -> SocketAddress | None:
            ...

        async def next_async(
            self, cancellable: Cancellable | None = None
        ) -> SocketAddress | None:
            ...

    class Connectable(Protocol):
        """Something that can be turned into a sequence of socket addresses."""

        def enumerate(self) -> AddressEnumerator:
            ...

        def proxy_enumerate(self) -> AddressEnumerator:
            ...

    class ConnectableFactory(Protocol):
        def __call__(self, scheme: str, hostname: str, port: int) -> Connectable:
            ...
