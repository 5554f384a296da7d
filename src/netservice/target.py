from __future__ import annotations

import typing


class Target(typing.NamedTuple):
    """
    A single candidate host for a service, as described by one SRV record.

    Targets are produced and ordered by a :class:`~netservice.util.resolver.Resolver`.
    Enumerators walk them in the order they are given and never re-sort them.
    """

    hostname: str
    port: int
    priority: int = 0
    weight: int = 0

    def __str__(self) -> str:
        if ":" in self.hostname:
            return f"[{self.hostname}]:{self.port}"
        return f"{self.hostname}:{self.port}"
