"""Forward name lookups used to observe whether churned services are visible in DNS."""

from __future__ import annotations

import socket
from typing import List, Protocol

_NOT_FOUND_CODES = frozenset(
    code
    for code in (getattr(socket, "EAI_NONAME", None), getattr(socket, "EAI_NODATA", None))
    if code is not None
)


class NameNotFound(LookupError):
    """The resolver answered definitively that the name does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"no such host: {name}")
        self.name = name


class Resolver(Protocol):
    def resolve(self, name: str) -> List[str]:
        """Return the addresses for ``name``; raise ``NameNotFound`` if it does not exist."""


class SystemResolver:
    """Resolve names through the host resolver (``/etc/resolv.conf`` search path included)."""

    def resolve(self, name: str) -> List[str]:
        try:
            infos = socket.getaddrinfo(name, None, proto=socket.IPPROTO_TCP)
        except socket.gaierror as exc:
            if exc.errno in _NOT_FOUND_CODES:
                raise NameNotFound(name) from exc
            raise
        addresses: List[str] = []
        for _family, _type, _proto, _canonname, sockaddr in infos:
            address = sockaddr[0]
            if address not in addresses:
                addresses.append(address)
        return addresses


__all__ = ["NameNotFound", "Resolver", "SystemResolver"]
