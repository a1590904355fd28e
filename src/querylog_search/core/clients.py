"""Persistent client lookup.

Resolves a ClientID or client IP to a display name without touching the log
records themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from ipaddress import IPv4Network, IPv6Network, ip_address, ip_network
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from .models import ClientInfo

logger = logging.getLogger(__name__)


class ClientFinder(Protocol):
    """Callable that resolves (client_id, ip) to a known client."""

    def __call__(self, client_id: str, ip: str) -> ClientInfo | None:
        ...


def no_clients(client_id: str, ip: str) -> ClientInfo | None:
    """ClientFinder that knows no clients."""
    return None


class ClientRecord(BaseModel):
    name: str = Field(min_length=1, description="Display name of the client.")
    ids: list[str] = Field(
        default_factory=list, description="ClientIDs, IP addresses or CIDR networks."
    )


class ClientsFile(BaseModel):
    clients: list[ClientRecord] = Field(default_factory=list)


class ClientIndex:
    """Read-only index of persistent clients.

    Lookup order: ClientID, exact IP, then the first network containing the IP.
    """

    def __init__(self, clients: Iterable[ClientInfo] = ()) -> None:
        self._by_id: dict[str, ClientInfo] = {}
        self._by_ip: dict[str, ClientInfo] = {}
        self._subnets: list[tuple[IPv4Network | IPv6Network, ClientInfo]] = []

        for client in clients:
            for raw_id in client.ids:
                self._add(raw_id.strip(), client)

    def _add(self, raw_id: str, client: ClientInfo) -> None:
        if not raw_id:
            raise ValueError(f"Client {client.name!r} has an empty id")

        try:
            self._by_ip.setdefault(str(ip_address(raw_id)), client)
            return
        except ValueError:
            pass

        if "/" in raw_id:
            try:
                net = ip_network(raw_id, strict=False)
            except ValueError as exc:
                raise ValueError(f"Client {client.name!r} has an invalid network {raw_id!r}") from exc
            self._subnets.append((net, client))
            return

        self._by_id.setdefault(raw_id, client)

    def find(self, client_id: str, ip: str) -> ClientInfo | None:
        """Return the client for client_id or ip, or None if unknown."""
        if client_id:
            client = self._by_id.get(client_id)
            if client is not None:
                return client

        if not ip:
            return None

        try:
            addr = ip_address(ip)
        except ValueError:
            return None

        client = self._by_ip.get(str(addr))
        if client is not None:
            return client

        for net, client in self._subnets:
            if addr.version == net.version and addr in net:
                return client
        return None

    __call__ = find


def load_clients(path: str | Path) -> ClientIndex:
    """Load a clients JSON file into a ClientIndex."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Clients file not found: {p}")

    try:
        data = ClientsFile.model_validate_json(p.read_bytes())
    except ValidationError as exc:
        raise ValueError(f"Invalid clients file {p}: {exc}") from exc

    index = ClientIndex(ClientInfo(name=c.name, ids=tuple(c.ids)) for c in data.clients)
    logger.debug("Loaded %d clients from %s", len(data.clients), p)
    return index
