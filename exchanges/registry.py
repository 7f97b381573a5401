"""Venue registry — protocol key to :class:`ExchangeApi` implementation.

New venues register with :func:`register` and become available to
:func:`hydrate_exchanges` without changes here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, TypeVar

import structlog

from config.settings import Settings
from config.venues import VenueSettings
from core.errors import ExchangeError
from data.http_client import LoggingClient
from exchanges.base import ExchangeApi
from models.order import OrderIntent
from web3_infra.chain_client import ChainClient

logger = structlog.get_logger("exchanges.registry")

A = TypeVar("A", bound=type[ExchangeApi])

_REGISTRY: dict[str, type[ExchangeApi]] = {}


def register(protocol: str) -> Callable[[A], A]:
    """Class decorator adding a venue implementation under *protocol*."""

    def decorator(cls: A) -> A:
        existing = _REGISTRY.get(protocol)
        if existing is not None and existing is not cls:
            raise ExchangeError(f"protocol {protocol!r} already registered by {existing.__name__}")
        cls.protocol = protocol
        _REGISTRY[protocol] = cls
        return cls

    return decorator


def api_for(protocol: str) -> type[ExchangeApi]:
    try:
        return _REGISTRY[protocol]
    except KeyError:
        raise ExchangeError(f"no venue implementation for protocol {protocol!r}") from None


def registered_protocols() -> list[str]:
    return sorted(_REGISTRY)


@dataclass
class VenueContext:
    """Process-wide collaborators handed to every venue."""

    settings: Settings
    http: LoggingClient
    chain: ChainClient | None = None

    def require_chain(self) -> ChainClient:
        if self.chain is None:
            raise ExchangeError("venue needs a chain client but none is configured")
        return self.chain


@dataclass
class Exchange:
    settings: VenueSettings
    api: ExchangeApi

    @property
    def name(self) -> str:
        return self.settings.name

    def place(self, private_key: str, intent: OrderIntent) -> str | None:
        """Build and submit *intent* in one go."""
        sheet = self.api.build(private_key, intent.side, self.settings, intent.market, intent.offer)
        result = self.api.submit(private_key, self.settings, sheet)
        logger.info(
            "exchange.placed",
            venue=self.name,
            market=str(intent.market),
            side=intent.side.value,
            offer=str(intent.offer),
            result=result,
        )
        return result

    def __str__(self) -> str:
        return self.name


@dataclass
class ExchangeList:
    exchanges: list[Exchange] = field(default_factory=list)

    def find_by_name(self, name: str) -> Exchange | None:
        for exchange in self.exchanges:
            if exchange.name == name:
                return exchange
        return None

    def enabled(self) -> list[Exchange]:
        return [e for e in self.exchanges if e.settings.enabled]

    def __len__(self) -> int:
        return len(self.exchanges)


def hydrate_exchanges(venues: list[VenueSettings], context: VenueContext) -> ExchangeList:
    """Instantiate the registered implementation for each venue entry."""
    exchanges = []
    for venue in venues:
        api = api_for(venue.protocol)(venue, context)
        api.setup()
        exchanges.append(Exchange(settings=venue, api=api))
        logger.info("exchange.hydrated", venue=venue.name, protocol=venue.protocol, enabled=venue.enabled)
    return ExchangeList(exchanges)
