"""Exchange-rate lookup with a per-instance TTL cache."""

import time
from collections.abc import Callable
from typing import Protocol

import structlog

from ledgerly.tools.backend import BackendAPIError, BackendClient

logger = structlog.get_logger(__name__)


class ExchangeRateSource(Protocol):
    """Anything that can produce a rate table quoted against a base currency."""

    async def fetch_rates(self, base_currency: str) -> dict[str, float]: ...


class BackendRateSource:
    """Rates served by the backend's exchange-rate function."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def fetch_rates(self, base_currency: str) -> dict[str, float]:
        return await self.client.get_exchange_rates(base_currency)


class CachedExchangeRates:
    """Caches one rate table per base currency for ``ttl_seconds``.

    Rates are quoted base -> target, so an amount in the target currency
    converts to the base currency by dividing by the rate.
    """

    def __init__(
        self,
        source: ExchangeRateSource,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._tables: dict[str, tuple[float, dict[str, float]]] = {}

    def invalidate(self) -> None:
        self._tables.clear()

    async def get_rate(self, currency: str, base_currency: str) -> float:
        """Return the base -> ``currency`` rate, or 1.0 when none is known."""
        if currency == base_currency:
            return 1.0

        rates = await self._get_table(base_currency)
        rate = rates.get(currency) if rates else None
        if not rate:
            logger.warning(
                "exchange_rate_missing", currency=currency, base_currency=base_currency
            )
            return 1.0
        return float(rate)

    async def _get_table(self, base_currency: str) -> dict[str, float] | None:
        cached = self._tables.get(base_currency)
        now = self._clock()
        if cached and now - cached[0] < self.ttl_seconds:
            return cached[1]

        try:
            rates = await self.source.fetch_rates(base_currency)
        except BackendAPIError as e:
            logger.warning(
                "exchange_rate_fetch_failed",
                base_currency=base_currency,
                error=str(e),
                stale=cached is not None,
            )
            return cached[1] if cached else None

        self._tables[base_currency] = (now, rates)
        logger.debug("exchange_rates_refreshed", base_currency=base_currency, count=len(rates))
        return rates
