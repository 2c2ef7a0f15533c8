"""
Price sources for train trips.

A price source quotes the undiscounted base fare of a route for a given
departure time. It returns PRICE_UNAVAILABLE when it has no quote; the
estimator decides what to do about that.
"""
import logging
from datetime import datetime
from typing import Optional, Protocol

import httpx

from config import get_settings, is_price_api_configured

logger = logging.getLogger(__name__)

# Returned by a price source that cannot quote a trip
PRICE_UNAVAILABLE = None


class PriceSource(Protocol):
    """Anything that can quote a base fare for a trip."""

    async def get_price_estimation(
        self,
        origin: str,
        destination: str,
        departure: datetime,
    ) -> Optional[float]:
        ...


class HttpPriceSource:
    """
    Price source backed by the remote train price estimation API.

    Any failure to obtain a positive price (HTTP error, timeout, bad
    payload) is logged and reported as PRICE_UNAVAILABLE.
    """

    ESTIMATE_PATH = "/api/train/estimate/price"

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def get_price_estimation(
        self,
        origin: str,
        destination: str,
        departure: datetime,
    ) -> Optional[float]:
        url = f"{self.base_url}{self.ESTIMATE_PATH}"
        params = {
            "from": origin,
            "to": destination,
            "date": departure.isoformat(),
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, params=params, timeout=self.timeout)
        except httpx.TimeoutException:
            logger.warning(f"Price API timeout for {origin} -> {destination}")
            return PRICE_UNAVAILABLE
        except httpx.HTTPError as e:
            logger.error(f"Price API request failed for {origin} -> {destination}: {str(e)}")
            return PRICE_UNAVAILABLE

        if response.status_code != 200:
            logger.warning(
                f"Price API returned {response.status_code} for {origin} -> {destination}"
            )
            return PRICE_UNAVAILABLE

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Price API returned malformed JSON for {origin} -> {destination}")
            return PRICE_UNAVAILABLE

        price = data.get("price") if isinstance(data, dict) else None
        # bool is an int subclass, never a price
        if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
            logger.warning(f"Price API has no price for {origin} -> {destination}")
            return PRICE_UNAVAILABLE

        return float(price)


class StaticPriceSource:
    """
    Price source quoting from a fixed table of routes.

    Route lookups ignore case and surrounding whitespace. Routes missing
    from the table are quoted at `default`, which may be PRICE_UNAVAILABLE.
    """

    def __init__(
        self,
        prices: Optional[dict[tuple[str, str], float]] = None,
        default: Optional[float] = PRICE_UNAVAILABLE,
    ):
        self._prices = {
            self._route_key(origin, destination): price
            for (origin, destination), price in (prices or {}).items()
        }
        self.default = default

    @staticmethod
    def _route_key(origin: str, destination: str) -> tuple[str, str]:
        return origin.strip().lower(), destination.strip().lower()

    async def get_price_estimation(
        self,
        origin: str,
        destination: str,
        departure: datetime,
    ) -> Optional[float]:
        return self._prices.get(self._route_key(origin, destination), self.default)


def get_price_source() -> PriceSource:
    """
    Build the price source described by the current settings.

    Returns:
        HttpPriceSource if a price API URL is configured, otherwise a
        StaticPriceSource quoting the default base fare (or nothing).
    """
    settings = get_settings()
    if is_price_api_configured():
        return HttpPriceSource(settings.price_api_url, timeout=settings.price_api_timeout)

    logger.warning("Price API is not configured - using static price source")
    return StaticPriceSource(default=settings.default_base_fare)
