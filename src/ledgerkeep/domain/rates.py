"""Exchange rate lookup: bundled offline table and an optional live client."""

import json
import logging
import time
from decimal import Decimal
from importlib import resources
from typing import Optional

import httpx

from ledgerkeep.domain.currency import RATE_DECIMAL_PLACES, to_decimal

logger = logging.getLogger(__name__)

PRIMARY_RATES_URL = "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1/currencies/{base}.json"
FALLBACK_RATES_URL = "https://latest.currency-api.pages.dev/v1/currencies/{base}.json"

RATE_SOURCE_LIVE = "live"
RATE_SOURCE_OFFLINE = "offline"
RATE_SOURCE_NONE = "none"


def _rate_to_str(rate: Decimal) -> str:
    """Normalize a rate for display, trimming trailing zeros."""
    rate = rate.quantize(Decimal(1).scaleb(-RATE_DECIMAL_PLACES))
    text = format(rate.normalize(), "f")
    if "." not in text:
        text += ".0"
    return text


class ExchangeRateTable:
    """Offline rate table keyed by source then destination currency."""

    def __init__(self, rates: dict[str, dict[str, float | str]], last_updated: Optional[str] = None):
        self._rates = {
            base.upper(): {quote.upper(): str(value) for quote, value in quotes.items()}
            for base, quotes in rates.items()
        }
        self._last_updated = last_updated

    @classmethod
    def bundled(cls) -> "ExchangeRateTable":
        """Load the rate table shipped with the package."""
        text = resources.files("ledgerkeep.data").joinpath("exchange_rates.json").read_text(encoding="utf-8")
        data = json.loads(text)
        return cls(data.get("rates", {}), data.get("lastUpdated"))

    def get_exchange_rate(self, from_currency: Optional[str], to_currency: Optional[str]) -> Optional[str]:
        """Return the rate converting one unit of ``from_currency`` to ``to_currency``.

        Falls back to the inverse of the opposite pair. Returns None if the
        pair is unknown.
        """
        if not from_currency or not to_currency:
            return None
        source = from_currency.upper()
        target = to_currency.upper()
        if source == target:
            return "1.0"

        direct = self._rates.get(source, {}).get(target)
        if direct is not None:
            return _rate_to_str(Decimal(direct))

        inverse = self._rates.get(target, {}).get(source)
        if inverse is not None and Decimal(inverse) != 0:
            return _rate_to_str(Decimal(1) / Decimal(inverse))
        return None

    def last_updated(self) -> Optional[str]:
        """Date the offline table was last refreshed (ISO string)."""
        return self._last_updated


class LiveRateClient:
    """Fetches live rates over HTTP, falling back to the offline table.

    Args:
        offline: Offline table used when both endpoints fail
        client: Optional httpx client (tests inject one with a mock transport)
        cache_ttl_seconds: How long fetched rates are reused
    """

    def __init__(
        self,
        offline: ExchangeRateTable,
        client: Optional[httpx.Client] = None,
        cache_ttl_seconds: float = 3600.0,
        timeout: float = 5.0,
    ):
        self.offline = offline
        self._client = client or httpx.Client(timeout=timeout)
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cache: dict[tuple[str, str], tuple[float, str]] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        self._client.close()

    def _fetch_from(self, url_template: str, base: str, quote: str) -> Optional[str]:
        url = url_template.format(base=base.lower())
        response = self._client.get(url)
        response.raise_for_status()
        payload = response.json()
        value = payload.get(base.lower(), {}).get(quote.lower())
        rate = to_decimal(value)
        if rate is None or rate <= 0:
            return None
        return _rate_to_str(rate)

    def fetch_exchange_rate(self, from_currency: Optional[str], to_currency: Optional[str]) -> tuple[Optional[str], str]:
        """Return ``(rate, source)`` where source is live, offline or none."""
        if not from_currency or not to_currency:
            return None, RATE_SOURCE_NONE
        base = from_currency.upper()
        quote = to_currency.upper()
        if base == quote:
            return "1.0", RATE_SOURCE_LIVE

        cached = self._cache.get((base, quote))
        if cached is not None and time.monotonic() - cached[0] < self.cache_ttl_seconds:
            return cached[1], RATE_SOURCE_LIVE

        for url_template in (PRIMARY_RATES_URL, FALLBACK_RATES_URL):
            try:
                rate = self._fetch_from(url_template, base, quote)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Live rate request failed for %s->%s: %s", base, quote, e)
                continue
            if rate is not None:
                self._cache[(base, quote)] = (time.monotonic(), rate)
                return rate, RATE_SOURCE_LIVE

        rate = self.offline.get_exchange_rate(base, quote)
        if rate is not None:
            logger.info("Using offline rate for %s->%s", base, quote)
            return rate, RATE_SOURCE_OFFLINE
        return None, RATE_SOURCE_NONE
