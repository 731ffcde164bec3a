"""Tests for the offline rate table and the live rate client."""

import httpx
import pytest

from ledgerkeep.domain.rates import (
    RATE_SOURCE_LIVE,
    RATE_SOURCE_NONE,
    RATE_SOURCE_OFFLINE,
    ExchangeRateTable,
    LiveRateClient,
)


class TestExchangeRateTable:
    def test_direct_rate(self, rate_table):
        assert rate_table.get_exchange_rate("USD", "EUR") == "0.92"
        assert rate_table.get_exchange_rate("usd", "gbp") == "0.8"

    def test_inverse_rate(self, rate_table):
        assert rate_table.get_exchange_rate("GBP", "USD") == "1.25"
        assert rate_table.get_exchange_rate("EUR", "USD") == "1.086957"

    def test_same_currency(self, rate_table):
        assert rate_table.get_exchange_rate("EUR", "EUR") == "1.0"

    def test_unknown_pair(self, rate_table):
        assert rate_table.get_exchange_rate("USD", "AMD") is None
        assert rate_table.get_exchange_rate(None, "USD") is None

    def test_bundled_table(self):
        table = ExchangeRateTable.bundled()

        assert table.last_updated() == "2025-01-26"
        assert table.get_exchange_rate("USD", "EUR") == "0.96"
        assert table.get_exchange_rate("CHF", "USD") is not None


def rates_transport(responses, requests=None):
    """Mock transport answering by host with a status code and JSON body."""

    def handler(request):
        if requests is not None:
            requests.append(request.url)
        status, body = responses.get(request.url.host, (404, {}))
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


PRIMARY_HOST = "cdn.jsdelivr.net"
FALLBACK_HOST = "latest.currency-api.pages.dev"


def live_client(rate_table, responses, requests=None):
    return LiveRateClient(rate_table, client=httpx.Client(transport=rates_transport(responses, requests)))


class TestLiveRateClient:
    def test_primary_endpoint(self, rate_table):
        requests = []
        client = live_client(rate_table, {PRIMARY_HOST: (200, {"usd": {"eur": 0.9321}})}, requests)

        assert client.fetch_exchange_rate("USD", "EUR") == ("0.9321", RATE_SOURCE_LIVE)
        assert requests[0].path.endswith("/currencies/usd.json")

    def test_falls_back_to_second_endpoint(self, rate_table):
        client = live_client(
            rate_table,
            {PRIMARY_HOST: (500, {}), FALLBACK_HOST: (200, {"usd": {"eur": 0.95}})},
        )

        assert client.fetch_exchange_rate("USD", "EUR") == ("0.95", RATE_SOURCE_LIVE)

    def test_network_failure_uses_offline_table(self, rate_table, caplog):
        error = httpx.ConnectError("unreachable")
        client = live_client(rate_table, {PRIMARY_HOST: (0, error), FALLBACK_HOST: (0, error)})

        assert client.fetch_exchange_rate("USD", "EUR") == ("0.92", RATE_SOURCE_OFFLINE)
        assert "Live rate request failed" in caplog.text

    def test_missing_quote_uses_offline_table(self, rate_table):
        client = live_client(
            rate_table,
            {PRIMARY_HOST: (200, {"usd": {}}), FALLBACK_HOST: (200, {"usd": {"eur": "n/a"}})},
        )

        assert client.fetch_exchange_rate("USD", "GBP") == ("0.8", RATE_SOURCE_OFFLINE)

    def test_no_rate_anywhere(self, rate_table):
        client = live_client(rate_table, {})

        assert client.fetch_exchange_rate("USD", "AMD") == (None, RATE_SOURCE_NONE)

    def test_same_currency_skips_network(self, rate_table):
        requests = []
        client = live_client(rate_table, {}, requests)

        assert client.fetch_exchange_rate("eur", "EUR") == ("1.0", RATE_SOURCE_LIVE)
        assert requests == []

    def test_rates_are_cached(self, rate_table):
        requests = []
        client = live_client(rate_table, {PRIMARY_HOST: (200, {"usd": {"eur": 0.93}})}, requests)

        client.fetch_exchange_rate("USD", "EUR")
        client.fetch_exchange_rate("USD", "EUR")
        assert len(requests) == 1

        client.clear_cache()
        client.fetch_exchange_rate("USD", "EUR")
        assert len(requests) == 2

    def test_expired_cache_refetches(self, rate_table):
        requests = []
        client = LiveRateClient(
            rate_table,
            client=httpx.Client(transport=rates_transport({PRIMARY_HOST: (200, {"usd": {"eur": 0.93}})}, requests)),
            cache_ttl_seconds=0,
        )

        client.fetch_exchange_rate("USD", "EUR")
        client.fetch_exchange_rate("USD", "EUR")

        assert len(requests) == 2


@pytest.fixture(autouse=True)
def _capture_warnings(caplog):
    caplog.set_level("WARNING", logger="ledgerkeep.domain.rates")
