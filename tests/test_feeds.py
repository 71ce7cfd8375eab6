"""Tests for the market data feeds and the fallback wrapper."""

import threading

import pytest
import requests

from unitbasket.basket import FX_LIST, GENESIS_FX
from unitbasket.feeds import FallbackFeed, LiveFeed, SimulatedFeed, make_feed
from unitbasket.feeds.usdfx import get_usdfx_rates
from unitbasket.feeds.xauusd import get_xauusd_price

from conftest import FakeClock, FakeFeed


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


def route(responses):
    """Build a fake requests.get answering by URL substring."""
    calls = []

    def fake_get(url, timeout=None, **kwargs):
        calls.append((url, timeout))
        for fragment, answer in responses.items():
            if fragment in url:
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise requests.ConnectionError(f"unrouted {url}")

    fake_get.calls = calls
    return fake_get


# ---------------------------------------------------------------------------
# XAUUSD
# ---------------------------------------------------------------------------


class TestXauusd:
    def test_median_of_answering_sources(self, monkeypatch):
        fake = route({
            "metals.live": FakeResponse([{"gold": 1900.0}]),
            "gold-api.com": FakeResponse({"price": 1910.0}),
            "coinbase": FakeResponse({"data": {"amount": "1920.0"}}),
            "kraken": requests.Timeout("slow"),
        })
        monkeypatch.setattr(requests, "get", fake)

        result = get_xauusd_price(timeout=4)

        assert result["price"] == 1910.0
        assert result["sources"] == ["coinbase", "goldapi", "metalslive"]
        assert all(t == 4 for _, t in fake.calls)

    def test_out_of_range_price_ignored(self, monkeypatch):
        monkeypatch.setattr(requests, "get", route({
            "metals.live": FakeResponse([{"gold": 0.5}]),
            "gold-api.com": FakeResponse({"price": 2000.0}),
        }))

        assert get_xauusd_price(timeout=1)["price"] == 2000.0

    def test_no_sources_raises(self, monkeypatch):
        monkeypatch.setattr(requests, "get", route({}))

        with pytest.raises(RuntimeError, match="XAUUSD"):
            get_xauusd_price(timeout=1)


# ---------------------------------------------------------------------------
# USD FX
# ---------------------------------------------------------------------------


class TestUsdfx:
    def test_median_per_currency(self, monkeypatch):
        monkeypatch.setattr(requests, "get", route({
            "exchangerate.host": FakeResponse({"rates": {"BRL": 5.0, "RUB": 90.0, "INR": 83.0, "CNY": 7.2, "ZAR": 18.0}}),
            "open.er-api.com": FakeResponse({"result": "success", "rates": {"BRL": 5.2, "RUB": 92.0, "INR": 83.4, "CNY": 7.1, "ZAR": 18.4, "EUR": 0.9}}),
            "frankfurter": FakeResponse({"rates": {"BRL": 5.1, "INR": 83.2, "CNY": 7.3, "ZAR": 18.2}}),
        }))

        result = get_usdfx_rates(timeout=1)

        assert result["rates"] == {"BRL": 5.1, "RUB": 91.0, "INR": 83.2, "CNY": 7.2, "ZAR": 18.2}
        assert result["sources"] == ["exchangeratehost", "openerapi", "frankfurter"]

    def test_currency_nobody_quotes_is_left_out(self, monkeypatch):
        monkeypatch.setattr(requests, "get", route({
            "frankfurter": FakeResponse({"rates": {"BRL": 5.1, "INR": 83.2, "CNY": 7.3, "ZAR": 18.2}}),
        }))

        assert "RUB" not in get_usdfx_rates(timeout=1)["rates"]

    def test_failed_api_result_is_skipped(self, monkeypatch):
        monkeypatch.setattr(requests, "get", route({
            "open.er-api.com": FakeResponse({"result": "error", "error-type": "quota"}),
        }))

        with pytest.raises(RuntimeError, match="USDFX"):
            get_usdfx_rates(timeout=1)


# ---------------------------------------------------------------------------
# Fallback wrapper
# ---------------------------------------------------------------------------


class TestFallbackFeed:
    def test_passes_through_good_values(self):
        inner = FakeFeed(gold=2000.0, fx=dict(GENESIS_FX, BRL=5.5))
        feed = FallbackFeed(inner, deadline=1.0)

        assert feed.gold_spot() == 2000.0
        assert feed.fx_rates()["BRL"] == 5.5
        assert feed.last_gold == 2000.0

    def test_error_returns_last_known_good(self, caplog):
        inner = FakeFeed(gold=2000.0)
        feed = FallbackFeed(inner, deadline=1.0)
        feed.gold_spot()

        inner.gold = RuntimeError("XAUUSD: no source answered")
        assert feed.gold_spot() == 2000.0
        assert "last known good" in caplog.text

    def test_static_defaults_before_first_success(self):
        feed = FallbackFeed(FakeFeed(gold=ValueError("boom"), fx=ValueError("boom")), deadline=1.0)

        assert feed.gold_spot() == 1900.0
        assert feed.fx_rates() == GENESIS_FX

    def test_slow_feed_hits_deadline(self):
        release = threading.Event()

        class SlowFeed(FakeFeed):
            def gold_spot(self):
                release.wait(2.0)
                return 2500.0

        feed = FallbackFeed(SlowFeed(), deadline=0.05, default_gold=1234.0)
        try:
            assert feed.gold_spot() == 1234.0
        finally:
            release.set()
            feed.close()

    def test_missing_and_malformed_currencies_filled(self):
        inner = FakeFeed(fx={"BRL": 5.3, "RUB": "n/a", "INR": 0, "CNY": 7.0})
        feed = FallbackFeed(inner, deadline=1.0)

        rates = feed.fx_rates()

        assert rates == {"BRL": 5.3, "RUB": 90.0, "INR": 83.0, "CNY": 7.0, "ZAR": 18.0}
        assert set(rates) == set(FX_LIST)

    def test_non_dict_payload_ignored(self):
        inner = FakeFeed()
        inner.fx_rates = lambda: ["BRL", 5.0]
        feed = FallbackFeed(inner, deadline=1.0)

        assert feed.fx_rates() == GENESIS_FX

    def test_name_comes_from_inner(self):
        assert FallbackFeed(FakeFeed()).name == "fake"


# ---------------------------------------------------------------------------
# Simulated and factory
# ---------------------------------------------------------------------------


def test_simulated_feed_is_deterministic():
    clock = FakeClock(0.0)
    feed = SimulatedFeed(clock=clock)

    assert feed.gold_spot() == 1900.0
    assert feed.fx_rates() == {"BRL": 5.0, "RUB": 90.0, "INR": 83.0, "CNY": 7.2, "ZAR": 18.0}

    clock.advance(60 * 3.14159265 / 2)
    assert feed.gold_spot() == pytest.approx(1950.0)


def test_make_feed_modes():
    assert isinstance(make_feed("simulated").inner, SimulatedFeed)
    assert isinstance(make_feed("live", deadline=2.0).inner, LiveFeed)
    assert make_feed("live", deadline=2.0).inner.timeout == 2.0
    with pytest.raises(ValueError, match="FEED_MODE"):
        make_feed("replay")
