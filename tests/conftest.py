"""Shared fixtures: a controllable clock and an in-memory feed."""

import pytest

from unitbasket.basket import GENESIS_FX


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeFeed:
    name = "fake"

    def __init__(self, gold=1900.0, fx=None):
        self.gold = gold
        self.fx = fx if isinstance(fx, Exception) else dict(GENESIS_FX if fx is None else fx)
        self.gold_calls = 0
        self.fx_calls = 0

    def gold_spot(self):
        self.gold_calls += 1
        if isinstance(self.gold, Exception):
            raise self.gold
        return self.gold

    def fx_rates(self):
        self.fx_calls += 1
        if isinstance(self.fx, Exception):
            raise self.fx
        return dict(self.fx)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()
