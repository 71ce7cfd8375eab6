"""
Unit aggregator — one per process.

Owns a PriceStore per instrument, the feed, the basket strategy and the
candle book, and runs one compute cycle per request:

  feed -> push + evict + average (per instrument) -> compose -> candles
"""
import logging
import threading
import time

from unitbasket import config
from unitbasket.basket import FX_LIST, make_composer, usable_rate, zero_quote
from unitbasket.candles import CandleBook
from unitbasket.twap import PriceStore, twap

log = logging.getLogger("unitbasket.aggregator")


class ComputeError(RuntimeError):
    def __init__(self, stage, cause):
        super().__init__(f"{stage}: {cause}")
        self.stage = stage


class UnitAggregator:
    def __init__(
        self,
        feed,
        composer=None,
        gold_grams=None,
        window=None,
        clock=time.time,
        candles=None,
    ):
        self.feed = feed
        if composer is None:
            composer = make_composer(config.BASKET_STRATEGY, config.GENESIS_PATH)
        self.composer = composer
        self.gold_grams = config.UNIT_GOLD_GRAMS if gold_grams is None else gold_grams
        self.window = config.TWAP_WINDOW_SECONDS if window is None else window
        self.clock = clock
        self.candles = CandleBook() if candles is None else candles

        self.gold = PriceStore("XAU", self.window)
        self.fx = {c: PriceStore(c, self.window) for c in FX_LIST}

        self._last_quote = None
        self._lock = threading.Lock()

    def _stage(self, stage, fn, *args):
        try:
            return fn(*args)
        except Exception as e:
            raise ComputeError(stage, e) from e

    def _fx_twap(self, spot, now):
        twaps = {}
        for c, store in self.fx.items():
            rate = usable_rate(spot.get(c))
            if rate is None:
                # Nothing new to push; keep whatever the window still holds.
                twaps[c] = twap(store, None, now)
            else:
                twaps[c] = store.push_and_average(rate, now, fallback=rate)
        return twaps

    def _gold_spot(self):
        spot = self.feed.gold_spot()
        price = usable_rate(spot)
        if price is None:
            raise ValueError(f"unusable gold spot {spot!r}")
        return price

    def compute(self):
        """Run one full cycle and return a fresh UnitQuote."""
        gold_spot = self._stage("fetch_gold", self._gold_spot)
        fx_spot = self._stage("fetch_fx", self.feed.fx_rates)
        if not isinstance(fx_spot, dict):
            fx_spot = {}

        now = self.clock()
        gold_twap = self._stage("twap", self.gold.push_and_average, gold_spot, now, gold_spot)
        fx_twap = self._stage("twap", self._fx_twap, fx_spot, now)

        quote = self._stage("compose", self.composer.compose, gold_twap, fx_twap, self.gold_grams)
        self._stage("candles", self.candles.update, quote.unit_usd, now)

        with self._lock:
            self._last_quote = quote
        return quote

    def fallback_quote(self):
        with self._lock:
            last = self._last_quote
        if last is not None:
            return last.restamped()
        return zero_quote(self.gold_grams, self.composer.name)

    def latest(self):
        """compute(), degrading to the last good (or zeroed) quote on failure."""
        try:
            return self.compute()
        except ComputeError as e:
            log.exception(f"Compute cycle failed at stage '{e.stage}'")
        except Exception:
            log.exception("Compute cycle failed")
        return self.fallback_quote()

    def status(self):
        return {
            "strategy": self.composer.name,
            "feed": getattr(self.feed, "name", type(self.feed).__name__),
            "window_seconds": self.window,
            "unit_gold_grams": self.gold_grams,
            "window_depth": {
                "XAU": len(self.gold),
                **{c: len(store) for c, store in self.fx.items()},
            },
            "timeframes": list(self.candles.timeframes),
        }
