"""
Deadline-bounded feed wrapper with last-known-good fallback.

The aggregator never waits on the network for longer than the deadline and
never receives a missing instrument: a slow, failing or malformed fetch is
replaced by the last value that did arrive (initially static defaults).
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout

from unitbasket import config
from unitbasket.basket import FX_LIST, GENESIS_FX, usable_rate
from unitbasket.feeds.simulated import SimulatedFeed
from unitbasket.feeds.usdfx import get_usdfx_rates
from unitbasket.feeds.xauusd import get_xauusd_price

log = logging.getLogger("unitbasket.feeds")

DEFAULT_GOLD = 1900.0


class LiveFeed:
    """Multi-source medians over HTTP."""

    name = "live"

    def __init__(self, timeout=None):
        self.timeout = config.FEED_TIMEOUT if timeout is None else timeout

    def gold_spot(self):
        result = get_xauusd_price(self.timeout)
        log.debug(f"XAUUSD {result['price']:.2f} from {', '.join(result['sources'])}")
        return result["price"]

    def fx_rates(self):
        result = get_usdfx_rates(self.timeout)
        log.debug(f"USDFX {result['rates']} from {', '.join(result['sources'])}")
        return result["rates"]


class FallbackFeed:
    def __init__(self, inner, deadline=None, default_gold=DEFAULT_GOLD, default_fx=None):
        self.inner = inner
        self.deadline = config.FEED_TIMEOUT if deadline is None else deadline
        self.last_gold = default_gold
        self.last_fx = dict(GENESIS_FX if default_fx is None else default_fx)
        self._lock = threading.Lock()
        self._pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="feed")

    @property
    def name(self):
        return getattr(self.inner, "name", type(self.inner).__name__)

    def _call(self, what, fn):
        future = self._pool.submit(fn)
        try:
            return future.result(timeout=self.deadline)
        except FutureTimeout:
            future.cancel()
            log.warning(f"{what}: no answer within {self.deadline:.1f}s, using last known good")
        except Exception as e:
            log.warning(f"{what}: {e}; using last known good")
        return None

    def gold_spot(self):
        price = usable_rate(self._call("gold", self.inner.gold_spot))
        with self._lock:
            if price is None:
                return self.last_gold
            self.last_gold = price
            return price

    def fx_rates(self):
        rates = self._call("fx", self.inner.fx_rates)
        if not isinstance(rates, dict):
            if rates is not None:
                log.warning(f"fx: malformed payload {type(rates).__name__}, using last known good")
            rates = {}
        with self._lock:
            merged = {}
            for c in FX_LIST:
                rate = usable_rate(rates.get(c))
                if rate is None:
                    merged[c] = self.last_fx.get(c)
                else:
                    merged[c] = rate
                    self.last_fx[c] = rate
            return merged

    def close(self):
        self._pool.shutdown(wait=False)


def make_feed(mode=None, deadline=None):
    mode = config.FEED_MODE if mode is None else mode
    if mode == "live":
        inner = LiveFeed(timeout=deadline)
    elif mode == "simulated":
        inner = SimulatedFeed()
    else:
        raise ValueError(f"Unknown FEED_MODE {mode!r} (choose live or simulated)")
    return FallbackFeed(inner, deadline=deadline)
