"""
Windowed price storage and averaging.

Each instrument keeps the spot observations seen during the last few seconds.
The "TWAP" published by the service is a windowed simple moving average:
every sample inside the window counts once, regardless of how long it was
the current price. Do not replace it with a duration-weighted mean; the
published numbers depend on it.
"""
import threading
from typing import List, NamedTuple, Optional

WINDOW_SECONDS = 5.0


class Observation(NamedTuple):
    timestamp: float
    value: float


class PriceStore:
    """Time-bounded, append-only sequence of observations for one instrument."""

    def __init__(self, name: str, window: float = WINDOW_SECONDS):
        self.name = name
        self.window = window
        self._observations: List[Observation] = []
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._observations)

    def __repr__(self):
        return f"PriceStore({self.name!r}, window={self.window})"

    def _evict(self, now: float):
        # Filter the whole list so late, out-of-order samples are aged out too.
        self._observations = [
            o for o in self._observations if now - o.timestamp <= self.window
        ]

    def _mean(self, fallback):
        if not self._observations:
            return fallback
        return sum(o.value for o in self._observations) / len(self._observations)

    def push(self, value: float, now: float):
        """Append an observation stamped `now`, then drop everything older than the window."""
        with self._lock:
            self._observations.append(Observation(now, float(value)))
            self._evict(now)

    def average(self, fallback: Optional[float] = None, now: Optional[float] = None):
        """Mean of the retained values, or `fallback` when the window is empty.

        When `now` is given the window is aged against it first, so a store
        that has not been pushed to recently reports the fallback.
        """
        with self._lock:
            if now is not None:
                self._evict(now)
            return self._mean(fallback)

    def push_and_average(self, value: float, now: float, fallback: Optional[float] = None):
        """Push, evict and average as a single step."""
        with self._lock:
            self._observations.append(Observation(now, float(value)))
            self._evict(now)
            return self._mean(fallback)

    def snapshot(self) -> List[Observation]:
        with self._lock:
            return list(self._observations)


def twap(store: PriceStore, fallback: Optional[float] = None, now: Optional[float] = None):
    """Windowed simple moving average of `store` (see module docstring)."""
    return store.average(fallback, now=now)
