"""
OHLC candles of the unit price, one rolling series per timeframe.
"""
import threading
from collections import deque

from unitbasket import config


class CandleBook:
    def __init__(self, timeframes=None, max_candles=None):
        self.timeframes = list(config.CANDLE_TIMEFRAMES if timeframes is None else timeframes)
        self.max_candles = config.CANDLE_MAX if max_candles is None else max_candles
        if self.max_candles < 1:
            raise ValueError("max_candles must be at least 1")
        for tf in self.timeframes:
            if tf < 1:
                raise ValueError(f"Invalid timeframe: {tf} minutes")
        self._series = {tf: deque(maxlen=self.max_candles) for tf in self.timeframes}
        self._lock = threading.Lock()

    @staticmethod
    def bucket_start(ts, timeframe):
        span = timeframe * 60
        return int(ts // span) * span

    def update(self, value, ts):
        """Fold one price into the open candle of every timeframe."""
        with self._lock:
            for tf, series in self._series.items():
                start = self.bucket_start(ts, tf)
                if series and series[-1]["time"] == start:
                    candle = series[-1]
                    candle["high"] = max(candle["high"], value)
                    candle["low"] = min(candle["low"], value)
                    candle["close"] = value
                elif not series or series[-1]["time"] < start:
                    series.append(
                        {"time": start, "open": value, "high": value, "low": value, "close": value}
                    )
                # Prices for an already-closed bucket are dropped.

    def candles(self, timeframe, limit=100):
        """Last `limit` candles for `timeframe`, oldest first."""
        with self._lock:
            if timeframe not in self._series:
                raise KeyError(timeframe)
            series = list(self._series[timeframe])
        if limit <= 0:
            return []
        return [dict(c) for c in series[-limit:]]
