"""
Unit Basket Oracle — Configuration
All settings come from the environment, with defaults suitable for a single
local instance.
"""
import math
import os
from pathlib import Path

PACKAGE_DIR = Path(__file__).parent
ROOT_DIR = PACKAGE_DIR.parent


def _env_float(name, default):
    raw = os.environ.get(name, str(default))
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_positive(name, default):
    value = _env_float(name, default)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive finite number, got {os.environ.get(name, str(default))!r}")
    return value


def _env_int(name, default):
    raw = os.environ.get(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_minutes(name, default):
    raw = os.environ.get(name)
    if not raw:
        return list(default)
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValueError(f"{name} must be a comma-separated list of minutes, got {raw!r}")


# ── Server ────────────────────────────────────────────────────────────────────

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = _env_int("PORT", 3000)
STATIC_DIR = Path(os.environ.get("STATIC_DIR", str(ROOT_DIR / "public")))
KEYS_DIR = Path(os.environ.get("KEYS_DIR", str(PACKAGE_DIR / "keys")))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ── Feeds ─────────────────────────────────────────────────────────────────────

FEED_MODE = os.environ.get("FEED_MODE", "live")  # live | simulated
FEED_TIMEOUT = _env_positive("FEED_TIMEOUT", 4.0)  # seconds, per fetch cycle

# ── Basket ────────────────────────────────────────────────────────────────────

TWAP_WINDOW_SECONDS = _env_positive("TWAP_WINDOW_SECONDS", 5.0)
BASKET_STRATEGY = os.environ.get("BASKET_STRATEGY", "gold_anchored")
GENESIS_PATH = os.environ.get("GENESIS_PATH") or None
UNIT_GOLD_GRAMS = _env_positive("UNIT_GOLD_GRAMS", 0.9823)

# ── Candles ───────────────────────────────────────────────────────────────────

DEFAULT_TIMEFRAMES = [1, 15, 30, 60, 180, 1440, 4320, 10080, 43200]
CANDLE_TIMEFRAMES = _env_minutes("CANDLE_TIMEFRAMES", DEFAULT_TIMEFRAMES)
CANDLE_MAX = _env_int("CANDLE_MAX", 1000)
