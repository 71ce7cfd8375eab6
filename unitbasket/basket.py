"""
Basket composition — turns the gold and FX averages into a unit price.

Two strategies are available:

  gold_anchored   The gold leg is 40% of the unit by definition, so the unit
                  value is derived from gold alone. FX legs are informational
                  allocations of that value (12% each).
  genesis_ratio   Gold leg plus five FX legs, each FX leg scaled by its current
                  rate over the rate in a frozen genesis baseline.

FX rates are always quoted USD -> currency (units of currency per 1 USD).
"""
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

log = logging.getLogger("unitbasket.basket")

GOLD_G_PER_OZ = 31.1034768
GOLD_WEIGHT = 0.40
FX_WEIGHT = 0.12
FX_LIST = ["BRL", "RUB", "INR", "CNY", "ZAR"]

# Reference rates at basket inception, also the feed's static fallback.
GENESIS_FX = {"BRL": 5.0, "RUB": 90.0, "INR": 83.0, "CNY": 7.2, "ZAR": 18.0}


def utc_now_iso():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def usable_rate(rate):
    """Return `rate` as a float if it can price a leg, else None."""
    if isinstance(rate, bool):
        return None
    try:
        value = float(rate)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


@dataclass
class UnitQuote:
    timestamp_utc: str
    gold_usd_per_oz_twap: float
    unit_gold_grams: float
    unit_usd: float
    hundred_units_usd: float
    fx_usd_twap: dict = field(default_factory=dict)
    fx_basket: dict = field(default_factory=dict)
    strategy: str = "gold_anchored"

    def to_dict(self):
        return {
            "timestamp_utc": self.timestamp_utc,
            "unit_usd": self.unit_usd,
            "hundred_units_usd": self.hundred_units_usd,
            "unit_gold_grams": self.unit_gold_grams,
            "gold_usd_per_oz_twap": self.gold_usd_per_oz_twap,
            "fx_usd_twap": dict(self.fx_usd_twap),
            "fx_basket": {c: dict(leg) for c, leg in self.fx_basket.items()},
            "strategy": self.strategy,
        }

    def restamped(self):
        return UnitQuote(
            timestamp_utc=utc_now_iso(),
            gold_usd_per_oz_twap=self.gold_usd_per_oz_twap,
            unit_gold_grams=self.unit_gold_grams,
            unit_usd=self.unit_usd,
            hundred_units_usd=self.hundred_units_usd,
            fx_usd_twap=dict(self.fx_usd_twap),
            fx_basket={c: dict(leg) for c, leg in self.fx_basket.items()},
            strategy=self.strategy,
        )


def zero_quote(gold_grams, strategy="gold_anchored"):
    """All-zero quote served when nothing better is known."""
    return UnitQuote(
        timestamp_utc=utc_now_iso(),
        gold_usd_per_oz_twap=0.0,
        unit_gold_grams=gold_grams,
        unit_usd=0.0,
        hundred_units_usd=0.0,
        fx_usd_twap={c: None for c in FX_LIST},
        fx_basket={},
        strategy=strategy,
    )


def gold_leg_usd(gold_twap, gold_grams):
    return (gold_grams / GOLD_G_PER_OZ) * gold_twap


def _leg(usd_share, rate):
    return {
        "usd_share": usd_share,
        "currency_amount": usd_share * rate if rate is not None else None,
    }


class GoldAnchoredComposer:
    """Unit value derived from the gold leg; FX legs are fixed 12% allocations."""

    name = "gold_anchored"

    def compose(self, gold_twap, fx_twap, gold_grams):
        gold_usd = gold_leg_usd(gold_twap, gold_grams)
        unit_usd = gold_usd / GOLD_WEIGHT
        fx_leg_usd = unit_usd * FX_WEIGHT

        rates = {}
        basket = {}
        for c in FX_LIST:
            rate = usable_rate(fx_twap.get(c))
            if rate is None:
                log.debug(f"{c}: no usable rate, local amount omitted")
            rates[c] = rate
            basket[c] = _leg(fx_leg_usd, rate)

        return UnitQuote(
            timestamp_utc=utc_now_iso(),
            gold_usd_per_oz_twap=gold_twap,
            unit_gold_grams=gold_grams,
            unit_usd=unit_usd,
            hundred_units_usd=unit_usd * 100,
            fx_usd_twap=rates,
            fx_basket=basket,
            strategy=self.name,
        )


class GenesisRatioComposer:
    """Gold leg plus FX legs re-valued against a frozen genesis baseline.

    Each FX leg is scaled by current_rate / reference_rate, rates quoted
    USD -> currency.
    """

    name = "genesis_ratio"

    def __init__(self, genesis=None):
        self.genesis = dict(GENESIS_FX if genesis is None else genesis)

    def ratio(self, currency, rate):
        reference = usable_rate(self.genesis.get(currency))
        if rate is None or reference is None:
            return 1.0
        return rate / reference

    def compose(self, gold_twap, fx_twap, gold_grams):
        gold_usd = gold_leg_usd(gold_twap, gold_grams)
        base_usd = gold_usd / GOLD_WEIGHT

        rates = {}
        basket = {}
        fx_total = 0.0
        for c in FX_LIST:
            rate = usable_rate(fx_twap.get(c))
            leg_usd = base_usd * FX_WEIGHT * self.ratio(c, rate)
            fx_total += leg_usd
            rates[c] = rate
            basket[c] = _leg(leg_usd, rate)

        unit_usd = gold_usd + fx_total
        return UnitQuote(
            timestamp_utc=utc_now_iso(),
            gold_usd_per_oz_twap=gold_twap,
            unit_gold_grams=gold_grams,
            unit_usd=unit_usd,
            hundred_units_usd=unit_usd * 100,
            fx_usd_twap=rates,
            fx_basket=basket,
            strategy=self.name,
        )


def load_genesis(path):
    """Read a genesis baseline: either {"BRL": 5.0, ...} or {"rates": {...}}."""
    try:
        with open(Path(path)) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot read genesis baseline {path}: {e}")
    rates = data.get("rates", data) if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise ValueError(f"Genesis baseline {path} is not a JSON object of rates")
    missing = [c for c in FX_LIST if usable_rate(rates.get(c)) is None]
    if missing:
        log.warning(f"Genesis baseline {path} has no usable rate for {', '.join(missing)}")
    return {c: rates[c] for c in FX_LIST if c in rates}


STRATEGIES = {
    GoldAnchoredComposer.name: GoldAnchoredComposer,
    GenesisRatioComposer.name: GenesisRatioComposer,
}


def make_composer(name="gold_anchored", genesis_path=None):
    if name not in STRATEGIES:
        raise ValueError(
            f"Unknown basket strategy {name!r} (choose from {', '.join(sorted(STRATEGIES))})"
        )
    if name == GenesisRatioComposer.name:
        genesis = load_genesis(genesis_path) if genesis_path else None
        return GenesisRatioComposer(genesis)
    return GoldAnchoredComposer()
