"""
XAUUSD Feed Module — Median of up to 4 sources
Spot: metals.live, gold-api.com
Tokenized gold (PAXG): Coinbase, Kraken
"""
import statistics
import requests

from unitbasket import config


def fetch_metals_live(timeout):
    r = requests.get("https://api.metals.live/v1/spot/gold", timeout=timeout)
    r.raise_for_status()
    data = r.json()
    return float(data[0]["gold"])


def fetch_gold_api(timeout):
    r = requests.get("https://api.gold-api.com/price/XAU", timeout=timeout)
    r.raise_for_status()
    return float(r.json()["price"])


def fetch_coinbase_paxg(timeout):
    r = requests.get("https://api.coinbase.com/v2/prices/PAXG-USD/spot", timeout=timeout)
    r.raise_for_status()
    return float(r.json()["data"]["amount"])


def fetch_kraken_paxg(timeout):
    r = requests.get("https://api.kraken.com/0/public/Ticker?pair=PAXGUSD", timeout=timeout)
    r.raise_for_status()
    d = r.json()["result"]
    k = list(d.keys())[0]
    return float(d[k]["c"][0])


SOURCES = [
    ("metalslive", fetch_metals_live),
    ("goldapi", fetch_gold_api),
    ("coinbase", fetch_coinbase_paxg),
    ("kraken", fetch_kraken_paxg),
]


def get_xauusd_price(timeout=None):
    """Median gold spot in USD per troy ounce.
    Returns dict with: price, sources
    Raises RuntimeError if no source answered.
    """
    timeout = config.FEED_TIMEOUT if timeout is None else timeout
    prices = {}
    for name, fn in SOURCES:
        try:
            p = fn(timeout)
        except Exception:
            continue
        if 100 < p < 100000:
            prices[name] = p

    if not prices:
        raise RuntimeError("XAUUSD: no source answered")

    return {
        "price": statistics.median(prices.values()),
        "sources": sorted(prices),
    }
