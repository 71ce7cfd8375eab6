"""
USD FX Feed Module — BRL, RUB, INR, CNY, ZAR per 1 USD
Median per currency across:
  - exchangerate.host
  - open.er-api.com
  - Frankfurter (ECB reference rates, no RUB)
"""
import statistics
import requests

from unitbasket import config
from unitbasket.basket import FX_LIST, usable_rate


def _pick(rates):
    return {c: float(rates[c]) for c in FX_LIST if usable_rate(rates.get(c)) is not None}


def fetch_exchangerate_host(timeout):
    r = requests.get(
        "https://api.exchangerate.host/latest?base=USD&symbols=" + ",".join(FX_LIST),
        timeout=timeout,
    )
    r.raise_for_status()
    return _pick(r.json()["rates"])


def fetch_open_er_api(timeout):
    r = requests.get("https://open.er-api.com/v6/latest/USD", timeout=timeout)
    r.raise_for_status()
    data = r.json()
    if data.get("result") != "success":
        raise ValueError(f"open.er-api.com: {data.get('error-type', 'bad response')}")
    return _pick(data["rates"])


def fetch_frankfurter(timeout):
    symbols = ",".join(c for c in FX_LIST if c != "RUB")
    r = requests.get(
        f"https://api.frankfurter.dev/v1/latest?base=USD&symbols={symbols}",
        timeout=timeout,
    )
    r.raise_for_status()
    return _pick(r.json()["rates"])


SOURCES = [
    ("exchangeratehost", fetch_exchangerate_host),
    ("openerapi", fetch_open_er_api),
    ("frankfurter", fetch_frankfurter),
]


def get_usdfx_rates(timeout=None):
    """Median USD -> currency rate for each basket currency.
    Returns dict with: rates, sources
    A currency no source quoted is left out of `rates`.
    Raises RuntimeError if no source answered.
    """
    timeout = config.FEED_TIMEOUT if timeout is None else timeout
    quotes = {c: [] for c in FX_LIST}
    sources = []
    for name, fn in SOURCES:
        try:
            rates = fn(timeout)
        except Exception:
            continue
        if not rates:
            continue
        sources.append(name)
        for c, rate in rates.items():
            quotes[c].append(rate)

    if not sources:
        raise RuntimeError("USDFX: no source answered")

    return {
        "rates": {c: statistics.median(v) for c, v in quotes.items() if v},
        "sources": sources,
    }
