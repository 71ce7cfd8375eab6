"""
Fetch the lightweight-charts ESM bundle into the static directory.

Usage:
  python3 -m unitbasket.assets [out_dir]
"""
import logging
import sys
from pathlib import Path

import requests

from unitbasket import config

log = logging.getLogger("unitbasket.assets")

CHARTS_URL = (
    "https://cdn.jsdelivr.net/npm/lightweight-charts@5.1.0/dist/"
    "lightweight-charts.esm.production.js"
)
CHARTS_FILE = "lightweight-charts.esm.js"


def fetch_lightweight_charts(out_dir=None, timeout=30):
    """Download the bundle once. Returns the path; skips the download if present."""
    out_dir = Path(config.STATIC_DIR if out_dir is None else out_dir)
    out = out_dir / CHARTS_FILE
    if out.exists():
        log.info(f"{out} already present")
        return out

    log.info(f"Fetching {CHARTS_URL}")
    r = requests.get(CHARTS_URL, timeout=timeout)
    if r.status_code != 200:
        raise RuntimeError(f"Failed to fetch lightweight-charts (HTTP {r.status_code})")
    out_dir.mkdir(parents=True, exist_ok=True)
    out.write_bytes(r.content)
    log.info(f"Saved {out}")
    return out


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    fetch_lightweight_charts(sys.argv[1] if len(sys.argv) > 1 else None)
