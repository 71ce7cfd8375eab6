"""
Unit Basket Oracle — HTTP server
Gold + BRL/RUB/INR/CNY/ZAR basket priced from 5-second windowed averages.

Endpoints:
  GET /latest.json                      — Current unit quote (always 200)
  GET /ohlc?timeframe=<min>&limit=<n>   — Unit price candles
  GET /oracle/unit                      — Signed unit price attestation
  GET /status                           — Aggregator state
  GET /health                           — Liveness
  GET /                                 — Static dashboard (public/)
"""
import base64
import hashlib
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn

from unitbasket import config
from unitbasket.aggregator import UnitAggregator
from unitbasket.feeds import make_feed
from unitbasket.keys import load_or_create_key, pubkey_hex

log = logging.getLogger("unitbasket.server")

DOMAIN = "UNITUSD"
DECIMALS = 6
DEFAULT_CANDLE_LIMIT = 100


def canonical_string(quote, ts):
    value = f"{quote.unit_usd:.{DECIMALS}f}"
    return f"v1|{DOMAIN}|{value}|USD|{DECIMALS}|{ts}|{quote.strategy}|twap"


def create_app(aggregator=None, signing_key=None, static_dir=None):
    if aggregator is None:
        aggregator = UnitAggregator(make_feed())
    if signing_key is None:
        signing_key = load_or_create_key()
    pubkey = pubkey_hex(signing_key)
    static_dir = Path(config.STATIC_DIR if static_dir is None else static_dir)

    app = FastAPI(
        title="Unit Basket Oracle",
        description="Gold + BRICS FX basket priced from windowed spot averages",
    )
    app.state.aggregator = aggregator
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])

    @app.on_event("shutdown")
    def close_feed():
        close = getattr(aggregator.feed, "close", None)
        if close is not None:
            log.info("Closing feed")
            close()

    @app.get("/latest.json")
    def latest():
        return JSONResponse(aggregator.latest().to_dict())

    @app.get("/ohlc")
    def ohlc(timeframe: int = Query(1), limit: Optional[int] = Query(None)):
        max_candles = aggregator.candles.max_candles
        if limit is None:
            limit = min(DEFAULT_CANDLE_LIMIT, max_candles)
        if not 1 <= limit <= max_candles:
            raise HTTPException(status_code=422, detail=f"limit must be between 1 and {max_candles}")
        try:
            return aggregator.candles.candles(timeframe, limit)
        except KeyError:
            raise HTTPException(
                status_code=400,
                detail=f"Unknown timeframe {timeframe}; available: {aggregator.candles.timeframes}",
            )

    @app.get("/oracle/unit")
    def oracle_unit():
        quote = aggregator.latest()
        ts = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        canonical = canonical_string(quote, ts)
        h = hashlib.sha256(canonical.encode()).digest()
        sig = signing_key.sign_digest(h)
        return JSONResponse({
            "domain": DOMAIN,
            "canonical": canonical,
            "signature": base64.b64encode(sig).decode(),
            "pubkey": pubkey,
        })

    @app.get("/status")
    def status():
        return aggregator.status()

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "service": "unit-basket",
            "version": "v1",
            "pubkey": pubkey,
            "endpoints": ["/latest.json", "/ohlc", "/oracle/unit", "/status"],
        }

    # Static files last so API routes win.
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        log.info(f"No static directory at {static_dir}, dashboard disabled")

    return app


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    port = int(argv[0]) if argv else config.PORT
    app = create_app()
    agg = app.state.aggregator
    log.info(f"Unit Basket Oracle starting on :{port}")
    log.info(f"  Feed: {agg.feed.name}  Strategy: {agg.composer.name}  Window: {agg.window}s")
    uvicorn.run(app, host=config.HOST, port=port)


if __name__ == "__main__":
    main()
