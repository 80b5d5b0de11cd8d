"""Massive API provider: the only module that imports from massive."""

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from massive import RESTClient

from whale.constants import PERIODS, MAX_TREND_POINTS
from whale.errors import TransportError
from whale.formatting import trend_label
from whale.models import Exchange, PriceEntry, TrendSeries

log = logging.getLogger(__name__)


def _status_of(exc: Exception) -> Optional[int]:
    """Best-effort HTTP status extraction from an SDK or urllib3 error."""
    for attr in ("status", "status_code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int):
            return val
    resp = getattr(exc, "response", None)
    val = getattr(resp, "status", None)
    return val if isinstance(val, int) else None


class MassiveProvider:
    """Wraps the Massive SDK so no other module needs to import from massive.

    Every SDK call is funnelled through ``_call`` which turns client failures
    into ``TransportError``; normalisation runs outside of it so programming
    errors are not mistaken for network trouble.
    """

    def __init__(self, api_key: str, client: Any = None):
        self._client = client if client is not None else RESTClient(api_key=api_key)

    def _call(self, what: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            log.warning("%s failed: %s", what, e)
            raise TransportError(f"{what}: {e}", status=_status_of(e)) from e

    # -- Snapshots / Aggs ------------------------------------------------

    def fetch_snapshots(self, tickers: Sequence[str]) -> List[Dict[str, Any]]:
        """Fetch universal snapshots, return normalised dicts."""
        raw = self._call("snapshots", lambda: list(
            self._client.list_universal_snapshots(ticker_any_of=list(tickers))))
        results = []
        for snap in raw:
            t = getattr(snap, "ticker", None)
            if not t or getattr(snap, "error", None):
                continue
            results.append(self._normalize_snapshot(snap, t))
        return results

    def fetch_aggs(self, ticker: str, multiplier: int, timespan: str,
                   from_date: str, to_date: str) -> List[Dict[str, Any]]:
        """Fetch aggregate bars for a single ticker."""
        raw = self._call(f"aggs {ticker}", self._client.get_aggs,
                         ticker, multiplier, timespan, from_date, to_date)
        if not raw:
            return []
        return [
            {
                "close": getattr(a, "close", None),
                "timestamp": getattr(a, "timestamp", None),
            }
            for a in raw
        ]

    # -- Dashboard queries -----------------------------------------------

    def fetch_current_prices(self, exchange: Exchange, markets: Sequence[str]) -> List[PriceEntry]:
        """Current price per market, in the order of ``markets``."""
        snap_map = {d["ticker"]: d for d in self.fetch_snapshots(markets)}
        entries = []
        for market in markets:
            d = snap_map.get(market)
            if d is None or d.get("last") is None:
                log.debug("%s: no snapshot for %s", exchange.name, market)
                continue
            entries.append(PriceEntry(market=market, price=d["last"],
                                      change=d.get("change"), change_pct=d.get("change_pct")))
        return entries

    def fetch_trend(self, exchange: Exchange, market: str, period: str) -> TrendSeries:
        """Closing-price series for ``market`` at ``period`` granularity."""
        multiplier, timespan, lookback = PERIODS[period]
        now = time.time()
        to_date = datetime.fromtimestamp(now).strftime("%Y-%m-%d")
        from_date = (datetime.fromtimestamp(now) - timedelta(seconds=lookback)).strftime("%Y-%m-%d")
        aggs = self.fetch_aggs(market, multiplier, timespan, from_date, to_date)

        points = [
            (trend_label(a["timestamp"], period), a["close"])
            for a in aggs
            if a.get("timestamp") is not None and a.get("close") is not None
        ]
        return TrendSeries(market=market, period=period, points=points[-MAX_TREND_POINTS:])

    # -- Internal helpers ------------------------------------------------

    @staticmethod
    def _normalize_snapshot(snap: Any, ticker: str) -> Dict[str, Any]:
        """Convert an API snapshot object to a flat dict."""
        d: Dict[str, Any] = {"ticker": ticker}

        session = getattr(snap, "session", None)
        if session:
            d["last"] = getattr(session, "close", None) or getattr(session, "price", None)
            d["change"] = getattr(session, "change", None)
            d["change_pct"] = getattr(session, "change_percent", None)
        else:
            d["last"] = getattr(snap, "value", None) or getattr(snap, "price", None)
            d["change"] = getattr(snap, "change", None)
            d["change_pct"] = getattr(snap, "change_percent", None)

        # Fallback: last_trade
        if d["last"] is None:
            lt = getattr(snap, "last_trade", None)
            if lt:
                d["last"] = getattr(lt, "price", None)

        # Fallback: last_quote midpoint
        if d["last"] is None:
            lq = getattr(snap, "last_quote", None)
            if lq:
                ask = getattr(lq, "ask", None)
                bid = getattr(lq, "bid", None)
                if ask and bid:
                    d["last"] = (ask + bid) / 2

        return d
