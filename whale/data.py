"""Async facade over the blocking provider.

SDK calls run in a worker thread via ``asyncio.to_thread``; callers await the
result on the event loop, so the render loop keeps receiving events while a
request is outstanding.
"""

import asyncio
import logging
from typing import List, Sequence, Tuple

from whale.models import Exchange, PriceEntry, TrendSeries

log = logging.getLogger(__name__)


async def fetch_current_prices(provider, exchange: Exchange,
                               markets: Sequence[str]) -> List[PriceEntry]:
    log.debug("fetching current prices for %d markets", len(markets))
    return await asyncio.to_thread(provider.fetch_current_prices, exchange, list(markets))


async def fetch_trend(provider, exchange: Exchange, market: str, period: str) -> TrendSeries:
    log.debug("fetching %s trend (%s)", market, period)
    return await asyncio.to_thread(provider.fetch_trend, exchange, market, period)


async def fetch_all(provider, exchange: Exchange, markets: Sequence[str],
                    market: str, period: str) -> Tuple[List[PriceEntry], TrendSeries]:
    """Cold-start fetch: both datasets, failing if either fails."""
    prices, trend = await asyncio.gather(
        fetch_current_prices(provider, exchange, markets),
        fetch_trend(provider, exchange, market, period),
        return_exceptions=True,
    )
    for outcome in (prices, trend):
        if isinstance(outcome, BaseException):
            raise outcome
    return prices, trend
