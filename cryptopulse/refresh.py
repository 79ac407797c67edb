"""
Periodic market data refresh with stale-but-present failure handling
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Optional, Callable, List

from cryptopulse.api import MarketDataAPI, APIError
from cryptopulse.alerts import AlertBook
from cryptopulse.fallback import get_backup_snapshots
from cryptopulse.models import PriceAlert
from cryptopulse.watchlist import WatchlistRanker

logger = logging.getLogger("cryptopulse")

DEFAULT_INTERVAL = 60


class MarketPoller:
    """Pulls snapshots on a fixed interval and feeds the ranker and alerts.

    A failed fetch leaves the ranker's last collection in place. Only when
    nothing has been loaded yet is the static fallback dataset used.
    """

    def __init__(self, api: MarketDataAPI, ranker: WatchlistRanker,
                 alert_book: Optional[AlertBook] = None, interval: float = DEFAULT_INTERVAL,
                 stale_after: Optional[float] = None, use_fallback: bool = True,
                 vs_currency: str = "usd", per_page: int = 100):
        self.api = api
        self.ranker = ranker
        self.alert_book = alert_book
        self.interval = interval
        self.stale_after = stale_after if stale_after is not None else interval * 2
        self.use_fallback = use_fallback
        self.vs_currency = vs_currency
        self.per_page = per_page
        self.using_fallback = False
        self.last_error: Optional[str] = None
        self.fired_alerts: List[PriceAlert] = []

    def poll_once(self) -> bool:
        """Run one refresh cycle; returns True when fresh data was applied"""
        self.fired_alerts = []
        try:
            snapshots = self.api.get_market_snapshots(vs_currency=self.vs_currency,
                                                      per_page=self.per_page)
        except APIError as e:
            self.last_error = str(e)
            logger.warning(f"Market data refresh failed: {e}")
            if self.use_fallback and not self.ranker.collection:
                logger.info("Loading fallback market data")
                self.ranker.refresh(get_backup_snapshots())
                self.using_fallback = True
            return False

        self.last_error = None
        self.using_fallback = False
        self.ranker.refresh(snapshots)
        if self.alert_book is not None:
            self.fired_alerts = self.alert_book.evaluate(snapshots)
        return True

    def run(self, iterations: Optional[int] = None, sleep: Optional[Callable[[float], None]] = None,
            on_cycle: Optional[Callable[[bool], None]] = None) -> None:
        """Poll until iterations cycles have run (forever when None)"""
        sleep = sleep or time.sleep
        cycle = 0
        while iterations is None or cycle < iterations:
            updated = self.poll_once()
            if on_cycle is not None:
                on_cycle(updated)
            cycle += 1
            if iterations is not None and cycle >= iterations:
                break
            sleep(self.interval)

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        return self.ranker.is_stale(timedelta(seconds=self.stale_after), now=now)

    def newest_quote_time(self) -> Optional[datetime]:
        times = [token.snapshot.last_updated for token in self.ranker.collection
                 if token.snapshot.last_updated is not None]
        return max(times) if times else None
