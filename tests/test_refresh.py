"""
Tests for the market poller
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from cryptopulse.alerts import AlertBook
from cryptopulse.api import APIError
from cryptopulse.fallback import BACKUP_MARKET_DATA
from cryptopulse.refresh import MarketPoller
from cryptopulse.watchlist import WatchlistRanker


@pytest.fixture
def api():
    return MagicMock()


@pytest.fixture
def ranker(store):
    return WatchlistRanker(store)


def test_poll_once_refreshes_ranker(api, ranker, snapshots):
    api.get_market_snapshots.return_value = snapshots
    poller = MarketPoller(api, ranker, per_page=50, vs_currency="eur")

    assert poller.poll_once() is True
    api.get_market_snapshots.assert_called_once_with(vs_currency="eur", per_page=50)
    assert len(ranker.collection) == 4
    assert poller.last_error is None


def test_failed_poll_keeps_previous_collection(api, ranker, snapshots):
    api.get_market_snapshots.side_effect = [snapshots, APIError("rate limited")]
    poller = MarketPoller(api, ranker)

    poller.poll_once()
    assert poller.poll_once() is False
    assert poller.last_error == "rate limited"
    assert len(ranker.collection) == 4
    assert not poller.using_fallback


def test_first_failure_loads_fallback(api, ranker):
    api.get_market_snapshots.side_effect = APIError("down")
    poller = MarketPoller(api, ranker)

    assert poller.poll_once() is False
    assert poller.using_fallback
    assert len(ranker.collection) == len(BACKUP_MARKET_DATA)


def test_fallback_can_be_disabled(api, ranker):
    api.get_market_snapshots.side_effect = APIError("down")
    poller = MarketPoller(api, ranker, use_fallback=False)

    assert poller.poll_once() is False
    assert ranker.collection == []


def test_alerts_evaluated_on_success(api, ranker, store, snapshots):
    book = AlertBook(store)
    book.add_alert("bitcoin", 50000, "above")
    book.add_alert("ethereum", 100, "below")
    api.get_market_snapshots.return_value = snapshots
    poller = MarketPoller(api, ranker, alert_book=book)

    poller.poll_once()
    assert [alert.token_id for alert in poller.fired_alerts] == ["bitcoin"]
    assert book.alerts[0].triggered

    poller.poll_once()
    assert poller.fired_alerts == []


def test_alerts_not_evaluated_on_failure(api, ranker, store):
    book = AlertBook(store)
    book.add_alert("bitcoin", 1, "above")
    api.get_market_snapshots.side_effect = APIError("down")
    MarketPoller(api, ranker, alert_book=book).poll_once()
    assert not book.alerts[0].triggered


def test_run_sleeps_between_cycles(api, ranker, snapshots):
    api.get_market_snapshots.return_value = snapshots
    sleep = MagicMock()
    cycles = []
    poller = MarketPoller(api, ranker, interval=5)

    poller.run(iterations=3, sleep=sleep, on_cycle=cycles.append)
    assert cycles == [True, True, True]
    assert sleep.call_count == 2
    sleep.assert_called_with(5)


def test_staleness(api, ranker, snapshots):
    api.get_market_snapshots.return_value = snapshots
    poller = MarketPoller(api, ranker, interval=30)
    assert poller.stale_after == 60
    assert poller.is_stale()

    poller.poll_once()
    assert not poller.is_stale()
    assert poller.is_stale(now=datetime.now(timezone.utc) + timedelta(seconds=61))


def test_newest_quote_time(api, ranker, snapshots):
    poller = MarketPoller(api, ranker)
    assert poller.newest_quote_time() is None

    api.get_market_snapshots.return_value = snapshots
    poller.poll_once()
    assert poller.newest_quote_time() == datetime(2024, 5, 1, 12, 1, tzinfo=timezone.utc)
