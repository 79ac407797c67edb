"""
Watchlist ranking: scored token collection with search, filter, sort and
persisted watchlist membership.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, List, Iterable, Set

from cryptopulse.models import TokenSnapshot, ScoredToken, RiskSummary
from cryptopulse.scoring import score, derive_tags, categorize
from cryptopulse.storage import KeyValueStore, WATCHLIST_KEY

logger = logging.getLogger("cryptopulse")

FILTER_ALL = "all"
FILTER_WATCHLIST = "watchlist"
FILTER_NON_WATCHLIST = "non-watchlist"

FILTER_ALIASES = {
    FILTER_ALL: FILTER_ALL,
    FILTER_WATCHLIST: FILTER_WATCHLIST,
    "watchlist-only": FILTER_WATCHLIST,
    FILTER_NON_WATCHLIST: FILTER_NON_WATCHLIST,
    "non-watchlist-only": FILTER_NON_WATCHLIST,
}

STRING_FIELDS = ("name", "symbol")
NUMERIC_FIELDS = (
    "current_price",
    "price_change_percentage_24h",
    "market_cap",
    "market_cap_rank",
    "total_volume",
    "risk_index",
)
SORT_FIELDS = STRING_FIELDS + NUMERIC_FIELDS
SORT_DIRECTIONS = ("asc", "desc")


class WatchlistRanker:
    """Keeps the latest scored collection and the user's view over it.

    The collection is replaced wholesale on every refresh. Membership lives
    in the injected store and is re-read on each refresh, so a toggle made
    between two refreshes is never lost.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = threading.RLock()
        self._collection: List[ScoredToken] = []
        self._search = ""
        self._filter = FILTER_ALL
        self._sort_field = "risk_index"
        self._sort_directions: Dict[str, str] = {"risk_index": "desc"}
        self.refreshed_at: Optional[datetime] = None

    # Membership

    def _read_membership(self) -> List[str]:
        raw = self.store.get(WATCHLIST_KEY, [])
        if not isinstance(raw, list):
            logger.warning(f"Ignoring malformed watchlist entry of type {type(raw).__name__}")
            return []
        ids = []
        for item in raw:
            # Older stores kept whole token records
            token_id = item.get("id") if isinstance(item, dict) else item
            if isinstance(token_id, str) and token_id and token_id not in ids:
                ids.append(token_id)
        return ids

    def watched_ids(self) -> Set[str]:
        with self._lock:
            return set(self._read_membership())

    def is_watched(self, token_id: str) -> bool:
        return token_id in self.watched_ids()

    def set_membership(self, token_id: str, watched: bool) -> bool:
        """Persist membership for token_id and mirror it in the collection"""
        with self._lock:
            ids = self._read_membership()
            if watched and token_id not in ids:
                ids.append(token_id)
            elif not watched and token_id in ids:
                ids.remove(token_id)
            self.store.set(WATCHLIST_KEY, ids)

            for token in self._collection:
                if token.id == token_id:
                    token.on_watchlist = watched
            logger.debug(f"Watchlist membership for {token_id} set to {watched}")
            return watched

    def toggle_membership(self, token_id: str) -> bool:
        """Flip membership and return the new state.

        Unknown ids are still recorded and take effect on the next refresh.
        """
        with self._lock:
            return self.set_membership(token_id, token_id not in self._read_membership())

    # Collection

    def refresh(self, snapshots: Iterable[Any]) -> List[ScoredToken]:
        """Score snapshots and replace the working collection"""
        scored = []
        for snapshot in snapshots:
            if not isinstance(snapshot, TokenSnapshot):
                snapshot = TokenSnapshot.from_api(snapshot)
            scored.append(ScoredToken(
                snapshot=snapshot,
                assessment=score(snapshot),
                tags=derive_tags(snapshot),
            ))

        with self._lock:
            watched = set(self._read_membership())
            for token in scored:
                token.on_watchlist = token.id in watched
            self._collection = scored
            self.refreshed_at = datetime.now(timezone.utc)

        logger.info(f"Refreshed {len(scored)} tokens ({len(watched)} watched)")
        return list(scored)

    @property
    def collection(self) -> List[ScoredToken]:
        with self._lock:
            return list(self._collection)

    def watched_collection(self) -> List[ScoredToken]:
        with self._lock:
            return [token for token in self._collection if token.on_watchlist]

    def risk_summary(self) -> RiskSummary:
        """Highest, average and per-category risk over the watched tokens"""
        watched = self.watched_collection()
        summary = RiskSummary(count=len(watched))
        if not watched:
            return summary

        # max() keeps the first of equal scores, so ties resolve in collection order
        summary.highest = max(watched, key=lambda token: token.risk_index)
        summary.average_risk_index = sum(token.risk_index for token in watched) / len(watched)
        summary.average_category = categorize(summary.average_risk_index)
        for token in watched:
            summary.distribution[token.risk_category] += 1
        return summary

    def get(self, token_id: str) -> Optional[ScoredToken]:
        with self._lock:
            for token in self._collection:
                if token.id == token_id:
                    return token
        return None

    def is_stale(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        """True when the last refresh is older than max_age; naive now is read as UTC"""
        if self.refreshed_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now - self.refreshed_at > max_age

    # View state

    @property
    def search(self) -> str:
        return self._search

    @property
    def filter_mode(self) -> str:
        return self._filter

    @property
    def sort_field(self) -> str:
        return self._sort_field

    @property
    def sort_direction(self) -> str:
        return self._sort_directions.get(self._sort_field, "desc")

    def set_search(self, query: Optional[str]) -> None:
        self._search = query or ""

    def set_filter(self, mode: str) -> None:
        if mode not in FILTER_ALIASES:
            raise ValueError(f"Unknown filter mode: {mode}")
        self._filter = FILTER_ALIASES[mode]

    def sort_by(self, field: str, direction: Optional[str] = None) -> List[ScoredToken]:
        """Select the sort field and return the resulting visible list.

        Without an explicit direction, re-selecting the current field flips
        its direction; each field remembers its own direction and starts
        out descending.
        """
        if field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {field}")
        if direction is not None and direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {direction}")

        if direction is None:
            previous = self._sort_directions.get(field)
            if previous is None:
                direction = "desc"
            elif field == self._sort_field:
                direction = "asc" if previous == "desc" else "desc"
            else:
                direction = previous

        self._sort_field = field
        self._sort_directions[field] = direction
        return self.visible()

    def _matches(self, token: ScoredToken) -> bool:
        if self._filter == FILTER_WATCHLIST and not token.on_watchlist:
            return False
        if self._filter == FILTER_NON_WATCHLIST and token.on_watchlist:
            return False
        if self._search:
            query = self._search.lower()
            return query in token.name.lower() or query in token.symbol.lower()
        return True

    def _sort_key(self, token: ScoredToken) -> Any:
        value = getattr(token, self._sort_field)
        if self._sort_field in STRING_FIELDS:
            return value or ""
        if value is None:
            # Unknown rank counts as the worst rank
            return float("inf")
        return value

    def visible(self) -> List[ScoredToken]:
        """Filtered, searched and sorted view of the collection"""
        with self._lock:
            matching = [token for token in self._collection if self._matches(token)]
        # sorted() is stable in both directions
        return sorted(matching, key=self._sort_key, reverse=self.sort_direction == "desc")
