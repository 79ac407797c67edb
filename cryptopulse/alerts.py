"""
Price alerts: persisted thresholds evaluated against fresh snapshots
"""

import logging
from typing import Dict, Any, Optional, List, Iterable

from cryptopulse.models import PriceAlert, TokenSnapshot, safe_number
from cryptopulse.storage import KeyValueStore, ALERTS_KEY

logger = logging.getLogger("cryptopulse")

DIRECTIONS = ("above", "below")
APPROACHING_PERCENT = 5.0


class AlertError(Exception):
    """Exception raised for invalid alert operations"""
    pass


def condition_met(alert: PriceAlert, price: float) -> bool:
    if alert.direction == "above":
        return price >= alert.threshold_price
    return price <= alert.threshold_price


def alert_status(alert: PriceAlert, price: Optional[float]) -> str:
    """Display status of an alert given the token's current price"""
    if alert.triggered:
        return "triggered"
    if not alert.active:
        return "inactive"
    if price is None or price <= 0 or alert.threshold_price <= 0:
        return "unavailable"
    if condition_met(alert, price):
        return "condition_met"
    gap = abs((price - alert.threshold_price) / alert.threshold_price) * 100
    if gap <= APPROACHING_PERCENT:
        return "approaching"
    return "waiting"


class AlertBook:
    """Alert definitions backed by a KeyValueStore"""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.alerts: List[PriceAlert] = self._load()

    def _load(self) -> List[PriceAlert]:
        raw = self.store.get(ALERTS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed alert list in store")
            return []
        alerts = []
        for item in raw:
            if not isinstance(item, dict) or not item.get("token_id"):
                logger.warning(f"Skipping malformed alert entry: {item!r}")
                continue
            alert = PriceAlert.from_dict(item)
            if alert.threshold_price <= 0 or alert.direction not in DIRECTIONS:
                logger.warning(f"Skipping alert with invalid threshold or direction: {item!r}")
                continue
            alerts.append(alert)
        return alerts

    def _save(self) -> None:
        self.store.set(ALERTS_KEY, [alert.to_dict() for alert in self.alerts])

    def _get(self, index: int) -> PriceAlert:
        if not 0 <= index < len(self.alerts):
            raise AlertError(f"No alert at index {index}")
        return self.alerts[index]

    def add_alert(self, token_id: str, threshold_price: float, direction: str,
                  symbol: Optional[str] = None) -> PriceAlert:
        if direction not in DIRECTIONS:
            raise AlertError(f"Direction must be one of {', '.join(DIRECTIONS)}")
        threshold = safe_number(threshold_price)
        if threshold <= 0:
            raise AlertError("Threshold price must be a positive number")
        if not token_id:
            raise AlertError("Token id is required")

        alert = PriceAlert(token_id=token_id, threshold_price=threshold,
                           direction=direction, symbol=symbol)
        self.alerts.append(alert)
        self._save()
        logger.info(f"Added alert: {token_id} {direction} {threshold}")
        return alert

    def remove_alert(self, index: int) -> PriceAlert:
        alert = self._get(index)
        del self.alerts[index]
        self._save()
        return alert

    def toggle_alert(self, index: int) -> PriceAlert:
        """Flip an alert on or off; either way it is re-armed"""
        alert = self._get(index)
        alert.active = not alert.active
        alert.triggered = False
        self._save()
        return alert

    def reset_alert(self, index: int) -> PriceAlert:
        alert = self._get(index)
        alert.triggered = False
        self._save()
        return alert

    def evaluate(self, snapshots: Iterable[Any]) -> List[PriceAlert]:
        """Fire every armed alert whose condition holds, returning the new triggers.

        Alerts for tokens missing from snapshots, or quoted without a
        positive price, never fire.
        """
        prices: Dict[str, float] = {}
        for snapshot in snapshots:
            if isinstance(snapshot, dict):
                snapshot = TokenSnapshot.from_api(snapshot)
            price = safe_number(getattr(snapshot, "current_price", None))
            if price > 0:
                prices[snapshot.id] = price

        fired = []
        for alert in self.alerts:
            if not alert.active or alert.triggered:
                continue
            price = prices.get(alert.token_id)
            if price is None:
                continue
            if condition_met(alert, price):
                alert.triggered = True
                fired.append(alert)
                logger.info(f"Alert triggered: {alert.token_id} is {alert.direction} "
                            f"{alert.threshold_price} (now {price})")

        if fired:
            self._save()
        return fired
