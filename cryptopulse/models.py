"""
Data models for market snapshots, risk assessments and price alerts
"""

import math
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, List

from dateutil import parser as date_parser

logger = logging.getLogger("cryptopulse")


def safe_number(value: Any, default: float = 0.0) -> float:
    """Coerce a provider value to a finite float, falling back to default"""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def safe_rank(value: Any) -> Optional[int]:
    """Market cap rank as a positive int, or None when unknown"""
    number = safe_number(value, default=0.0)
    if number <= 0:
        return None
    return int(number)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError):
        logger.debug(f"Ignoring unparseable timestamp: {value!r}")
        return None


class RiskCategory(str, Enum):
    VERY_LOW = "VeryLow"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "VeryHigh"


@dataclass
class TokenSnapshot:
    """One poll's worth of market data for a single token"""
    id: str
    symbol: str
    name: str
    current_price: float = 0.0
    price_change_percentage_24h: float = 0.0
    market_cap: float = 0.0
    market_cap_rank: Optional[int] = None
    total_volume: float = 0.0
    last_updated: Optional[datetime] = None

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> "TokenSnapshot":
        """Build a snapshot from a /coins/markets record.

        Missing or non-finite numbers become 0, negative prices, caps and
        volumes are clamped to 0 and an invalid rank becomes None.
        """
        token_id = str(record.get("id") or "")
        return cls(
            id=token_id,
            symbol=str(record.get("symbol") or "").upper(),
            name=str(record.get("name") or token_id),
            current_price=max(safe_number(record.get("current_price")), 0.0),
            price_change_percentage_24h=safe_number(record.get("price_change_percentage_24h")),
            market_cap=max(safe_number(record.get("market_cap")), 0.0),
            market_cap_rank=safe_rank(record.get("market_cap_rank")),
            total_volume=max(safe_number(record.get("total_volume")), 0.0),
            last_updated=parse_timestamp(record.get("last_updated")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        return data


@dataclass(frozen=True)
class RiskAssessment:
    risk_index: float
    risk_category: RiskCategory
    volatility_factor: float
    market_cap_factor: float
    liquidity_factor: float
    rank_factor: float
    age_factor: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["risk_category"] = self.risk_category.value
        return data


@dataclass
class ScoredToken:
    """A snapshot annotated with its risk assessment and watchlist flag"""
    snapshot: TokenSnapshot
    assessment: RiskAssessment
    on_watchlist: bool = False
    tags: List[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.snapshot.id

    @property
    def symbol(self) -> str:
        return self.snapshot.symbol

    @property
    def name(self) -> str:
        return self.snapshot.name

    @property
    def current_price(self) -> float:
        return self.snapshot.current_price

    @property
    def price_change_percentage_24h(self) -> float:
        return self.snapshot.price_change_percentage_24h

    @property
    def market_cap(self) -> float:
        return self.snapshot.market_cap

    @property
    def market_cap_rank(self) -> Optional[int]:
        return self.snapshot.market_cap_rank

    @property
    def total_volume(self) -> float:
        return self.snapshot.total_volume

    @property
    def risk_index(self) -> float:
        return self.assessment.risk_index

    @property
    def risk_category(self) -> RiskCategory:
        return self.assessment.risk_category

    def to_dict(self) -> Dict[str, Any]:
        data = self.snapshot.to_dict()
        data.update(self.assessment.to_dict())
        data["on_watchlist"] = self.on_watchlist
        data["tags"] = list(self.tags)
        return data


@dataclass
class RiskSummary:
    """Aggregate risk over the watched tokens of a collection"""
    count: int = 0
    highest: Optional[ScoredToken] = None
    average_risk_index: Optional[float] = None
    average_category: Optional[RiskCategory] = None
    distribution: Dict[RiskCategory, int] = field(
        default_factory=lambda: {category: 0 for category in RiskCategory})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "highest": self.highest.id if self.highest else None,
            "highest_risk_index": self.highest.risk_index if self.highest else None,
            "average_risk_index": self.average_risk_index,
            "average_category": self.average_category.value if self.average_category else None,
            "distribution": {category.value: n for category, n in self.distribution.items()},
        }


@dataclass
class PriceAlert:
    token_id: str
    threshold_price: float
    direction: str
    active: bool = True
    triggered: bool = False
    symbol: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceAlert":
        return cls(
            token_id=str(data.get("token_id", "")),
            threshold_price=safe_number(data.get("threshold_price")),
            direction=str(data.get("direction", "above")),
            active=bool(data.get("active", True)),
            triggered=bool(data.get("triggered", False)),
            symbol=data.get("symbol"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
