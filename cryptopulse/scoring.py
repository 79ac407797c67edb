"""
Risk index scoring for token market snapshots.

Each factor is expressed in "risk points" on a 0-10 scale (volatility is
left uncapped) and combined into a weighted 0-100 risk index.
"""

import logging
from typing import Dict, Any, List, Union

from cryptopulse.models import (
    TokenSnapshot,
    RiskAssessment,
    RiskCategory,
    safe_number,
    safe_rank,
)

logger = logging.getLogger("cryptopulse")

VOLATILITY_WEIGHT = 20
MARKET_CAP_WEIGHT = 30
LIQUIDITY_WEIGHT = 25
RANK_WEIGHT = 15
AGE_WEIGHT = 10

# Listing age is not available from the market feed
AGE_FACTOR = 5.0
DEFAULT_RANK = 100
DEFAULT_LIQUIDITY_FACTOR = 5.0

# (exclusive lower bound, points), checked top-down
MARKET_CAP_BUCKETS = [
    (100_000_000_000, 1.0),
    (50_000_000_000, 2.0),
    (10_000_000_000, 3.0),
    (5_000_000_000, 4.0),
    (1_000_000_000, 5.0),
    (500_000_000, 6.0),
    (100_000_000, 7.0),
    (50_000_000, 8.0),
    (10_000_000, 9.0),
]
SMALLEST_CAP_FACTOR = 10.0

# (exclusive upper bound on turnover ratio, points), checked top-down
TURNOVER_BUCKETS = [
    (0.01, 10.0),
    (0.05, 8.0),
    (0.1, 6.0),
    (0.2, 4.0),
    (0.3, 2.0),
]
HIGH_TURNOVER_FACTOR = 1.0

CATEGORY_BOUNDS = [
    (20.0, RiskCategory.VERY_LOW),
    (40.0, RiskCategory.LOW),
    (60.0, RiskCategory.MEDIUM),
    (80.0, RiskCategory.HIGH),
]

SnapshotLike = Union[TokenSnapshot, Dict[str, Any]]


def volatility_factor(price_change_percentage_24h: Any) -> float:
    return abs(safe_number(price_change_percentage_24h)) / 2


def market_cap_factor(market_cap: Any) -> float:
    cap = safe_number(market_cap)
    for threshold, points in MARKET_CAP_BUCKETS:
        if cap > threshold:
            return points
    return SMALLEST_CAP_FACTOR


def liquidity_factor(total_volume: Any, market_cap: Any) -> float:
    cap = safe_number(market_cap)
    if cap <= 0:
        return DEFAULT_LIQUIDITY_FACTOR
    turnover = max(safe_number(total_volume), 0.0) / cap
    for threshold, points in TURNOVER_BUCKETS:
        if turnover < threshold:
            return points
    return HIGH_TURNOVER_FACTOR


def rank_factor(market_cap_rank: Any) -> float:
    rank = safe_rank(market_cap_rank)
    if rank is None:
        rank = DEFAULT_RANK
    return rank / 10


def categorize(risk_index: float) -> RiskCategory:
    """Map a 0-100 risk index to its category"""
    for upper, category in CATEGORY_BOUNDS:
        if risk_index < upper:
            return category
    return RiskCategory.VERY_HIGH


def score(snapshot: SnapshotLike) -> RiskAssessment:
    """Compute the risk assessment for a snapshot.

    Never raises for missing or malformed numeric fields: they degrade to
    the worst-case or neutral defaults documented on each factor. Raw
    provider dicts are accepted as well as TokenSnapshot instances.
    """
    if not isinstance(snapshot, TokenSnapshot):
        snapshot = TokenSnapshot.from_api(snapshot or {})

    volatility = volatility_factor(snapshot.price_change_percentage_24h)
    cap_points = market_cap_factor(snapshot.market_cap)
    liquidity = liquidity_factor(snapshot.total_volume, snapshot.market_cap)
    rank = rank_factor(snapshot.market_cap_rank)

    weighted = (
        volatility * VOLATILITY_WEIGHT
        + cap_points * MARKET_CAP_WEIGHT
        + liquidity * LIQUIDITY_WEIGHT
        + rank * RANK_WEIGHT
        + AGE_FACTOR * AGE_WEIGHT
    ) / 10
    risk_index = min(max(weighted, 0.0), 100.0)

    return RiskAssessment(
        risk_index=risk_index,
        risk_category=categorize(risk_index),
        volatility_factor=volatility,
        market_cap_factor=cap_points,
        liquidity_factor=liquidity,
        rank_factor=rank,
        age_factor=AGE_FACTOR,
    )


def derive_tags(snapshot: TokenSnapshot) -> List[str]:
    """Display tags describing cap size and 24h movement"""
    cap = safe_number(snapshot.market_cap)
    change = safe_number(snapshot.price_change_percentage_24h)

    tags = []
    if cap > 10_000_000_000:
        tags.append("large-cap")
    elif cap < 1_000_000_000:
        tags.append("small-cap")
    else:
        tags.append("mid-cap")

    if abs(change) > 10:
        tags.append("volatile")
    tags.append("gaining" if change > 0 else "declining")
    return tags
