"""
Static market data used when the provider cannot be reached on first load
"""

from typing import Dict, Any, List

from cryptopulse.models import TokenSnapshot

BACKUP_MARKET_DATA: List[Dict[str, Any]] = [
    {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "current_price": 60234.21,
     "price_change_percentage_24h": 2.4, "market_cap": 1_185_000_000_000,
     "market_cap_rank": 1, "total_volume": 28_400_000_000},
    {"id": "ethereum", "symbol": "eth", "name": "Ethereum", "current_price": 3112.45,
     "price_change_percentage_24h": 1.8, "market_cap": 374_000_000_000,
     "market_cap_rank": 2, "total_volume": 14_200_000_000},
    {"id": "tether", "symbol": "usdt", "name": "Tether", "current_price": 1.0,
     "price_change_percentage_24h": 0.01, "market_cap": 110_000_000_000,
     "market_cap_rank": 3, "total_volume": 45_000_000_000},
    {"id": "binancecoin", "symbol": "bnb", "name": "Binance Coin", "current_price": 523.64,
     "price_change_percentage_24h": 0.9, "market_cap": 77_000_000_000,
     "market_cap_rank": 4, "total_volume": 1_500_000_000},
    {"id": "solana", "symbol": "sol", "name": "Solana", "current_price": 123.87,
     "price_change_percentage_24h": -0.5, "market_cap": 55_000_000_000,
     "market_cap_rank": 5, "total_volume": 2_900_000_000},
    {"id": "ripple", "symbol": "xrp", "name": "XRP", "current_price": 0.5827,
     "price_change_percentage_24h": 1.2, "market_cap": 32_000_000_000,
     "market_cap_rank": 6, "total_volume": 1_100_000_000},
    {"id": "dogecoin", "symbol": "doge", "name": "Dogecoin", "current_price": 0.1432,
     "price_change_percentage_24h": 5.2, "market_cap": 20_500_000_000,
     "market_cap_rank": 8, "total_volume": 1_300_000_000},
    {"id": "cardano", "symbol": "ada", "name": "Cardano", "current_price": 0.4371,
     "price_change_percentage_24h": -1.3, "market_cap": 15_400_000_000,
     "market_cap_rank": 10, "total_volume": 380_000_000},
]


def get_backup_snapshots() -> List[TokenSnapshot]:
    return [TokenSnapshot.from_api(record) for record in BACKUP_MARKET_DATA]
