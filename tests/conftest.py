"""
Pytest configuration file for CryptoPulse tests
"""

import os
import sys
import pytest
from click.testing import CliRunner

# Add the parent directory to sys.path to allow imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cryptopulse.models import TokenSnapshot
from cryptopulse.storage import MemoryStore


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config, storage and logs out of the real home directory"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def runner():
    """Create a CLI runner for testing"""
    return CliRunner()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def market_records():
    """Raw /coins/markets records"""
    return [
        {
            "id": "bitcoin", "symbol": "btc", "name": "Bitcoin",
            "current_price": 60000.0, "price_change_percentage_24h": 2.0,
            "market_cap": 1_200_000_000_000, "market_cap_rank": 1,
            "total_volume": 30_000_000_000, "last_updated": "2024-05-01T12:00:00.000Z",
        },
        {
            "id": "ethereum", "symbol": "eth", "name": "Ethereum",
            "current_price": 3000.0, "price_change_percentage_24h": -4.0,
            "market_cap": 360_000_000_000, "market_cap_rank": 2,
            "total_volume": 18_000_000_000, "last_updated": "2024-05-01T12:01:00.000Z",
        },
        {
            "id": "tiny-token", "symbol": "tiny", "name": "Tiny Token",
            "current_price": 100.0, "price_change_percentage_24h": -45.0,
            "market_cap": 8_000_000, "market_cap_rank": None,
            "total_volume": 4_000_000, "last_updated": None,
        },
        {
            "id": "ether-classic", "symbol": "etc", "name": "Ethereum Classic",
            "current_price": 25.0, "price_change_percentage_24h": 0.5,
            "market_cap": 3_600_000_000, "market_cap_rank": 30,
            "total_volume": 200_000_000, "last_updated": "2024-05-01T11:59:00.000Z",
        },
    ]


@pytest.fixture
def snapshots(market_records):
    return [TokenSnapshot.from_api(record) for record in market_records]
