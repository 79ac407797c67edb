"""
CryptoPulse - risk index scoring, watchlist ranking and price alerts for
crypto market data
"""

__version__ = "0.1.0"
