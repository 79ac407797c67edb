"""
API client for CoinGecko-compatible market data endpoints
"""

import requests
import logging
import time
from typing import Dict, Any, Optional, List
from requests.exceptions import RequestException, Timeout, ConnectionError

from cryptopulse.models import TokenSnapshot

logger = logging.getLogger("cryptopulse")


class APIError(Exception):
    """Exception raised for API errors"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MarketDataAPI:
    """Client for the market data provider (or a proxy in front of it)"""

    def __init__(self, base_url: str, timeout: int = 30, max_retries: int = 3,
                 api_key: Optional[str] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.api_key = api_key
        self.session = requests.Session()

        logger.debug(f"Initialized market data client for {base_url}")

    def _make_request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None,
                      headers: Optional[Dict[str, str]] = None) -> Any:
        """Make an HTTP request with retry logic"""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        default_headers = {"Accept": "application/json"}
        if self.api_key:
            default_headers["x-cg-demo-api-key"] = self.api_key
        if headers:
            default_headers.update(headers)

        for attempt in range(self.max_retries):
            try:
                start_time = time.time()
                response = self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=default_headers,
                    timeout=self.timeout
                )
                elapsed = time.time() - start_time

                logger.debug(f"{method} {url} completed in {elapsed:.2f}s (status: {response.status_code})")

                response.raise_for_status()

                try:
                    return response.json()
                except ValueError:
                    raise APIError(f"Response is not valid JSON: {response.text[:100]}")

            except Timeout:
                logger.warning(f"Request timed out (attempt {attempt+1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise APIError(f"Request timed out after {self.max_retries} attempts")
                time.sleep(1)

            except ConnectionError as e:
                logger.warning(f"Connection error: {str(e)} (attempt {attempt+1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise APIError(f"Connection failed after {self.max_retries} attempts: {str(e)}")
                time.sleep(1)

            except RequestException as e:
                error_response = getattr(e, 'response', None)
                status_code = error_response.status_code if error_response is not None else "unknown"
                logger.error(f"Request failed with status {status_code}: {str(e)}")

                # Don't retry 4xx errors (except 429)
                if error_response is not None and 400 <= error_response.status_code < 500 \
                        and error_response.status_code != 429:
                    try:
                        error_data = error_response.json()
                        error_message = error_data.get('error', str(e)) if isinstance(error_data, dict) else str(e)
                    except ValueError:
                        error_message = error_response.text or str(e)

                    raise APIError(f"API error ({status_code}): {error_message}", status_code=status_code)

                if attempt == self.max_retries - 1:
                    raise APIError(f"Request failed after {self.max_retries} attempts: {str(e)}")

                # Exponential backoff
                sleep_time = 2 ** attempt
                logger.debug(f"Retrying in {sleep_time} seconds...")
                time.sleep(sleep_time)

        raise APIError("Request was not attempted (max_retries must be at least 1)")

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a GET request to the API"""
        return self._make_request("GET", endpoint, params=params)

    def get_markets(self, vs_currency: str = "usd", per_page: int = 100, page: int = 1,
                    order: str = "market_cap_desc", ids: Optional[List[str]] = None,
                    price_change_percentage: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get market records from /coins/markets"""
        params: Dict[str, Any] = {
            "vs_currency": vs_currency,
            "order": order,
            "per_page": per_page,
            "page": page,
            "sparkline": "false",
        }
        if ids:
            params["ids"] = ",".join(ids)
        if price_change_percentage:
            params["price_change_percentage"] = price_change_percentage

        result = self.get("coins/markets", params=params)
        if not isinstance(result, list):
            raise APIError(f"Unexpected market data payload: {type(result).__name__}")
        return result

    def get_market_snapshots(self, vs_currency: str = "usd", per_page: int = 100,
                             page: int = 1, ids: Optional[List[str]] = None) -> List[TokenSnapshot]:
        """Get market records as TokenSnapshot objects"""
        records = self.get_markets(vs_currency=vs_currency, per_page=per_page, page=page, ids=ids)
        snapshots = []
        for record in records:
            if not isinstance(record, dict) or not record.get("id"):
                logger.debug(f"Skipping market record without id: {record!r}")
                continue
            snapshots.append(TokenSnapshot.from_api(record))
        return snapshots

    def get_coin(self, coin_id: str) -> Dict[str, Any]:
        """Get detailed data for a single coin"""
        params = {
            "localization": "false",
            "tickers": "false",
            "market_data": "true",
            "community_data": "false",
            "developer_data": "false",
        }
        return self.get(f"coins/{coin_id}", params=params)

    def get_coin_snapshot(self, coin_id: str, vs_currency: str = "usd") -> Optional[TokenSnapshot]:
        """Get a single coin's detail record flattened into a TokenSnapshot"""
        try:
            coin = self.get_coin(coin_id)
        except APIError as e:
            if e.status_code == 404:
                return None
            raise
        if not isinstance(coin, dict) or not coin.get("id"):
            return None

        market_data = coin.get("market_data") or {}

        def quote(key: str) -> Any:
            value = market_data.get(key)
            return value.get(vs_currency) if isinstance(value, dict) else value

        return TokenSnapshot.from_api({
            "id": coin["id"],
            "symbol": coin.get("symbol"),
            "name": coin.get("name"),
            "current_price": quote("current_price"),
            "price_change_percentage_24h": quote("price_change_percentage_24h"),
            "market_cap": quote("market_cap"),
            "market_cap_rank": coin.get("market_cap_rank") or market_data.get("market_cap_rank"),
            "total_volume": quote("total_volume"),
            "last_updated": coin.get("last_updated") or market_data.get("last_updated"),
        })

    def close(self) -> None:
        """Close the API client session"""
        self.session.close()
