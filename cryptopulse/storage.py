"""
Durable key-value storage for watchlist membership and alerts
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Dict, Any, Optional, Union

logger = logging.getLogger("cryptopulse")

WATCHLIST_KEY = "tokenWatchlist"
ALERTS_KEY = "cryptopulse-alerts"


class KeyValueStore(ABC):
    """Process-wide store: read on init, written on every mutation"""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """Non-durable store, mainly for tests"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data = deepcopy(initial) if initial else {}
        self._lock = threading.RLock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return deepcopy(self._data.get(key, default))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Store persisted as a single JSON document on disk"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._data = self._load()
        logger.debug(f"Opened store at {self.path}")

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Error loading store file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store file {self.path}: expected a JSON object")
            return {}
        return data

    def _save(self) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, 'w') as f:
            json.dump(self._data, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return deepcopy(self._data.get(key, default))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = deepcopy(value)
            self._save()

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._save()
