"""
Configuration management for CryptoPulse
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger("cryptopulse")

DEFAULT_CONFIG = {
    "api_url": "https://api.coingecko.com/api/v3",
    "api_key": None,
    "vs_currency": "usd",
    "per_page": 100,
    "format": "table",
    "timeout": 30,
    "max_retries": 3,
    "refresh_interval": 60,
    "storage_path": None,
    "use_fallback": True,
    "color": True,
}


class Config:
    """Configuration manager for CryptoPulse"""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager"""
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / ".cryptopulse" / "config.json"

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        self.config = self._load_config()
        logger.debug(f"Loaded configuration from {self.config_path}")

    @property
    def is_yaml(self) -> bool:
        return self.config_path.suffix.lower() in (".yaml", ".yml")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or create default"""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    if self.is_yaml:
                        config = yaml.safe_load(f) or {}
                    else:
                        config = json.load(f)
                if not isinstance(config, dict):
                    raise ValueError("configuration root must be a mapping")
                # Merge with defaults for any missing keys
                return {**DEFAULT_CONFIG, **config}
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Error loading config file: {e}")
                return DEFAULT_CONFIG.copy()
        else:
            self._save_config(DEFAULT_CONFIG)
            return DEFAULT_CONFIG.copy()

    def _save_config(self, config: Dict[str, Any]) -> None:
        """Save configuration to file"""
        try:
            with open(self.config_path, 'w') as f:
                if self.is_yaml:
                    yaml.safe_dump(config, f, default_flow_style=False)
                else:
                    json.dump(config, f, indent=2)
        except OSError as e:
            logger.error(f"Error saving config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value"""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value"""
        self.config[key] = value
        self._save_config(self.config)

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values"""
        return self.config.copy()

    def reset(self) -> None:
        """Reset configuration to defaults"""
        self.config = DEFAULT_CONFIG.copy()
        self._save_config(self.config)

    @property
    def api_url(self) -> str:
        return self.get("api_url")

    @api_url.setter
    def api_url(self, value: str) -> None:
        self.set("api_url", value)

    @property
    def storage_path(self) -> Path:
        """Watchlist/alert store; defaults to storage.json beside the config file"""
        value = self.get("storage_path")
        if value:
            return Path(value).expanduser()
        return self.config_path.parent / "storage.json"
