"""Application configuration, loaded from config.json at the project root."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

RATES_URL = "https://api.exchangerate-api.com/v4/latest"


@dataclass
class AppConfig:
    owner: str = "local"
    reporting_currency: str = "ILS"
    rates_url: str = RATES_URL
    rates_ttl_seconds: int = 3600
    refresh_interval_seconds: int = 60
    http_timeout_seconds: float = 10.0
    log_level: str = "WARNING"


_DEFAULTS = AppConfig()
_cached: Optional[AppConfig] = None


def _config_path() -> Path:
    from ..data.database import _find_project_root
    return _find_project_root() / "config.json"


def get_config() -> AppConfig:
    global _cached
    if _cached is not None:
        return _cached
    path = _config_path()
    if not path.exists():
        _cached = AppConfig()
        return _cached
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        _cached = AppConfig(
            owner=data.get("owner", _DEFAULTS.owner),
            reporting_currency=data.get("reporting_currency", _DEFAULTS.reporting_currency).upper(),
            rates_url=data.get("rates_url", _DEFAULTS.rates_url),
            rates_ttl_seconds=int(data.get("rates_ttl_seconds", _DEFAULTS.rates_ttl_seconds)),
            refresh_interval_seconds=int(
                data.get("refresh_interval_seconds", _DEFAULTS.refresh_interval_seconds)
            ),
            http_timeout_seconds=float(data.get("http_timeout_seconds", _DEFAULTS.http_timeout_seconds)),
            log_level=data.get("log_level", _DEFAULTS.log_level).upper(),
        )
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        _cached = AppConfig()
    return _cached


def save_config(cfg: AppConfig) -> None:
    global _cached
    _cached = cfg
    data = {
        "owner": cfg.owner,
        "reporting_currency": cfg.reporting_currency,
        "rates_url": cfg.rates_url,
        "rates_ttl_seconds": cfg.rates_ttl_seconds,
        "refresh_interval_seconds": cfg.refresh_interval_seconds,
        "http_timeout_seconds": cfg.http_timeout_seconds,
        "log_level": cfg.log_level,
    }
    _config_path().write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def reset_config() -> None:
    """Forget the cached config so the next get_config() re-reads the file."""
    global _cached
    _cached = None
