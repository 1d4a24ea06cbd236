"""
Configuration management and loading.

Handles application settings and environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from energyiq.core.rates import TariffRate, lookup_rate
from energyiq.storage.db import DEFAULT_DB_PATH
from energyiq.storage.repository import MAX_HISTORY_ENTRIES

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ENERGYIQ_CONFIG"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class TariffConfig:
    """Country used for the rate lookup, with optional overrides."""
    country: str = "india"
    rate_per_kwh: Optional[float] = None
    currency: Optional[str] = None

    def __post_init__(self):
        """Validate tariff overrides."""
        if not self.country or not self.country.strip():
            raise ValueError("tariff.country cannot be empty")
        if self.rate_per_kwh is not None and self.rate_per_kwh < 0:
            raise ValueError("tariff.rate_per_kwh must be >= 0")
        if self.currency is not None and self.rate_per_kwh is None:
            raise ValueError("tariff.currency requires tariff.rate_per_kwh")

    def resolve(self) -> TariffRate:
        """Look up the country's tariff and apply the overrides."""
        rate = lookup_rate(self.country)
        if self.rate_per_kwh is None:
            return rate
        return TariffRate(
            country=rate.country,
            rate_per_kwh=self.rate_per_kwh,
            currency=self.currency or rate.currency,
            source="config"
        )


@dataclass(frozen=True)
class HistoryConfig:
    """Where and how much calculation history is kept."""
    db_path: str = DEFAULT_DB_PATH
    capacity: int = MAX_HISTORY_ENTRIES

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError("history.capacity must be > 0")


@dataclass(frozen=True)
class AssistantConfig:
    """LLM backend used for tips and free-form questions."""
    model: str = "gpt-4o-mini"
    base_url: Optional[str] = None
    api_key_env: str = "OPENAI_API_KEY"
    temperature: float = 0.7
    max_tokens: int = 800
    retry_delay_seconds: float = 2.0

    def __post_init__(self):
        """Validate assistant settings."""
        if not self.model or not self.model.strip():
            raise ValueError("assistant.model cannot be empty")
        if not 0 <= self.temperature <= 2:
            raise ValueError("assistant.temperature must be between 0 and 2")
        if self.max_tokens <= 0:
            raise ValueError("assistant.max_tokens must be > 0")
        if self.retry_delay_seconds < 0:
            raise ValueError("assistant.retry_delay_seconds must be >= 0")

    @property
    def api_key(self) -> Optional[str]:
        """API key read from the configured environment variable (and .env)."""
        load_dotenv()
        return os.getenv(self.api_key_env) or None


@dataclass(frozen=True)
class Settings:
    """Complete application configuration."""
    tariff: TariffConfig = field(default_factory=TariffConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    log_level: str = "INFO"

    def __post_init__(self):
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"logging.level must be one of: {sorted(_LOG_LEVELS)}")


_SECTION_KEYS = {
    "tariff": {"country", "rate_per_kwh", "currency"},
    "history": {"db_path", "capacity"},
    "assistant": {"model", "base_url", "api_key_env", "temperature", "max_tokens", "retry_delay_seconds"},
    "logging": {"level"},
}


def load_settings(path: Optional[str] = None) -> Settings:
    """Load and validate settings from a YAML file.

    Without a path the ENERGYIQ_CONFIG environment variable is consulted;
    when neither is set the built-in defaults are returned. Unknown keys
    are rejected so typos never fall back to defaults silently.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated Settings object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    path = path or os.getenv(CONFIG_ENV_VAR)
    if not path:
        return Settings()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if raw_config is None:
        logger.info("Config file %s is empty, using defaults", path)
        return Settings()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    unknown_keys = set(raw_config.keys()) - set(_SECTION_KEYS)
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    sections = {name: _section(raw_config, name) for name in _SECTION_KEYS}

    settings = Settings(
        tariff=TariffConfig(**_coerce(sections["tariff"], {"rate_per_kwh": float})),
        history=HistoryConfig(**_coerce(sections["history"], {"capacity": int, "db_path": str})),
        assistant=AssistantConfig(**_coerce(sections["assistant"], {
            "temperature": float,
            "max_tokens": int,
            "retry_delay_seconds": float,
        })),
        log_level=str(sections["logging"].get("level", "INFO")).upper()
    )
    logger.debug("Loaded settings from %s", path)
    return settings


def _section(raw_config: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Extract one section and reject unknown keys in it."""
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")

    unknown_keys = set(data.keys()) - _SECTION_KEYS[name]
    if unknown_keys:
        raise ValueError(f"Unknown keys in {name}: {unknown_keys}")
    return data


def _coerce(data: Dict[str, Any], types: Dict[str, type]) -> Dict[str, Any]:
    """Convert numeric fields, reporting bad values with their key."""
    coerced = dict(data)
    for key, kind in types.items():
        value = coerced.get(key)
        if value is None:
            continue
        if kind is str:
            coerced[key] = str(value)
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"'{key}' must be a number")
        coerced[key] = kind(value)
    return coerced
