"""
Configuration management for QMT Analytics.

Supports loading from:
- Environment variables
- YAML/JSON config files
- Command-line arguments
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


@dataclass
class AnalyticsConfig:
    """Metric calculation parameters."""
    risk_free_rate: float = 0.03  # Annual
    trading_days_per_year: int = 252
    min_paired_observations: int = 10  # Alpha/beta and information ratio
    min_annualization_days: int = 5


@dataclass
class BackendConfig:
    """Trading backend API configuration."""
    base_url: str = "http://localhost:8000/api"
    timeout: float = 30.0
    dry_run: bool = True
    transactions_limit: int = 200
    max_retries: int = 3
    default_benchmark: str = "000300.SH"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_bytes: int = 10_000_000  # 10MB
    backup_count: int = 5
    json_format: bool = False


# Environment variable -> (config section, attribute); None targets Config itself
_ENV_OVERRIDES = {
    "QMT_API_BASE_URL": ("backend", "base_url"),
    "QMT_API_TIMEOUT": ("backend", "timeout"),
    "QMT_DRY_RUN": ("backend", "dry_run"),
    "QMT_RISK_FREE_RATE": ("analytics", "risk_free_rate"),
    "QMT_ENV": (None, "env"),
    "QMT_DEBUG": (None, "debug"),
    "QMT_LOG_LEVEL": ("logging", "level"),
    "QMT_LOG_FILE": ("logging", "file"),
    "QMT_LOG_JSON": ("logging", "json_format"),
}


def _coerce_env(raw: str, field_type: Any) -> Any:
    """Convert an env string to the declared type of the field it overrides."""
    if field_type is bool:
        return raw.strip().lower() in ("1", "true", "yes")
    if field_type in (int, float):
        return field_type(raw)
    return raw


def _apply_env(config: "Config") -> None:
    """Override fields of ``config`` from the environment variables that are set."""
    for var, (section, attr) in _ENV_OVERRIDES.items():
        raw = os.getenv(var)
        if not raw:
            continue
        target = config if section is None else getattr(config, section)
        field_types = {f.name: f.type for f in fields(target)}
        setattr(target, attr, _coerce_env(raw, field_types[attr]))


@dataclass
class Config:
    """Main configuration container."""
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment
    env: str = "development"  # development, staging, production
    debug: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls()

        if "analytics" in data:
            config.analytics = AnalyticsConfig(**data["analytics"])
        if "backend" in data:
            config.backend = BackendConfig(**data["backend"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])
        if "env" in data:
            config.env = data["env"]
        if "debug" in data:
            config.debug = data["debug"]

        return config

    @classmethod
    def from_file(cls, path: str) -> "Config":
        """Load config from JSON or YAML file."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            if path.suffix in (".yaml", ".yml"):
                import yaml
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> "Config":
        """Load config from environment variables."""
        config = cls()
        _apply_env(config)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "analytics": {
                "risk_free_rate": self.analytics.risk_free_rate,
                "trading_days_per_year": self.analytics.trading_days_per_year,
                "min_paired_observations": self.analytics.min_paired_observations,
                "min_annualization_days": self.analytics.min_annualization_days,
            },
            "backend": {
                "base_url": self.backend.base_url,
                "timeout": self.backend.timeout,
                "dry_run": self.backend.dry_run,
                "transactions_limit": self.backend.transactions_limit,
                "max_retries": self.backend.max_retries,
                "default_benchmark": self.backend.default_benchmark,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file": self.logging.file,
                "max_bytes": self.logging.max_bytes,
                "backup_count": self.logging.backup_count,
                "json_format": self.logging.json_format,
            },
            "env": self.env,
            "debug": self.debug,
        }

    def save(self, path: str) -> None:
        """Save config to JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


def load_config(
    config_file: Optional[str] = None,
    use_env: bool = True
) -> Config:
    """
    Load configuration with precedence:
    1. Environment variables (if use_env=True)
    2. Config file (if provided)
    3. Defaults
    """
    config = Config()

    if config_file:
        try:
            config = Config.from_file(config_file)
            logger.info(f"Loaded config from {config_file}")
        except FileNotFoundError:
            logger.warning(f"Config file not found: {config_file}, using defaults")

    if use_env:
        _apply_env(config)

    return config


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging based on config."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count
        )
        handlers.append(file_handler)

    if config.json_format:
        from .structured_logging import JsonFormatter
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(config.format)
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        handlers=handlers,
        force=True,
    )
