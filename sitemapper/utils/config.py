"""
Configuration management for the site mapper.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field, fields
from urllib.parse import urlparse

from ..exceptions import ConfigError


DEFAULT_CONFIG_PATH = "config.yaml"

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: str = ""
    max_depth: int = 1
    request_timeout: float = 30
    user_agent: str = "sitemapper/1.0"
    max_connections: int = 100
    claim_urls: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "WARNING"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    prometheus_port: int = 8000


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _is_integer(value: Any) -> bool:
    # YAML booleans load as bool, which is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return _is_integer(value) or isinstance(value, float)


def _section(cls, data: Optional[Dict[str, Any]], name: str):
    """Build a config section dataclass, rejecting unknown keys."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in '{name}' section: {', '.join(sorted(unknown))}")

    return cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """
        Load configuration from a YAML file.

        Without an explicit path, config.yaml in the working directory is
        used when present and defaults otherwise.
        """
        path = self.config_path
        if path is None:
            default_path = Path(DEFAULT_CONFIG_PATH)
            path = default_path if default_path.exists() else None
        elif not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        config_data: Dict[str, Any] = {}
        if path is not None:
            try:
                with open(path, 'r') as file:
                    config_data = yaml.safe_load(file) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")

        # Parse configuration sections
        self._config = Config(
            crawler=_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            logging=_section(LoggingConfig, config_data.get('logging'), 'logging'),
            monitoring=_section(MonitoringConfig, config_data.get('monitoring'), 'monitoring')
        )
        return self._config

    def apply_overrides(self, seed_url: Optional[str] = None, max_depth: Optional[int] = None,
                        log_level: Optional[str] = None) -> Config:
        """Apply command line values on top of the loaded configuration."""
        config = self.config
        if seed_url is not None:
            config.crawler.seed_url = seed_url
        if max_depth is not None:
            config.crawler.max_depth = max_depth
        if log_level is not None:
            config.logging.level = log_level
        return config

    def validate(self) -> Config:
        """Validate configuration values."""
        config = self.config

        # Validate seed URL
        seed_url = config.crawler.seed_url
        if not seed_url:
            raise ConfigError("Please enter a target URL")

        parsed = urlparse(seed_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigError(f"Invalid target URL: {seed_url}")

        # Validate numeric values
        if not _is_integer(config.crawler.max_depth):
            raise ConfigError("max_depth must be an integer")

        if not _is_number(config.crawler.request_timeout):
            raise ConfigError("request_timeout must be a number")
        if config.crawler.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

        if not _is_integer(config.crawler.max_connections):
            raise ConfigError("max_connections must be an integer")
        if config.crawler.max_connections < 0:
            raise ConfigError("max_connections must be non-negative")

        if not _is_integer(config.monitoring.prometheus_port):
            raise ConfigError("prometheus_port must be an integer")
        if not 0 < config.monitoring.prometheus_port <= 65535:
            raise ConfigError(f"Invalid prometheus_port: {config.monitoring.prometheus_port}")

        if not isinstance(config.logging.level, str):
            raise ConfigError(f"Log level must be a string, got {config.logging.level!r}")
        if config.logging.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {config.logging.level}")

        logging.getLogger(__name__).debug("Configuration validation passed")
        return config

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ConfigError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: Optional[str] = None, seed_url: Optional[str] = None,
                max_depth: Optional[int] = None, log_level: Optional[str] = None) -> Config:
    """Load configuration from file, apply overrides and validate."""
    manager = ConfigManager(config_path)
    manager.load_config()
    manager.apply_overrides(seed_url=seed_url, max_depth=max_depth, log_level=log_level)
    return manager.validate()
