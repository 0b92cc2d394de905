"""
Settings for the total-economy application.

Settings are resolved in three layers, later layers winning:

1. dataclass defaults below
2. a YAML or JSON file (``config.<environment>.yml`` before ``config.yml``)
3. ``TE_*`` environment variables

Money amounts are always held as ``Decimal``.
"""

import os
import json
import yaml
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional
from pathlib import Path
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum

from .errors import ConfigurationError


# Largest amount that stays exact to the cent at the default Decimal
# precision, even after adding two such amounts
MAX_AMOUNT = Decimal("9999999999999999999999999.99")


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class EconomyConfig:
    """Balances, the optional money cap and where accounts are stored"""
    starting_balance: Decimal = Decimal("100.00")
    money_cap_enabled: bool = False
    money_cap: Decimal = Decimal("10000000.00")
    accounts_file: str = "data/accounts.yml"

    currency_singular: str = "Dollar"
    currency_plural: str = "Dollars"
    currency_symbol: str = "$"

    # Player name lookups for display
    profile_lookup_enabled: bool = True
    profile_lookup_url: str = "https://sessionserver.mojang.com/session/minecraft/profile"
    profile_lookup_timeout: float = 5.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_handler_enabled: bool = True
    console_handler_enabled: bool = True
    log_directory: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

    main_log_file: str = "main.log"
    error_log_file: str = "error.log"
    economy_log_file: str = "economy.log"


@dataclass
class AppConfig:
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    version: str = "1.0.0"

    economy: EconomyConfig = field(default_factory=EconomyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_decimal(key: str, value: Any) -> Decimal:
    """Read a money amount; floats go through ``str`` so 0.1 stays 0.1"""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ConfigurationError(key, f"Invalid decimal value: {value!r}", cause=e)


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


# Environment variable suffix -> (section, attribute, converter).
# A section of None means the attribute lives on AppConfig itself.
_ENV_OVERRIDES: Dict[str, tuple] = {
    "STARTING_BALANCE": ("economy", "starting_balance", Decimal),
    "MONEY_CAP_ENABLED": ("economy", "money_cap_enabled", bool),
    "MONEY_CAP": ("economy", "money_cap", Decimal),
    "ACCOUNTS_FILE": ("economy", "accounts_file", str),
    "PROFILE_LOOKUP_ENABLED": ("economy", "profile_lookup_enabled", bool),
    "PROFILE_LOOKUP_URL": ("economy", "profile_lookup_url", str),
    "PROFILE_LOOKUP_TIMEOUT": ("economy", "profile_lookup_timeout", float),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_DIRECTORY": ("logging", "log_directory", str),
    "LOG_FILE_ENABLED": ("logging", "file_handler_enabled", bool),
    "LOG_CONSOLE_ENABLED": ("logging", "console_handler_enabled", bool),
    "DEBUG": (None, "debug", bool),
}


def _converter_for(kind: type, key: str) -> Callable[[Any], Any]:
    if kind is bool:
        return parse_bool
    if kind is Decimal:
        return lambda value: parse_decimal(key, value)
    return kind


class ConfigManager:
    """
    Loads and caches one ``AppConfig``.

    The loaded object is reused until ``reload_config`` is called.
    """

    def __init__(self, config_dir: Optional[Path] = None, env_prefix: str = "TE_"):
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        self.env_prefix = env_prefix
        self._config: Optional[AppConfig] = None

    def load_config(self,
                    environment: Optional[str] = None,
                    config_file: Optional[str] = None) -> AppConfig:
        """
        Build the configuration from defaults, file and environment

        Raises:
            ConfigurationError: for an unknown environment, an unreadable file
                or a value that fails validation
        """
        if self._config is not None:
            return self._config

        env_name = environment or os.getenv(f"{self.env_prefix}ENVIRONMENT", "development")
        try:
            config = AppConfig(environment=Environment(env_name.lower()))
        except ValueError:
            raise ConfigurationError("environment", f"Invalid environment: {env_name}")

        try:
            path = self._find_config_file(config_file, config.environment)
            if path is not None:
                self._apply_file(config, self._read_file(path))
            self._apply_environment(config)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                "config_loading", f"Failed to load configuration: {e}", cause=e
            )

        self._validate(config)
        self._config = config
        return config

    def _find_config_file(self, config_file: Optional[str],
                          environment: Environment) -> Optional[Path]:
        if config_file:
            path = Path(config_file)
            if not path.is_absolute():
                path = self.config_dir / path
            if not path.exists():
                raise ConfigurationError("config_file", f"Configuration file not found: {path}")
            return path

        for stem in (f"config.{environment.value}", "config"):
            for suffix in (".yml", ".yaml", ".json"):
                path = self.config_dir / f"{stem}{suffix}"
                if path.exists():
                    return path
        return None

    def _read_file(self, path: Path) -> Dict[str, Any]:
        suffix = path.suffix.lower()
        if suffix not in ('.yml', '.yaml', '.json'):
            raise ConfigurationError(
                "config_file_format", f"Unsupported configuration file format: {suffix}"
            )
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f) if suffix == '.json' else yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(
                "config_file_read", f"Failed to read configuration file {path}: {e}", cause=e
            )
        return data or {}

    def _apply_file(self, config: AppConfig, data: Any) -> None:
        """Copy known keys from the file onto ``config``; unknown keys are ignored"""
        if not isinstance(data, dict):
            raise ConfigurationError(
                "config_file_format",
                "Configuration file must contain a mapping at the top level",
            )

        for key, value in data.items():
            if key == "environment" or not hasattr(config, key):
                continue
            current = getattr(config, key)
            if not (is_dataclass(current) and isinstance(value, dict)):
                setattr(config, key, value)
                continue

            known = {f.name: f.type for f in fields(current)}
            for name, raw in value.items():
                if name not in known:
                    continue
                if known[name] is Decimal:
                    raw = parse_decimal(f"{key}.{name}", raw)
                setattr(current, name, raw)

    def _apply_environment(self, config: AppConfig) -> None:
        for suffix, (section, attr, kind) in _ENV_OVERRIDES.items():
            env_var = f"{self.env_prefix}{suffix}"
            raw = os.getenv(env_var)
            if raw is None:
                continue
            try:
                value = _converter_for(kind, env_var)(raw)
            except ValueError as e:
                raise ConfigurationError(
                    env_var, f"Invalid value for environment variable {env_var}: {raw}", cause=e
                )
            target = config if section is None else getattr(config, section)
            setattr(target, attr, value)

    def _validate(self, config: AppConfig) -> None:
        economy = config.economy
        economy.money_cap_enabled = parse_bool(economy.money_cap_enabled)

        for key in ("starting_balance", "money_cap"):
            amount = getattr(economy, key)
            if not amount.is_finite() or not 0 <= amount <= MAX_AMOUNT:
                raise ConfigurationError(
                    f"economy.{key}", f"Amount must be between 0 and {MAX_AMOUNT}"
                )

        if economy.money_cap_enabled and economy.starting_balance > economy.money_cap:
            raise ConfigurationError(
                "economy.starting_balance", "Starting balance cannot exceed the money cap"
            )
        if not economy.currency_singular.strip():
            raise ConfigurationError("economy.currency_singular", "Currency name cannot be empty")
        if not economy.accounts_file:
            raise ConfigurationError("economy.accounts_file", "Accounts file path is required")
        if economy.profile_lookup_timeout <= 0:
            raise ConfigurationError(
                "economy.profile_lookup_timeout", "Profile lookup timeout must be positive"
            )

    def get_config(self) -> AppConfig:
        if self._config is None:
            raise ConfigurationError(
                "config_not_loaded", "Configuration not loaded. Call load_config() first."
            )
        return self._config

    def reload_config(self) -> AppConfig:
        self._config = None
        return self.load_config()


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> AppConfig:
    return get_config_manager().get_config()


def load_config(**kwargs) -> AppConfig:
    return get_config_manager().load_config(**kwargs)


def reset_config() -> None:
    """Forget the loaded configuration (tests and reloads)"""
    global _config_manager
    _config_manager = None
