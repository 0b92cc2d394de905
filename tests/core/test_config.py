"""
Tests for the configuration manager: defaults, file merging,
environment overrides and validation.
"""

from decimal import Decimal

import pytest
import yaml

from total_economy.cogs.economy import models
from total_economy.core.config import (
    MAX_AMOUNT,
    ConfigManager,
    Environment,
    get_config,
    load_config,
    parse_bool,
    parse_decimal,
)
from total_economy.core.errors import ConfigurationError


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults_without_files(self, tmp_path):
        config = ConfigManager(config_dir=tmp_path).load_config()

        assert config.environment is Environment.DEVELOPMENT
        assert config.economy.starting_balance == Decimal("100.00")
        assert config.economy.money_cap_enabled is False
        assert config.economy.currency_singular == "Dollar"
        assert config.logging.level == "INFO"

    def test_load_is_cached_until_reload(self, tmp_path):
        manager = ConfigManager(config_dir=tmp_path)
        first = manager.load_config()

        assert manager.load_config() is first
        assert manager.reload_config() is not first

    def test_invalid_environment(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_dir=tmp_path).load_config(environment="staging")
        assert exc_info.value.config_key == "environment"


class TestConfigFile:
    def test_yaml_values_are_merged(self, tmp_path):
        write_yaml(
            tmp_path / "config.yml",
            {
                "debug": True,
                "economy": {
                    "starting_balance": 25.5,
                    "money_cap_enabled": True,
                    "money_cap": "1000",
                    "currency_singular": "Coin",
                    "unknown_key": "ignored",
                },
                "logging": {"level": "DEBUG"},
            },
        )

        config = ConfigManager(config_dir=tmp_path).load_config()

        assert config.debug is True
        assert config.economy.starting_balance == Decimal("25.5")
        assert config.economy.money_cap == Decimal("1000")
        assert config.economy.currency_singular == "Coin"
        assert not hasattr(config.economy, "unknown_key")
        assert config.logging.level == "DEBUG"

    def test_environment_specific_file_wins(self, tmp_path):
        write_yaml(tmp_path / "config.yml", {"economy": {"currency_symbol": "$"}})
        write_yaml(tmp_path / "config.testing.yml", {"economy": {"currency_symbol": "€"}})

        config = ConfigManager(config_dir=tmp_path).load_config(environment="testing")

        assert config.environment is Environment.TESTING
        assert config.economy.currency_symbol == "€"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_dir=tmp_path).load_config(config_file="missing.yml")
        assert exc_info.value.config_key == "config_file"

    def test_invalid_decimal(self, tmp_path):
        write_yaml(tmp_path / "config.yml", {"economy": {"starting_balance": "lots"}})

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_dir=tmp_path).load_config()
        assert exc_info.value.config_key == "economy.starting_balance"

    def test_top_level_must_be_mapping(self, tmp_path):
        (tmp_path / "config.yml").write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager(config_dir=tmp_path).load_config()


class TestEnvironmentOverrides:
    def test_env_overrides_file(self, tmp_path, monkeypatch):
        write_yaml(tmp_path / "config.yml", {"economy": {"starting_balance": "10.00"}})
        monkeypatch.setenv("TE_STARTING_BALANCE", "42.10")
        monkeypatch.setenv("TE_MONEY_CAP_ENABLED", "yes")
        monkeypatch.setenv("TE_PROFILE_LOOKUP_TIMEOUT", "2.5")
        monkeypatch.setenv("TE_DEBUG", "1")

        config = ConfigManager(config_dir=tmp_path).load_config()

        assert config.economy.starting_balance == Decimal("42.10")
        assert config.economy.money_cap_enabled is True
        assert config.economy.profile_lookup_timeout == 2.5
        assert config.debug is True

    def test_invalid_env_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TE_PROFILE_LOOKUP_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_dir=tmp_path).load_config()
        assert exc_info.value.config_key == "TE_PROFILE_LOOKUP_TIMEOUT"


class TestValidation:
    @pytest.mark.parametrize(
        "economy, key",
        [
            ({"starting_balance": "-1"}, "economy.starting_balance"),
            ({"money_cap": "-5"}, "economy.money_cap"),
            ({"money_cap": "1e26"}, "economy.money_cap"),
            ({"starting_balance": "NaN"}, "economy.starting_balance"),
            (
                {"money_cap_enabled": True, "money_cap": "10", "starting_balance": "50"},
                "economy.starting_balance",
            ),
            ({"currency_singular": "  "}, "economy.currency_singular"),
            ({"profile_lookup_timeout": 0}, "economy.profile_lookup_timeout"),
        ],
    )
    def test_rejects_invalid_economy_settings(self, tmp_path, economy, key):
        write_yaml(tmp_path / "config.yml", {"economy": economy})

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_dir=tmp_path).load_config()
        assert exc_info.value.config_key == key

    def test_starting_balance_above_cap_allowed_when_cap_disabled(self, tmp_path):
        write_yaml(tmp_path / "config.yml", {"economy": {"money_cap": "10", "starting_balance": "50"}})

        config = ConfigManager(config_dir=tmp_path).load_config()

        assert config.economy.starting_balance == Decimal("50")


class TestGlobalConfig:
    def test_get_config_before_load_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            get_config()
        assert exc_info.value.config_key == "config_not_loaded"

    def test_load_then_get(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        loaded = load_config(environment="testing")

        assert get_config() is loaded


class TestParsers:
    @pytest.mark.parametrize("value", [True, "true", "1", "YES", " on "])
    def test_parse_bool_truthy(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", [False, "false", "0", "no", ""])
    def test_parse_bool_falsy(self, value):
        assert parse_bool(value) is False

    def test_parse_decimal_avoids_float_noise(self):
        assert parse_decimal("key", 0.1) == Decimal("0.1")


class TestAmountLimit:
    def test_largest_amount_is_accepted(self, tmp_path):
        write_yaml(tmp_path / "config.yml", {"economy": {"money_cap": str(MAX_AMOUNT)}})

        config = ConfigManager(config_dir=tmp_path).load_config()

        assert config.economy.money_cap == MAX_AMOUNT

    def test_models_share_the_limit(self):
        assert models.MAX_AMOUNT is MAX_AMOUNT
