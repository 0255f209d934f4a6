from pathlib import Path

import pytest
import yaml

from rulecord.configuration.app_configuration import (
    DEFAULT_EXCERPT_LIMIT,
    DEFAULT_FLAG_THRESHOLD,
    DEFAULT_LOG_LIMIT,
    AppConfig,
)


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path, tmp_path: Path) -> None:
    config_payload = {
        "database": {"path": str(tmp_path / "data" / "bot.db")},
        "logging": {"level": "debug"},
        "moderation": {
            "default_flag_threshold": 5,
            "excerpt_limit": 200,
            "regex_cache_size": 32,
            "default_log_limit": 25,
        },
        "notifier": {"timeout_seconds": 2.5},
    }
    config_path.write_text(yaml.safe_dump(config_payload), encoding="utf-8")

    config = AppConfig(config_path)

    assert config.database_path == (tmp_path / "data" / "bot.db").resolve()
    assert config.log_level == "debug"
    assert config.default_flag_threshold == 5
    assert config.excerpt_limit == 200
    assert config.regex_cache_size == 32
    assert config.default_log_limit == 25
    assert config.notifier_timeout_seconds == pytest.approx(2.5)
    assert config.get("moderation")["excerpt_limit"] == 200


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.default_flag_threshold == DEFAULT_FLAG_THRESHOLD
    assert config.excerpt_limit == DEFAULT_EXCERPT_LIMIT
    assert config.default_log_limit == DEFAULT_LOG_LIMIT
    assert config.log_level == "INFO"
    assert config.database_path.name == "rulecord.db"


def test_app_config_invalid_values_fall_back(config_path: Path) -> None:
    config_path.write_text(
        yaml.safe_dump({"moderation": {"default_flag_threshold": "lots", "excerpt_limit": None}}),
        encoding="utf-8",
    )

    config = AppConfig(config_path)

    assert config.default_flag_threshold == DEFAULT_FLAG_THRESHOLD
    assert config.excerpt_limit == DEFAULT_EXCERPT_LIMIT


def test_app_config_threshold_is_at_least_one(config_path: Path) -> None:
    config_path.write_text(yaml.safe_dump({"moderation": {"default_flag_threshold": 0}}), encoding="utf-8")

    assert AppConfig(config_path).default_flag_threshold == 1


def test_app_config_non_mapping_is_ignored(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    config = AppConfig(config_path)

    assert config.data == {}


def test_app_config_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text(yaml.safe_dump({"moderation": {"default_log_limit": 5}}), encoding="utf-8")
    config = AppConfig(config_path)
    assert config.default_log_limit == 5

    config_path.write_text(yaml.safe_dump({"moderation": {"default_log_limit": 50}}), encoding="utf-8")
    config.reload()

    assert config.default_log_limit == 50
