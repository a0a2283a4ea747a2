from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from ai_news_aggregator.config import ConfigLocator, ConfigRepository, GlobalConfig


def test_config_locator_uses_env_and_creates_directories(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    monkeypatch.setenv("AI_NEWS_AGGREGATOR_HOME", str(home))
    locator = ConfigLocator()
    assert locator.project_root == home.resolve()
    assert locator.config_dir.is_dir()
    assert locator.logs_dir.is_dir()
    assert locator.global_config_path() == home.resolve() / "config" / "global_config.yaml"


def test_repository_writes_defaults_when_missing(temp_config_repository: ConfigRepository) -> None:
    config = temp_config_repository.load_global_config()
    path = temp_config_repository.locator.global_config_path()
    assert path.exists()
    assert config == GlobalConfig()
    assert temp_config_repository.load_global_config() is config


def test_repository_roundtrip_and_reload(temp_config_repository: ConfigRepository) -> None:
    config = GlobalConfig(cache_ttl_seconds=60, log_level="debug")
    temp_config_repository.save_global_config(config)
    assert temp_config_repository.reload() == config

    path = temp_config_repository.locator.global_config_path()
    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    payload["fetch"]["max_attempts"] = 5
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")

    reloaded = temp_config_repository.reload()
    assert reloaded.fetch.max_attempts == 5
    assert reloaded.log_level == "DEBUG"


def test_repository_rejects_non_mapping(temp_config_repository: ConfigRepository) -> None:
    temp_config_repository.locator.global_config_path().write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        temp_config_repository.load_global_config()
