# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from site_insight.config import API_KEY_ENV, PAGESPEED_ENDPOINT, InsightConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("batch_size: 3\nprovider_delay: 0.5", ".yaml", None),
        (json.dumps({"batch_size": 3, "provider_delay": 0.5}), ".json", None),
        ("batch_size: 0", ".yaml", ValidationError),
        ("unknown_option: 1", ".yaml", ValidationError),
        ("key: [unclosed", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ("{not json", ".json", ValueError),
        ("batch_size = 3", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, InsightConfig)
        assert cfg.batch_size == 3
        assert cfg.provider_delay == 0.5


def test_defaults_when_no_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    cfg = load_config(None)
    assert cfg.batch_size == 5
    assert cfg.title_attempts == 3
    assert cfg.provider_attempts == 5
    assert cfg.outer_attempts == 5
    assert cfg.provider_delay == 2.0
    assert cfg.endpoint == PAGESPEED_ENDPOINT
    assert cfg.api_key is None


def test_default_file_is_picked_up(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("max_in_flight: 9\n", encoding="utf-8")
    assert load_config(None).max_in_flight == 9


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv(API_KEY_ENV, "env-key")
    assert InsightConfig().api_key == "env-key"
    monkeypatch.setenv(API_KEY_ENV, "   ")
    assert InsightConfig().api_key is None


def test_config_is_frozen():
    cfg = InsightConfig()
    with pytest.raises(ValidationError):
        cfg.batch_size = 10


def test_provider_timeout_default_and_bounds():
    assert InsightConfig().provider_timeout == 60.0
    assert InsightConfig(provider_timeout=5).provider_timeout == 5.0
    with pytest.raises(ValidationError):
        InsightConfig(provider_timeout=0)
