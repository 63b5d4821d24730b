"""Unit tests for config.py"""

import pytest

from mdsocial.config import load_config


def test_load_config_defaults():
    """Defaults apply when no mdsocial.yaml, env var, or CLI override exists."""
    settings = load_config()
    assert settings.base_url == ""
    assert settings.extensions == [".md"]
    assert settings.publish_max_days == 0
    assert settings.dry_run is False
    assert settings.bluesky_host == "https://bsky.social"


def test_load_config_uses_env_base_url(monkeypatch):
    """MDSOCIAL_BASE_URL env var is picked up by load_config."""
    monkeypatch.setenv("MDSOCIAL_BASE_URL", "https://env.test")
    assert load_config().base_url == "https://env.test"


def test_load_config_reads_config_yaml(tmp_path):
    (tmp_path / "mdsocial.yaml").write_text("base_url: https://file.test\npublish_max_days: 14\n")
    settings = load_config()
    assert settings.base_url == "https://file.test"
    assert settings.publish_max_days == 14


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """MDSOCIAL_BASE_URL takes precedence over mdsocial.yaml base_url."""
    (tmp_path / "mdsocial.yaml").write_text("base_url: https://file.test\n")
    monkeypatch.setenv("MDSOCIAL_BASE_URL", "https://env.test")
    assert load_config().base_url == "https://env.test"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("MDSOCIAL_BASE_URL", "https://env.test")
    settings = load_config(overrides={"base_url": "https://cli.test", "bluesky_handle": None})
    assert settings.base_url == "https://cli.test"
    assert settings.bluesky_handle == ""


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when mdsocial.yaml contains invalid YAML."""
    (tmp_path / "mdsocial.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid mdsocial.yaml"):
        load_config()


def test_load_config_env_coerces_types(monkeypatch):
    """Env strings are coerced to the field types."""
    monkeypatch.setenv("MDSOCIAL_PUBLISH_MAX_DAYS", "7")
    monkeypatch.setenv("MDSOCIAL_DRY_RUN", "true")
    monkeypatch.setenv("MDSOCIAL_BLUESKY_TIMEOUT", "2.5")
    settings = load_config()
    assert settings.publish_max_days == 7
    assert settings.dry_run is True
    assert settings.bluesky_timeout == 2.5


def test_load_config_env_extensions(monkeypatch):
    """A comma-separated extension list is split and dot-prefixed."""
    monkeypatch.setenv("MDSOCIAL_EXTENSIONS", "md, .mdx")
    assert load_config().extensions == [".md", ".mdx"]


def test_load_config_rejects_negative_age():
    with pytest.raises(ValueError):
        load_config(overrides={"publish_max_days": -1})
