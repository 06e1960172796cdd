from __future__ import annotations

import pytest
from pydantic import ValidationError

from asset_registry.config import Settings, load_config
from asset_registry.registry import AssetRegistry


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    for name in (
        "ADMINISTRATOR",
        "DB_URI",
        "MAX_BULK",
        "METADATA_MAX_LEN",
        "BULK_MODE",
        "CALLER_HEADER",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(f"ASSET_REGISTRY_{name}", raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


def test_defaults():
    cfg = Settings()
    assert cfg.administrator == "admin"
    assert cfg.db_uri == "memory://"
    assert cfg.max_bulk == 50
    assert cfg.metadata_max_len == 256
    assert cfg.bulk_mode == "partial"
    assert cfg.caller_header == "X-Caller"
    limits = cfg.to_limits()
    assert limits.max_bulk == 50
    assert limits.atomic_bulk is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ASSET_REGISTRY_ADMINISTRATOR", " root ")
    monkeypatch.setenv("ASSET_REGISTRY_MAX_BULK", "10")
    monkeypatch.setenv("ASSET_REGISTRY_BULK_MODE", "ATOMIC")
    monkeypatch.setenv("ASSET_REGISTRY_LOG_LEVEL", "debug")
    cfg = load_config()
    assert cfg.administrator == "root"
    assert cfg.max_bulk == 10
    assert cfg.bulk_mode == "atomic"
    assert cfg.log_level == "DEBUG"
    assert cfg.to_limits().atomic_bulk is True


def test_load_config_is_cached(monkeypatch):
    first = load_config()
    monkeypatch.setenv("ASSET_REGISTRY_MAX_BULK", "7")
    assert load_config() is first
    load_config.cache_clear()
    assert load_config().max_bulk == 7


@pytest.mark.parametrize(
    "env",
    [
        {"ASSET_REGISTRY_MAX_BULK": "0"},
        {"ASSET_REGISTRY_METADATA_MAX_LEN": "257"},
        {"ASSET_REGISTRY_BULK_MODE": "sometimes"},
        {"ASSET_REGISTRY_ADMINISTRATOR": "  "},
    ],
)
def test_invalid_values_rejected(monkeypatch, env):
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    with pytest.raises(ValidationError):
        Settings()


def test_registry_from_config(tmp_path):
    cfg = Settings(
        administrator="ops",
        db_uri=f"sqlite:///{tmp_path / 'cfg.db'}",
        max_bulk=3,
        bulk_mode="atomic",
    )
    reg = AssetRegistry.from_config(cfg)
    try:
        assert reg.administrator == "ops"
        assert reg.limits.max_bulk == 3
        assert reg.limits.atomic_bulk is True
    finally:
        reg.close()
