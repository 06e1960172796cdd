from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from asset_registry.api.app import create_app
from asset_registry.config import Settings
from asset_registry.limits import RegistryLimits
from asset_registry.registry import AssetRegistry, open_registry

ADMIN = "admin"


@pytest.fixture()
def registry() -> Iterator[AssetRegistry]:
    """Fresh in-memory registry administered by "admin"."""
    reg = open_registry("memory://", administrator=ADMIN)
    try:
        yield reg
    finally:
        reg.close()


@pytest.fixture()
def atomic_registry() -> Iterator[AssetRegistry]:
    reg = open_registry(
        "memory://", administrator=ADMIN, limits=RegistryLimits(bulk_mode="atomic")
    )
    try:
        yield reg
    finally:
        reg.close()


@pytest.fixture()
def db_uri(tmp_path: Path) -> str:
    """URI of a SQLite file inside the test's temp dir."""
    return f"sqlite:///{tmp_path / 'registry.db'}"


@pytest.fixture()
def settings(db_uri: str) -> Settings:
    return Settings(administrator=ADMIN, db_uri=db_uri, max_bulk=50, log_format="console")


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    app = create_app(settings)
    with TestClient(app) as c:
        yield c
