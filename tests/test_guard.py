from __future__ import annotations

import pytest

from asset_registry.context import normalize_identity
from asset_registry.errors import (BulkLimitExceeded, ContextError, MetadataInvalid,
                                   RegistryConfigError)
from asset_registry.limits import RegistryLimits
from asset_registry.registry import open_registry, validate_metadata


def test_validate_metadata_accepts_bounds():
    assert validate_metadata("a", max_len=3) == "a"
    assert validate_metadata("abc", max_len=3) == "abc"


def test_validate_metadata_counts_characters_not_bytes():
    # 3 characters, 9 UTF-8 bytes
    assert validate_metadata("€€€", max_len=3) == "€€€"


def test_validate_metadata_rejects_lone_surrogate():
    with pytest.raises(MetadataInvalid):
        validate_metadata("\ud800", max_len=10)


def test_validate_metadata_index_in_data():
    with pytest.raises(MetadataInvalid) as ei:
        validate_metadata("", max_len=3, index=4)
    assert ei.value.data["index"] == 4
    assert ei.value.data["length"] == 0


def test_custom_limits_apply():
    reg = open_registry(
        "memory://", administrator="admin", limits=RegistryLimits(max_bulk=2, metadata_max_len=4)
    )
    try:
        with pytest.raises(MetadataInvalid):
            reg.mint("admin", "12345")
        with pytest.raises(BulkLimitExceeded):
            reg.bulk_mint("admin", ["a", "b", "c"])
        assert reg.bulk_mint("admin", ["a", "b"]) == [1, 2]
    finally:
        reg.close()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_bulk": 0},
        {"metadata_max_len": 0},
        {"metadata_max_len": 257},
        {"bulk_mode": "sometimes"},
    ],
)
def test_invalid_limits(kwargs):
    with pytest.raises(RegistryConfigError):
        RegistryLimits(**kwargs)


def test_blank_administrator_rejected():
    with pytest.raises(RegistryConfigError):
        open_registry("memory://", administrator="   ")


def test_non_utf8_administrator_rejected():
    with pytest.raises(RegistryConfigError):
        open_registry("memory://", administrator="adm\udcff")


@pytest.mark.parametrize("value", ["", "  ", None, 3, "x" * 257, "b\ud800"])
def test_normalize_identity_rejects(value):
    with pytest.raises(ContextError):
        normalize_identity(value, field="sender")


def test_normalize_identity_strips():
    assert normalize_identity("  bob\t") == "bob"
    assert normalize_identity("álvaro") == "álvaro"
