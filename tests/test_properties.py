"""
Property tests for the registry lifecycle.

Random operation sequences run against a fresh in-memory registry and a
small reference model; after every step the two must agree on
- ids: allocated from 1 upward with no gaps, never reused
- ownership: every live asset has exactly one owner, destroyed ones none
- destruction: permanent, later transfers and destroys see AlreadyDestroyed
- metadata: any 1..256 character text round-trips unchanged
- bulk mint: valid items get consecutive ids in input order, invalid ones
  are reported by index
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple, Type

import pytest
from hypothesis import given, settings, strategies as st

from asset_registry.errors import (AlreadyDestroyed, AssetMissing,
                                   MetadataInvalid, MetadataPermission,
                                   OwnershipViolation, RegistryError,
                                   Unauthorized)
from asset_registry.limits import RegistryLimits
from asset_registry.registry import open_registry

ADMIN = "admin"

# -----------------------------------------------------------------------------
# Strategies
# -----------------------------------------------------------------------------

ACTOR = st.sampled_from([ADMIN, "bob", "carol"])
ASSET_ID = st.integers(min_value=0, max_value=8)
VALID_META = st.text(min_size=1, max_size=256)
BAD_META = st.one_of(st.just(""), st.text(min_size=257, max_size=300), st.none(), st.integers())
META = st.one_of(VALID_META, VALID_META, BAD_META)

OPS = st.one_of(
    st.tuples(st.just("mint"), ACTOR, META),
    st.tuples(st.just("transfer"), ACTOR, ASSET_ID, ACTOR, ACTOR),
    st.tuples(st.just("destroy"), ACTOR, ASSET_ID),
    st.tuples(st.just("admin_destroy"), ACTOR, ASSET_ID),
    st.tuples(st.just("update_metadata"), ACTOR, ASSET_ID, META),
)


def _valid(meta) -> bool:
    return isinstance(meta, str) and 1 <= len(meta) <= 256


# -----------------------------------------------------------------------------
# Reference model
# -----------------------------------------------------------------------------


class Model:
    def __init__(self) -> None:
        self.minted = 0
        self.owners: Dict[int, str] = {}
        self.destroyed: Set[int] = set()
        self.metadata: Dict[int, str] = {}
        self.transfers: Dict[int, int] = {}

    def _live(self, aid: int) -> Optional[Type[RegistryError]]:
        if not 1 <= aid <= self.minted:
            return AssetMissing
        if aid in self.destroyed:
            return AlreadyDestroyed
        return None

    def apply(self, op: Tuple) -> Tuple[Optional[Type[RegistryError]], object]:
        """Expected (error type, return value) for `op`, updating the model on success."""
        kind = op[0]
        if kind == "mint":
            _, caller, meta = op
            if caller != ADMIN:
                return Unauthorized, None
            if not _valid(meta):
                return MetadataInvalid, None
            self.minted += 1
            self.owners[self.minted] = ADMIN
            self.metadata[self.minted] = meta
            self.transfers[self.minted] = 0
            return None, self.minted

        if kind == "transfer":
            _, caller, aid, sender, recipient = op
            err = self._live(aid)
            if err is not None:
                return err, None
            if self.owners[aid] != sender or caller != recipient:
                return OwnershipViolation, None
            self.owners[aid] = recipient
            self.transfers[aid] += 1
            return None, True

        if kind == "destroy":
            _, caller, aid = op
            err = self._live(aid)
            if err is not None:
                return err, None
            if self.owners[aid] != caller:
                return OwnershipViolation, None
            self._destroy(aid)
            return None, True

        if kind == "admin_destroy":
            _, caller, aid = op
            if caller != ADMIN:
                return Unauthorized, None
            err = self._live(aid)
            if err is not None:
                return err, None
            self._destroy(aid)
            return None, True

        _, caller, aid, meta = op
        err = self._live(aid)
        if err is not None:
            return err, None
        if self.owners[aid] != caller:
            return MetadataPermission, None
        if not _valid(meta):
            return MetadataInvalid, None
        self.metadata[aid] = meta
        return None, True

    def _destroy(self, aid: int) -> None:
        del self.owners[aid]
        self.destroyed.add(aid)


def _call(registry, op: Tuple):
    kind, caller, *args = op
    if kind == "transfer":
        aid, sender, recipient = args
        return registry.transfer(caller, aid, sender, recipient)
    return getattr(registry, kind)(caller, *args)


def _assert_agrees(registry, model: Model) -> None:
    assert registry.total_minted() == model.minted
    assert registry.live_assets() == len(model.owners)
    for aid in range(1, model.minted + 1):
        assert registry.exists(aid)
        assert registry.metadata_of(aid) == model.metadata[aid]
        assert registry.transfer_count(aid) == model.transfers[aid]
        if aid in model.destroyed:
            assert registry.is_destroyed(aid) is True
            assert registry.owner_of(aid) is None
        else:
            assert registry.is_destroyed(aid) is False
            assert registry.owner_of(aid) == model.owners[aid]
    assert not registry.exists(model.minted + 1)


# -----------------------------------------------------------------------------
# Properties
# -----------------------------------------------------------------------------


@given(st.lists(OPS, min_size=1, max_size=40))
@settings(max_examples=150, deadline=None)
def test_operation_sequences_match_model(ops: List[Tuple]):
    registry = open_registry("memory://", administrator=ADMIN)
    model = Model()
    try:
        for op in ops:
            expected_err, expected_ret = model.apply(op)
            if expected_err is None:
                assert _call(registry, op) == expected_ret
            else:
                with pytest.raises(expected_err):
                    _call(registry, op)
            _assert_agrees(registry, model)
    finally:
        registry.close()


MINT_CALLS = st.lists(
    st.one_of(st.tuples(st.just("one"), META), st.lists(META, min_size=1, max_size=50)),
    max_size=12,
)


@given(MINT_CALLS)
@settings(max_examples=100, deadline=None)
def test_ids_are_gap_free_across_single_and_bulk_mints(calls):
    registry = open_registry("memory://", administrator=ADMIN)
    issued: List[int] = []
    try:
        for call in calls:
            if isinstance(call, tuple):
                try:
                    issued.append(registry.mint(ADMIN, call[1]))
                except MetadataInvalid:
                    pass
            else:
                issued.extend(registry.bulk_mint(ADMIN, call))
        assert issued == list(range(1, len(issued) + 1))
        assert registry.total_minted() == len(issued)
    finally:
        registry.close()


@given(VALID_META, VALID_META)
@settings(max_examples=150, deadline=None)
def test_metadata_round_trips(first: str, second: str):
    registry = open_registry("memory://", administrator=ADMIN)
    try:
        aid = registry.mint(ADMIN, first)
        assert registry.metadata_of(aid) == first
        assert registry.update_metadata(ADMIN, aid, second) is True
        assert registry.metadata_of(aid) == second
        registry.destroy(ADMIN, aid)
        assert registry.metadata_of(aid) == second
    finally:
        registry.close()


@given(st.lists(META, min_size=1, max_size=50), st.integers(min_value=0, max_value=5))
@settings(max_examples=150, deadline=None)
def test_bulk_partial_mints_valid_items_in_order(items, already):
    registry = open_registry("memory://", administrator=ADMIN)
    try:
        for i in range(already):
            registry.mint(ADMIN, f"seed-{i}")
        result = registry.bulk_mint_detailed(ADMIN, items)

        valid = [m for m in items if _valid(m)]
        assert result.ids == list(range(already + 1, already + 1 + len(valid)))
        assert result.rejected == [i for i, m in enumerate(items) if not _valid(m)]
        assert result.requested == len(items)
        assert result.is_partial == (len(valid) != len(items))
        assert [registry.metadata_of(aid) for aid in result.ids] == valid
        assert all(registry.owner_of(aid) == ADMIN for aid in result.ids)
        assert registry.total_minted() == already + len(valid)
    finally:
        registry.close()


@given(st.lists(META, min_size=1, max_size=50))
@settings(max_examples=100, deadline=None)
def test_bulk_atomic_is_all_or_nothing(items):
    registry = open_registry(
        "memory://", administrator=ADMIN, limits=RegistryLimits(bulk_mode="atomic")
    )
    try:
        if all(_valid(m) for m in items):
            assert registry.bulk_mint(ADMIN, items) == list(range(1, len(items) + 1))
        else:
            with pytest.raises(MetadataInvalid):
                registry.bulk_mint(ADMIN, items)
            assert registry.total_minted() == 0
    finally:
        registry.close()


@given(st.lists(st.tuples(ACTOR, ACTOR), max_size=10))
@settings(max_examples=100, deadline=None)
def test_destroyed_asset_stays_destroyed(attempts):
    registry = open_registry("memory://", administrator=ADMIN)
    try:
        aid = registry.mint(ADMIN, "ipfs://a")
        registry.admin_destroy(ADMIN, aid)
        for caller, sender in attempts:
            with pytest.raises(AlreadyDestroyed):
                registry.transfer(caller, aid, sender, caller)
            with pytest.raises(AlreadyDestroyed):
                registry.destroy(caller, aid)
            assert registry.is_destroyed(aid) is True
            assert registry.owner_of(aid) is None
    finally:
        registry.close()
