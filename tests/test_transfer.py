"""
Transfers are recipient-initiated: the caller claims an asset the sender
currently holds. Each success bumps the asset's transfer counter.
"""

from __future__ import annotations

import pytest

from asset_registry.errors import (AlreadyDestroyed, AssetMissing, ContextError,
                                   OwnershipViolation)


def test_recipient_claims_asset(registry):
    aid = registry.mint("admin", "ipfs://a")
    assert registry.transfer("bob", aid, "admin", "bob") is True
    assert registry.owner_of(aid) == "bob"
    assert registry.transfer_count(aid) == 1
    assert registry.last_operation(aid) == "transfer"


def test_transfer_chain_counts_each_hop(registry):
    aid = registry.mint("admin", "ipfs://a")
    registry.transfer("bob", aid, "admin", "bob")
    registry.transfer("carol", aid, "bob", "carol")
    registry.transfer("admin", aid, "carol", "admin")
    assert registry.owner_of(aid) == "admin"
    assert registry.transfer_count(aid) == 3


def test_sender_must_be_current_owner(registry):
    aid = registry.mint("admin", "ipfs://a")
    with pytest.raises(OwnershipViolation):
        registry.transfer("bob", aid, "carol", "bob")
    assert registry.owner_of(aid) == "admin"
    assert registry.transfer_count(aid) == 0


def test_owner_cannot_push_to_someone_else(registry):
    aid = registry.mint("admin", "ipfs://a")
    # caller is the owner, not the recipient
    with pytest.raises(OwnershipViolation):
        registry.transfer("admin", aid, "admin", "bob")
    assert registry.owner_of(aid) == "admin"


def test_third_party_cannot_claim_for_recipient(registry):
    aid = registry.mint("admin", "ipfs://a")
    with pytest.raises(OwnershipViolation):
        registry.transfer("mallory", aid, "admin", "bob")


def test_unknown_asset(registry):
    with pytest.raises(AssetMissing):
        registry.transfer("bob", 7, "admin", "bob")


@pytest.mark.parametrize("bad_id", [0, -1, True, "1"])
def test_malformed_ids_are_missing(registry, bad_id):
    registry.mint("admin", "ipfs://a")
    with pytest.raises(AssetMissing):
        registry.transfer("bob", bad_id, "admin", "bob")


def test_destroyed_checked_before_ownership(registry):
    aid = registry.mint("admin", "ipfs://a")
    registry.destroy("admin", aid)
    # sender is wrong too, but destruction is reported first
    with pytest.raises(AlreadyDestroyed):
        registry.transfer("carol", aid, "bob", "carol")


def test_failed_transfer_writes_no_audit(registry):
    aid = registry.mint("admin", "ipfs://a")
    with pytest.raises(OwnershipViolation):
        registry.transfer("admin", aid, "admin", "bob")
    assert [r.action for r in registry.audit_records(aid)] == ["mint"]


@pytest.mark.parametrize("sender", ["", "   ", None, 7, "x" * 300])
def test_unusable_sender_on_unknown_asset_is_missing(registry, sender):
    with pytest.raises(AssetMissing):
        registry.transfer("bob", 99, sender, "bob")


@pytest.mark.parametrize("sender", ["", "   ", None, 7, "a\ud800"])
def test_unusable_sender_is_ownership_violation(registry, sender):
    aid = registry.mint("admin", "ipfs://a")
    with pytest.raises(OwnershipViolation):
        registry.transfer("bob", aid, sender, "bob")
    assert registry.owner_of(aid) == "admin"


@pytest.mark.parametrize("recipient", ["", "  ", None, "b\ud800"])
def test_unusable_recipient_is_ownership_violation(registry, recipient):
    aid = registry.mint("admin", "ipfs://a")
    with pytest.raises(OwnershipViolation):
        registry.transfer("bob", aid, "admin", recipient)
    assert registry.transfer_count(aid) == 0


def test_unusable_parties_on_destroyed_asset(registry):
    aid = registry.mint("admin", "ipfs://a")
    registry.destroy("admin", aid)
    with pytest.raises(AlreadyDestroyed):
        registry.transfer("bob", aid, "", "")


def test_sender_and_recipient_whitespace_is_stripped(registry):
    aid = registry.mint("admin", "ipfs://a")
    assert registry.transfer("bob", aid, " admin ", "bob  ") is True
    assert registry.owner_of(aid) == "bob"


def test_non_utf8_caller_is_rejected_before_any_write(registry):
    aid = registry.mint("admin", "ipfs://a")
    with pytest.raises(ContextError):
        registry.transfer("b\ud800", aid, "admin", "b\ud800")
    assert registry.owner_of(aid) == "admin"
    assert [r.action for r in registry.audit_records(aid)] == ["mint"]
