"""End-to-end tests for the Collection operation surface.

Covers the documented minting scenarios, the quota and per-holder
invariants, and the total-quota boundary regression.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

from src.collectibles.authorizer import MintStage
from src.collectibles.collection import Collection
from src.collectibles.errors import (
    AddressCapExceededError,
    AdminQuotaExceededError,
    DuplicateTokenIdError,
    NotAdminError,
    NotOwnerError,
    NotTokenOwnerError,
    PublicQuotaExceededError,
    SaleInactiveError,
    SystemPausedError,
    TotalQuotaExceededError,
    WhitelistQuotaExceededError,
)
from src.collectibles.logger import EventLogger
from src.collectibles.quota import MintTier
from src.config_schema import validate_config_dict
from tests.testing_utils import ADMIN, OWNER, PUBLIC_USER, WHITELISTED


class TestScenarios:
    """Documented minting scenarios."""

    @pytest.mark.scenario(1)
    def test_admin_quota_exhausted_after_two(self, staffed_collection: Collection) -> None:
        """total=10, admin=2, whitelist=3: third admin mint is rejected."""
        result = staffed_collection.admin_mint(ADMIN, ADMIN, 1, "/1")
        assert result.tier_count == 1
        assert staffed_collection.quotas.count(MintTier.ADMIN) == 1

        staffed_collection.admin_mint(ADMIN, ADMIN, 2, "/2")
        assert staffed_collection.quotas.count(MintTier.ADMIN) == 2

        with pytest.raises(AdminQuotaExceededError):
            staffed_collection.admin_mint(ADMIN, ADMIN, 3, "/3")
        assert staffed_collection.quotas.count(MintTier.ADMIN) == 2
        assert staffed_collection.total_supply() == 2

    @pytest.mark.scenario(2)
    def test_non_admin_cannot_whitelist(self, staffed_collection: Collection) -> None:
        with pytest.raises(NotAdminError):
            staffed_collection.add_whitelisted_address(PUBLIC_USER, "eve")
        assert staffed_collection.is_whitelisted("eve") is False

    @pytest.mark.scenario(3)
    def test_whitelist_limit_of_one(self, collection: Collection) -> None:
        """Owner (holding the admin role) limits the whitelist tier to one mint."""
        collection.add_admin_address(OWNER, OWNER)
        collection.add_whitelisted_address(OWNER, "w")
        collection.set_whitelisted_minting_limit(OWNER, 1)

        collection.whitelist_user_mint("w", "w", 10, "/10")
        assert collection.owner_of(10) == "w"

        with pytest.raises(WhitelistQuotaExceededError):
            collection.whitelist_user_mint("w", "w", 11, "/11")
        assert collection.quotas.count(MintTier.WHITELIST) == 1

    @pytest.mark.scenario(4)
    def test_public_sale_inactive(self, staffed_collection: Collection) -> None:
        assert staffed_collection.quotas.remaining(MintTier.PUBLIC) == 5
        with pytest.raises(SaleInactiveError):
            staffed_collection.public_user_mint(PUBLIC_USER, PUBLIC_USER, 20, "/20")
        assert staffed_collection.quotas.count(MintTier.PUBLIC) == 0

    @pytest.mark.scenario(5)
    def test_holder_cap_across_tiers(self, open_collection: Collection) -> None:
        """Five mints to one holder from mixed tiers close every tier to them."""
        holder = "hoarder"
        open_collection.admin_mint(ADMIN, holder, 1, "")
        open_collection.admin_mint(ADMIN, holder, 2, "")
        open_collection.whitelist_user_mint(WHITELISTED, holder, 3, "")
        open_collection.public_user_mint(PUBLIC_USER, holder, 4, "")
        open_collection.public_user_mint(WHITELISTED, holder, 5, "")
        assert open_collection.holder_cap.minted_to(holder) == 5

        with pytest.raises(AddressCapExceededError):
            open_collection.admin_mint(ADMIN, holder, 6, "")
        with pytest.raises(AddressCapExceededError):
            open_collection.whitelist_user_mint(WHITELISTED, holder, 6, "")
        with pytest.raises(AddressCapExceededError):
            open_collection.public_user_mint(PUBLIC_USER, holder, 6, "")

    def test_admin_role_round_trip(self, collection: Collection) -> None:
        collection.add_admin_address(OWNER, "x")
        collection.remove_admin_address(OWNER, "x")
        assert collection.is_admin("x") is False

        collection.add_admin_address(OWNER, "x")
        assert collection.is_admin("x") is True


class TestTotalQuotaBoundary:
    """Regression: total guard uses 'at or above', not equality."""

    def test_lowered_total_below_sum_blocks_all_tiers(self, open_collection: Collection) -> None:
        open_collection.admin_mint(ADMIN, "a", 1, "")
        open_collection.whitelist_user_mint(WHITELISTED, "b", 2, "")
        open_collection.public_user_mint(PUBLIC_USER, "c", 3, "")

        open_collection.set_total_minting_limit(OWNER, 2)
        assert open_collection.quotas.total_minted == 3

        with pytest.raises(TotalQuotaExceededError):
            open_collection.admin_mint(ADMIN, "d", 4, "")
        with pytest.raises(TotalQuotaExceededError):
            open_collection.whitelist_user_mint(WHITELISTED, "d", 4, "")
        with pytest.raises(TotalQuotaExceededError):
            open_collection.public_user_mint(PUBLIC_USER, "d", 4, "")
        assert open_collection.quotas.total_minted == 3

    def test_exact_total_blocks(self, open_collection: Collection) -> None:
        open_collection.set_total_minting_limit(OWNER, 1)
        open_collection.admin_mint(ADMIN, "a", 1, "")
        with pytest.raises(TotalQuotaExceededError):
            open_collection.admin_mint(ADMIN, "a", 2, "")

    def test_raising_total_reopens_minting(self, open_collection: Collection) -> None:
        open_collection.set_total_minting_limit(OWNER, 1)
        open_collection.admin_mint(ADMIN, "a", 1, "")
        open_collection.set_total_minting_limit(OWNER, 10)
        open_collection.admin_mint(ADMIN, "a", 2, "")
        assert open_collection.quotas.total_minted == 2


class TestInvariants:
    """Counters never exceed limits; holders never exceed the cap."""

    def test_exhaust_every_tier(self, open_collection: Collection) -> None:
        token_id = 0
        recipients = iter(f"r{i}" for i in range(100))

        def attempt(mint, requester: str) -> None:
            nonlocal token_id
            token_id += 1
            try:
                mint(requester, next(recipients), token_id, "")
            except (AdminQuotaExceededError, WhitelistQuotaExceededError,
                    PublicQuotaExceededError, TotalQuotaExceededError):
                pass

        for _ in range(8):
            attempt(open_collection.admin_mint, ADMIN)
            attempt(open_collection.whitelist_user_mint, WHITELISTED)
            attempt(open_collection.public_user_mint, PUBLIC_USER)

        quotas = open_collection.quotas
        assert quotas.count(MintTier.ADMIN) == 2
        assert quotas.count(MintTier.WHITELIST) == 3
        assert quotas.count(MintTier.PUBLIC) == 5
        assert quotas.total_minted == 10 == open_collection.total_supply()

    def test_public_tier_zero_when_misconfigured(self, open_collection: Collection) -> None:
        open_collection.set_admin_minting_limit(OWNER, 8)
        with pytest.raises(PublicQuotaExceededError):
            open_collection.public_user_mint(PUBLIC_USER, PUBLIC_USER, 1, "")

    def test_concurrent_mints_respect_limits(self, collection: Collection) -> None:
        """Serialized transactions: racing threads never overrun a limit."""
        collection.add_admin_address(OWNER, ADMIN)
        collection.set_admin_minting_limit(OWNER, 5)
        errors: list[Exception] = []

        def worker(start: int) -> None:
            for offset in range(10):
                try:
                    collection.admin_mint(ADMIN, f"h{start}-{offset}", start * 100 + offset, "")
                except AdminQuotaExceededError as exc:
                    errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert collection.quotas.count(MintTier.ADMIN) == 5
        assert len(errors) == 35


class TestLedgerDelegation:
    """Ledger failures abort the whole mint."""

    def test_duplicate_token_id(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 1, "/first")
        before = staffed_collection.snapshot()

        with pytest.raises(DuplicateTokenIdError):
            staffed_collection.admin_mint(ADMIN, "b", 1, "/second")

        assert staffed_collection.snapshot() == before
        assert staffed_collection.token_uri(1).endswith("/first")

    def test_retry_with_fresh_id_succeeds(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 1, "")
        with pytest.raises(DuplicateTokenIdError):
            staffed_collection.admin_mint(ADMIN, "a", 1, "")
        staffed_collection.admin_mint(ADMIN, "a", 2, "")
        assert staffed_collection.holder_cap.minted_to("a") == 2

    def test_token_uri_uses_gateway(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 1, "/QmHash")
        assert staffed_collection.token_uri(1) == "https://gateway.pinata.cloud/ipfs/QmHash"


class TestPause:
    """Owner pause blocks minting and holder operations."""

    def test_pause_blocks_mint(self, staffed_collection: Collection) -> None:
        staffed_collection.pause(OWNER)
        assert staffed_collection.paused is True
        before = staffed_collection.snapshot()

        with pytest.raises(SystemPausedError) as exc_info:
            staffed_collection.admin_mint(ADMIN, "a", 1, "")
        assert exc_info.value.details["stage"] == MintStage.DELEGATED.value
        assert staffed_collection.snapshot() == before

    def test_unpause_allows_mint(self, staffed_collection: Collection) -> None:
        staffed_collection.pause(OWNER)
        staffed_collection.unpause(OWNER)
        staffed_collection.admin_mint(ADMIN, "a", 1, "")
        assert staffed_collection.owner_of(1) == "a"

    def test_only_owner_pauses(self, staffed_collection: Collection) -> None:
        with pytest.raises(NotOwnerError):
            staffed_collection.pause(ADMIN)
        assert staffed_collection.paused is False


class TestHolderOperations:
    """Transfers and burns do not refund mint allowances."""

    def test_transfer_keeps_mint_count(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 1, "")
        staffed_collection.transfer("a", "b", 1)
        assert staffed_collection.owner_of(1) == "b"
        assert staffed_collection.holder_cap.minted_to("a") == 1
        assert staffed_collection.holder_cap.minted_to("b") == 0

    def test_burn_by_holder(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 1, "")
        staffed_collection.burn("a", 1)
        assert staffed_collection.total_supply() == 0
        assert staffed_collection.quotas.count(MintTier.ADMIN) == 1

    def test_burn_by_non_holder_rejected(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 1, "")
        with pytest.raises(NotTokenOwnerError):
            staffed_collection.burn(ADMIN, 1)
        assert staffed_collection.owner_of(1) == "a"

    def test_enumeration(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 5, "")
        staffed_collection.whitelist_user_mint(WHITELISTED, "a", 9, "")
        assert staffed_collection.tokens_of_owner("a") == [5, 9]
        assert staffed_collection.token_of_owner_by_index("a", 1) == 9
        assert staffed_collection.token_by_index(0) == 5
        assert staffed_collection.balance_of("a") == 2


class TestSnapshotAndQueries:
    """State export and dry runs."""

    def test_initial_snapshot(self) -> None:
        collection = Collection(OWNER)
        assert collection.snapshot() == {
            "admins": [],
            "whitelisted": [],
            "total_minting_limit": 0,
            "admin_minting_limit": 0,
            "whitelisted_minting_limit": 0,
            "admin_mints": 0,
            "whitelisted_mints": 0,
            "public_mints": 0,
            "minted_per_holder": {},
            "public_sale_active": False,
        }

    def test_snapshot_is_json_serializable(self, open_collection: Collection) -> None:
        open_collection.public_user_mint(PUBLIC_USER, PUBLIC_USER, 1, "")
        data = json.loads(json.dumps(open_collection.snapshot()))
        assert data["public_mints"] == 1
        assert data["minted_per_holder"] == {PUBLIC_USER: 1}

    def test_check_mint_dry_run(self, staffed_collection: Collection) -> None:
        assert staffed_collection.check_mint(MintTier.ADMIN, ADMIN, "a") is None
        error = staffed_collection.check_mint(MintTier.PUBLIC, ADMIN, "a")
        assert isinstance(error, NotAdminError)
        assert staffed_collection.total_supply() == 0

    def test_remaining(self, staffed_collection: Collection) -> None:
        staffed_collection.admin_mint(ADMIN, "a", 1, "")
        assert staffed_collection.remaining(MintTier.ADMIN) == 1

    def test_supports_interface(self, collection: Collection) -> None:
        assert collection.supports_interface(0x80AC58CD) is True
        assert collection.supports_interface(0xFFFFFFFF) is False


class TestFromConfig:
    """Building a collection from validated config."""

    def test_limits_and_owner_applied(self, tmp_path: Path) -> None:
        config = validate_config_dict({
            "collection": {"owner": "deployer", "max_mints_per_holder": 2},
            "limits": {"total": 6, "admin": 1, "whitelist": 2},
            "sale": {"public_sale_active": True},
            "logging": {"output_file": str(tmp_path / "mints.jsonl")},
        })
        collection = Collection.from_config(config)

        assert collection.owner == "deployer"
        assert collection.quotas.public_limit == 3
        assert collection.public_sale_active is True
        assert collection.holder_cap.max_per_holder == 2
        assert collection.snapshot()["admins"] == []

    def test_audit_log_follows_configured_path(self, tmp_path: Path) -> None:
        """logging.output_file of the passed config picks the audit file."""
        target = tmp_path / "audit" / "collection.jsonl"
        config = validate_config_dict({
            "collection": {"owner": "deployer"},
            "logging": {"output_file": str(target)},
        })
        collection = Collection.from_config(config)
        collection.add_admin_address("deployer", ADMIN)

        assert collection.event_logger is not None
        assert collection.event_logger.output_path == target
        events = [json.loads(line) for line in target.read_text().splitlines()]
        assert events[0]["event_type"] == "role_changed"
        assert events[0]["address"] == ADMIN

    def test_explicit_event_logger_kept(self, event_logger: EventLogger) -> None:
        collection = Collection.from_config(validate_config_dict({}), event_logger)
        assert collection.event_logger is event_logger


class TestAuditLog:
    """Collection operations emit audit events."""

    def test_mint_and_rejection_logged(self, collection: Collection, event_logger: EventLogger) -> None:
        collection.event_logger = event_logger
        collection.add_admin_address(OWNER, ADMIN)
        collection.admin_mint(ADMIN, "a", 1, "/x")
        with pytest.raises(SaleInactiveError):
            collection.public_user_mint(PUBLIC_USER, PUBLIC_USER, 2, "")

        events = event_logger.read_recent(10)
        assert [e["event_type"] for e in events] == ["role_changed", "mint", "mint_rejected"]
        assert events[1]["token_id"] == 1
        assert events[1]["stages"][-1] == "committed"
        assert events[2]["code"] == "sale_inactive"
        assert events[2]["details"]["stage"] == "sale_gate_check"

    def test_limit_and_sale_changes_logged(self, staffed_collection: Collection, tmp_path: Path) -> None:
        logger = EventLogger(output_file=str(tmp_path / "audit.jsonl"))
        staffed_collection.event_logger = logger
        staffed_collection.set_total_minting_limit(OWNER, 20)
        staffed_collection.activate_public_sale(ADMIN)
        staffed_collection.pause(OWNER)

        events = logger.read_recent(10)
        assert events[0]["event_type"] == "limit_changed"
        assert events[0]["old_value"] == 10
        assert events[1]["public_sale_active"] is True
        assert events[2]["paused"] is True

    def test_failed_audit_write_keeps_committed_mint(
        self, staffed_collection: Collection, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A committed mint is returned even when its audit event cannot be written."""
        audit = MagicMock(spec=EventLogger)
        audit.log_mint.side_effect = OSError("disk full")
        staffed_collection.event_logger = audit

        with caplog.at_level(logging.ERROR, logger="src.collectibles.collection"):
            result = staffed_collection.admin_mint(ADMIN, "bob", 1, "/a")

        assert result.tier_count == 1
        snapshot = staffed_collection.snapshot()
        assert snapshot["admin_mints"] == 1
        assert snapshot["minted_per_holder"] == {"bob": 1}
        assert staffed_collection.owner_of(1) == "bob"
        assert "Failed to write mint audit event" in caplog.text

    def test_failed_rejection_audit_keeps_rejection_kind(self, collection: Collection) -> None:
        audit = MagicMock(spec=EventLogger)
        audit.log_mint_rejected.side_effect = OSError("disk full")
        collection.event_logger = audit

        with pytest.raises(NotAdminError):
            collection.admin_mint(PUBLIC_USER, PUBLIC_USER, 1, "")
        assert collection.total_supply() == 0

    def test_failed_audit_write_keeps_admin_changes(self, collection: Collection) -> None:
        audit = MagicMock(spec=EventLogger)
        audit.log_role_changed.side_effect = OSError("read-only file system")
        audit.log_limit_changed.side_effect = OSError("read-only file system")
        audit.log_pause_changed.side_effect = OSError("read-only file system")
        collection.event_logger = audit

        collection.add_admin_address(OWNER, ADMIN)
        collection.set_total_minting_limit(OWNER, 20)
        collection.pause(OWNER)

        assert collection.is_admin(ADMIN) is True
        assert collection.quotas.total_limit == 20
        assert collection.paused is True
        audit.log_role_changed.assert_called_once_with(OWNER, "admin", ADMIN, True)


class TestSerializedQueries:
    """Ledger reads wait for the operation holding the collection lock."""

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            pytest.param(lambda c: c.token_of_owner_by_index("h", 0), 1, id="token_of_owner_by_index"),
            pytest.param(lambda c: c.token_by_index(0), 1, id="token_by_index"),
            pytest.param(lambda c: c.tokens_of_owner("h"), [1], id="tokens_of_owner"),
            pytest.param(lambda c: c.owner_of(1), "h", id="owner_of"),
            pytest.param(lambda c: c.balance_of("h"), 1, id="balance_of"),
            pytest.param(lambda c: c.total_supply(), 1, id="total_supply"),
        ],
    )
    def test_query_blocks_while_locked(
        self,
        staffed_collection: Collection,
        query: Callable[[Collection], object],
        expected: object,
    ) -> None:
        staffed_collection.admin_mint(ADMIN, "h", 1, "")
        results: list[object] = []
        reader = threading.Thread(target=lambda: results.append(query(staffed_collection)))

        with staffed_collection._lock:
            reader.start()
            reader.join(timeout=0.1)
            assert reader.is_alive()
            assert results == []

        reader.join(timeout=5)
        assert results == [expected]
