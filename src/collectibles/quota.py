"""Quota Tracker - per-tier mint counters and limits

Three tiers share one total allowance:
- admin: bounded by admin_limit
- whitelist: bounded by whitelist_limit
- public: bounded by total_limit - admin_limit - whitelist_limit

Counters only ever grow, and only through record_mint(), which the
authorizer calls after every check has passed and the ledger accepted the
asset. Limits may be changed at any time, including below the current
counts; the guards use "at or above" comparisons so a lowered limit blocks
further minting instead of being skipped past.

Setter authority is deliberately asymmetric: the owner sets the total and
admin limits, any admin sets the whitelist limit.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TypedDict

from .errors import require_non_negative
from .roles import RoleRegistry

logger = logging.getLogger(__name__)


class MintTier(str, Enum):
    """Minting tiers, each with its own counter and limit."""

    ADMIN = "admin"
    WHITELIST = "whitelist"
    PUBLIC = "public"


class QuotaSnapshot(TypedDict):
    """Counters and limits at a point in time."""

    total_minting_limit: int
    admin_minting_limit: int
    whitelisted_minting_limit: int
    admin_mints: int
    whitelisted_mints: int
    public_mints: int


class QuotaTracker:
    """Per-tier counters and configurable per-tier and global limits."""

    total_limit: int
    admin_limit: int
    whitelist_limit: int
    _counts: dict[MintTier, int]

    def __init__(
        self,
        roles: RoleRegistry,
        total_limit: int = 0,
        admin_limit: int = 0,
        whitelist_limit: int = 0,
    ) -> None:
        self._roles = roles
        self.total_limit = require_non_negative(total_limit, "total_limit")
        self.admin_limit = require_non_negative(admin_limit, "admin_limit")
        self.whitelist_limit = require_non_negative(whitelist_limit, "whitelist_limit")
        self._counts = {tier: 0 for tier in MintTier}

    # ===== LIMIT SETTERS =====

    def set_total_limit(self, caller: str, limit: int) -> None:
        """Set the global limit across all tiers. Owner only."""
        self._roles.require_owner(caller)
        self.total_limit = require_non_negative(limit, "total_limit")
        logger.info("Total minting limit set to %d", limit)

    def set_admin_limit(self, caller: str, limit: int) -> None:
        """Set the admin tier limit. Owner only."""
        self._roles.require_owner(caller)
        self.admin_limit = require_non_negative(limit, "admin_limit")
        logger.info("Admin minting limit set to %d", limit)

    def set_whitelist_limit(self, caller: str, limit: int) -> None:
        """Set the whitelist tier limit. Admin only."""
        self._roles.require_admin(caller)
        self.whitelist_limit = require_non_negative(limit, "whitelist_limit")
        logger.info("Whitelist minting limit set to %d by %s", limit, caller)

    # ===== QUERIES =====

    @property
    def public_limit(self) -> int:
        """Derived public allowance; a misconfigured negative value counts as zero."""
        return max(0, self.total_limit - self.admin_limit - self.whitelist_limit)

    def limit_for(self, tier: MintTier) -> int:
        if tier is MintTier.ADMIN:
            return self.admin_limit
        if tier is MintTier.WHITELIST:
            return self.whitelist_limit
        return self.public_limit

    def count(self, tier: MintTier) -> int:
        return self._counts[tier]

    @property
    def total_minted(self) -> int:
        return sum(self._counts.values())

    def total_remaining(self) -> int:
        return max(0, self.total_limit - self.total_minted)

    def remaining(self, tier: MintTier) -> int:
        """Mints still available to a tier.

        Bounded by both the tier's own allowance and what is left of the
        total allowance.
        """
        tier_remaining = max(0, self.limit_for(tier) - self._counts[tier])
        return min(tier_remaining, self.total_remaining())

    def total_exhausted(self) -> bool:
        return self.total_minted >= self.total_limit

    def tier_exhausted(self, tier: MintTier) -> bool:
        return self._counts[tier] >= self.limit_for(tier)

    # ===== COMMIT =====

    def record_mint(self, tier: MintTier) -> int:
        """Increment a tier counter after a committed mint.

        Returns:
            The tier's new count
        """
        self._counts[tier] += 1
        return self._counts[tier]

    def snapshot(self) -> QuotaSnapshot:
        return {
            "total_minting_limit": self.total_limit,
            "admin_minting_limit": self.admin_limit,
            "whitelisted_minting_limit": self.whitelist_limit,
            "admin_mints": self._counts[MintTier.ADMIN],
            "whitelisted_mints": self._counts[MintTier.WHITELIST],
            "public_mints": self._counts[MintTier.PUBLIC],
        }
