"""Mint Authorizer - tiered authorize-then-commit state machine

Every mint request walks a fixed sequence of checks and either commits in
full or is rejected at the first failing check with nothing mutated:

    Requested -> RoleCheck -> CapCheck -> TotalQuotaCheck
        [-> SaleGateCheck, public tier only] -> TierQuotaCheck
        -> Authorized -> Delegated -> Committed

or Rejected(<error kind>).

The three tiers differ only in data, so each is described by a
TierDescriptor (role predicate, role error, quota error, sale gate flag)
and driven through one generic routine. Per-tier error kinds are kept
distinct so rejections stay observable.

The ledger is called only after authorization succeeds, and counters are
bumped only after the ledger accepts the asset. A ledger rejection
(duplicate id, paused) therefore leaves counters and holder caps untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .errors import (
    AdminQuotaExceededError,
    CollectibleError,
    NotAdminError,
    NotWhitelistedError,
    PublicQuotaExceededError,
    SaleInactiveError,
    TotalQuotaExceededError,
    WhitelistQuotaExceededError,
    require_address,
)
from .holder_cap import PerHolderCapEnforcer
from .quota import MintTier, QuotaTracker
from .roles import RoleRegistry
from .sale_gate import SaleGate
from .token_ledger import TokenLedger

logger = logging.getLogger(__name__)


class MintStage(str, Enum):
    """Stages a mint request passes through."""

    REQUESTED = "requested"
    ROLE_CHECK = "role_check"
    CAP_CHECK = "cap_check"
    TOTAL_QUOTA_CHECK = "total_quota_check"
    SALE_GATE_CHECK = "sale_gate_check"
    TIER_QUOTA_CHECK = "tier_quota_check"
    AUTHORIZED = "authorized"
    DELEGATED = "delegated"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TierDescriptor:
    """Everything that distinguishes one minting tier from another.

    Attributes:
        tier: Which counter and limit the tier uses
        role_allowed: Predicate on (roles, requester)
        role_error: Raised when role_allowed is False
        role_message: Format string for the role rejection ({requester})
        quota_error: Raised when the tier counter reaches its limit
        requires_sale: Whether the sale gate must be open
    """

    tier: MintTier
    role_allowed: Callable[[RoleRegistry, str], bool]
    role_error: type[CollectibleError]
    role_message: str
    quota_error: type[CollectibleError]
    requires_sale: bool = False


TIERS: dict[MintTier, TierDescriptor] = {
    MintTier.ADMIN: TierDescriptor(
        tier=MintTier.ADMIN,
        role_allowed=lambda roles, requester: roles.is_admin(requester),
        role_error=NotAdminError,
        role_message="'{requester}' is not an admin",
        quota_error=AdminQuotaExceededError,
    ),
    MintTier.WHITELIST: TierDescriptor(
        tier=MintTier.WHITELIST,
        role_allowed=lambda roles, requester: roles.is_whitelisted(requester),
        role_error=NotWhitelistedError,
        role_message="'{requester}' is not whitelisted",
        quota_error=WhitelistQuotaExceededError,
    ),
    # Admins are excluded from the public tier; whitelisted non-admins are not
    MintTier.PUBLIC: TierDescriptor(
        tier=MintTier.PUBLIC,
        role_allowed=lambda roles, requester: not roles.is_admin(requester),
        role_error=NotAdminError,
        role_message="'{requester}' is an admin and cannot mint in the public tier",
        quota_error=PublicQuotaExceededError,
        requires_sale=True,
    ),
}


@dataclass(frozen=True)
class MintRequest:
    """A single request to mint token_id to recipient under a tier."""

    tier: MintTier
    requester: str
    recipient: str
    token_id: int
    uri: str = ""


@dataclass
class MintResult:
    """Outcome of a committed mint."""

    request: MintRequest
    tier_count: int
    holder_count: int
    stages: list[MintStage] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "tier": self.request.tier.value,
            "requester": self.request.requester,
            "recipient": self.request.recipient,
            "token_id": self.request.token_id,
            "uri": self.request.uri,
            "tier_count": self.tier_count,
            "holder_count": self.holder_count,
            "stages": [stage.value for stage in self.stages],
        }


class MintAuthorizer:
    """Orchestrates role, cap, quota and sale checks, then the ledger.

    Dependencies:
        roles: Admin and whitelist membership
        quotas: Tier counters and limits
        holder_cap: Per-recipient mint cap
        sale_gate: Public tier switch
        ledger: Asset creation and uniqueness
    """

    def __init__(
        self,
        roles: RoleRegistry,
        quotas: QuotaTracker,
        holder_cap: PerHolderCapEnforcer,
        sale_gate: SaleGate,
        ledger: TokenLedger,
    ) -> None:
        self._roles = roles
        self._quotas = quotas
        self._holder_cap = holder_cap
        self._sale_gate = sale_gate
        self._ledger = ledger

    def authorize(
        self, request: MintRequest, stages: list[MintStage] | None = None
    ) -> None:
        """Run every precondition check in order without mutating anything.

        Args:
            request: The mint request to evaluate
            stages: Optional list that receives each stage as it is entered

        Raises:
            CollectibleError: The first failing check's error kind. Its
                details carry the stage that rejected the request.
        """
        trace = stages if stages is not None else []
        descriptor = TIERS[request.tier]
        trace.append(MintStage.REQUESTED)
        try:
            require_address(request.requester, "requester")
            require_address(request.recipient, "recipient")

            trace.append(MintStage.ROLE_CHECK)
            if not descriptor.role_allowed(self._roles, request.requester):
                raise descriptor.role_error(
                    descriptor.role_message.format(requester=request.requester),
                    requester=request.requester,
                    tier=request.tier.value,
                )

            trace.append(MintStage.CAP_CHECK)
            self._holder_cap.check_cap(request.recipient)

            trace.append(MintStage.TOTAL_QUOTA_CHECK)
            if self._quotas.total_exhausted():
                raise TotalQuotaExceededError(
                    "Total minting limit reached",
                    minted=self._quotas.total_minted,
                    limit=self._quotas.total_limit,
                )

            if descriptor.requires_sale:
                trace.append(MintStage.SALE_GATE_CHECK)
                if not self._sale_gate.public_sale_active:
                    raise SaleInactiveError("Public sale is not active")

            trace.append(MintStage.TIER_QUOTA_CHECK)
            if self._quotas.tier_exhausted(request.tier):
                raise descriptor.quota_error(
                    f"{request.tier.value} minting limit reached",
                    tier=request.tier.value,
                    minted=self._quotas.count(request.tier),
                    limit=self._quotas.limit_for(request.tier),
                )
        except CollectibleError as exc:
            exc.details.setdefault("stage", trace[-1].value)
            trace.append(MintStage.REJECTED)
            logger.debug(
                "Mint of token %s rejected at %s: %s",
                request.token_id, trace[-2].value, exc.code.value,
            )
            raise

        trace.append(MintStage.AUTHORIZED)

    def check(self, tier: MintTier, requester: str, recipient: str) -> CollectibleError | None:
        """Dry run: the error a mint would raise before reaching the ledger, or None."""
        try:
            self.authorize(MintRequest(tier, requester, recipient, token_id=0))
        except CollectibleError as exc:
            return exc
        return None

    def mint(self, request: MintRequest) -> MintResult:
        """Authorize, delegate to the ledger, then commit counters.

        Raises:
            CollectibleError: Any rejection; state is unchanged on failure
        """
        stages: list[MintStage] = []
        self.authorize(request, stages)

        try:
            self._delegate(request)
        except CollectibleError as exc:
            exc.details.setdefault("stage", MintStage.DELEGATED.value)
            stages.append(MintStage.REJECTED)
            raise
        stages.append(MintStage.DELEGATED)

        holder_count = self._holder_cap.record_mint(request.recipient)
        tier_count = self._quotas.record_mint(request.tier)
        stages.append(MintStage.COMMITTED)

        logger.info(
            "Minted token %d to %s via %s tier (tier count %d)",
            request.token_id, request.recipient, request.tier.value, tier_count,
        )
        return MintResult(
            request=request,
            tier_count=tier_count,
            holder_count=holder_count,
            stages=stages,
        )

    def _delegate(self, request: MintRequest) -> None:
        """Create the asset and attach its URI as one step."""
        self._ledger.mint(request.recipient, request.token_id)
        try:
            self._ledger.set_token_uri(request.token_id, request.uri)
        except Exception:
            self._ledger.burn(request.token_id)
            raise

    # ===== PER-TIER ENTRY POINTS =====

    def admin_mint(self, requester: str, recipient: str, token_id: int, uri: str) -> MintResult:
        return self.mint(MintRequest(MintTier.ADMIN, requester, recipient, token_id, uri))

    def whitelist_user_mint(
        self, requester: str, recipient: str, token_id: int, uri: str
    ) -> MintResult:
        return self.mint(MintRequest(MintTier.WHITELIST, requester, recipient, token_id, uri))

    def public_user_mint(
        self, requester: str, recipient: str, token_id: int, uri: str
    ) -> MintResult:
        return self.mint(MintRequest(MintTier.PUBLIC, requester, recipient, token_id, uri))
