"""Collection - public operation surface of the tiered minting system

Wires the role registry, quota tracker, holder cap, sale gate and token
ledger together behind one object. Every public operation:

- takes the calling principal explicitly (no ambient "current user")
- runs under a single lock, so no partial effect is ever observable
- emits a stdlib log line and, when an EventLogger is attached, a JSONL
  audit event once the state change has committed

Operation -> required caller:
    admin_mint                                  admin
    whitelist_user_mint                         whitelisted
    public_user_mint                            non-admin
    add_admin_address / remove_admin_address    owner
    add_whitelisted_address / remove_...        admin
    set_total_minting_limit / set_admin_...     owner
    set_whitelisted_minting_limit               admin
    activate_public_sale / deactivate_...       admin
    pause / unpause                             owner
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from ..config import configure_logging
from .authorizer import MintAuthorizer, MintRequest, MintResult
from .constants import BASE_TOKEN_URI, MAX_MINTS_PER_HOLDER
from .errors import CollectibleError, NotTokenOwnerError
from .holder_cap import PerHolderCapEnforcer
from .logger import EventLogger
from .quota import MintTier, QuotaSnapshot, QuotaTracker
from .roles import RoleRegistry
from .sale_gate import SaleGate
from .token_ledger import InMemoryTokenLedger

if TYPE_CHECKING:
    from ..config_schema import AppConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Collection:
    """A tiered-mint collectible collection.

    Attributes:
        roles: Admin and whitelist membership
        quotas: Per-tier counters and limits
        holder_cap: Per-recipient mint cap
        sale_gate: Public tier switch
        ledger: Asset ownership, metadata and pause gate
        authorizer: The mint state machine
        event_logger: Optional JSONL audit log
    """

    roles: RoleRegistry
    quotas: QuotaTracker
    holder_cap: PerHolderCapEnforcer
    sale_gate: SaleGate
    ledger: InMemoryTokenLedger
    authorizer: MintAuthorizer
    event_logger: EventLogger | None
    _lock: threading.RLock

    def __init__(
        self,
        owner: str,
        *,
        name: str = "",
        symbol: str = "",
        base_uri: str = BASE_TOKEN_URI,
        max_mints_per_holder: int = MAX_MINTS_PER_HOLDER,
        total_limit: int = 0,
        admin_limit: int = 0,
        whitelist_limit: int = 0,
        public_sale_active: bool = False,
        ledger: InMemoryTokenLedger | None = None,
        event_logger: EventLogger | None = None,
    ) -> None:
        self.roles = RoleRegistry(owner)
        self.quotas = QuotaTracker(
            self.roles,
            total_limit=total_limit,
            admin_limit=admin_limit,
            whitelist_limit=whitelist_limit,
        )
        self.holder_cap = PerHolderCapEnforcer(max_mints_per_holder)
        self.sale_gate = SaleGate(self.roles, active=public_sale_active)
        self.ledger = ledger or InMemoryTokenLedger(name=name, symbol=symbol, base_uri=base_uri)
        self.authorizer = MintAuthorizer(
            self.roles, self.quotas, self.holder_cap, self.sale_gate, self.ledger
        )
        self.event_logger = event_logger
        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        config: "AppConfig",
        event_logger: EventLogger | None = None,
    ) -> "Collection":
        """Create a Collection from a validated AppConfig.

        Also applies logging.level to the package loggers.

        Args:
            config: Validated configuration
            event_logger: Audit logger (default: a new EventLogger writing
                to config.logging.output_file)

        Returns:
            Configured Collection with empty role sets and zero counters
        """
        configure_logging(config)
        if event_logger is None:
            event_logger = EventLogger(output_file=config.logging.output_file)
        return cls(
            config.collection.owner,
            name=config.collection.name,
            symbol=config.collection.symbol,
            base_uri=config.collection.base_token_uri,
            max_mints_per_holder=config.collection.max_mints_per_holder,
            total_limit=config.limits.total,
            admin_limit=config.limits.admin,
            whitelist_limit=config.limits.whitelist,
            public_sale_active=config.sale.public_sale_active,
            event_logger=event_logger,
        )

    @property
    def owner(self) -> str:
        return self.roles.owner

    def _serialized(self, operation: Callable[[], T]) -> T:
        with self._lock:
            return operation()

    def _audit(self, event: str, *args: Any) -> None:
        """Write one audit event. A failed write is logged, never raised."""
        if self.event_logger is None:
            return
        try:
            getattr(self.event_logger, f"log_{event}")(*args)
        except OSError:
            logger.exception("Failed to write %s audit event", event)

    # ===== MINTING =====

    def mint(self, request: MintRequest) -> MintResult:
        """Run one mint request as a single serialized transaction.

        Raises:
            CollectibleError: The rejection kind; nothing is mutated
        """
        with self._lock:
            try:
                result = self.authorizer.mint(request)
            except CollectibleError as exc:
                logger.warning(
                    "Rejected %s mint of token %s by %s: %s",
                    request.tier.value, request.token_id, request.requester, exc.code.value,
                )
                self._audit(
                    "mint_rejected",
                    request.tier.value,
                    request.requester,
                    request.recipient,
                    request.token_id,
                    exc.to_dict(),
                )
                raise
            self._audit("mint", result.to_dict())
            return result

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

    def check_mint(
        self, tier: MintTier, requester: str, recipient: str
    ) -> CollectibleError | None:
        """Error a mint would hit before reaching the ledger, or None."""
        return self._serialized(lambda: self.authorizer.check(tier, requester, recipient))

    # ===== ROLES =====

    def add_admin_address(self, caller: str, address: str) -> None:
        with self._lock:
            self.roles.add_admin(caller, address)
            self._audit("role_changed", caller, "admin", address, True)

    def remove_admin_address(self, caller: str, address: str) -> None:
        with self._lock:
            self.roles.remove_admin(caller, address)
            self._audit("role_changed", caller, "admin", address, False)

    def add_whitelisted_address(self, caller: str, address: str) -> None:
        with self._lock:
            self.roles.add_whitelisted(caller, address)
            self._audit("role_changed", caller, "whitelisted", address, True)

    def remove_whitelisted_address(self, caller: str, address: str) -> None:
        with self._lock:
            self.roles.remove_whitelisted(caller, address)
            self._audit("role_changed", caller, "whitelisted", address, False)

    def is_admin(self, address: str) -> bool:
        return self._serialized(lambda: self.roles.is_admin(address))

    def is_whitelisted(self, address: str) -> bool:
        return self._serialized(lambda: self.roles.is_whitelisted(address))

    # ===== LIMITS =====

    def set_total_minting_limit(self, caller: str, limit: int) -> None:
        with self._lock:
            old = self.quotas.total_limit
            self.quotas.set_total_limit(caller, limit)
            self._log_limit(caller, "total", old, limit)

    def set_admin_minting_limit(self, caller: str, limit: int) -> None:
        with self._lock:
            old = self.quotas.admin_limit
            self.quotas.set_admin_limit(caller, limit)
            self._log_limit(caller, "admin", old, limit)

    def set_whitelisted_minting_limit(self, caller: str, limit: int) -> None:
        with self._lock:
            old = self.quotas.whitelist_limit
            self.quotas.set_whitelist_limit(caller, limit)
            self._log_limit(caller, "whitelist", old, limit)

    def _log_limit(self, caller: str, limit: str, old: int, new: int) -> None:
        if self.quotas.admin_limit + self.quotas.whitelist_limit > self.quotas.total_limit:
            logger.warning(
                "Tier limits (admin %d + whitelist %d) exceed total %d; public tier has no allowance",
                self.quotas.admin_limit, self.quotas.whitelist_limit, self.quotas.total_limit,
            )
        self._audit("limit_changed", caller, limit, old, new)

    def remaining(self, tier: MintTier) -> int:
        return self._serialized(lambda: self.quotas.remaining(tier))

    # ===== SALE GATE =====

    def activate_public_sale(self, caller: str) -> None:
        with self._lock:
            self.sale_gate.activate(caller)
            self._audit("sale_changed", caller, True)

    def deactivate_public_sale(self, caller: str) -> None:
        with self._lock:
            self.sale_gate.deactivate(caller)
            self._audit("sale_changed", caller, False)

    @property
    def public_sale_active(self) -> bool:
        return self._serialized(lambda: self.sale_gate.public_sale_active)

    # ===== PAUSE =====

    def pause(self, caller: str) -> None:
        """Block every ownership change, minting included. Owner only."""
        with self._lock:
            self.roles.require_owner(caller)
            self.ledger.pause()
            logger.info("Collection paused by %s", caller)
            self._audit("pause_changed", caller, True)

    def unpause(self, caller: str) -> None:
        with self._lock:
            self.roles.require_owner(caller)
            self.ledger.unpause()
            logger.info("Collection unpaused by %s", caller)
            self._audit("pause_changed", caller, False)

    @property
    def paused(self) -> bool:
        return self._serialized(lambda: self.ledger.paused)

    # ===== HOLDER OPERATIONS =====

    def transfer(self, caller: str, to_address: str, token_id: int) -> None:
        """Move a token the caller holds. Holder mint counts are unaffected."""
        self._serialized(lambda: self.ledger.transfer(caller, to_address, token_id))

    def burn(self, caller: str, token_id: int) -> None:
        """Destroy a token the caller holds."""
        with self._lock:
            holder = self.ledger.owner_of(token_id)
            if holder != caller:
                raise NotTokenOwnerError(
                    f"'{caller}' does not own token {token_id}",
                    token_id=token_id,
                    address=caller,
                )
            self.ledger.burn(token_id)

    # ===== LEDGER QUERIES =====

    def owner_of(self, token_id: int) -> str:
        return self._serialized(lambda: self.ledger.owner_of(token_id))

    def balance_of(self, address: str) -> int:
        return self._serialized(lambda: self.ledger.balance_of(address))

    def token_uri(self, token_id: int) -> str:
        return self._serialized(lambda: self.ledger.token_uri(token_id))

    def total_supply(self) -> int:
        return self._serialized(self.ledger.total_supply)

    def token_by_index(self, index: int) -> int:
        return self._serialized(lambda: self.ledger.token_by_index(index))

    def token_of_owner_by_index(self, address: str, index: int) -> int:
        return self._serialized(lambda: self.ledger.token_of_owner_by_index(address, index))

    def tokens_of_owner(self, address: str) -> list[int]:
        return self._serialized(lambda: self.ledger.tokens_of_owner(address))

    def supports_interface(self, interface_id: int) -> bool:
        return self.ledger.supports_interface(interface_id)

    # ===== STATE =====

    def snapshot(self) -> dict[str, Any]:
        """Authoritative state as a JSON-serializable dict."""
        with self._lock:
            quotas: QuotaSnapshot = self.quotas.snapshot()
            return {
                "admins": self.roles.admins(),
                "whitelisted": self.roles.whitelisted(),
                **quotas,
                "minted_per_holder": self.holder_cap.snapshot(),
                "public_sale_active": self.sale_gate.public_sale_active,
            }
