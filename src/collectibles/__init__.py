# Collectibles package: tiered minting authorization over a token ledger
from .collection import Collection
from .authorizer import (
    MintAuthorizer, MintRequest, MintResult, MintStage, TierDescriptor, TIERS,
)
from .quota import MintTier, QuotaTracker, QuotaSnapshot
from .roles import RoleRegistry
from .sale_gate import SaleGate
from .holder_cap import PerHolderCapEnforcer
from .token_ledger import TokenLedger, InMemoryTokenLedger
from .logger import EventLogger
from .errors import (
    ErrorCategory, ErrorCode, ErrorResponse, CollectibleError,
    NotOwnerError, NotAdminError, NotWhitelistedError, NotTokenOwnerError,
    AlreadyAdminError, AlreadyWhitelistedError,
    AddressCapExceededError, TotalQuotaExceededError, AdminQuotaExceededError,
    WhitelistQuotaExceededError, PublicQuotaExceededError,
    SaleInactiveError, SystemPausedError,
    DuplicateTokenIdError, TokenNotFoundError, InvalidArgumentError,
)
from .constants import BASE_TOKEN_URI, MAX_MINTS_PER_HOLDER

__all__ = [
    "Collection",
    "MintAuthorizer", "MintRequest", "MintResult", "MintStage", "TierDescriptor", "TIERS",
    "MintTier", "QuotaTracker", "QuotaSnapshot",
    "RoleRegistry",
    "SaleGate",
    "PerHolderCapEnforcer",
    "TokenLedger", "InMemoryTokenLedger",
    "EventLogger",
    # Error kinds
    "ErrorCategory", "ErrorCode", "ErrorResponse", "CollectibleError",
    "NotOwnerError", "NotAdminError", "NotWhitelistedError", "NotTokenOwnerError",
    "AlreadyAdminError", "AlreadyWhitelistedError",
    "AddressCapExceededError", "TotalQuotaExceededError", "AdminQuotaExceededError",
    "WhitelistQuotaExceededError", "PublicQuotaExceededError",
    "SaleInactiveError", "SystemPausedError",
    "DuplicateTokenIdError", "TokenNotFoundError", "InvalidArgumentError",
    "BASE_TOKEN_URI", "MAX_MINTS_PER_HOLDER",
]
