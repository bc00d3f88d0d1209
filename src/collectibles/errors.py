"""Error kinds for minting authorization and the token ledger.

Every rejection is a permanent failure of the current operation with no
partial effect. Callers resolve them by changing a precondition (raise a
limit, grant a role, activate the sale, pick a fresh asset id).

Usage:
    from src.collectibles.errors import AdminQuotaExceededError, ErrorCode

    try:
        collection.admin_mint("alice", "bob", 7, "/QmHash")
    except CollectibleError as exc:
        if exc.code == ErrorCode.ADMIN_QUOTA_EXCEEDED:
            ...
        response = exc.to_dict()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - PERMISSION: Caller lacks the role the operation requires
    - QUOTA: A tier, total, or per-holder allowance is exhausted
    - STATE: The system is in a state that forbids the operation
    - RESOURCE: Asset id missing or already taken
    - VALIDATION: Caller supplied a malformed argument
    """

    PERMISSION = "permission"
    QUOTA = "quota"
    STATE = "state"
    RESOURCE = "resource"
    VALIDATION = "validation"


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Permission errors
    NOT_OWNER = "not_owner"
    NOT_ADMIN = "not_admin"
    NOT_WHITELISTED = "not_whitelisted"
    NOT_TOKEN_OWNER = "not_token_owner"

    # Role state errors
    ALREADY_ADMIN = "already_admin"
    ALREADY_WHITELISTED = "already_whitelisted"

    # Quota errors
    ADDRESS_CAP_EXCEEDED = "address_cap_exceeded"
    TOTAL_QUOTA_EXCEEDED = "total_quota_exceeded"
    ADMIN_QUOTA_EXCEEDED = "admin_quota_exceeded"
    WHITELIST_QUOTA_EXCEEDED = "whitelist_quota_exceeded"
    PUBLIC_QUOTA_EXCEEDED = "public_quota_exceeded"

    # System state errors
    SALE_INACTIVE = "sale_inactive"
    SYSTEM_PAUSED = "system_paused"

    # Resource errors
    DUPLICATE_TOKEN_ID = "duplicate_token_id"
    TOKEN_NOT_FOUND = "token_not_found"

    # Validation errors
    INVALID_ARGUMENT = "invalid_argument"


@dataclass
class ErrorResponse:
    """Serializable error response.

    Keeps the {"success": False, "error": "message"} shape with a
    machine-readable code and category added.
    """

    success: bool = False
    error: str = ""
    code: str = ""
    category: str = ""
    retriable: bool = False
    details: dict[str, object] | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "success": self.success,
            "error": self.error,
            "code": self.code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.details:
            result["details"] = self.details
        return result


class CollectibleError(Exception):
    """Base class for every rejection raised by this package.

    Subclasses pin ``code`` and ``category``; ``details`` carries the
    values that caused the rejection (addresses, counts, limits).
    """

    code: ErrorCode = ErrorCode.INVALID_ARGUMENT
    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(self, message: str, **details: object) -> None:
        self.message = message
        self.details: dict[str, object] = dict(details)
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.message,
            code=self.code.value,
            category=self.category.value,
            retriable=False,
            details=self.details or None,
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to the standard error response dict."""
        return self.to_response().to_dict()


# Permission errors


class NotOwnerError(CollectibleError):
    code = ErrorCode.NOT_OWNER
    category = ErrorCategory.PERMISSION


class NotAdminError(CollectibleError):
    """Caller is not an admin, or an admin tried to use the public tier."""

    code = ErrorCode.NOT_ADMIN
    category = ErrorCategory.PERMISSION


class NotWhitelistedError(CollectibleError):
    code = ErrorCode.NOT_WHITELISTED
    category = ErrorCategory.PERMISSION


class NotTokenOwnerError(CollectibleError):
    code = ErrorCode.NOT_TOKEN_OWNER
    category = ErrorCategory.PERMISSION


# Role state errors


class AlreadyAdminError(CollectibleError):
    code = ErrorCode.ALREADY_ADMIN
    category = ErrorCategory.STATE


class AlreadyWhitelistedError(CollectibleError):
    code = ErrorCode.ALREADY_WHITELISTED
    category = ErrorCategory.STATE


# Quota errors


class AddressCapExceededError(CollectibleError):
    code = ErrorCode.ADDRESS_CAP_EXCEEDED
    category = ErrorCategory.QUOTA


class TotalQuotaExceededError(CollectibleError):
    code = ErrorCode.TOTAL_QUOTA_EXCEEDED
    category = ErrorCategory.QUOTA


class AdminQuotaExceededError(CollectibleError):
    code = ErrorCode.ADMIN_QUOTA_EXCEEDED
    category = ErrorCategory.QUOTA


class WhitelistQuotaExceededError(CollectibleError):
    code = ErrorCode.WHITELIST_QUOTA_EXCEEDED
    category = ErrorCategory.QUOTA


class PublicQuotaExceededError(CollectibleError):
    code = ErrorCode.PUBLIC_QUOTA_EXCEEDED
    category = ErrorCategory.QUOTA


# System state errors


class SaleInactiveError(CollectibleError):
    code = ErrorCode.SALE_INACTIVE
    category = ErrorCategory.STATE


class SystemPausedError(CollectibleError):
    code = ErrorCode.SYSTEM_PAUSED
    category = ErrorCategory.STATE


# Resource errors


class DuplicateTokenIdError(CollectibleError):
    code = ErrorCode.DUPLICATE_TOKEN_ID
    category = ErrorCategory.RESOURCE


class TokenNotFoundError(CollectibleError):
    code = ErrorCode.TOKEN_NOT_FOUND
    category = ErrorCategory.RESOURCE


# Validation errors


class InvalidArgumentError(CollectibleError):
    code = ErrorCode.INVALID_ARGUMENT
    category = ErrorCategory.VALIDATION


def require_address(value: str, name: str = "address") -> str:
    """Reject empty or non-string addresses."""
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"{name} must be a non-empty string", **{name: value})
    return value


def require_non_negative(value: int, name: str) -> int:
    """Reject negative or non-integer counts and limits."""
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentError(f"{name} must be a non-negative integer", **{name: value})
    return value
