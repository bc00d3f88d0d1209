"""Token ledger - asset identity, ownership and metadata storage

The authorizer never creates assets itself. It calls into a TokenLedger,
which is the single source of truth for asset-id uniqueness and which owns
the pause gate over every ownership change (minting included).

InMemoryTokenLedger is the reference implementation: ownership records,
per-asset metadata URI suffixes, enumeration, and pause-on-transfer.

Usage:
    ledger = InMemoryTokenLedger(name="Relics", symbol="RLC")
    ledger.mint("alice", 1)
    ledger.set_token_uri(1, "/QmHash")
    ledger.token_uri(1)  # "https://gateway.pinata.cloud/ipfs/QmHash"
"""

from __future__ import annotations

import logging
from typing import Protocol

from .constants import BASE_TOKEN_URI, SUPPORTED_INTERFACES
from .errors import (
    DuplicateTokenIdError,
    InvalidArgumentError,
    NotTokenOwnerError,
    SystemPausedError,
    TokenNotFoundError,
    require_address,
)

logger = logging.getLogger(__name__)


class TokenLedger(Protocol):
    """Capability the authorizer consumes.

    Implementations raise DuplicateTokenIdError when an asset id is taken,
    SystemPausedError while paused, and TokenNotFoundError for unknown ids.
    """

    def mint(self, owner: str, token_id: int) -> None:
        """Create token_id owned by owner."""
        ...

    def set_token_uri(self, token_id: int, uri: str) -> None:
        """Store the per-asset metadata suffix."""
        ...

    def burn(self, token_id: int) -> None:
        """Destroy token_id."""
        ...

    def exists(self, token_id: int) -> bool:
        """Whether token_id is currently minted."""
        ...


def _require_token_id(token_id: int) -> int:
    if isinstance(token_id, bool) or not isinstance(token_id, int) or token_id < 0:
        raise InvalidArgumentError(
            "token_id must be a non-negative integer", token_id=token_id
        )
    return token_id


class InMemoryTokenLedger:
    """Enumerable, pausable token ledger with URI storage.

    Thread-safety: This class is NOT thread-safe. Collection serializes
    every call that reaches it.
    """

    name: str
    symbol: str
    base_uri: str
    paused: bool
    _owners: dict[int, str]
    _token_uris: dict[int, str]
    _all_tokens: list[int]
    _owned: dict[str, list[int]]

    def __init__(
        self,
        name: str = "",
        symbol: str = "",
        base_uri: str = BASE_TOKEN_URI,
    ) -> None:
        self.name = name
        self.symbol = symbol
        self.base_uri = base_uri
        self.paused = False
        self._owners = {}
        self._token_uris = {}
        # Enumeration order: insertion order of live tokens
        self._all_tokens = []
        self._owned = {}

    # ===== PAUSE GATE =====

    def pause(self) -> None:
        self.paused = True

    def unpause(self) -> None:
        self.paused = False

    def _require_not_paused(self, operation: str) -> None:
        if self.paused:
            raise SystemPausedError(
                f"Cannot {operation} while the ledger is paused", operation=operation
            )

    def _require_exists(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise TokenNotFoundError(
                f"Token {token_id} does not exist", token_id=token_id
            )
        return owner

    # ===== OWNERSHIP CHANGES =====

    def mint(self, owner: str, token_id: int) -> None:
        """Create a token.

        Raises:
            SystemPausedError: If the ledger is paused
            DuplicateTokenIdError: If token_id already exists
            InvalidArgumentError: If owner or token_id is malformed
        """
        require_address(owner, "owner")
        _require_token_id(token_id)
        self._require_not_paused("mint")
        if token_id in self._owners:
            raise DuplicateTokenIdError(
                f"Token {token_id} already minted", token_id=token_id
            )
        self._owners[token_id] = owner
        self._all_tokens.append(token_id)
        self._owned.setdefault(owner, []).append(token_id)
        logger.debug("Ledger minted token %d to %s", token_id, owner)

    def burn(self, token_id: int) -> None:
        """Destroy a token and its stored URI."""
        self._require_not_paused("burn")
        owner = self._require_exists(token_id)
        del self._owners[token_id]
        self._token_uris.pop(token_id, None)
        self._all_tokens.remove(token_id)
        self._owned[owner].remove(token_id)
        logger.debug("Ledger burned token %d", token_id)

    def transfer(self, from_address: str, to_address: str, token_id: int) -> None:
        """Move a token between holders.

        Raises:
            SystemPausedError: If the ledger is paused
            TokenNotFoundError: If token_id does not exist
            NotTokenOwnerError: If from_address does not hold token_id
        """
        require_address(to_address, "to_address")
        self._require_not_paused("transfer")
        owner = self._require_exists(token_id)
        if owner != from_address:
            raise NotTokenOwnerError(
                f"'{from_address}' does not own token {token_id}",
                token_id=token_id,
                address=from_address,
            )
        self._owners[token_id] = to_address
        self._owned[owner].remove(token_id)
        self._owned.setdefault(to_address, []).append(token_id)
        logger.debug("Ledger moved token %d from %s to %s", token_id, owner, to_address)

    # ===== METADATA =====

    def set_token_uri(self, token_id: int, uri: str) -> None:
        self._require_exists(token_id)
        self._token_uris[token_id] = uri

    def token_uri(self, token_id: int) -> str:
        """Full metadata location for a token.

        Base and stored suffix are concatenated as-is. Without a suffix the
        token id is appended to the base instead.
        """
        self._require_exists(token_id)
        suffix = self._token_uris.get(token_id, "")
        if not self.base_uri:
            return suffix
        if suffix:
            return self.base_uri + suffix
        return self.base_uri + str(token_id)

    # ===== QUERIES =====

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def owner_of(self, token_id: int) -> str:
        return self._require_exists(token_id)

    def balance_of(self, address: str) -> int:
        return len(self._owned.get(address, []))

    def total_supply(self) -> int:
        return len(self._all_tokens)

    def token_by_index(self, index: int) -> int:
        if not 0 <= index < len(self._all_tokens):
            raise InvalidArgumentError("Global index out of bounds", index=index)
        return self._all_tokens[index]

    def token_of_owner_by_index(self, address: str, index: int) -> int:
        owned = self._owned.get(address, [])
        if not 0 <= index < len(owned):
            raise InvalidArgumentError(
                "Owner index out of bounds", address=address, index=index
            )
        return owned[index]

    def tokens_of_owner(self, address: str) -> list[int]:
        return list(self._owned.get(address, []))

    def supports_interface(self, interface_id: int) -> bool:
        return interface_id in SUPPORTED_INTERFACES
