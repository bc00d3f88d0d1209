"""Per-holder cap on assets received through tiered minting.

The count is of assets *minted to* an address through this system, across
all tiers. Later transfers or burns on the ledger do not lower it.
"""

from __future__ import annotations

import logging

from .constants import MAX_MINTS_PER_HOLDER
from .errors import AddressCapExceededError, InvalidArgumentError

logger = logging.getLogger(__name__)


class PerHolderCapEnforcer:
    """Tracks minted-through-this-system counts per recipient address."""

    max_per_holder: int
    _minted: dict[str, int]

    def __init__(self, max_per_holder: int = MAX_MINTS_PER_HOLDER) -> None:
        if max_per_holder < 1:
            raise InvalidArgumentError(
                "max_per_holder must be at least 1", max_per_holder=max_per_holder
            )
        self.max_per_holder = max_per_holder
        self._minted = {}

    def minted_to(self, address: str) -> int:
        """Count of assets minted to address (0 for unknown addresses)."""
        return self._minted.get(address, 0)

    def remaining(self, address: str) -> int:
        return max(0, self.max_per_holder - self.minted_to(address))

    def check_cap(self, address: str) -> None:
        """Raise AddressCapExceededError if address already holds the cap."""
        minted = self.minted_to(address)
        if minted >= self.max_per_holder:
            raise AddressCapExceededError(
                f"'{address}' already received {minted} of {self.max_per_holder} mints",
                address=address,
                minted=minted,
                cap=self.max_per_holder,
            )

    def record_mint(self, address: str) -> int:
        """Increment the holder's count after a committed mint.

        Returns:
            The holder's new count
        """
        self._minted[address] = self._minted.get(address, 0) + 1
        return self._minted[address]

    def snapshot(self) -> dict[str, int]:
        return dict(self._minted)
