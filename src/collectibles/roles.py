"""Role Registry - admin and whitelist membership

Two independent membership sets keyed by address:
- admins: granted and revoked by the owning principal
- whitelisted: granted and revoked by any admin

An address may sit in both sets, either, or neither. The registry never
enforces mutual exclusion between them. Membership is toggled, so removing
and re-adding an address leaves no residual state.

Usage:
    roles = RoleRegistry(owner="deployer")
    roles.add_admin("deployer", "alice")
    roles.add_whitelisted("alice", "bob")
    roles.is_whitelisted("bob")  # True
"""

from __future__ import annotations

import logging

from .errors import (
    AlreadyAdminError,
    AlreadyWhitelistedError,
    NotAdminError,
    NotOwnerError,
    NotWhitelistedError,
    require_address,
)

logger = logging.getLogger(__name__)


class RoleRegistry:
    """Membership sets for the admin and whitelisted roles.

    The owner is fixed at construction; identifying the owner is the job of
    whatever deploys the collection.

    Thread-safety: This class is NOT thread-safe. Callers serialize access
    (Collection holds a lock around every operation).
    """

    owner: str
    _admins: set[str]
    _whitelisted: set[str]

    def __init__(self, owner: str) -> None:
        self.owner = require_address(owner, "owner")
        self._admins = set()
        self._whitelisted = set()

    # ===== CAPABILITY CHECKS =====

    def require_owner(self, caller: str) -> None:
        """Raise NotOwnerError unless caller is the owning principal."""
        if caller != self.owner:
            raise NotOwnerError(
                f"'{caller}' is not the owner", caller=caller
            )

    def require_admin(self, caller: str) -> None:
        """Raise NotAdminError unless caller is an admin."""
        if caller not in self._admins:
            raise NotAdminError(f"'{caller}' is not an admin", caller=caller)

    # ===== ADMIN ROLE =====

    def add_admin(self, caller: str, address: str) -> None:
        """Grant the admin role.

        Args:
            caller: Principal performing the change (must be the owner)
            address: Address to promote

        Raises:
            NotOwnerError: If caller is not the owner
            AlreadyAdminError: If address is already an admin
        """
        self.require_owner(caller)
        require_address(address)
        if address in self._admins:
            raise AlreadyAdminError(
                f"'{address}' is already an admin", address=address
            )
        self._admins.add(address)
        logger.info("Admin role granted to %s", address)

    def remove_admin(self, caller: str, address: str) -> None:
        """Revoke the admin role.

        Raises:
            NotOwnerError: If caller is not the owner
            NotAdminError: If address is not currently an admin
        """
        self.require_owner(caller)
        if address not in self._admins:
            raise NotAdminError(f"'{address}' is not an admin", address=address)
        self._admins.discard(address)
        logger.info("Admin role revoked from %s", address)

    # ===== WHITELIST ROLE =====

    def add_whitelisted(self, caller: str, address: str) -> None:
        """Grant the whitelisted role.

        Args:
            caller: Principal performing the change (must be an admin)
            address: Address to whitelist

        Raises:
            NotAdminError: If caller is not an admin
            AlreadyWhitelistedError: If address is already whitelisted
        """
        self.require_admin(caller)
        require_address(address)
        if address in self._whitelisted:
            raise AlreadyWhitelistedError(
                f"'{address}' is already whitelisted", address=address
            )
        self._whitelisted.add(address)
        logger.info("Whitelist role granted to %s by %s", address, caller)

    def remove_whitelisted(self, caller: str, address: str) -> None:
        """Revoke the whitelisted role.

        Raises:
            NotAdminError: If caller is not an admin
            NotWhitelistedError: If address is not whitelisted
        """
        self.require_admin(caller)
        if address not in self._whitelisted:
            raise NotWhitelistedError(
                f"'{address}' is not whitelisted", address=address
            )
        self._whitelisted.discard(address)
        logger.info("Whitelist role revoked from %s by %s", address, caller)

    # ===== QUERIES =====

    def is_admin(self, address: str) -> bool:
        return address in self._admins

    def is_whitelisted(self, address: str) -> bool:
        return address in self._whitelisted

    def admins(self) -> list[str]:
        """Sorted list of current admins."""
        return sorted(self._admins)

    def whitelisted(self) -> list[str]:
        """Sorted list of current whitelisted addresses."""
        return sorted(self._whitelisted)
