"""Sale gate - single switch controlling the public minting tier."""

from __future__ import annotations

import logging

from .roles import RoleRegistry

logger = logging.getLogger(__name__)


class SaleGate:
    """Boolean gate for the public tier. Admins open and close it."""

    def __init__(self, roles: RoleRegistry, active: bool = False) -> None:
        self._roles = roles
        self._active = active

    @property
    def public_sale_active(self) -> bool:
        return self._active

    def activate(self, caller: str) -> None:
        """Open the public sale. Raises NotAdminError for non-admins."""
        self._roles.require_admin(caller)
        self._active = True
        logger.info("Public sale activated by %s", caller)

    def deactivate(self, caller: str) -> None:
        """Close the public sale. Raises NotAdminError for non-admins."""
        self._roles.require_admin(caller)
        self._active = False
        logger.info("Public sale deactivated by %s", caller)
