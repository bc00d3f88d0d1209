"""Collectibles source package.

This package contains:
- config: Configuration loading and management
- collectibles: Roles, quotas, sale gate, holder cap, mint authorizer, token ledger
"""

from __future__ import annotations

__all__: list[str] = []
