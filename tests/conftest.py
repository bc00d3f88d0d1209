"""Pytest fixtures for collectibles tests.

Common fixtures for building collections in known states.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.collectibles.collection import Collection
from src.collectibles.logger import EventLogger
from tests.testing_utils import ADMIN, OWNER, WHITELISTED


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "scenario(num): mark test as an end-to-end minting scenario. "
        "Usage: @pytest.mark.scenario(1)"
    )


@pytest.fixture
def collection() -> Collection:
    """Collection with limits total=10, admin=2, whitelist=3 and no roles.

    Public tier allowance is therefore 5.
    """
    return Collection(OWNER, total_limit=10, admin_limit=2, whitelist_limit=3)


@pytest.fixture
def staffed_collection(collection: Collection) -> Collection:
    """Collection with one admin and one whitelisted user.

    - alice: admin
    - wendy: whitelisted (not admin)
    """
    collection.add_admin_address(OWNER, ADMIN)
    collection.add_whitelisted_address(ADMIN, WHITELISTED)
    return collection


@pytest.fixture
def open_collection(staffed_collection: Collection) -> Collection:
    """Staffed collection with the public sale active."""
    staffed_collection.activate_public_sale(ADMIN)
    return staffed_collection


@pytest.fixture
def event_logger(tmp_path: Path) -> EventLogger:
    """EventLogger writing into a temp directory."""
    return EventLogger(output_file=str(tmp_path / "mints.jsonl"))
