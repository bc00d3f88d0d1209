"""JSONL event logger - append-only audit trail of collection activity"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import get


class EventLogger:
    """Append-only JSONL event log.

    Every event carries an ISO UTC timestamp, a monotonic ``sequence``
    counter and its ``event_type``. The file is cleared when the logger is
    created, one file per collection lifetime.
    """

    output_path: Path
    _sequence: int

    def __init__(self, output_file: str | None = None) -> None:
        """Initialize the event logger.

        Args:
            output_file: JSONL file path (default: logging.output_file from
                config, falling back to mints.jsonl)
        """
        resolved_file = output_file or get("logging.output_file") or "mints.jsonl"
        if not isinstance(resolved_file, str):
            resolved_file = "mints.jsonl"
        self.output_path = Path(resolved_file)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text("")
        self._sequence = 0

    def log(self, event_type: str, data: dict[str, Any]) -> None:
        """Append one event to the JSONL file."""
        self._sequence += 1
        event: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": self._sequence,
            "event_type": event_type,
            **data,
        }
        with open(self.output_path, "a") as f:
            f.write(json.dumps(event) + "\n")

    # ========== Domain event helpers ==========

    def log_mint(self, result: dict[str, Any]) -> None:
        """Log a committed mint (MintResult.to_dict())."""
        self.log("mint", result)

    def log_mint_rejected(
        self,
        tier: str,
        requester: str,
        recipient: str,
        token_id: int,
        error: dict[str, object],
    ) -> None:
        """Log a rejected mint request.

        Args:
            tier: Tier the request targeted
            requester: Principal that asked for the mint
            recipient: Address the asset would have gone to
            token_id: Requested asset id
            error: CollectibleError.to_dict() of the rejection
        """
        self.log("mint_rejected", {
            "tier": tier,
            "requester": requester,
            "recipient": recipient,
            "token_id": token_id,
            "code": error.get("code"),
            "error": error.get("error"),
            "details": error.get("details"),
        })

    def log_role_changed(
        self, caller: str, role: str, address: str, granted: bool
    ) -> None:
        self.log("role_changed", {
            "caller": caller,
            "role": role,
            "address": address,
            "granted": granted,
        })

    def log_limit_changed(
        self, caller: str, limit: str, old_value: int, new_value: int
    ) -> None:
        self.log("limit_changed", {
            "caller": caller,
            "limit": limit,
            "old_value": old_value,
            "new_value": new_value,
        })

    def log_sale_changed(self, caller: str, active: bool) -> None:
        self.log("sale_changed", {"caller": caller, "public_sale_active": active})

    def log_pause_changed(self, caller: str, paused: bool) -> None:
        self.log("pause_changed", {"caller": caller, "paused": paused})

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """Read the last N events from the log.

        N defaults to logging.default_recent from config.
        """
        if n is None:
            default_recent = get("logging.default_recent")
            if isinstance(default_recent, int):
                n = default_recent
            else:
                n = 50
        if not self.output_path.exists():
            return []
        lines = self.output_path.read_text().strip().split("\n")
        lines = [line for line in lines if line]
        recent = lines[-n:] if len(lines) > n else lines
        return [json.loads(line) for line in recent]

    @property
    def sequence(self) -> int:
        """Number of events written so far."""
        return self._sequence
