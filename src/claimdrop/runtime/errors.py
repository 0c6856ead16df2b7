from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(eq=False)
class ClaimError(Exception):
    """Canonical error type for claim failures. No state change accompanies it."""

    code: str
    reason: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:  # pragma: no cover
        if not self.details:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"


class RestrictedCaller(ClaimError):
    def __init__(self, caller: str, origin: str | None) -> None:
        super().__init__("restricted_caller", "direct_callers_only", {"caller": caller, "origin": origin})


class ClaimNotStarted(ClaimError):
    def __init__(self, now: int, start_time: int) -> None:
        super().__init__("claim_not_started", "before_start_time", {"now": now, "start_time": start_time})


class AlreadyClaimed(ClaimError):
    def __init__(self, account: str) -> None:
        super().__init__("already_claimed", "account_already_claimed", {"account": account})


class MaxSupplyReached(ClaimError):
    def __init__(self, max_supply: int) -> None:
        super().__init__("max_supply_reached", "no_remaining_supply", {"max_supply": max_supply})


class ConfigError(ValueError):
    """Invalid creation-time drop parameters."""


__all__ = [
    "AlreadyClaimed",
    "ClaimError",
    "ClaimNotStarted",
    "ConfigError",
    "MaxSupplyReached",
    "RestrictedCaller",
]
