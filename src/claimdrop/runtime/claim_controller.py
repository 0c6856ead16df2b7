# src/claimdrop/runtime/claim_controller.py
from __future__ import annotations

"""Claim controllers.

A drop lets every account claim once. Each claim is one atomic settle step
inside store.update(): the clock read, the already-claimed check, the amount
computation, the supply cap and the mint all see the same state snapshot,
and a failure anywhere leaves the state untouched.

Two controllers share that skeleton:

  - VariableRateDrop: amount = target_units_per_step / quotient, where the
    quotient comes from the decay engine (schedule deviation -> multiplier).
  - FixedRateDrop: every claim mints the same configured amount.

Zero-amount claims (only reachable when the quotient saturates) succeed as a
no-op and do NOT mark the caller as claimed, so the caller may try again
later. This is logged as `claim_zero_amount`.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from claimdrop.ledger import token as ledger
from claimdrop.math.wad import WAD
from claimdrop.pricing.schedule import LinearSchedule
from claimdrop.pricing.vrgda import DecayPricer, decay_constant_from_percent, elapsed_time_units
from claimdrop.runtime.drop_config import DropConfig, validate_drop_config
from claimdrop.runtime.drop_store import DropStore, MemoryDropStore
from claimdrop.runtime.errors import (
    AlreadyClaimed,
    ClaimError,
    ClaimNotStarted,
    ConfigError,
    MaxSupplyReached,
    RestrictedCaller,
)
from claimdrop.runtime.metrics import inc_counter, set_gauge
from claimdrop.runtime.sqlite_db import SqliteDropStore
from claimdrop.runtime.state_invariants import check_drop_invariants, ensure_drop_state
from claimdrop.structured_logging import log_event

Json = Dict[str, Any]
Clock = Callable[[], float]

_log = logging.getLogger("claimdrop.claim")


def _drop_root(st: Json) -> Json:
    drop = st.get("drop")
    return drop if isinstance(drop, dict) else {}


def _issued(st: Json) -> int:
    return int(_drop_root(st).get("issued", 0))


def _claims(st: Json) -> int:
    return int(_drop_root(st).get("claims", 0))


def _has_claimed(st: Json, account: str) -> bool:
    return str(account) in (_drop_root(st).get("claimed") or {})


@dataclass(frozen=True)
class ClaimContext:
    caller: str
    # Account that originated the call when it was relayed; None for a direct call.
    origin: Optional[str] = None
    now: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.caller, str) or not self.caller.strip():
            raise ValueError("caller must be a non-empty string")

    @property
    def direct(self) -> bool:
        return self.origin is None or self.origin == self.caller


@dataclass(frozen=True)
class ClaimReceipt:
    account: str
    amount: int
    quotient: int
    issued_total: int
    claimed: bool
    time: int

    def to_json(self) -> Json:
        return {
            "account": self.account,
            "amount": str(self.amount),
            "quotient": str(self.quotient),
            "issued_total": str(self.issued_total),
            "claimed": self.claimed,
            "time": self.time,
        }


@dataclass(frozen=True)
class ClaimQuote:
    account: str
    amount: int
    quotient: int
    issued_total: int
    already_claimed: bool
    time: int

    def to_json(self) -> Json:
        return {
            "account": self.account,
            "amount": str(self.amount),
            "quotient": str(self.quotient),
            "issued_total": str(self.issued_total),
            "already_claimed": self.already_claimed,
            "time": self.time,
        }


class ClaimController(ABC):
    """Shared claim skeleton. Subclasses supply _amount_for()."""

    mode = ""

    def __init__(self, cfg: DropConfig, *, store: Optional[DropStore] = None, clock: Optional[Clock] = None) -> None:
        validate_drop_config(cfg)
        self.cfg = cfg
        self._store: DropStore = store if store is not None else MemoryDropStore()
        self._clock: Clock = clock or time.time

    # ---- read accessors ----

    @property
    def name(self) -> str:
        return self.cfg.name

    @property
    def symbol(self) -> str:
        return self.cfg.symbol

    @property
    def decimals(self) -> int:
        return int(self.cfg.decimals)

    @property
    def max_supply(self) -> int:
        return self.cfg.max_supply

    @property
    def only_direct_callers(self) -> bool:
        return bool(self.cfg.only_direct_callers)

    @property
    def start_time(self) -> int:
        return int(self.cfg.start_time)

    def total_supply(self) -> int:
        return self._store.view(ledger.total_supply)

    def balance_of(self, account: str) -> int:
        return self._store.view(lambda st: ledger.balance_of(st, account))

    def cumulative_issued(self) -> int:
        return self._store.view(_issued)

    def has_claimed(self, account: str) -> bool:
        return self._store.view(lambda st: _has_claimed(st, account))

    def describe(self) -> Json:
        supply, claims = self._store.view(lambda st: (ledger.total_supply(st), _claims(st)))
        return {
            "mode": self.mode,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "max_supply": str(self.max_supply),
            "only_direct_callers": self.only_direct_callers,
            "start_time": self.start_time,
            "total_supply": str(supply),
            "claims": claims,
        }

    # ---- claim ----

    def _now(self, ctx: ClaimContext) -> int:
        return int(ctx.now) if ctx.now is not None else int(self._clock())

    def _check_caller(self, ctx: ClaimContext) -> None:
        if self.only_direct_callers and not ctx.direct:
            raise RestrictedCaller(ctx.caller, ctx.origin)

    def _started_at(self, ctx: ClaimContext) -> int:
        now = self._now(ctx)
        if now < self.start_time:
            raise ClaimNotStarted(now, self.start_time)
        return now

    @abstractmethod
    def _amount_for(self, now: int, current: int) -> Tuple[int, int]:
        """Return (amount, quotient) before the supply cap."""

    def _capped(self, amount: int, current: int) -> int:
        if amount + current <= self.max_supply:
            return amount
        remaining = self.max_supply - current
        if remaining > 0:
            return remaining
        raise MaxSupplyReached(self.max_supply)

    def _settle(self, st: Json, ctx: ClaimContext) -> ClaimReceipt:
        # The clock is read under the store lock so settle order follows time order.
        now = self._started_at(ctx)
        account = ctx.caller
        ensure_drop_state(st)
        drop = st["drop"]

        if account in drop["claimed"]:
            raise AlreadyClaimed(account)

        current = int(drop["issued"])
        amount, quotient = self._amount_for(now, current)
        amount = self._capped(amount, current)

        if amount <= 0:
            return ClaimReceipt(account, 0, quotient, current, False, now)

        drop["claimed"][account] = True
        ledger.mint(st, account, amount)
        drop["issued"] = current + amount
        drop["claims"] = int(drop["claims"]) + 1
        drop["last_claim_time"] = now

        check_drop_invariants(st, max_supply=self.max_supply, account=account)
        return ClaimReceipt(account, amount, quotient, current + amount, True, now)

    def claim(self, ctx: ClaimContext) -> ClaimReceipt:
        """Claim for ctx.caller. Raises a ClaimError subclass on rejection."""
        try:
            self._check_caller(ctx)
            receipt = self._store.update(lambda st: self._settle(st, ctx))
        except ClaimError as e:
            inc_counter(f"claims_rejected_{e.code}")
            log_event(_log, "claim_rejected", level=logging.WARNING, account=ctx.caller, code=e.code, reason=e.reason)
            raise

        if not receipt.claimed:
            inc_counter("claims_zero_amount")
            log_event(
                _log,
                "claim_zero_amount",
                level=logging.WARNING,
                account=receipt.account,
                quotient=str(receipt.quotient),
                issued_total=str(receipt.issued_total),
            )
            return receipt

        inc_counter("claims_settled")
        set_gauge("issued_total", receipt.issued_total)
        log_event(
            _log,
            "claim_settled",
            account=receipt.account,
            amount=str(receipt.amount),
            quotient=str(receipt.quotient),
            issued_total=str(receipt.issued_total),
        )
        return receipt

    def quote(self, ctx: ClaimContext) -> ClaimQuote:
        """Preview a claim at ctx.now without changing state.

        Gate errors and MaxSupplyReached are raised as claim() would raise
        them; an existing claim is reported rather than raised.
        """
        self._check_caller(ctx)
        now = self._started_at(ctx)
        current, already = self._store.view(lambda st: (_issued(st), _has_claimed(st, ctx.caller)))
        amount, quotient = self._amount_for(now, current)
        amount = self._capped(amount, current)
        return ClaimQuote(ctx.caller, amount, quotient, current, already, now)


class VariableRateDrop(ClaimController):
    """Adaptive drop: claims shrink when ahead of the linear schedule and grow when behind."""

    mode = "variable"

    def __init__(self, cfg: DropConfig, *, store: Optional[DropStore] = None, clock: Optional[Clock] = None) -> None:
        if str(cfg.mode).strip().lower() != "variable":
            raise ConfigError(f"VariableRateDrop requires mode='variable'; got: {cfg.mode!r}")
        super().__init__(cfg, store=store, clock=clock)
        self.target_units_per_step = cfg.max_supply * int(cfg.network_step_interval) // int(cfg.target_duration)
        self.pricer = DecayPricer(
            schedule=LinearSchedule.from_supply(cfg.max_supply, cfg.target_duration, cfg.time_unit_seconds),
            decay_constant=decay_constant_from_percent(cfg.decay_percent),
            units_per_step=self.target_units_per_step,
        )

    @property
    def target_end_time(self) -> int:
        return self.cfg.target_end_time

    @property
    def target_duration(self) -> int:
        return int(self.cfg.target_duration)

    @property
    def time_unit_seconds(self) -> int:
        return int(self.cfg.time_unit_seconds)

    @property
    def network_step_interval(self) -> int:
        return int(self.cfg.network_step_interval)

    @property
    def decay_constant(self) -> int:
        return self.pricer.decay_constant

    def _amount_for(self, now: int, current: int) -> Tuple[int, int]:
        q = self.pricer.quote(elapsed_time_units(now, self.start_time, self.time_unit_seconds), current)
        return q.amount, q.quotient

    def describe(self) -> Json:
        out = super().describe()
        out.update(
            {
                "target_end_time": self.target_end_time,
                "target_duration": self.target_duration,
                "time_unit_seconds": self.time_unit_seconds,
                "network_step_interval": self.network_step_interval,
                "target_units_per_step": str(self.target_units_per_step),
                "decay_constant": str(self.decay_constant),
            }
        )
        return out


class FixedRateDrop(ClaimController):
    """Flat-rate drop: every claim mints claim_amount until the cap."""

    mode = "fixed"

    def __init__(self, cfg: DropConfig, *, store: Optional[DropStore] = None, clock: Optional[Clock] = None) -> None:
        if str(cfg.mode).strip().lower() != "fixed":
            raise ConfigError(f"FixedRateDrop requires mode='fixed'; got: {cfg.mode!r}")
        super().__init__(cfg, store=store, clock=clock)
        self.claim_amount = cfg.claim_amount

    def _amount_for(self, now: int, current: int) -> Tuple[int, int]:
        return self.claim_amount, WAD

    def describe(self) -> Json:
        out = super().describe()
        out["claim_amount"] = str(self.claim_amount)
        return out


def build_drop(cfg: DropConfig, *, store: Optional[DropStore] = None, clock: Optional[Clock] = None) -> ClaimController:
    """Build the controller for cfg.mode over the store for cfg.db_path."""
    if store is None:
        store = SqliteDropStore.open(cfg.db_path) if cfg.db_path else MemoryDropStore()

    mode = str(cfg.mode).strip().lower()
    drop: ClaimController
    if mode == "fixed":
        drop = FixedRateDrop(cfg, store=store, clock=clock)
    else:
        drop = VariableRateDrop(cfg, store=store, clock=clock)

    log_event(
        _log,
        "drop_built",
        mode=drop.mode,
        symbol=drop.symbol,
        max_supply=str(drop.max_supply),
        start_time=drop.start_time,
        store=type(store).__name__,
    )
    return drop


__all__ = [
    "ClaimContext",
    "ClaimController",
    "ClaimQuote",
    "ClaimReceipt",
    "FixedRateDrop",
    "VariableRateDrop",
    "build_drop",
]
