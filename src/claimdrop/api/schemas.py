from __future__ import annotations

"""Pydantic response schemas for the public API.

Token amounts are decimal strings: wad-scale values overflow JSON number
precision in most clients.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DropInfo(BaseModel):
    mode: str
    name: str
    symbol: str
    decimals: int
    max_supply: str
    only_direct_callers: bool
    start_time: int
    total_supply: str
    claims: int

    target_end_time: Optional[int] = None
    target_duration: Optional[int] = None
    time_unit_seconds: Optional[int] = None
    network_step_interval: Optional[int] = None
    target_units_per_step: Optional[str] = None
    decay_constant: Optional[str] = None
    claim_amount: Optional[str] = None


class AccountInfo(BaseModel):
    ok: bool = True
    account: str
    balance: str = Field(..., description="Balance in base units")
    claimed: bool


class ClaimResult(BaseModel):
    ok: bool = True
    account: str
    amount: str
    quotient: str = Field(..., description="Wad multiplier applied to the per-step target")
    issued_total: str
    claimed: bool
    time: int


class ClaimQuoteResult(BaseModel):
    ok: bool = True
    account: str
    amount: str
    quotient: str
    issued_total: str
    already_claimed: bool
    time: int
