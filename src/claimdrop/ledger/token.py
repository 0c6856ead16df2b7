# src/claimdrop/ledger/token.py
from __future__ import annotations

"""Fungible-asset ledger kept inside the drop state document.

The only write primitive is mint(); there are no transfers. Balances and
total supply live under state["token"].
"""

from dataclasses import dataclass
from typing import Any, Dict

Json = Dict[str, Any]


@dataclass
class LedgerError(RuntimeError):
    code: str
    reason: str
    details: Json

    def __str__(self) -> str:
        return f"{self.code}:{self.reason}:{self.details}"


def _as_int(x: Any, default: int = 0) -> int:
    try:
        return int(x)
    except Exception:
        return int(default)


def ensure_token_root(state: Json) -> Json:
    tok = state.get("token")
    if not isinstance(tok, dict):
        tok = {}
        state["token"] = tok
    tok.setdefault("total_supply", 0)
    if not isinstance(tok.get("balances"), dict):
        tok["balances"] = {}
    return tok


def total_supply(state: Json) -> int:
    tok = state.get("token")
    if not isinstance(tok, dict):
        return 0
    return _as_int(tok.get("total_supply"), 0)


def balance_of(state: Json, account: str) -> int:
    tok = state.get("token")
    if not isinstance(tok, dict):
        return 0
    bals = tok.get("balances")
    if not isinstance(bals, dict):
        return 0
    return _as_int(bals.get(str(account)), 0)


def mint(state: Json, account: str, amount: int) -> int:
    """Credit `amount` new units to `account`. Returns the new balance."""
    acct = str(account or "").strip()
    if not acct:
        raise LedgerError("invalid_account", "account_required", {"account": account})
    amt = int(amount)
    if amt <= 0:
        raise LedgerError("invalid_amount", "amount_must_be_positive", {"amount": amt})

    tok = ensure_token_root(state)
    bals = tok["balances"]
    bal = _as_int(bals.get(acct), 0) + amt
    bals[acct] = bal
    tok["total_supply"] = _as_int(tok.get("total_supply"), 0) + amt
    return bal


__all__ = ["LedgerError", "balance_of", "ensure_token_root", "mint", "total_supply"]
