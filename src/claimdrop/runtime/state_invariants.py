# src/claimdrop/runtime/state_invariants.py
from __future__ import annotations

"""Drop state invariants.

Drop state is a JSON-like dict with two roots:

  - "token": ledger balances + total supply (owned by claimdrop.ledger.token)
  - "drop":  cumulative issuance + claimed set (owned by the claim controller)

ensure_drop_state() normalizes the shape before a settle step;
check_drop_invariants() verifies the cross-root invariants after one.
"""

from collections.abc import MutableMapping
from typing import Any, Dict, Optional

Json = Dict[str, Any]


class InvariantViolation(AssertionError):
    pass


def ensure_drop_state(st: Any) -> Json:
    """Ensure `st` is a dict and contains both roots.

    Raises:
        TypeError: if st (or an existing root) has the wrong type
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    tok = st.get("token")
    if tok is None:
        tok = st["token"] = {}
    elif not isinstance(tok, dict):
        raise TypeError(f"state['token'] must be dict, got {type(tok)}")
    tok.setdefault("total_supply", 0)
    tok.setdefault("balances", {})

    drop = st.get("drop")
    if drop is None:
        drop = st["drop"] = {}
    elif not isinstance(drop, dict):
        raise TypeError(f"state['drop'] must be dict, got {type(drop)}")
    drop.setdefault("issued", 0)
    drop.setdefault("claimed", {})
    drop.setdefault("claims", 0)
    drop.setdefault("last_claim_time", None)

    return st  # type: ignore[return-value]


def check_drop_invariants(st: Json, *, max_supply: int, account: Optional[str] = None) -> None:
    """Check supply and claimed-set invariants.

    With `account`, only that account's balance is checked (the one a settle
    step just minted to); otherwise every claimed account is walked.
    """
    tok = st.get("token") or {}
    drop = st.get("drop") or {}

    issued = int(drop.get("issued", 0))
    supply = int(tok.get("total_supply", 0))
    if issued < 0 or issued > int(max_supply):
        raise InvariantViolation(f"issued out of range: {issued} (max {max_supply})")
    if issued != supply:
        raise InvariantViolation(f"issued {issued} != token total_supply {supply}")

    claimed = drop.get("claimed") or {}
    if int(drop.get("claims", 0)) != len(claimed):
        raise InvariantViolation(f"claims counter {drop.get('claims')} != claimed set size {len(claimed)}")

    bals = tok.get("balances") or {}
    for acct in (claimed if account is None else (account,)):
        if acct not in claimed:
            raise InvariantViolation(f"account not in claimed set: {acct}")
        if int(bals.get(acct, 0)) <= 0:
            raise InvariantViolation(f"claimed account without balance: {acct}")


__all__ = ["InvariantViolation", "check_drop_invariants", "ensure_drop_state"]
