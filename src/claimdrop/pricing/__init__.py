# src/claimdrop/pricing/__init__.py
"""
Issuance-rate engine.

  - schedule: the ideal linear issuance curve and its inverse
  - vrgda: exponential decay multiplier over schedule deviation

Both are pure: no state, no I/O, integer-exact wad arithmetic from
claimdrop.math.wad.
"""

from __future__ import annotations

__all__ = [
    "schedule",
    "vrgda",
]
