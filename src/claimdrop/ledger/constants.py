# src/claimdrop/ledger/constants.py
from __future__ import annotations

"""Default drop parameters.

Defaults describe a one-week drop:
- Max supply: 1,000,000,000 whole units, 18 decimals
- Target duration: 7 days
- Network step: 2 seconds
- Decay: 4% per 60-second time unit
"""

# Asset precision (1 unit = 1e-18 whole)
TOKEN_DECIMALS: int = 18

DEFAULT_NAME: str = "Claimdrop"
DEFAULT_SYMBOL: str = "DROP"

MAX_SUPPLY_WHOLE: int = 1_000_000_000

TARGET_DURATION_SECONDS: int = 7 * 24 * 60 * 60
NETWORK_STEP_INTERVAL_SECONDS: int = 2

# 4% as a wad fraction
DECAY_PERCENT_WAD: int = 4 * 10**16
TIME_UNIT_SECONDS: int = 60

DROP_MODES = ("variable", "fixed")
