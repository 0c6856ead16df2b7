# src/claimdrop/pricing/schedule.py
from __future__ import annotations

"""Target issuance schedule.

Cumulative issuance is modelled as a straight line from (start, 0) to
(start + target_duration, max_supply). The decay engine only needs the
inverse of that line: for a cumulative unit count n, the ideal instant
(in wad time units since start) at which the n-th unit is due.
"""

from dataclasses import dataclass

from claimdrop.math.wad import WAD, unsafe_wad_div


@dataclass(frozen=True)
class LinearSchedule:
    # Ideal units issued per time unit, as a wad.
    per_time_unit: int

    def __post_init__(self) -> None:
        if int(self.per_time_unit) <= 0:
            raise ValueError(f"per_time_unit must be > 0; got: {self.per_time_unit}")

    @classmethod
    def from_supply(cls, max_supply: int, target_duration: int, time_unit_seconds: int) -> "LinearSchedule":
        if int(target_duration) <= 0:
            raise ValueError(f"target_duration must be > 0; got: {target_duration}")
        per = int(max_supply) * int(time_unit_seconds) * WAD // int(target_duration)
        return cls(per_time_unit=per)

    def ideal_time_units_for(self, n_wad: int) -> int:
        """Wad time units since start at which `n_wad` units are due."""
        return unsafe_wad_div(int(n_wad), self.per_time_unit)


__all__ = ["LinearSchedule"]
