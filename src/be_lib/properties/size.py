# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import re
from dataclasses import dataclass
from typing import Self

from be_lib.core.error import BEError

# kilobytes per unit
_KILOBYTES = {
    "kb": 1,
    "mb": 1024,
    "gb": 1024**2,
    "tb": 1024**3,
    "pb": 1024**4,
}


@dataclass(init=False)
class Size:
    """
    Amount of memory, stored in whole kilobytes.

    Kilobytes are the smallest unit accepted by any supported backend: LSF takes
    `-M` in kilobytes and PBS accepts `mem=<n>kb`. Sizes given in bytes are
    rounded up to the next whole kilobyte.
    """

    value: int

    def __init__(self, value: int, unit: str = "kb"):
        unit = unit.lower()

        if unit == "b":
            # rounded up to whole kilobytes
            self.value = -(-value // 1024)
            return

        if unit not in _KILOBYTES:
            raise BEError(f"Unsupported unit for size '{unit}'.")

        self.value = value * _KILOBYTES[unit]

    @classmethod
    def fromString(cls, s: str) -> Self:
        """
        Parse a size such as `10mb`, `10 MB`, `10m`, or `512kb`.

        Single-letter units other than `b` are read as the corresponding
        two-letter unit (`m` -> `mb`).

        Raises:
            BEError: If the string is not an integer followed by a unit.
        """
        if not (match := re.fullmatch(r"\s*(\d+)\s*([a-zA-Z]+)\s*", s)):
            raise BEError(f"Invalid size string: '{s}'.")

        value, unit = match.groups()
        unit = unit.lower()
        if len(unit) == 1 and unit != "b":
            unit += "b"

        return cls(int(value), unit)

    def __str__(self) -> str:
        # largest unit dividing the value exactly
        for unit, factor in reversed(_KILOBYTES.items()):
            if self.value >= factor and self.value % factor == 0:
                return f"{self.value // factor}{unit}"

        return f"{self.value}kb"

    def toStrExact(self) -> str:
        """Render the size in kilobytes (e.g. `10240kb`)."""
        return f"{self.value}kb"

    def toKilobytes(self) -> int:
        return self.value
