"""Table-driven 16-bit cyclic redundancy checks (MSB first, no reflection)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

_MASK = 0xFFFF


def make_table(poly: int) -> tuple[int, ...]:
    """Build the 256-entry lookup table for a 16-bit generator polynomial."""
    table = []
    for index in range(256):
        crc = index << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ poly) & _MASK
            else:
                crc = (crc << 1) & _MASK
        table.append(crc)
    return tuple(table)


def checksum(init: int, data: Iterable[int], table: Sequence[int]) -> int:
    """Run ``data`` through the CRC register starting from ``init``."""
    crc = init & _MASK
    for value in data:
        crc = ((crc << 8) & _MASK) ^ table[(crc >> 8) ^ value]
    return crc


@dataclass
class CRC:
    """A named 16-bit CRC with its precomputed table."""

    name: str
    init: int
    poly: int
    residue: int
    table: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.table = make_table(self.poly)

    def __str__(self) -> str:
        return (
            f"{{Name:{self.name} Init:0x{self.init:04X} "
            f"Poly:0x{self.poly:04X} Residue:0x{self.residue:04X}}}"
        )

    def checksum(self, data: Iterable[int]) -> int:
        """Return the checksum of ``data``."""
        return checksum(self.init, data, self.table)