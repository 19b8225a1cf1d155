"""FSK demodulation of interleaved 8-bit I/Q samples into raw packets."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from itertools import pairwise

from .search import ByteFinder

_log = logging.getLogger(__name__)


class ByteToComplexLUT:
    """Maps unsigned 8-bit I/Q pairs onto complex samples centred on zero."""

    def __init__(self) -> None:
        self.table = tuple((index - 127.4) / 127.6 for index in range(256))

    def execute(self, data: bytes) -> list[complex]:
        """Convert interleaved I/Q bytes into complex samples."""
        data = bytes(data)
        if len(data) % 2:
            raise ValueError(f"odd number of I/Q bytes: {len(data)}")
        table = self.table
        return [complex(table[i], table[q]) for i, q in zip(data[0::2], data[1::2])]


def rotate_fs4(samples: Sequence[complex]) -> list[complex]:
    """Shift the spectrum up by a quarter of the sample rate."""
    if len(samples) % 4:
        raise ValueError(f"sample count must be a multiple of 4: {len(samples)}")
    rotated = []
    for index, sample in enumerate(samples):
        sample = complex(sample)
        quarter = index & 3
        if quarter == 0:
            rotated.append(sample)
        elif quarter == 1:
            rotated.append(complex(-sample.imag, sample.real))
        elif quarter == 2:
            rotated.append(-sample)
        else:
            rotated.append(complex(sample.imag, -sample.real))
    return rotated


def fir9(samples: Sequence[complex]) -> list[complex]:
    """Apply the symmetric 9-tap low-pass filter; yields len(samples) - 9 values."""
    c0 = 0.017682261285
    c1 = 0.048171339939
    c2 = 0.122424706672
    c3 = 0.197408519126
    c4 = 0.228626345955
    filtered = []
    for start in range(len(samples) - 9):
        w = samples[start : start + 9]
        acc = (w[0] + w[8]) * c0
        acc += (w[1] + w[7]) * c1
        acc += (w[2] + w[6]) * c2
        acc += (w[3] + w[5]) * c3
        acc += w[4] * c4
        filtered.append(complex(acc))
    return filtered


def _divide(numerator: float, denominator: float) -> float:
    if denominator:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator)


def discriminate(samples: Sequence[complex]) -> list[float]:
    """Approximate the phase step between neighbouring samples.

    Returns one value fewer than there are samples.
    """
    return [
        _divide(
            n.imag * nxt.real - n.real * nxt.imag,
            n.real * n.real + n.imag * n.imag,
        )
        for n, nxt in pairwise(complex(s) for s in samples)
    ]


def quantize(values: Iterable[float]) -> bytes:
    """Return 1 for each value whose sign bit is set, otherwise 0."""
    return bytes(1 if math.copysign(1.0, value) < 0 else 0 for value in values)


@dataclass(frozen=True)
class Packet:
    """Raw packet bits, packed MSB first, found at a quantized-buffer index."""

    idx: int
    data: bytes


@dataclass
class PacketConfig:
    """Radio and buffering parameters for one packet format."""

    bit_rate: int
    symbol_length: int
    preamble_symbols: int
    packet_symbols: int
    preamble: str

    block_size: int = field(init=False, default=512)
    block_size2: int = field(init=False)
    preamble_length: int = field(init=False)
    packet_length: int = field(init=False)
    preamble_bytes: bytes = field(init=False)
    preamble_finder: ByteFinder = field(init=False, repr=False, compare=False)
    sample_rate: int = field(init=False)
    buffer_length: int = field(init=False)

    def __post_init__(self) -> None:
        self.preamble_length = self.preamble_symbols * self.symbol_length
        self.packet_length = self.packet_symbols * self.symbol_length
        self.preamble_bytes = bytes(1 if ch == "1" else 0 for ch in self.preamble)
        self.preamble_finder = ByteFinder(self.preamble_bytes)
        self.sample_rate = self.bit_rate * self.symbol_length
        self.block_size2 = self.block_size << 1
        self.buffer_length = (self.packet_length // self.block_size + 2) * self.block_size

    def log(self) -> None:
        """Log the configuration, one parameter per line."""
        for label, value in (
            ("BitRate", self.bit_rate),
            ("SymbolLength", self.symbol_length),
            ("SampleRate", self.sample_rate),
            ("Preamble", self.preamble),
            ("PreambleSymbols", self.preamble_symbols),
            ("PreambleLength", self.preamble_length),
            ("PacketSymbols", self.packet_symbols),
            ("PacketLength", self.packet_length),
            ("BlockSize", self.block_size),
            ("BufferLength", self.buffer_length),
        ):
            _log.info("%s: %s", label, value)


class Demodulator:
    """Streams sample blocks through the FSK chain and extracts packets."""

    def __init__(self, cfg: PacketConfig) -> None:
        self.cfg = cfg
        self.symbols_per_block = (cfg.block_size + cfg.preamble_length) // cfg.symbol_length
        self._lut = ByteToComplexLUT()
        self._slices: list[bytes] = [bytes(self.symbols_per_block)] * cfg.symbol_length
        self._pkt = bytearray((cfg.packet_symbols + 7) >> 3)
        self.reset()

    def reset(self) -> None:
        """Clear all sample history."""
        cfg = self.cfg
        self.raw = bytearray(cfg.buffer_length << 1)
        self.iq: list[complex] = [0j] * (cfg.block_size + 9)
        self.filtered: list[complex] = [0j] * (cfg.block_size + 1)
        self.discriminated: list[float] = [0.0] * (cfg.block_size * 2)
        self.quantized = bytearray(cfg.buffer_length)

    def pack(self, quantized: Sequence[int]) -> None:
        """Split the quantized samples into one symbol stream per sample offset."""
        step = self.cfg.symbol_length
        needed = self.symbols_per_block * step
        if len(quantized) < needed:
            raise ValueError(f"need at least {needed} quantized samples, got {len(quantized)}")
        self._slices = [bytes(quantized[offset:needed:step]) for offset in range(step)]

    def search(self) -> list[int]:
        """Return quantized-buffer indices at which the preamble starts."""
        finder = self.cfg.preamble_finder
        step = self.cfg.symbol_length
        indexes = []
        for offset, symbols in enumerate(self._slices):
            position = 0
            while (found := finder.next(symbols[position:])) != -1:
                indexes.append((position + found) * step + offset)
                position += found + 1
        return indexes

    def slice(self, indices: Iterable[int]) -> list[Packet]:
        """Pack the bits following each preamble index into unique packets."""
        cfg = self.cfg
        seen: set[bytes] = set()
        packets = []
        for q_idx in indices:
            # Later blocks will still hold packets that start past the first block.
            if q_idx > cfg.block_size:
                continue
            for bit_idx in range(cfg.packet_symbols):
                byte_idx = bit_idx >> 3
                bit = self.quantized[q_idx + bit_idx * cfg.symbol_length]
                self._pkt[byte_idx] = ((self._pkt[byte_idx] << 1) & 0xFF) | bit
            data = bytes(self._pkt)
            if data not in seen:
                seen.add(data)
                packets.append(Packet(q_idx, data))
        return packets

    def demodulate(self, block: bytes) -> list[Packet]:
        """Consume one block of interleaved I/Q bytes and return packets found."""
        cfg = self.cfg
        block = bytes(block)
        if len(block) != cfg.block_size2:
            raise ValueError(f"block must be {cfg.block_size2} bytes, got {len(block)}")
        size = cfg.block_size

        del self.raw[: cfg.block_size2]
        self.raw += block

        self.iq = self.iq[size:] + rotate_fs4(self._lut.execute(block))
        self.filtered = [self.filtered[-1], *fir9(self.iq)]
        self.discriminated = self.discriminated[size:] + discriminate(self.filtered)
        del self.quantized[:size]
        self.quantized += quantize(self.discriminated[size:])

        self.pack(self.quantized)
        return self.slice(self.search())