"""Davis Instruments ISS packet format, frequency hopping and message decoding."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import timedelta
from enum import IntEnum

from .crc import CRC
from .dsp import Demodulator, Packet, PacketConfig

CHANNELS = (
    867500000, 867625000, 867750000, 867875000,
    868000000, 868125000, 868250000, 868375000, 868500000,
)
HOP_PATTERN = (0, 4, 8, 1, 5, 3, 6, 2, 7)


def davis_packet_config(symbol_length: int) -> PacketConfig:
    """Return the packet configuration used by Davis transmitters.

    The format fixes the symbol length at 14 samples regardless of the
    argument.
    """
    return PacketConfig(19200, 14, 16, 80, "1100101110001001")


def swap_bit_order(b: int) -> int:
    """Reverse the order of the bits in a byte."""
    b &= 0xFF
    b = ((b & 0xF0) >> 4) | ((b & 0x0F) << 4)
    b = ((b & 0xCC) >> 2) | ((b & 0x33) << 2)
    b = ((b & 0xAA) >> 1) | ((b & 0x55) << 1)
    return b


@dataclass(frozen=True)
class Hop:
    """A channel to tune to and the frequency correction to apply."""

    channel_idx: int
    channel_freq: int
    freq_error: int

    def __str__(self) -> str:
        return (
            f"{{ChannelIdx:{self.channel_idx:2d} "
            f"ChannelFreq:{self.channel_freq} FreqError:{self.freq_error}}}"
        )


class Sensor(IntEnum):
    """Kind of reading carried in the upper nibble of a message's first byte."""

    SUPERCAP_VOLTAGE = 2
    UV_INDEX = 4
    RAIN_RATE = 5
    SOLAR_RADIATION = 6
    LIGHT = 7
    TEMPERATURE = 8
    WIND_GUST_SPEED = 9
    HUMIDITY = 0xA
    RAIN = 0xE

    @classmethod
    def _missing_(cls, value: object) -> Sensor | None:
        if isinstance(value, int) and 0 <= value <= 0xFF:
            member = int.__new__(cls, value)
            member._name_ = f"UNKNOWN_{value:02X}"
            member._value_ = value
            return member
        return None

    def __str__(self) -> str:
        label = _SENSOR_LABELS.get(self.value)
        return label if label is not None else f"Unknown(0x{self.value:X})"


_SENSOR_LABELS = {
    2: "SuperCap Voltage",
    4: "UV Index",
    5: "Rain Rate",
    6: "Solar Radiation",
    7: "Light",
    8: "Temperature",
    9: "Wind Gust Speed",
    0xA: "Humidity",
    0xE: "Rain",
}


@dataclass(frozen=True)
class Message:
    """A decoded, checksum-verified message from a transmitter."""

    idx: int
    data: bytes
    id: int
    sensor: Sensor
    wind_speed: int
    wind_direction: int

    @staticmethod
    def from_packet(packet: Packet) -> Message:
        """Decode a bit-order-corrected packet, dropping its two leading bytes."""
        data = bytes(packet.data[2:])
        if len(data) < 3:
            raise ValueError(f"packet too short for a message: {len(packet.data)} bytes")
        return Message(
            idx=packet.idx,
            data=data,
            id=data[0] & 0xF,
            sensor=Sensor(data[0] >> 4),
            wind_speed=data[1],
            wind_direction=data[2],
        )

    def __str__(self) -> str:
        return (
            f"{{ID:{self.id} Sensor:{self.sensor} "
            f"WindSpeed:{self.wind_speed} WindDir:{self.wind_direction}}}"
        )


class Parser:
    """Demodulates, validates and decodes packets and tracks the hop sequence."""

    def __init__(
        self,
        symbol_length: int = 14,
        station_id: int = 0,
        rng: random.Random | None = None,
    ) -> None:
        self.cfg = davis_packet_config(symbol_length)
        self.demodulator = Demodulator(self.cfg)
        self.crc = CRC("CCITT-16", 0, 0x1021, 0)
        self.station_id = station_id
        self.dwell_time = timedelta(microseconds=60000 + station_id * 62500)

        self.channels = CHANNELS
        self.hop_pattern = HOP_PATTERN
        self._rng = rng if rng is not None else random.Random()
        self._hop_idx = self._rng.randrange(len(self.channels))
        self._current_freq_err = 0
        self._channel_freq_err: dict[int, int] = {}

    @property
    def hop_index(self) -> int:
        """Current position within the hop pattern."""
        return self._hop_idx

    @property
    def current_freq_error(self) -> int:
        """Frequency correction in effect for the current channel, in Hz."""
        return self._current_freq_err

    @property
    def frequency_errors(self) -> dict[int, int]:
        """Measured frequency error per channel index, in Hz."""
        return dict(self._channel_freq_err)

    def demodulate(self, block: bytes) -> list[Packet]:
        """Feed one block of I/Q bytes to the demodulator."""
        return self.demodulator.demodulate(block)

    def checksum(self, data: bytes) -> int:
        """Return the CRC of ``data``; zero when trailing CRC bytes are valid."""
        return self.crc.checksum(data)

    def _hop(self) -> Hop:
        channel_idx = self.hop_pattern[self._hop_idx]
        # A revisited channel reuses its own correction; otherwise keep the last one.
        if channel_idx in self._channel_freq_err:
            self._current_freq_err = self._channel_freq_err[channel_idx]
        return Hop(channel_idx, self.channels[channel_idx], self._current_freq_err)

    def next_hop(self) -> Hop:
        """Advance to the next channel of the pattern."""
        self._hop_idx = (self._hop_idx + 1) % len(self.channels)
        return self._hop()

    def rand_hop(self) -> Hop:
        """Jump to a random position in the pattern."""
        self._hop_idx = self._rng.randrange(len(self.channels))
        return self._hop()

    def parse(self, packets: list[Packet]) -> list[Message]:
        """Validate packets, drop duplicates and decode them into messages."""
        seen: set[bytes] = set()
        messages = []
        step = self.cfg.symbol_length
        for packet in packets:
            # Bits arrive least significant first.
            data = bytes(swap_bit_order(b) for b in packet.data)
            if data in seen:
                continue
            seen.add(data)

            if self.checksum(data[2:]) != 0:
                continue

            # The tail is a run of zero symbols; its mean phase step gives the offset.
            tail = self.demodulator.discriminated[packet.idx + 8 * step : packet.idx + 24 * step]
            if not tail:
                raise ValueError(f"no samples behind packet at index {packet.idx}")
            mean = sum(tail) / len(tail)
            freq_error = -int(9600 + (mean * self.cfg.sample_rate) / (2 * math.pi))

            channel_idx = self.hop_pattern[self._hop_idx]
            self._channel_freq_err[channel_idx] = self._current_freq_err + freq_error
            self._current_freq_err += freq_error

            messages.append(Message.from_packet(Packet(packet.idx, data)))
        return messages