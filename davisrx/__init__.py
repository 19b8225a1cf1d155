"""Demodulation, CRC checking and decoding of Davis Instruments weather station radio packets."""

__version__ = "0.1.0"

__all__ = ["crc", "search", "dsp", "protocol"]