import random
from datetime import timedelta

import pytest

from davisrx.dsp import Packet
from davisrx.protocol import (
    CHANNELS,
    HOP_PATTERN,
    Hop,
    Message,
    Parser,
    Sensor,
    davis_packet_config,
    swap_bit_order,
)


def _parser(station_id=0, seed=1):
    return Parser(14, station_id, rng=random.Random(seed))


def _over_the_air(parser, payload):
    """Build a packet whose payload carries a valid CRC, in over-the-air bit order."""
    crc = parser.checksum(payload)
    logical = bytes([0xCB, 0x89]) + payload + crc.to_bytes(2, "big")
    return Packet(0, bytes(swap_bit_order(b) for b in logical))


def test_swap_bit_order_pinned():
    assert swap_bit_order(0x01) == 0x80
    assert swap_bit_order(0xF0) == 0x0F


@pytest.mark.parametrize("value", range(256))
def test_swap_bit_order_involution(value):
    assert swap_bit_order(swap_bit_order(value)) == value


def test_packet_config():
    cfg = davis_packet_config(14)
    assert cfg.bit_rate == 19200
    assert cfg.symbol_length == 14
    assert cfg.packet_symbols == 80
    assert cfg.preamble == "1100101110001001"
    assert cfg.sample_rate == cfg.bit_rate * cfg.symbol_length


def test_sensor_labels():
    assert str(Sensor.SUPERCAP_VOLTAGE) == "SuperCap Voltage"
    assert str(Sensor(0xA)) == "Humidity"
    assert str(Sensor(0xE)) == "Rain"
    assert str(Sensor(3)) == "Unknown(0x3)"
    assert int(Sensor(3)) == 3


def test_hop_str():
    hop = Hop(4, 868000000, -120)
    assert str(hop) == "{ChannelIdx: 4 ChannelFreq:868000000 FreqError:-120}"


def test_message_from_packet():
    msg = Message.from_packet(Packet(7, bytes([0xAA, 0xBB, 0x82, 0x05, 0x40, 0x11])))
    assert msg.idx == 7
    assert msg.data == bytes([0x82, 0x05, 0x40, 0x11])
    assert msg.id == 2
    assert msg.sensor is Sensor.TEMPERATURE
    assert msg.wind_speed == 5
    assert msg.wind_direction == 0x40
    assert str(msg) == "{ID:2 Sensor:Temperature WindSpeed:5 WindDir:64}"


def test_message_from_short_packet():
    with pytest.raises(ValueError):
        Message.from_packet(Packet(0, bytes([1, 2, 3])))


def test_dwell_time():
    assert _parser(0).dwell_time == timedelta(microseconds=60000)
    assert _parser(3).dwell_time - _parser(2).dwell_time == timedelta(microseconds=62500)


def test_next_hop_follows_pattern():
    parser = _parser()
    start = parser.hop_index
    hops = [parser.next_hop() for _ in range(len(HOP_PATTERN))]
    assert [h.channel_idx for h in hops] == [
        HOP_PATTERN[(start + k) % len(HOP_PATTERN)] for k in range(1, len(HOP_PATTERN) + 1)
    ]
    assert all(h.channel_freq == CHANNELS[h.channel_idx] for h in hops)
    assert parser.hop_index == start


def test_rand_hop_stays_in_pattern():
    parser = _parser(seed=5)
    for _ in range(50):
        hop = parser.rand_hop()
        assert hop.channel_idx == HOP_PATTERN[parser.hop_index]
        assert hop.channel_freq == CHANNELS[hop.channel_idx]
        assert hop.freq_error == 0


def test_checksum_of_valid_frame_is_zero():
    parser = _parser()
    payload = bytes([0x82, 0x05, 0x40, 0x11, 0x22, 0x33])
    crc = parser.checksum(payload)
    assert parser.checksum(payload + crc.to_bytes(2, "big")) == 0


def test_parse_valid_packet_and_frequency_error():
    parser = _parser()
    packet = _over_the_air(parser, bytes([0x82, 0x05, 0x40, 0x11, 0x22, 0x33]))
    messages = parser.parse([packet, packet])
    assert len(messages) == 1
    msg = messages[0]
    assert msg.id == 2
    assert msg.sensor is Sensor.TEMPERATURE
    assert msg.wind_speed == 5
    assert msg.data[:6] == bytes([0x82, 0x05, 0x40, 0x11, 0x22, 0x33])

    # Fresh demodulator history is all zero, so only the fixed 9600 Hz offset remains.
    assert parser.current_freq_error == -9600
    channel = HOP_PATTERN[parser.hop_index]
    assert parser.frequency_errors == {channel: -9600}
    assert parser.next_hop().freq_error == -9600


def test_parse_rejects_bad_checksum():
    parser = _parser()
    packet = _over_the_air(parser, bytes([0x82, 0x05, 0x40, 0x11, 0x22, 0x33]))
    corrupted = Packet(0, packet.data[:-1] + bytes([packet.data[-1] ^ 0x01]))
    assert parser.parse([corrupted]) == []
    assert parser.frequency_errors == {}


def test_demodulate_rejects_wrong_block_size():
    parser = _parser()
    with pytest.raises(ValueError):
        parser.demodulate(bytes(10))