# davisrx

`davisrx` turns raw 8-bit I/Q samples into decoded packets from Davis
Instruments weather station transmitters. The samples come from a
software-defined radio. The package holds the whole receive chain:

- sample conversion
- a quarter-sample-rate frequency shift
- a 9-tap low-pass filter
- FM discrimination
- preamble search and packet slicing
- CRC checking
- frequency-hopping bookkeeping

It has no dependencies outside the standard library.

## Installation

```
pip install davisrx
```

To run the test suite:

```
pip install davisrx[test]
pytest
```

## Usage

```python
from davisrx.protocol import Parser

parser = Parser(14, 0)          # symbol length, transmitter id
hop = parser.rand_hop()         # pick a starting channel
print(hop)                      # tune to hop.channel_freq + hop.freq_error

size = parser.cfg.block_size2   # bytes of interleaved I/Q per block (1024)

with open("capture.iq", "rb") as samples:
    while len(block := samples.read(size)) == size:
        for message in parser.parse(parser.demodulate(block)):
            if message.id == 0:
                print(message, message.data.hex().upper())
                hop = parser.next_hop()
```

`Parser.demodulate` needs blocks of exactly `cfg.block_size2` bytes. A block
of any other length raises `ValueError`. The demodulator keeps sample history
between blocks. `parser.demodulator.reset()` clears that history.

### Packet format

`davis_packet_config` returns the fixed Davis format:

- 19200 bit/s
- 14 samples per symbol, which gives a 268800 Hz sample rate
- a 16-symbol preamble `1100101110001001`
- 80-symbol packets

Its argument does not change the symbol length. `PacketConfig.log()` writes
these parameters to the `davisrx.dsp` logger at INFO level.

### Hopping

Davis transmitters hop through a fixed pattern over nine channels, from
867.5 MHz to 868.5 MHz.

- `Parser.next_hop()` moves to the next channel in the pattern.
- `Parser.rand_hop()` jumps to a random position in the pattern. You can pass
  a `random.Random` as `rng` to the `Parser` to make this repeatable.

Each returned `Hop` carries `channel_idx`, `channel_freq` and `freq_error`.
Every valid packet gives a new frequency-error estimate, taken from the
packet's tail. A channel that has been visited before reuses its own estimate.
Other channels keep the current one.

`Parser.dwell_time` is a `timedelta` of 60 ms plus 62.5 ms per transmitter id.
The parser also has three read-only properties:

- `hop_index`
- `current_freq_error`
- `frequency_errors`, which gives one estimate per channel

### Messages

`Parser.parse` takes the packets from `demodulate` and does the following:

1. It reverses the bit order of each byte.
2. It drops duplicates.
3. It drops packets that fail the CCITT-16 check (CRC of the payload after
   the first two bytes must be zero).
4. It returns `Message` objects.

Each `Message` has these fields:

- `id`: the transmitter id (low nibble of the first payload byte).
- `sensor`: a `Sensor` value (high nibble), for example `Sensor.TEMPERATURE`
  or `Sensor.HUMIDITY`. Unrecognised values become `UNKNOWN_xx` members.
- `wind_speed` and `wind_direction`.
- `data`: the payload bytes.
- `idx`: the position of the packet in the demodulator's buffer.

`Message.from_packet` decodes a single packet whose bit order has already
been corrected. `swap_bit_order` reverses the bits of one byte.

### Building blocks

You can use the lower layers on their own:

- `davisrx.crc`: a table-driven CRC-16, made up of `CRC`, `make_table` and
  `checksum`.
- `davisrx.search`: a Boyer–Moore finder for byte patterns, made up of
  `ByteFinder` and `longest_common_suffix`.
- `davisrx.dsp`: the demodulation stages and the types that carry them:
  - the stages `ByteToComplexLUT`, `rotate_fs4`, `fir9`, `discriminate` and
    `quantize`
  - the types `Packet`, `PacketConfig` and `Demodulator`

## What it does not do

`davisrx` does not open or tune a radio, and it does not time channel dwells.
It provides no command-line program. Reading samples, retuning on each hop and
deciding when a packet has been missed are up to the calling code.