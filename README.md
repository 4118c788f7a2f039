# analogtv

Building blocks for generating analogue television signals in Python:
integer FIR and IIR filters, the DANCE digital audio encoder and
modulator, the Eurocrypt control-word cipher and ECM packets, ACP
(analogue copy protection) pulse insertion, raw sample file output and
parsing of transmitter command-line options.

It requires Python 3.10 or later and depends on numpy.

## Modules

| Module | Contents |
| --- | --- |
| `analogtv.common` | `gcd`, the complex oscillator table `sin_cint16`, and the fixed-point complex products `cint16_mul` (Q15) and `cint32_mul` (Q31) |
| `analogtv.fir` | Kaiser-windowed filter design (`fir_low_pass`, `fir_band_reject`, `fir_complex_band_pass`, `fir_int16_complex_band_pass`); polyphase filters `FirInt16` (with `process`, `process_block` and the `resampler` constructor), `FirInt16Complex`, `FirInt16SComplex`, `FirInt32`; and the first-order filter `IirInt16` |
| `analogtv.dance` | `ChannelMode`, `DanceEncoder` (`encode_frame_a`, `encode_frame_b`) and `DanceModulator` (`input`, `output`) |
| `analogtv.eurocrypt` | `EurocryptVariant`, `EurocryptMode`, the mode table `MODES`, `find_mode`, `eurocrypt_cipher`, `ecm_hash`, `build_ecm_payload` and `ControlWords` |
| `analogtv.acp` | `AcpEncoder`, P-Sync / AGC pulse pairs for 525 and 625 line video |
| `analogtv.filesink` | `SampleType`, `convert_samples` and `FileSink` |
| `analogtv.options` | `Options`, `parse_args`, `parse_output`, `parse_file_type` and `OptionsError` |

## Examples

Design a low-pass filter and resample by 4/3:

```python
from analogtv.fir import FirInt16, fir_low_pass

taps = fir_low_pass(51, 48000.0, 15000.0, 1000.0, 1.0)
resampler = FirInt16.resampler(4, 3)
out = resampler.process([0, 1000, 2000, 1000, 0, -1000])
```

Build an oscillator table covering whole cycles:

```python
from analogtv.common import gcd, sin_cint16

step = gcd(16000000, 6000000)
table = sin_cint16(16000000 // step, 6000000 // step, 1.0)  # shape (n, 2): I, Q
```

Encode DANCE frames. Mode A takes four channels of 32 samples (or
`None` for silence); mode B takes two channels of 48 samples. Each call
returns a scrambled 256-byte frame.

```python
from analogtv.dance import DanceEncoder, DanceModulator

encoder = DanceEncoder()
frame = encoder.encode_frame_b([0] * 48, [0] * 48)

modulator = DanceModulator(20250000, 7020000, 0.5, 1.0)
modulator.input([0] * 96)          # interleaved stereo, 48 pairs
iq = modulator.output(1000)        # numpy int16 array, shape (1000, 2)
```

Work with Eurocrypt control words and ECM packets:

```python
import random
from analogtv.eurocrypt import ControlWords, build_ecm_payload, find_mode

mode = find_mode("filmnet")
words = ControlWords(mode, random.Random(1))
cw = words.update(0)                       # active word as an integer
packet = build_ecm_payload(mode, words.ecw, 0)
```

`find_mode` raises `ValueError` for an unknown name, and
`build_ecm_payload` raises `ValueError` if the packet would exceed 45
bytes. The packet is returned before any error-correction coding.

Insert copy protection pulses into a line of interleaved I/Q samples:

```python
from analogtv.acp import AcpEncoder

acp = AcpEncoder(625, 13500000, -10000, 10000, lambda grey: grey * 40)
line = [0] * (864 * 2)
taken = acp.render_line(10, 0, line, False)
```

Write samples to a file as unsigned 8-bit values; `"-"` writes to
standard output:

```python
import numpy as np
from analogtv.filesink import FileSink, SampleType

with FileSink("out.bin", SampleType.UINT8, complex_output=True) as sink:
    sink.write(np.zeros((1024, 2), dtype=np.int16))
```

Parse transmitter options (without the program name):

```python
from analogtv.options import OptionsError, parse_args

try:
    options = parse_args(["-m", "pal", "-o", "file:out.bin", "-t", "uint8", "test:colourbars"])
except OptionsError as exc:
    print(exc)
```

`parse_args` raises `OptionsError` when no input is given or the file
type is unknown. An unrecognised option returns `Options` with
`show_usage` set. The `soapysdr` and `fl2k` output prefixes are
rejected with `OptionsError`; an unknown prefix is taken as a file name.

## What this package does not do

There is no command to run. `parse_args` only collects settings; nothing
in the package builds a complete video signal from them. It has no
raster or MAC video encoder, no teletext, WSS or scrambling of the
picture, no decoding of media files, no audio soft limiter, no usage
text, and no output to radio hardware. The only sink is `FileSink`.

## Tests

The test suite uses pytest, which the `test` extra installs:

```
pip install -e .[test]
pytest
```