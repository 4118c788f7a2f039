"""DANCE digital audio encoder and QPSK modulator."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from .common import _round_half_away, _wrap, cint16_mul, gcd, sin_cint16

BIT_RATE = 2048000
SYMBOL_RATE = BIT_RATE // 2

MODE_A = 0x00  # 4x 32kHz 14/10-bit companded channels
MODE_B = 0x01  # 2x 48kHz 16-bit linear channels

A_AUDIO_RATE = 32000
B_AUDIO_RATE = 48000

FRAME_BITS = 2048
FRAME_BYTES = FRAME_BITS // 8
FRAME_SYMS = FRAME_BITS // 2

A_AUDIO_LEN = A_AUDIO_RATE // 1000
B_AUDIO_LEN = B_AUDIO_RATE // 1000
AUDIO_LEN = B_AUDIO_LEN


class ChannelMode(IntEnum):
    """Channel pair configuration signalled in the frame header."""

    STEREO = 0x00
    TWO_MONO = 0x01
    ONE_MONO = 0x02
    NONE = 0x03


# 50/10 us pre-emphasis filter taps, 32 kHz sample rate
_A_TAPS = (
    1, -1, 1, -1, 1, -1, 1, -1, 1, -1, 1, -1, 1, -1, 1, -1, 2, -2, 2, -2, 2,
    -3, 3, -3, 4, -5, 5, -6, 7, -10, 10, -19, 11, -55, -24, -298, -635,
    -4106, 20126, -4106, -635, -298, -24, -55, 11, -19, 10, -10, 7, -6, 5,
    -5, 4, -3, 3, -3, 2, -2, 2, -2, 2, -1, 1, -1, 1, -1, 1, -1, 1, -1, 1,
    -1, 1, -1, 1, -1, 1,
)

# 50/10 us pre-emphasis filter taps, 48 kHz sample rate
_B_TAPS = (
    -1, 1, -1, 1, -1, 1, -1, 1, -1, 1, -1, 1, -2, 2, -2, 2, -3, 2, -6, 1,
    -12, -5, -32, -34, -115, -193, -583, -1324, -4359, 23207, -4359, -1324,
    -583, -193, -115, -34, -32, -5, -12, 1, -6, 2, -3, 2, -2, 2, -2, 1, -1,
    1, -1, 1, -1, 1, -1, 1, -1, 1, -1,
)

_MAX_TAPS = len(_A_TAPS)

_STEP = (0, 3, 1, 2)
_SYMS = (0, 1, 3, 2)


@dataclass(frozen=True)
class _Range:
    mask: int
    pattern: int
    shift: int


_RANGES = (
    _Range(0x8000, 0x00, 6),
    _Range(0xC000, 0x9C, 5),
    _Range(0xE000, 0x4E, 4),
    _Range(0xF000, 0xD2, 3),
    _Range(0xF800, 0x3A, 2),
    _Range(0xFC00, 0xA6, 2),
    _Range(0xFE00, 0x74, 2),
    _Range(0xFF00, 0xE8, 2),
)

# Bit offset of the payload, past the 4 header bytes
_BASE = 32


def _make_prn() -> bytes:
    prn = bytearray(FRAME_BYTES)
    poly = 0x3FF
    for x in range(2, FRAME_BYTES):
        value = 0
        for _ in range(8):
            b = poly & 1
            value = ((value << 1) | b) & 0xFF
            b ^= (poly >> 3) & 1
            poly = (poly >> 1) | (b << 9)
        prn[x] = value
    return bytes(prn)


_PRN = _make_prn()


def _get_bit(data: bytearray, offset: int) -> int:
    return (data[offset >> 3] >> (7 - (offset & 7))) & 1


def _set_bit(data: bytearray, offset: int, bit: int) -> None:
    mask = 0x80 >> (offset & 7)
    if bit:
        data[offset >> 3] |= mask
    else:
        data[offset >> 3] &= ~mask & 0xFF


def _bits_lsb(data: bytearray, offset: int, bits: int, nbits: int) -> int:
    """Pack ``nbits`` of ``bits`` least significant first; return the new offset."""
    for k in range(nbits):
        _set_bit(data, offset + k, (bits >> k) & 1)
    return offset + nbits


def _bits_msb(data: bytearray, offset: int, bits: int, nbits: int) -> int:
    """Pack ``nbits`` of ``bits`` most significant first; return the new offset."""
    for k in range(nbits):
        _set_bit(data, offset + k, (bits >> (nbits - 1 - k)) & 1)
    return offset + nbits


def _bch_encode(data: bytearray, offset: int) -> int:
    """Append the 7 BCH(63,56) check bits to the 56 bits at ``offset``."""
    code = 0
    for i in range(offset, offset + 56):
        b = (_get_bit(data, i) ^ code) & 1
        code >>= 1
        if b:
            code ^= 0x51
    return _bits_lsb(data, offset + 56, code, 7)


def _interleave(frame: bytearray) -> None:
    tmp = bytearray(FRAME_BYTES - 4)
    y = 0
    for x in range(FRAME_BITS - 32):
        if _get_bit(frame, _BASE + y):
            tmp[x >> 3] |= 0x80 >> (x & 7)
        y += 63
        if y >= 2016:
            y -= 2015
    frame[4:] = tmp


def _find_range(pcm: Sequence[int]) -> _Range:
    b = 7
    samples = iter(pcm)
    current = next(samples, None)
    while b > 0 and current is not None:
        s = ~current if current < 0 else current
        if s & _RANGES[b].mask:
            b -= 1
        else:
            current = next(samples, None)
    return _RANGES[b]


@dataclass
class _PreEmphasis:
    taps: tuple[int, ...] = _A_TAPS
    p: int = 0
    buf: list[int] = field(default_factory=lambda: [0] * _MAX_TAPS)

    def run(self, src: list[int] | None, length: int) -> list[int]:
        ntaps = len(self.taps)
        out = []
        for k in range(length):
            self.buf[self.p] = src[k] if src is not None else 0
            self.p += 1
            if self.p >= ntaps:
                self.p = 0
            window = self.buf[self.p:ntaps] + self.buf[:self.p]
            acc = sum(v * t for v, t in zip(window, self.taps))
            out.append(_wrap(acc >> 15, 16))
        return out


def _channel(src: Sequence[int] | None, length: int) -> list[int] | None:
    if src is None:
        return None
    samples = [int(v) for v in src[:length]]
    if len(samples) < length:
        raise ValueError(f"need {length} audio samples per frame, got {len(samples)}")
    return samples


class DanceEncoder:
    """Builds scrambled 2048-bit DANCE frames from PCM audio."""

    def __init__(self):
        self.mode_12 = ChannelMode.STEREO
        self.mode_34 = ChannelMode.NONE
        self.frame = 0
        self.prn = _PRN
        self._frames = [bytearray(FRAME_BYTES), bytearray(FRAME_BYTES)]
        self._fir = [_PreEmphasis() for _ in range(4)]

    def _buffers(self) -> tuple[bytearray, bytearray]:
        return self._frames[self.frame & 1], self._frames[(self.frame + 1) & 1]

    @staticmethod
    def _header(f1: bytearray, mode: int, mode_12: int, mode_34: int) -> None:
        f1[0] = 0x13
        f1[1] = 0x5E
        f1[2] = ((mode << 7) | (int(mode_12) << 5) | (int(mode_34) << 3)) & 0xFF
        f1[3] = 0  # unmuted

    def _finish(self, f1: bytearray) -> bytes:
        _interleave(f1)
        frame = bytes(a ^ b for a, b in zip(f1, self.prn))
        self.frame += 1
        return frame

    def encode_frame_a(self, a1, a2, a3, a4) -> bytes:
        """Encode one mode A frame from four channels of 32 samples (or None)."""
        f1, f2 = self._buffers()
        self._header(f1, MODE_A, self.mode_12, self.mode_34)

        audio = []
        ranges = []
        for fir, src in zip(self._fir, (a1, a2, a3, a4)):
            fir.taps = _A_TAPS
            pcm = fir.run(_channel(src, A_AUDIO_LEN), A_AUDIO_LEN)
            audio.append(pcm)
            ranges.append(_find_range(pcm))

        for i in range(32):
            block = _BASE + i * 63
            x = _bits_msb(f1, block, ranges[i >> 3].pattern >> (7 - (i & 7)), 1)
            for pcm, rng in zip(audio, ranges):
                x = _bits_msb(f2, x, pcm[i] >> rng.shift, 10)
            _bits_msb(f2, x, 0, 15)
            _bch_encode(f1, block)

        return self._finish(f1)

    def encode_frame_b(self, a1, a2) -> bytes:
        """Encode one mode B frame from two channels of 48 samples (or None)."""
        f1, f2 = self._buffers()
        self._header(f1, MODE_B, self.mode_12, ChannelMode.NONE)

        audio = []
        ranges = []
        for fir, src in zip(self._fir[:2], (a1, a2)):
            fir.taps = _B_TAPS
            pcm = fir.run(_channel(src, B_AUDIO_LEN), B_AUDIO_LEN)
            audio.append(pcm)
            ranges.append(_find_range(pcm))
        ranges += [_RANGES[0], _RANGES[0]]

        sa = 0
        for i in range(32):
            block = _BASE + i * 63
            x = _bits_msb(f1, block, ranges[i >> 3].pattern >> (7 - (i & 7)), 1)
            for _ in range(3):
                x = _bits_msb(f2, x, audio[sa & 1][sa >> 1], 16)
                sa += 1
            _bits_msb(f2, x, 0, 7)
            _bch_encode(f1, block)

        return self._finish(f1)


def _hamming(x: float) -> float:
    if x < -1 or x > 1:
        return 0.0
    return 0.54 - 0.46 * math.cos(math.pi * (1.0 + x))


def _rrc(x: float, b: float, t: float) -> float:
    if x == 0:
        return (1.0 / t) * (1.0 + b * (4.0 / math.pi - 1))
    if b != 0 and abs(x) == t / (4.0 * b):
        return b / (t * math.sqrt(2.0)) * (
            (1.0 + 2.0 / math.pi) * math.sin(math.pi / (4.0 * b))
            + (1.0 - 2.0 / math.pi) * math.cos(math.pi / (4.0 * b))
        )
    t1 = 4.0 * b * (x / t)
    t2 = math.sin(math.pi * (x / t) * (1.0 - b)) + 4.0 * b * (x / t) * math.cos(
        math.pi * (x / t) * (1.0 + b)
    )
    t3 = math.pi * (x / t) * (1.0 - t1 * t1)
    return (1.0 / t) * (t2 / t3)


class DanceModulator:
    """Differential QPSK modulator producing a DANCE subcarrier at ``frequency``."""

    def __init__(self, sample_rate, frequency, beta, level):
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")
        if frequency <= 0:
            raise ValueError("frequency must be positive")

        sps = sample_rate / SYMBOL_RATE
        ntaps = (int(sps * 5) + 1) | 1
        n = ntaps // 2
        if n == 0:
            raise ValueError("sample rate too low for the DANCE symbol rate")

        self.taps = tuple(
            _wrap(
                _round_half_away(
                    _rrc(x / sps, beta, 1.0) * _hamming(x / n) * math.sqrt(0.5) * 32767 * level
                ),
                16,
            )
            for x in range(-n, n + 1)
        )

        self._bb_i = [0] * ntaps
        self._bb_q = [0] * ntaps
        self._bb_pos = 0
        self._bb_len = 0

        g = gcd(sample_rate, SYMBOL_RATE)
        self._decimation = SYMBOL_RATE // g
        self._sps = (sample_rate + SYMBOL_RATE - 1) // SYMBOL_RATE
        self._dsl = (self._sps * self._decimation) % (sample_rate // g)
        self._ds = 0

        g = gcd(sample_rate, frequency)
        self._cc = [tuple(v) for v in sin_cint16(sample_rate // g, frequency // g, 1.0).tolist()]
        self._cc_pos = 0

        self.encoder = DanceEncoder()
        self._audio = [0] * (AUDIO_LEN * 2)
        self._frame = bytes(FRAME_BYTES)
        self._frame_bit = FRAME_BITS
        self._dsym = 0

    def input(self, audio) -> None:
        """Set the interleaved stereo audio used for the next frames."""
        samples = [int(v) for v in audio[: AUDIO_LEN * 2]]
        if len(samples) < AUDIO_LEN * 2:
            raise ValueError(f"need {AUDIO_LEN * 2} interleaved samples, got {len(samples)}")
        self._audio = samples

    def _next_symbol(self) -> None:
        if self._frame_bit == FRAME_BITS:
            self._frame = self.encoder.encode_frame_a(
                self._audio[0::2], self._audio[1::2], None, None
            )
            self._frame_bit = 0

        fb = self._frame_bit
        self._dsym = (self._dsym + _STEP[(self._frame[fb >> 3] >> (6 - (fb & 7))) & 3]) & 3
        self._frame_bit += 2

        sym = _SYMS[self._dsym]
        ntaps = len(self.taps)
        for k, r in enumerate(self.taps):
            idx = (self._bb_pos + k) % ntaps
            self._bb_i[idx] = _wrap(self._bb_i[idx] + (r if sym & 1 else -r), 16)
            self._bb_q[idx] = _wrap(self._bb_q[idx] + (r if sym & 2 else -r), 16)

        self._bb_len = self._sps
        self._ds += self._dsl
        if self._ds >= self._decimation:
            self._bb_len -= 1
            self._ds -= self._decimation

    def output(self, samples) -> np.ndarray:
        """Return the next ``samples`` complex int16 samples, shape ``(samples, 2)``."""
        if samples < 0:
            raise ValueError("sample count must not be negative")
        out: list[tuple[int, int]] = []
        ntaps = len(self.taps)
        while len(out) < samples:
            while len(out) < samples and self._bb_len:
                p = self._bb_pos
                out.append(cint16_mul((self._bb_i[p], self._bb_q[p]), self._cc[self._cc_pos]))
                self._bb_i[p] = 0
                self._bb_q[p] = 0
                self._bb_pos = (p + 1) % ntaps
                self._cc_pos = (self._cc_pos + 1) % len(self._cc)
                self._bb_len -= 1
            if self._bb_len > 0:
                break
            self._next_symbol()
        return np.array(out, dtype=np.int16).reshape(-1, 2)