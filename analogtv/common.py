"""Shared numeric helpers: integer GCD, sine tables and fixed-point complex products."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

INT16_MAX = 32767
INT32_MAX = 2**31 - 1


def _wrap(value: int, bits: int) -> int:
    """Wrap an integer into a signed two's-complement range of ``bits`` bits."""
    half = 1 << (bits - 1)
    return ((value + half) & ((1 << bits) - 1)) - half


def _round_half_away(x: float) -> int:
    """Round to nearest integer, halfway cases away from zero."""
    if x >= 0:
        return int(math.floor(x + 0.5))
    return -int(math.floor(-x + 0.5))


def _truncating_mod(a: int, b: int) -> int:
    """Remainder whose sign follows the dividend."""
    r = abs(a) % abs(b)
    return -r if a < 0 else r


def gcd(a: int, b: int) -> int:
    """Greatest common divisor by Euclid's algorithm."""
    while c := _truncating_mod(a, b):
        a, b = b, c
    return b


def sin_cint16(length: int, cycles: int, level: float) -> np.ndarray:
    """Return ``length`` complex int16 samples of a rotating phasor.

    The result has shape ``(length, 2)`` holding I (cosine) and Q (sine)
    values, completing ``cycles`` whole turns over the table.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    d = 2.0 * math.pi / length * cycles
    table = np.empty((length, 2), dtype=np.int16)
    for n in range(length):
        table[n, 0] = _wrap(_round_half_away(math.cos(d * n) * level * INT16_MAX), 16)
        table[n, 1] = _wrap(_round_half_away(math.sin(d * n) * level * INT16_MAX), 16)
    return table


def cint16_mul(a: Sequence[int], b: Sequence[int]) -> tuple[int, int]:
    """Multiply two Q15 complex values, returning a wrapped int16 pair."""
    ai, aq = int(a[0]), int(a[1])
    bi, bq = int(b[0]), int(b[1])
    i = ai * bi - aq * bq
    q = ai * bq + aq * bi
    return _wrap(i >> 15, 16), _wrap(q >> 15, 16)


def cint32_mul(a: Sequence[int], b: Sequence[int]) -> tuple[int, int]:
    """Multiply two Q31 complex values, returning a wrapped int32 pair."""
    ai, aq = int(a[0]), int(a[1])
    bi, bq = int(b[0]), int(b[1])
    i = ai * bi - aq * bq
    q = ai * bq + aq * bi
    return _wrap(i >> 31, 32), _wrap(q >> 31, 32)