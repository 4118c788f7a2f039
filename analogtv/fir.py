"""FIR filter design, fixed-point polyphase FIR filters and a first-order IIR filter."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator, Sequence

import numpy as np

from .common import _wrap, gcd

_INT16_MIN, _INT16_MAX = -(1 << 15), (1 << 15) - 1
_INT32_MIN, _INT32_MAX = -(1 << 31), (1 << 31) - 1

_KAISER_BETA = 7.0


def _wrap_array(values: np.ndarray, bits: int) -> np.ndarray:
    half = 1 << (bits - 1)
    return ((values + half) & ((1 << bits) - 1)) - half


def _lround(values, bits: int) -> np.ndarray:
    """Round half away from zero and wrap into a signed ``bits`` wide integer."""
    v = np.asarray(values, dtype=np.float64)
    r = np.where(v >= 0, np.floor(v + 0.5), -np.floor(-v + 0.5)).astype(np.int64)
    return _wrap_array(r, bits)


def _clip(value: int, low: int, high: int) -> int:
    return low if value < low else high if value > high else value


def _i_zero(x: float) -> float:
    """Modified Bessel function of the first kind, order zero."""
    total = u = 1.0
    n = 1
    halfx = x / 2.0
    while True:
        temp = halfx / n
        n += 1
        temp *= temp
        u *= temp
        total += u
        if u < 1e-21 * total:
            return total


def _kaiser(ntaps: int, beta: float) -> np.ndarray:
    i_beta = 1.0 / _i_zero(beta)
    taps = np.empty(ntaps, dtype=np.float64)
    taps[0] = i_beta
    if ntaps > 1:
        inm1 = 1.0 / (ntaps - 1)
        for i in range(1, ntaps - 1):
            temp = 2 * i * inm1 - 1
            taps[i] = _i_zero(beta * math.sqrt(1.0 - temp * temp)) * i_beta
        taps[ntaps - 1] = i_beta
    return taps


def _windowed(ntaps: int, gain: float, response: Callable[[int], float]) -> np.ndarray:
    """Kaiser-windowed symmetric filter, normalised to ``gain`` at zero frequency.

    An even ``ntaps`` designs over one tap fewer and leaves the last tap zero.
    """
    if ntaps < 1:
        raise ValueError("a filter needs at least one tap")
    odd = ntaps if ntaps & 1 else ntaps - 1
    result = np.zeros(ntaps, dtype=np.float64)
    if odd < 1:
        return result

    taps = _kaiser(odd, _KAISER_BETA)
    m = (odd - 1) // 2
    for n in range(-m, m + 1):
        taps[n + m] *= response(n)

    fmax = taps[m] + 2 * taps[m + 1:].sum()
    taps *= gain / fmax
    result[:odd] = taps
    return result


def fir_low_pass(ntaps, sample_rate, cutoff, width, gain) -> np.ndarray:
    """Design a low-pass filter with unity-times-``gain`` response at DC."""
    fw = 2.0 * math.pi * cutoff / sample_rate

    def response(n: int) -> float:
        return fw / math.pi if n == 0 else math.sin(n * fw) / (n * math.pi)

    return _windowed(ntaps, gain, response)


def fir_band_reject(ntaps, sample_rate, low_cutoff, high_cutoff, width, gain) -> np.ndarray:
    """Design a band-reject filter with unity-times-``gain`` response at DC."""
    fw0 = 2.0 * math.pi * low_cutoff / sample_rate
    fw1 = 2.0 * math.pi * high_cutoff / sample_rate

    def response(n: int) -> float:
        if n == 0:
            return 1.0 + (fw0 - fw1) / math.pi
        return (math.sin(n * fw0) - math.sin(n * fw1)) / (n * math.pi)

    return _windowed(ntaps, gain, response)


def fir_complex_band_pass(ntaps, sample_rate, low_cutoff, high_cutoff, width, gain) -> np.ndarray:
    """Design a complex band-pass filter; returns ``(ntaps, 2)`` real/imaginary taps."""
    lptaps = fir_low_pass(ntaps, sample_rate, (high_cutoff - low_cutoff) / 2, width, gain)
    freq = math.pi * (high_cutoff + low_cutoff) / sample_rate

    if ntaps & 1:
        phase = -freq * (ntaps >> 1)
    else:
        phase = -freq / 2.0 * ((1 + 2 * ntaps) >> 1)

    taps = np.empty((ntaps, 2), dtype=np.float64)
    for i, tap in enumerate(lptaps):
        taps[i, 0] = tap * math.cos(phase)
        taps[i, 1] = tap * math.sin(phase)
        phase += freq
    return taps


def fir_int16_complex_band_pass(ntaps, sample_rate, low_cutoff, high_cutoff, width, gain) -> np.ndarray:
    """Complex band-pass taps scaled to Q15 integers, shape ``(ntaps, 2)``."""
    taps = fir_complex_band_pass(ntaps, sample_rate, low_cutoff, high_cutoff, width, gain)
    return _lround(taps * 32767.0, 16).astype(np.int16)


def _as_ints(samples, bits: int) -> np.ndarray:
    data = np.asarray(samples)
    if data.ndim != 1:
        raise ValueError("expected a one-dimensional sequence of samples")
    return _wrap_array(data.astype(np.int64), bits)


def _as_pairs(samples, bits: int) -> np.ndarray:
    data = np.asarray(samples).astype(np.int64).reshape(-1, 2)
    return _wrap_array(data, bits)


class _Polyphase:
    """State shared by the polyphase filters: tap ordering and the input window."""

    def __init__(self, ntaps_in: int, interpolation: int, decimation: int, delay: int, pair: bool):
        if ntaps_in < 1:
            raise ValueError("a filter needs at least one tap")
        if interpolation < 1 or decimation < 1:
            raise ValueError("interpolation and decimation must be positive")
        if delay < 0:
            raise ValueError("delay must not be negative")

        self.interpolation = interpolation
        self.decimation = decimation
        self.ntaps = ntaps_in + (-ntaps_in % interpolation)
        self.ataps = self.ntaps // interpolation

        # Destination slot for each source tap, in the order they are applied
        self._order: list[tuple[int, int]] = []
        j = self.ntaps - self.ataps
        for i in range(ntaps_in - 1, -1, -1):
            self._order.append((j, i))
            j -= self.ataps
            if j < 0:
                j += self.ntaps + 1

        self._lwin = self.ataps + delay
        shape = (self.ataps * 2 + delay, 2) if pair else (self.ataps * 2 + delay,)
        self._win = np.zeros(shape, dtype=np.int64)
        self._owin = 0
        self._d = 0

    def _push(self, value) -> None:
        self._win[self._owin] = value
        if self._owin < self.ataps:
            self._win[self._owin + self._lwin] = value
        self._owin += 1
        if self._owin == self._lwin:
            self._owin = 0

    def _phases(self) -> Iterator[int]:
        """Yield the tap offset of every output due for the latest input."""
        while self._d < self.interpolation:
            yield self._d * self.ataps
            self._d += self.decimation
        self._d -= self.interpolation

    def _window(self) -> np.ndarray:
        return self._win[self._owin:self._owin + self.ataps]


class FirInt16(_Polyphase):
    """Real int16 polyphase FIR filter with rational resampling."""

    def __init__(self, taps, interpolation=1, decimation=1, delay=0):
        source = np.asarray(taps, dtype=np.float64).reshape(-1)
        super().__init__(len(source), interpolation, decimation, delay, pair=False)
        scaled = _lround(source * 32767.0, 16)
        self._itaps = np.zeros(self.ntaps, dtype=np.int64)
        for j, i in self._order:
            self._itaps[j] = scaled[i]

    @classmethod
    def resampler(cls, interpolation, decimation):
        """Build a low-pass rational resampler by ``interpolation / decimation``."""
        if interpolation < 1 or decimation < 1:
            raise ValueError("interpolation and decimation must be positive")
        d = gcd(interpolation, decimation)
        interpolation //= d
        decimation //= d

        ntaps = 21 * interpolation
        ntaps += -ntaps % interpolation
        if ntaps & 1 == 0:
            ntaps -= 1

        if interpolation > decimation:
            taps = fir_low_pass(ntaps, interpolation, 0.45, 0.1, interpolation)
        else:
            ratio = interpolation / decimation
            taps = fir_low_pass(ntaps, interpolation, 0.45 * ratio, 0.1 * ratio, interpolation)

        return cls(taps, interpolation, decimation, 0)

    def process(self, samples) -> np.ndarray:
        """Filter a block of samples, returning the int16 outputs produced."""
        out = []
        for value in _as_ints(samples, 16):
            self._push(value)
            window = self._window()
            for off in self._phases():
                acc = _wrap(int(np.dot(window, self._itaps[off:off + self.ataps])), 32)
                out.append(_clip(acc >> 15, _INT16_MIN, _INT16_MAX))
        return np.array(out, dtype=np.int16)

    def process_block(self, samples) -> np.ndarray:
        """Filter a self-contained block.

        The window is cleared and primed with the first ``ataps // 2``
        samples, which centres the response; the remaining samples are
        then filtered.
        """
        data = _as_ints(samples, 16)
        prime = self.ataps // 2
        if len(data) < prime:
            raise ValueError(f"block needs at least {prime} samples")

        self._win[:] = 0
        for k in range(prime):
            self._win[k] = data[k]
            self._win[k + self._lwin] = data[k]
        self._owin = prime

        return self.process(data[prime:])


class FirInt16Complex(_Polyphase):
    """Complex int16 polyphase FIR filter: complex taps on complex samples."""

    def __init__(self, taps, interpolation=1, decimation=1, delay=0):
        source = np.asarray(taps, dtype=np.float64).reshape(-1, 2)
        super().__init__(len(source), interpolation, decimation, delay, pair=True)
        re = _lround(source[:, 0] * 32767.0, 16)
        im = _lround(source[:, 1] * 32767.0, 16)
        neg_im = _lround(-source[:, 1] * 32767.0, 16)
        self._itaps = np.zeros(self.ntaps * 2, dtype=np.int64)
        self._qtaps = np.zeros(self.ntaps * 2, dtype=np.int64)
        for j, i in self._order:
            self._itaps[j * 2] = re[i]
            self._itaps[j * 2 + 1] = neg_im[i]
            self._qtaps[j * 2] = im[i]
            self._qtaps[j * 2 + 1] = re[i]

    def process(self, samples) -> np.ndarray:
        """Filter ``(n, 2)`` I/Q samples, returning ``(m, 2)`` int16 outputs."""
        out = []
        for pair in _as_pairs(samples, 16):
            self._push(pair)
            window = self._window()
            wi, wq = window[:, 0], window[:, 1]
            for off in self._phases():
                ai = _wrap(int(np.dot(wi, self._itaps[off:off + self.ataps])), 32)
                aq = _wrap(int(np.dot(wq, self._qtaps[off:off + self.ataps])), 32)
                out.append((
                    _clip(ai >> 15, _INT16_MIN, _INT16_MAX),
                    _clip(aq >> 15, _INT16_MIN, _INT16_MAX),
                ))
        return np.array(out, dtype=np.int16).reshape(-1, 2)


class FirInt16SComplex(_Polyphase):
    """Complex-tap int16 polyphase FIR filter on real samples."""

    def __init__(self, taps, interpolation=1, decimation=1, delay=0):
        source = np.asarray(taps, dtype=np.float64).reshape(-1, 2)
        super().__init__(len(source), interpolation, decimation, delay, pair=False)
        re = _lround(source[:, 0] * 32767.0, 16)
        im = _lround(source[:, 1] * 32767.0, 16)
        self._itaps = np.zeros(self.ntaps, dtype=np.int64)
        self._qtaps = np.zeros(self.ntaps, dtype=np.int64)
        for j, i in self._order:
            self._itaps[j] = re[i]
            self._qtaps[j] = im[i]

    def process(self, samples) -> np.ndarray:
        """Filter real samples, returning ``(m, 2)`` int16 I/Q outputs."""
        out = []
        for value in _as_ints(samples, 16):
            self._push(value)
            window = self._window()
            for off in self._phases():
                ai = _wrap(int(np.dot(window, self._itaps[off:off + self.ataps])), 32)
                aq = _wrap(int(np.dot(window, self._qtaps[off:off + self.ataps])), 32)
                out.append((
                    _clip(ai >> 15, _INT16_MIN, _INT16_MAX),
                    _clip(aq >> 15, _INT16_MIN, _INT16_MAX),
                ))
        return np.array(out, dtype=np.int16).reshape(-1, 2)


class FirInt32(_Polyphase):
    """Real int32 polyphase FIR filter with a 64-bit accumulator."""

    def __init__(self, taps, interpolation=1, decimation=1, delay=0):
        source = np.asarray(taps, dtype=np.float64).reshape(-1)
        super().__init__(len(source), interpolation, decimation, delay, pair=False)
        scaled = _lround(source * 32767.0, 32)
        self._itaps = np.zeros(self.ntaps, dtype=np.int64)
        for j, i in self._order:
            self._itaps[j] = scaled[i]

    def process(self, samples) -> np.ndarray:
        """Filter a block of samples, returning the int32 outputs produced."""
        out = []
        for value in _as_ints(samples, 32):
            self._push(value)
            window = self._window()
            for off in self._phases():
                acc = int(np.dot(window, self._itaps[off:off + self.ataps]))
                out.append(_clip(acc >> 15, _INT32_MIN, _INT32_MAX))
        return np.array(out, dtype=np.int32)


class IirInt16:
    """First-order IIR filter on int16 samples: y = b0*x + b1*x[-1] - a1*y[-1]."""

    def __init__(self, a: Sequence[float], b: Sequence[float]):
        if len(a) != 2 or len(b) != 2:
            raise ValueError("a and b must each hold two coefficients")
        self.a = (float(a[0]), float(a[1]))
        self.b = (float(b[0]), float(b[1]))
        self._ix = 0.0
        self._iy = 0.0

    def process(self, samples) -> np.ndarray:
        """Filter a block of samples, returning int16 outputs of the same length."""
        out = []
        for value in _as_ints(samples, 16):
            x = float(value)
            self._iy = x * self.b[0] + self._ix * self.b[1] - self._iy * self.a[1]
            self._ix = x
            y = min(max(self._iy, _INT16_MIN), _INT16_MAX)
            out.append(int(_lround(y, 16)))
        return np.array(out, dtype=np.int16)