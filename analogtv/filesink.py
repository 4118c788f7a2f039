"""Raw sample file output in a choice of integer and float formats."""

from __future__ import annotations

import sys
from enum import IntEnum

import numpy as np


class SampleType(IntEnum):
    """Data type of each value written to the output file."""

    UINT8 = 0
    INT8 = 1
    UINT16 = 2
    INT16 = 3
    INT32 = 4
    FLOAT = 5  # 32-bit float


def _wrap(values: np.ndarray, bits: int) -> np.ndarray:
    half = 1 << (bits - 1)
    return ((values + half) & ((1 << bits) - 1)) - half


def convert_samples(iq, sample_type, complex_output) -> bytes:
    """Convert int16 I/Q pairs to the bytes of ``sample_type`` values.

    Real output keeps only the I component; complex output interleaves I and Q.
    """
    sample_type = SampleType(sample_type)
    data = _wrap(np.asarray(iq).astype(np.int64).reshape(-1, 2), 16)
    values = data if complex_output else data[:, :1]

    if sample_type is SampleType.UINT8:
        out = ((values + 32768) >> 8).astype(np.uint8)
    elif sample_type is SampleType.INT8:
        out = (values >> 8).astype(np.int8)
    elif sample_type is SampleType.UINT16:
        out = (values + 32768).astype(np.uint16)
    elif sample_type is SampleType.INT16:
        out = values.astype(np.int16)
    elif sample_type is SampleType.INT32:
        out = _wrap(values * 65536 + values, 32).astype(np.int32)
    else:
        out = (values.astype(np.float64) * (1.0 / 32767.0)).astype(np.float32)

    return np.ascontiguousarray(out).tobytes()


class FileSink:
    """Writes I/Q samples to a file, or to standard output when the target is ``-``."""

    def __init__(self, target, sample_type=SampleType.INT16, complex_output=True, line_samples=4096):
        if target is None:
            raise ValueError("No output filename provided.")
        try:
            self.sample_type = SampleType(sample_type)
        except ValueError:
            raise ValueError(f"Unrecognised data type {sample_type!r}") from None
        if line_samples < 1:
            raise ValueError("line_samples must be positive")

        self.complex_output = bool(complex_output)
        self.line_samples = int(line_samples)
        self._stdout = target == "-"
        self._file = sys.stdout.buffer if self._stdout else open(target, "wb")

    @property
    def closed(self) -> bool:
        return self._file is None

    def write(self, iq) -> None:
        """Write ``(n, 2)`` int16 I/Q samples, one line's worth at a time."""
        if self._file is None:
            raise ValueError("write to a closed sink")
        data = np.asarray(iq).reshape(-1, 2)
        for start in range(0, len(data), self.line_samples):
            chunk = data[start:start + self.line_samples]
            self._file.write(convert_samples(chunk, self.sample_type, self.complex_output))

    def close(self) -> None:
        """Close the file; standard output is flushed but left open."""
        if self._file is None:
            return
        if self._stdout:
            self._file.flush()
        else:
            self._file.close()
        self._file = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
        return False