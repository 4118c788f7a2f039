"""Eurocrypt conditional access: control word cipher, ECM hash and ECM packets."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum


class EurocryptVariant(IntEnum):
    """Eurocrypt generation: M, or S2 (which adds the DES initial permutations)."""

    M = 0
    S2 = 3


@dataclass(frozen=True)
class EurocryptMode:
    """Parameters of one provider's Eurocrypt service."""

    id: str
    variant: EurocryptVariant
    key: bytes
    ppid: bytes
    cdate: bytes


MODES: tuple[EurocryptMode, ...] = (
    EurocryptMode("rdv", EurocryptVariant.S2, bytes((0xFE, 0x6D, 0x9A, 0xBB, 0xEB, 0x97, 0xFB)), bytes((0x00, 0x2D, 0x93)), bytes((0x22, 0x70, 0xFF, 0x00))),
    EurocryptMode("tvs", EurocryptVariant.S2, bytes((0x5C, 0x8B, 0x11, 0x2F, 0x99, 0xA8, 0x2C)), bytes((0x00, 0x2B, 0x50)), bytes((0x7A, 0x14, 0x00, 0x01))),
    EurocryptMode("ctvs", EurocryptVariant.S2, bytes((0x22, 0xDE, 0x81, 0xF5, 0xCA, 0x4D, 0x4A)), bytes((0x00, 0x2B, 0x20)), bytes((0x7A, 0x14, 0x00, 0x01))),
    EurocryptMode("ctv", EurocryptVariant.M, bytes((0x84, 0x66, 0x30, 0xE4, 0xDA, 0xFA, 0x23)), bytes((0x00, 0x04, 0x38)), bytes((0x21, 0x65, 0xFF, 0x00))),
    EurocryptMode("tvplus", EurocryptVariant.M, bytes((0x12, 0x06, 0x28, 0x3A, 0x4B, 0x1D, 0xE2)), bytes((0x00, 0x2C, 0x08)), bytes((0x21, 0x65, 0x04, 0x00))),
    EurocryptMode("tv1000", EurocryptVariant.M, bytes((0x48, 0x63, 0xC5, 0xB3, 0xDA, 0xE3, 0x29)), bytes((0x00, 0x04, 0x18)), bytes((0x21, 0x65, 0x05, 0x04))),
    EurocryptMode("filmnet", EurocryptVariant.M, bytes((0x21, 0x12, 0x31, 0x35, 0x8A, 0xC3, 0x4F)), bytes((0x00, 0x28, 0x08)), bytes((0x21, 0x15, 0x05, 0x00))),
    EurocryptMode("nrk", EurocryptVariant.S2, bytes((0xE7, 0x19, 0x5B, 0x7C, 0x47, 0xF4, 0x66)), bytes((0x47, 0x52, 0x00)), bytes((0x21, 0x15, 0x05, 0x00))),
)

# Address of the ECM/EMM packets
ECM_ADDRESS = 346

# Largest ECM command that fits a single packet
_MAX_PACKET = 45

_IP = (
    58, 50, 42, 34, 26, 18, 10, 2,
    60, 52, 44, 36, 28, 20, 12, 4,
    62, 54, 46, 38, 30, 22, 14, 6,
    64, 56, 48, 40, 32, 24, 16, 8,
    57, 49, 41, 33, 25, 17, 9, 1,
    59, 51, 43, 35, 27, 19, 11, 3,
    61, 53, 45, 37, 29, 21, 13, 5,
    63, 55, 47, 39, 31, 23, 15, 7,
)

_IPP = (
    40, 8, 48, 16, 56, 24, 64, 32,
    39, 7, 47, 15, 55, 23, 63, 31,
    38, 6, 46, 14, 54, 22, 62, 30,
    37, 5, 45, 13, 53, 21, 61, 29,
    36, 4, 44, 12, 52, 20, 60, 28,
    35, 3, 43, 11, 51, 19, 59, 27,
    34, 2, 42, 10, 50, 18, 58, 26,
    33, 1, 41, 9, 49, 17, 57, 25,
)

_EXP = (
    32, 1, 2, 3, 4, 5,
    4, 5, 6, 7, 8, 9,
    8, 9, 10, 11, 12, 13,
    12, 13, 14, 15, 16, 17,
    16, 17, 18, 19, 20, 21,
    20, 21, 22, 23, 24, 25,
    24, 25, 26, 27, 28, 29,
    28, 29, 30, 31, 32, 1,
)

_SB = (
    (0xE, 0x0, 0x4, 0xF, 0xD, 0x7, 0x1, 0x4, 0x2, 0xE, 0xF, 0x2, 0xB, 0xD, 0x8, 0x1,
     0x3, 0xA, 0xA, 0x6, 0x6, 0xC, 0xC, 0xB, 0x5, 0x9, 0x9, 0x5, 0x0, 0x3, 0x7, 0x8,
     0x4, 0xF, 0x1, 0xC, 0xE, 0x8, 0x8, 0x2, 0xD, 0x4, 0x6, 0x9, 0x2, 0x1, 0xB, 0x7,
     0xF, 0x5, 0xC, 0xB, 0x9, 0x3, 0x7, 0xE, 0x3, 0xA, 0xA, 0x0, 0x5, 0x6, 0x0, 0xD),
    (0xF, 0x3, 0x1, 0xD, 0x8, 0x4, 0xE, 0x7, 0x6, 0xF, 0xB, 0x2, 0x3, 0x8, 0x4, 0xE,
     0x9, 0xC, 0x7, 0x0, 0x2, 0x1, 0xD, 0xA, 0xC, 0x6, 0x0, 0x9, 0x5, 0xB, 0xA, 0x5,
     0x0, 0xD, 0xE, 0x8, 0x7, 0xA, 0xB, 0x1, 0xA, 0x3, 0x4, 0xF, 0xD, 0x4, 0x1, 0x2,
     0x5, 0xB, 0x8, 0x6, 0xC, 0x7, 0x6, 0xC, 0x9, 0x0, 0x3, 0x5, 0x2, 0xE, 0xF, 0x9),
    (0xA, 0xD, 0x0, 0x7, 0x9, 0x0, 0xE, 0x9, 0x6, 0x3, 0x3, 0x4, 0xF, 0x6, 0x5, 0xA,
     0x1, 0x2, 0xD, 0x8, 0xC, 0x5, 0x7, 0xE, 0xB, 0xC, 0x4, 0xB, 0x2, 0xF, 0x8, 0x1,
     0xD, 0x1, 0x6, 0xA, 0x4, 0xD, 0x9, 0x0, 0x8, 0x6, 0xF, 0x9, 0x3, 0x8, 0x0, 0x7,
     0xB, 0x4, 0x1, 0xF, 0x2, 0xE, 0xC, 0x3, 0x5, 0xB, 0xA, 0x5, 0xE, 0x2, 0x7, 0xC),
    (0x7, 0xD, 0xD, 0x8, 0xE, 0xB, 0x3, 0x5, 0x0, 0x6, 0x6, 0xF, 0x9, 0x0, 0xA, 0x3,
     0x1, 0x4, 0x2, 0x7, 0x8, 0x2, 0x5, 0xC, 0xB, 0x1, 0xC, 0xA, 0x4, 0xE, 0xF, 0x9,
     0xA, 0x3, 0x6, 0xF, 0x9, 0x0, 0x0, 0x6, 0xC, 0xA, 0xB, 0x1, 0x7, 0xD, 0xD, 0x8,
     0xF, 0x9, 0x1, 0x4, 0x3, 0x5, 0xE, 0xB, 0x5, 0xC, 0x2, 0x7, 0x8, 0x2, 0x4, 0xE),
    (0x2, 0xE, 0xC, 0xB, 0x4, 0x2, 0x1, 0xC, 0x7, 0x4, 0xA, 0x7, 0xB, 0xD, 0x6, 0x1,
     0x8, 0x5, 0x5, 0x0, 0x3, 0xF, 0xF, 0xA, 0xD, 0x3, 0x0, 0x9, 0xE, 0x8, 0x9, 0x6,
     0x4, 0xB, 0x2, 0x8, 0x1, 0xC, 0xB, 0x7, 0xA, 0x1, 0xD, 0xE, 0x7, 0x2, 0x8, 0xD,
     0xF, 0x6, 0x9, 0xF, 0xC, 0x0, 0x5, 0x9, 0x6, 0xA, 0x3, 0x4, 0x0, 0x5, 0xE, 0x3),
    (0xC, 0xA, 0x1, 0xF, 0xA, 0x4, 0xF, 0x2, 0x9, 0x7, 0x2, 0xC, 0x6, 0x9, 0x8, 0x5,
     0x0, 0x6, 0xD, 0x1, 0x3, 0xD, 0x4, 0xE, 0xE, 0x0, 0x7, 0xB, 0x5, 0x3, 0xB, 0x8,
     0x9, 0x4, 0xE, 0x3, 0xF, 0x2, 0x5, 0xC, 0x2, 0x9, 0x8, 0x5, 0xC, 0xF, 0x3, 0xA,
     0x7, 0xB, 0x0, 0xE, 0x4, 0x1, 0xA, 0x7, 0x1, 0x6, 0xD, 0x0, 0xB, 0x8, 0x6, 0xD),
    (0x4, 0xD, 0xB, 0x0, 0x2, 0xB, 0xE, 0x7, 0xF, 0x4, 0x0, 0x9, 0x8, 0x1, 0xD, 0xA,
     0x3, 0xE, 0xC, 0x3, 0x9, 0x5, 0x7, 0xC, 0x5, 0x2, 0xA, 0xF, 0x6, 0x8, 0x1, 0x6,
     0x1, 0x6, 0x4, 0xB, 0xB, 0xD, 0xD, 0x8, 0xC, 0x1, 0x3, 0x4, 0x7, 0xA, 0xE, 0x7,
     0xA, 0x9, 0xF, 0x5, 0x6, 0x0, 0x8, 0xF, 0x0, 0xE, 0x5, 0x2, 0x9, 0x3, 0x2, 0xC),
    (0xD, 0x1, 0x2, 0xF, 0x8, 0xD, 0x4, 0x8, 0x6, 0xA, 0xF, 0x3, 0xB, 0x7, 0x1, 0x4,
     0xA, 0xC, 0x9, 0x5, 0x3, 0x6, 0xE, 0xB, 0x5, 0x0, 0x0, 0xE, 0xC, 0x9, 0x7, 0x2,
     0x7, 0x2, 0xB, 0x1, 0x4, 0xE, 0x1, 0x7, 0x9, 0x4, 0xC, 0xA, 0xE, 0x8, 0x2, 0xD,
     0x0, 0xF, 0x6, 0xC, 0xA, 0x9, 0xD, 0x0, 0xF, 0x3, 0x3, 0x5, 0x5, 0x6, 0x8, 0xB),
)

_PERM = (
    16, 7, 20, 21, 29, 12, 28, 17,
    1, 15, 23, 26, 5, 18, 31, 10,
    2, 8, 24, 14, 32, 27, 3, 9,
    19, 13, 30, 6, 22, 11, 4, 25,
)

_PC2 = (
    14, 17, 11, 24, 1, 5,
    3, 28, 15, 6, 21, 10,
    23, 19, 12, 4, 26, 8,
    16, 7, 27, 20, 13, 2,
    41, 52, 31, 37, 47, 55,
    30, 40, 51, 45, 33, 48,
    44, 49, 39, 56, 34, 53,
    46, 42, 50, 36, 29, 32,
)

_LSHIFT = (1, 1, 2, 2, 2, 2, 2, 2, 1, 2, 2, 2, 2, 2, 2, 1)

_MASK28 = 0xFFFFFFF


def find_mode(name: str) -> EurocryptMode:
    """Return the Eurocrypt mode called ``name``."""
    for mode in MODES:
        if mode.id == name:
            return mode
    raise ValueError(f"Unrecognised Eurocrypt mode: {name!r}")


def _permute(data: bytes, table: Sequence[int]) -> bytes:
    out = bytearray(8)
    for i in range(8):
        p = 0
        for pos in table[i * 8:(i + 1) * 8]:
            t = pos - 1
            p = (p << 1) | ((data[t >> 3] >> (7 - (t & 7))) & 1)
        out[i] = p
    return bytes(out)


def _des_f(r: int, k2: Sequence[int]) -> int:
    s = 0
    for i in range(8):
        v = 0
        for j, pos in enumerate(_EXP[i * 6:(i + 1) * 6]):
            v |= ((r >> (32 - pos)) & 1) << (5 - j)
        v ^= k2[i]
        s |= _SB[i][v] << (28 - 4 * i)
    result = 0
    for i, pos in enumerate(_PERM):
        result |= ((s >> (32 - pos)) & 1) << (31 - i)
    return result


def _subkey(c: int, d: int) -> list[int]:
    k2 = []
    for j in range(8):
        v = 0
        for t, pos in enumerate(_PC2[j * 6:(j + 1) * 6]):
            if pos < 29:
                bit = (c >> (28 - pos)) & 1
            else:
                bit = (d >> (56 - pos)) & 1
            v |= bit << (5 - t)
        k2.append(v)
    return k2


def _rol(v: int) -> int:
    return ((v << 1) ^ (v >> 27)) & _MASK28


def _ror(v: int) -> int:
    return ((v >> 1) ^ (v << 27)) & _MASK28


def eurocrypt_cipher(data, key, hash_mode, variant) -> bytes:
    """Run the Eurocrypt block cipher over 8 bytes with a 7 byte key.

    ``hash_mode`` selects the hashing schedule; otherwise the control word
    decryption schedule is used.
    """
    data = bytes(data)
    key = bytes(key)
    if len(data) != 8:
        raise ValueError("data must be 8 bytes")
    if len(key) != 7:
        raise ValueError("key must be 7 bytes")

    s2 = EurocryptVariant(variant) is EurocryptVariant.S2
    out = _permute(data, _IP) if s2 else data

    c = (key[0] << 20) ^ (key[1] << 12) ^ (key[2] << 4) ^ (key[3] >> 4)
    d = ((key[3] & 0x0F) << 24) ^ (key[4] << 16) ^ (key[5] << 8) ^ key[6]

    left = int.from_bytes(out[:4], "big")
    right = int.from_bytes(out[4:], "big")

    for i in range(16):
        if not s2 or hash_mode:
            for _ in range(_LSHIFT[i]):
                c, d = _rol(c), _rol(d)

        s = _des_f(right, _subkey(c, d))

        if s2 and not hash_mode:
            for _ in range(_LSHIFT[15 - i]):
                c, d = _ror(c), _ror(d)

        if hash_mode and not s2:
            s = ((s >> 8) & 0xFF0000) | ((s << 8) & 0xFF000000) | (s & 0x0000FFFF)

        left, right = right, left ^ s

    result = right.to_bytes(4, "big") + left.to_bytes(4, "big")
    return _permute(result, _IPP) if s2 else result


def ecm_hash(src, mode: EurocryptMode) -> bytes:
    """Compute the 8 byte ECM hash of an ECM command (starting at the PPID parameter)."""
    src = bytes(src)
    if len(src) < 31:
        raise ValueError("ECM command too short to hash")

    if mode.variant is EurocryptVariant.S2:
        ppid = bytearray(src[2:5])
        ppid[2] &= 0xF0  # key index is masked out of the hash
        msg = bytes(ppid) + src[9:14] + src[15:31]
    else:
        msg = src[5:31]

    digest = bytes(8)
    block = bytearray(8)
    for i, b in enumerate(msg):
        block = bytearray(digest)
        block[i % 8] ^= b
        digest = bytes(block)
        if i % 8 == 7:
            digest = eurocrypt_cipher(digest, mode.key, True, mode.variant)

    if mode.variant is EurocryptVariant.M:
        digest = eurocrypt_cipher(digest, mode.key, True, mode.variant)

    return digest


def build_ecm_payload(mode: EurocryptMode, ecw, toggle: int) -> bytes:
    """Build the ECM packet carrying the even and odd encrypted control words.

    ``ecw`` holds the two 8 byte encrypted words (even, odd). The result is
    the packet before error-correction encoding.
    """
    if toggle not in (0, 1):
        raise ValueError("toggle must be 0 or 1")
    even, odd = (bytes(w) for w in ecw)
    if len(even) != 8 or len(odd) != 8:
        raise ValueError("encrypted control words must be 8 bytes each")

    pkt = bytearray()
    pkt.append(0x00)  # PT, always 0x00 for ECM
    pkt.append(((0x20 << 2) | (1 << 1) | toggle) & 0xFF)  # CI
    pkt.append(0)  # CLI, filled in below
    pkt += bytes((0x90, 0x03)) + mode.ppid
    pkt += bytes((0xDF, 0x00))
    pkt += bytes((0xE1, 0x04)) + mode.cdate
    pkt += bytes((0xEA, 0x10)) + even + odd
    pkt += bytes((0xF0, 0x08))
    pkt += ecm_hash(pkt[3:], mode)
    pkt[2] = len(pkt) - 3

    if len(pkt) > _MAX_PACKET:
        raise ValueError(f"ECM packet too large ({len(pkt)})")

    return bytes(pkt)


class ControlWords:
    """Even and odd control words, kept as encrypted/decrypted pairs."""

    def __init__(self, mode: EurocryptMode, rng=None):
        self.mode = mode
        self._rng = rng if rng is not None else random.Random()
        self.ecw = [bytes(8), bytes(8)]
        self.cw = [bytes(8), bytes(8)]
        self.update(0)
        self.update(1)

    def update(self, toggle: int) -> int:
        """Return the active control word for ``toggle`` and renew the other one."""
        if toggle not in (0, 1):
            raise ValueError("toggle must be 0 or 1")
        active = int.from_bytes(self.cw[toggle], "big")

        other = toggle ^ 1
        self.ecw[other] = bytes(self._rng.randrange(256) for _ in range(8))
        self.cw[other] = eurocrypt_cipher(self.ecw[other], self.mode.key, False, self.mode.variant)

        return active