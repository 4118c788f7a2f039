import pytest

from analogtv.common import INT16_MAX, INT32_MAX, cint16_mul, cint32_mul, gcd, sin_cint16


def test_gcd_of_dance_rates():
    assert gcd(2048000, 1024000) == 1024000


@pytest.mark.parametrize("a,b", [(12, 18), (20250000, 1024000), (16000000, 1024000), (7, 5)])
def test_gcd_divides_both(a, b):
    g = gcd(a, b)
    assert a % g == 0 and b % g == 0
    assert gcd(a // g, b // g) == 1


def test_gcd_is_symmetric_and_idempotent():
    assert gcd(48, 36) == gcd(36, 48)
    assert gcd(99, 99) == 99


def test_gcd_zero_divisor_raises():
    with pytest.raises(ZeroDivisionError):
        gcd(5, 0)


def test_sin_table_quarter_turns():
    table = sin_cint16(4, 1, 1.0)
    assert table.shape == (4, 2)
    assert table.tolist() == [
        [INT16_MAX, 0],
        [0, INT16_MAX],
        [-INT16_MAX, 0],
        [0, -INT16_MAX],
    ]


def test_sin_table_magnitude_follows_level():
    table = sin_cint16(64, 3, 0.5)
    for i, q in table.tolist():
        magnitude = (i * i + q * q) ** 0.5
        assert abs(magnitude - INT16_MAX * 0.5) < 2


def test_sin_table_rejects_empty():
    with pytest.raises(ValueError):
        sin_cint16(0, 1, 1.0)


def test_cint16_mul_identity_is_near_exact():
    for value in [(1000, -2000), (-30000, 12345), (0, 32000)]:
        r = cint16_mul(value, (INT16_MAX, 0))
        assert abs(r[0] - value[0]) <= 1
        assert abs(r[1] - value[1]) <= 1


def test_cint16_mul_commutes():
    a, b = (1234, -5678), (-4321, 8765)
    assert cint16_mul(a, b) == cint16_mul(b, a)


def test_cint16_mul_conjugate_is_real():
    a = (3000, 4000)
    r = cint16_mul(a, (a[0], -a[1]))
    assert r[1] == 0
    assert r[0] > 0


def test_cint16_mul_wraps_to_int16():
    assert cint16_mul((-32768, 0), (-32768, 0)) == (-32768, 0)


def test_cint32_mul_identity_is_near_exact():
    value = (100000000, -250000000)
    r = cint32_mul(value, (INT32_MAX, 0))
    assert abs(r[0] - value[0]) <= 1
    assert abs(r[1] - value[1]) <= 1


def test_cint32_mul_conjugate_is_real():
    a = (300000000, -400000000)
    r = cint32_mul(a, (a[0], -a[1]))
    assert r[1] == 0