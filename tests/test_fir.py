import numpy as np
import pytest

from analogtv.fir import (
    FirInt16,
    FirInt16Complex,
    FirInt16SComplex,
    FirInt32,
    IirInt16,
    fir_band_reject,
    fir_complex_band_pass,
    fir_int16_complex_band_pass,
    fir_low_pass,
)


def test_low_pass_normalised_and_symmetric():
    taps = fir_low_pass(31, 1.0, 0.2, 0.1, 1.0)
    assert len(taps) == 31
    assert taps.sum() == pytest.approx(1.0)
    assert np.allclose(taps, taps[::-1])


def test_low_pass_even_length_has_zero_last_tap():
    taps = fir_low_pass(32, 1.0, 0.2, 0.1, 3.0)
    assert len(taps) == 32
    assert taps[-1] == 0.0
    assert taps.sum() == pytest.approx(3.0)


def test_low_pass_rejects_zero_taps():
    with pytest.raises(ValueError):
        fir_low_pass(0, 1.0, 0.2, 0.1, 1.0)


def test_band_reject_normalised_and_symmetric():
    taps = fir_band_reject(41, 10.0, 2.0, 3.0, 0.5, 2.0)
    assert taps.sum() == pytest.approx(2.0)
    assert np.allclose(taps, taps[::-1])


def test_complex_band_pass_magnitude_follows_low_pass():
    taps = fir_complex_band_pass(33, 16.0, 2.0, 4.0, 0.5, 1.0)
    lp = fir_low_pass(33, 16.0, 1.0, 0.5, 1.0)
    assert taps.shape == (33, 2)
    assert np.allclose(np.hypot(taps[:, 0], taps[:, 1]), np.abs(lp))


def test_int16_complex_band_pass_is_scaled_float_design():
    ints = fir_int16_complex_band_pass(21, 16.0, 2.0, 4.0, 0.5, 1.0)
    floats = fir_complex_band_pass(21, 16.0, 2.0, 4.0, 0.5, 1.0)
    assert ints.dtype == np.int16
    assert np.all(np.abs(ints - floats * 32767.0) <= 0.5 + 1e-9)


def test_int16_impulse_response_matches_taps():
    taps = [0.5, 0.25, 0.125]
    out = FirInt16(taps).process([16384, 0, 0, 0])
    assert len(out) == 4
    assert np.allclose(out[:3], np.array(taps) * 16384, atol=1)
    assert out[3] == 0


def test_int16_zero_in_zero_out():
    out = FirInt16([0.3, 0.4, 0.3]).process(np.zeros(20, dtype=np.int16))
    assert np.array_equal(out, np.zeros(20, dtype=np.int16))


def test_int16_interpolation_and_decimation_counts():
    up = FirInt16([0.5] * 6, interpolation=3).process(list(range(10)))
    down = FirInt16([0.25] * 4, decimation=2).process(np.zeros(10))
    assert len(up) == 30
    assert len(down) == 5


def test_int16_output_is_clipped():
    f = FirInt16([1.0, 1.0])
    assert f.process([30000] * 4)[-1] == 32767
    g = FirInt16([1.0, 1.0])
    assert g.process([-30000] * 4)[-1] == -32768


def test_int16_process_block_primes_window():
    f = FirInt16([0.2] * 5)
    out = f.process_block(np.full(10, 1000))
    assert len(out) == 10 - 5 // 2


def test_resampler_simplifies_ratio_and_keeps_dc():
    f = FirInt16.resampler(4, 2)
    assert (f.interpolation, f.decimation) == (2, 1)
    out = f.process(np.full(100, 8000))
    assert len(out) == 200
    assert np.all(np.abs(out[60:180].astype(int) - 8000) < 400)


def test_invalid_filters_raise():
    with pytest.raises(ValueError):
        FirInt16([])
    with pytest.raises(ValueError):
        FirInt16([1.0], interpolation=0)
    with pytest.raises(ValueError):
        FirInt16([1.0], delay=-1)


def test_scomplex_real_taps_match_real_filter():
    x = [1000, -2000, 3000, 0, 500, 0]
    c = FirInt16SComplex([[0.5, 0.0], [0.25, 0.0]]).process(x)
    r = FirInt16([0.5, 0.25]).process(x)
    assert c.shape == (6, 2)
    assert np.array_equal(c[:, 0], r)
    assert np.all(c[:, 1] == 0)


def test_scomplex_imaginary_taps_feed_q():
    x = [1000, -2000, 3000, 0]
    c = FirInt16SComplex([[0.0, 0.5], [0.0, 0.25]]).process(x)
    r = FirInt16([0.5, 0.25]).process(x)
    assert np.array_equal(c[:, 1], r)
    assert np.all(c[:, 0] == 0)


def test_complex_zero_input_gives_zero_output():
    out = FirInt16Complex([[0.5, 0.1], [0.25, -0.2]]).process(np.zeros((8, 2)))
    assert out.shape == (8, 2)
    assert not out.any()


def test_complex_single_tap_i_channel_matches_real_filter():
    iq = np.array([[1000, 7], [-3000, 9], [12000, -4]])
    out = FirInt16Complex([[1.0, 0.0]]).process(iq)
    expected = FirInt16([1.0]).process(iq[:, 0])
    assert np.array_equal(out[:, 0], expected)


def test_int32_impulse_beyond_int16_range():
    out = FirInt32([0.5, 0.25]).process([1_000_000, 0, 0])
    assert out.dtype == np.int32
    assert np.allclose(out, [500000, 250000, 0], atol=1)


def test_int32_output_is_clipped():
    out = FirInt32([1.0, 1.0]).process([2_000_000_000] * 3)
    assert out[-1] == 2**31 - 1


def test_iir_identity_passes_samples():
    x = [0, 123, -4567, 32767, -32768]
    out = IirInt16((1.0, 0.0), (1.0, 0.0)).process(x)
    assert list(out) == x


def test_iir_averaging():
    out = IirInt16((1.0, 0.0), (0.5, 0.5)).process([100, 100, 100])
    assert list(out) == [50, 100, 100]


def test_iir_clips_to_int16():
    out = IirInt16((1.0, 0.0), (2.0, 0.0)).process([30000, -30000])
    assert list(out) == [32767, -32768]


def test_iir_needs_two_coefficients():
    with pytest.raises(ValueError):
        IirInt16((1.0,), (1.0, 0.0))