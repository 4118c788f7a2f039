import numpy as np
import pytest

from analogtv.acp import AcpEncoder

SYNC = -10000
WHITE = 20000


def _encoder(lines=625, grey=None):
    return AcpEncoder(lines, 13_500_000, SYNC, WHITE, grey or (lambda v: v * 100))


@pytest.mark.parametrize("line", [9, 18, 321, 330])
def test_active_625(line):
    assert _encoder().active_on(line) is True


@pytest.mark.parametrize("line", [8, 19, 320, 331, 1])
def test_inactive_625(line):
    assert _encoder().active_on(line) is False


@pytest.mark.parametrize("line,expected", [(12, True), (19, True), (275, True), (282, True), (11, False), (283, False)])
def test_active_525(line, expected):
    assert _encoder(525).active_on(line) is expected


def test_levels_ordering():
    acp = _encoder()
    assert SYNC < acp.psync_level < WHITE
    assert acp.pagc_level > WHITE


def test_pulse_positions_increase_evenly():
    acp = _encoder()
    assert len(acp.left) == 6
    gaps = [b - a for a, b in zip(acp.left, acp.left[1:])]
    assert all(g > acp.psync_width + acp.pagc_width for g in gaps)
    assert max(gaps) - min(gaps) <= 1


def test_render_draws_pulses():
    acp = _encoder()
    width = acp.left[-1] + acp.psync_width + acp.pagc_width + 10
    out = np.zeros(width * 2, dtype=np.int32)
    assert acp.render_line(10, 5, out, False) is True
    for start in acp.left:
        assert all(out[x * 2] == acp.psync_level for x in range(start, start + acp.psync_width))
        end = start + acp.psync_width + acp.pagc_width
        assert all(out[x * 2] == acp.pagc_level for x in range(start + acp.psync_width, end))
    assert not out[1::2].any()
    assert out[(acp.left[0] - 1) * 2] == 0


def test_render_skips_inactive_and_allocated_lines():
    acp = _encoder()
    out = [0] * 2000
    assert acp.render_line(100, 0, out, False) is False
    assert acp.render_line(10, 0, out, True) is True
    assert not any(out)


def test_line_one_sweeps_agc_level_with_clipping():
    seen = []

    def grey(v):
        seen.append(v)
        return SYNC

    acp = _encoder(grey=grey)
    acp.render_line(1, 0, [0] * 10, False)
    acp.render_line(1, 214, [0] * 10, False)
    assert seen == [255, 0]
    assert acp.pagc_level == SYNC