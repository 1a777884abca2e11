#!/usr/bin/env python3
"""
Tests for DTFT-domain upsampling and downsampling.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import numpy as np
import pytest

from pydtft import resampling
from pydtft import (
    InvalidArgumentError,
    OmegaCache,
    ResampleOptions,
    default_omega,
    downsample_dtft,
    select_decimation_method,
    upsample_dtft,
)


def gaussian_bump(n=512, sigma=0.3):
    omega = default_omega(n)
    return np.exp(-omega ** 2 / (2 * sigma ** 2)), omega


def triangle(n=1001):
    omega = default_omega(n)
    return 1 - np.abs(omega) / np.pi, omega


def test_upsample_length_and_axis():
    H, omega = gaussian_bump(100)
    H_up, omega_up = upsample_dtft(H, omega, 3)
    assert H_up.shape == (300,)
    np.testing.assert_array_equal(omega_up, default_omega(300))


def test_upsample_compresses_and_repeats():
    H, omega = triangle(401)
    H_up, omega_up = upsample_dtft(H, omega, 2)
    # Baseband image peaks at 0, images meet at +-pi/2 and touch the edges
    assert H_up.max() == pytest.approx(1.0, abs=1e-2)
    assert H_up[np.argmin(np.abs(omega_up - np.pi / 2))] == pytest.approx(0.0, abs=1e-2)
    assert H_up[0] == pytest.approx(1.0, abs=1e-2)
    np.testing.assert_allclose(H_up, H_up[::-1], atol=1e-2)


def test_upsample_then_downsample_recovers_smooth_spectrum():
    H, omega = gaussian_bump()
    H_up, omega_up = upsample_dtft(H, omega, 2)
    H_back, omega_back = downsample_dtft(H_up, omega_up, 2)
    assert H_back.shape == H.shape
    np.testing.assert_array_equal(omega_back, omega)
    np.testing.assert_allclose(H_back, H, atol=1e-2)


def test_downsample_triangle_folds_to_constant():
    H, omega = triangle()
    H_down, omega_down = downsample_dtft(H, omega, 2)
    assert H_down.shape == (500,)
    np.testing.assert_allclose(H_down, 0.5, atol=1e-9)


def test_downsample_constant_is_unchanged():
    H_down, _ = downsample_dtft(np.ones(99), None, 3)
    assert H_down.shape == (33,)
    np.testing.assert_allclose(H_down, 1.0)


def test_downsample_complex_stays_complex():
    H, omega = gaussian_bump(128)
    H_down, _ = downsample_dtft(H * np.exp(-1j * omega), omega, 2)
    assert np.iscomplexobj(H_down)
    assert np.all(np.isfinite(H_down))


def test_interpolation_lowpass_on_upsample():
    H_up, omega_up = upsample_dtft(np.ones(501), None, 2, apply_interp_lpf=True)
    inside = np.abs(omega_up) < np.pi / 2 - 0.01
    outside = np.abs(omega_up) > np.pi / 2 + 0.01
    np.testing.assert_allclose(H_up[inside], 2.0)
    np.testing.assert_allclose(H_up[outside], 0.0)


def test_decimation_lowpass_on_downsample():
    H_down, omega_down, meta = downsample_dtft(np.ones(1001), None, 2, apply_decim_lpf=True,
                                               return_metadata=True)
    assert meta['decimation_lpf'] is True
    assert meta['interp_method'] == 'pchip'
    core = np.abs(omega_down) < 0.9 * np.pi
    np.testing.assert_allclose(H_down[core], 0.5, atol=1e-9)


@pytest.mark.parametrize("factor", [1, 0, -2, 2.5, True, "2", None])
def test_invalid_factors(factor):
    H, omega = gaussian_bump(64)
    with pytest.raises(InvalidArgumentError):
        upsample_dtft(H, omega, factor)
    with pytest.raises(InvalidArgumentError):
        downsample_dtft(H, omega, factor)


def test_integral_float_factor_is_accepted():
    H, omega = gaussian_bump(64)
    H_up, _ = upsample_dtft(H, omega, 2.0)
    assert H_up.size == 128


def test_downsample_factor_larger_than_input():
    with pytest.raises(InvalidArgumentError):
        downsample_dtft(np.ones(3), None, 5)


def test_axis_mismatch_warns_and_recovers():
    H, omega = gaussian_bump(64)
    with pytest.warns(UserWarning, match="does not match"):
        H_up, _ = upsample_dtft(H, omega[:10], 2)
    np.testing.assert_allclose(H_up, upsample_dtft(H, omega, 2)[0])
    with pytest.warns(UserWarning, match="does not match"):
        downsample_dtft(H, omega[:10], 2)


def test_bad_options_rejected():
    H, omega = gaussian_bump(64)
    with pytest.raises(InvalidArgumentError, match="interp_method"):
        upsample_dtft(H, omega, 2, interp_method='lanczos')
    with pytest.raises(InvalidArgumentError, match="unknown"):
        downsample_dtft(H, omega, 2, apply_filter=True)


def test_select_decimation_method():
    step = np.r_[np.ones(50), np.zeros(50)]
    smooth, _ = gaussian_bump(256)
    assert select_decimation_method(step) == 'pchip'
    assert select_decimation_method(step, 'spline') == 'spline'
    assert select_decimation_method(smooth) == 'linear'
    assert select_decimation_method(np.zeros(20)) == 'linear'


def test_phase_only_spectrum_keeps_linear():
    omega = default_omega(501)
    delay = np.exp(-1j * 4 * omega)
    assert select_decimation_method(delay) == 'linear'
    H_down, _, meta = downsample_dtft(delay, omega, 2, return_metadata=True)
    assert meta['interp_method'] == 'linear'
    np.testing.assert_allclose(np.abs(H_down), 1.0, atol=1e-3)


def test_downsample_metadata():
    step = np.r_[np.ones(50), np.zeros(50)]
    _, _, meta = downsample_dtft(step, None, 4, return_metadata=True)
    assert meta == {
        'factor': 4,
        'input_length': 100,
        'output_length': 25,
        'requested_interp_method': 'linear',
        'interp_method': 'pchip',
        'decimation_lpf': False,
        'outlier_removal': False,
    }


def test_options_object():
    H, omega = gaussian_bump(128)
    opts = ResampleOptions(interp_method='pchip')
    _, _, meta = downsample_dtft(H, omega, 2, options=opts, return_metadata=True)
    assert meta['interp_method'] == 'pchip'
    assert ResampleOptions.coerce(None, apply_interp_lpf=True).apply_lpf is True


def test_outlier_removal_after_resampling():
    H, omega = gaussian_bump(400)
    H[123] = 50.0
    H_down, _ = downsample_dtft(H, omega, 2, apply_outlier_removal=True,
                               outlier_method='movmedian')
    assert np.all(np.isfinite(H_down))
    assert np.abs(H_down).max() < 2.0


def test_omega_cache_reuse_and_overwrite():
    cache = OmegaCache()
    H, omega = gaussian_bump(64)

    _, w1 = upsample_dtft(H, omega, 2, cache=cache)
    _, w2 = upsample_dtft(H, omega, 2, cache=cache)
    assert w1 is w2
    assert cache.hits == 1
    assert cache.key == (2, 64)

    _, w3 = upsample_dtft(H, omega, 3, cache=cache)
    assert cache.key == (3, 64)
    assert w3.size == 192
    assert cache.hits == 1

    cache.clear()
    assert cache.key is None and cache.omega is None and cache.hits == 0


def test_no_cache_builds_fresh_axis():
    H, omega = gaussian_bump(64)
    _, w1 = downsample_dtft(H, omega, 2)
    _, w2 = downsample_dtft(H, omega, 2)
    assert w1 is not w2
    np.testing.assert_array_equal(w1, w2)


def test_large_input_matches_direct_interpolation(monkeypatch):
    H, omega = gaussian_bump(500_001)
    assert H.size > resampling.LARGE_N

    H_up, omega_up = upsample_dtft(H, omega, 2)
    H_down, omega_down, meta = downsample_dtft(H, omega, 2, return_metadata=True)
    assert H_up.size == 1_000_002
    assert H_down.size == 250_000
    assert meta['interp_method'] == 'linear'

    monkeypatch.setattr(resampling, 'LARGE_N', 10 ** 9)
    H_up_ref, _ = upsample_dtft(H, omega, 2)
    H_down_ref, _ = downsample_dtft(H, omega, 2)
    np.testing.assert_allclose(H_up, H_up_ref, rtol=0, atol=1e-12)
    np.testing.assert_allclose(H_down, H_down_ref, rtol=0, atol=1e-12)

    # Both branches reproduce the analytic compressed bump
    expected_up, _ = gaussian_bump(1_000_002, sigma=0.3 / 2)
    np.testing.assert_allclose(H_up[omega_up.size // 4:3 * omega_up.size // 4],
                               expected_up[omega_up.size // 4:3 * omega_up.size // 4], atol=1e-6)
