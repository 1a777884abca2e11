#!/usr/bin/env python3
"""
Tests for the DTFT transform pair, periodic shift and c2d sampling.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import numpy as np
import pytest

from pydtft import InvalidArgumentError, c2d_sample, default_omega, dtft, freq_shift_periodic, idtft


def test_round_trip_real():
    x = np.random.default_rng(0).standard_normal(257)
    X, omega = dtft(x)
    np.testing.assert_allclose(idtft(X).real, x, atol=1e-12)
    assert omega.shape == x.shape


def test_round_trip_complex():
    rng = np.random.default_rng(1)
    x = rng.standard_normal(64) + 1j * rng.standard_normal(64)
    X, _ = dtft(x)
    np.testing.assert_allclose(idtft(X), x, atol=1e-12)


def test_single_sample_round_trip():
    X, omega = dtft([3.5])
    assert X.shape == (1,)
    np.testing.assert_allclose(idtft(X), [3.5])


def test_constant_lands_at_midpoint():
    X, _ = dtft(np.ones(8))
    expected = np.zeros(8)
    expected[4] = 1.0
    np.testing.assert_allclose(X, expected, atol=1e-15)


def test_impulse_has_flat_normalised_spectrum():
    x = np.zeros(16)
    x[0] = 1.0
    X, _ = dtft(x)
    np.testing.assert_allclose(X, np.full(16, 1 / 16))


def test_axis_is_canonical():
    _, omega = dtft(np.arange(11))
    np.testing.assert_array_equal(omega, np.linspace(-np.pi, np.pi, 11))
    np.testing.assert_array_equal(default_omega(11), omega)


def test_rejects_empty_and_multidimensional():
    with pytest.raises(InvalidArgumentError):
        dtft([])
    with pytest.raises(InvalidArgumentError):
        idtft([])
    with pytest.raises(InvalidArgumentError):
        dtft(np.ones((3, 3)))


def test_shift_stays_in_canonical_interval():
    omega = np.linspace(-10, 10, 2001)
    for d in (0.0, 0.3, -2.0, np.pi, 7.5, -13.1):
        shifted = freq_shift_periodic(omega, d)
        assert np.all(shifted >= -np.pi)
        assert np.all(shifted < np.pi)


def test_shift_composes_modulo_two_pi():
    omega = np.linspace(-np.pi, np.pi, 101)
    d1, d2 = 1.1, 2.7
    twice = freq_shift_periodic(freq_shift_periodic(omega, d1), d2)
    once = freq_shift_periodic(omega, d1 + d2)
    # Compare on the circle so values near the +-pi seam agree
    np.testing.assert_allclose(np.exp(1j * twice), np.exp(1j * once), atol=1e-12)


def test_shift_preserves_spacing():
    omega = np.linspace(-1, 1, 21)
    shifted = freq_shift_periodic(omega, 0.5)
    np.testing.assert_allclose(np.diff(shifted), np.diff(omega), atol=1e-12)
    np.testing.assert_allclose(shifted, omega - 0.5, atol=1e-12)


def test_shift_seam_wraps_to_minus_pi():
    # mod rounds these up to exactly 2pi
    for d in (4.5e-16, 1e-16, 2e-16):
        shifted = freq_shift_periodic([-np.pi], d)
        assert -np.pi <= shifted[0] < np.pi
    rng = np.random.default_rng(3)
    omega = rng.uniform(-np.pi, np.pi, 10000)
    d = rng.choice([0.0, 1e-16, -1e-16, 2 * np.pi, -np.pi], omega.size)
    shifted = freq_shift_periodic(omega, d)
    assert np.all(shifted >= -np.pi)
    assert np.all(shifted < np.pi)


def test_c2d_sample_scales_by_sampling_period():
    omega_ct = np.linspace(-4 * np.pi, 4 * np.pi, 101)
    X = c2d_sample(np.ones(101), omega_ct, 0.5)
    np.testing.assert_allclose(X, np.full(101, 2.0))


def test_c2d_sample_zero_outside_continuous_range():
    omega_ct = np.linspace(-4 * np.pi, 4 * np.pi, 101)
    X = c2d_sample(np.ones(101), omega_ct, 0.1)
    assert X[0] == 0.0 and X[-1] == 0.0
    assert X[50] == pytest.approx(10.0)


def test_c2d_sample_validation():
    omega_ct = np.linspace(-1, 1, 5)
    with pytest.raises(InvalidArgumentError):
        c2d_sample(np.ones(5), omega_ct, 0.0)
    with pytest.raises(InvalidArgumentError):
        c2d_sample(np.ones(4), omega_ct, 1.0)
    with pytest.raises(InvalidArgumentError):
        c2d_sample(np.ones(5), omega_ct, 1.0, method='quadratic')
