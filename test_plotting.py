#!/usr/bin/env python3
"""
Tests for spectrum plots and verification helpers.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import pytest

from pydtft import (
    InvalidArgumentError,
    best_lowpass_filter,
    compare_spectra,
    default_omega,
    verify_lowpass_mask,
    verify_round_trip,
)
from pydtft.plotting import auto_y_range, mag_plot, plot_re_im


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


def test_mag_plot_draws_magnitude():
    omega = default_omega(65)
    H = np.exp(1j * omega) * np.cos(omega / 2)
    ax = mag_plot(H, name='G')
    (line,) = ax.get_lines()
    np.testing.assert_allclose(line.get_ydata(), np.abs(H))
    np.testing.assert_allclose(ax.get_xlim(), (-np.pi, np.pi))
    assert 'G' in ax.get_title()


def test_mag_plot_signed_real():
    H = np.linspace(-1, 1, 11)
    ax = mag_plot(H, plot_negative=True, y_range=(-2, 2))
    np.testing.assert_allclose(ax.get_lines()[0].get_ydata(), H)
    assert ax.get_ylim() == (-2, 2)


def test_mag_plot_negative_complex_warns():
    H = np.exp(1j * default_omega(16))
    with pytest.warns(UserWarning, match="complex"):
        ax = mag_plot(H, plot_negative=True)
    np.testing.assert_allclose(ax.get_lines()[0].get_ydata(), H.real)


def test_mag_plot_dynamic_x_range():
    mask = best_lowpass_filter(np.ones(201), cutoff=np.pi / 4)
    lo, hi = mag_plot(mask, dynamic_x_range=True).get_xlim()
    assert -np.pi < lo < -np.pi / 4
    assert np.pi / 4 < hi < np.pi


def test_subplot_mode_reuses_figure():
    fig = plt.figure()
    plt.subplot(2, 1, 1)
    mag_plot(np.ones(8), subplot_mode=True)
    plt.subplot(2, 1, 2)
    mag_plot(np.zeros(8), subplot_mode=True)
    assert plt.gcf() is fig
    assert len(fig.axes) == 2


def test_plot_re_im_is_3d():
    ax = plot_re_im(np.exp(1j * default_omega(32)))
    assert ax.name == '3d'


def test_auto_y_range():
    assert auto_y_range(np.zeros(5)) == pytest.approx((-0.05, 0.05))
    assert auto_y_range(np.array([0.0, 10.0])) == pytest.approx((-1.0, 11.0))


def test_verify_round_trip():
    results = verify_round_trip(np.random.default_rng(2).standard_normal(300))
    assert results['passes']
    assert results['length'] == 300
    assert results['max_error'] < 1e-12


def test_verify_lowpass_mask():
    mask = best_lowpass_filter(np.ones(257), cutoff=1.0, method='tukey', transition=0.3)
    results = verify_lowpass_mask(mask, cutoff=1.0, transition=0.3)
    assert results['passes']
    assert verify_lowpass_mask(mask, cutoff=1.0)['meets_stopband'] is False


def test_compare_spectra():
    omega = default_omega(50)
    ref = np.cos(omega)
    cand = ref.copy()
    cand[10] += 0.5
    results = compare_spectra(ref, cand, omega, plot=True)
    assert results['max_error'] == pytest.approx(0.5)
    assert results['argmax_omega'] == omega[10]
    assert results['all_finite']
    assert results['figure'] is not None

    with pytest.raises(InvalidArgumentError):
        compare_spectra(ref, cand[:-1])
