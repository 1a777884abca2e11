#!/usr/bin/env python3
"""
Matplotlib views of DTFT spectra.
"""

import warnings
from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt

from .transforms import as_1d, default_omega

PI_TICKS = np.pi * np.array([-1, -0.75, -0.5, -0.25, 0, 0.25, 0.5, 0.75, 1])
PI_LABELS = [r'$-\pi$', r'$-3\pi/4$', r'$-\pi/2$', r'$-\pi/4$', '0',
             r'$\pi/4$', r'$\pi/2$', r'$3\pi/4$', r'$\pi$']


def auto_y_range(y: np.ndarray):
    """10% margin around the data, or 5% (at least 0.05) around a flat line."""
    lo, hi = float(np.nanmin(y)), float(np.nanmax(y))
    if abs(hi - lo) <= 1e-6 * abs(hi):
        buffer = max(0.05 * abs(lo), 0.05)
    else:
        buffer = 0.1 * (hi - lo)
    return lo - buffer, hi + buffer


def _target_axes(ax, subplot_mode: bool, projection: Optional[str] = None):
    if ax is not None:
        return ax
    if not subplot_mode:
        plt.figure(figsize=(10, 6))
    if projection is None:
        return plt.gca()
    return plt.gcf().add_subplot(projection=projection)


def mag_plot(
    H,
    plot_negative: bool = False,
    subplot_mode: bool = False,
    omega=None,
    y_range: Optional[Sequence[float]] = None,
    dynamic_x_range: bool = False,
    name: str = 'H',
    ax=None,
):
    """
    Plot the magnitude (or raw real values) of a spectrum over [-pi, pi].

    Parameters
    ----------
    H : array_like
        Spectrum.
    plot_negative : bool
        Plot signed values instead of |H|. Complex input falls back to the
        real part with a warning.
    subplot_mode : bool
        Draw into the current axes instead of a new figure.
    omega : array_like, optional
        Frequency axis; defaults to linspace(-pi, pi, len(H)).
    y_range : (float, float), optional
        Manual y limits.
    dynamic_x_range : bool
        Zoom the x axis onto the non-zero support.
    name : str
        Label used in the title.
    ax : matplotlib Axes, optional
        Explicit target axes.

    Returns
    -------
    matplotlib.axes.Axes
    """
    H = as_1d(H, "H")
    omega = default_omega(H.size) if omega is None else as_1d(omega, "omega")

    if plot_negative:
        if np.iscomplexobj(H):
            warnings.warn(f'Cannot plot "negative magnitude" for complex signal {name}; '
                          'plotting the real part. Use plot_re_im() for a 3-D view.')
            y = H.real
        else:
            y = H
    else:
        y = np.abs(H)

    if y_range is None:
        y_range = auto_y_range(y)

    if dynamic_x_range and np.any(np.abs(y) > 0):
        support = np.flatnonzero(np.abs(y) > 0)
        xmin = max(omega[support[0]] * 1.05, -np.pi)
        xmax = min(omega[support[-1]] * 1.05, np.pi)
    else:
        xmin, xmax = -np.pi, np.pi

    ax = _target_axes(ax, subplot_mode)
    ax.plot(omega, y, linewidth=1.5)
    ax.set_title(rf'Magnitude of ${name}(e^{{j\omega}})$')
    ax.set_xlabel(r'$\omega$')
    ax.set_ylabel(rf'$|{name}(e^{{j\omega}})|$')
    ax.set_xticks(PI_TICKS)
    ax.set_xticklabels(PI_LABELS)
    ax.set_ylim(*y_range)
    ax.set_xlim(xmin, xmax)
    ax.grid(True, alpha=0.3)
    return ax


def plot_re_im(H, subplot_mode: bool = False, omega=None, name: str = 'H', ax=None):
    """3-D curve of (omega, Re H, Im H) for complex spectra."""
    H = np.asarray(as_1d(H, "H"), dtype=np.complex128)
    omega = default_omega(H.size) if omega is None else as_1d(omega, "omega")

    ax = _target_axes(ax, subplot_mode, projection='3d')
    ax.plot(omega, H.real, H.imag, linewidth=1.5)
    ax.set_xlabel(r'$\omega$')
    ax.set_ylabel(rf'Re ${name}(\omega)$')
    ax.set_zlabel(rf'Im ${name}(\omega)$')
    ax.set_title(rf'Complex-valued frequency response of ${name}(e^{{j\omega}})$')
    return ax
