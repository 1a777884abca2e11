#!/usr/bin/env python3
"""
Example: Remove random noise from a two-tone signal in the DTFT domain.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import logging
import numpy as np
import matplotlib.pyplot as plt

from pydtft import dtft, idtft, best_lowpass_filter, apply_filter
from pydtft.plotting import mag_plot


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s: %(message)s'
    )

    fs = 1000            # Sampling frequency (Hz)
    n = 1500             # Length of signal
    t = np.arange(n) / fs

    s = 0.8 + 0.7 * np.sin(2 * np.pi * 10 * t) + np.sin(2 * np.pi * 12 * t)
    x = s + 2 * np.random.default_rng(1).standard_normal(n)

    X, omega = dtft(x)

    # Cutoff where the spectrum falls below 25% of its peak
    H = best_lowpass_filter(X, threshold_gain=0.25)
    X_filtered = apply_filter(X, H)
    x_filtered = idtft(X_filtered).real

    # Spectral gating: drop the remaining weak bins
    X_gated = X_filtered.copy()
    X_gated[np.abs(X_gated) < 0.3] = 0
    x_gated = idtft(X_gated).real

    fig = plt.figure(figsize=(14, 10))
    ax = fig.add_subplot(3, 3, 1)
    ax.plot(1000 * t, s, linewidth=1.5)
    ax.set_title("Signal without random noise")
    ax = fig.add_subplot(3, 3, 2)
    ax.plot(1000 * t, x, linewidth=1.5)
    ax.set_title("Signal with zero-mean random noise")

    mag_plot(X, omega=omega, name='X', ax=fig.add_subplot(3, 3, 4))
    mag_plot(H, name='H', ax=fig.add_subplot(3, 3, 5))
    mag_plot(X_filtered, omega=omega, name='X_f', ax=fig.add_subplot(3, 3, 6))

    ax = fig.add_subplot(3, 3, 7)
    ax.plot(1000 * t, x_filtered, linewidth=1.5)
    ax.set_title("Low-pass filtered")
    mag_plot(X_gated, omega=omega, name='X_g', ax=fig.add_subplot(3, 3, 8))
    ax = fig.add_subplot(3, 3, 9)
    ax.plot(1000 * t, x_gated, linewidth=1.5)
    ax.set_title("Spectral gating")

    for a in fig.axes:
        a.grid(True, alpha=0.3)
    plt.tight_layout()

    rms = lambda e: np.sqrt(np.mean(e ** 2))
    print(f"RMS error, noisy   : {rms(x - s):.3f}")
    print(f"RMS error, low-pass: {rms(x_filtered - s):.3f}")
    print(f"RMS error, gated   : {rms(x_gated - s):.3f}")
    plt.show()


if __name__ == '__main__':
    main()
