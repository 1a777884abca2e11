#!/usr/bin/env python3
"""
Example: Filter, downsample and upsample a triangular spectrum.

A triangle X(w) = 1 - |w|/pi is passed through an all-pass mask and a
sign mask (+1 for w > 0, -1 for w < 0), compressed by 2, expanded by 2
again and recombined.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import logging
import numpy as np
import matplotlib.pyplot as plt

from pydtft import apply_filter, downsample_dtft, upsample_dtft, OmegaCache
from pydtft.plotting import mag_plot


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s: %(message)s'
    )

    omega = np.linspace(-np.pi, np.pi, 100_000)
    cache = OmegaCache()

    H3 = np.ones_like(omega)
    H4 = np.sign(omega)
    X = 1 - np.abs(omega / np.pi)

    A3 = apply_filter(X, H3, apply_outlier_removal=True)
    A4 = apply_filter(X, H4, apply_outlier_removal=True)

    Y3, omega_d3 = downsample_dtft(A3, omega, 2, cache=cache, apply_outlier_removal=True)
    Y4, omega_d4, meta = downsample_dtft(A4, omega, 2, cache=cache, return_metadata=True,
                                         apply_outlier_removal=True)
    print(f"Aliasing sum for the sign-masked spectrum used {meta['interp_method']!r}")

    W3, omega_u = upsample_dtft(Y3, omega_d3, 2, cache=cache, apply_outlier_removal=True)
    W4, _ = upsample_dtft(Y4, omega_d4, 2, cache=cache, apply_outlier_removal=True)
    V4 = apply_filter(W4, H4, apply_outlier_removal=True)
    Z = V4 + W3

    fig = plt.figure(figsize=(14, 10))
    panels = [(X, omega, 'X'), (A4, omega, 'A_4'), (A3, omega, 'A_3'),
              (Y3, omega_d3, 'Y_3'), (Y4, omega_d4, 'Y_4'), (W3, omega_u, 'W_3'),
              (W4, omega_u, 'W_4'), (V4, omega_u, 'V_4'), (Z, omega_u, 'Z')]
    for i, (spectrum, w, name) in enumerate(panels, start=1):
        mag_plot(spectrum, plot_negative=True, omega=w, name=name,
                 ax=fig.add_subplot(3, 3, i))
    plt.tight_layout()
    plt.show()


if __name__ == '__main__':
    main()
