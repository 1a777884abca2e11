#!/usr/bin/env python3
"""
DTFT transform pair and frequency-axis helpers.
==============================================

Spectra are stored centred: index 0 holds -pi and the last index +pi, with
the canonical axis ``np.linspace(-pi, pi, N)``. The forward transform divides
by N and the inverse multiplies it back, so the pair is an exact round trip.
"""

import logging
from typing import Tuple

import numpy as np

from .errors import InvalidArgumentError
from .interpolation import interp1, validate_interp_method

log = logging.getLogger(__name__)


def as_1d(values, name: str) -> np.ndarray:
    """Coerce to a 1-D array, rejecting anything with more dimensions."""
    arr = np.asarray(values)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise InvalidArgumentError(f"{name} must be one-dimensional, got shape {arr.shape}")
    return arr


def default_omega(n: int) -> np.ndarray:
    """Canonical frequency axis: ``n`` points uniformly over [-pi, pi]."""
    return np.linspace(-np.pi, np.pi, int(n))


def dtft(time_signal) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the DTFT of a finite sequence on N uniform frequencies.

    Parameters
    ----------
    time_signal : array_like
        Uniformly sampled 1-D signal, real or complex.

    Returns
    -------
    X : np.ndarray
        Centred, N-normalised spectrum ``fftshift(fft(x)) / N``.
    omega : np.ndarray
        Matching axis from -pi to pi.
    """
    x = as_1d(time_signal, "time_signal")
    if x.size == 0:
        raise InvalidArgumentError("time_signal must contain at least one sample")

    n = x.size
    X = np.fft.fftshift(np.fft.fft(x)) / n
    log.debug("dtft: %d samples", n)
    return X, default_omega(n)


def idtft(X_dtft) -> np.ndarray:
    """
    Invert :func:`dtft`.

    Returns the complex time signal ``ifft(ifftshift(X)) * N``. No cleanup of
    non-finite values is done here.
    """
    X = as_1d(X_dtft, "X_dtft")
    n = X.size
    if n < 1:
        raise InvalidArgumentError("X_dtft must contain at least one sample")
    return np.fft.ifft(np.fft.ifftshift(X)) * n


def freq_shift_periodic(omega, d: float) -> np.ndarray:
    """
    Shift a frequency vector by ``d`` and wrap it back into [-pi, pi).

    Evaluating H at the result gives H(e^{j(w - d)}) for a 2pi-periodic H.
    """
    omega = np.asarray(omega, dtype=np.float64)
    shifted = np.mod(omega - d + np.pi, 2 * np.pi) - np.pi
    # np.mod can round up to exactly 2pi
    return np.where(shifted >= np.pi, shifted - 2 * np.pi, shifted)


def c2d_sample(X_ct, omega_ct, Ts: float, method: str = 'linear') -> np.ndarray:
    """
    Sample a continuous-time spectrum onto the DTFT axis.

    The digital axis keeps the resolution of ``omega_ct``; each digital
    frequency w reads X_ct at w / Ts (zero outside the supplied range) and
    the result is scaled by 1/Ts.
    """
    X_ct = as_1d(X_ct, "X_ct")
    omega_ct = as_1d(omega_ct, "omega_ct").astype(np.float64)
    method = validate_interp_method(method, "method")
    if X_ct.size != omega_ct.size:
        raise InvalidArgumentError(
            f"X_ct and omega_ct lengths differ ({X_ct.size} vs {omega_ct.size})")
    if not Ts > 0:
        raise InvalidArgumentError(f"Ts must be positive, got {Ts}")

    w = default_omega(omega_ct.size)
    X_dtft = interp1(omega_ct, X_ct, w / Ts, method, fill_value=0.0)
    return X_dtft / Ts
