#!/usr/bin/env python3
"""
Verification tools for transforms, masks and processed spectra.
"""

import logging
from typing import Any, Dict

import numpy as np
import matplotlib.pyplot as plt

from .errors import InvalidArgumentError
from .transforms import as_1d, default_omega, dtft, idtft

log = logging.getLogger(__name__)


def verify_round_trip(x, atol: float = 1e-9) -> Dict[str, Any]:
    """
    Check that idtft(dtft(x)) reproduces x.

    Parameters
    ----------
    x : array_like
        Time signal
    atol : float
        Largest acceptable absolute error

    Returns
    -------
    dict
        Verification results
    """
    x = as_1d(x, "x")
    X, _ = dtft(x)
    y = idtft(X)
    if not np.iscomplexobj(x):
        y = y.real
    err = np.abs(y - x)
    max_error = float(err.max()) if err.size else 0.0

    results = {
        'length': int(x.size),
        'max_error': max_error,
        'rms_error': float(np.sqrt(np.mean(err ** 2))) if err.size else 0.0,
        'passes': max_error <= atol,
    }
    log.info("Round trip: N=%d, max error %.3e (%s)", x.size, max_error,
             "PASS" if results['passes'] else "FAIL")
    return results


def verify_lowpass_mask(mask, omega=None, cutoff: float = np.pi / 2,
                        transition: float = 0.0) -> Dict[str, Any]:
    """
    Check a low-pass mask against its nominal band edges.

    Passband is |w| < cutoff, stopband is |w| > cutoff + transition.
    """
    mask = as_1d(mask, "mask").astype(np.float64)
    omega = default_omega(mask.size) if omega is None else as_1d(omega, "omega")
    aw = np.abs(omega)

    pb = aw < cutoff
    sb = aw > cutoff + transition
    pb_min = float(mask[pb].min()) if pb.any() else np.nan
    pb_max = float(mask[pb].max()) if pb.any() else np.nan
    sb_max = float(np.abs(mask[sb]).max()) if sb.any() else 0.0

    results = {
        'passband_min': pb_min,
        'passband_max': pb_max,
        'stopband_peak': sb_max,
        'passband_points': int(pb.sum()),
        'stopband_points': int(sb.sum()),
        'meets_passband': bool(pb.any() and pb_min == 1.0 and pb_max == 1.0),
        'meets_stopband': sb_max == 0.0,
    }
    results['passes'] = results['meets_passband'] and results['meets_stopband']
    return results


def compare_spectra(
    reference,
    candidate,
    omega=None,
    plot: bool = False
) -> Dict[str, Any]:
    """
    Compare a processed spectrum with a reference.

    Parameters
    ----------
    reference : array_like
        Expected spectrum
    candidate : array_like
        Spectrum under test, same length
    omega : array_like, optional
        Shared frequency axis
    plot : bool
        Overlay both magnitudes

    Returns
    -------
    dict
        Comparison results
    """
    reference = as_1d(reference, "reference")
    candidate = as_1d(candidate, "candidate")
    if reference.size != candidate.size:
        raise InvalidArgumentError(f"length mismatch: {reference.size} vs {candidate.size}")
    omega = default_omega(reference.size) if omega is None else as_1d(omega, "omega")

    err = np.abs(candidate - reference)
    results = {
        'max_error': float(np.nanmax(err)),
        'rms_error': float(np.sqrt(np.nanmean(err ** 2))),
        'all_finite': bool(np.all(np.isfinite(candidate))),
        'argmax_omega': float(omega[np.nanargmax(err)]),
    }

    if plot:
        fig, ax = plt.subplots(figsize=(10, 6))
        ax.plot(omega, np.abs(reference), label='Reference', linewidth=2)
        ax.plot(omega, np.abs(candidate), label='Candidate', linewidth=1, alpha=0.7)
        ax.set_xlabel(r'$\omega$ (rad/sample)')
        ax.set_ylabel('Magnitude')
        ax.set_title(f"Spectrum comparison (max error {results['max_error']:.3e})")
        ax.grid(True, alpha=0.3)
        ax.legend()
        results['figure'] = fig

    return results
