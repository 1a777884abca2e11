#!/usr/bin/env python3
"""
Frequency-domain low-pass masks and their application.
======================================================

``best_lowpass_filter`` builds a gain mask over the DTFT axis, either around
an explicit cutoff or around the occupied bandwidth of a spectrum (the
highest frequency still above ``threshold_gain * max|X|``).
``apply_filter`` multiplies a spectrum by such a mask, resampling the mask
first when the lengths differ.

Shaping methods
---------------
- 'ideal'                    : brick wall, 1 for |w| <= cutoff
- 'tukey' / 'raised-cosine'  : half-cosine roll-off over ``transition``
- 'gaussian'                 : Gaussian roll-off, no hard stopband zero
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import DomainError, InvalidArgumentError
from .interpolation import interp1, validate_interp_method
from .options import OptionsMixin
from .outliers import default_mov_size, remove_outliers, validate_outlier_method
from .transforms import as_1d, default_omega

log = logging.getLogger(__name__)

LOWPASS_METHODS = ('ideal', 'tukey', 'gaussian', 'raised-cosine')


@dataclass
class LowPassOptions(OptionsMixin):
    """Settings for :func:`best_lowpass_filter`."""
    threshold_gain: float = 0.1
    omega: Optional[np.ndarray] = None
    transition: float = np.pi / 10
    method: str = 'ideal'
    cutoff: Optional[float] = None  # None -> derived from the signal

    def __post_init__(self):
        if not isinstance(self.method, str) or self.method.lower() not in LOWPASS_METHODS:
            raise InvalidArgumentError(
                f"method={self.method!r} is not a valid filter method; "
                f"choose from: {', '.join(LOWPASS_METHODS)}")
        self.method = self.method.lower()
        if not self.transition > 0:
            raise InvalidArgumentError(f"transition must be positive, got {self.transition!r}")
        if self.cutoff is not None and not np.isfinite(self.cutoff):
            # A NaN cutoff means "derive it", as with None.
            self.cutoff = None
        if self.omega is not None:
            self.omega = as_1d(self.omega, "omega").astype(np.float64)


@dataclass
class FilterOptions(OptionsMixin):
    """Settings for :func:`apply_filter`."""
    omega: Optional[np.ndarray] = None
    apply_outlier_removal: bool = False
    mov_size: Optional[float] = None
    outlier_method: str = 'movmean'
    interp_method: str = 'linear'
    resize_interp_method: str = 'nearest'

    def __post_init__(self):
        self.outlier_method = validate_outlier_method(self.outlier_method)
        self.interp_method = validate_interp_method(self.interp_method)
        self.resize_interp_method = validate_interp_method(
            self.resize_interp_method, 'resize_interp_method')
        if self.mov_size is not None and not self.mov_size > 0:
            raise InvalidArgumentError(f"mov_size must be positive, got {self.mov_size!r}")
        if self.omega is not None:
            self.omega = as_1d(self.omega, "omega").astype(np.float64)


def occupied_cutoff(signal, omega, threshold_gain: float) -> float:
    """
    Highest |w| whose sample is still at least ``threshold_gain * max|X|``.

    Scans the axis in ascending order and returns |omega| at the last index
    meeting the threshold.
    """
    mag = np.abs(as_1d(signal, "signal"))
    finite = np.isfinite(mag)
    if not finite.any():
        raise DomainError("cannot derive a cutoff from a signal with no finite values")

    threshold = threshold_gain * mag[finite].max()
    above = np.flatnonzero(finite & (mag >= threshold))
    cutoff = abs(float(omega[above[-1]]))
    log.debug("threshold %.4g -> cutoff index %d, cutoff %.6f rad", threshold, above[-1], cutoff)
    return cutoff


def best_lowpass_filter(signal, options: Optional[LowPassOptions] = None, **kwargs) -> np.ndarray:
    """
    Build a low-pass mask on the DTFT axis of ``signal``.

    Parameters
    ----------
    signal : array_like
        Spectrum whose length (and, without ``cutoff``, whose bandwidth)
        defines the mask.
    options : LowPassOptions or dict, optional
        threshold_gain : float
            Fraction of the peak magnitude that marks the band edge.
        omega : np.ndarray
            Frequency axis, defaults to linspace(-pi, pi, len(signal)).
        transition : float
            Roll-off width in rad/sample for the smooth methods.
        method : str
            'ideal', 'tukey', 'gaussian' or 'raised-cosine'.
        cutoff : float
            Explicit cutoff in rad/sample; skips the bandwidth search.

    Returns
    -------
    np.ndarray
        Real gain mask, same length as the axis.
    """
    opts = LowPassOptions.coerce(options, **kwargs)
    signal = as_1d(signal, "signal")
    omega = opts.omega if opts.omega is not None else default_omega(signal.size)

    cutoff = opts.cutoff
    if cutoff is None:
        if omega.size != signal.size:
            raise InvalidArgumentError(
                f"omega length {omega.size} does not match signal length {signal.size}")
        cutoff = occupied_cutoff(signal, omega, opts.threshold_gain)

    aw = np.abs(omega)
    transition = opts.transition
    passband = aw <= cutoff

    if opts.method == 'ideal':
        H = passband.astype(np.float64)
    elif opts.method in ('tukey', 'raised-cosine'):
        H = 0.5 * (1 + np.cos(np.pi * (aw - cutoff) / transition))
        H[passband] = 1.0
        H[aw > cutoff + transition] = 0.0
    else:  # gaussian
        H = np.exp(-((aw - cutoff) ** 2) / (2 * transition ** 2))
        H[passband] = 1.0

    log.info("Low-pass mask: %s, cutoff %.6f rad (%.4f pi), %d points",
             opts.method, cutoff, cutoff / np.pi, H.size)
    return H


def resize_filter(filter_mask, n: int, method: str = 'nearest') -> np.ndarray:
    """Resample a mask from its own [-pi, pi] grid onto an n-point grid."""
    mask = as_1d(filter_mask, "filter")
    if mask.size == n:
        return mask
    return interp1(default_omega(mask.size), mask, default_omega(n), method)


def apply_filter(input_signal, filter_mask, options: Optional[FilterOptions] = None,
                 **kwargs) -> np.ndarray:
    """
    Multiply a spectrum by a filter mask.

    Parameters
    ----------
    input_signal : array_like
        Spectrum to filter.
    filter_mask : array_like
        Gains; resampled with ``resize_interp_method`` when its length
        differs from the input.
    options : FilterOptions or dict, optional
        ``omega``, ``apply_outlier_removal`` and the pass-through
        ``mov_size``, ``outlier_method``, ``interp_method``.

    Returns
    -------
    np.ndarray
        Filtered spectrum.
    """
    opts = FilterOptions.coerce(options, **kwargs)
    x = as_1d(input_signal, "input")
    mask = as_1d(filter_mask, "filter")

    if mask.size != x.size:
        log.debug("Resizing filter %d -> %d (%s)", mask.size, x.size, opts.resize_interp_method)
        mask = resize_filter(mask, x.size, opts.resize_interp_method)

    filtered = x * mask

    if opts.apply_outlier_removal:
        omega = opts.omega
        if omega is None or omega.size != x.size:
            if omega is not None:
                warnings.warn(
                    f"omega length {omega.size} does not match input length {x.size}; "
                    f"using linspace(-pi, pi, {x.size})")
            omega = default_omega(x.size)
        mov_size = opts.mov_size if opts.mov_size is not None else default_mov_size(x.size)
        filtered = remove_outliers(filtered, omega, mov_size=mov_size,
                                   outlier_method=opts.outlier_method,
                                   interp_method=opts.interp_method)
    return filtered
