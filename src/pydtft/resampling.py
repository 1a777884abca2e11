#!/usr/bin/env python3
"""
Integer-factor resampling of DTFT spectra.
==========================================

Both operators work on the centred spectrum and its [-pi, pi] axis.

Upsampling by U (zero insertion in time) compresses the spectrum U times
and repeats it: the new spectrum at w is the old one at (U*w) wrapped into
[-pi, pi). An optional interpolation low-pass with cutoff pi/U and gain U
keeps only the baseband image.

Downsampling by D stretches the spectrum and folds the D shifted copies on
top of each other:

    Y(w) = (1/D) * sum_{k=0}^{D-1} X((w - 2*pi*k) / D)

An optional decimation low-pass with cutoff pi/D suppresses the aliases
before the sum.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .errors import InvalidArgumentError
from .filters import apply_filter, best_lowpass_filter
from .interpolation import LARGE_N, interp1, make_interpolant, validate_interp_method
from .options import OptionsMixin
from .outliers import remove_outliers, validate_outlier_method
from .transforms import as_1d, default_omega, freq_shift_periodic

log = logging.getLogger(__name__)

# max|diff(H)| above this fraction of the range marks a discontinuous spectrum
DISCONTINUITY_RATIO = 0.1


@dataclass
class ResampleOptions(OptionsMixin):
    """Settings shared by :func:`upsample_dtft` and :func:`downsample_dtft`."""
    apply_lpf: bool = False
    apply_outlier_removal: bool = False
    mov_size: Optional[float] = None
    outlier_method: str = 'movmean'
    interp_method: str = 'linear'

    def __post_init__(self):
        self.outlier_method = validate_outlier_method(self.outlier_method)
        self.interp_method = validate_interp_method(self.interp_method)
        if self.mov_size is not None and not self.mov_size > 0:
            raise InvalidArgumentError(f"mov_size must be positive, got {self.mov_size!r}")

    @classmethod
    def coerce(cls, options=None, **overrides):
        # apply_interp_lpf / apply_decim_lpf name the same switch per operator
        for alias in ('apply_interp_lpf', 'apply_decim_lpf'):
            if alias in overrides:
                overrides['apply_lpf'] = overrides.pop(alias)
        return super().coerce(options, **overrides)


class OmegaCache:
    """
    Remembers the last output axis built for a (factor, input length) pair.

    Owned by the caller; a new key overwrites the single entry. Not safe to
    share between threads.
    """

    def __init__(self):
        self.key: Optional[Tuple[int, int]] = None
        self.omega: Optional[np.ndarray] = None
        self.hits = 0

    def get(self, factor: int, n: int, size: int) -> np.ndarray:
        key = (factor, n)
        if self.omega is None or self.key != key or self.omega.size != size:
            self.key = key
            self.omega = default_omega(size)
            log.debug("OmegaCache: new axis for factor=%d, N=%d (%d points)", factor, n, size)
        else:
            self.hits += 1
        return self.omega

    def clear(self) -> None:
        self.key = None
        self.omega = None
        self.hits = 0


def _check_factor(factor, name: str) -> int:
    if isinstance(factor, (bool, np.bool_)):
        raise InvalidArgumentError(f"{name} must be an integer greater than 1, got {factor!r}")
    if isinstance(factor, (float, np.floating)) and float(factor).is_integer():
        factor = int(factor)
    if not isinstance(factor, (int, np.integer)) or factor <= 1:
        raise InvalidArgumentError(f"{name} must be an integer greater than 1, got {factor!r}")
    return int(factor)


def _matched_axis(H: np.ndarray, omega) -> np.ndarray:
    if omega is not None:
        omega = as_1d(omega, "omega").astype(np.float64)
        if omega.size == H.size:
            return omega
        warnings.warn(
            f"omega length {omega.size} does not match H ({H.size}). "
            f"Resetting omega to linspace(-pi, pi, {H.size}).")
    return default_omega(H.size)


def _output_axis(cache: Optional[OmegaCache], factor: int, n: int, size: int) -> np.ndarray:
    if cache is None:
        return default_omega(size)
    return cache.get(factor, n, size)


def _sampler(omega: np.ndarray, H: np.ndarray, method: str, fill_value=None):
    """Interpolant of H over omega; one prebuilt object for very long inputs."""
    if H.size > LARGE_N:
        return make_interpolant(omega, H, method, fill_value=fill_value)
    return lambda wq: interp1(omega, H, wq, method, fill_value=fill_value)


def select_decimation_method(H, interp_method: str = 'linear') -> str:
    """
    Interpolation method the downsampler will actually use for ``H``.

    A spectrum whose largest sample-to-sample jump exceeds 10% of its range
    is treated as piecewise (discontinuous); plain 'linear' is then swapped
    for shape-preserving 'pchip'. Any other requested method is kept.
    """
    interp_method = validate_interp_method(interp_method)
    H = as_1d(H, "H")
    if interp_method != 'linear' or H.size < 2:
        return interp_method

    values = np.abs(H) if np.iscomplexobj(H) else H.astype(np.float64)
    finite = values[np.isfinite(values)]
    if finite.size < 2:
        return interp_method

    span = np.ptp(finite)
    # Flat up to rounding, e.g. the magnitude of a pure delay
    if span <= 8 * np.finfo(np.float64).eps * np.max(np.abs(finite)):
        return interp_method
    jump = np.nanmax(np.abs(np.diff(values)))
    if jump > DISCONTINUITY_RATIO * span:
        return 'pchip'
    return interp_method


def upsample_dtft(H, omega, U: int, options: Optional[ResampleOptions] = None,
                  cache: Optional[OmegaCache] = None, **kwargs) -> Tuple[np.ndarray, np.ndarray]:
    """
    Upsample a DTFT spectrum by an integer factor.

    Parameters
    ----------
    H : array_like
        Centred spectrum of length N.
    omega : array_like or None
        Its axis; replaced (with a warning) if the length does not match.
    U : int
        Upsampling factor, > 1.
    options : ResampleOptions or dict, optional
        ``apply_lpf`` (alias ``apply_interp_lpf``), ``apply_outlier_removal``,
        ``mov_size``, ``outlier_method``, ``interp_method``.
    cache : OmegaCache, optional
        Reuses the output axis across calls with the same shape.

    Returns
    -------
    H_up : np.ndarray
        Spectrum of length N*U.
    omega_up : np.ndarray
        Matching axis.
    """
    U = _check_factor(U, "U")
    opts = ResampleOptions.coerce(options, **kwargs)
    H = as_1d(H, "H")
    omega = _matched_axis(H, omega)
    n = H.size

    omega_up = _output_axis(cache, U, n, n * U)
    log.info("Upsampling %d -> %d points (U=%d)", n, omega_up.size, U)

    query = freq_shift_periodic(omega_up * U, 0.0)
    H_up = _sampler(omega, H, opts.interp_method, fill_value=0.0)(query)

    if opts.apply_lpf:
        lpf = U * best_lowpass_filter(H_up, cutoff=np.pi / U)
        H_up = apply_filter(H_up, lpf)

    if opts.apply_outlier_removal:
        H_up = remove_outliers(H_up, omega_up, mov_size=opts.mov_size,
                               outlier_method=opts.outlier_method,
                               interp_method=opts.interp_method)
    return H_up, omega_up


def downsample_dtft(H, omega, D: int, options: Optional[ResampleOptions] = None,
                    cache: Optional[OmegaCache] = None, return_metadata: bool = False,
                    **kwargs):
    """
    Downsample a DTFT spectrum by an integer factor with the aliasing sum.

    Parameters
    ----------
    H : array_like
        Centred spectrum of length N.
    omega : array_like or None
        Its axis; replaced (with a warning) if the length does not match.
    D : int
        Downsampling factor, > 1.
    options : ResampleOptions or dict, optional
        ``apply_lpf`` (alias ``apply_decim_lpf``), ``apply_outlier_removal``,
        ``mov_size``, ``outlier_method``, ``interp_method``.
    cache : OmegaCache, optional
        Reuses the output axis across calls with the same shape.
    return_metadata : bool
        Also return a dict recording the interpolation method actually used.

    Returns
    -------
    H_down : np.ndarray
        Spectrum of length floor(N/D).
    omega_down : np.ndarray
        Matching axis.
    metadata : dict
        Only with ``return_metadata``.
    """
    D = _check_factor(D, "D")
    opts = ResampleOptions.coerce(options, **kwargs)
    H = as_1d(H, "H")
    omega = _matched_axis(H, omega)
    n = H.size

    size = n // D
    if size < 1:
        raise InvalidArgumentError(f"D={D} leaves no samples from a length-{n} spectrum")
    omega_down = _output_axis(cache, D, n, size)

    if opts.apply_lpf:
        lpf = best_lowpass_filter(H, cutoff=np.pi / D)
        H = apply_filter(H, lpf)

    interp_method = select_decimation_method(H, opts.interp_method)
    if interp_method != opts.interp_method:
        log.info("Discontinuous spectrum: using %s instead of %s",
                 interp_method, opts.interp_method)

    log.info("Downsampling %d -> %d points (D=%d, %s)", n, size, D, interp_method)

    sample = _sampler(omega, H, interp_method)
    H_down = np.zeros(size, dtype=np.result_type(H.dtype, np.float64))
    for k in range(D):
        shifted = freq_shift_periodic(omega_down / D, 2 * np.pi * k / D)
        H_down += sample(shifted)
    H_down /= D

    if opts.apply_outlier_removal:
        H_down = remove_outliers(H_down, omega_down, mov_size=opts.mov_size,
                                 outlier_method=opts.outlier_method,
                                 interp_method=opts.interp_method)

    if return_metadata:
        metadata: Dict[str, object] = {
            'factor': D,
            'input_length': n,
            'output_length': size,
            'requested_interp_method': opts.interp_method,
            'interp_method': interp_method,
            'decimation_lpf': opts.apply_lpf,
            'outlier_removal': opts.apply_outlier_removal,
        }
        return H_down, omega_down, metadata
    return H_down, omega_down
