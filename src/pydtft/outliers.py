#!/usr/bin/env python3
"""
Outlier cleanup and NaN repair for sampled spectra.
==================================================

Filtering and resampling leave occasional spikes behind (interpolation
across discontinuities, products with hard-edged masks). ``remove_outliers``
detects them with a named statistical rule, overwrites them by
interpolating from their clean neighbours, and repeats with progressively
smaller detection windows:

- large windows catch gross spikes first
- smaller windows then find subtler anomalies without flattening
  legitimate fine structure

Every loop is capped, so the worst case is a best-effort result rather than
an exception. ``remove_nans`` is the final pass and guarantees a finite
array whenever at least one finite sample exists.
"""

import logging
import math
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy import ndimage, stats

from .errors import DomainError, InvalidArgumentError
from .interpolation import LARGE_N, interp1, make_interpolant, validate_interp_method
from .options import OptionsMixin
from .transforms import as_1d, default_omega

log = logging.getLogger(__name__)

OUTLIER_METHODS = ('median', 'mean', 'quartiles', 'grubbs', 'gesd', 'movmedian', 'movmean')

MAX_ITERATIONS = 10
MIN_WINDOW = 10
WINDOW_SHRINK = math.sqrt(10)
THRESHOLD_FACTOR = 3.0
ALPHA = 0.05

# 1 / (sqrt(2) * erfcinv(3/2)): scales a MAD to a normal standard deviation.
MAD_SCALE = 1.482602218505602

# Elements of the sliding-window matrix evaluated per block.
_BLOCK_ELEMENTS = 1 << 22


def default_mov_size(n: int) -> float:
    return max(n / 100, float(MIN_WINDOW))


def validate_outlier_method(method: str, field: str = 'outlier_method') -> str:
    if not isinstance(method, str) or method.lower() not in OUTLIER_METHODS:
        raise InvalidArgumentError(
            f"{field}={method!r} is not supported; "
            f"choose from: {', '.join(OUTLIER_METHODS)}"
        )
    return method.lower()


@dataclass
class OutlierOptions(OptionsMixin):
    """Detection and replacement settings for :func:`remove_outliers`."""
    mov_size: Optional[float] = None  # None -> max(N/100, 10)
    outlier_method: str = 'movmean'
    interp_method: str = 'linear'

    def __post_init__(self):
        if self.mov_size is not None:
            if not np.isscalar(self.mov_size) or not self.mov_size > 0:
                raise InvalidArgumentError(
                    f"mov_size must be a positive number, got {self.mov_size!r}")
            self.mov_size = float(self.mov_size)
        self.outlier_method = validate_outlier_method(self.outlier_method)
        self.interp_method = validate_interp_method(self.interp_method)

    def resolve_mov_size(self, n: int) -> float:
        return self.mov_size if self.mov_size is not None else default_mov_size(n)


# ───────────────────────── detection ────────────────────────── #

def _window_extent(window: float):
    """Samples before and after the centre for a (possibly fractional) window."""
    if not window > 0:
        raise InvalidArgumentError(f"window must be positive, got {window!r}")
    before = int(math.floor(window / 2))
    after = max(int(math.ceil(window / 2)) - 1, 0)
    return before, after


def _window_sums(v: np.ndarray, before: int, after: int) -> np.ndarray:
    """Sum of ``v`` over each window [i - before, i + after], clipped at the ends."""
    cs = np.concatenate(([0.0], np.cumsum(v)))
    idx = np.arange(v.size)
    lo = np.maximum(idx - before, 0)
    hi = np.minimum(idx + after + 1, v.size)
    return cs[hi] - cs[lo]


def _movmean_flags(x: np.ndarray, before: int, after: int) -> np.ndarray:
    """
    Leave-one-out moving mean/std test from running sums, O(N) in the window.

    The sample under test is subtracted from its own window's count, sum and
    sum of squares; non-finite samples contribute nothing.
    """
    finite = np.isfinite(x)
    v = np.where(finite, x, 0.0)
    f = finite.astype(np.float64)
    sq = v * v

    count = _window_sums(f, before, after) - f
    s1 = _window_sums(v, before, after) - v
    s2 = _window_sums(sq, before, after) - sq

    with np.errstate(invalid='ignore', divide='ignore'):
        center = s1 / count
        var = (s2 - s1 * center) / (count - 1)
        # Differences of prefix sums are only good to eps * total energy.
        floor = 4 * np.finfo(np.float64).eps * sq.sum() / count
        scale = np.sqrt(np.fmax(var, floor))
        flags = np.abs(v - center) > THRESHOLD_FACTOR * scale

    return flags & finite & (count >= 2)


def _exact_movmedian_flags(xf: np.ndarray, before: int, after: int,
                           rows: np.ndarray) -> np.ndarray:
    """Leave-one-out moving median/MAD test for selected rows, by brute force."""
    width = before + after + 1
    padded = np.concatenate((np.full(before, np.nan), xf, np.full(after, np.nan)))
    view = sliding_window_view(padded, width)

    out = np.zeros(rows.size, dtype=bool)
    step = max(1, _BLOCK_ELEMENTS // width)
    with warnings.catch_warnings():
        # Rows with no usable neighbours give NaN stats and are never flagged.
        warnings.simplefilter('ignore', RuntimeWarning)
        for start in range(0, rows.size, step):
            block = view[rows[start:start + step]]
            sample = block[:, before].copy()
            block[:, before] = np.nan
            c = np.nanmedian(block, axis=1)
            s = MAD_SCALE * np.nanmedian(np.abs(block - c[:, None]), axis=1)
            with np.errstate(invalid='ignore'):
                out[start:start + block.shape[0]] = np.abs(sample - c) > THRESHOLD_FACTOR * s
    return out


def _movmedian_flags(x: np.ndarray, before: int, after: int) -> np.ndarray:
    """
    Leave-one-out moving median/MAD test.

    Interior rows whose window is all finite use compiled rank filters: the
    neighbour order statistics come from full-window ranks with the sample
    under test removed, which gives the exact local median plus a lower and
    an upper bound on the local MAD. Only rows the bounds cannot decide, and
    rows at the ends or next to non-finite samples, go through the
    brute-force path.
    """
    n = x.size
    width = before + after + 1
    m = width - 1
    finite = np.isfinite(x)
    xf = np.where(finite, x, np.nan)

    if m < 3 or n <= before + after:
        rows = np.flatnonzero(finite)
        flags = np.zeros(n, dtype=bool)
        flags[rows] = _exact_movmedian_flags(xf, before, after, rows)
        return flags

    filled = np.where(finite, x, 0.0)
    ranks = {}

    def window_rank(k):
        if k not in ranks:
            ranks[k] = ndimage.rank_filter(filled, k, size=width, mode='nearest')
        return ranks[k]

    def neighbour_rank(k):
        # k-th smallest of the window once the centre sample is taken out
        lower = window_rank(k)
        return np.where(filled > lower, lower, window_rank(k + 1))

    if m % 2:
        center = neighbour_rank(m // 2)
    else:
        center = 0.5 * (neighbour_rank(m // 2 - 1) + neighbour_rank(m // 2))

    # The MAD is the median distance from the centre, i.e. the reach of the
    # tightest run of about m/2 consecutive order statistics around it.
    r = m // 2
    a0 = min((m - 1 - r) // 2, m - 2 - r)
    t_a0 = neighbour_rank(a0)
    t_a1 = neighbour_rank(a0 + 1)
    t_hi = neighbour_rank(a0 + r)
    t_hi1 = neighbour_rank(a0 + r + 1)
    t_low = t_hi1 if m % 2 else t_hi

    mad_low = np.maximum(np.minimum(center - t_a0, t_low - center), 0.0)
    mad_high = np.minimum(np.maximum(np.abs(center - t_a0), np.abs(t_hi - center)),
                          np.maximum(np.abs(center - t_a1), np.abs(t_hi1 - center)))

    dev = np.abs(filled - center)
    flags = dev > THRESHOLD_FACTOR * (MAD_SCALE * mad_high)
    undecided = ~flags & (dev > THRESHOLD_FACTOR * (MAD_SCALE * mad_low))

    bad = (~finite).astype(np.float64)
    idx = np.arange(n)
    exact = (undecided
             | (_window_sums(bad, before, after) - bad > 0)
             | (idx < before) | (idx >= n - after))
    rows = np.flatnonzero(exact & finite)
    log.debug("movmedian: %d of %d rows need the exact path", rows.size, n)

    flags[rows] = _exact_movmedian_flags(xf, before, after, rows)
    return flags & finite


def _grubbs_critical(n: int, alpha: float) -> float:
    t = stats.t.ppf(1 - alpha / (2 * n), n - 2)
    return (n - 1) / math.sqrt(n) * math.sqrt(t * t / (n - 2 + t * t))


def _grubbs(x: np.ndarray, alpha: float = ALPHA) -> np.ndarray:
    flags = np.zeros(x.size, dtype=bool)
    remaining = np.arange(x.size)
    while remaining.size > 2:
        vals = x[remaining]
        sd = vals.std(ddof=1)
        if sd == 0:
            break
        dev = np.abs(vals - vals.mean())
        worst = int(np.argmax(dev))
        if dev[worst] / sd <= _grubbs_critical(remaining.size, alpha):
            break
        flags[remaining[worst]] = True
        remaining = np.delete(remaining, worst)
    return flags


def _gesd(x: np.ndarray, alpha: float = ALPHA, max_outliers: Optional[int] = None) -> np.ndarray:
    n = x.size
    if max_outliers is None:
        max_outliers = int(math.ceil(0.1 * n))
    max_outliers = min(max_outliers, n - 2)

    remaining = np.arange(n)
    removed = []
    n_outliers = 0
    for i in range(1, max_outliers + 1):
        vals = x[remaining]
        sd = vals.std(ddof=1)
        if sd == 0:
            break
        dev = np.abs(vals - vals.mean())
        worst = int(np.argmax(dev))
        r_i = dev[worst] / sd

        m = n - i + 1
        p = 1 - alpha / (2 * m)
        t = stats.t.ppf(p, m - 2)
        lam = (m - 1) * t / math.sqrt((m - 2 + t * t) * m)

        removed.append(remaining[worst])
        remaining = np.delete(remaining, worst)
        if r_i > lam:
            n_outliers = i

    flags = np.zeros(n, dtype=bool)
    flags[removed[:n_outliers]] = True
    return flags


def is_outlier(signal, method: str = 'median', window: Optional[float] = None) -> np.ndarray:
    """
    Flag outliers in a 1-D array.

    Parameters
    ----------
    signal : array_like
        Values to test. Complex input is tested on its magnitude.
    method : str
        'median', 'mean', 'quartiles', 'grubbs', 'gesd', 'movmedian' or 'movmean'.
    window : float, optional
        Window length for the moving methods (ignored by the others).
        Defaults to ``max(N/100, 10)``.

    Returns
    -------
    np.ndarray
        Boolean mask, True at outliers. Non-finite samples are never flagged.
    """
    method = validate_outlier_method(method, 'method')
    x = as_1d(signal, "signal")
    if np.iscomplexobj(x):
        x = np.abs(x)
    x = x.astype(np.float64)

    finite = np.isfinite(x)
    flags = np.zeros(x.size, dtype=bool)
    if finite.sum() < 3:
        return flags

    if method in ('movmean', 'movmedian'):
        if window is None:
            window = default_mov_size(x.size)
        before, after = _window_extent(window)
        if method == 'movmean':
            return _movmean_flags(x, before, after)
        return _movmedian_flags(x, before, after)

    vals = x[finite]
    if method == 'median':
        med = np.median(vals)
        mad = MAD_SCALE * np.median(np.abs(vals - med))
        sub = np.abs(vals - med) > THRESHOLD_FACTOR * mad
    elif method == 'mean':
        sub = np.abs(vals - vals.mean()) > THRESHOLD_FACTOR * vals.std(ddof=1)
    elif method == 'quartiles':
        q1, q3 = np.percentile(vals, [25, 75])
        iqr = q3 - q1
        sub = (vals < q1 - 1.5 * iqr) | (vals > q3 + 1.5 * iqr)
    elif method == 'grubbs':
        sub = _grubbs(vals)
    else:
        sub = _gesd(vals)

    flags[finite] = sub
    return flags


# ───────────────────────── repair ────────────────────────── #

def _working_copy(signal, omega):
    x = as_1d(signal, "signal")
    x = x.astype(np.result_type(x.dtype, np.float64), copy=True)
    if omega is None:
        omega = default_omega(x.size)
    else:
        omega = as_1d(omega, "omega").astype(np.float64)
        if omega.size != x.size:
            log.warning("omega length %d does not match signal length %d; "
                        "using linspace(-pi, pi, %d)", omega.size, x.size, x.size)
            omega = default_omega(x.size)
    return x, omega


def remove_nans(signal, omega=None, method: str = 'linear') -> np.ndarray:
    """
    Replace non-finite samples by interpolation, then nearest-neighbour fill.

    Parameters
    ----------
    signal : array_like
        Real or complex 1-D array.
    omega : array_like, optional
        Sample positions; defaults to the canonical axis.
    method : str
        Interpolation method used for the repair passes.

    Returns
    -------
    np.ndarray
        Copy of ``signal`` with every entry finite.

    Raises
    ------
    DomainError
        If no entry of ``signal`` is finite.
    """
    method = validate_interp_method(method, 'method')
    x, omega = _working_copy(signal, omega)

    bad = ~np.isfinite(x)
    if bad.all():
        raise DomainError("Signal contains only non-finite values; cannot interpolate.")
    if not bad.any():
        return x

    log.debug("Repairing %d non-finite samples of %d", bad.sum(), x.size)
    iteration = 0
    while bad.any() and iteration < MAX_ITERATIONS:
        good = ~bad
        x[bad] = interp1(omega[good], x[good], omega[bad], method)
        bad = ~np.isfinite(x)
        iteration += 1

    if bad.any():
        # Interpolators such as 'next'/'previous' cannot extrapolate past the
        # data; copy the nearest finite sample by index instead.
        idx = np.arange(x.size)
        good = ~bad
        x[bad] = interp1(idx[good], x[good], idx[bad], 'nearest')
        log.debug("Nearest-neighbour fill used for %d samples", bad.sum())

    return x


def remove_outliers(signal, omega=None, options: Optional[OutlierOptions] = None,
                    **kwargs) -> np.ndarray:
    """
    Detect spikes and replace them by interpolation from clean samples.

    Parameters
    ----------
    signal : array_like
        Real or complex 1-D spectrum.
    omega : array_like, optional
        Sample positions; defaults to the canonical axis.
    options : OutlierOptions or dict, optional
        ``mov_size``, ``outlier_method``, ``interp_method``; keyword
        arguments override individual fields.

    Returns
    -------
    np.ndarray
        Cleaned copy of ``signal``, finite everywhere.
    """
    opts = OutlierOptions.coerce(options, **kwargs)
    x, omega = _working_copy(signal, omega)
    n = x.size
    mov_size = opts.resolve_mov_size(n)

    log.debug("remove_outliers: N=%d, window=%.2f, method=%s, interp=%s",
              n, mov_size, opts.outlier_method, opts.interp_method)

    replaced = 0
    while mov_size >= MIN_WINDOW:
        outliers = is_outlier(x, opts.outlier_method, mov_size)
        iteration = 0
        while outliers.any() and iteration < MAX_ITERATIONS:
            keep = ~outliers & np.isfinite(x)
            if not keep.any():
                log.debug("Every finite sample flagged at window %.2f; skipping", mov_size)
                break
            if n > LARGE_N:
                f = make_interpolant(omega[keep], x[keep], opts.interp_method)
                x[outliers] = f(omega[outliers])
            else:
                x[outliers] = interp1(omega[keep], x[keep], omega[outliers],
                                      opts.interp_method)
            replaced += int(outliers.sum())
            outliers = is_outlier(x, opts.outlier_method, mov_size)
            iteration += 1

        if outliers.any():
            log.debug("Window %.2f stopped after %d iterations with %d outliers left",
                      mov_size, iteration, outliers.sum())
        mov_size /= WINDOW_SHRINK

    if replaced:
        log.info("Replaced %d outlier samples (N=%d, %s)", replaced, n, opts.outlier_method)

    return remove_nans(x, omega, opts.interp_method)
