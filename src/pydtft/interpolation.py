#!/usr/bin/env python3
"""
1-D interpolation policy shared by every operator.
=================================================

One place maps the interpolation method names accepted throughout the
package onto scipy interpolators:

- 'linear', 'nearest', 'next', 'previous'  -> scipy.interpolate.interp1d
- 'spline'                                 -> CubicSpline (not-a-knot)
- 'pchip', 'cubic', 'v5cubic'              -> PchipInterpolator
- 'makima'                                 -> Akima1DInterpolator(method='makima')

Complex data is interpolated as two real curves. With ``fill_value=None``
every interpolant extrapolates; otherwise queries outside the data range
take ``fill_value``.
"""

from typing import Callable, Optional, Union

import numpy as np
from scipy.interpolate import (
    Akima1DInterpolator,
    CubicSpline,
    PchipInterpolator,
    interp1d,
)

from .errors import InvalidArgumentError

INTERP_METHODS = (
    'linear', 'nearest', 'next', 'previous',
    'spline', 'pchip', 'cubic', 'v5cubic', 'makima',
)

# Above this many samples callers build one interpolant from data that is
# already sorted instead of going through interp1().
LARGE_N = 500_000

_STEP_KINDS = ('linear', 'nearest', 'next', 'previous')


def validate_interp_method(method: str, field: str = 'interp_method') -> str:
    """Return the lower-cased method name or raise naming ``field``."""
    if not isinstance(method, str) or method.lower() not in INTERP_METHODS:
        raise InvalidArgumentError(
            f"{field}={method!r} is not supported; "
            f"choose from: {', '.join(INTERP_METHODS)}"
        )
    return method.lower()


def _real_interpolant(x: np.ndarray, y: np.ndarray, method: str,
                      assume_sorted: bool) -> Callable[[np.ndarray], np.ndarray]:
    if method in _STEP_KINDS:
        f = interp1d(x, y, kind=method, copy=False, bounds_error=False,
                     fill_value='extrapolate', assume_sorted=assume_sorted)
        return f

    if method == 'spline':
        pp = CubicSpline(x, y)
    elif method == 'makima':
        pp = Akima1DInterpolator(x, y, method='makima')
    else:  # pchip, cubic, v5cubic
        pp = PchipInterpolator(x, y)
    return lambda xq: pp(xq, extrapolate=True)


def make_interpolant(
    x: np.ndarray,
    y: np.ndarray,
    method: str = 'linear',
    fill_value: Optional[Union[float, complex]] = None,
    assume_sorted: bool = True,
) -> Callable[[np.ndarray], np.ndarray]:
    """
    Build an interpolant for y(x) once so it can be evaluated many times.

    Parameters
    ----------
    x : np.ndarray
        Sample positions, strictly increasing when ``assume_sorted``.
    y : np.ndarray
        Sample values, real or complex.
    method : str
        One of ``INTERP_METHODS``.
    fill_value : scalar, optional
        Value returned outside ``[x[0], x[-1]]``. ``None`` extrapolates.
    assume_sorted : bool
        Skip the sort of ``x``.

    Returns
    -------
    callable
        ``f(xq) -> np.ndarray`` with the dtype of ``y`` promoted to float.
    """
    method = validate_interp_method(method)
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y)

    if not assume_sorted:
        order = np.argsort(x, kind='stable')
        x, y = x[order], y[order]

    if x.size == 0:
        raise InvalidArgumentError("cannot interpolate from zero samples")

    if x.size == 1:
        # Nothing to interpolate between: a constant curve.
        const = y[0]
        def base(xq):
            return np.full(np.shape(xq), const,
                           dtype=np.result_type(y.dtype, np.float64))
    elif np.iscomplexobj(y):
        fre = _real_interpolant(x, y.real, method, True)
        fim = _real_interpolant(x, y.imag, method, True)
        def base(xq):
            return fre(xq) + 1j * fim(xq)
    else:
        base = _real_interpolant(x, y.astype(np.float64, copy=False), method, True)

    if fill_value is None:
        return base

    lo, hi = x[0], x[-1]
    def bounded(xq):
        xq = np.asarray(xq, dtype=np.float64)
        out = np.asarray(base(xq))
        outside = (xq < lo) | (xq > hi)
        if outside.any():
            out = out.astype(np.result_type(out.dtype, np.asarray(fill_value).dtype))
            out[outside] = fill_value
        return out
    return bounded


def interp1(
    x: np.ndarray,
    y: np.ndarray,
    xq: np.ndarray,
    method: str = 'linear',
    fill_value: Optional[Union[float, complex]] = None,
) -> np.ndarray:
    """
    Interpolate y(x) at ``xq`` in one call.

    ``x`` need not be sorted; duplicate positions keep their first value.
    Extrapolates when ``fill_value`` is None.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y)
    order = np.argsort(x, kind='stable')
    x, y = x[order], y[order]
    x, first = np.unique(x, return_index=True)
    y = y[first]
    f = make_interpolant(x, y, method, fill_value=fill_value, assume_sorted=True)
    return np.asarray(f(np.asarray(xq, dtype=np.float64)))
