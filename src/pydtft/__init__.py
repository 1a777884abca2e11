"""
pydtft - Signal processing directly on DTFT spectra.
"""

from .errors import DomainError, InvalidArgumentError
from .transforms import dtft, idtft, freq_shift_periodic, c2d_sample, default_omega
from .outliers import OutlierOptions, is_outlier, remove_outliers, remove_nans
from .filters import LowPassOptions, FilterOptions, best_lowpass_filter, apply_filter
from .resampling import (
    ResampleOptions,
    OmegaCache,
    upsample_dtft,
    downsample_dtft,
    select_decimation_method,
)
from .verification import verify_round_trip, verify_lowpass_mask, compare_spectra

__version__ = "0.1.0"
__all__ = [
    "DomainError",
    "InvalidArgumentError",
    "dtft",
    "idtft",
    "freq_shift_periodic",
    "c2d_sample",
    "default_omega",
    "OutlierOptions",
    "is_outlier",
    "remove_outliers",
    "remove_nans",
    "LowPassOptions",
    "FilterOptions",
    "best_lowpass_filter",
    "apply_filter",
    "ResampleOptions",
    "OmegaCache",
    "upsample_dtft",
    "downsample_dtft",
    "select_decimation_method",
    "verify_round_trip",
    "verify_lowpass_mask",
    "compare_spectra",
]
