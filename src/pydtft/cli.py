#!/usr/bin/env python3
"""
Command-line front end for DTFT-domain filtering and resampling.
===============================================================

CLI examples
------------
# Denoise: keep the band holding at least 25% of the peak magnitude
pydtft lowpass noisy.txt --threshold-gain 0.25 --output denoised

# Fixed cutoff at pi/4 with a raised-cosine roll-off, then outlier cleanup
pydtft lowpass noisy.npy --cutoff 0.7854 --method raised-cosine --outliers

# Upsample 4x in the frequency domain with the interpolation low-pass
pydtft resample tone.txt --upsample 4 --lpf --output tone_x4

# Downsample 2x with the decimation low-pass and a plot of both spectra
pydtft resample tone.txt --downsample 2 --lpf --plot

# Report length, round-trip error and occupied bandwidth
pydtft inspect tone.txt
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from .errors import InvalidArgumentError
from .filters import LOWPASS_METHODS, apply_filter, best_lowpass_filter, occupied_cutoff
from .interpolation import INTERP_METHODS
from .outliers import OUTLIER_METHODS
from .resampling import downsample_dtft, upsample_dtft
from .transforms import dtft, idtft
from .verification import verify_round_trip

log = logging.getLogger("pydtft")


# ───────────────────────── I/O helpers ────────────────────────── #

def load_signal(path: Path) -> np.ndarray:
    """Read a 1-D signal from .npy, .npz (first array) or whitespace text."""
    if not path.exists():
        raise FileNotFoundError(path)
    if path.suffix == '.npy':
        data = np.load(path)
    elif path.suffix == '.npz':
        with np.load(path) as archive:
            data = archive[archive.files[0]]
    else:
        data = np.loadtxt(path, dtype=np.complex128 if 'j' in path.read_text() else np.float64)
    data = np.ravel(data)
    log.info("Loaded %d samples from %s", data.size, path)
    return data


def save_signal(stem: str, x: np.ndarray) -> None:
    """Write STEM.txt and STEM.npy; real-valued results drop the imaginary part."""
    if np.iscomplexobj(x) and np.allclose(x.imag, 0, atol=1e-12 * max(1.0, np.abs(x).max())):
        x = x.real
    np.savetxt(stem + ".txt", x, fmt="%.18e")
    np.save(stem + ".npy", x)
    log.info("Saved %s.txt and %s.npy", stem, stem)


def _time_result(x_in: np.ndarray, y: np.ndarray) -> np.ndarray:
    return y if np.iscomplexobj(x_in) else y.real


def _show_spectra(before, omega_before, after, omega_after, title: str) -> None:
    import matplotlib.pyplot as plt
    from .plotting import mag_plot

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8))
    mag_plot(before, omega=omega_before, name='X', ax=ax1)
    mag_plot(after, omega=omega_after, name='Y', ax=ax2)
    fig.suptitle(title)
    plt.tight_layout()
    plt.show()


# ───────────────────────── commands ────────────────────────── #

def cmd_lowpass(a) -> int:
    x = load_signal(a.input)
    X, omega = dtft(x)
    H = best_lowpass_filter(X, threshold_gain=a.threshold_gain, cutoff=a.cutoff,
                            transition=a.transition, method=a.method)
    Y = apply_filter(X, H, omega=omega, apply_outlier_removal=a.outliers,
                     outlier_method=a.outlier_method, interp_method=a.interp)
    y = _time_result(x, idtft(Y))

    stem = a.output or f"{a.input.stem}_lowpass"
    save_signal(stem, y)
    if a.plot:
        _show_spectra(X, omega, Y, omega, f"Low-pass ({a.method})")
    return 0


def cmd_resample(a) -> int:
    x = load_signal(a.input)
    X, omega = dtft(x)
    opts = dict(apply_lpf=a.lpf, apply_outlier_removal=a.outliers,
                outlier_method=a.outlier_method, interp_method=a.interp)

    if a.upsample:
        Y, omega_y = upsample_dtft(X, omega, a.upsample, **opts)
        tag = f"u{a.upsample}"
    else:
        Y, omega_y, meta = downsample_dtft(X, omega, a.downsample, return_metadata=True, **opts)
        tag = f"d{a.downsample}"
        log.info("Aliasing sum used %s interpolation", meta['interp_method'])

    y = _time_result(x, idtft(Y))
    stem = a.output or f"{a.input.stem}_{tag}"
    save_signal(stem, y)
    if a.plot:
        _show_spectra(X, omega, Y, omega_y, f"Resample {tag}")
    return 0


def cmd_inspect(a) -> int:
    x = load_signal(a.input)
    X, omega = dtft(x)
    rt = verify_round_trip(x)
    cutoff = occupied_cutoff(X, omega, a.threshold_gain)
    print(f"Samples        : {x.size}")
    print(f"Complex        : {np.iscomplexobj(x)}")
    print(f"Round-trip err : {rt['max_error']:.3e}")
    print(f"Peak |X|       : {np.abs(X).max():.6g}")
    print(f"Cutoff @ {a.threshold_gain:g}  : {cutoff:.6f} rad ({cutoff / np.pi:.4f} pi)")
    return 0 if rt['passes'] else 1


# ─────────────────────────── CLI ──────────────────────────── #

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pydtft",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="Filter and resample signals in the DTFT domain.",
    )

    # ─── Misc ───
    p.add_argument("--debug", action="store_true",
                   help="Enable DEBUG-level logging for extra detail.")
    p.add_argument("--log-file", type=str,
                   help="Also write log output to this file.")

    sub = p.add_subparsers(dest="command", required=True)

    def add_common(sp):
        sp.add_argument("input", type=Path, help="Time signal (.npy, .npz or text).")
        sp.add_argument("--output", help="Output filename stem.")
        sp.add_argument("--plot", action="store_true",
                        help="Show input and output magnitude spectra.")
        g = sp.add_argument_group("Outlier cleanup")
        g.add_argument("--outliers", action="store_true",
                       help="Remove spikes from the processed spectrum.")
        g.add_argument("--outlier-method", choices=OUTLIER_METHODS, default="movmean")
        g.add_argument("--interp", choices=INTERP_METHODS, default="linear",
                       help="Interpolation method for repairs and resampling.")

    sp = sub.add_parser("lowpass", formatter_class=argparse.ArgumentDefaultsHelpFormatter,
                        help="Low-pass filter a time signal through its DTFT.")
    add_common(sp)
    g = sp.add_argument_group("Filter")
    g.add_argument("--threshold-gain", type=float, default=0.1,
                   help="Band edge as a fraction of the peak magnitude.")
    g.add_argument("--cutoff", type=float,
                   help="Explicit cutoff in rad/sample (overrides --threshold-gain).")
    g.add_argument("--transition", type=float, default=np.pi / 10,
                   help="Roll-off width in rad/sample for smooth methods.")
    g.add_argument("--method", choices=LOWPASS_METHODS, default="ideal")
    sp.set_defaults(func=cmd_lowpass)

    sp = sub.add_parser("resample", formatter_class=argparse.ArgumentDefaultsHelpFormatter,
                        help="Up- or downsample a signal through its DTFT.")
    add_common(sp)
    mode = sp.add_mutually_exclusive_group(required=True)
    mode.add_argument("--upsample", "-L", type=int, help="Integer upsampling factor (> 1).")
    mode.add_argument("--downsample", "-M", type=int, help="Integer downsampling factor (> 1).")
    sp.add_argument("--lpf", action="store_true",
                    help="Apply the interpolation/decimation low-pass.")
    sp.set_defaults(func=cmd_resample)

    sp = sub.add_parser("inspect", formatter_class=argparse.ArgumentDefaultsHelpFormatter,
                        help="Report basic spectral facts about a signal.")
    sp.add_argument("input", type=Path)
    sp.add_argument("--threshold-gain", type=float, default=0.1)
    sp.set_defaults(func=cmd_inspect)

    return p


def setup_logging(debug: bool, log_file=None) -> None:
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_format = "%(asctime)s - %(levelname)s - %(message)s"
        handlers.append(logging.FileHandler(log_file, mode='w'))
    else:
        log_format = "%(levelname)s %(message)s"
    logging.basicConfig(
        handlers=handlers,
        level=logging.DEBUG if debug else logging.INFO,
        format=log_format,
        force=True,
    )


def main(argv=None) -> int:
    p = build_parser()
    a = p.parse_args(argv)
    setup_logging(a.debug, a.log_file)

    if a.command == "resample":
        factor = a.upsample or a.downsample
        if factor is None or factor <= 1:
            p.error("resampling factor must be an integer greater than 1")

    try:
        return a.func(a)
    except (InvalidArgumentError, FileNotFoundError, ValueError) as e:
        log.error("Fatal: %s", e)
        log.debug("Traceback:", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
