from __future__ import annotations

import argparse
import os
import subprocess
from typing import Optional

import numpy as np
from mpmath import mpf
from tqdm import tqdm

from mandelfix.config import FLOAT_DTYPES, load_config, normalise_config
from mandelfix.num.complex_pair import Complex
from mandelfix.num.component import Component
from mandelfix.num.errors import ComponentError
from mandelfix.num.precision import PrecisionPolicy
from mandelfix.orbit import lift_point, reference_orbit
from mandelfix.util.logging_setup import configure_root_logging, get_logger, parse_level
from mandelfix.util.manifest import build_manifest, write_manifest

def _git_commit() -> Optional[str]:
    try:
        r = subprocess.run(["git", "rev-parse", "HEAD"], capture_output=True, text=True, check=True)
        return r.stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return None

def _describe(name: str, value: Component) -> str:
    words = " ".join(f"{w:08X}" for w in value.subint) or "-"
    return f"{name}: integer={value.integer} subint=[{words}] exact={value.exact()}"

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelfix", description="Extended-precision fixed-point arithmetic for deep Mandelbrot zooms.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, built-in defaults are used.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG","INFO","WARNING","ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="", help="Log file path (rotating). Empty disables file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("convert", help="Losslessly convert a float into a fixed-point Component.")
    c.add_argument("value", type=str, help="Number to convert, e.g. 1.5 or -0.25.")
    c.add_argument("--dtype", type=str, default=None, choices=FLOAT_DTYPES, help="Native float type (defaults to config.float_dtype).")

    s = sub.add_parser("square", help="Square an extended-precision complex number.")
    s.add_argument("real", type=str)
    s.add_argument("imag", type=str)
    s.add_argument("--dtype", type=str, default=None, choices=FLOAT_DTYPES, help="Native float type (defaults to config.float_dtype).")

    o = sub.add_parser("orbit", help="Compute a reference orbit and save it as .npz.")
    o.add_argument("--re", type=float, default=None, help="Override center real part.")
    o.add_argument("--im", type=float, default=None, help="Override center imaginary part.")
    o.add_argument("--zoom", type=str, default=None, help="Override zoom (accepts e.g. 1e400).")
    o.add_argument("--max-iter", type=int, default=None, help="Override max_iter.")
    o.add_argument("--output", type=str, default=None, help="Override output .npz path.")
    o.add_argument("--manifest", type=str, default=os.path.join("artifacts", "run.json"), help="Run manifest path. Empty disables it.")
    o.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")

    return p

def _run_orbit(args: argparse.Namespace, cfg: dict) -> int:
    logger = get_logger()
    if args.re is not None:
        cfg["center"][0] = args.re
    if args.im is not None:
        cfg["center"][1] = args.im
    if args.zoom is not None:
        cfg["zoom"] = args.zoom
    if args.max_iter is not None:
        cfg["max_iter"] = args.max_iter
    if args.output:
        cfg["output"] = args.output
    cfg = normalise_config(cfg)

    policy = PrecisionPolicy.for_zoom(
        mpf(cfg["zoom"]),
        cfg["rounding"],
        guard_bits=cfg["guard_bits"],
        min_words=cfg["min_words"],
        max_words=cfg["max_words"],
    )
    c = lift_point(cfg["center"], cfg["float_dtype"], cfg["max_int_exponent"])

    with tqdm(total=cfg["max_iter"], disable=args.no_progress, desc="orbit") as bar:
        orbit = reference_orbit(c, cfg["max_iter"], policy, bailout=cfg["bailout"], progress=lambda n: bar.update(1))

    escaped_at = -1 if orbit.escaped_at is None else orbit.escaped_at
    np.savez(cfg["output"], real=orbit.real, imag=orbit.imag, escaped_at=escaped_at, words=orbit.words)
    logger.info("Orbit written: %s (%s points)", cfg["output"], len(orbit))

    if args.manifest:
        info = {"length": len(orbit), "escaped_at": orbit.escaped_at, "words": orbit.words, "output": cfg["output"]}
        manifest = build_manifest(command="orbit", config=cfg, orbit_info=info, git_commit=_git_commit())
        write_manifest(args.manifest, manifest)
        logger.info("Run manifest written: %s", args.manifest)
    return 0

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = parse_level(args.log_level)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    configure_root_logging(level=log_level, console=True, log_file=log_file)
    logger = get_logger()

    try:
        cfg = normalise_config(load_config(args.config))

        if args.cmd == "convert":
            dtype = getattr(np, args.dtype or cfg["float_dtype"])
            value = Component.from_float(dtype(args.value), cfg["max_int_exponent"])
            print(_describe("value", value))
            return 0

        if args.cmd == "square":
            dtype = getattr(np, args.dtype or cfg["float_dtype"])
            z = Complex.from_floats(dtype(args.real), dtype(args.imag), cfg["max_int_exponent"])
            sq = z.square()
            print(_describe("real", sq.real))
            print(_describe("imag", sq.imag))
            return 0

        if args.cmd == "orbit":
            return _run_orbit(args, cfg)

        raise RuntimeError("Unknown command.")
    except ComponentError as e:
        logger.error("Conversion failed (%s): %s", e.kind.value, e)
        return 2
    except ValueError as e:
        logger.error("Invalid input: %s", e)
        return 2

if __name__ == "__main__":
    raise SystemExit(main())
