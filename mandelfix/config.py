import json
from typing import Any, Dict, Optional

from mandelfix.num.precision import ROUNDING_MODES
from mandelfix.orbit import BAILOUT_LIMIT

FLOAT_DTYPES = ("float16", "float32", "float64")

DEFAULTS: Dict[str, Any] = {
    "center": [-0.75, 0.0],
    "zoom": 150.0,
    "max_iter": 1200,
    "bailout": 4.0,
    "float_dtype": "float32",
    "max_int_exponent": 7,
    "guard_bits": 64,
    "min_words": 1,
    "max_words": 64,
    "rounding": "truncate",
    "output": "orbit.npz",
}

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    cfg = dict(DEFAULTS)
    if config_path:
        with open(config_path, "r", encoding="utf-8") as f:
            user = json.load(f)
        if not isinstance(user, dict):
            raise ValueError("Config JSON must be an object.")
        cfg.update(user)
    return cfg

def normalise_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for r in DEFAULTS:
        if r not in cfg:
            raise ValueError(f"Missing config field: {r}")

    center = cfg["center"]
    if not (isinstance(center, (list, tuple)) and len(center) == 2):
        raise ValueError("center must be [re, im].")

    out = dict(cfg)
    out["center"] = [float(center[0]), float(center[1])]
    # Zoom may be given as a string such as "1e400"; it is parsed by mpmath later.
    out["zoom"] = str(cfg["zoom"]) if isinstance(cfg["zoom"], str) else float(cfg["zoom"])
    out["max_iter"] = int(cfg["max_iter"])
    out["bailout"] = float(cfg["bailout"])
    out["max_int_exponent"] = int(cfg["max_int_exponent"])
    out["guard_bits"] = int(cfg["guard_bits"])
    out["min_words"] = int(cfg["min_words"])
    out["max_words"] = int(cfg["max_words"])
    out["float_dtype"] = str(cfg["float_dtype"])
    out["rounding"] = str(cfg["rounding"])
    out["output"] = str(cfg["output"])

    if out["max_iter"] <= 0:
        raise ValueError("max_iter must be positive.")
    if not 0 < out["bailout"] < BAILOUT_LIMIT:
        raise ValueError(f"bailout must be within (0, {BAILOUT_LIMIT}).")
    if not 0 <= out["max_int_exponent"] <= 30:
        raise ValueError("max_int_exponent must be within [0, 30] to fit a signed 32-bit whole part.")
    if out["guard_bits"] < 0:
        raise ValueError("guard_bits must be >= 0.")
    if out["min_words"] < 0 or out["max_words"] < out["min_words"]:
        raise ValueError("min_words/max_words must satisfy 0 <= min_words <= max_words.")
    if out["float_dtype"] not in FLOAT_DTYPES:
        raise ValueError(f"float_dtype must be one of: {', '.join(FLOAT_DTYPES)}")
    if out["rounding"] not in ROUNDING_MODES:
        raise ValueError(f"rounding must be one of: {', '.join(ROUNDING_MODES)}")
    return out
