"""Extended-precision reference orbits.

Iterates z -> z**2 + c on ``Complex`` values, cutting every iterate back to the
word budget of a ``PrecisionPolicy``, and projects each iterate to float64 so a
low-precision consumer (e.g. a perturbation renderer) can read the orbit from
plain numpy arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from mandelfix.num.complex_pair import Complex
from mandelfix.num.component import MAX_INT_EXPONENT
from mandelfix.num.precision import PrecisionPolicy
from mandelfix.util.logging_setup import get_logger

# Iterates are squared before the escape test, so |z|^2 up to 2 * bailout plus
# |c| must stay inside the signed 32-bit whole part.
BAILOUT_LIMIT = 2 ** 29


@dataclass(frozen=True)
class Orbit:
    real: np.ndarray
    imag: np.ndarray
    # Index of the first iterate with |z|^2 > bailout, None if it never escaped.
    escaped_at: Optional[int]
    words: int

    def __len__(self) -> int:
        return len(self.real)


def lift_point(
    center: Sequence[float],
    dtype: str = "float32",
    max_int_exponent: int = MAX_INT_EXPONENT,
) -> Complex:
    """Lift a native (re, im) coordinate pair into a ``Complex``.

    The coordinates are first cast to ``dtype``; the cast is where any rounding
    happens, the lift itself is exact.
    """
    np_type = getattr(np, dtype)
    return Complex.from_floats(np_type(center[0]), np_type(center[1]), max_int_exponent)


def reference_orbit(
    c: Complex,
    max_iter: int,
    policy: PrecisionPolicy,
    *,
    bailout: float = 4.0,
    progress: Optional[Callable[[int], None]] = None,
) -> Orbit:
    if max_iter <= 0:
        raise ValueError("max_iter must be positive.")
    if not 0 < bailout < BAILOUT_LIMIT:
        raise ValueError(f"bailout must be within (0, {BAILOUT_LIMIT}).")
    logger = get_logger()
    logger.info("Reference orbit start c=%s max_iter=%s words=%s rounding=%s",
                c.to_floats(), max_iter, policy.words, policy.rounding)

    c = policy.apply(c)
    xr = np.zeros(max_iter + 1, dtype=np.float64)
    yi = np.zeros(max_iter + 1, dtype=np.float64)

    z = Complex()
    escaped_at = None
    for n in range(1, max_iter + 1):
        z = policy.apply(z.square() + c)
        xr[n], yi[n] = z.to_floats()
        if progress is not None:
            progress(n)
        if xr[n] * xr[n] + yi[n] * yi[n] > bailout:
            escaped_at = n
            break
        if n % 100 == 0:
            logger.debug("Reference orbit iteration %s/%s", n, max_iter)

    length = (escaped_at if escaped_at is not None else max_iter) + 1
    logger.info("Reference orbit done length=%s escaped_at=%s", length, escaped_at)
    return Orbit(xr[:length].copy(), yi[:length].copy(), escaped_at, policy.words)
