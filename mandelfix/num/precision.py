"""How many fractional words to keep while iterating at a given zoom.

Every multiply returns m + n words, so squaring doubles the word count of an
orbit point on each step. A ``PrecisionPolicy`` cuts results back to a fixed
budget, and ``words_for_zoom`` derives that budget from the zoom level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from mpmath import mpf, log, ceil

from mandelfix.num.complex_pair import Complex
from mandelfix.num.component import Component
from mandelfix.num.words import WORD_BITS

ROUNDING_MODES = ("truncate", "nearest")

# Height of the view at zoom 1 (the plane spans roughly [-2, 2]).
VIEW_SPAN = 4


def words_for_zoom(zoom, guard_bits: int = 64, min_words: int = 1, max_words: int = 64) -> int:
    """Words needed so one pixel pitch (VIEW_SPAN / zoom) stays resolvable.

    ``zoom`` may be an ``mpf`` far outside binary64 range.
    """
    zoom = mpf(zoom)
    if zoom <= 0:
        raise ValueError("Zoom values must be positive.")
    if min_words < 0 or max_words < min_words:
        raise ValueError(f"invalid word bounds: min_words={min_words} max_words={max_words}")

    pitch_bits = max(0, int(ceil(log(zoom / VIEW_SPAN, 2))))
    words = -(-(pitch_bits + guard_bits) // WORD_BITS)
    return max(min_words, min(words, max_words))


@dataclass(frozen=True)
class PrecisionPolicy:
    words: int
    rounding: str = "truncate"

    def __post_init__(self) -> None:
        if self.words < 0:
            raise ValueError(f"words must be >= 0, got {self.words}")
        if self.rounding not in ROUNDING_MODES:
            raise ValueError(f"rounding must be one of: {', '.join(ROUNDING_MODES)}")

    @classmethod
    def for_zoom(cls, zoom, rounding: str = "truncate", **bounds) -> "PrecisionPolicy":
        return cls(words_for_zoom(zoom, **bounds), rounding)

    def apply(self, value: Union[Component, Complex]):
        if self.rounding == "nearest":
            return value.round(self.words)
        return value.truncate(self.words)
