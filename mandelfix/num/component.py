"""Extended-precision fixed-point values.

A ``Component`` is a signed 32-bit whole part plus any number of unsigned
32-bit fractional words, most significant first::

    value = integer + sum(subint[k] * 2**(-32 * (k + 1)))

Operands with different word counts are aligned by treating the missing tail
words as zero. Precision is never dropped implicitly; see
``mandelfix.num.precision`` for trimming it back after a multiply.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Tuple, Union

import numpy as np
from mpmath import mp, mpf, ldexp as mp_ldexp

from mandelfix.num.errors import MagnitudeError, NonFiniteError
from mandelfix.num.words import (
    WORD_BITS,
    borrowing_sub,
    carrying_add,
    carrying_mul,
    check_word,
    int_to_words,
    words_to_int,
    wrap_i32,
)
from mandelfix.util.logging_setup import get_logger

# Largest binary exponent allowed for the whole part of a converted value.
# 7 keeps |floor(x)| below 2**8, which is plenty for the [-2, 2] plane.
MAX_INT_EXPONENT = 7

# float type -> (same-width unsigned view, exponent bits, stored mantissa bits)
_IEEE_FORMATS = {
    np.float16: (np.uint16, 5, 10),
    np.float32: (np.uint32, 8, 23),
    np.float64: (np.uint64, 11, 52),
}

Operand = Union["Component", int]


def _decode_ieee(x) -> Tuple[int, int, int]:
    """Split a native float into (sign, mantissa, exponent).

    ``abs(x) == mantissa * 2**exponent`` holds exactly. The width of the
    mantissa follows the float's own format, so a ``numpy.float32`` decodes
    with 24 significant bits and a Python float with 53.
    """
    arr = np.asarray(x) if isinstance(x, np.floating) else np.asarray(x, dtype=np.float64)
    try:
        uint_t, exp_bits, man_bits = _IEEE_FORMATS[arr.dtype.type]
    except KeyError:
        raise TypeError(f"unsupported float type: {arr.dtype}") from None

    bits = int(arr.view(uint_t))
    bias = (1 << (exp_bits - 1)) - 1
    exp_all_ones = (1 << exp_bits) - 1

    sign = bits >> (exp_bits + man_bits)
    biased = (bits >> man_bits) & exp_all_ones
    fraction = bits & ((1 << man_bits) - 1)

    if biased == exp_all_ones:
        kind = "NaN" if fraction else "infinite"
        raise NonFiniteError(f"`Component`s cannot be {kind}", x)
    if biased == 0:
        # subnormal, no implicit leading bit
        return sign, fraction, 1 - bias - man_bits
    return sign, fraction | (1 << man_bits), biased - bias - man_bits


def _scale_fraction(words: Tuple[int, ...], k: int) -> "Component":
    """k * 0.words for a signed 32-bit k, one carrying multiply per word."""
    magnitude = abs(k)
    out = [0] * len(words)
    carry = 0
    for idx in reversed(range(len(words))):
        out[idx], carry = carrying_mul(words[idx], magnitude, carry)
    scaled = Component(carry, tuple(out))
    return -scaled if k < 0 else scaled


@dataclass(frozen=True, eq=False)
class Component:
    integer: int = 0
    subint: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "integer", wrap_i32(int(self.integer)))
        object.__setattr__(self, "subint", tuple(check_word(int(w)) for w in self.subint))

    # ------------------------------------------------------------------
    # construction

    @classmethod
    def from_int(cls, value: int) -> "Component":
        return cls(int(value), ())

    @classmethod
    def from_float(cls, x, max_int_exponent: int = MAX_INT_EXPONENT) -> "Component":
        """Lift a native float into a Component without losing any bits.

        The result uses the fewest fractional words that hold every set bit of
        ``x - floor(x)``; an integral ``x`` gets no words at all.

        Raises:
            NonFiniteError: ``x`` is infinite or NaN.
            MagnitudeError: ``floor(x)`` needs a binary exponent above
                ``max_int_exponent``.
        """
        if isinstance(x, (int, np.integer)) and not isinstance(x, bool):
            x = float(x)
        try:
            sign, mantissa, exponent = _decode_ieee(x)
        except NonFiniteError:
            get_logger().debug("Rejected non-finite input %r", x)
            raise
        return cls._from_scaled(sign, mantissa, exponent, max_int_exponent, x)

    @classmethod
    def from_mpf(cls, value, max_int_exponent: int = MAX_INT_EXPONENT) -> "Component":
        """Lift an ``mpmath.mpf``; exact, since mpf is binary as well."""
        value = mpf(value)
        if mp.isinf(value) or mp.isnan(value):
            get_logger().debug("Rejected non-finite input %r", value)
            raise NonFiniteError("`Component`s cannot be infinite or NaN", value)
        # man_exp carries no sign on current mpmath releases
        man, exp = abs(value).man_exp
        return cls._from_scaled(int(value < 0), int(man), int(exp), max_int_exponent, value)

    @classmethod
    def _from_scaled(cls, sign: int, mantissa: int, exponent: int, max_int_exponent: int, source) -> "Component":
        # Work on the exact scaled integer so the floor split never rounds.
        scaled = -mantissa if sign else mantissa
        if exponent >= 0:
            scaled <<= exponent
            frac_bits = 0
        else:
            frac_bits = -exponent

        whole = scaled >> frac_bits
        fraction = scaled & ((1 << frac_bits) - 1)

        if abs(whole).bit_length() - 1 > max_int_exponent:
            get_logger().debug("Rejected %r: whole part %s exceeds 2**%s", source, whole, max_int_exponent + 1)
            raise MagnitudeError(f"{source} is too large to fit in a `Component`", source)

        if fraction == 0:
            return cls(whole, ())

        trailing = (fraction & -fraction).bit_length() - 1
        fraction >>= trailing
        frac_bits -= trailing

        count = -(-frac_bits // WORD_BITS)
        fraction <<= count * WORD_BITS - frac_bits
        return cls(whole, int_to_words(fraction, count))

    # ------------------------------------------------------------------
    # arithmetic

    @property
    def words(self) -> int:
        return len(self.subint)

    def _aligned(self, other: "Component") -> Tuple[Tuple[int, ...], Tuple[int, ...], int]:
        n = max(len(self.subint), len(other.subint))
        a = self.subint + (0,) * (n - len(self.subint))
        b = other.subint + (0,) * (n - len(other.subint))
        return a, b, n

    def __add__(self, other: Operand) -> "Component":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        a, b, n = self._aligned(other)
        out = [0] * n
        carry = False
        for k in reversed(range(n)):
            out[k], carry = carrying_add(a[k], b[k], carry)
        return Component(self.integer + carry + other.integer, tuple(out))

    def __sub__(self, other: Operand) -> "Component":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        a, b, n = self._aligned(other)
        out = [0] * n
        borrow = False
        for k in reversed(range(n)):
            out[k], borrow = borrowing_sub(a[k], b[k], borrow)
        return Component(self.integer - borrow - other.integer, tuple(out))

    def __radd__(self, other: Operand) -> "Component":
        return self + other

    def __rsub__(self, other: Operand) -> "Component":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return other - self

    def __neg__(self) -> "Component":
        return Component() - self

    def mul_subint(self, other: "Component") -> "Component":
        """Schoolbook product of the fractional words only.

        Word i of self and word j of other land at output word i + j + 1.
        The whole parts are ignored and the result's whole part is zero, so a
        pure integer operand yields all-zero words.
        """
        a, b = self.subint, other.subint
        m, n = len(a), len(b)
        out = [0] * (m + n)
        for i in reversed(range(m)):
            mul_carry = 0
            add_carry = False
            for j in reversed(range(n)):
                lo, mul_carry = carrying_mul(a[i], b[j], mul_carry)
                out[i + j + 1], add_carry = carrying_add(out[i + j + 1], lo, add_carry)
            # out[i] is still untouched by earlier rows
            out[i], add_carry = carrying_add(out[i], mul_carry, add_carry)
        return Component(0, tuple(out))

    def __mul__(self, other: Operand) -> "Component":
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        product = self.mul_subint(other)
        product = product + _scale_fraction(other.subint, self.integer)
        product = product + _scale_fraction(self.subint, other.integer)
        return product + Component(self.integer * other.integer)

    def __rmul__(self, other: Operand) -> "Component":
        return self * other

    # ------------------------------------------------------------------
    # precision

    def truncate(self, words: int) -> "Component":
        """Drop every word past ``words``; rounds toward negative infinity."""
        if words < 0:
            raise ValueError(f"words must be >= 0, got {words}")
        return Component(self.integer, self.subint[:words])

    def round(self, words: int) -> "Component":
        """Round to ``words`` fractional words, ties away from negative infinity."""
        if words < 0:
            raise ValueError(f"words must be >= 0, got {words}")
        if len(self.subint) <= words:
            return self
        kept = self.truncate(words)
        if not self.subint[words] >> (WORD_BITS - 1):
            return kept
        if words == 0:
            return kept + Component(1)
        return kept + Component(0, (0,) * (words - 1) + (1,))

    def trimmed(self) -> "Component":
        subint = self.subint
        end = len(subint)
        while end and subint[end - 1] == 0:
            end -= 1
        return Component(self.integer, subint[:end])

    # ------------------------------------------------------------------
    # projections

    def exact(self) -> Fraction:
        """The represented value as an exact rational."""
        frac = Fraction(words_to_int(self.subint), 1 << (WORD_BITS * len(self.subint)))
        return self.integer + frac

    def to_float(self) -> float:
        """Nearest binary64 to the value, for display; lossy past 53 bits."""
        return float(self.exact())

    def to_float32(self) -> np.float32:
        return np.float32(self.to_float())

    def to_mpf(self) -> mpf:
        """Projection at the current ``mp.prec``; exact when that is large enough."""
        frac = mp_ldexp(mpf(words_to_int(self.subint)), -WORD_BITS * len(self.subint))
        return mpf(self.integer) + frac

    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        other = _coerce(other)
        if other is NotImplemented:
            return NotImplemented
        return self.integer == other.integer and self.trimmed().subint == other.trimmed().subint

    def __hash__(self) -> int:
        return hash((self.integer, self.trimmed().subint))

    def __repr__(self) -> str:
        words = ", ".join(f"0x{w:08X}" for w in self.subint)
        if len(self.subint) == 1:
            words += ","
        return f"Component(integer={self.integer}, subint=({words}))"


def _coerce(value: Operand):
    if isinstance(value, Component):
        return value
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return Component.from_int(int(value))
    return NotImplemented
