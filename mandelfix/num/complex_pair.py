"""Extended-precision complex numbers built from two Components."""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from typing import Tuple

import numpy as np

from mandelfix.num.component import MAX_INT_EXPONENT, Component


@dataclass(frozen=True)
class Complex:
    real: Component = field(default_factory=Component)
    imag: Component = field(default_factory=Component)

    @classmethod
    def from_floats(cls, real, imag, max_int_exponent: int = MAX_INT_EXPONENT) -> "Complex":
        return cls(
            Component.from_float(real, max_int_exponent),
            Component.from_float(imag, max_int_exponent),
        )

    @classmethod
    def from_ints(cls, real: int, imag: int) -> "Complex":
        return cls(Component.from_int(real), Component.from_int(imag))

    def square(self) -> "Complex":
        """z**2 for z = a + bi.

        The real part uses (a + b)(a - b) to spend one multiply instead of two.
        """
        a, b = self.real, self.imag
        real = (a + b) * (a - b)
        ab = a * b
        return Complex(real, ab + ab)

    def __add__(self, other: "Complex") -> "Complex":
        if not isinstance(other, Complex):
            return NotImplemented
        return Complex(self.real + other.real, self.imag + other.imag)

    def __sub__(self, other: "Complex") -> "Complex":
        if not isinstance(other, Complex):
            return NotImplemented
        return Complex(self.real - other.real, self.imag - other.imag)

    def __mul__(self, other: "Complex") -> "Complex":
        if not isinstance(other, Complex):
            return NotImplemented
        a, b, c, d = self.real, self.imag, other.real, other.imag
        return Complex(a * c - b * d, a * d + b * c)

    def __neg__(self) -> "Complex":
        return Complex(-self.real, -self.imag)

    def magnitude_squared(self) -> Component:
        return self.real * self.real + self.imag * self.imag

    def truncate(self, words: int) -> "Complex":
        return Complex(self.real.truncate(words), self.imag.truncate(words))

    def round(self, words: int) -> "Complex":
        return Complex(self.real.round(words), self.imag.round(words))

    def exact(self) -> Tuple[Fraction, Fraction]:
        return self.real.exact(), self.imag.exact()

    def to_floats(self) -> Tuple[float, float]:
        return self.real.to_float(), self.imag.to_float()

    def to_float32(self) -> Tuple[np.float32, np.float32]:
        """Single-precision pair, the form a camera uniform expects."""
        return self.real.to_float32(), self.imag.to_float32()
