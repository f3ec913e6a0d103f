"""
Tests for the fixed-point Component

Covers lossless float conversion, carry/borrow propagation, the complete
product and the fractional-only product, precision trimming and projections.
"""

import math
from fractions import Fraction

import numpy as np
import pytest
from mpmath import mp, mpf

from mandelfix.num.component import MAX_INT_EXPONENT, Component
from mandelfix.num.errors import (
    ComponentError,
    ErrorKind,
    MagnitudeError,
    NonFiniteError,
)
from mandelfix.num.words import INT32_MAX, INT32_MIN

FLOATS = [
    0.0,
    -0.0,
    1.5,
    -0.25,
    -1.75,
    0.1,
    -0.1,
    math.pi,
    -math.e,
    255.99999999,
    -255.0,
    1e-30,
    -1e-30,
    5e-324,
    -1.156133259,
    0.13182590420533,
]


def exact_of(x) -> Fraction:
    return Fraction(float(x))


# =============================================================================
# CONVERSION
# =============================================================================


class TestFromFloat:
    def test_one_and_a_half(self) -> None:
        value = Component.from_float(1.5)
        assert value.integer == 1
        assert value.subint == (0x80000000,)

    def test_negative_quarter_uses_floor_split(self) -> None:
        # floor(-0.25) = -1, remainder 0.75 = 2^-1 + 2^-2
        value = Component.from_float(-0.25)
        assert value.integer == -1
        assert value.subint == (0xC0000000,)

    def test_integral_value_has_no_words(self) -> None:
        value = Component.from_float(2.0)
        assert value.integer == 2
        assert value.subint == ()

    def test_zero(self) -> None:
        assert Component.from_float(0.0).subint == ()
        assert Component.from_float(-0.0) == Component()

    @pytest.mark.parametrize("x", FLOATS)
    def test_round_trip_is_exact(self, x: float) -> None:
        assert Component.from_float(x).exact() == exact_of(x)

    @pytest.mark.parametrize("x", [0.1, -0.3, 1.2345678, 1e-20, -255.5 + 0.5])
    def test_round_trip_float32(self, x: float) -> None:
        f = np.float32(x)
        assert Component.from_float(f).exact() == exact_of(f)

    def test_float16_input(self) -> None:
        f = np.float16(0.333)
        assert Component.from_float(f).exact() == exact_of(f)

    def test_float32_subnormal(self) -> None:
        f = np.float32(1e-40)
        assert f != 0
        assert Component.from_float(f).exact() == exact_of(f)

    def test_minimum_word_count(self) -> None:
        # 24 significant bits ending at 2^-27 fit a single word
        assert Component.from_float(np.float32(0.1)).words == 1
        # 0.1 as binary64 ends at 2^-55
        assert Component.from_float(0.1).words == 2
        # A lone bit needs only the word that holds it
        assert Component.from_float(2.0 ** -33).subint == (0, 0x80000000)

    def test_no_trailing_zero_words(self) -> None:
        for x in FLOATS:
            value = Component.from_float(x)
            if value.subint:
                assert value.subint[-1] != 0

    def test_tiny_negative_keeps_whole_part(self) -> None:
        value = Component.from_float(-1e-30)
        assert value.integer == -1
        assert value.exact() == exact_of(-1e-30)

    def test_integer_input(self) -> None:
        assert Component.from_float(3) == Component(3)


class TestConversionErrors:
    @pytest.mark.parametrize("x", [float("nan"), float("inf"), float("-inf"), np.float32("inf"), np.float32("nan")])
    def test_non_finite_rejected(self, x) -> None:
        with pytest.raises(NonFiniteError) as exc_info:
            Component.from_float(x)
        assert exc_info.value.kind is ErrorKind.NON_FINITE

    @pytest.mark.parametrize("x", [256.0, -256.0, -255.5, 1e10, -1e300])
    def test_magnitude_rejected(self, x: float) -> None:
        with pytest.raises(MagnitudeError) as exc_info:
            Component.from_float(x)
        assert exc_info.value.kind is ErrorKind.MAGNITUDE
        assert exc_info.value.value == x

    def test_boundary_accepted(self) -> None:
        assert Component.from_float(255.75).integer == 255
        assert Component.from_float(-255.0).integer == -255

    def test_wider_bound(self) -> None:
        value = Component.from_float(1000.5, max_int_exponent=10)
        assert value.exact() == Fraction(2001, 2)

    def test_errors_are_value_errors(self) -> None:
        assert issubclass(ComponentError, ValueError)
        with pytest.raises(ValueError):
            Component.from_float(float("nan"))

    @pytest.mark.skipif(np.dtype(np.longdouble).itemsize <= 8, reason="longdouble is binary64 here")
    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError, match="unsupported float type"):
            Component.from_float(np.longdouble(0.5))

    def test_default_bound(self) -> None:
        assert MAX_INT_EXPONENT == 7


class TestFromIntAndMpf:
    def test_from_int(self) -> None:
        value = Component.from_int(-7)
        assert value.integer == -7
        assert value.subint == ()

    def test_from_int_wraps(self) -> None:
        assert Component.from_int(INT32_MAX + 1).integer == INT32_MIN

    def test_from_mpf_exact(self) -> None:
        with mp.workprec(200):
            v = mpf(1) / 3
            man, exp = v.man_exp
            value = Component.from_mpf(v)
        assert value.exact() == Fraction(man, 2 ** -exp)
        assert value.words == -(-(-exp) // 32)

    def test_from_mpf_negative(self) -> None:
        assert Component.from_mpf(mpf("-0.25")) == Component.from_float(-0.25)

    def test_from_mpf_negative_fraction(self) -> None:
        with mp.workprec(200):
            v = mpf(-1) / 3
            man, exp = abs(v).man_exp
            value = Component.from_mpf(v)
        assert value.exact() == -Fraction(int(man), 2 ** -int(exp))
        assert value.integer == -1

    def test_from_mpf_matches_from_float(self) -> None:
        for x in FLOATS:
            assert Component.from_mpf(mpf(x)) == Component.from_float(x)

    def test_from_mpf_rejects(self) -> None:
        with pytest.raises(NonFiniteError):
            Component.from_mpf(mp.inf)
        with pytest.raises(MagnitudeError):
            Component.from_mpf(mpf(1000))


# =============================================================================
# ADDITION / SUBTRACTION
# =============================================================================


class TestAddSub:
    def test_carry_ripples_into_integer(self) -> None:
        a = Component(0, (0xFFFFFFFF, 0xFFFFFFFF))
        b = Component(0, (0, 1))
        total = a + b
        assert total.integer == 1
        assert total.subint == (0, 0)

    def test_borrow_ripples_out_of_integer(self) -> None:
        diff = Component(1, (0, 0)) - Component(0, (0, 1))
        assert diff.integer == 0
        assert diff.subint == (0xFFFFFFFF, 0xFFFFFFFF)

    def test_result_length_is_longest_operand(self) -> None:
        a = Component(0, (1,))
        b = Component(0, (0, 0, 5))
        assert (a + b).subint == (1, 0, 5)
        assert (b - a).words == 3
        assert (a - b).words == 3

    def test_pure_integers(self) -> None:
        assert Component(3) + Component(4) == Component(7)
        assert Component(3) - Component(4) == Component(-1)

    def test_integer_wraparound(self) -> None:
        assert (Component(INT32_MAX) + Component(1)).integer == INT32_MIN

    @pytest.mark.parametrize("x", FLOATS)
    def test_additive_inverse(self, x: float) -> None:
        a = Component.from_float(x)
        diff = a - a
        assert diff.integer == 0
        assert all(w == 0 for w in diff.subint)

    def test_identity(self) -> None:
        for x in FLOATS:
            a = Component.from_float(x)
            assert (a + Component()).exact() == a.exact()

    @pytest.mark.parametrize("xs", [(0.1, 0.2, 0.3), (-1.75, 1e-30, math.pi), (-0.25, -0.5, 5e-324)])
    def test_associativity(self, xs) -> None:
        a, b, c = (Component.from_float(x) for x in xs)
        assert ((a + b) + c).exact() == (a + (b + c)).exact()
        assert ((a + b) + c).exact() == sum(exact_of(x) for x in xs)

    def test_subtraction_exact(self) -> None:
        a = Component.from_float(0.1)
        b = Component.from_float(-1e-30)
        assert (a - b).exact() == exact_of(0.1) - exact_of(-1e-30)

    def test_negation(self) -> None:
        a = Component.from_float(1.5)
        assert (-a).exact() == Fraction(-3, 2)
        assert (-a).integer == -2

    def test_int_operands(self) -> None:
        a = Component.from_float(1.5)
        assert (a + 1).exact() == Fraction(5, 2)
        assert (1 - a).exact() == Fraction(-1, 2)
        assert (2 + a).exact() == Fraction(7, 2)

    def test_unsupported_operand(self) -> None:
        with pytest.raises(TypeError):
            Component(1) + 0.5


# =============================================================================
# MULTIPLICATION
# =============================================================================


class TestMultiplication:
    def test_fractional_only_product_ignores_integers(self) -> None:
        # The fractional-only product never sees whole parts.
        product = Component(3).mul_subint(Component(4))
        assert product.integer == 0
        assert product.subint == ()
        assert product.exact() == 0

    def test_fractional_only_product_with_one_empty_operand(self) -> None:
        product = Component(3).mul_subint(Component.from_float(0.5))
        assert product.subint == (0,)

    def test_fractional_only_product(self) -> None:
        half = Component.from_float(0.5)
        assert half.mul_subint(half).subint == (0x40000000, 0)

        a = Component.from_float(1.75)
        b = Component.from_float(-0.1)
        expected = (a.exact() - a.integer) * (b.exact() - b.integer)
        assert a.mul_subint(b).exact() == expected

    def test_pure_integer_product_is_complete(self) -> None:
        assert Component(3) * Component(4) == Component(12)
        assert Component(-3) * Component(4) == Component(-12)

    @pytest.mark.parametrize(
        "x,y",
        [(1.5, -0.25), (-1.75, -1.75), (0.1, 0.3), (math.pi, -math.e), (-0.25, -0.25), (1e-30, 3.0), (-2.0, 0.1)],
    )
    def test_product_is_exact(self, x: float, y: float) -> None:
        a, b = Component.from_float(x), Component.from_float(y)
        product = a * b
        assert product.exact() == exact_of(x) * exact_of(y)
        assert product.words == a.words + b.words

    def test_all_ones_words(self) -> None:
        a = Component(0, (0xFFFFFFFF, 0xFFFFFFFF))
        assert (a * a).exact() == a.exact() ** 2

    def test_int_operand(self) -> None:
        a = Component.from_float(-0.25)
        assert (a * 4).exact() == -1
        assert (4 * a).exact() == -1


# =============================================================================
# PRECISION + PROJECTIONS
# =============================================================================


class TestPrecision:
    def test_truncate(self) -> None:
        value = Component(0, (1, 0x80000000))
        assert value.truncate(1).subint == (1,)
        assert value.truncate(5).subint == (1, 0x80000000)

    def test_truncate_rounds_toward_negative_infinity(self) -> None:
        assert Component.from_float(-0.25).truncate(0) == Component(-1)

    def test_round_half_up(self) -> None:
        assert Component(0, (1, 0x80000000)).round(1).subint == (2,)
        assert Component(0, (1, 0x7FFFFFFF)).round(1).subint == (1,)

    def test_round_carries_into_integer(self) -> None:
        assert Component(0, (0xFFFFFFFF, 0x80000000)).round(1) == Component(1)
        assert Component(0, (0x80000000,)).round(0) == Component(1)

    def test_negative_word_count(self) -> None:
        with pytest.raises(ValueError, match="words must be >= 0"):
            Component(1).truncate(-1)
        with pytest.raises(ValueError, match="words must be >= 0"):
            Component(1).round(-1)

    def test_trimmed(self) -> None:
        assert Component(2, (5, 0, 0)).trimmed().subint == (5,)


class TestEqualityAndProjection:
    def test_missing_words_are_zero(self) -> None:
        a = Component(1, (0x80000000,))
        b = Component(1, (0x80000000, 0, 0))
        assert a == b
        assert hash(a) == hash(b)
        assert a != Component(1, (0x80000001,))
        assert Component(3) == 3
        assert Component(3) == np.int64(3)
        assert Component.from_float(1.5) != np.int32(1)
        assert Component(1) != 1.0

    def test_words_validated(self) -> None:
        with pytest.raises(ValueError):
            Component(0, (1 << 32,))

    @pytest.mark.parametrize("x", [1.5, -0.25, 0.1, -1.156133259, math.pi])
    def test_to_float(self, x: float) -> None:
        assert Component.from_float(x).to_float() == x

    @pytest.mark.parametrize("x", FLOATS + [1e-40, -1e-40])
    def test_to_float_round_trip(self, x: float) -> None:
        assert Component.from_float(x).to_float() == x

    def test_to_float_rounds_to_nearest(self) -> None:
        # 1 + 2^-60 is not a binary64 value
        value = Component(1, (0, 0x10))
        assert value.to_float() == 1.0
        assert Component(-1, (0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF)).to_float() == -math.ldexp(1.0, -96)

    def test_to_float32(self) -> None:
        f = np.float32(0.1)
        projected = Component.from_float(f).to_float32()
        assert isinstance(projected, np.float32)
        assert projected == f

    def test_to_mpf(self) -> None:
        assert Component.from_float(0.1).to_mpf() == mpf(0.1)
        with mp.workprec(300):
            value = Component.from_float(1e-30) * Component.from_float(1e-30)
            assert value.to_mpf() == mpf(1e-30) * mpf(1e-30)

    def test_repr(self) -> None:
        assert repr(Component(1, (0x80000000,))) == "Component(integer=1, subint=(0x80000000,))"
        assert repr(Component(2)) == "Component(integer=2, subint=())"
