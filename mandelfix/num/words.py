"""32-bit word primitives used by the fixed-point arithmetic.

Python integers are unbounded, so every helper masks its result back into a
single word and hands the overflow to the caller as an explicit carry.
"""

from __future__ import annotations

from typing import Tuple

WORD_BITS = 32
WORD_MASK = (1 << WORD_BITS) - 1

INT32_MIN = -(1 << (WORD_BITS - 1))
INT32_MAX = (1 << (WORD_BITS - 1)) - 1


def wrap_i32(value: int) -> int:
    """Wrap an integer into signed 32-bit range."""
    return ((value - INT32_MIN) & WORD_MASK) + INT32_MIN


def carrying_add(a: int, b: int, carry: bool) -> Tuple[int, bool]:
    """a + b + carry, returning the low word and the carry out."""
    total = a + b + carry
    return total & WORD_MASK, total > WORD_MASK


def borrowing_sub(a: int, b: int, borrow: bool) -> Tuple[int, bool]:
    """a - b - borrow, returning the low word and the borrow out."""
    diff = a - b - borrow
    return diff & WORD_MASK, diff < 0


def carrying_mul(a: int, b: int, carry: int) -> Tuple[int, int]:
    """a * b + carry as a (low, high) word pair.

    The result always fits two words: (2^32 - 1)^2 + 2^32 - 1 < 2^64.
    """
    product = a * b + carry
    return product & WORD_MASK, product >> WORD_BITS


def check_word(word: int) -> int:
    if not 0 <= word <= WORD_MASK:
        raise ValueError(f"subint word out of range: {word!r}")
    return word


def words_to_int(words) -> int:
    """Pack most-significant-first words into one integer."""
    out = 0
    for w in words:
        out = (out << WORD_BITS) | w
    return out


def int_to_words(value: int, count: int) -> Tuple[int, ...]:
    """Split a non-negative integer into `count` words, most significant first."""
    return tuple((value >> (WORD_BITS * (count - 1 - k))) & WORD_MASK for k in range(count))
