#!/usr/bin/env python3
"""
Bit-manipulation primitives over 32-bit two's-complement words.

Each operation re-implements a common arithmetic or logical primitive the
way the classic bit puzzles do (masks, shifts, sign tricks), on top of
numpy's fixed-width integer types so that addition wraps and right shift
sign-extends exactly like 32-bit hardware.

All operations accept Python ints, numpy integers, or array-likes:
- scalar inputs return a Python int
- array inputs return a numpy int32 array (broadcast like numpy does)

Integers outside the signed 32-bit range are reduced modulo 2^32 first, so
``0x80000001`` is accepted and means ``-2147483647``.
"""

import numpy as np
from typing import Callable, Dict, Tuple


WORD_BITS = 32
TMAX = 2 ** 31 - 1
TMIN = -(2 ** 31)

_MASK = 0xFFFFFFFF
_SIGN_BIT = 0x80000000


def _wrap(value: int) -> int:
    """Reduce a Python int modulo 2^32 and reinterpret it as signed."""
    value &= _MASK
    return value - (1 << WORD_BITS) if value & _SIGN_BIT else value


def _as_words(x) -> np.ndarray:
    """Convert an int or array-like to an int32 array (at least 1-d)."""
    if isinstance(x, (bool, np.bool_)):
        raise TypeError(f"Expected an integer word, got {type(x).__name__}")
    if isinstance(x, (int, np.integer)):
        return np.array([_wrap(int(x))], dtype=np.int32)

    arr = np.asarray(x)
    if arr.dtype == np.int32:
        return np.atleast_1d(arr)
    if np.issubdtype(arr.dtype, np.integer):
        # Go through uint64 so negative int64 values wrap instead of clipping
        wrapped = arr.astype(np.uint64) & np.uint64(_MASK)
        return np.atleast_1d(wrapped.astype(np.uint32).view(np.int32))
    if arr.dtype == object:
        values = list(arr.flat)
        if all(isinstance(v, (int, np.integer)) and not isinstance(v, bool) for v in values):
            wrapped = np.array([_wrap(int(v)) for v in values], dtype=np.int32)
            return np.atleast_1d(wrapped.reshape(arr.shape))
    raise TypeError(f"Expected integer words, got dtype {arr.dtype}")


def _as_params(values, low: int, high: int, name: str) -> np.ndarray:
    """Validate an integer parameter (or array of them) against [low, high]."""
    arr = np.atleast_1d(np.asarray(values))
    if not np.issubdtype(arr.dtype, np.integer) or arr.dtype == np.bool_:
        raise TypeError(f"{name} must be an integer, got dtype {arr.dtype}")
    if np.any((arr < low) | (arr > high)):
        raise ValueError(f"{name} must be in [{low}, {high}], got {values}")
    return arr.astype(np.int32)


def _is_scalar(*args) -> bool:
    return all(np.ndim(a) == 0 for a in args)


def _result(arr: np.ndarray, scalar: bool):
    arr = np.asarray(arr).astype(np.int32)
    if scalar:
        return int(arr.reshape(-1)[0])
    return arr


def _unsigned(x: np.ndarray) -> np.ndarray:
    return x.view(np.uint32)


def _signed(x: np.ndarray) -> np.ndarray:
    return x.view(np.int32)


def to_word(x):
    """
    Normalise a value to a 32-bit two's-complement word.

    Example:
        >>> to_word(0x80000001)
        -2147483647
        >>> to_word(2 ** 32 + 5)
        5
    """
    return _result(_as_words(x), _is_scalar(x))


def and_(x, y):
    """
    Compute x & y from | and ~ alone (de Morgan).

    Example:
        >>> and_(0b1100, 0b1010)
        8
    """
    scalar = _is_scalar(x, y)
    x, y = np.broadcast_arrays(_as_words(x), _as_words(y))
    return _result(~(~x | ~y), scalar)


def or_(x, y):
    """
    Compute x | y from & and ~ alone (de Morgan).

    Example:
        >>> or_(0b1100, 0b1010)
        14
    """
    scalar = _is_scalar(x, y)
    x, y = np.broadcast_arrays(_as_words(x), _as_words(y))
    return _result(~(~x & ~y), scalar)


def is_tmax(x):
    """
    Return 1 if x is TMax (2^31 - 1), and 0 otherwise.

    Adding the sign bit to TMax gives -1; adding one more gives zero. No
    other word reaches zero that way.

    Example:
        >>> is_tmax(2147483647)
        1
        >>> is_tmax(-1)
        0
    """
    scalar = _is_scalar(x)
    ux = _unsigned(_as_words(x))
    total = ux + np.uint32(_SIGN_BIT) + np.uint32(1)
    return _result(total == 0, scalar)


def is_zero(x):
    """Return 1 if x == 0, and 0 otherwise."""
    scalar = _is_scalar(x)
    return _result(_as_words(x) == 0, scalar)


def fits_in(x, n):
    """
    Return 1 if x can be stored as an n-bit two's-complement number.

    x fits in n bits when every bit from position n-1 upwards is a copy of
    the sign bit, i.e. when x >> (n - 1) is all zeros or all ones.

    Args:
        x: Word(s) to test
        n: Bit width, 1 <= n <= 32

    Raises:
        ValueError: If n is outside [1, 32]

    Example:
        >>> fits_in(5, 3)
        0
        >>> fits_in(-4, 3)
        1
    """
    scalar = _is_scalar(x, n)
    width = _as_params(n, 1, WORD_BITS, "n")
    x, width = np.broadcast_arrays(_as_words(x), width)
    shifted = x >> (width - 1)
    return _result((shifted == 0) | (shifted == -1), scalar)


def can_add(x, y):
    """
    Return 1 if x + y neither overflows nor underflows, and 0 otherwise.

    Overflow is only possible when both operands share a sign and the
    wrapped sum has the other sign.

    Example:
        >>> can_add(2147483647, 1)
        0
        >>> can_add(1, -1)
        1
    """
    scalar = _is_scalar(x, y)
    x, y = np.broadcast_arrays(_as_words(x), _as_words(y))
    total = _signed(_unsigned(x) + _unsigned(y))
    overflow = ((x ^ total) & (y ^ total)) < 0
    return _result(~overflow, scalar)


def greater_than(x, y):
    """
    Return 1 if x > y as signed words, and 0 otherwise.

    When the signs differ, x is greater exactly when it is non-negative.
    When they match, x - y cannot overflow and its sign decides.

    Example:
        >>> greater_than(-2147483648, 2147483647)
        0
        >>> greater_than(3, 3)
        0
    """
    scalar = _is_scalar(x, y)
    x, y = np.broadcast_arrays(_as_words(x), _as_words(y))
    diff = _signed(_unsigned(x) - _unsigned(y))
    different_sign = (x ^ y) < 0
    greater = np.where(different_sign, x >= 0, diff > 0)
    return _result(greater, scalar)


def write_byte(x, idx, b):
    """
    Replace byte ``idx`` of x (0 = least significant) with b.

    Args:
        x: Word(s) to modify
        idx: Byte index, 0 <= idx <= 3
        b: New byte value, 0 <= b <= 255

    Raises:
        ValueError: If idx or b is out of range

    Example:
        >>> hex(write_byte(0x12345678, 2, 0xAB))
        '0x12ab5678'
    """
    scalar = _is_scalar(x, idx, b)
    index = _as_params(idx, 0, 3, "idx")
    new_byte = _as_params(b, 0, 255, "b")
    x, index, new_byte = np.broadcast_arrays(_as_words(x), index, new_byte)

    shift = index.astype(np.uint32) << np.uint32(3)
    mask = np.uint32(0xFF) << shift
    ux = (_unsigned(x) & ~mask) | (new_byte.astype(np.uint32) << shift)
    return _result(_signed(ux), scalar)


def rotate_left(x, n):
    """
    Rotate x left by n bits.

    The top n bits are brought down with a logical right shift by 32 - n,
    done as a shift by 1 then by 31 - n so that n == 0 needs no branch.

    Args:
        x: Word(s) to rotate
        n: Rotation, 0 <= n <= 31

    Raises:
        ValueError: If n is outside [0, 31]

    Example:
        >>> rotate_left(0x80000001, 1)
        3
    """
    scalar = _is_scalar(x, n)
    amount = _as_params(n, 0, WORD_BITS - 1, "n")
    x, amount = np.broadcast_arrays(_as_words(x), amount)

    ux = _unsigned(x)
    amount = amount.astype(np.uint32)
    high = (ux >> np.uint32(1)) >> (np.uint32(WORD_BITS - 1) - amount)
    return _result(_signed((ux << amount) | high), scalar)


def pop_count(x):
    """
    Return the number of 1-bits in x, treating x as unsigned.

    Hamming weight by successive folding: 2-bit buckets, then 4, 8 and
    finally one multiply that sums the four byte counts into the top byte.

    Example:
        >>> pop_count(-1)
        32
        >>> pop_count(0b1011)
        3
    """
    scalar = _is_scalar(x)
    v = _unsigned(_as_words(x))
    v = v - ((v >> np.uint32(1)) & np.uint32(0x55555555))
    v = (v & np.uint32(0x33333333)) + ((v >> np.uint32(2)) & np.uint32(0x33333333))
    v = (v + (v >> np.uint32(4))) & np.uint32(0x0F0F0F0F)
    v = (v * np.uint32(0x01010101)) >> np.uint32(24)
    return _result(v, scalar)


# Operations by name, for lookup from the REPL and the HTTP API
OPERATIONS: Dict[str, Callable] = {
    'and': and_,
    'or': or_,
    'is_tmax': is_tmax,
    'is_zero': is_zero,
    'fits_in': fits_in,
    'can_add': can_add,
    'greater_than': greater_than,
    'write_byte': write_byte,
    'rotate_left': rotate_left,
    'pop_count': pop_count,
}

ARITY: Dict[str, int] = {
    'and': 2,
    'or': 2,
    'is_tmax': 1,
    'is_zero': 1,
    'fits_in': 2,
    'can_add': 2,
    'greater_than': 2,
    'write_byte': 3,
    'rotate_left': 2,
    'pop_count': 1,
}


def get_operation(name: str) -> Tuple[Callable, int]:
    """
    Get a bit operation and its arity by name.

    Raises:
        ValueError: If name is not recognized

    Example:
        >>> fn, arity = get_operation('pop_count')
        >>> fn(7), arity
        (3, 1)
    """
    if name not in OPERATIONS:
        raise ValueError(
            f"Unknown operation '{name}'. "
            f"Available: {list(OPERATIONS.keys())}"
        )
    return OPERATIONS[name], ARITY[name]
