"""
Three-component integer and real vector helpers.

Cell offsets and replica coordinates are plain ``(int, int, int)`` tuples so
they can be hashed and compared exactly. Positions are ``(float, float, float)``
tuples. Anything heavier (basis products, tolerance checks) goes through numpy
in the modules that need it.
"""

import math
from enum import IntEnum
from typing import Iterable, Tuple, Union

from ..errors import InvalidParameterError

IntVector = Tuple[int, int, int]
RealVector = Tuple[float, float, float]

ZERO: IntVector = (0, 0, 0)


class Axis(IntEnum):
    """Cartesian axis, usable directly as a tuple index."""

    X = 0
    Y = 1
    Z = 2

    @classmethod
    def parse(cls, value: Union['Axis', str, int]) -> 'Axis':
        """
        Coerce ``value`` into an Axis.

        Accepts an Axis, one of ``'x'``, ``'y'``, ``'z'`` (any case) or an
        integer index 0-2.
        """
        if isinstance(value, Axis):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name in cls.__members__:
                return cls[name]
        elif isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= 2:
                return cls(value)
        raise InvalidParameterError(f"Unknown axis {value!r}, expected one of x, y, z")

    @property
    def label(self) -> str:
        return self.name.lower()


def as_int_vector(values: Iterable) -> IntVector:
    """Convert a length-3 iterable of integral numbers into an IntVector."""
    items = tuple(values)
    if len(items) != 3:
        raise ValueError(f"Expected 3 components, got {len(items)}")
    result = []
    for item in items:
        if isinstance(item, bool) or int(item) != item:
            raise ValueError(f"Offset components must be integers, got {item!r}")
        result.append(int(item))
    return tuple(result)


def as_real_vector(values: Iterable) -> RealVector:
    """Convert a length-3 iterable of finite numbers into a RealVector."""
    items = tuple(float(v) for v in values)
    if len(items) != 3:
        raise ValueError(f"Expected 3 components, got {len(items)}")
    if not all(math.isfinite(v) for v in items):
        raise ValueError(f"Non-finite component in {items}")
    return items


def add(a: IntVector, b: IntVector) -> IntVector:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def negate(a: IntVector) -> IntVector:
    return (-a[0], -a[1], -a[2])


def is_zero(a: IntVector) -> bool:
    return a[0] == 0 and a[1] == 0 and a[2] == 0


def wrap(value: int, modulus: int) -> Tuple[int, int]:
    """
    Wrap an integer coordinate into ``[0, modulus)``.

    Parameters
    ----------
    value : int
        Unwrapped coordinate, may be negative
    modulus : int
        Period, must be positive

    Returns
    -------
    residue, wraps : Tuple[int, int]
        ``value == wraps * modulus + residue`` with ``0 <= residue < modulus``.
        Negative values wrap downwards: ``wrap(-1, 2) == (1, -1)``.

    Examples
    --------
    >>> wrap(3, 2)
    (1, 1)
    >>> wrap(-3, 2)
    (1, -2)
    """
    wraps, residue = divmod(value, modulus)
    return residue, wraps


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties going up (2.5 -> 3, unlike ``round``)."""
    return int(math.floor(value + 0.5))
