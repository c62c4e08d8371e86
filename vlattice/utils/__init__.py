"""General utilities that have nothing to do with lattices."""

from .vectors import (
    ZERO,
    Axis,
    IntVector,
    RealVector,
    add,
    as_int_vector,
    as_real_vector,
    is_zero,
    negate,
    round_half_up,
    wrap,
)

__all__ = [
    'ZERO',
    'Axis',
    'IntVector',
    'RealVector',
    'add',
    'as_int_vector',
    'as_real_vector',
    'is_zero',
    'negate',
    'round_half_up',
    'wrap',
]
