"""
Preset unit cells for common lattices.

This module is the pattern catalogue. Each preset builds one validated unit
cell:
- Simple cubic (sc), body centred cubic (bcc), face centred cubic (fcc)
- Square, triangular and honeycomb layers (2D, non-periodic along z)

Bonds are nearest-neighbour bonds, each listed once.
"""

from enum import Enum
from typing import Callable, Dict, Union

import numpy as np

from ...errors import InvalidParameterError, NotFoundError
from .base import Bond, Lattice, Site

LAYER = (True, True, False)


class Pattern(Enum):
    """Supported pattern names."""

    SC = 'sc'
    BCC = 'bcc'
    FCC = 'fcc'
    SQUARE = 'square'
    TRIANGULAR = 'triangular'
    HONEYCOMB = 'honeycomb'

    @classmethod
    def parse(cls, name: Union['Pattern', str]) -> 'Pattern':
        if isinstance(name, Pattern):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            available = ', '.join(p.value for p in cls)
            raise NotFoundError(f"Unknown lattice type '{name}'. "
                                f"Available types: {available}") from None


def _check_parameter(a: float) -> float:
    if not a > 0:
        raise InvalidParameterError(f"Lattice constant must be positive, got {a}")
    return float(a)


def simple_cubic(a: float = 1.0, kind: str = 'A') -> Lattice:
    """
    Simple cubic lattice.

    One site per cell and three bonds, one along each axis. Every site has
    6 nearest neighbours at distance a.
    """
    a = _check_parameter(a)
    sites = [Site(kind)]
    bonds = [
        Bond(0, 0, (1, 0, 0)),
        Bond(0, 0, (0, 1, 0)),
        Bond(0, 0, (0, 0, 1)),
    ]
    return Lattice(a * np.eye(3), sites, bonds)


def body_centered_cubic(a: float = 1.0) -> Lattice:
    """
    Body centred cubic lattice.

    Two sites per conventional cell (A at the corner, B at the body centre).
    Each site has 8 nearest neighbours of the other kind at distance a√3/2.
    """
    a = _check_parameter(a)
    sites = [
        Site('A'),
        Site('B', (0.5, 0.5, 0.5)),
    ]
    bonds = [
        Bond(0, 1, (0, 0, 0)),
        Bond(0, 1, (0, -1, 0)),
        Bond(0, 1, (-1, 0, 0)),
        Bond(0, 1, (-1, -1, 0)),
        Bond(0, 1, (0, 0, -1)),
        Bond(0, 1, (0, -1, -1)),
        Bond(0, 1, (-1, 0, -1)),
        Bond(0, 1, (-1, -1, -1)),
    ]
    return Lattice(a * np.eye(3), sites, bonds)


def face_centered_cubic(a: float = 1.0) -> Lattice:
    """
    Face centred cubic lattice.

    Four sites per conventional cell: A at the corner and B, C, D at the
    centres of the xy, xz and yz faces. Every site has 12 nearest neighbours
    at distance a/√2, giving 24 bonds per cell.
    """
    a = _check_parameter(a)
    sites = [
        Site('A'),
        Site('B', (0.5, 0.5, 0.0)),
        Site('C', (0.5, 0.0, 0.5)),
        Site('D', (0.0, 0.5, 0.5)),
    ]
    bonds = [
        # xy plane
        Bond(0, 1, (0, 0, 0)),
        Bond(0, 1, (-1, 0, 0)),
        Bond(0, 1, (-1, -1, 0)),
        Bond(0, 1, (0, -1, 0)),
        # xz plane
        Bond(0, 2, (0, 0, 0)),
        Bond(0, 2, (-1, 0, 0)),
        Bond(0, 2, (-1, 0, -1)),
        Bond(0, 2, (0, 0, -1)),
        # yz plane
        Bond(0, 3, (0, 0, 0)),
        Bond(0, 3, (0, -1, 0)),
        Bond(0, 3, (0, -1, -1)),
        Bond(0, 3, (0, 0, -1)),
        # face centres among themselves
        Bond(1, 2, (0, 0, 0)),
        Bond(1, 2, (0, 1, 0)),
        Bond(1, 2, (0, 0, -1)),
        Bond(1, 2, (0, 1, -1)),
        Bond(1, 3, (0, 0, 0)),
        Bond(1, 3, (1, 0, 0)),
        Bond(1, 3, (0, 0, -1)),
        Bond(1, 3, (1, 0, -1)),
        Bond(2, 3, (0, 0, 0)),
        Bond(2, 3, (1, 0, 0)),
        Bond(2, 3, (0, -1, 0)),
        Bond(2, 3, (1, -1, 0)),
    ]
    return Lattice(a * np.eye(3), sites, bonds)


def square(a: float = 1.0, kind: str = 'A') -> Lattice:
    """Square layer: 4 nearest neighbours at distance a."""
    a = _check_parameter(a)
    bonds = [
        Bond(0, 0, (1, 0, 0)),
        Bond(0, 0, (0, 1, 0)),
    ]
    return Lattice(a * np.eye(3), [Site(kind)], bonds, periodic=LAYER)


def triangular(a: float = 1.0, kind: str = 'A') -> Lattice:
    """
    Triangular (hexagonal) layer.

    Geometry
    --------
    Primitive vectors (for lattice constant a):
        a1 = a * [1, 0, 0]
        a2 = a * [1/2, √3/2, 0]

    Nearest neighbours at distance a along a1, a2 and a2 - a1, 6 per site.
    """
    a = _check_parameter(a)
    basis = a * np.array([
        [1.0, 0.0, 0.0],
        [0.5, np.sqrt(3) / 2.0, 0.0],
        [0.0, 0.0, 1.0],
    ])
    bonds = [
        Bond(0, 0, (1, 0, 0)),
        Bond(0, 0, (0, 1, 0)),
        Bond(0, 0, (-1, 1, 0)),
    ]
    return Lattice(basis, [Site(kind)], bonds, periodic=LAYER)


def honeycomb(a: float = 1.0) -> Lattice:
    """
    Honeycomb layer.

    Triangular Bravais lattice with a two-site basis (A at the origin, B at
    fractional (1/3, 1/3)). Each site has 3 nearest neighbours of the other
    kind at distance a/√3.
    """
    a = _check_parameter(a)
    basis = a * np.array([
        [1.0, 0.0, 0.0],
        [0.5, np.sqrt(3) / 2.0, 0.0],
        [0.0, 0.0, 1.0],
    ])
    sites = [
        Site('A'),
        Site('B', (1.0 / 3.0, 1.0 / 3.0, 0.0)),
    ]
    bonds = [
        Bond(0, 1, (0, 0, 0)),
        Bond(0, 1, (-1, 0, 0)),
        Bond(0, 1, (0, -1, 0)),
    ]
    return Lattice(basis, sites, bonds, periodic=LAYER)


# Lattice registry for name-based construction
LATTICE_REGISTRY: Dict[Pattern, Callable[..., Lattice]] = {
    Pattern.SC: simple_cubic,
    Pattern.BCC: body_centered_cubic,
    Pattern.FCC: face_centered_cubic,
    Pattern.SQUARE: square,
    Pattern.TRIANGULAR: triangular,
    Pattern.HONEYCOMB: honeycomb,
}


def get_pattern(name: Union[Pattern, str]) -> Callable[..., Lattice]:
    """Builder registered for a pattern name."""
    return LATTICE_REGISTRY[Pattern.parse(name)]


def create_lattice(lattice_type: Union[Pattern, str], **kwargs) -> Lattice:
    """
    Build a preset unit cell by name.

    Parameters
    ----------
    lattice_type : Pattern or str
        One of 'sc', 'bcc', 'fcc', 'square', 'triangular', 'honeycomb'
    **kwargs
        Passed to the builder (e.g. a=2.87)

    Returns
    -------
    lattice : Lattice

    Raises
    ------
    NotFoundError
        If lattice_type is not recognized

    Examples
    --------
    >>> create_lattice('bcc', a=2.87).num_sites
    2
    """
    return get_pattern(lattice_type)(**kwargs)
