"""
Lattice graph module.

Sites, bonds and the Lattice value that holds them, plus the preset pattern
catalogue.

Available patterns:
- sc, bcc, fcc: cubic cells, periodic along x, y and z
- square, triangular, honeycomb: layers, periodic along x and y
"""

from .base import Bond, BondKey, Lattice, Site, structurally_equal, unique_bonds
from .presets import (
    LATTICE_REGISTRY,
    Pattern,
    body_centered_cubic,
    create_lattice,
    face_centered_cubic,
    get_pattern,
    honeycomb,
    simple_cubic,
    square,
    triangular,
)

__all__ = [
    'Bond',
    'BondKey',
    'Lattice',
    'Site',
    'structurally_equal',
    'unique_bonds',
    'LATTICE_REGISTRY',
    'Pattern',
    'body_centered_cubic',
    'create_lattice',
    'face_centered_cubic',
    'get_pattern',
    'honeycomb',
    'simple_cubic',
    'square',
    'triangular',
]
