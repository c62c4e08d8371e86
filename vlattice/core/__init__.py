"""
Core domain model for vlattice.

The Lattice value (sites, bonds, basis, periodicity) and the preset pattern
catalogue. Transforms and serializers consume and produce these values.
"""

from .lattice import (
    LATTICE_REGISTRY,
    Bond,
    Lattice,
    Pattern,
    Site,
    create_lattice,
    structurally_equal,
)

__all__ = [
    'LATTICE_REGISTRY',
    'Bond',
    'Lattice',
    'Pattern',
    'Site',
    'create_lattice',
    'structurally_equal',
]
