"""
Lattice transforms.

Each transform takes one or more Lattice values and returns a new one; no
input is modified.

- expand: tile a unit cell into a supercell
- alloy: relabel a share of one species
- merge / drop_periodic: union of lattices, closing boundaries
- apply_mask: image-driven site removal
"""

from .alloy import Alloy, alloy, alloy_mixture, make_rng, substitution_count
from .expand import expand, expand_all, expand_along
from .mask import Mask, apply_mask
from .merge import drop_all, drop_periodic, merge

__all__ = [
    'Alloy',
    'alloy',
    'alloy_mixture',
    'make_rng',
    'substitution_count',
    'expand',
    'expand_all',
    'expand_along',
    'Mask',
    'apply_mask',
    'drop_all',
    'drop_periodic',
    'merge',
]
