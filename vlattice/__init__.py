"""
vlattice: Lattice Graphs for Spin Simulations

Builds crystal lattices as periodic graphs of sites and bonds, transforms
them (supercell expansion, random alloying, merging, boundary control,
image masks) and writes them in formats atomistic spin simulators read.

Main Components
---------------
core : Domain model (Site, Bond, Lattice) and preset patterns
transforms : expand, alloy, merge, drop_periodic, apply_mask
io : JSON interchange and output formats
visualization : Projection plots
config : Settings from file and environment
cli : Command line pipeline stages

Quick Start
-----------
>>> import numpy as np
>>> from vlattice import create_lattice, expand, alloy
>>>
>>> # bcc iron cell tiled into a 10x10x10 supercell
>>> cell = create_lattice('bcc', a=2.87)
>>> supercell = expand(cell, (10, 10, 10))
>>>
>>> # Replace half the A sites, reproducibly
>>> rng = np.random.default_rng(42)
>>> mixed = alloy(supercell, 'A', 'Fe+', 50, rng)
>>> print(mixed)
"""

__version__ = "0.1.0"

from .core import Bond, Lattice, Pattern, Site, create_lattice, structurally_equal
from .errors import (
    FormatError,
    IncompatibleLatticeError,
    InvalidParameterError,
    LatticeError,
    NotFoundError,
    ValidationError,
)
from .transforms import (
    Alloy,
    Mask,
    alloy,
    alloy_mixture,
    apply_mask,
    drop_all,
    drop_periodic,
    expand,
    merge,
)

__all__ = [
    # Version info
    '__version__',

    # Model
    'Bond',
    'Lattice',
    'Pattern',
    'Site',
    'create_lattice',
    'structurally_equal',

    # Transforms
    'Alloy',
    'Mask',
    'alloy',
    'alloy_mixture',
    'apply_mask',
    'drop_all',
    'drop_periodic',
    'expand',
    'merge',

    # Errors
    'FormatError',
    'IncompatibleLatticeError',
    'InvalidParameterError',
    'LatticeError',
    'NotFoundError',
    'ValidationError',
]
