"""
Lattice composition: union of two lattices and removal of periodicity.
"""

import logging
from typing import Union

import numpy as np

from ..config import DEFAULT_TOLERANCE
from ..core.lattice import Bond, Lattice
from ..errors import IncompatibleLatticeError
from ..utils.vectors import Axis

logger = logging.getLogger(__name__)


def merge(a: Lattice, b: Lattice, atol: float = DEFAULT_TOLERANCE) -> Lattice:
    """
    Union of two lattices sharing one unit cell.

    Sites of ``b`` are appended after those of ``a``, so their indices are
    shifted by ``a.num_sites``. Bonds keep their offsets.

    Parameters
    ----------
    a, b : Lattice
        Lattices to combine
    atol : float, optional
        Absolute tolerance for comparing the bases

    Returns
    -------
    lattice : Lattice
        Basis and periodicity of ``a``, sites of ``a`` then ``b``, bonds of
        ``a`` then re-indexed bonds of ``b``

    Raises
    ------
    IncompatibleLatticeError
        If the bases differ by more than ``atol`` or the periodicity flags
        differ
    """
    if not np.allclose(a.basis, b.basis, rtol=0.0, atol=atol):
        raise IncompatibleLatticeError(
            f"Cannot merge lattices with different bases:\n{a.basis}\nand\n{b.basis}")
    if a.periodic != b.periodic:
        raise IncompatibleLatticeError(
            f"Cannot merge lattices with different periodicity: {a.periodic} and {b.periodic}")

    shift = a.num_sites
    bonds = list(a.bonds)
    bonds.extend(
        Bond(bond.source + shift, bond.target + shift, bond.delta, bond.tags)
        for bond in b.bonds
    )
    result = Lattice(a.basis, a.sites + b.sites, bonds, a.periodic)
    logger.info(f"Merged {a} and {b} into {result}")
    return result


def drop_periodic(lattice: Lattice, axis: Union[Axis, str, int]) -> Lattice:
    """
    Close the boundary along one axis.

    Clears the periodicity flag and discards every bond that crosses the
    boundary along ``axis``, i.e. every bond with a nonzero offset component
    on it. Such bonds have no target inside the closed cell, so they are
    removed rather than wrapped.
    """
    axis = Axis.parse(axis)
    bonds = [bond for bond in lattice.bonds if bond.delta[axis] == 0]
    periodic = list(lattice.periodic)
    periodic[axis] = False
    result = Lattice(lattice.basis, lattice.sites, bonds, periodic)
    logger.info(f"Dropped periodicity along {axis.label}: "
                f"removed {lattice.num_bonds - result.num_bonds} bonds")
    return result


def drop_all(lattice: Lattice) -> Lattice:
    """Drop periodic boundary conditions along all axes."""
    for axis in Axis:
        lattice = drop_periodic(lattice, axis)
    return lattice
