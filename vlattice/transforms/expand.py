"""
Supercell expansion.

Tiles a unit cell ``nx * ny * nz`` times and rebuilds the bond topology of
the supercell. Bonds that cross a periodic boundary of the supercell wrap
around and keep a reduced cell offset. Bonds whose target falls outside a
non-periodic supercell are dropped.

Site ordering
-------------
Replica ``(i, j, k)`` has the linear index ``r = i + nx * (j + ny * k)``, so
x varies fastest. The copy of original site ``s`` in replica ``r`` gets index
``r * n_sites + s``. This is the order obtained by growing along x, then y,
then z.

Cost is O(n * nx * ny * nz) in both time and memory, for n the number of
sites plus bonds of the unit cell.
"""

import logging
from itertools import product
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np
from tqdm import tqdm

from ..core.lattice import Bond, Lattice
from ..errors import InvalidParameterError
from ..utils.vectors import Axis, IntVector, add, wrap

logger = logging.getLogger(__name__)

Factors = Tuple[int, int, int]


def _check_factors(factors: Sequence[int]) -> Factors:
    factors = tuple(factors)
    if len(factors) != 3:
        raise InvalidParameterError(f"Expected 3 expansion factors, got {len(factors)}")
    for axis, n in zip(Axis, factors):
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            raise InvalidParameterError(
                f"Expansion factor along {axis.label} must be an integer, got {n!r}")
        if n < 1:
            raise InvalidParameterError(
                f"Expansion factor along {axis.label} must be at least 1, got {n}")
    return tuple(int(n) for n in factors)


def replica_index(cell: IntVector, factors: Factors) -> int:
    """Linear index of replica ``cell`` in a grid of ``factors`` (x fastest)."""
    i, j, k = cell
    nx, ny, _ = factors
    return i + nx * (j + ny * k)


def replicas(factors: Factors) -> Iterator[IntVector]:
    """All replica coordinates in linear index order."""
    nx, ny, nz = factors
    for k, j, i in product(range(nz), range(ny), range(nx)):
        yield (i, j, k)


def reduce_target(cell: IntVector,
                  delta: IntVector,
                  factors: Factors,
                  periodic: Sequence[bool]) -> Optional[Tuple[IntVector, IntVector]]:
    """
    Locate the replica a bond lands in.

    Parameters
    ----------
    cell : IntVector
        Replica holding the bond's source site
    delta : IntVector
        Bond offset in unit-cell units
    factors : Factors
        Tile counts of the supercell
    periodic : Sequence[bool]
        Periodicity of the supercell per axis

    Returns
    -------
    (target_cell, offset) or None
        ``target_cell`` lies inside the grid and ``offset`` counts the whole
        supercell widths crossed, per axis. None when the target lies outside
        the grid along a non-periodic axis.
    """
    unwrapped = add(cell, delta)
    target = []
    offset = []
    for axis in Axis:
        coordinate = unwrapped[axis]
        n = factors[axis]
        if periodic[axis]:
            residue, wraps = wrap(coordinate, n)
            target.append(residue)
            offset.append(wraps)
        elif 0 <= coordinate < n:
            target.append(coordinate)
            offset.append(0)
        else:
            return None
    return tuple(target), tuple(offset)


def expand(lattice: Lattice,
           factors: Sequence[int],
           periodic: Optional[Sequence[bool]] = None,
           progress: bool = False) -> Lattice:
    """
    Tile a lattice into a supercell.

    Parameters
    ----------
    lattice : Lattice
        Unit cell to tile
    factors : Sequence[int]
        Tile counts (nx, ny, nz), each at least 1
    periodic : Sequence[bool], optional
        Periodicity of the resulting supercell. Defaults to the periodicity
        of ``lattice``; an axis can only be switched off, never on. Bonds
        that would leave the supercell along a switched-off axis are dropped.
    progress : bool, optional
        Show a progress bar over replicas

    Returns
    -------
    supercell : Lattice
        ``num_sites * nx * ny * nz`` sites, basis rows scaled by the factors,
        duplicate bonds coalesced

    Raises
    ------
    InvalidParameterError
        If a factor is not a positive integer, or ``periodic`` tries to turn
        on an axis that is not periodic in ``lattice``

    Examples
    --------
    >>> from vlattice.core.lattice import simple_cubic
    >>> cube = expand(simple_cubic(), (2, 2, 2))
    >>> cube.num_sites, cube.num_bonds
    (8, 24)
    """
    factors = _check_factors(factors)
    if periodic is None:
        periodic = lattice.periodic
    else:
        periodic = tuple(bool(p) for p in periodic)
        for axis in Axis:
            if periodic[axis] and not lattice.periodic[axis]:
                raise InvalidParameterError(
                    f"Cannot make axis {axis.label} periodic during expansion")

    n_sites = lattice.num_sites
    scale = np.array(factors, dtype=float)
    cells = list(replicas(factors))

    logger.debug(f"Expanding {lattice} by {factors}: "
                 f"{n_sites * len(cells)} sites, up to {lattice.num_bonds * len(cells)} bonds")

    sites = []
    for cell in cells:
        for site in lattice.sites:
            position = (np.asarray(site.position) + np.asarray(cell)) / scale
            sites.append(site.with_position(position))

    bonds = []
    seen = set()
    dropped = 0
    for cell in tqdm(cells, desc="Expanding lattice", disable=not progress):
        base = replica_index(cell, factors) * n_sites
        for bond in lattice.bonds:
            reduced = reduce_target(cell, bond.delta, factors, periodic)
            if reduced is None:
                dropped += 1
                continue
            target_cell, offset = reduced
            new_bond = Bond(base + bond.source,
                            replica_index(target_cell, factors) * n_sites + bond.target,
                            offset,
                            bond.tags)
            key = new_bond.key()
            if key in seen:
                continue
            seen.add(key)
            bonds.append(new_bond)

    basis = lattice.basis * scale[:, np.newaxis]
    result = Lattice(basis, sites, bonds, periodic)

    logger.info(f"Expanded {lattice} by {factors} into {result}")
    if dropped:
        logger.debug(f"Dropped {dropped} bonds leaving the non-periodic supercell")
    return result


def expand_along(lattice: Lattice, axis: Union[Axis, str, int], amount: int) -> Lattice:
    """Expand along a single axis."""
    factors = [1, 1, 1]
    factors[Axis.parse(axis)] = amount
    return expand(lattice, factors)


def expand_all(lattice: Lattice, amount: int) -> Lattice:
    """Expand by the same amount along all axes."""
    return expand(lattice, (amount, amount, amount))
