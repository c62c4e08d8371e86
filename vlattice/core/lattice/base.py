"""
Lattice graph model: sites, bonds and the periodic unit cell holding them.

A lattice is a graph whose nodes (sites) live at fractional positions inside
one unit cell and whose edges (bonds) may reach into a neighbouring periodic
image of the cell. The image is named by an integer cell offset, in units of
the basis vectors. Lattices are values: they are validated once on
construction and never mutated afterwards. Every transform builds a new one.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from ...config import DEFAULT_TOLERANCE
from ...errors import ValidationError
from ...utils.vectors import (
    ZERO,
    Axis,
    IntVector,
    RealVector,
    as_int_vector,
    as_real_vector,
    is_zero,
    negate,
)

BondKey = Tuple[int, int, IntVector]


@dataclass(frozen=True)
class Site:
    """
    A lattice point.

    Attributes
    ----------
    kind : str
        Species label, e.g. 'Fe' or 'Fe+'
    position : Tuple[float, float, float]
        Fractional position in units of the lattice basis vectors
    attributes : Dict[str, float]
        Opaque scalar attributes (moment magnitude, anisotropy, ...)
    tags : Tuple[str, ...]
        Free-form labels carried through every transform
    """
    kind: str
    position: RealVector = (0.0, 0.0, 0.0)
    attributes: Dict[str, float] = field(default_factory=dict)
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.kind, str) or not self.kind:
            raise ValidationError(f"Site kind must be a non-empty string, got {self.kind!r}")
        try:
            position = as_real_vector(self.position)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid site position {self.position!r}: {exc}") from exc
        try:
            attributes = {str(k): float(v) for k, v in dict(self.attributes).items()}
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Site attributes must be scalars: {self.attributes!r}") from exc
        object.__setattr__(self, 'position', position)
        object.__setattr__(self, 'attributes', attributes)
        object.__setattr__(self, 'tags', tuple(str(t) for t in self.tags))

    def with_kind(self, kind: str) -> 'Site':
        return replace(self, kind=kind)

    def with_position(self, position: Iterable[float]) -> 'Site':
        return replace(self, position=tuple(position))

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass(frozen=True)
class Bond:
    """
    An edge between two sites.

    The bond joins ``source`` in the reference cell to the periodic image of
    ``target`` displaced by ``delta`` cells. A bond with ``delta == (0, 0, 0)``
    stays inside one cell.

    Attributes
    ----------
    source : int
        Index of the source site
    target : int
        Index of the target site
    delta : Tuple[int, int, int]
        Cell offset of the target image, in units of the basis vectors
    tags : Tuple[str, ...]
        Free-form labels

    Examples
    --------
    >>> Bond(0, 1, (0, 0, 1)).reversed()
    Bond(source=1, target=0, delta=(0, 0, -1), tags=())
    """
    source: int
    target: int
    delta: IntVector = ZERO
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        for name in ('source', 'target'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
                raise ValidationError(f"Bond {name} must be a non-negative integer, got {value!r}")
            object.__setattr__(self, name, int(value))
        try:
            delta = as_int_vector(self.delta)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid bond delta {self.delta!r}: {exc}") from exc
        object.__setattr__(self, 'delta', delta)
        object.__setattr__(self, 'tags', tuple(str(t) for t in self.tags))

    def reversed(self) -> 'Bond':
        """The same physical bond seen from the target site."""
        return replace(self, source=self.target, target=self.source, delta=negate(self.delta))

    def key(self) -> BondKey:
        """
        Direction-independent identity of the bond.

        ``(s, t, d)`` and ``(t, s, -d)`` describe the same edge and share a key.
        Used to coalesce duplicates and to compare bond sets.
        """
        if self.source < self.target:
            return (self.source, self.target, self.delta)
        if self.source > self.target:
            return (self.target, self.source, negate(self.delta))
        return (self.source, self.target, max(self.delta, negate(self.delta)))

    def reindexed(self, index: Sequence[int]) -> 'Bond':
        return replace(self, source=index[self.source], target=index[self.target])

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


class Lattice:
    """
    A periodic (or partly periodic) graph of sites and bonds.

    Parameters
    ----------
    basis : array_like, shape (3, 3)
        Basis vectors of the unit cell, one per row: [a1, a2, a3]
    sites : Sequence[Site]
        Sites of the cell. A site's index is its position in this sequence.
    bonds : Sequence[Bond]
        Bonds between sites, possibly across cell boundaries
    periodic : Tuple[bool, bool, bool]
        Whether bonds may wrap across the cell boundary along x, y and z

    Raises
    ------
    ValidationError
        If the basis is not a non-degenerate 3x3 matrix, a bond references
        a missing site, a bond has a nonzero offset along a non-periodic
        axis, or a bond joins a site to itself inside the same cell.

    Notes
    -----
    Positions are fractional. The Cartesian position of site ``s`` in cell
    ``n`` is ``(s.position + n) @ basis``.

    Examples
    --------
    >>> chain = Lattice(np.eye(3), [Site('Fe')], [Bond(0, 0, (1, 0, 0))],
    ...                 periodic=(True, False, False))
    >>> chain.num_sites, chain.num_bonds
    (1, 1)
    """

    __hash__ = None

    def __init__(self,
                 basis,
                 sites: Sequence[Site] = (),
                 bonds: Sequence[Bond] = (),
                 periodic: Sequence[bool] = (True, True, True)):
        try:
            basis = np.array(basis, dtype=float)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Basis must be numeric: {exc}") from exc
        basis.setflags(write=False)

        self._basis = basis
        self._sites = tuple(sites)
        self._bonds = tuple(bonds)
        self._periodic = tuple(bool(p) for p in periodic)
        self._validate()

    def _validate(self) -> None:
        if self._basis.shape != (3, 3):
            raise ValidationError(f"Basis must have shape (3, 3), got {self._basis.shape}")
        if not np.all(np.isfinite(self._basis)):
            raise ValidationError("Basis contains non-finite values")
        if abs(np.linalg.det(self._basis)) <= 1e-12:
            raise ValidationError("Basis vectors are degenerate (zero cell volume)")
        if len(self._periodic) != 3:
            raise ValidationError(f"Expected 3 periodicity flags, got {len(self._periodic)}")

        for i, site in enumerate(self._sites):
            if not isinstance(site, Site):
                raise ValidationError(f"Site {i} is not a Site: {site!r}")

        n = len(self._sites)
        for i, bond in enumerate(self._bonds):
            if not isinstance(bond, Bond):
                raise ValidationError(f"Bond {i} is not a Bond: {bond!r}")
            if bond.source >= n or bond.target >= n:
                raise ValidationError(
                    f"Bond {i} ({bond.source} -> {bond.target}) references a missing site; "
                    f"lattice has {n} sites")
            for axis in Axis:
                if bond.delta[axis] != 0 and not self._periodic[axis]:
                    raise ValidationError(
                        f"Bond {i} has offset {bond.delta} along non-periodic axis {axis.label}")
            if bond.source == bond.target and is_zero(bond.delta):
                raise ValidationError(f"Bond {i} joins site {bond.source} to itself in the same cell")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def basis(self) -> np.ndarray:
        """Read-only basis matrix, rows are the cell vectors."""
        return self._basis

    @property
    def sites(self) -> Tuple[Site, ...]:
        return self._sites

    @property
    def bonds(self) -> Tuple[Bond, ...]:
        return self._bonds

    @property
    def periodic(self) -> Tuple[bool, bool, bool]:
        return self._periodic

    @property
    def num_sites(self) -> int:
        return len(self._sites)

    @property
    def num_bonds(self) -> int:
        return len(self._bonds)

    @property
    def volume(self) -> float:
        """Unit cell volume |det(basis)|."""
        return float(abs(np.linalg.det(self._basis)))

    @property
    def size(self) -> Tuple[float, float, float]:
        """Lengths of the three basis vectors."""
        return tuple(float(v) for v in np.linalg.norm(self._basis, axis=1))

    def is_periodic(self, axis) -> bool:
        return self._periodic[Axis.parse(axis)]

    def kinds(self) -> Counter:
        """Number of sites per species label."""
        return Counter(site.kind for site in self._sites)

    def fractional_positions(self) -> np.ndarray:
        """Site positions in fractional coordinates, shape (num_sites, 3)."""
        return np.array([site.position for site in self._sites], dtype=float).reshape(-1, 3)

    def cartesian_positions(self) -> np.ndarray:
        """Site positions in Cartesian coordinates, shape (num_sites, 3)."""
        return self.fractional_positions() @ self._basis

    def fractional_to_real(self, fractional) -> np.ndarray:
        """
        Convert fractional coordinates to real-space coordinates.

        Parameters
        ----------
        fractional : array_like, shape (3,) or (N, 3)

        Returns
        -------
        position : np.ndarray
            n1*a1 + n2*a2 + n3*a3
        """
        return np.asarray(fractional, dtype=float) @ self._basis

    def real_to_fractional(self, position) -> np.ndarray:
        """Inverse of fractional_to_real."""
        position = np.asarray(position, dtype=float)
        return np.linalg.solve(self._basis.T, position.T).T

    def bond_vector(self, bond: Bond) -> np.ndarray:
        """Cartesian displacement from the source site to the bonded target image."""
        source = np.asarray(self._sites[bond.source].position)
        target = np.asarray(self._sites[bond.target].position) + np.asarray(bond.delta)
        return (target - source) @ self._basis

    def neighbors(self) -> List[List[Tuple[int, IntVector]]]:
        """
        Adjacency listing of the graph.

        Returns
        -------
        neighbors : List[List[Tuple[int, IntVector]]]
            For each site, the ``(neighbor_index, cell_offset)`` pairs it is
            bonded to. Every bond appears from both ends.
        """
        listing: List[List[Tuple[int, IntVector]]] = [[] for _ in self._sites]
        for bond in self._bonds:
            listing[bond.source].append((bond.target, bond.delta))
            listing[bond.target].append((bond.source, negate(bond.delta)))
        return listing

    def bond_keys(self) -> Dict[BondKey, Tuple[str, ...]]:
        """Canonical bond keys mapped to the tags of their first occurrence."""
        keys: Dict[BondKey, Tuple[str, ...]] = {}
        for bond in self._bonds:
            keys.setdefault(bond.key(), bond.tags)
        return keys

    # ------------------------------------------------------------------
    # Copy-on-transform helpers
    # ------------------------------------------------------------------

    def with_basis(self, basis) -> 'Lattice':
        return Lattice(basis, self._sites, self._bonds, self._periodic)

    def with_sites(self, sites: Sequence[Site]) -> 'Lattice':
        return Lattice(self._basis, sites, self._bonds, self._periodic)

    def with_bonds(self, bonds: Sequence[Bond]) -> 'Lattice':
        return Lattice(self._basis, self._sites, bonds, self._periodic)

    def with_periodic(self, periodic: Sequence[bool]) -> 'Lattice':
        return Lattice(self._basis, self._sites, self._bonds, periodic)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, Lattice):
            return NotImplemented
        return structurally_equal(self, other)

    def __repr__(self) -> str:
        flags = ''.join(axis.label for axis in Axis if self._periodic[axis]) or 'none'
        return (f"Lattice(sites={self.num_sites}, bonds={self.num_bonds}, "
                f"periodic={flags})")


def structurally_equal(a: Lattice, b: Lattice, atol: float = DEFAULT_TOLERANCE) -> bool:
    """
    Compare two lattices by content.

    Two lattices are equal when they share periodicity flags, their bases
    and site positions agree within ``atol``, their sites carry the same
    kinds, attributes and tags in the same order, and they contain the same
    set of physical bonds. A bond and its reverse count as one bond, so
    duplicate listings do not affect equality.

    Parameters
    ----------
    a, b : Lattice
    atol : float, optional
        Absolute tolerance for basis and positions

    Returns
    -------
    equal : bool
    """
    if a.periodic != b.periodic or a.num_sites != b.num_sites:
        return False
    if not np.allclose(a.basis, b.basis, rtol=0.0, atol=atol):
        return False
    for sa, sb in zip(a.sites, b.sites):
        if sa.kind != sb.kind or sa.tags != sb.tags or sa.attributes != sb.attributes:
            return False
    if a.num_sites and not np.allclose(a.fractional_positions(), b.fractional_positions(),
                                       rtol=0.0, atol=atol):
        return False
    return a.bond_keys() == b.bond_keys()


def unique_bonds(bonds: Iterable[Bond]) -> List[Bond]:
    """Drop bonds whose canonical key was already seen, keeping first occurrences in order."""
    seen = set()
    result = []
    for bond in bonds:
        key = bond.key()
        if key not in seen:
            seen.add(key)
            result.append(bond)
    return result
