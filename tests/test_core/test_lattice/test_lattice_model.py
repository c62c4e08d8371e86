"""
Unit tests for the lattice graph model.

Tests:
- Site and Bond normalization and validation
- Canonical bond keys
- Lattice construction invariants
- Geometry accessors
- Structural equality
"""

import numpy as np
import pytest
from vlattice.core.lattice import Bond, Lattice, Site, structurally_equal, unique_bonds
from vlattice.errors import ValidationError


def chain(n=3, periodic=(True, False, False)):
    """Open or closed chain of n sites along x in a cell of length n."""
    sites = [Site('Fe', (i / n, 0.0, 0.0)) for i in range(n)]
    bonds = [Bond(i, i + 1) for i in range(n - 1)]
    if periodic[0]:
        bonds.append(Bond(n - 1, 0, (1, 0, 0)))
    basis = np.diag([float(n), 1.0, 1.0])
    return Lattice(basis, sites, bonds, periodic)


class TestSite:
    """Test site normalization."""

    def test_position_normalized_to_floats(self):
        """Test that positions are stored as a tuple of floats."""
        site = Site('Fe', [0, 1, np.float32(0.5)])
        assert site.position == (0.0, 1.0, 0.5)
        assert all(isinstance(v, float) for v in site.position)

    def test_tags_become_tuple(self):
        """Test that a tag list is frozen into a tuple."""
        site = Site('Fe', tags=['surface'])
        assert site.tags == ('surface',)
        assert site.has_tag('surface')
        assert not site.has_tag('bulk')

    def test_with_kind_keeps_everything_else(self):
        """Test relabelling a site keeps position, attributes and tags."""
        site = Site('Fe', (0.5, 0.5, 0.5), {'moment': 2.2}, ('core',))
        relabelled = site.with_kind('Fe+')

        assert relabelled.kind == 'Fe+'
        assert relabelled.position == site.position
        assert relabelled.attributes == {'moment': 2.2}
        assert relabelled.tags == ('core',)
        assert site.kind == 'Fe'

    @pytest.mark.parametrize("kind", ['', None, 3])
    def test_bad_kind_rejected(self, kind):
        """Test rejection of empty or non-string kinds."""
        with pytest.raises(ValidationError):
            Site(kind)

    def test_bad_position_rejected(self):
        """Test rejection of positions that are not 3 numbers."""
        with pytest.raises(ValidationError):
            Site('Fe', (0.0, 0.0))
        with pytest.raises(ValidationError):
            Site('Fe', (0.0, np.nan, 0.0))

    def test_non_scalar_attribute_rejected(self):
        """Test rejection of attribute values that are not numbers."""
        with pytest.raises(ValidationError):
            Site('Fe', attributes={'moment': 'large'})


class TestBond:
    """Test bond normalization and canonical keys."""

    def test_numpy_indices_accepted(self):
        """Test that numpy integers are converted to plain ints."""
        bond = Bond(np.int64(1), np.int32(2), np.array([0, 1, 0]))
        assert bond.source == 1 and isinstance(bond.source, int)
        assert bond.delta == (0, 1, 0)

    def test_negative_index_rejected(self):
        """Test rejection of negative site indices."""
        with pytest.raises(ValidationError, match="non-negative"):
            Bond(-1, 0)

    def test_fractional_offset_rejected(self):
        """Test rejection of non-integer cell offsets."""
        with pytest.raises(ValidationError):
            Bond(0, 1, (0.5, 0, 0))

    def test_reversed(self):
        """Test swapping the ends of a bond."""
        bond = Bond(0, 1, (0, 0, 1), ('j1',))
        assert bond.reversed() == Bond(1, 0, (0, 0, -1), ('j1',))
        assert bond.reversed().reversed() == bond

    def test_key_is_direction_independent(self):
        """Test that a bond and its reverse share a key."""
        bond = Bond(2, 5, (1, -1, 0))
        assert bond.key() == bond.reversed().key()
        assert bond.key() == (2, 5, (1, -1, 0))

    def test_self_bond_key(self):
        """Test that opposite self-bonds share a key."""
        forward = Bond(0, 0, (1, 0, 0))
        backward = Bond(0, 0, (-1, 0, 0))
        assert forward.key() == backward.key() == (0, 0, (1, 0, 0))

    def test_reindexed(self):
        """Test shifting bond endpoints to new site indices."""
        bond = Bond(0, 2, (1, 0, 0))
        assert bond.reindexed([5, 6, 7]) == Bond(5, 7, (1, 0, 0))

    def test_unique_bonds_keeps_first(self):
        """Test deduplication keeps the first occurrence."""
        bonds = [Bond(0, 1, (1, 0, 0)), Bond(1, 0, (-1, 0, 0), ('dup',)), Bond(0, 1)]
        result = unique_bonds(bonds)
        assert result == [Bond(0, 1, (1, 0, 0)), Bond(0, 1)]


class TestLatticeValidation:
    """Test construction invariants."""

    def test_empty_lattice(self):
        """Test a lattice without sites or bonds."""
        lattice = Lattice(np.eye(3))
        assert lattice.num_sites == 0
        assert lattice.num_bonds == 0
        assert lattice.cartesian_positions().shape == (0, 3)

    def test_degenerate_basis(self):
        """Test rejection of a singular basis."""
        basis = [[1, 0, 0], [2, 0, 0], [0, 0, 1]]
        with pytest.raises(ValidationError, match="degenerate"):
            Lattice(basis)

    def test_wrong_basis_shape(self):
        """Test rejection of a basis that is not 3x3."""
        with pytest.raises(ValidationError, match="shape"):
            Lattice(np.eye(2))

    def test_dangling_bond(self):
        """Test rejection of bonds to missing sites."""
        with pytest.raises(ValidationError, match="missing site"):
            Lattice(np.eye(3), [Site('Fe')], [Bond(0, 1)])

    def test_offset_on_non_periodic_axis(self):
        """Test rejection of offsets across a closed axis."""
        with pytest.raises(ValidationError, match="non-periodic axis z"):
            Lattice(np.eye(3), [Site('Fe')], [Bond(0, 0, (0, 0, 1))],
                    periodic=(True, True, False))

    def test_self_bond_inside_cell(self):
        """Test rejection of a site bonded to itself in its own cell."""
        with pytest.raises(ValidationError, match="to itself"):
            Lattice(np.eye(3), [Site('Fe')], [Bond(0, 0)])

    def test_basis_is_read_only(self):
        """Test that the exposed basis cannot be modified."""
        lattice = chain()
        with pytest.raises(ValueError):
            lattice.basis[0, 0] = 5.0


class TestLatticeGeometry:
    """Test geometry accessors."""

    def test_cartesian_positions(self):
        """Test fractional positions mapped through the basis."""
        lattice = chain(4)
        positions = lattice.cartesian_positions()
        assert np.allclose(positions[:, 0], [0.0, 1.0, 2.0, 3.0])

    def test_fractional_real_roundtrip(self):
        """Test real and fractional coordinate conversion."""
        basis = [[1.0, 0.0, 0.0], [0.5, np.sqrt(3) / 2, 0.0], [0.0, 0.0, 2.0]]
        lattice = Lattice(basis)
        fractional = np.array([[0.25, 0.5, 0.75], [1.0, -1.0, 0.0]])

        real = lattice.fractional_to_real(fractional)
        assert np.allclose(real[0], [0.5, np.sqrt(3) / 4, 1.5])
        assert np.allclose(lattice.real_to_fractional(real), fractional)

    def test_bond_vector_across_boundary(self):
        """Test bond vectors include the cell offset."""
        lattice = chain(3, periodic=(True, False, False))
        wrap_bond = lattice.bonds[-1]
        assert np.allclose(lattice.bond_vector(wrap_bond), [1.0, 0.0, 0.0])

    def test_volume_and_size(self):
        """Test cell volume and edge lengths."""
        lattice = Lattice(np.diag([2.0, 3.0, 4.0]))
        assert np.isclose(lattice.volume, 24.0)
        assert lattice.size == (2.0, 3.0, 4.0)

    def test_neighbors_lists_both_ends(self):
        """Test adjacency lists every bond from both sites."""
        lattice = chain(3, periodic=(True, False, False))
        neighbors = lattice.neighbors()

        assert sorted(neighbors[0]) == [(1, (0, 0, 0)), (2, (-1, 0, 0))]
        assert all(len(entry) == 2 for entry in neighbors)

    def test_kinds(self):
        """Test species counts in order of appearance."""
        sites = [Site('Fe'), Site('Ni', (0.5, 0.5, 0.5)), Site('Fe', (0.5, 0.0, 0.0))]
        lattice = Lattice(np.eye(3), sites)
        assert lattice.kinds() == {'Fe': 2, 'Ni': 1}

    def test_is_periodic(self):
        """Test per-axis periodicity queries."""
        lattice = chain(periodic=(True, False, False))
        assert lattice.is_periodic('x')
        assert not lattice.is_periodic(2)

    def test_repr(self):
        """Test the short summary representation."""
        assert repr(chain(3)) == "Lattice(sites=3, bonds=3, periodic=x)"
        open_chain = chain(3, periodic=(False, False, False))
        assert repr(open_chain) == "Lattice(sites=3, bonds=2, periodic=none)"


class TestStructuralEquality:
    """Test content-based comparison."""

    def test_equal_to_itself_rebuilt(self):
        """Test two independently built lattices compare equal."""
        assert chain(4) == chain(4)

    def test_reversed_bonds_equal(self):
        """Test bond direction does not affect equality."""
        lattice = chain(3)
        flipped = lattice.with_bonds([bond.reversed() for bond in lattice.bonds])
        assert lattice == flipped

    def test_duplicate_bonds_ignored(self):
        """Test duplicate bond listings do not affect equality."""
        lattice = chain(3)
        doubled = lattice.with_bonds(lattice.bonds + (lattice.bonds[0].reversed(),))
        assert lattice == doubled

    def test_positions_within_tolerance(self):
        """Test positions compared with an absolute tolerance."""
        lattice = chain(2)
        nudged = lattice.with_sites([s.with_position(np.add(s.position, 1e-10))
                                     for s in lattice.sites])
        assert lattice == nudged
        assert not structurally_equal(lattice, nudged, atol=1e-12)

    def test_kind_difference(self):
        """Test a different species breaks equality."""
        lattice = chain(2)
        other = lattice.with_sites([lattice.sites[0].with_kind('Ni'), lattice.sites[1]])
        assert lattice != other

    def test_site_order_matters(self):
        """Test site order is part of the structure."""
        lattice = Lattice(np.eye(3), [Site('Fe'), Site('Ni', (0.5, 0.5, 0.5))])
        swapped = Lattice(np.eye(3), [Site('Ni', (0.5, 0.5, 0.5)), Site('Fe')])
        assert lattice != swapped

    def test_periodicity_difference(self):
        """Test periodicity flags are compared."""
        closed = chain(3, periodic=(True, False, False))
        assert closed != closed.with_periodic((True, True, False))

    def test_bond_tags_compared(self):
        """Test bond tags are compared."""
        lattice = chain(2, periodic=(False, False, False))
        tagged = lattice.with_bonds([Bond(0, 1, tags=('j1',))])
        assert lattice != tagged

    def test_not_hashable(self):
        """Test lattices cannot be hashed."""
        with pytest.raises(TypeError):
            hash(chain())
