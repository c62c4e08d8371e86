"""
Pipeline Demo

Walks through the library API that the command line stages wrap:
- Preset unit cells
- Supercell expansion
- Reproducible alloying
- Closing boundaries and exporting
"""

import numpy as np
import sys
from pathlib import Path

# Add vlattice to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vlattice import alloy, create_lattice, drop_periodic, expand
from vlattice.io import dumps, render


def example_unit_cell():
    """Example 1: bcc iron unit cell."""
    print("="*60)
    print("Example 1: Body centred cubic unit cell")
    print("="*60)

    cell = create_lattice('bcc', a=2.87)
    print(f"\nLattice: {cell}")
    print(f"Species: {dict(cell.kinds())}")

    print("\nBonds:")
    for i, bond in enumerate(cell.bonds):
        length = np.linalg.norm(cell.bond_vector(bond))
        print(f"  Bond {i+1}: {bond.source} -> {bond.target} "
              f"delta = {bond.delta}, length = {length:.3f}")

    return cell


def example_supercell(cell):
    """Example 2: 4x4x4 supercell."""
    print("\n" + "="*60)
    print("Example 2: Supercell expansion")
    print("="*60)

    supercell = expand(cell, (4, 4, 4))
    print(f"\nSupercell: {supercell}")
    print(f"Basis:\n{supercell.basis}")

    coordination = {len(entry) for entry in supercell.neighbors()}
    print(f"Coordination numbers present: {sorted(coordination)}")

    return supercell


def example_alloy(supercell):
    """Example 3: replace half the corner sites, twice with the same seed."""
    print("\n" + "="*60)
    print("Example 3: Reproducible alloy")
    print("="*60)

    first = alloy(supercell, 'A', 'Fe+', 50, np.random.default_rng(42))
    second = alloy(supercell, 'A', 'Fe+', 50, np.random.default_rng(42))
    print(f"\nSpecies after alloying: {dict(first.kinds())}")
    print(f"Same seed, same lattice: {first == second}")

    return first


def example_export(lattice):
    """Example 4: open the z boundary and export."""
    print("\n" + "="*60)
    print("Example 4: Boundaries and export")
    print("="*60)

    slab = drop_periodic(lattice, 'z')
    print(f"\nSlab: {slab} ({lattice.num_bonds - slab.num_bonds} bonds removed)")

    document = dumps(slab)
    print(f"Interchange document: {len(document)} characters")

    xyz = render(slab, 'xyz').splitlines()
    print("First lines of the xyz listing:")
    for line in xyz[:4]:
        print(f"  {line}")


if __name__ == '__main__':
    cell = example_unit_cell()
    supercell = example_supercell(cell)
    mixed = example_alloy(supercell)
    example_export(mixed)

    print("\n" + "="*60)
    print("Same pipeline from the shell:")
    print("="*60)
    print("  vlattice bcc -a 2.87 | vlattice expand -x 4 -y 4 -z 4 \\")
    print("    | vlattice alloy A -t Fe+ 50 --seed 42 | vlattice drop -z | vlattice into xyz")
