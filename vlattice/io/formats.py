"""
Text output formats for finished lattices.

- xyz: extended XYZ listing, Cartesian positions
- tsv: tab separated ``x y z kind`` rows
- topology: site table followed by the full bond table with offsets
- neighbors: one adjacency line per site, offsets included
"""

from typing import Callable, Dict

from ..core.lattice import Lattice
from ..errors import FormatError


def _num(value: float) -> str:
    return format(float(value) + 0.0, '.12g')


def to_xyz(lattice: Lattice) -> str:
    """
    Extended XYZ listing.

    The first line holds the site count, the second the cell and
    periodicity in extended XYZ key=value form, then one ``kind x y z`` line
    per site.
    """
    cell = ' '.join(_num(v) for v in lattice.basis.ravel())
    pbc = ' '.join('T' if flag else 'F' for flag in lattice.periodic)
    lines = [
        str(lattice.num_sites),
        f'Lattice="{cell}" Properties=species:S:1:pos:R:3 pbc="{pbc}"',
    ]
    for site, (x, y, z) in zip(lattice.sites, lattice.cartesian_positions()):
        lines.append(f"{site.kind} {_num(x)} {_num(y)} {_num(z)}")
    return '\n'.join(lines) + '\n'


def to_tsv(lattice: Lattice) -> str:
    lines = [
        f"{_num(x)}\t{_num(y)}\t{_num(z)}\t{site.kind}"
        for site, (x, y, z) in zip(lattice.sites, lattice.cartesian_positions())
    ]
    return ''.join(line + '\n' for line in lines)


def to_topology(lattice: Lattice) -> str:
    """
    Simulator topology listing.

    Layout::

        <num_sites> <num_bonds>
        <index> <kind> <x> <y> <z>           one line per site, Cartesian
        <source> <target> <dx> <dy> <dz>     one line per bond
    """
    lines = [f"{lattice.num_sites} {lattice.num_bonds}"]
    for index, (site, (x, y, z)) in enumerate(zip(lattice.sites, lattice.cartesian_positions())):
        lines.append(f"{index} {site.kind} {_num(x)} {_num(y)} {_num(z)}")
    for bond in lattice.bonds:
        dx, dy, dz = bond.delta
        lines.append(f"{bond.source} {bond.target} {dx} {dy} {dz}")
    return '\n'.join(lines) + '\n'


def to_neighbors(lattice: Lattice) -> str:
    """One ``index kind: j(dx,dy,dz) ...`` line per site, listing every bond from both ends."""
    lines = []
    for index, (site, neighbors) in enumerate(zip(lattice.sites, lattice.neighbors())):
        entries = ' '.join(f"{j}({dx},{dy},{dz})" for j, (dx, dy, dz) in neighbors)
        lines.append(f"{index} {site.kind}: {entries}".rstrip())
    return ''.join(line + '\n' for line in lines)


FORMATS: Dict[str, Callable[[Lattice], str]] = {
    'xyz': to_xyz,
    'tsv': to_tsv,
    'topology': to_topology,
    'neighbors': to_neighbors,
}


def render(lattice: Lattice, fmt: str) -> str:
    """Render ``lattice`` in the named output format."""
    if fmt not in FORMATS:
        raise FormatError(f"Unknown output format '{fmt}'. "
                          f"Available formats: {', '.join(FORMATS)}")
    return FORMATS[fmt](lattice)
