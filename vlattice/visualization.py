"""
Quick-look plots of a lattice projected on a Cartesian plane.
"""

from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.lines import Line2D

from .core.lattice import Lattice
from .errors import InvalidParameterError
from .utils.vectors import is_zero

kind_colors = {
    0: '#2E86AB', 1: '#A23B72', 2: '#3CAB70', 3: '#F5B700', 4: '#0F8B8D',
    5: '#8963BA', 6: '#EC9A29', 7: '#2C5784', 8: '#9B4F0F', 9: '#1B998B'
}

PLANES = {'xy': (0, 1), 'xz': (0, 2), 'yz': (1, 2)}


def color_map(lattice: Lattice) -> Dict[str, str]:
    """Assign a colour to each species, in order of first appearance."""
    colors = {}
    for site in lattice.sites:
        if site.kind not in colors:
            colors[site.kind] = kind_colors[len(colors) % len(kind_colors)]
    return colors


def plot_lattice(lattice: Lattice,
                 ax: Optional[plt.Axes] = None,
                 plane: str = 'xy',
                 show_bonds: bool = True,
                 title: Optional[str] = None) -> plt.Axes:
    """
    Draw sites and bonds of ``lattice`` projected onto ``plane``.

    Bonds inside the cell are solid; bonds reaching a periodic image are
    dashed and drawn towards the image position.

    Parameters
    ----------
    lattice : Lattice
    ax : matplotlib Axes, optional
        Axes to draw on; a new figure is created if omitted
    plane : str
        'xy', 'xz' or 'yz'
    show_bonds : bool
    title : str, optional

    Returns
    -------
    ax : matplotlib Axes
    """
    if plane not in PLANES:
        raise InvalidParameterError(f"Unknown plane '{plane}'. Choose one of {', '.join(PLANES)}")
    u, v = PLANES[plane]

    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))

    positions = lattice.cartesian_positions()

    if show_bonds:
        for bond in lattice.bonds:
            start = positions[bond.source]
            end = start + lattice.bond_vector(bond)
            style = '-' if is_zero(bond.delta) else '--'
            ax.plot([start[u], end[u]], [start[v], end[v]],
                    linestyle=style, color='gray', linewidth=0.8, zorder=1)

    colors = color_map(lattice)
    for kind, color in colors.items():
        mask = np.array([site.kind == kind for site in lattice.sites])
        ax.scatter(positions[mask, u], positions[mask, v], s=40, color=color, zorder=2)

    handles = [Line2D([0], [0], marker='o', linestyle='', color=color, label=kind)
               for kind, color in colors.items()]
    if handles:
        ax.legend(handles=handles, loc='upper right')

    ax.set_xlabel(plane[0])
    ax.set_ylabel(plane[1])
    ax.set_aspect('equal')
    ax.set_title(title or f"{lattice.num_sites} sites, {lattice.num_bonds} bonds")
    return ax
