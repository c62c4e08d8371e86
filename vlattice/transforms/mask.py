"""
Site masking driven by an image.

A mask is a 2D array of keep probabilities tiled over the xy plane. Each
site survives with the probability found under its Cartesian (x, y)
position, so an image's alpha channel can carve holes, islands or graded
dilutions into a lattice.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from ..core.lattice import Lattice
from ..errors import InvalidParameterError
from .alloy import RandomState, make_rng

logger = logging.getLogger(__name__)


class Mask:
    """
    Keep-probability map.

    Parameters
    ----------
    alpha : array_like, shape (height, width)
        Probabilities in [0, 1]; row index is y, column index is x
    ppu : float
        Pixels per unit length. The map repeats every ``width / ppu`` along x
        and ``height / ppu`` along y.
    """

    def __init__(self, alpha, ppu: float = 10.0):
        alpha = np.array(alpha, dtype=float)
        if alpha.ndim != 2 or alpha.size == 0:
            raise InvalidParameterError(f"Mask must be a non-empty 2D array, got shape {alpha.shape}")
        if np.any(alpha < 0.0) or np.any(alpha > 1.0):
            raise InvalidParameterError("Mask probabilities must lie in [0, 1]")
        if not ppu > 0:
            raise InvalidParameterError(f"Pixels per unit must be positive, got {ppu}")
        alpha.setflags(write=False)
        self.alpha = alpha
        self.ppu = float(ppu)

    @classmethod
    def from_image(cls, path: Union[str, Path], ppu: float = 10.0) -> 'Mask':
        """Build a mask from the alpha channel of an image file."""
        with Image.open(path) as image:
            rgba = np.asarray(image.convert('RGBA'))
        return cls(rgba[:, :, 3] / 255.0, ppu)

    @property
    def shape(self):
        return self.alpha.shape

    def probability(self, x: float, y: float) -> float:
        """Keep probability at Cartesian (x, y)."""
        height, width = self.alpha.shape
        i = int(np.floor(x * self.ppu)) % width
        j = int(np.floor(y * self.ppu)) % height
        return float(self.alpha[j, i])

    def __repr__(self) -> str:
        height, width = self.alpha.shape
        return f"Mask(width={width}, height={height}, ppu={self.ppu})"


def apply_mask(lattice: Lattice, mask: Mask, rng: RandomState) -> Lattice:
    """
    Remove sites at random according to ``mask``.

    Survivors keep their relative order and are re-indexed densely. Bonds
    touching a removed site are discarded.

    Parameters
    ----------
    lattice : Lattice
    mask : Mask
    rng : numpy.random.Generator or int
        Caller-owned generator or seed

    Returns
    -------
    lattice : Lattice
    """
    rng = make_rng(rng)
    positions = lattice.cartesian_positions()
    probabilities = np.array([mask.probability(x, y) for x, y, _ in positions])
    keep = rng.random(len(probabilities)) < probabilities

    index = np.cumsum(keep) - 1
    sites = [site for site, kept in zip(lattice.sites, keep) if kept]
    bonds = [
        bond.reindexed(index)
        for bond in lattice.bonds
        if keep[bond.source] and keep[bond.target]
    ]
    result = Lattice(lattice.basis, sites, bonds, lattice.periodic)
    logger.info(f"Mask kept {result.num_sites} of {lattice.num_sites} sites")
    return result
