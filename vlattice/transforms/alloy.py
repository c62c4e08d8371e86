"""
Alloy substitution: random relabelling of one species.

Selection is driven by a caller-owned ``numpy.random.Generator``; there is no
module-level generator. The same lattice, arguments and seed always produce
the same result.

Counting rule
-------------
The number of sites relabelled is ``floor(p / 100 * n + 0.5)`` for ``n``
matching sites, i.e. the exact share rounded half up: 33% of 10 sites
relabels 3, 25% of 10 relabels 3, 50% of 100 relabels 50.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

import numpy as np

from ..core.lattice import Lattice
from ..errors import InvalidParameterError, NotFoundError
from ..utils.vectors import round_half_up

logger = logging.getLogger(__name__)

RandomState = Union[np.random.Generator, int]


def make_rng(rng: Optional[RandomState]) -> np.random.Generator:
    """
    Coerce ``rng`` into a Generator.

    A Generator is returned as is, so its state advances for the caller. An
    int is used as a seed. ``None`` is rejected: stochastic stages must be
    seeded explicitly.
    """
    if rng is None:
        raise InvalidParameterError("A random generator or integer seed is required")
    if isinstance(rng, np.random.Generator):
        return rng
    if isinstance(rng, bool) or not isinstance(rng, (int, np.integer)):
        raise InvalidParameterError(f"Expected a numpy Generator or an integer seed, got {rng!r}")
    return np.random.default_rng(int(rng))


def _check_percentage(kind: str, percentage: float) -> float:
    try:
        percentage = float(percentage)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"Percentage for '{kind}' must be a number, got {percentage!r}") from None
    if not 0.0 <= percentage <= 100.0:
        raise InvalidParameterError(f"Percentage for '{kind}' must be in [0, 100], got {percentage}")
    return percentage


def substitution_count(percentage: float, total: int) -> int:
    """Number of sites relabelled when substituting ``percentage`` of ``total``."""
    return round_half_up(percentage * total / 100.0)


@dataclass(frozen=True)
class Alloy:
    """
    A set of target species with the percentage of source sites each receives.

    Targets are applied in insertion order to consecutive runs of one
    shuffled selection, so no site is relabelled twice. Whatever is left over
    keeps the source label.

    Parameters
    ----------
    targets : Mapping[str, float]
        Target kind -> percentage of source sites, each in [0, 100], summing
        to at most 100

    Examples
    --------
    >>> Alloy({'Fe+': 25, 'Ni': 25}).counts(10)
    {'Fe+': 3, 'Ni': 2}
    """
    targets: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        targets = {}
        for kind, percentage in dict(self.targets).items():
            if not isinstance(kind, str) or not kind:
                raise InvalidParameterError(f"Target kind must be a non-empty string, got {kind!r}")
            targets[kind] = _check_percentage(kind, percentage)
        total = sum(targets.values())
        if total > 100.0 + 1e-9:
            raise InvalidParameterError(f"Target percentages sum to {total}, more than 100")
        object.__setattr__(self, 'targets', targets)

    def counts(self, total: int) -> Dict[str, int]:
        """
        Apportion ``total`` source sites among the targets.

        Boundaries are taken on the cumulative percentage so the counts never
        exceed ``total`` and a single target gets exactly
        ``substitution_count(p, total)``.
        """
        counts = {}
        cumulative = 0.0
        previous = 0
        for kind, percentage in self.targets.items():
            cumulative += percentage
            boundary = min(substitution_count(cumulative, total), total)
            counts[kind] = boundary - previous
            previous = boundary
        return counts

    def apply(self,
              lattice: Lattice,
              source: str,
              rng: RandomState,
              strict: bool = True) -> Lattice:
        """
        Relabel ``source`` sites of ``lattice`` according to this alloy.

        Parameters
        ----------
        lattice : Lattice
            Input lattice, left untouched
        source : str
            Species label to substitute
        rng : numpy.random.Generator or int
            Caller-owned generator (advanced in place) or seed
        strict : bool, optional
            If True (default), raise NotFoundError when no site is labelled
            ``source``. Otherwise log a warning and return an equal copy.

        Returns
        -------
        lattice : Lattice
            New lattice with relabelled sites and the same bonds
        """
        rng = make_rng(rng)
        matching = [i for i, site in enumerate(lattice.sites) if site.kind == source]
        if not matching:
            message = f"No sites of kind '{source}' to substitute"
            if strict:
                raise NotFoundError(message)
            logger.warning(f"{message}; lattice left unchanged")
            return lattice.with_sites(lattice.sites)

        order = rng.permutation(np.asarray(matching))
        relabel: Dict[int, str] = {}
        start = 0
        for kind, count in self.counts(len(matching)).items():
            for index in order[start:start + count]:
                relabel[int(index)] = kind
            start += count

        sites = [
            site.with_kind(relabel[i]) if i in relabel else site
            for i, site in enumerate(lattice.sites)
        ]
        logger.info(f"Substituted {len(relabel)} of {len(matching)} '{source}' sites "
                    f"with {self.targets}")
        return lattice.with_sites(sites)


def alloy(lattice: Lattice,
          source: str,
          target: str,
          percentage: float,
          rng: RandomState,
          strict: bool = True) -> Lattice:
    """
    Relabel a percentage of the ``source`` sites as ``target``.

    Parameters
    ----------
    lattice : Lattice
        Input lattice
    source : str
        Species label to pick from
    target : str
        New species label
    percentage : float
        Share of ``source`` sites to relabel, in [0, 100]
    rng : numpy.random.Generator or int
        Caller-owned generator or seed
    strict : bool, optional
        Raise NotFoundError when there is no ``source`` site (default)

    Returns
    -------
    lattice : Lattice
        Exactly ``floor(percentage / 100 * count(source) + 0.5)`` sites
        relabelled; bonds and all other sites unchanged

    Raises
    ------
    InvalidParameterError
        If percentage is outside [0, 100] or rng is missing
    NotFoundError
        If ``strict`` and no site is labelled ``source``

    Notes
    -----
    Only the lattice is returned, not the generator. A Generator passed as
    ``rng`` is advanced in place, so calling ``alloy`` twice with the same
    Generator draws two different selections. Pass it on to the next
    stochastic stage to continue the same stream. An int seed builds a fresh
    Generator on every call.

    Examples
    --------
    >>> from vlattice.core.lattice import simple_cubic
    >>> from vlattice.transforms.expand import expand
    >>> doped = alloy(expand(simple_cubic(kind='Fe'), (10, 10, 1)), 'Fe', 'Fe+', 50, rng=7)
    >>> doped.kinds()['Fe+']
    50
    """
    return Alloy({target: percentage}).apply(lattice, source, rng, strict=strict)


def alloy_mixture(lattice: Lattice,
                  source: str,
                  targets: Mapping[str, float],
                  rng: RandomState,
                  strict: bool = True) -> Lattice:
    """Relabel ``source`` sites into several target kinds at once."""
    return Alloy(dict(targets)).apply(lattice, source, rng, strict=strict)


def selected_sites(before: Lattice, after: Lattice) -> List[int]:
    """Indices whose species differs between two lattices of the same size."""
    return [i for i, (a, b) in enumerate(zip(before.sites, after.sites)) if a.kind != b.kind]
