"""
Exception hierarchy for vlattice.

Every failure a pipeline stage can report derives from ``LatticeError`` so
the command line can turn it into a diagnostic and a nonzero exit status.
I/O failures are left as the builtin ``OSError``.
"""


class LatticeError(Exception):
    """Base class for all lattice errors."""


class ValidationError(LatticeError, ValueError):
    """A lattice violates a structural invariant (dangling bond, bad offset, bad basis)."""


class InvalidParameterError(LatticeError, ValueError):
    """An operation received an out-of-range argument."""


class IncompatibleLatticeError(LatticeError, ValueError):
    """Two lattices cannot be combined."""


class NotFoundError(LatticeError, LookupError):
    """A named pattern or species does not exist."""


class FormatError(LatticeError, ValueError):
    """A document could not be decoded into a lattice, or a format is unknown."""
