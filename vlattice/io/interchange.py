"""
JSON interchange encoding.

This is the document piped between pipeline stages::

    {
      "basis": [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
      "periodic": [true, true, true],
      "sites": [
        {"index": 0, "kind": "Fe", "position": [0.0, 0.0, 0.0]}
      ],
      "bonds": [
        {"source": 0, "target": 0, "delta": [1, 0, 0]}
      ]
    }

Sites may also carry ``attributes`` (name -> number) and ``tags`` (list of
strings); bonds may carry ``tags``. Positions are fractional.

Documents written by the older tool (``size`` with absolute positions and
``vertices``) are still read: the basis becomes ``diag(size)`` and every
axis is periodic.
"""

import json
import logging
from pathlib import Path
from typing import IO, Any, Dict, List, Union

import numpy as np

from ..core.lattice import Bond, Lattice, Site
from ..errors import FormatError

logger = logging.getLogger(__name__)

PathOrFile = Union[str, Path, IO[str]]

# Nesting levels laid out one item per line by the pretty layout
PRETTY_DEPTH = 2


def to_dict(lattice: Lattice) -> Dict[str, Any]:
    """Encode a lattice as plain JSON-compatible data."""
    sites = []
    for index, site in enumerate(lattice.sites):
        item: Dict[str, Any] = {
            'index': index,
            'kind': site.kind,
            'position': [_plain(v) for v in site.position],
        }
        if site.attributes:
            item['attributes'] = dict(site.attributes)
        if site.tags:
            item['tags'] = list(site.tags)
        sites.append(item)

    bonds = []
    for bond in lattice.bonds:
        item = {
            'source': bond.source,
            'target': bond.target,
            'delta': list(bond.delta),
        }
        if bond.tags:
            item['tags'] = list(bond.tags)
        bonds.append(item)

    return {
        'basis': [[_plain(v) for v in row] for row in lattice.basis],
        'periodic': list(lattice.periodic),
        'sites': sites,
        'bonds': bonds,
    }


def _plain(value: float) -> float:
    # -0.0 reads badly and compares unequal as text
    return float(value) + 0.0


def _require(mapping: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(mapping, dict):
        raise FormatError(f"{where} must be a JSON object, got {type(mapping).__name__}")
    if key not in mapping:
        raise FormatError(f"{where} is missing required key '{key}'")
    return mapping[key]


def _triple(value: Any, where: str) -> List[Any]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise FormatError(f"{where} must be a list of 3 numbers, got {value!r}")
    return list(value)


def _tags(raw: Dict[str, Any], where: str) -> List[str]:
    tags = raw.get('tags', [])
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise FormatError(f"{where} tags must be a list of strings, got {tags!r}")
    return tags


def from_dict(data: Dict[str, Any]) -> Lattice:
    """
    Decode a lattice from interchange data.

    Raises
    ------
    FormatError
        If the document is structurally malformed (missing keys, wrong
        shapes, site indices out of order)
    ValidationError
        If the decoded lattice violates a model invariant
    """
    if not isinstance(data, dict):
        raise FormatError(f"Lattice document must be a JSON object, got {type(data).__name__}")

    if 'basis' not in data and 'size' in data:
        return _from_legacy_dict(data)

    basis = _require(data, 'basis', 'lattice')
    if not isinstance(basis, list) or len(basis) != 3:
        raise FormatError(f"basis must be a list of 3 vectors, got {basis!r}")
    basis = [_triple(row, 'basis vector') for row in basis]

    periodic = _triple(data.get('periodic', [True, True, True]), 'periodic')
    if not all(isinstance(flag, bool) for flag in periodic):
        raise FormatError(f"periodic must contain booleans, got {periodic!r}")

    raw_sites = _require(data, 'sites', 'lattice')
    raw_bonds = data.get('bonds', [])
    if not isinstance(raw_sites, list) or not isinstance(raw_bonds, list):
        raise FormatError("sites and bonds must be JSON arrays")

    sites = []
    for position, raw in enumerate(raw_sites):
        where = f"site {position}"
        index = raw.get('index', position) if isinstance(raw, dict) else position
        if index != position:
            raise FormatError(f"{where} has index {index}; indices must be dense and in order")
        sites.append(Site(
            kind=_require(raw, 'kind', where),
            position=_triple(_require(raw, 'position', where), f"{where} position"),
            attributes=raw.get('attributes') or {},
            tags=_tags(raw, where),
        ))

    bonds = [_bond_from_dict(raw, f"bond {i}") for i, raw in enumerate(raw_bonds)]
    return Lattice(basis, sites, bonds, periodic)


def _bond_from_dict(raw: Dict[str, Any], where: str) -> Bond:
    return Bond(
        source=_require(raw, 'source', where),
        target=_require(raw, 'target', where),
        delta=_triple(raw.get('delta', [0, 0, 0]), f"{where} delta"),
        tags=_tags(raw, where),
    )


def _from_legacy_dict(data: Dict[str, Any]) -> Lattice:
    size = _triple(data['size'], 'size')
    try:
        size = np.array(size, dtype=float)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"size must be numeric: {exc}") from exc
    if np.any(size <= 0):
        raise FormatError(f"size must be positive, got {size.tolist()}")

    raw_sites = _require(data, 'sites', 'lattice')
    raw_bonds = data.get('vertices', data.get('edges', []))
    if not isinstance(raw_sites, list) or not isinstance(raw_bonds, list):
        raise FormatError("sites and vertices must be JSON arrays")
    sites = []
    for i, raw in enumerate(raw_sites):
        where = f"site {i}"
        position = _triple(raw.get('position', [0, 0, 0]) if isinstance(raw, dict) else None,
                           f"{where} position")
        try:
            fractional = np.array(position, dtype=float) / size
        except (TypeError, ValueError) as exc:
            raise FormatError(f"{where} position must be numeric: {exc}") from exc
        sites.append(Site(
            kind=_require(raw, 'kind', where),
            position=fractional,
            tags=_tags(raw, where),
        ))
    bonds = [_bond_from_dict(raw, f"vertex {i}") for i, raw in enumerate(raw_bonds)]
    logger.debug(f"Read legacy lattice document with size {size.tolist()}")
    return Lattice(np.diag(size), sites, bonds)


def dumps(lattice: Lattice, pretty: bool = False, indent: int = 2) -> str:
    """
    Serialize a lattice to a JSON string.

    Parameters
    ----------
    lattice : Lattice
    pretty : bool, optional
        Lay the document out over several lines. Only the two outer levels
        are broken up, so every site and bond stays on a single line.
    indent : int, optional
        Indent width for the pretty layout
    """
    data = to_dict(lattice)
    if not pretty:
        return json.dumps(data, separators=(',', ':'))
    return _layout(data, 0, indent)


def _is_flat(value: Any) -> bool:
    return isinstance(value, list) and not any(isinstance(v, (dict, list)) for v in value)


def _layout(value: Any, level: int, indent: int) -> str:
    if level >= PRETTY_DEPTH or not isinstance(value, (dict, list)) or not value or _is_flat(value):
        return json.dumps(value, separators=(', ', ': '))
    pad = ' ' * indent * (level + 1)
    if isinstance(value, dict):
        items = [f"{pad}{json.dumps(key)}: {_layout(item, level + 1, indent)}"
                 for key, item in value.items()]
        opening, closing = '{', '}'
    else:
        items = [f"{pad}{_layout(item, level + 1, indent)}" for item in value]
        opening, closing = '[', ']'
    return opening + '\n' + ',\n'.join(items) + '\n' + ' ' * indent * level + closing


def loads(text: str) -> Lattice:
    """Parse and validate a lattice from a JSON string."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"There was a problem parsing json: {exc}") from exc
    return from_dict(data)


def dump(lattice: Lattice, target: PathOrFile, pretty: bool = False, indent: int = 2) -> None:
    """Write a lattice to a path or an open text file."""
    text = dumps(lattice, pretty=pretty, indent=indent) + '\n'
    if isinstance(target, (str, Path)):
        Path(target).write_text(text)
    else:
        target.write(text)


def load(source: PathOrFile) -> Lattice:
    """Read a lattice from a path or an open text file."""
    if isinstance(source, (str, Path)):
        text = Path(source).read_text()
    else:
        text = source.read()
    return loads(text)
