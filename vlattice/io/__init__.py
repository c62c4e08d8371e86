"""
Serialization adapters.

- interchange: JSON document piped between pipeline stages
- formats: xyz, tsv, topology and neighbor listings for downstream tools
"""

from .formats import FORMATS, render, to_neighbors, to_topology, to_tsv, to_xyz
from .interchange import dump, dumps, from_dict, load, loads, to_dict

__all__ = [
    'FORMATS',
    'render',
    'to_neighbors',
    'to_topology',
    'to_tsv',
    'to_xyz',
    'dump',
    'dumps',
    'from_dict',
    'load',
    'loads',
    'to_dict',
]
