"""
Runtime settings.

Settings are resolved in three layers: built-in defaults, an optional JSON
file, then ``VLATTICE_*`` environment variables. Nothing here is global
mutable state; callers load a ``Settings`` value and pass it along.

Configuration file format::

    {
        "tolerance": 1e-8,
        "lattice_parameter": 1.0,
        "indent": 2,
        "log_level": "INFO",
        "seed": 42
    }
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .errors import InvalidParameterError

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-8
ENV_PREFIX = 'VLATTICE_'

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass(frozen=True)
class Settings:
    """
    Tunable defaults shared by the command line and library helpers.

    Attributes
    ----------
    tolerance : float
        Absolute tolerance for basis and position comparisons
    lattice_parameter : float
        Default lattice constant for pattern construction
    indent : int
        Indent width used by the pretty interchange layout
    log_level : str
        Name of the logging level for the command line
    seed : int or None
        Default seed for stochastic stages (alloy, mask)
    """
    tolerance: float = DEFAULT_TOLERANCE
    lattice_parameter: float = 1.0
    indent: int = 2
    log_level: str = 'WARNING'
    seed: Optional[int] = None

    def __post_init__(self):
        if not self.tolerance >= 0:
            raise InvalidParameterError(f"tolerance must be non-negative, got {self.tolerance}")
        if not self.lattice_parameter > 0:
            raise InvalidParameterError(
                f"lattice_parameter must be positive, got {self.lattice_parameter}")
        if self.indent < 0:
            raise InvalidParameterError(f"indent must be non-negative, got {self.indent}")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise InvalidParameterError(
                f"Unknown log level '{self.log_level}'. Choose one of {', '.join(_LOG_LEVELS)}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def updated(self, **overrides) -> 'Settings':
        """Return a copy with ``overrides`` applied, ignoring ``None`` values."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **_coerce(changes))


def _coerce(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert raw (string or JSON) values into the field types of Settings."""
    types = {f.name: f.type for f in fields(Settings)}
    result = {}
    for key, value in raw.items():
        if key not in types:
            raise InvalidParameterError(f"Unknown setting '{key}'. "
                                        f"Available settings: {', '.join(types)}")
        try:
            if key in ('tolerance', 'lattice_parameter'):
                result[key] = float(value)
            elif key == 'indent':
                result[key] = int(value)
            elif key == 'seed':
                result[key] = None if value in (None, '') else int(value)
            else:
                result[key] = str(value).upper()
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(f"Invalid value {value!r} for setting '{key}'") from exc
    return result


def load_settings(path: Optional[Union[str, Path]] = None,
                  env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve settings from defaults, a JSON file and the environment.

    Parameters
    ----------
    path : str or Path, optional
        JSON configuration file. Missing files raise ``FileNotFoundError``.
    env : Mapping[str, str], optional
        Environment to read ``VLATTICE_*`` overrides from (default: os.environ)

    Returns
    -------
    settings : Settings
    """
    values: Dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found at {path}")
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise InvalidParameterError(f"Config file {path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise InvalidParameterError(f"Config file {path} must contain a JSON object")
        values.update(_coerce(data))
        logger.debug(f"Loaded settings from {path}: {sorted(data)}")

    env = os.environ if env is None else env
    from_env = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in env.items()
        if key.startswith(ENV_PREFIX)
    }
    values.update(_coerce(from_env))

    return Settings(**values)
