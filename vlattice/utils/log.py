"""Logging setup for command line use."""

import logging
import sys
from typing import Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Union[int, str] = logging.WARNING) -> None:
    """
    Send log records to stderr.

    stdout carries lattice documents between pipeline stages, so nothing
    else may be written there.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)
